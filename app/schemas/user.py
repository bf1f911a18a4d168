from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import Optional


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserRead(BaseModel):
    id: int
    email: EmailStr
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ProfileRead(BaseModel):
    user_id: int
    username: Optional[str] = None
    avatar_url: Optional[str] = Field(None, description="avatars 버킷 object key")
    avatar_public_url: Optional[str] = None
    is_admin: bool = False
    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = Field(None, description="업로드 후 받은 object key")


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)

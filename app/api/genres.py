from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.manga import GenreResponse
from app.services import catalog

router = APIRouter(prefix="/genres", tags=["genres"])


@router.get("", response_model=List[GenreResponse])
def list_genres(db: Session = Depends(get_db)):
    return catalog.list_genres(db)

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import get_current_user
from app.models import User
from app.services import storage

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/{bucket}/presign", summary="S3 presigned POST 생성 (avatars / covers / pages)")
def create_presigned_post(
    bucket: str,
    filename: str = Query(..., description="원본 파일명(확장자 포함)"),
    contentType: Optional[str] = Query(None, description="MIME 타입"),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        return storage.presign_upload(current_user, bucket, filename, contentType)
    except storage.StorageNotConfigured:
        raise HTTPException(status_code=501, detail="S3 not configured")

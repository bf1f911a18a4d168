"""Object storage: three logical buckets as key prefixes inside one S3 bucket.

Object keys stored in the database are bucket-relative ("<user_id>/<hex>.png"
for avatars, "<hex>.jpg" for covers and pages); ``public_url`` turns them into
a URL served from the public base (CDN) or straight from S3.
"""
import os
import uuid
from typing import Any, Dict, Optional

import boto3
from botocore.client import Config as BotoConfig

from app.core.config import get_settings
from app.core.errors import ValidationFailed
from app.core.policies import require_bucket_writer
from app.models import User

BUCKETS = ("avatars", "covers", "pages")
ALLOWED_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
PRESIGN_EXPIRES_SECONDS = 300


class StorageNotConfigured(Exception):
    pass


def make_object_key(bucket: str, filename: str, owner_id: Optional[int] = None) -> str:
    """Opaque generated name; avatars are namespaced by owner."""
    if bucket not in BUCKETS:
        raise ValidationFailed(f"Unknown bucket: {bucket}")
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_EXTS:
        raise ValidationFailed("Only image files are allowed")
    name = f"{uuid.uuid4().hex}{ext}"
    if bucket == "avatars":
        if owner_id is None:
            raise ValidationFailed("Avatar uploads need an owner")
        return f"{owner_id}/{name}"
    return name


def public_url(bucket: str, key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    if key.startswith("http://") or key.startswith("https://"):
        # 외부 메타데이터로 채운 표지 URL 등은 그대로
        return key
    settings = get_settings()
    full_key = f"{bucket}/{key}"
    if settings.s3_public_base_url:
        return f"{settings.s3_public_base_url.rstrip('/')}/{full_key}"
    if settings.s3_bucket and settings.aws_region:
        return f"https://{settings.s3_bucket}.s3.{settings.aws_region}.amazonaws.com/{full_key}"
    return f"/storage/{full_key}"


def _client():
    settings = get_settings()
    if not (settings.aws_access_key_id and settings.aws_secret_access_key and settings.s3_bucket and settings.aws_region):
        raise StorageNotConfigured()
    return boto3.client(
        "s3",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
        config=BotoConfig(signature_version="s3v4"),
    )


def presign_upload(user: User, bucket: str, filename: str, content_type: Optional[str] = None) -> Dict[str, Any]:
    """Check the bucket write policy, then hand back a presigned POST for a fresh key."""
    require_bucket_writer(user, bucket)
    key = make_object_key(bucket, filename, owner_id=user.id)
    settings = get_settings()
    s3 = _client()

    fields: Dict[str, Any] = {"acl": "public-read"}
    conditions: list = [["content-length-range", 1, settings.upload_max_bytes]]
    if content_type:
        fields["Content-Type"] = content_type
        conditions.append({"Content-Type": content_type})

    post = s3.generate_presigned_post(
        Bucket=settings.s3_bucket,
        Key=f"{bucket}/{key}",
        Fields=fields,
        Conditions=conditions,
        ExpiresIn=PRESIGN_EXPIRES_SECONDS,
    )
    return {
        "url": post["url"],
        "fields": post["fields"],
        "bucket": bucket,
        "key": key,
        "fileUrl": public_url(bucket, key),
    }

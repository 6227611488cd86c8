"""
Image storage utilities for catalog, order and measurement photos.
Handles image upload to R2, data-URI decoding and best-effort clean-up.
"""

import base64
import binascii
import logging
import re
import uuid
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile

from ..config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE_BYTES = 5 * 1024 * 1024  # 5MB
ALLOWED_IMAGE_MIME_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}

DATA_URI_PATTERN = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.+)$", re.DOTALL)


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def public_url(key: str) -> str:
    return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"


def validate_image(content_type: Optional[str], size_bytes: int) -> str:
    """Check type and size; returns the file extension to store under"""
    if content_type not in ALLOWED_IMAGE_MIME_TYPES:
        raise HTTPException(
            status_code=400, detail="Image format not supported. Allowed formats: PNG, JPEG, WebP, GIF"
        )
    if size_bytes == 0:
        raise HTTPException(status_code=400, detail="Image file is empty")
    if size_bytes > MAX_IMAGE_SIZE_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds 5MB limit. Your file is {size_bytes / (1024 * 1024):.2f}MB.",
        )
    return ALLOWED_IMAGE_MIME_TYPES[content_type]


def upload_image(contents: bytes, content_type: str, folder: str) -> dict:
    """Store image bytes and return {"url", "key"}"""
    ext = validate_image(content_type, len(contents))
    key = f"sybertailor/{folder}/{uuid.uuid4()}.{ext}"

    try:
        r2 = get_r2_client()
        r2.put_object(
            Bucket=R2_BUCKET_NAME,
            Key=key,
            Body=contents,
            ContentType=content_type,
            CacheControl="public, max-age=31536000",
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Upload failed: {str(e)}")
        raise HTTPException(status_code=502, detail="Image upload failed") from e

    logger.info(f"✅ Uploaded image to R2: {key}")
    return {"url": public_url(key), "key": key}


async def upload_file(file: UploadFile, folder: str) -> dict:
    contents = await file.read()
    return upload_image(contents, file.content_type, folder)


def is_data_uri(value: Optional[str]) -> bool:
    return bool(value) and value.startswith("data:image/")


def upload_data_uri(value: str, folder: str) -> dict:
    """Decode a data:image/...;base64 string and store it"""
    match = DATA_URI_PATTERN.match(value)
    if not match:
        raise HTTPException(status_code=400, detail="Invalid inline image")
    content_type, payload = match.groups()
    try:
        contents = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail="Invalid inline image encoding") from e
    return upload_image(contents, content_type, folder)


def delete_image(key: Optional[str]) -> bool:
    """Remove an object. Failures are logged, never raised."""
    if not key:
        return False
    try:
        get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
        logger.info(f"🗑️ Deleted image from R2: {key}")
        return True
    except Exception as e:
        logger.warning(f"⚠️ Failed to delete image {key}: {e}")
        return False

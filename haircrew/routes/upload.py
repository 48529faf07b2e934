import logging
import uuid
from typing import List

import boto3
from botocore.config import Config
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ..auth import require_admin
from ..config import (
    MAX_UPLOAD_FILES,
    MAX_UPLOAD_SIZE,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)
from ..models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/uploads", tags=["Upload"])

# Allowed product image types and the extension they are stored under
PRODUCT_IMAGE_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


def public_url(key: str) -> str:
    return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"


async def _read_image(file: UploadFile) -> tuple[bytes, str]:
    """Validate type, filename and size; returns (contents, extension)"""
    if file.content_type not in PRODUCT_IMAGE_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only PNG, JPEG, WebP and GIF images are allowed.",
        )

    if file.filename:
        dangerous_chars = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]
        for char in dangerous_chars:
            if char in file.filename:
                logger.warning(f"❌ Dangerous character '{char}' detected in filename: '{file.filename}'")
                raise HTTPException(status_code=400, detail="Invalid filename")
        if len(file.filename) > 255:
            raise HTTPException(status_code=400, detail="Filename too long - maximum 255 characters")

    contents = await file.read()
    if len(contents) > MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds 4MB limit. Your file is {len(contents) / (1024 * 1024):.2f}MB.",
        )
    return contents, PRODUCT_IMAGE_TYPES[file.content_type]


@router.post("/product-image")
async def upload_product_images(
    files: List[UploadFile] = File(...),
    admin: User = Depends(require_admin),
):
    """Upload up to five product images to R2 (public bucket) and return their URLs."""
    logger.info(f"📤 Uploading {len(files)} product image(s) for admin {admin.id}")

    if not files:
        raise HTTPException(status_code=400, detail="No files provided")
    if len(files) > MAX_UPLOAD_FILES:
        raise HTTPException(status_code=400, detail=f"You can upload at most {MAX_UPLOAD_FILES} images at once")

    # Validate everything before the first write
    prepared = []
    for file in files:
        contents, ext = await _read_image(file)
        prepared.append((contents, ext, file.content_type))

    uploaded = []
    try:
        r2 = get_r2_client()
        for contents, ext, content_type in prepared:
            key = f"products/{uuid.uuid4()}.{ext}"
            r2.put_object(
                Bucket=R2_BUCKET_NAME,
                Key=key,
                Body=contents,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
            uploaded.append({"url": public_url(key), "key": key})
    except Exception as e:
        logger.error(f"❌ Upload failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Upload failed") from e

    logger.info(f"✅ Uploaded {len(uploaded)} product image(s)")
    return {"files": uploaded, "urls": [item["url"] for item in uploaded]}

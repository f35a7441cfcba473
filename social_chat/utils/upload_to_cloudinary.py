import logging
import os
import cloudinary.uploader
from fastapi import UploadFile
from ..exceptions import BadRequestError, InternalServerError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
MAX_IMAGE_SIZE = 2 * 1024 * 1024  # 2MB

def validate_image(file: UploadFile):
    """Chỉ chấp nhận ảnh jpg, jpeg, png tối đa 2MB."""
    extension = os.path.splitext(file.filename or "")[1].lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise BadRequestError("Invalid file type. Only jpg, jpeg & png files are allowed.")
    if file.size is not None and file.size > MAX_IMAGE_SIZE:
        raise BadRequestError("File too large. Maximum size is 2MB.")

async def upload_to_cloudinary(file: UploadFile, folder: str = "uploads"):
    """
    Upload 1 ảnh lên Cloudinary và trả về URL cùng public_id.
    Lỗi từ Cloudinary được chuyển thành InternalServerError.
    """
    try:
        result = cloudinary.uploader.upload(
            file.file,
            resource_type="image",
            folder=folder
        )
    except Exception as e:
        logger.error("Upload to Cloudinary failed: %s", e)
        raise InternalServerError("Error uploading file") from e

    return {
        "url": result["secure_url"],
        "public_id": result["public_id"],
        "format": result.get("format"),
        "bytes": result.get("bytes")
    }

async def delete_from_cloudinary(public_id: str | None):
    """Xóa ảnh cũ; lỗi chỉ được ghi log vì bản ghi chính đã được cập nhật."""
    if not public_id:
        return
    try:
        cloudinary.uploader.destroy(public_id)
    except Exception as e:
        logger.warning("Failed to delete %s from Cloudinary: %s", public_id, e)

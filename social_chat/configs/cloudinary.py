import cloudinary
from . import settings


def init_cloudinary():
    """Cấu hình Cloudinary SDK từ biến môi trường."""
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )

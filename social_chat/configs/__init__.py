from . import settings
from .cloudinary import init_cloudinary

__all__ = ["settings", "init_cloudinary"]

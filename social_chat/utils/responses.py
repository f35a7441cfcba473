from typing import Any, Optional
from .pagination import Page

def success_response(message: str, data: Any = None, page: Optional[Page] = None) -> dict:
    """Envelope chung cho mọi phản hồi thành công: {success, message, data}."""
    body = {"success": True, "message": message, "data": data}
    if page is not None:
        body["pagination"] = page.pagination()
    return body

def error_response(message: str) -> dict:
    return {"success": False, "message": message, "data": None}

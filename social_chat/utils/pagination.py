import base64
import binascii
import json
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING

from ..configs import settings
from ..exceptions import BadRequestError


class Page(BaseModel):
    """Một trang kết quả phân trang theo cursor."""
    items: List[Any]
    totalCount: int
    hasNextPage: bool
    nextCursor: Optional[str] = None

    def pagination(self) -> dict:
        return {
            "totalCount": self.totalCount,
            "hasNextPage": self.hasNextPage,
            "nextCursor": self.nextCursor,
        }


def clamp_take(take: Optional[int], default: int) -> int:
    """Giới hạn kích thước trang trong khoảng [1, MAX_TAKE]."""
    if not take or take < 1:
        return default
    return min(take, settings.MAX_TAKE)


def build_page(rows: Sequence[Any], take: int, cursor_of: Callable[[Any], str], total_count: int = 0) -> Page:
    """
    Cắt kết quả đã lấy dư một dòng (take + 1) thành một trang.
    Dòng thứ take + 1 chỉ dùng để biết còn trang sau hay không.
    """
    has_next_page = len(rows) > take
    items = list(rows[:take])
    next_cursor = cursor_of(items[-1]) if has_next_page and items else None
    return Page(items=items, totalCount=total_count, hasNextPage=has_next_page, nextCursor=next_cursor)


def encode_cursor(data: dict) -> str:
    raw = json.dumps(data, default=lambda v: v.isoformat() if isinstance(v, datetime) else str(v))
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> dict:
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise BadRequestError("Invalid cursor")
    if not isinstance(data, dict):
        raise BadRequestError("Invalid cursor")
    return data


def parse_id_cursor(cursor: Optional[str]) -> Optional[ObjectId]:
    if not cursor:
        return None
    if not ObjectId.is_valid(cursor):
        raise BadRequestError("Invalid cursor")
    return ObjectId(cursor)


def encode_time_cursor(moment: datetime, doc_id: Any) -> str:
    return encode_cursor({"at": moment, "id": str(doc_id)})


def parse_time_cursor(cursor: Optional[str]) -> Optional[tuple]:
    """Giải mã cursor tổng hợp (thời điểm, id) dùng cho danh sách mới nhất trước."""
    if not cursor:
        return None
    data = decode_cursor(cursor)
    try:
        moment = datetime.fromisoformat(data["at"])
    except (KeyError, TypeError, ValueError):
        raise BadRequestError("Invalid cursor")
    doc_id = data.get("id")
    if not isinstance(doc_id, str) or not ObjectId.is_valid(doc_id):
        raise BadRequestError("Invalid cursor")
    return moment, ObjectId(doc_id)


def before_time_key(field: str, key: Optional[tuple]) -> dict:
    """Điều kiện lấy các dòng đứng sau cursor khi sắp xếp (field, _id) giảm dần."""
    if key is None:
        return {}
    moment, doc_id = key
    return {
        "$or": [
            {field: {"$lt": moment}},
            {field: moment, "_id": {"$lt": doc_id}},
        ]
    }


def and_filters(*filters: dict) -> dict:
    parts = [f for f in filters if f]
    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}


async def paginate_by_id(model, query: dict, cursor: Optional[str], take: int) -> Page:
    """Phân trang tăng dần theo _id, cursor là id của dòng cuối trang trước."""
    after = parse_id_cursor(cursor)
    page_query = and_filters(query, {"_id": {"$gt": after}} if after else {})
    rows = await model.find(page_query).sort([("_id", ASCENDING)]).limit(take + 1).to_list()
    total_count = await model.find(query).count()
    return build_page(rows, take, lambda doc: str(doc.id), total_count)


async def paginate_newest_first(model, query: dict, time_field: str, cursor: Optional[str], take: int) -> Page:
    """Phân trang giảm dần theo (time_field, _id) với cursor tổng hợp."""
    key = parse_time_cursor(cursor)
    page_query = and_filters(query, before_time_key(time_field, key))
    rows = await model.find(page_query).sort([(time_field, DESCENDING), ("_id", DESCENDING)]).limit(take + 1).to_list()
    total_count = await model.find(query).count()
    return build_page(
        rows,
        take,
        lambda doc: encode_time_cursor(getattr(doc, time_field), doc.id),
        total_count,
    )

from typing import Iterable, List, Optional
from bson import ObjectId


def to_object_id(value: Optional[str]) -> Optional[ObjectId]:
    """Trả về ObjectId nếu chuỗi hợp lệ, ngược lại None."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def to_object_ids(values: Iterable[str]) -> List[ObjectId]:
    """Chuyển danh sách ID dạng chuỗi sang ObjectId, bỏ qua ID không hợp lệ."""
    return [oid for oid in (to_object_id(v) for v in values) if oid is not None]

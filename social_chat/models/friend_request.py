from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel
from typing import Literal
from datetime import datetime

PENDING = "PENDING"
ACCEPTED = "ACCEPTED"
REJECTED = "REJECTED"

class FriendRequest(Document):
    """
    Đại diện cho một yêu cầu kết bạn.

    Yêu cầu bị từ chối hoặc bị hủy sẽ bị xóa hẳn, và hủy kết bạn xóa mọi yêu
    cầu giữa hai người, nên mỗi cặp người dùng chỉ có tối đa một bản ghi.
    Chỉ mục duy nhất trên `pairKey` chặn việc hai yêu cầu được tạo song song.
    """
    senderId: str = Field(..., description="ID của người gửi yêu cầu.")
    receiverId: str = Field(..., description="ID của người nhận yêu cầu.")
    pairKey: str = Field(..., description="Khóa không thứ tự của cặp người dùng.")
    status: Literal["PENDING", "ACCEPTED", "REJECTED"] = Field(default=PENDING, description="Trạng thái của yêu cầu.")
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm yêu cầu được tạo.")
    updatedAt: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "friendRequests"
        indexes = [
            IndexModel([("pairKey", ASCENDING)], unique=True),
            IndexModel([("receiverId", ASCENDING), ("status", ASCENDING), ("createdAt", DESCENDING)]),
            "senderId",
        ]

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel
from typing import Optional, List
from datetime import datetime

class GroupChat(Document):
    """
    Nhóm trò chuyện với một chủ nhóm cố định. Chủ nhóm luôn nằm trong
    `memberIds`; thành viên phải là bạn của chủ nhóm tại thời điểm được thêm.
    """
    name: str = Field(..., description="Tên nhóm.")
    ownerId: str = Field(..., description="ID của chủ nhóm.")
    groupDescription: Optional[str] = Field(default=None, description="Mô tả nhóm.")
    groupIconUrl: str = Field(..., description="URL ảnh đại diện nhóm.")
    groupIconPublicId: Optional[str] = Field(default=None, description="ID công khai của ảnh nhóm trên Cloudinary.")
    memberIds: List[str] = Field(default_factory=list, description="Danh sách ID thành viên, gồm cả chủ nhóm.")
    lastMessageAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm có tin nhắn mới nhất.")
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: datetime = Field(default_factory=datetime.utcnow)

    def has_member(self, user_id: str) -> bool:
        return user_id == self.ownerId or user_id in self.memberIds

    class Settings:
        name = "groupChats"
        indexes = [
            IndexModel([("memberIds", ASCENDING), ("lastMessageAt", DESCENDING)]),
            "ownerId",
        ]

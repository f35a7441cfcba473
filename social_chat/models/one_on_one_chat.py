from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel
from datetime import datetime

class OneOnOneChat(Document):
    """
    Cuộc trò chuyện riêng giữa hai người, duy nhất cho mỗi cặp không thứ tự.
    """
    initiatorId: str = Field(..., description="ID của người tạo cuộc trò chuyện.")
    participantId: str = Field(..., description="ID của người còn lại.")
    pairKey: str = Field(..., description="Khóa không thứ tự của cặp người dùng.")
    vanishMode: bool = Field(default=False, description="Chế độ tin nhắn tự biến mất.")
    deletedForInitiator: bool = Field(default=False)
    deletedForParticipant: bool = Field(default=False)
    lastMessageAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm có tin nhắn mới nhất.")
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: datetime = Field(default_factory=datetime.utcnow)

    def has_member(self, user_id: str) -> bool:
        return user_id in (self.initiatorId, self.participantId)

    def other_member(self, user_id: str) -> str:
        return self.participantId if user_id == self.initiatorId else self.initiatorId

    class Settings:
        name = "oneOnOneChats"
        indexes = [
            IndexModel([("pairKey", ASCENDING)], unique=True),
            IndexModel([("initiatorId", ASCENDING), ("lastMessageAt", DESCENDING)]),
            IndexModel([("participantId", ASCENDING), ("lastMessageAt", DESCENDING)]),
        ]

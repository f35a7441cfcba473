from beanie import Document
from pydantic import Field, model_validator
from pymongo import ASCENDING, DESCENDING, IndexModel
from typing import Optional
from datetime import datetime

class Message(Document):
    """
    Đại diện cho một tin nhắn trong cuộc trò chuyện riêng hoặc nhóm.
    Tin nhắn không bao giờ bị xóa cứng: khi xóa, nội dung bị làm rỗng và
    `isDeleted` được bật.
    """
    content: str = Field(..., description="Nội dung văn bản của tin nhắn.")
    senderId: str = Field(..., description="ID của người gửi tin nhắn.")
    oneOnOneChatId: Optional[str] = Field(default=None, description="ID cuộc trò chuyện riêng.")
    groupChatId: Optional[str] = Field(default=None, description="ID nhóm trò chuyện.")
    isDeleted: bool = Field(default=False)
    createdAt: datetime = Field(default_factory=datetime.utcnow, description="Thời điểm tin nhắn được gửi.")
    updatedAt: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def check_single_chat_reference(self):
        if bool(self.oneOnOneChatId) == bool(self.groupChatId):
            raise ValueError("Exactly one of oneOnOneChatId or groupChatId must be provided")
        return self

    class Settings:
        name = "messages"
        indexes = [
            IndexModel([("oneOnOneChatId", ASCENDING), ("createdAt", DESCENDING), ("_id", DESCENDING)]),
            IndexModel([("groupChatId", ASCENDING), ("createdAt", DESCENDING), ("_id", DESCENDING)]),
        ]

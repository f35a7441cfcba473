from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from .common import ObjectIdStr

class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1)
    senderId: ObjectIdStr
    oneOnOneChatId: Optional[ObjectIdStr] = None
    groupChatId: Optional[ObjectIdStr] = None

    @model_validator(mode="after")
    def check_single_chat_reference(self):
        if bool(self.oneOnOneChatId) == bool(self.groupChatId):
            raise ValueError("Exactly one of oneOnOneChatId or groupChatId must be provided")
        return self

class MessagePublic(BaseModel):
    id: str
    content: str
    senderId: str
    oneOnOneChatId: Optional[str] = None
    groupChatId: Optional[str] = None
    isDeleted: bool
    createdAt: datetime
    updatedAt: datetime

class LastMessagePublic(BaseModel):
    id: str
    content: str
    senderId: str
    isDeleted: bool
    createdAt: datetime

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from .common import ObjectIdStr
from .user_schema import UserSummary

class OneOnOneChatCreate(BaseModel):
    initiatorId: ObjectIdStr
    participantId: ObjectIdStr

class OneOnOneChatSettings(BaseModel):
    """Bản vá cài đặt; trường không gửi lên giữ nguyên giá trị cũ."""
    model_config = ConfigDict(extra="forbid")

    vanishMode: Optional[bool] = None

class GroupChatSettings(BaseModel):
    """Bản vá cài đặt nhóm, được parse từ chuỗi JSON trong form-data."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    groupDescription: Optional[str] = Field(default=None, min_length=1)

class GroupMembersAdd(BaseModel):
    ownerId: ObjectIdStr
    memberIds: List[ObjectIdStr] = Field(..., min_length=1)

class GroupMemberRemove(BaseModel):
    ownerId: ObjectIdStr
    memberId: ObjectIdStr

class OneOnOneChatPublic(BaseModel):
    id: str
    initiatorId: str
    participantId: str
    vanishMode: bool
    lastMessageAt: datetime
    createdAt: datetime
    updatedAt: datetime
    initiator: Optional[UserSummary] = None
    participant: Optional[UserSummary] = None

class GroupChatPublic(BaseModel):
    id: str
    name: str
    ownerId: str
    groupDescription: Optional[str] = None
    groupIconUrl: str
    memberIds: List[str]
    lastMessageAt: datetime
    createdAt: datetime
    updatedAt: datetime
    members: Optional[List[UserSummary]] = None

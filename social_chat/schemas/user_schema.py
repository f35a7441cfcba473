from pydantic import BaseModel, EmailStr, model_validator
from typing import Literal, Optional
from datetime import datetime
from .common import ObjectIdStr

class FriendRequestCreate(BaseModel):
    senderId: ObjectIdStr
    receiverId: ObjectIdStr

    @model_validator(mode="after")
    def check_not_self(self):
        if self.senderId == self.receiverId:
            raise ValueError("Cannot send a friend request to yourself")
        return self

class FriendRequestUpdate(BaseModel):
    status: Literal["ACCEPTED", "REJECTED"]

class UserSummary(BaseModel):
    id: str
    name: str
    profilePictureUrl: Optional[str] = None

class UserPublic(BaseModel):
    id: str
    email: EmailStr
    name: str
    bio: Optional[str] = None
    profilePictureUrl: Optional[str] = None
    createdAt: Optional[datetime] = None

class FriendRequestPublic(BaseModel):
    id: str
    senderId: str
    receiverId: str
    status: str
    createdAt: datetime
    updatedAt: datetime
    sender: Optional[UserSummary] = None

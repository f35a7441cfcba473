from typing import Dict, Optional
from ..schemas import (
    UserPublic,
    UserSummary,
    FriendRequestPublic,
    OneOnOneChatPublic,
    GroupChatPublic,
    MessagePublic,
    LastMessagePublic
)
from ..models import User, FriendRequest, OneOnOneChat, GroupChat, Message

# Các hàm trợ giúp để chuyển đổi các đối tượng mô hình thành từ điển trả về cho client
def map_user_to_public_dict(user: User) -> dict:
    """Hồ sơ công khai; không bao giờ chứa mật khẩu hay danh sách bạn bè."""
    return UserPublic(
        id=str(user.id),
        email=user.email,
        name=user.name,
        bio=user.bio,
        profilePictureUrl=user.profilePictureUrl,
        createdAt=user.createdAt
    ).model_dump()

def map_user_to_summary_dict(user: User) -> dict:
    return UserSummary(
        id=str(user.id),
        name=user.name,
        profilePictureUrl=user.profilePictureUrl
    ).model_dump()

def map_friend_request_to_public_dict(request: FriendRequest, sender: Optional[User] = None) -> dict:
    return FriendRequestPublic(
        id=str(request.id),
        senderId=request.senderId,
        receiverId=request.receiverId,
        status=request.status,
        createdAt=request.createdAt,
        updatedAt=request.updatedAt,
        sender=UserSummary(**map_user_to_summary_dict(sender)) if sender else None
    ).model_dump()

def map_one_on_one_chat_to_public_dict(chat: OneOnOneChat, users: Optional[Dict[str, User]] = None) -> dict:
    users = users or {}
    initiator = users.get(chat.initiatorId)
    participant = users.get(chat.participantId)
    return OneOnOneChatPublic(
        id=str(chat.id),
        initiatorId=chat.initiatorId,
        participantId=chat.participantId,
        vanishMode=chat.vanishMode,
        lastMessageAt=chat.lastMessageAt,
        createdAt=chat.createdAt,
        updatedAt=chat.updatedAt,
        initiator=UserSummary(**map_user_to_summary_dict(initiator)) if initiator else None,
        participant=UserSummary(**map_user_to_summary_dict(participant)) if participant else None
    ).model_dump()

def map_group_chat_to_public_dict(chat: GroupChat, users: Optional[Dict[str, User]] = None) -> dict:
    members = None
    if users is not None:
        members = [
            UserSummary(**map_user_to_summary_dict(users[member_id]))
            for member_id in chat.memberIds
            if member_id in users
        ]
    return GroupChatPublic(
        id=str(chat.id),
        name=chat.name,
        ownerId=chat.ownerId,
        groupDescription=chat.groupDescription,
        groupIconUrl=chat.groupIconUrl,
        memberIds=chat.memberIds,
        lastMessageAt=chat.lastMessageAt,
        createdAt=chat.createdAt,
        updatedAt=chat.updatedAt,
        members=members
    ).model_dump()

def map_message_to_public_dict(msg: Message) -> dict:
    """Chuyển đổi một mô hình Message thành một từ điển có thể tuần tự hóa JSON."""
    return MessagePublic(
        id=str(msg.id),
        content=msg.content,
        senderId=msg.senderId,
        oneOnOneChatId=msg.oneOnOneChatId,
        groupChatId=msg.groupChatId,
        isDeleted=msg.isDeleted,
        createdAt=msg.createdAt,
        updatedAt=msg.updatedAt
    ).model_dump()

def map_last_message_to_public_dict(msg: Optional[Message]) -> Optional[dict]:
    if msg is None:
        return None
    return LastMessagePublic(
        id=str(msg.id),
        content=msg.content,
        senderId=msg.senderId,
        isDeleted=msg.isDeleted,
        createdAt=msg.createdAt
    ).model_dump()

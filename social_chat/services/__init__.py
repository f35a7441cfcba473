from .auth_service import AuthService
from .jwt_service import create_access_token, create_refresh_token, decode_access_token
from .user_service import UserService
from .friendship_service import FriendshipService
from .one_on_one_chat_service import OneOnOneChatService
from .group_chat_service import GroupChatService
from .message_service import MessageService

__all__ = [
    "AuthService",
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "UserService",
    "FriendshipService",
    "OneOnOneChatService",
    "GroupChatService",
    "MessageService"
]

from .auth_schema import UserLogin, RefreshTokenRequest, ChangePasswordRequest, TokenPair
from .user_schema import (
    FriendRequestCreate,
    FriendRequestUpdate,
    FriendRequestPublic,
    UserPublic,
    UserSummary
)
from .chat_schema import (
    OneOnOneChatCreate,
    OneOnOneChatSettings,
    OneOnOneChatPublic,
    GroupChatSettings,
    GroupChatPublic,
    GroupMembersAdd,
    GroupMemberRemove
)
from .message_schema import MessageCreate, MessagePublic, LastMessagePublic

from .user import User
from .friend_request import FriendRequest, PENDING, ACCEPTED, REJECTED
from .one_on_one_chat import OneOnOneChat
from .group_chat import GroupChat
from .message import Message
from .keys import pair_key
from .database import init_db, run_in_transaction

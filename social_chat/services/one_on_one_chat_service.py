import asyncio
import logging
from datetime import datetime
from typing import Optional, Tuple, Dict
from pymongo.errors import DuplicateKeyError
from ..models import OneOnOneChat, User, pair_key
from ..schemas import OneOnOneChatSettings
from ..exceptions import NotFoundError, ForbiddenError, BadRequestError, ConflictError
from ..utils import to_object_id
from ..utils.pagination import Page
from .user_service import UserService
from .message_service import MessageService

logger = logging.getLogger(__name__)

class OneOnOneChatService:

    @staticmethod
    async def get_chat(chat_id: str) -> Optional[OneOnOneChat]:
        oid = to_object_id(chat_id)
        if oid is None:
            return None
        return await OneOnOneChat.get(oid)

    @staticmethod
    async def get_member_chat(chat_id: str, caller_id: str) -> OneOnOneChat:
        """Lấy chat và kiểm tra người gọi là một trong hai thành viên."""
        chat = await OneOnOneChatService.get_chat(chat_id)
        if not chat:
            raise NotFoundError("Chat not found!")
        if not chat.has_member(caller_id):
            raise ForbiddenError("You are not allowed to view this chat!")
        return chat

    @staticmethod
    async def create_chat(initiator_id: str, participant_id: str, caller_id: str) -> OneOnOneChat:
        """
        Tạo cuộc trò chuyện riêng giữa hai người đang là bạn bè.
        Mỗi cặp người dùng chỉ có một cuộc trò chuyện, bất kể ai là người tạo.
        """
        if caller_id != initiator_id:
            raise ForbiddenError("You're not allowed to create this chat!")
        if initiator_id == participant_id:
            raise BadRequestError("You can't start a chat with yourself!")

        initiator, participant = await asyncio.gather(
            UserService.get_active_user(initiator_id),
            UserService.get_active_user(participant_id)
        )
        if not initiator or not participant:
            raise NotFoundError("User not found!")

        key = pair_key(initiator_id, participant_id)
        if await OneOnOneChat.find_one({"pairKey": key}):
            raise ConflictError("Chat already exists!")

        if not initiator.is_friend_with(participant_id):
            raise BadRequestError("You can't initiate chats with users who are not your friends!")

        chat = OneOnOneChat(initiatorId=initiator_id, participantId=participant_id, pairKey=key)
        try:
            await chat.insert()
        except DuplicateKeyError:
            raise ConflictError("Chat already exists!")

        logger.info("One-on-one chat %s created between %s and %s", chat.id, initiator_id, participant_id)
        return chat

    @staticmethod
    async def update_settings(chat_id: str, caller_id: str, settings: OneOnOneChatSettings) -> OneOnOneChat:
        """Gộp các trường cài đặt được gửi lên vào chat; trường khác giữ nguyên."""
        chat = await OneOnOneChatService.get_chat(chat_id)
        if not chat:
            raise NotFoundError("Chat not found!")
        if not chat.has_member(caller_id):
            raise ForbiddenError("You are not allowed to update this chat!")

        changes = settings.model_dump(exclude_unset=True, exclude_none=True)
        if changes:
            for field, value in changes.items():
                setattr(chat, field, value)
            chat.updatedAt = datetime.utcnow()
            await chat.save()
        return chat

    @staticmethod
    async def get_chat_details(chat_id: str, caller_id: str) -> Tuple[OneOnOneChat, Dict[str, User]]:
        chat = await OneOnOneChatService.get_member_chat(chat_id, caller_id)
        users = await UserService.get_users_map([chat.initiatorId, chat.participantId])
        return chat, users

    @staticmethod
    async def get_chat_messages(
        chat_id: str,
        caller_id: str,
        cursor: Optional[str] = None,
        take: Optional[int] = None,
        search: Optional[str] = None
    ) -> Page:
        chat = await OneOnOneChatService.get_member_chat(chat_id, caller_id)
        return await MessageService.get_messages_page("oneOnOneChatId", str(chat.id), cursor, take, search)

import logging
import re
from datetime import datetime
from typing import Optional
from ..models import Message, OneOnOneChat, GroupChat, run_in_transaction
from ..exceptions import NotFoundError, ForbiddenError, BadRequestError
from ..configs import settings
from ..utils import to_object_id
from ..utils.pagination import Page, clamp_take, paginate_newest_first
from .user_service import UserService

logger = logging.getLogger(__name__)

class MessageService:

    @staticmethod
    async def send_message(
        content: str,
        sender_id: str,
        caller_id: str,
        one_on_one_chat_id: Optional[str] = None,
        group_chat_id: Optional[str] = None
    ) -> Message:
        """
        Gửi tin nhắn vào một cuộc trò chuyện riêng hoặc một nhóm.

        Tin nhắn được lưu và `lastMessageAt` của chat được cập nhật trong cùng
        một transaction, để hộp thư luôn sắp xếp đúng theo tin nhắn mới nhất.
        """
        if bool(one_on_one_chat_id) == bool(group_chat_id):
            raise BadRequestError("Exactly one of oneOnOneChatId or groupChatId must be provided")
        if not content:
            raise BadRequestError("Message content is required")

        sender = await UserService.get_active_user(sender_id)
        if not sender:
            raise NotFoundError("Sender not found!")

        if sender_id != caller_id:
            raise ForbiddenError("You are not allowed to send messages in this chat!")

        # Kiểm tra chat tồn tại và người gửi là thành viên trong cùng một truy vấn
        if one_on_one_chat_id:
            chat_model = OneOnOneChat
            chat_oid = to_object_id(one_on_one_chat_id)
            membership = {"$or": [{"initiatorId": caller_id}, {"participantId": caller_id}]}
        else:
            chat_model = GroupChat
            chat_oid = to_object_id(group_chat_id)
            membership = {"memberIds": caller_id}

        chat = await chat_model.find_one({"_id": chat_oid, **membership}) if chat_oid else None
        if not chat:
            raise NotFoundError("Chat not found!")

        async def write(session):
            message = Message(
                content=content,
                senderId=sender_id,
                oneOnOneChatId=one_on_one_chat_id,
                groupChatId=group_chat_id
            )
            await message.insert(session=session)

            await chat_model.find_one({"_id": chat.id}, session=session).update(
                {"$set": {"lastMessageAt": message.createdAt, "updatedAt": message.createdAt}},
                session=session
            )
            return message

        return await run_in_transaction(write)

    @staticmethod
    async def delete_message(message_id: str, caller_id: str) -> Message:
        """
        Xóa mềm một tin nhắn: nội dung bị làm rỗng, bản ghi được giữ lại.
        Người gửi luôn được xóa tin của mình; trong nhóm, chủ nhóm được xóa
        mọi tin nhắn.
        """
        oid = to_object_id(message_id)
        message = await Message.find_one({"_id": oid, "isDeleted": False}) if oid else None
        if not message:
            raise NotFoundError("Message not found!")

        group_owner_id = None
        if message.groupChatId:
            group_chat = await GroupChat.get(to_object_id(message.groupChatId))
            if not group_chat:
                raise NotFoundError("Group chat not found!")
            group_owner_id = group_chat.ownerId
        else:
            one_on_one_chat = await OneOnOneChat.get(to_object_id(message.oneOnOneChatId))
            if not one_on_one_chat:
                raise NotFoundError("One-On-One chat not found!")

        if message.senderId != caller_id and group_owner_id != caller_id:
            raise ForbiddenError("You are not allowed to delete this message!")

        message.content = ""
        message.isDeleted = True
        message.updatedAt = datetime.utcnow()
        await message.save()

        logger.info("Message %s deleted by %s", message_id, caller_id)
        return message

    @staticmethod
    async def get_messages_page(
        chat_field: str,
        chat_id: str,
        cursor: Optional[str] = None,
        take: Optional[int] = None,
        search: Optional[str] = None
    ) -> Page:
        """
        Tin nhắn của một chat, mới nhất trước. Tin đã xóa mềm vẫn có trong
        danh sách với nội dung rỗng. `search` lọc theo chuỗi con, không phân
        biệt hoa thường.
        """
        take = clamp_take(take, settings.MESSAGES_BATCH)
        query = {chat_field: chat_id}
        if search:
            query["content"] = {"$regex": re.escape(search), "$options": "i"}
        return await paginate_newest_first(Message, query, "createdAt", cursor, take)

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from fastapi import UploadFile
from pydantic import ValidationError
from pymongo.errors import PyMongoError
from ..models import GroupChat, User
from ..schemas import GroupChatSettings
from ..exceptions import NotFoundError, ForbiddenError, BadRequestError, ConflictError
from ..utils import upload_to_cloudinary, delete_from_cloudinary, validate_image, to_object_id
from ..utils.pagination import Page
from .user_service import UserService
from .message_service import MessageService

logger = logging.getLogger(__name__)

NOT_FRIENDS_MESSAGE = "You can't add members who aren't your friends in groups!"

def members_added_message(count: int) -> str:
    if count == 0:
        return "No new members, all exist"
    if count == 1:
        return "1 new member added to group chat"
    return f"{count} new members added to group chat"

def parse_group_settings(settings_json: Optional[str]) -> GroupChatSettings:
    """Parse chuỗi JSON cài đặt nhóm theo schema đã biết; sai định dạng là lỗi 400."""
    if not settings_json:
        return GroupChatSettings()
    try:
        return GroupChatSettings.model_validate_json(settings_json)
    except ValidationError:
        raise BadRequestError("Invalid settings")

class GroupChatService:

    @staticmethod
    async def get_chat(chat_id: str) -> Optional[GroupChat]:
        oid = to_object_id(chat_id)
        if oid is None:
            return None
        return await GroupChat.get(oid)

    @staticmethod
    async def get_member_chat(chat_id: str, caller_id: str) -> GroupChat:
        chat = await GroupChatService.get_chat(chat_id)
        if not chat:
            raise NotFoundError("Group chat not found!")
        if not chat.has_member(caller_id):
            raise ForbiddenError("You are not allowed to view this chat!")
        return chat

    @staticmethod
    async def create_group_chat(
        owner_id: str,
        member_ids: List[str],
        name: str,
        caller_id: str,
        group_description: Optional[str] = None,
        group_icon: Optional[UploadFile] = None
    ) -> GroupChat:
        """
        Tạo nhóm mới. Chủ nhóm luôn là thành viên; mọi thành viên khác phải
        đang là bạn của chủ nhóm.
        """
        if caller_id != owner_id:
            raise ForbiddenError("You are not allowed to create a group chat for another user!")

        member_ids = [m for m in dict.fromkeys(member_ids) if m != owner_id]
        if not member_ids:
            raise BadRequestError("At least one member is required")

        owner = await UserService.get_active_user(owner_id)
        members = await UserService.get_active_users(member_ids)
        if not owner or len(members) != len(member_ids):
            raise NotFoundError("Owner or member not found!")

        if not group_icon:
            raise BadRequestError("Group icon is required")
        validate_image(group_icon)

        if any(not owner.is_friend_with(member_id) for member_id in member_ids):
            raise BadRequestError(NOT_FRIENDS_MESSAGE)

        uploaded = await upload_to_cloudinary(group_icon, folder="group_icons")

        chat = GroupChat(
            name=name,
            ownerId=owner_id,
            groupDescription=group_description or None,
            groupIconUrl=uploaded["url"],
            groupIconPublicId=uploaded["public_id"],
            memberIds=[owner_id] + member_ids
        )
        try:
            await chat.insert()
        except PyMongoError:
            # Không để lại ảnh nhóm mồ côi trên Cloudinary
            await delete_from_cloudinary(uploaded["public_id"])
            raise

        logger.info("Group chat %s created by %s with %d members", chat.id, owner_id, len(chat.memberIds))
        return chat

    @staticmethod
    async def update_settings(
        chat_id: str,
        caller_id: str,
        settings_json: Optional[str] = None,
        group_icon: Optional[UploadFile] = None
    ) -> GroupChat:
        """Chủ nhóm cập nhật tên, mô tả và ảnh nhóm."""
        settings = parse_group_settings(settings_json)

        chat = await GroupChatService.get_chat(chat_id)
        if not chat:
            raise NotFoundError("Group chat not found!")
        if chat.ownerId != caller_id:
            raise ForbiddenError("Only the owner can update group chat settings!")

        uploaded = None
        old_public_id = None
        if group_icon:
            validate_image(group_icon)
            uploaded = await upload_to_cloudinary(group_icon, folder="group_icons")
            old_public_id = chat.groupIconPublicId
            chat.groupIconUrl = uploaded["url"]
            chat.groupIconPublicId = uploaded["public_id"]

        for field, value in settings.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(chat, field, value)

        chat.updatedAt = datetime.utcnow()
        try:
            await chat.save()
        except PyMongoError:
            if uploaded:
                await delete_from_cloudinary(uploaded["public_id"])
            raise

        await delete_from_cloudinary(old_public_id)
        return chat

    @staticmethod
    async def add_members(
        chat_id: str,
        owner_id: str,
        member_ids: List[str],
        caller_id: str
    ) -> Tuple[GroupChat, List[str], str]:
        """
        Thêm thành viên vào nhóm. Thành viên đã có trong nhóm được bỏ qua, nên
        gọi lại cùng danh sách không thay đổi gì. Trả về (nhóm, ID mới thêm,
        thông báo).
        """
        chat = await GroupChatService.get_chat(chat_id)
        if not chat:
            raise NotFoundError("Group chat not found!")

        requested_ids = list(dict.fromkeys(m for m in member_ids if m != owner_id))
        owner = await UserService.get_active_user(owner_id)
        members = await UserService.get_active_users(requested_ids)
        if not owner or len(members) != len(requested_ids):
            raise NotFoundError("One or more members not found")

        if caller_id != owner_id or chat.ownerId != owner_id:
            raise ForbiddenError("Only the owner can add members to this group chat!")

        new_member_ids = [m for m in requested_ids if m not in chat.memberIds]
        if new_member_ids:
            if any(not owner.is_friend_with(member_id) for member_id in new_member_ids):
                raise BadRequestError(NOT_FRIENDS_MESSAGE)

            # $addToSet nguyên tử, hai lần thêm song song không ghi đè nhau
            await GroupChat.find_one({"_id": chat.id}).update(
                {
                    "$addToSet": {"memberIds": {"$each": new_member_ids}},
                    "$set": {"updatedAt": datetime.utcnow()}
                }
            )
            chat = await GroupChat.get(chat.id)
            logger.info("Added %d members to group chat %s", len(new_member_ids), chat_id)

        return chat, new_member_ids, members_added_message(len(new_member_ids))

    @staticmethod
    async def remove_member(chat_id: str, owner_id: str, member_id: str, caller_id: str) -> GroupChat:
        """
        Chủ nhóm xóa một thành viên. Chủ nhóm không bao giờ bị xóa khỏi nhóm.
        """
        chat = await GroupChatService.get_chat(chat_id)
        if not chat:
            raise NotFoundError("Group chat not found!")

        if member_id == chat.ownerId:
            raise ForbiddenError("The owner can't be removed from the group chat!")

        owner = await UserService.get_active_user(owner_id)
        member = await UserService.get_active_user(member_id)
        if not owner or not member:
            raise NotFoundError("Owner or member not found!")

        if caller_id != owner_id or chat.ownerId != owner_id:
            raise ForbiddenError("Only the owner can remove members from this group chat!")

        if member_id not in chat.memberIds:
            raise ConflictError("Member is not in the chat!")

        await GroupChat.find_one({"_id": chat.id}).update(
            {"$pull": {"memberIds": member_id}, "$set": {"updatedAt": datetime.utcnow()}}
        )
        chat = await GroupChat.get(chat.id)
        logger.info("Removed member %s from group chat %s", member_id, chat_id)
        return chat

    @staticmethod
    async def get_chat_details(chat_id: str, caller_id: str) -> Tuple[GroupChat, Dict[str, User]]:
        chat = await GroupChatService.get_member_chat(chat_id, caller_id)
        users = await UserService.get_users_map(chat.memberIds)
        return chat, users

    @staticmethod
    async def get_chat_messages(
        chat_id: str,
        caller_id: str,
        cursor: Optional[str] = None,
        take: Optional[int] = None,
        search: Optional[str] = None
    ) -> Page:
        chat = await GroupChatService.get_member_chat(chat_id, caller_id)
        return await MessageService.get_messages_page("groupChatId", str(chat.id), cursor, take, search)

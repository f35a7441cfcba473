import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional
from fastapi import UploadFile
from ..models import User, FriendRequest, OneOnOneChat, GroupChat, Message, PENDING, run_in_transaction
from ..exceptions import NotFoundError, ForbiddenError, BadRequestError
from ..configs import settings
from ..utils import (
    upload_to_cloudinary,
    delete_from_cloudinary,
    validate_image,
    to_object_id,
    to_object_ids,
    map_one_on_one_chat_to_public_dict,
    map_group_chat_to_public_dict,
    map_last_message_to_public_dict
)
from ..utils.pagination import (
    Page,
    clamp_take,
    build_page,
    paginate_by_id,
    parse_time_cursor,
    before_time_key,
    and_filters,
    encode_time_cursor
)
from .auth_service import AuthService

logger = logging.getLogger(__name__)

DELETED_USER_NAME = "Deleted User"

class UserService:

    @staticmethod
    async def get_active_user(user_id: str, session=None) -> Optional[User]:
        """Lấy người dùng chưa bị xóa mềm; ID không hợp lệ được coi như không tồn tại."""
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await User.find_one({"_id": oid, "isDeleted": False}, session=session)

    @staticmethod
    async def get_active_users(user_ids: List[str], session=None) -> List[User]:
        """Lấy danh sách người dùng chưa bị xóa theo danh sách ID."""
        if not user_ids:
            return []
        return await User.find(
            {"_id": {"$in": to_object_ids(user_ids)}, "isDeleted": False},
            session=session
        ).to_list()

    @staticmethod
    async def get_users_map(user_ids: List[str]) -> Dict[str, User]:
        users = await UserService.get_active_users(list(dict.fromkeys(user_ids)))
        return {str(u.id): u for u in users}

    @staticmethod
    async def get_users(cursor: Optional[str] = None, take: Optional[int] = None) -> Page:
        """Danh sách người dùng đang hoạt động, phân trang tăng dần theo ID."""
        take = clamp_take(take, settings.USERS_BATCH)
        return await paginate_by_id(User, {"isDeleted": False}, cursor, take)

    @staticmethod
    async def get_user(user_id: str) -> User:
        user = await UserService.get_active_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def update_user(
        user_id: str,
        caller_id: str,
        name: Optional[str] = None,
        bio: Optional[str] = None,
        profile_picture: Optional[UploadFile] = None
    ) -> User:
        """
        Cập nhật hồ sơ của chính mình. Ảnh đại diện mới được upload lên
        Cloudinary và ảnh cũ bị xóa sau khi lưu thành công.
        """
        if user_id != caller_id:
            raise ForbiddenError("You are not allowed to update this user")

        user = await UserService.get_active_user(user_id)
        if not user:
            raise NotFoundError("User not found")

        old_public_id = None
        if profile_picture:
            validate_image(profile_picture)
            uploaded = await upload_to_cloudinary(profile_picture, folder="profile_pictures")
            old_public_id = user.profilePicturePublicId
            user.profilePictureUrl = uploaded["url"]
            user.profilePicturePublicId = uploaded["public_id"]

        if name is not None:
            if not name.strip():
                raise BadRequestError("Name cannot be empty")
            user.name = name.strip()
        if bio is not None:
            user.bio = bio or None

        user.updatedAt = datetime.utcnow()
        await user.save()

        await delete_from_cloudinary(old_public_id)
        return user

    @staticmethod
    async def change_password(user_id: str, caller_id: str, current_password: str, new_password: str):
        if user_id != caller_id:
            raise ForbiddenError("You are not allowed to change this user's password")

        user = await UserService.get_active_user(user_id)
        if not user:
            raise NotFoundError("User not found")

        if not AuthService.verify_password(current_password, user.hashedPassword):
            raise BadRequestError("Current password is incorrect")

        user.hashedPassword = AuthService.get_password_hash(new_password)
        user.updatedAt = datetime.utcnow()
        await user.save()

    @staticmethod
    async def delete_user(user_id: str, caller_id: str) -> User:
        """
        Xóa mềm tài khoản: xóa thông tin cá nhân, giữ lại bản ghi và danh sách
        bạn bè, đồng thời xóa mọi lời mời kết bạn đang chờ của người dùng.
        """
        if user_id != caller_id:
            raise ForbiddenError("You are not allowed to delete this user")

        async def scrub(session):
            user = await UserService.get_active_user(user_id, session=session)
            if not user:
                raise NotFoundError("User not found")

            old_public_id = user.profilePicturePublicId
            now = datetime.utcnow()
            user.email = f"deleted-{user.id}@deleted.socialchat.app"
            user.hashedPassword = ""
            user.name = DELETED_USER_NAME
            user.bio = None
            user.profilePictureUrl = None
            user.profilePicturePublicId = None
            user.isDeleted = True
            user.deletedAt = now
            user.updatedAt = now
            await user.save(session=session)

            await FriendRequest.find(
                {"$or": [{"senderId": user_id}, {"receiverId": user_id}], "status": PENDING},
                session=session
            ).delete(session=session)
            return user, old_public_id

        user, old_public_id = await run_in_transaction(scrub)
        await delete_from_cloudinary(old_public_id)
        logger.info("User %s soft-deleted", user_id)
        return user

    @staticmethod
    async def get_user_chats(caller_id: str, cursor: Optional[str] = None, take: Optional[int] = None) -> Page:
        """
        Hộp thư: gộp chat riêng và nhóm của người dùng, sắp xếp theo tin nhắn
        mới nhất. Mỗi nguồn lấy take + 1 dòng sau cursor nên trang gộp luôn đủ.
        """
        take = clamp_take(take, settings.CHATS_BATCH)
        key = parse_time_cursor(cursor)

        user = await UserService.get_active_user(caller_id)
        if not user:
            raise NotFoundError("User not found")

        one_on_one_query = {"$or": [{"initiatorId": caller_id}, {"participantId": caller_id}]}
        group_query = {"memberIds": caller_id}
        before = before_time_key("lastMessageAt", key)
        sort = [("lastMessageAt", -1), ("_id", -1)]

        one_on_one_chats, group_chats, one_on_one_count, group_count = await asyncio.gather(
            OneOnOneChat.find(and_filters(one_on_one_query, before)).sort(sort).limit(take + 1).to_list(),
            GroupChat.find(and_filters(group_query, before)).sort(sort).limit(take + 1).to_list(),
            OneOnOneChat.find(one_on_one_query).count(),
            GroupChat.find(group_query).count()
        )

        merged = sorted(
            one_on_one_chats + group_chats,
            key=lambda chat: (chat.lastMessageAt, str(chat.id)),
            reverse=True
        )
        page = build_page(
            merged,
            take,
            lambda chat: encode_time_cursor(chat.lastMessageAt, chat.id),
            one_on_one_count + group_count
        )

        other_ids = [c.other_member(caller_id) for c in page.items if isinstance(c, OneOnOneChat)]
        users = await UserService.get_users_map(other_ids + [caller_id])

        items = []
        for chat in page.items:
            last_message = await Message.find(
                {"oneOnOneChatId" if isinstance(chat, OneOnOneChat) else "groupChatId": str(chat.id)}
            ).sort([("createdAt", -1), ("_id", -1)]).first_or_none()

            if isinstance(chat, OneOnOneChat):
                data = map_one_on_one_chat_to_public_dict(chat, users)
                other = users.get(chat.other_member(caller_id))
                data["type"] = "ONE_ON_ONE"
                data["name"] = other.name if other else DELETED_USER_NAME
            else:
                data = map_group_chat_to_public_dict(chat)
                data["type"] = "GROUP"
            data["lastMessage"] = map_last_message_to_public_dict(last_message)
            items.append(data)

        page.items = items
        return page

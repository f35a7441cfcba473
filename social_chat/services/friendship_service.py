import asyncio
import logging
from datetime import datetime
from typing import List, Optional
from pymongo.errors import DuplicateKeyError
from ..models import User, FriendRequest, pair_key, run_in_transaction, PENDING, ACCEPTED, REJECTED
from ..exceptions import NotFoundError, ForbiddenError, BadRequestError
from ..configs import settings
from ..utils import to_object_id, to_object_ids
from ..utils.pagination import Page, clamp_take, paginate_by_id, paginate_newest_first
from .user_service import UserService

logger = logging.getLogger(__name__)

FRIENDS = "FRIENDS"
REQUEST_SENT = "REQUEST_SENT"
REQUEST_RECEIVED = "REQUEST_RECEIVED"
NONE = "NONE"
SELF = "SELF"

class FriendshipService:
    """
    Quản lý đồ thị bạn bè và vòng đời lời mời kết bạn.

    Mọi thay đổi trên `friendIds` / `friendOfIds` đều đi qua class này và
    luôn cập nhật cả hai phía trong cùng một transaction.
    """

    @staticmethod
    async def _get_request(request_id: str, session=None) -> Optional[FriendRequest]:
        oid = to_object_id(request_id)
        if oid is None:
            return None
        return await FriendRequest.get(oid, session=session)

    @staticmethod
    async def send_friend_request(sender_id: str, receiver_id: str, caller_id: str) -> FriendRequest:
        """
        Gửi một yêu cầu kết bạn từ người dùng này đến người dùng khác.
        """
        if sender_id == receiver_id:
            raise BadRequestError("Cannot send a friend request to yourself")
        if caller_id != sender_id:
            raise ForbiddenError("You are not allowed to send friend requests on behalf of another user")

        sender, receiver = await asyncio.gather(
            UserService.get_active_user(sender_id),
            UserService.get_active_user(receiver_id)
        )
        if not sender or not receiver:
            raise NotFoundError("Sender or Receiver not found")

        # Kiểm tra xem họ đã là bạn bè chưa (từ một trong hai phía)
        if sender.is_friend_with(receiver_id) or receiver.is_friend_with(sender_id):
            raise BadRequestError("You are already friends with this user")

        # Lời mời đang chờ theo bất kỳ chiều nào của cặp
        key = pair_key(sender_id, receiver_id)
        existing_request = await FriendRequest.find_one({"pairKey": key, "status": PENDING})
        if existing_request:
            if existing_request.senderId == sender_id:
                raise BadRequestError("You have already sent a friend request to this user")
            raise BadRequestError("This user has already sent you a friend request")

        new_request = FriendRequest(senderId=sender_id, receiverId=receiver_id, pairKey=key)
        try:
            await new_request.insert()
        except DuplicateKeyError:
            # Một yêu cầu khác cho cùng cặp vừa được tạo song song
            raise BadRequestError("A friend request between these users already exists")

        logger.info("Friend request %s sent from %s to %s", new_request.id, sender_id, receiver_id)
        return new_request

    @staticmethod
    async def update_friend_request(request_id: str, caller_id: str, new_status: str) -> FriendRequest:
        """
        Người nhận phản hồi một yêu cầu kết bạn ('ACCEPTED' hoặc 'REJECTED').

        Chấp nhận: thêm người nhận vào `friendIds` của người gửi, thêm người
        gửi vào `friendOfIds` của người nhận và đánh dấu ACCEPTED, cả ba trong
        một transaction. Từ chối: xóa hẳn yêu cầu.
        """
        if new_status not in (ACCEPTED, REJECTED):
            raise BadRequestError("Invalid status. Must be ACCEPTED or REJECTED")

        friend_request = await FriendshipService._get_request(request_id)
        if not friend_request:
            raise NotFoundError("Friend request not found")
        if friend_request.status != PENDING:
            raise BadRequestError("Friend request already processed")
        if friend_request.receiverId != caller_id:
            raise ForbiddenError("You are not allowed to respond to this friend request")

        if new_status == REJECTED:
            await friend_request.delete()
            friend_request.status = REJECTED
            logger.info("Friend request %s rejected", request_id)
            return friend_request

        async def accept(session):
            # Đọc lại trong transaction để không chấp nhận hai lần
            request = await FriendRequest.get(friend_request.id, session=session)
            if not request:
                raise NotFoundError("Friend request not found")
            if request.status != PENDING:
                raise BadRequestError("Friend request already processed")

            # Một session không chạy song song hai thao tác
            sender = await UserService.get_active_user(request.senderId, session=session)
            receiver = await UserService.get_active_user(request.receiverId, session=session)
            if not sender or not receiver:
                raise NotFoundError("Sender or Receiver not found")

            now = datetime.utcnow()
            await User.find_one({"_id": sender.id}, session=session).update(
                {"$addToSet": {"friendIds": request.receiverId}, "$set": {"updatedAt": now}},
                session=session
            )
            await User.find_one({"_id": receiver.id}, session=session).update(
                {"$addToSet": {"friendOfIds": request.senderId}, "$set": {"updatedAt": now}},
                session=session
            )

            request.status = ACCEPTED
            request.updatedAt = now
            await request.save(session=session)
            return request

        accepted = await run_in_transaction(accept)
        logger.info("Friend request %s accepted", request_id)
        return accepted

    @staticmethod
    async def cancel_friend_request(request_id: str, caller_id: str):
        """
        Người gửi hủy một lời mời kết bạn đang chờ.
        """
        friend_request = await FriendshipService._get_request(request_id)
        if not friend_request:
            raise NotFoundError("Friend request not found")
        if friend_request.senderId != caller_id:
            raise ForbiddenError("You are not allowed to cancel this friend request")
        if friend_request.status != PENDING:
            raise BadRequestError("Friend request already processed")

        await friend_request.delete()
        logger.info("Friend request %s cancelled", request_id)

    @staticmethod
    async def unfriend_user(caller_id: str, friend_id: str):
        """
        Hủy kết bạn: gỡ quan hệ ở cả hai phía và xóa mọi lời mời còn sót lại
        giữa hai người, trong cùng một transaction.
        """
        if caller_id == friend_id:
            raise ForbiddenError("You cannot unfriend yourself")

        async def unfriend(session):
            user = await UserService.get_active_user(caller_id, session=session)
            friend = await UserService.get_active_user(friend_id, session=session)
            if not user or not friend:
                raise NotFoundError("User not found")

            if not user.is_friend_with(friend_id) and not friend.is_friend_with(caller_id):
                raise NotFoundError("You are not friends with this user")

            now = datetime.utcnow()
            await User.find_one({"_id": user.id}, session=session).update(
                {"$pull": {"friendIds": friend_id, "friendOfIds": friend_id}, "$set": {"updatedAt": now}},
                session=session
            )
            await User.find_one({"_id": friend.id}, session=session).update(
                {"$pull": {"friendIds": caller_id, "friendOfIds": caller_id}, "$set": {"updatedAt": now}},
                session=session
            )
            await FriendRequest.find(
                {"pairKey": pair_key(caller_id, friend_id)},
                session=session
            ).delete(session=session)

        await run_in_transaction(unfriend)
        logger.info("User %s unfriended %s", caller_id, friend_id)

    @staticmethod
    async def _active_friend_ids(user: User) -> List[str]:
        """ID bạn bè còn hoạt động (đã loại tài khoản bị xóa mềm)."""
        friends = await UserService.get_active_users(user.all_friend_ids)
        return [str(f.id) for f in friends]

    @staticmethod
    async def get_friends(user_id: str, cursor: Optional[str] = None, take: Optional[int] = None) -> Page:
        """Danh sách bạn bè đang hoạt động, phân trang tăng dần theo ID."""
        take = clamp_take(take, settings.FRIENDS_BATCH)
        user = await UserService.get_active_user(user_id)
        if not user:
            raise NotFoundError("User not found")

        query = {"_id": {"$in": to_object_ids(user.all_friend_ids)}, "isDeleted": False}
        return await paginate_by_id(User, query, cursor, take)

    @staticmethod
    async def get_suggested_friends(
        user_id: str,
        caller_id: str,
        cursor: Optional[str] = None,
        take: Optional[int] = None
    ) -> Page:
        """
        Gợi ý kết bạn: bạn của bạn (đúng một bước), chưa là bạn, không phải
        chính mình và chưa bị xóa. Sắp xếp tăng dần theo ID.
        """
        if user_id != caller_id:
            raise ForbiddenError("You are not allowed to view suggestions for this user")

        take = clamp_take(take, settings.FRIENDS_BATCH)
        user = await UserService.get_active_user(user_id)
        if not user:
            raise NotFoundError("User not found")

        friend_ids = await FriendshipService._active_friend_ids(user)
        if not friend_ids:
            return Page(items=[], totalCount=0, hasNextPage=False, nextCursor=None)

        excluded = to_object_ids(user.all_friend_ids + [user_id])
        query = {
            "_id": {"$nin": excluded},
            "isDeleted": False,
            "$or": [
                {"friendIds": {"$in": friend_ids}},
                {"friendOfIds": {"$in": friend_ids}}
            ]
        }
        return await paginate_by_id(User, query, cursor, take)

    @staticmethod
    async def get_mutual_friends(
        user_id: str,
        other_user_id: str,
        cursor: Optional[str] = None,
        take: Optional[int] = None
    ) -> Page:
        """Giao của hai tập bạn bè, chỉ gồm người dùng chưa bị xóa."""
        take = clamp_take(take, settings.FRIENDS_BATCH)
        user, other_user = await asyncio.gather(
            UserService.get_active_user(user_id),
            UserService.get_active_user(other_user_id)
        )
        if not user or not other_user:
            raise NotFoundError("User not found")

        mutual_ids = set(user.all_friend_ids) & set(other_user.all_friend_ids)
        query = {"_id": {"$in": to_object_ids(mutual_ids)}, "isDeleted": False}
        return await paginate_by_id(User, query, cursor, take)

    @staticmethod
    async def get_friend_requests(
        user_id: str,
        caller_id: str,
        cursor: Optional[str] = None,
        take: Optional[int] = None
    ) -> Page:
        """
        Lấy danh sách các lời mời kết bạn đang chờ mà người dùng nhận được,
        mới nhất trước, kèm thông tin người gửi.
        """
        if user_id != caller_id:
            raise ForbiddenError("You are not allowed to view these friend requests")

        take = clamp_take(take, settings.FRIENDS_BATCH)
        page = await paginate_newest_first(
            FriendRequest,
            {"receiverId": user_id, "status": PENDING},
            "createdAt",
            cursor,
            take
        )
        senders = await UserService.get_users_map([r.senderId for r in page.items])
        page.items = [(request, senders.get(request.senderId)) for request in page.items]
        return page

    @staticmethod
    async def get_friendship_status(user_id: str, other_user_id: str) -> str:
        """
        Trạng thái quan hệ giữa hai người dùng:
        'FRIENDS', 'REQUEST_SENT', 'REQUEST_RECEIVED', 'NONE' hoặc 'SELF'.
        """
        if user_id == other_user_id:
            return SELF

        user, other_user = await asyncio.gather(
            UserService.get_active_user(user_id),
            UserService.get_active_user(other_user_id)
        )
        if not user or not other_user:
            raise NotFoundError("User not found")

        if user.is_friend_with(other_user_id):
            return FRIENDS

        pending = await FriendRequest.find_one({"pairKey": pair_key(user_id, other_user_id), "status": PENDING})
        if not pending:
            return NONE
        return REQUEST_SENT if pending.senderId == user_id else REQUEST_RECEIVED

from fastapi import APIRouter, Depends, Query, UploadFile, File, Form
from typing import Optional
from ..services import UserService, FriendshipService
from ..schemas import ChangePasswordRequest
from ..security import get_current_user_id
from ..exceptions import ForbiddenError
from ..utils import map_user_to_public_dict, map_friend_request_to_public_dict, success_response

router = APIRouter(tags=["User"])

# Lấy danh sách người dùng đang hoạt động
@router.get("")
async def get_users(
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    page = await UserService.get_users(cursor, take)
    return success_response("Users fetched", [map_user_to_public_dict(u) for u in page.items], page)

# Lấy hồ sơ của người dùng hiện tại
@router.get("/me")
async def read_users_me(current_user_id: str = Depends(get_current_user_id)):
    """
    Lấy hồ sơ của người dùng hiện được xác thực.
    """
    user = await UserService.get_user(current_user_id)
    return success_response("User fetched", map_user_to_public_dict(user))

# Hộp thư: chat riêng và nhóm, mới nhất trước
@router.get("/chats")
async def get_user_chats(
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    page = await UserService.get_user_chats(current_user_id, cursor, take)
    return success_response("Chats fetched", page.items, page)

@router.get("/{user_id}")
async def get_user(user_id: str, current_user_id: str = Depends(get_current_user_id)):
    user = await UserService.get_user(user_id)
    return success_response("User fetched", map_user_to_public_dict(user))

@router.put("/{user_id}")
async def update_user(
    user_id: str,
    name: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    profilePicture: Optional[UploadFile] = File(None),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    Cập nhật hồ sơ của chính mình (multipart/form-data).
    Chỉ các trường được gửi lên mới bị thay đổi.
    """
    user = await UserService.update_user(
        user_id=user_id,
        caller_id=current_user_id,
        name=name,
        bio=bio,
        profile_picture=profilePicture
    )
    return success_response("User updated", map_user_to_public_dict(user))

@router.delete("/{user_id}")
async def delete_user(user_id: str, current_user_id: str = Depends(get_current_user_id)):
    """
    Xóa mềm tài khoản của chính mình.
    """
    await UserService.delete_user(user_id, current_user_id)
    return success_response("User deleted")

@router.patch("/{user_id}/change-password")
async def change_password(
    user_id: str,
    payload: ChangePasswordRequest,
    current_user_id: str = Depends(get_current_user_id)
):
    await UserService.change_password(user_id, current_user_id, payload.currentPassword, payload.newPassword)
    return success_response("Password changed")

@router.get("/{user_id}/friends")
async def get_friends(
    user_id: str,
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    page = await FriendshipService.get_friends(user_id, cursor, take)
    return success_response("Friends fetched", [map_user_to_public_dict(u) for u in page.items], page)

@router.get("/{user_id}/friend-requests")
async def get_friend_requests(
    user_id: str,
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    """Lấy danh sách lời mời kết bạn đang chờ mà người dùng nhận được."""
    page = await FriendshipService.get_friend_requests(user_id, current_user_id, cursor, take)
    data = [map_friend_request_to_public_dict(request, sender) for request, sender in page.items]
    return success_response("Friend requests fetched", data, page)

@router.post("/{user_id}/unfriend/{friend_id}")
async def unfriend_user(
    user_id: str,
    friend_id: str,
    current_user_id: str = Depends(get_current_user_id)
):
    """Hủy kết bạn với một người dùng khác."""
    if user_id != current_user_id:
        raise ForbiddenError("You are not allowed to unfriend on behalf of another user")
    await FriendshipService.unfriend_user(current_user_id, friend_id)
    return success_response("Unfriended successfully")

@router.get("/{user_id}/suggested-friends")
async def get_suggested_friends(
    user_id: str,
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    page = await FriendshipService.get_suggested_friends(user_id, current_user_id, cursor, take)
    return success_response("Suggested friends fetched", [map_user_to_public_dict(u) for u in page.items], page)

@router.get("/{user_id}/mutual-friends/{other_user_id}")
async def get_mutual_friends(
    user_id: str,
    other_user_id: str,
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    page = await FriendshipService.get_mutual_friends(user_id, other_user_id, cursor, take)
    return success_response("Mutual friends fetched", [map_user_to_public_dict(u) for u in page.items], page)

@router.get("/{user_id}/friendship-status/{other_user_id}")
async def get_friendship_status(
    user_id: str,
    other_user_id: str,
    current_user_id: str = Depends(get_current_user_id)
):
    status = await FriendshipService.get_friendship_status(user_id, other_user_id)
    return success_response("Friendship status fetched", {"status": status})

from fastapi import APIRouter, Depends
from ..services import FriendshipService
from ..schemas import FriendRequestCreate, FriendRequestUpdate
from ..security import get_current_user_id
from ..utils import map_friend_request_to_public_dict, success_response

router = APIRouter(tags=["Friend Request"])

@router.post("", status_code=201)
async def send_friend_request(
    request_data: FriendRequestCreate,
    current_user_id: str = Depends(get_current_user_id)
):
    """Gửi lời mời kết bạn; senderId phải là người dùng hiện tại."""
    friend_request = await FriendshipService.send_friend_request(
        sender_id=request_data.senderId,
        receiver_id=request_data.receiverId,
        caller_id=current_user_id
    )
    return success_response("Friend request sent", map_friend_request_to_public_dict(friend_request))

@router.put("/{request_id}")
async def respond_to_friend_request(
    request_id: str,
    payload: FriendRequestUpdate,
    current_user_id: str = Depends(get_current_user_id)
):
    """Người nhận chấp nhận hoặc từ chối lời mời."""
    friend_request = await FriendshipService.update_friend_request(request_id, current_user_id, payload.status)
    message = "Friend request accepted" if payload.status == "ACCEPTED" else "Friend request rejected"
    return success_response(message, map_friend_request_to_public_dict(friend_request))

@router.delete("/{request_id}")
async def cancel_friend_request(request_id: str, current_user_id: str = Depends(get_current_user_id)):
    await FriendshipService.cancel_friend_request(request_id, current_user_id)
    return success_response("Friend request cancelled")

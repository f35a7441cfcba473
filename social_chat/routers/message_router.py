from fastapi import APIRouter, Depends
from ..services import MessageService
from ..schemas import MessageCreate
from ..security import get_current_user_id
from ..utils import map_message_to_public_dict, success_response

router = APIRouter(tags=["Message"])

@router.post("/send", status_code=201)
async def send_message(message_data: MessageCreate, current_user_id: str = Depends(get_current_user_id)):
    """Gửi tin nhắn vào đúng một chat (riêng hoặc nhóm) mà người gửi là thành viên."""
    message = await MessageService.send_message(
        content=message_data.content,
        sender_id=message_data.senderId,
        caller_id=current_user_id,
        one_on_one_chat_id=message_data.oneOnOneChatId,
        group_chat_id=message_data.groupChatId
    )
    return success_response("Message sent", map_message_to_public_dict(message))

@router.patch("/delete/{message_id}")
async def delete_message(message_id: str, current_user_id: str = Depends(get_current_user_id)):
    message = await MessageService.delete_message(message_id, current_user_id)
    return success_response("Message deleted", map_message_to_public_dict(message))

from fastapi import APIRouter, Depends, Query
from typing import Optional
from ..services import OneOnOneChatService
from ..schemas import OneOnOneChatCreate, OneOnOneChatSettings
from ..security import get_current_user_id
from ..utils import map_one_on_one_chat_to_public_dict, map_message_to_public_dict, success_response

router = APIRouter(tags=["One-On-One Chat"])

@router.post("/create", status_code=201)
async def create_one_on_one_chat(
    chat_data: OneOnOneChatCreate,
    current_user_id: str = Depends(get_current_user_id)
):
    """Tạo cuộc trò chuyện riêng với một người bạn."""
    chat = await OneOnOneChatService.create_chat(
        initiator_id=chat_data.initiatorId,
        participant_id=chat_data.participantId,
        caller_id=current_user_id
    )
    return success_response("Chat created", map_one_on_one_chat_to_public_dict(chat))

@router.get("/{chat_id}")
async def get_one_on_one_chat(chat_id: str, current_user_id: str = Depends(get_current_user_id)):
    chat, users = await OneOnOneChatService.get_chat_details(chat_id, current_user_id)
    return success_response("Chat fetched", map_one_on_one_chat_to_public_dict(chat, users))

@router.patch("/{chat_id}/settings")
async def update_one_on_one_chat_settings(
    chat_id: str,
    settings: OneOnOneChatSettings,
    current_user_id: str = Depends(get_current_user_id)
):
    chat = await OneOnOneChatService.update_settings(chat_id, current_user_id, settings)
    return success_response("Chat settings updated", map_one_on_one_chat_to_public_dict(chat))

@router.get("/{chat_id}/messages")
async def get_one_on_one_chat_messages(
    chat_id: str,
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    """Tin nhắn của cuộc trò chuyện, mới nhất trước."""
    page = await OneOnOneChatService.get_chat_messages(chat_id, current_user_id, cursor, take, search)
    return success_response("Messages fetched", [map_message_to_public_dict(m) for m in page.items], page)

from fastapi import APIRouter, Depends, Query, Form, File, UploadFile
from typing import List, Optional
from ..services import GroupChatService
from ..schemas import GroupMembersAdd, GroupMemberRemove
from ..security import get_current_user_id
from ..utils import map_group_chat_to_public_dict, map_message_to_public_dict, success_response

router = APIRouter(tags=["Group Chat"])

@router.post("/create", status_code=201)
async def create_group_chat(
    ownerId: str = Form(...),
    name: str = Form(..., min_length=1),
    memberIds: List[str] = Form(...),
    groupDescription: Optional[str] = Form(None),
    groupIcon: Optional[UploadFile] = File(None),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    Tạo nhóm mới (multipart/form-data). `memberIds` được gửi lặp lại cho
    từng thành viên; ảnh nhóm là bắt buộc.
    """
    chat = await GroupChatService.create_group_chat(
        owner_id=ownerId,
        member_ids=memberIds,
        name=name,
        caller_id=current_user_id,
        group_description=groupDescription,
        group_icon=groupIcon
    )
    return success_response("Group chat created", map_group_chat_to_public_dict(chat))

@router.get("/{chat_id}")
async def get_group_chat(chat_id: str, current_user_id: str = Depends(get_current_user_id)):
    chat, users = await GroupChatService.get_chat_details(chat_id, current_user_id)
    return success_response("Group chat fetched", map_group_chat_to_public_dict(chat, users))

@router.patch("/{chat_id}/settings")
async def update_group_chat_settings(
    chat_id: str,
    settings: Optional[str] = Form(None),
    groupIcon: Optional[UploadFile] = File(None),
    current_user_id: str = Depends(get_current_user_id)
):
    """`settings` là chuỗi JSON gồm `name` và/hoặc `groupDescription`."""
    chat = await GroupChatService.update_settings(chat_id, current_user_id, settings, groupIcon)
    return success_response("Group chat settings updated", map_group_chat_to_public_dict(chat))

@router.get("/{chat_id}/messages")
async def get_group_chat_messages(
    chat_id: str,
    cursor: Optional[str] = Query(None),
    take: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    current_user_id: str = Depends(get_current_user_id)
):
    page = await GroupChatService.get_chat_messages(chat_id, current_user_id, cursor, take, search)
    return success_response("Messages fetched", [map_message_to_public_dict(m) for m in page.items], page)

@router.patch("/{chat_id}/add-members")
async def add_members(
    chat_id: str,
    payload: GroupMembersAdd,
    current_user_id: str = Depends(get_current_user_id)
):
    chat, _, message = await GroupChatService.add_members(
        chat_id=chat_id,
        owner_id=payload.ownerId,
        member_ids=payload.memberIds,
        caller_id=current_user_id
    )
    return success_response(message, map_group_chat_to_public_dict(chat))

@router.patch("/{chat_id}/remove-member")
async def remove_member(
    chat_id: str,
    payload: GroupMemberRemove,
    current_user_id: str = Depends(get_current_user_id)
):
    chat = await GroupChatService.remove_member(
        chat_id=chat_id,
        owner_id=payload.ownerId,
        member_id=payload.memberId,
        caller_id=current_user_id
    )
    return success_response("Member removed from group chat", map_group_chat_to_public_dict(chat))

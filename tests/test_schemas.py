import pytest
from pydantic import ValidationError

from social_chat.models import pair_key
from social_chat.schemas import FriendRequestCreate, GroupChatSettings, MessageCreate, OneOnOneChatSettings
from social_chat.services.group_chat_service import members_added_message, parse_group_settings
from social_chat.exceptions import BadRequestError

A = "a" * 24
B = "b" * 24


def test_pair_key_is_order_independent():
    assert pair_key(A, B) == pair_key(B, A) == f"{A}:{B}"


def test_message_create_needs_exactly_one_chat():
    with pytest.raises(ValidationError):
        MessageCreate(content="hi", senderId=A)
    with pytest.raises(ValidationError):
        MessageCreate(content="hi", senderId=A, oneOnOneChatId=B, groupChatId=B)
    assert MessageCreate(content="hi", senderId=A, groupChatId=B).groupChatId == B


def test_friend_request_to_self_fails_validation():
    with pytest.raises(ValidationError):
        FriendRequestCreate(senderId=A, receiverId=A)
    with pytest.raises(ValidationError):
        FriendRequestCreate(senderId="nope", receiverId=B)


def test_settings_patches_reject_unknown_fields():
    with pytest.raises(ValidationError):
        OneOnOneChatSettings.model_validate({"vanishMode": True, "color": "red"})
    with pytest.raises(ValidationError):
        GroupChatSettings.model_validate({"ownerId": A})


def test_parse_group_settings():
    assert parse_group_settings(None) == GroupChatSettings()
    assert parse_group_settings('{"name": "Hikers"}').name == "Hikers"
    for bad in ("{not json", '["name"]', '{"name": ""}', '{"memberIds": []}'):
        with pytest.raises(BadRequestError, match="Invalid settings"):
            parse_group_settings(bad)


def test_members_added_message():
    assert members_added_message(0) == "No new members, all exist"
    assert members_added_message(1) == "1 new member added to group chat"
    assert members_added_message(3) == "3 new members added to group chat"

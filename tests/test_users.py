import asyncio

import pytest

from social_chat.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from social_chat.models import FriendRequest
from social_chat.services import AuthService, FriendshipService, GroupChatService, MessageService, OneOnOneChatService, UserService
from social_chat.services.user_service import DELETED_USER_NAME
from social_chat.services import jwt_service
from social_chat.schemas import TokenPair

pytestmark = pytest.mark.usefixtures("db")


async def test_get_users_skips_deleted(make_user):
    alice, bob, carol = await make_user(), await make_user(), await make_user()
    await UserService.delete_user(str(bob.id), str(bob.id))

    page = await UserService.get_users()

    assert [str(u.id) for u in page.items] == [str(alice.id), str(carol.id)]
    assert page.totalCount == 2
    with pytest.raises(NotFoundError):
        await UserService.get_user(str(bob.id))


async def test_update_user_replaces_picture(make_user, make_image, blob_store):
    alice, bob = await make_user(), await make_user()

    first = await UserService.update_user(str(alice.id), str(alice.id), profile_picture=make_image("me.png"))
    old_public_id = first.profilePicturePublicId
    second = await UserService.update_user(
        str(alice.id), str(alice.id), name=" Alice ", bio="Hi", profile_picture=make_image("me2.jpeg")
    )

    assert second.name == "Alice"
    assert second.bio == "Hi"
    assert second.profilePicturePublicId != old_public_id
    assert blob_store["destroyed"] == [old_public_id]

    with pytest.raises(ForbiddenError):
        await UserService.update_user(str(alice.id), str(bob.id), name="Mallory")
    with pytest.raises(BadRequestError):
        await UserService.update_user(str(alice.id), str(alice.id), name="   ")


async def test_delete_user_scrubs_profile_and_pending_requests(make_user, make_image, befriend, blob_store, reload):
    alice, bob, carol = await make_user(), await make_user(), await make_user()
    await befriend(alice, bob)
    await FriendshipService.send_friend_request(str(alice.id), str(carol.id), str(alice.id))
    alice = await UserService.update_user(str(alice.id), str(alice.id), bio="bio", profile_picture=make_image())
    picture_id = alice.profilePicturePublicId

    with pytest.raises(ForbiddenError):
        await UserService.delete_user(str(alice.id), str(bob.id))

    await UserService.delete_user(str(alice.id), str(alice.id))

    stored = await reload(alice)
    assert stored.isDeleted is True
    assert stored.deletedAt is not None
    assert stored.name == DELETED_USER_NAME
    assert stored.bio is None
    assert stored.profilePictureUrl is None
    assert stored.hashedPassword == ""
    assert stored.email.startswith("deleted-")
    # Relationship lists are kept, only pending requests go away
    assert stored.friendIds == [str(bob.id)]
    assert await FriendRequest.find({"senderId": str(alice.id), "status": "PENDING"}).count() == 0
    assert picture_id in blob_store["destroyed"]

    with pytest.raises(NotFoundError):
        await UserService.delete_user(str(alice.id), str(alice.id))
    assert [u.id for u in (await FriendshipService.get_friends(str(bob.id))).items] == []


async def test_deleted_email_can_register_again(make_user):
    alice = await make_user(email="reuse@example.com")
    await UserService.delete_user(str(alice.id), str(alice.id))

    again = await AuthService.register_user("reuse@example.com", "password123", "Alice Again")
    assert again.id != alice.id


async def test_change_password(make_user):
    user = await make_user()
    user.hashedPassword = AuthService.get_password_hash("old-password")
    await user.save()

    with pytest.raises(BadRequestError):
        await UserService.change_password(str(user.id), str(user.id), "wrong", "new-password")

    await UserService.change_password(str(user.id), str(user.id), "old-password", "new-password")

    logged_in = await AuthService.login_user(user.email, "new-password")
    assert logged_in.id == user.id
    with pytest.raises(UnauthorizedError):
        await AuthService.login_user(user.email, "old-password")


async def test_register_duplicate_email_conflicts(make_user):
    await make_user(email="taken@example.com")
    with pytest.raises(ConflictError):
        await AuthService.register_user("taken@example.com", "password123", "Copycat")


async def test_deleted_account_cannot_log_in(make_user):
    user = await AuthService.register_user("gone@example.com", "password123", "Gone")
    await UserService.delete_user(str(user.id), str(user.id))

    # The scrubbed email no longer matches, so login sees unknown credentials
    with pytest.raises(UnauthorizedError):
        await AuthService.login_user("gone@example.com", "password123")


async def test_user_chats_inbox_orders_by_latest_message(make_user, befriend, make_image):
    me, bob, carol = await make_user(), await make_user(name="Bob"), await make_user(name="Carol")
    await befriend(me, bob)
    await befriend(me, carol)
    with_bob = await OneOnOneChatService.create_chat(str(me.id), str(bob.id), str(me.id))
    with_carol = await OneOnOneChatService.create_chat(str(carol.id), str(me.id), str(carol.id))
    group = await GroupChatService.create_group_chat(
        str(me.id), [str(bob.id), str(carol.id)], "Trio", str(me.id), group_icon=make_image()
    )

    await MessageService.send_message("to bob", str(me.id), str(me.id), one_on_one_chat_id=str(with_bob.id))
    await asyncio.sleep(0.005)
    await MessageService.send_message("group hi", str(carol.id), str(carol.id), group_chat_id=str(group.id))
    await asyncio.sleep(0.005)
    await MessageService.send_message("latest", str(carol.id), str(carol.id), one_on_one_chat_id=str(with_carol.id))

    first = await UserService.get_user_chats(str(me.id), take=2)
    rest = await UserService.get_user_chats(str(me.id), cursor=first.nextCursor, take=2)

    items = first.items + rest.items
    assert [item["id"] for item in items] == [str(with_carol.id), str(group.id), str(with_bob.id)]
    assert [item["type"] for item in items] == ["ONE_ON_ONE", "GROUP", "ONE_ON_ONE"]
    assert items[0]["name"] == "Carol"
    assert items[0]["lastMessage"]["content"] == "latest"
    assert items[1]["lastMessage"]["content"] == "group hi"
    assert first.hasNextPage is True
    assert rest.hasNextPage is False
    assert first.totalCount == 3


async def test_user_chats_for_user_without_chats(make_user):
    loner = await make_user()
    page = await UserService.get_user_chats(str(loner.id))
    assert page.items == [] and page.hasNextPage is False


async def test_issue_tokens_returns_access_and_refresh_pair(make_user):
    user = await make_user()

    tokens = AuthService.issue_tokens(user)

    assert isinstance(tokens, TokenPair)
    assert tokens.token_type == "bearer"
    assert jwt_service.decode_token(tokens.access_token).userId == str(user.id)
    assert jwt_service.decode_token(tokens.refresh_token, expected_type="refresh").userId == str(user.id)
    assert jwt_service.decode_token(tokens.refresh_token) is None

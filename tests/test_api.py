import pytest

PNG = ("icon.png", b"\x89PNG", "image/png")


async def test_register_login_and_refresh(raw_api):
    response = await raw_api.post(
        "/api/v1/auth/register",
        data={"email": "alice@example.com", "password": "password123", "name": "Alice"},
        files={"profilePicture": PNG},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["email"] == "alice@example.com"
    assert body["data"]["profilePictureUrl"].startswith("https://")
    assert "hashedPassword" not in body["data"]

    response = await raw_api.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert response.status_code == 200
    tokens = response.json()["data"]

    me = await raw_api.get("/api/v1/users/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["name"] == "Alice"

    # A refresh token is not accepted as an access token
    rejected = await raw_api.get("/api/v1/users/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert rejected.status_code == 401

    refreshed = await raw_api.post("/api/v1/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["data"]["access_token"]


async def test_login_with_wrong_password(raw_api):
    await raw_api.post(
        "/api/v1/auth/register",
        data={"email": "bob@example.com", "password": "password123", "name": "Bob"},
    )

    response = await raw_api.post("/api/v1/auth/login", json={"email": "bob@example.com", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid email or password", "data": None}


async def test_requests_without_token_are_unauthorized(raw_api):
    response = await raw_api.get("/api/v1/users")
    assert response.status_code == 401
    assert response.json()["success"] is False


async def test_friendship_and_chat_flow(api, caller, make_user):
    alice, bob = await make_user(name="Alice"), await make_user(name="Bob")

    caller["id"] = str(alice.id)
    response = await api.post("/api/v1/friend-requests", json={"senderId": str(alice.id), "receiverId": str(bob.id)})
    assert response.status_code == 201
    request_id = response.json()["data"]["id"]

    caller["id"] = str(bob.id)
    requests = await api.get(f"/api/v1/users/{bob.id}/friend-requests")
    assert requests.json()["data"][0]["sender"]["name"] == "Alice"
    assert requests.json()["pagination"] == {"totalCount": 1, "hasNextPage": False, "nextCursor": None}

    response = await api.put(f"/api/v1/friend-requests/{request_id}", json={"status": "ACCEPTED"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ACCEPTED"

    status = await api.get(f"/api/v1/users/{alice.id}/friendship-status/{bob.id}")
    assert status.json()["data"] == {"status": "FRIENDS"}

    response = await api.post(
        "/api/v1/one-on-one-chats/create",
        json={"initiatorId": str(bob.id), "participantId": str(alice.id)},
    )
    assert response.status_code == 201
    chat_id = response.json()["data"]["id"]

    caller["id"] = str(alice.id)
    duplicate = await api.post(
        "/api/v1/one-on-one-chats/create",
        json={"initiatorId": str(alice.id), "participantId": str(bob.id)},
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["success"] is False

    sent = await api.post(
        "/api/v1/messages/send",
        json={"content": "hi bob", "senderId": str(alice.id), "oneOnOneChatId": chat_id},
    )
    assert sent.status_code == 201

    messages = await api.get(f"/api/v1/one-on-one-chats/{chat_id}/messages")
    assert [m["content"] for m in messages.json()["data"]] == ["hi bob"]

    inbox = await api.get("/api/v1/users/chats")
    assert inbox.json()["data"][0]["name"] == "Bob"
    assert inbox.json()["data"][0]["lastMessage"]["content"] == "hi bob"

    response = await api.post(f"/api/v1/users/{alice.id}/unfriend/{bob.id}")
    assert response.status_code == 200
    assert (await api.get(f"/api/v1/users/{alice.id}/friends")).json()["data"] == []


async def test_group_chat_flow(api, caller, make_user, befriend):
    owner, bob, carol = await make_user(), await make_user(), await make_user()
    await befriend(owner, bob)
    await befriend(owner, carol)
    caller["id"] = str(owner.id)

    response = await api.post(
        "/api/v1/group-chats/create",
        data={"ownerId": str(owner.id), "name": "Hikers", "memberIds": [str(bob.id)]},
        files={"groupIcon": PNG},
    )
    assert response.status_code == 201
    chat = response.json()["data"]
    assert chat["memberIds"] == [str(owner.id), str(bob.id)]

    added = await api.patch(
        f"/api/v1/group-chats/{chat['id']}/add-members",
        json={"ownerId": str(owner.id), "memberIds": [str(bob.id), str(carol.id)]},
    )
    assert added.json()["message"] == "1 new member added to group chat"

    again = await api.patch(
        f"/api/v1/group-chats/{chat['id']}/add-members",
        json={"ownerId": str(owner.id), "memberIds": [str(carol.id)]},
    )
    assert again.json()["message"] == "No new members, all exist"

    removed = await api.patch(
        f"/api/v1/group-chats/{chat['id']}/remove-member",
        json={"ownerId": str(owner.id), "memberId": str(owner.id)},
    )
    assert removed.status_code == 403

    settings = await api.patch(
        f"/api/v1/group-chats/{chat['id']}/settings",
        data={"settings": '{"name": "Climbers"}'},
    )
    assert settings.status_code == 200
    assert settings.json()["data"]["name"] == "Climbers"

    bad_settings = await api.patch(f"/api/v1/group-chats/{chat['id']}/settings", data={"settings": "{oops"})
    assert bad_settings.status_code == 400

    caller["id"] = str(carol.id)
    details = await api.get(f"/api/v1/group-chats/{chat['id']}")
    assert {m["id"] for m in details.json()["data"]["members"]} == {str(owner.id), str(bob.id), str(carol.id)}


async def test_group_chat_without_icon_is_bad_request(api, caller, make_user, befriend):
    owner, bob = await make_user(), await make_user()
    await befriend(owner, bob)
    caller["id"] = str(owner.id)

    response = await api.post(
        "/api/v1/group-chats/create",
        data={"ownerId": str(owner.id), "name": "No icon", "memberIds": [str(bob.id)]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Group icon is required"


@pytest.mark.parametrize(
    "payload",
    [
        {"content": "x", "senderId": "a" * 24},
        {"content": "x", "senderId": "a" * 24, "oneOnOneChatId": "b" * 24, "groupChatId": "c" * 24},
        {"content": "", "senderId": "a" * 24, "groupChatId": "c" * 24},
        {"content": "x", "senderId": "not-an-id", "groupChatId": "c" * 24},
    ],
)
async def test_invalid_message_payloads_are_rejected(api, caller, make_user, payload):
    user = await make_user()
    caller["id"] = str(user.id)

    response = await api.post("/api/v1/messages/send", json=payload)

    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation failed:")


async def test_error_envelopes(api, caller, make_user):
    alice, bob = await make_user(), await make_user()
    caller["id"] = str(alice.id)

    missing = await api.get(f"/api/v1/users/{'0' * 24}")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "User not found", "data": None}

    forbidden = await api.delete(f"/api/v1/users/{bob.id}")
    assert forbidden.status_code == 403

    bad_cursor = await api.get("/api/v1/users", params={"cursor": "zzz"})
    assert bad_cursor.status_code == 400
    assert bad_cursor.json()["message"] == "Invalid cursor"

    page = await api.get("/api/v1/users", params={"take": 1})
    assert page.json()["pagination"]["hasNextPage"] is True
    assert len(page.json()["data"]) == 1

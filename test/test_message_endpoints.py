import pytest
from httpx import AsyncClient, ASGITransport
from models.models import User, Message
from utils.security import create_session_token


def auth_headers(user):
    return {"X-Session-Token": create_session_token(user)}


@pytest.mark.asyncio
async def test_send_and_list_messages_newest_first(app_with_overrides, create_user):
    alice = create_user("alice")
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        for i in range(5):
            response = await client.post("/send-message", json={"username": "alice", "content": f"mensaje {i}"})
            assert response.status_code == 200
            assert response.json()["success"] is True

        response = await client.get("/get-messages", headers=auth_headers(alice))

    assert response.status_code == 200
    messages = response.json()["messages"]
    assert len(messages) == 5
    assert [m["content"] for m in messages] == [f"mensaje {i}" for i in reversed(range(5))]
    created = [m["createdAt"] for m in messages]
    assert created == sorted(created, reverse=True)
    assert all(set(m) == {"_id", "content", "createdAt"} for m in messages)


@pytest.mark.asyncio
async def test_get_messages_empty_list(app_with_overrides, create_user):
    alice = create_user("alice")
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/get-messages", headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json()["messages"] == []


@pytest.mark.asyncio
async def test_get_messages_requires_session(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/get-messages")

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_get_messages_for_deleted_account(app_with_overrides, session_for_tests, create_user):
    alice = create_user("alice")
    headers = auth_headers(alice)
    session_for_tests.delete(alice)
    session_for_tests.commit()
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/get-messages", headers=headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_send_message_to_unknown_user(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/send-message", json={"username": "ghost", "content": "hola"})

    assert response.status_code == 404
    assert response.json()["message"] == "Usuario no encontrado"


@pytest.mark.asyncio
async def test_send_message_to_user_not_accepting(app_with_overrides, session_for_tests, create_user):
    alice = create_user("alice", is_accepting_messages=False)
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/send-message", json={"username": "alice", "content": "hola"})

    assert response.status_code == 403
    assert response.json()["success"] is False
    assert session_for_tests.query(Message).filter(Message.owner_id == alice.user_id).count() == 0


@pytest.mark.asyncio
async def test_send_message_rejects_blank_or_long_content(app_with_overrides, create_user):
    create_user("alice")
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        blank = await client.post("/send-message", json={"username": "alice", "content": "   "})
        too_long = await client.post("/send-message", json={"username": "alice", "content": "x" * 301})

    assert blank.status_code == 400
    assert too_long.status_code == 400


@pytest.mark.asyncio
async def test_send_message_length_is_measured_after_trimming(app_with_overrides, create_user):
    alice = create_user("alice")
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        exact = await client.post("/send-message", json={"username": "alice", "content": "x" * 300})
        padded = await client.post("/send-message", json={"username": "alice", "content": "y" * 299 + "   "})
        listed = await client.get("/get-messages", headers=auth_headers(alice))

    assert exact.status_code == 200
    assert padded.status_code == 200
    assert padded.json()["data"]["content"] == "y" * 299
    assert len(listed.json()["messages"]) == 2


@pytest.mark.asyncio
async def test_delete_message(app_with_overrides, session_for_tests, create_user):
    alice = create_user("alice")
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        sent = await client.post("/send-message", json={"username": "alice", "content": "borrar"})
        message_id = sent.json()["data"]["_id"]

        first = await client.delete(f"/delete-message/{message_id}", headers=auth_headers(alice))
        second = await client.delete(f"/delete-message/{message_id}", headers=auth_headers(alice))
        malformed = await client.delete("/delete-message/not-a-number", headers=auth_headers(alice))
        unicode_digit = await client.delete("/delete-message/²", headers=auth_headers(alice))
        out_of_range = await client.delete("/delete-message/99999999999999999999", headers=auth_headers(alice))
        zero = await client.delete("/delete-message/0", headers=auth_headers(alice))

    assert first.status_code == 200
    assert first.json()["success"] is True
    assert second.status_code == 404
    assert malformed.status_code == 404
    assert unicode_digit.status_code == 404
    assert out_of_range.status_code == 404
    assert zero.status_code == 404
    assert out_of_range.json()["message"] == "Mensaje no encontrado o ya eliminado"
    assert session_for_tests.query(Message).count() == 0


@pytest.mark.asyncio
async def test_delete_message_of_other_user_is_not_removed(app_with_overrides, session_for_tests, create_user):
    alice = create_user("alice")
    mallory = create_user("mallory")
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        sent = await client.post("/send-message", json={"username": "alice", "content": "privado"})
        message_id = sent.json()["data"]["_id"]

        response = await client.delete(f"/delete-message/{message_id}", headers=auth_headers(mallory))
        remaining = await client.get("/get-messages", headers=auth_headers(alice))

    assert response.status_code == 404
    assert [m["_id"] for m in remaining.json()["messages"]] == [message_id]


@pytest.mark.asyncio
async def test_delete_message_requires_session(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.delete("/delete-message/1")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_accept_messages_round_trip(app_with_overrides, create_user):
    alice = create_user("alice")
    headers = auth_headers(alice)
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        initial = await client.get("/accept-messages", headers=headers)
        assert initial.status_code == 200
        assert initial.json()["isAcceptingMessages"] is True

        off = await client.post("/accept-messages", json={"acceptMessages": False}, headers=headers)
        assert off.status_code == 200
        assert off.json()["isAcceptingMessages"] is False
        assert (await client.get("/accept-messages", headers=headers)).json()["isAcceptingMessages"] is False

        # Con la recepción desactivada, los mensajes se rechazan
        rejected = await client.post("/send-message", json={"username": "alice", "content": "hola"})
        assert rejected.status_code == 403

        on = await client.post("/accept-messages", json={"acceptMessages": True}, headers=headers)
        assert on.json()["isAcceptingMessages"] is True
        assert (await client.get("/accept-messages", headers=headers)).json()["isAcceptingMessages"] is True


@pytest.mark.asyncio
async def test_accept_messages_requires_session(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        get_response = await client.get("/accept-messages")
        post_response = await client.post("/accept-messages", json={"acceptMessages": False})

    assert get_response.status_code == 401
    assert post_response.status_code == 401

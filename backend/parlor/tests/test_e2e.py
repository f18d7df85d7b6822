"""End-to-end flow tests: full user journeys."""

from fastapi.testclient import TestClient

from parlor.tests.conftest import PASSCODE


class TestFullChatFlow:
    def test_login_chat_react_edit_delete(self, client: TestClient):
        # 1. Log in
        client.cookies.clear()
        login = client.post("/login", json={"passcode": PASSCODE, "username": "alice"})
        assert login.status_code == 200
        token = login.json()["token"]
        user_id = login.json()["userId"]
        headers = {"Authorization": f"Bearer {token}"}

        # 2. Verify identity
        session = client.get("/api/session", headers=headers)
        assert session.json()["username"] == "alice"

        with client.websocket_connect("/ws", headers=headers) as ws:
            assert ws.receive_json()["type"] == "connected"

            # 3. Create channel
            ch = client.post("/api/channels", json={"name": "e2e-chat"}, headers=headers)
            assert ch.status_code == 200
            ch_id = ch.json()["channel"]["id"]
            assert ws.receive_json()["type"] == "channel_created"

            # 4. Join and send message
            ws.send_json({"type": "join_channel", "channelId": ch_id})
            assert ws.receive_json()["type"] == "channel_joined"
            ws.send_json({"type": "send_message", "channelId": ch_id, "text": "Hola!"})
            msg = ws.receive_json()["message"]
            assert msg["user_id"] == user_id

            # 5. React to message
            ws.send_json({"type": "toggle_reaction", "messageId": msg["id"], "emoji": "🎉"})
            assert ws.receive_json()["type"] == "reaction_added"

            # 6. Read message history; reaction should be included
            history = client.get(f"/api/messages/{ch_id}", headers=headers)
            assert history.status_code == 200
            messages = history.json()["messages"]
            assert any(any(r["emoji"] == "🎉" for r in m["reactions"]) for m in messages)

            # 7. Edit message
            ws.send_json({"type": "edit_message", "messageId": msg["id"], "newText": "Hola editado!"})
            edited = ws.receive_json()["message"]
            assert edited["edited_at"] is not None

            # 8. Delete message
            ws.send_json({"type": "delete_message", "messageId": msg["id"]})
            assert ws.receive_json() == {"type": "message_deleted", "messageId": msg["id"]}

        assert client.get(f"/api/messages/{ch_id}", headers=headers).json()["messages"] == []
        client.cookies.clear()

    def test_health_check(self, client: TestClient):
        health = client.get("/health")
        assert health.status_code == 200
        body = health.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["connections"] == 0
        assert body["sessions"] == "disabled"

# tests/test_webhooks.py
import json
from datetime import datetime, timezone

from fastapi.testclient import TestClient
from svix.webhooks import Webhook

from conftest import WEBHOOK_SECRET, make_settings, run
from storefront.main import create_app

URL = "/api/webhooks/clerk"


def user_event(kind, **data):
    payload = {
        "id": "user_hook",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "image_url": "https://img.example.com/ada.png",
        "primary_email_address_id": "em_1",
        "email_addresses": [
            {"id": "em_0", "email_address": "old@example.com"},
            {"id": "em_1", "email_address": "ada@example.com"},
        ],
    }
    payload.update(data)
    return json.dumps({"type": kind, "data": payload})


def signed(body, secret=WEBHOOK_SECRET, msg_id="msg_1"):
    now = datetime.now(timezone.utc)
    return {
        "svix-id": msg_id,
        "svix-timestamp": str(int(now.timestamp())),
        "svix-signature": Webhook(secret).sign(msg_id, now, body),
        "content-type": "application/json",
    }


def users(memory):
    return run(memory.select("users")).rows


def test_user_created_is_upserted(client, memory):
    body = user_event("user.created")
    r = client.post(URL, content=body, headers=signed(body))
    assert r.status_code == 200
    assert r.json() == {"success": True, "eventType": "user.created"}

    rows = users(memory)
    assert len(rows) == 1
    assert rows[0]["clerk_id"] == "user_hook"
    assert rows[0]["email"] == "ada@example.com"
    assert rows[0]["name"] == "Ada Lovelace"


def test_user_updated_merges_into_existing_row(client, memory):
    body = user_event("user.created")
    client.post(URL, content=body, headers=signed(body))
    body = user_event("user.updated", first_name="Augusta")
    r = client.post(URL, content=body, headers=signed(body, msg_id="msg_2"))
    assert r.status_code == 200

    rows = users(memory)
    assert len(rows) == 1
    assert rows[0]["first_name"] == "Augusta"
    assert rows[0]["name"] == "Augusta Lovelace"


def test_user_deleted_removes_row(client, memory):
    body = user_event("user.created")
    client.post(URL, content=body, headers=signed(body))
    body = json.dumps({"type": "user.deleted", "data": {"id": "user_hook", "deleted": True}})
    r = client.post(URL, content=body, headers=signed(body, msg_id="msg_3"))
    assert r.status_code == 200
    assert users(memory) == []


def test_other_events_are_acknowledged(client, memory):
    body = json.dumps({"type": "session.created", "data": {"id": "sess_1"}})
    r = client.post(URL, content=body, headers=signed(body))
    assert r.json() == {"success": True, "eventType": "session.created"}
    assert users(memory) == []


def test_tampered_body_changes_nothing(client, memory):
    original = user_event("user.created")
    tampered = user_event("user.created", id="user_attacker")
    r = client.post(URL, content=tampered, headers=signed(original))
    assert r.status_code == 400
    assert r.text == "Error verifying webhook"
    assert users(memory) == []


def test_wrong_secret_is_rejected(client, memory):
    body = user_event("user.created")
    other = "whsec_" + "c29tZW9uZS1lbHNlcy1zZWNyZXQ="
    r = client.post(URL, content=body, headers=signed(body, secret=other))
    assert r.status_code == 400
    assert users(memory) == []


def test_missing_headers(client, memory):
    body = user_event("user.created")
    headers = signed(body)
    del headers["svix-signature"]
    r = client.post(URL, content=body, headers=headers)
    assert r.status_code == 400
    assert r.text == "Missing svix headers"
    assert users(memory) == []


def test_missing_secret_is_a_server_error(memory):
    client = TestClient(create_app(make_settings(webhook_secret=None), client=memory))
    body = user_event("user.created")
    r = client.post(URL, content=body, headers=signed(body))
    assert r.status_code == 500
    assert r.text == "Webhook secret not provided"
    assert users(memory) == []


def test_event_is_read_from_the_verified_body(client, memory, monkeypatch):
    # newer svix releases return nothing from verify()
    real_verify = Webhook.verify

    def verify_only(self, data, headers):
        real_verify(self, data, headers)
        return None

    monkeypatch.setattr(Webhook, "verify", verify_only)
    body = user_event("user.created")
    r = client.post(URL, content=body, headers=signed(body))
    assert r.status_code == 200
    assert [u["clerk_id"] for u in users(memory)] == ["user_hook"]


def test_user_event_without_id_is_rejected(client, memory):
    body = json.dumps({"type": "user.created", "data": {"first_name": "Nobody"}})
    r = client.post(URL, content=body, headers=signed(body))
    assert r.status_code == 400
    assert r.text == "Missing user id"
    assert users(memory) == []


def test_provider_role_is_copied_to_the_row(client, memory):
    body = user_event("user.created", public_metadata={"role": "admin"})
    client.post(URL, content=body, headers=signed(body))
    assert users(memory)[0]["role"] == "admin"

    # updates without metadata leave the stored role alone
    body = user_event("user.updated", first_name="Augusta")
    client.post(URL, content=body, headers=signed(body, msg_id="msg_2"))
    assert users(memory)[0]["role"] == "admin"

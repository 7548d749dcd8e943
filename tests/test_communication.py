from twilio.base.exceptions import TwilioRestException

import config
import messaging
from conftest import register


class FailingMessages:
    def create(self, **kwargs):
        raise TwilioRestException(400, "https://api.twilio.com", msg="Invalid 'To' number", code=21211)


class FailingClient:
    messages = FailingMessages()


def test_send_message_demo_receipt():
    receipt = messaging.send_message("whatsapp", "+15550001111", "Hello")
    assert receipt["provider"] == "demo"
    assert receipt["sid"].startswith("demo_whatsapp_")
    assert receipt["to"] == "whatsapp:+15550001111"
    assert receipt["from"].startswith("whatsapp:")


def test_send_sms_demo(client, headers, mongo):
    res = client.post("/api/communication/sms", headers=headers, json={"to": "+15550001111", "message": "Rain expected"})
    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "SMS sent successfully (demo mode)"
    assert body["sms"]["status"] == "sent"
    assert mongo["message"].count_documents({"channel": "sms", "provider": "demo"}) == 1


def test_whatsapp_respects_preferences(client, headers):
    res = client.post("/api/communication/whatsapp", headers=headers, json={"to": "+15550001111", "message": "Hi"})
    assert res.status_code == 400
    assert res.json()["message"] == "WhatsApp notifications are disabled for this account"

    client.put("/api/profile", headers=headers, json={"preferences": {"notifications": {"whatsapp": True}}})
    res = client.post("/api/communication/whatsapp", headers=headers, json={"to": "+15550001111", "message": "Hi"})
    assert res.status_code == 200
    assert res.json()["whatsapp"]["to"] == "whatsapp:+15550001111"


def test_provider_error_is_reported(client, headers, mongo, monkeypatch):
    monkeypatch.setattr(messaging, "_client", FailingClient())
    res = client.post("/api/communication/sms", headers=headers, json={"to": "+15550001111", "message": "Hello"})
    assert res.status_code == 500
    assert res.json() == {"message": "Failed to send SMS", "error": "Invalid 'To' number"}
    assert mongo["message"].find_one({"channel": "sms"})["status"] == "failed"


def test_sms_validation(client, headers):
    res = client.post("/api/communication/sms", headers=headers, json={"to": "call me", "message": "Hello"})
    assert res.status_code == 400
    res = client.post("/api/communication/sms", headers=headers, json={"to": "+15550001111", "message": "x" * 1601})
    assert res.status_code == 400


def test_broadcast_by_criteria(client, headers, mongo):
    register(client, email="ravi@example.com", location={"country": "India", "state": "Kerala", "city": "Kochi"})
    register(
        client,
        email="maria@example.com",
        location={"country": "Spain", "state": "Andalusia", "city": "Seville"},
        preferences={"language": "es", "notifications": {"email": True, "sms": False, "whatsapp": False}},
    )

    res = client.post(
        "/api/communication/broadcast",
        headers=headers,
        json={"message": "Frost warning tonight", "channels": ["sms", "email"], "criteria": {"country": "India"}},
    )
    assert res.status_code == 200
    results = res.json()["results"]
    assert results["totalRecipients"] == 2
    channels = {c["channel"]: c for c in results["channels"]}
    assert channels["sms"]["sent"] == 2
    assert channels["email"]["pending"] == 2
    assert results["messageId"].startswith("broadcast_")

    res = client.post(
        "/api/communication/broadcast",
        headers=headers,
        json={"message": "Aviso", "channels": ["sms"], "criteria": {"language": "es"}},
    )
    channels = res.json()["results"]["channels"]
    assert channels == [{"channel": "sms", "sent": 0, "failed": 0, "pending": 0, "skipped": 1}]
    assert mongo["message"].count_documents({"broadcastId": {"$ne": None}}) == 4


def test_broadcast_requires_a_channel(client, headers):
    res = client.post("/api/communication/broadcast", headers=headers, json={"message": "Hi", "channels": []})
    assert res.status_code == 400


def test_templates_and_history(client, headers):
    templates = client.get("/api/communication/templates").json()["templates"]
    assert set(templates) == {"advisory", "practices", "gamification", "weather"}

    client.post("/api/communication/sms", headers=headers, json={"to": "+15550001111", "message": "One"})
    client.post("/api/communication/sms", headers=headers, json={"to": "+15550001111", "message": "Two"})
    res = client.get("/api/communication/history?limit=1", headers=headers)
    body = res.json()
    assert body["pagination"]["totalItems"] == 2
    assert len(body["communications"]) == 1


def test_real_client_is_built_from_credentials(monkeypatch):
    monkeypatch.setattr(config, "TWILIO_ACCOUNT_SID", "AC" + "0" * 32)
    monkeypatch.setattr(config, "TWILIO_AUTH_TOKEN", "token")
    client = messaging.get_client()
    assert client is not None
    assert messaging.get_client() is client


def test_broadcast_to_empty_farmer_list_reaches_nobody(client, headers, mongo):
    register(client, email="ravi@example.com")
    res = client.post(
        "/api/communication/broadcast",
        headers=headers,
        json={"message": "Market closed tomorrow", "channels": ["sms"], "farmerIds": []},
    )
    assert res.status_code == 200
    results = res.json()["results"]
    assert results["totalRecipients"] == 0
    assert results["channels"] == [{"channel": "sms", "sent": 0, "failed": 0, "pending": 0, "skipped": 0}]
    assert mongo["message"].count_documents({}) == 0


def test_broadcast_to_selected_farmers(client, headers, auth, mongo):
    _, asha = auth
    register(client, email="ravi@example.com")
    res = client.post(
        "/api/communication/broadcast",
        headers=headers,
        json={"message": "Your soil report is ready", "channels": ["sms"], "farmerIds": [asha["id"]]},
    )
    assert res.json()["results"]["totalRecipients"] == 1
    assert mongo["message"].find_one({})["farmerId"] == asha["id"]

import pytest
import requests

from gamebazaar.services import notifications

TICKET = {
    "name": "Rafi",
    "email": "rafi@example.com",
    "order_number": "ord-42",
    "category": "Billing",
    "subject": "Charged twice",
    "description": "My card shows two charges for one order.",
}

CONTACT = {
    "first_name": "Nadia",
    "last_name": "Karim",
    "email": "nadia@example.com",
    "subject": "Partnership",
    "message": "We'd like to list our indie titles.",
}


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} from webhook")


@pytest.fixture()
def webhook(monkeypatch):
    """Captures webhook posts. Set ``fail_for`` to make posts to that address fail."""
    state = {"calls": [], "fail_for": None}

    def fake_post(url, json, timeout):
        state["calls"].append(json)
        return FakeResponse(502 if json["to"] == state["fail_for"] else 200)

    monkeypatch.setattr(notifications, "NOTIFICATION_WEBHOOK_URL", "http://hooks.test/notify")
    monkeypatch.setattr(notifications, "SUPPORT_EMAIL", "help@gamebazaar.test")
    monkeypatch.setattr(notifications.requests, "post", fake_post)
    return state


def test_ticket_reaches_support_and_customer(client, webhook):
    response = client.post("/api/support/ticket", json=TICKET)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Support ticket submitted successfully. We will respond within 24 hours.",
    }
    to_support, to_customer = webhook["calls"]
    assert to_support["to"] == "help@gamebazaar.test"
    assert to_support["subject"] == "Support Ticket: Charged twice (Billing)"
    assert "Order number: ord-42" in to_support["message"]
    assert to_support["data"]["reply_to"] == "rafi@example.com"
    assert to_customer["to"] == "rafi@example.com"
    assert to_customer["subject"] == "Support Ticket Received - GameBazaar"


def test_ticket_without_order_number(client, webhook):
    ticket = dict(TICKET)
    del ticket["order_number"]

    assert client.post("/api/support/ticket", json=ticket).status_code == 200
    assert "Order number" not in webhook["calls"][0]["message"]


def test_contact_message(client, webhook):
    response = client.post("/api/support/contact", json=CONTACT)

    assert response.status_code == 200
    assert response.json()["message"] == "Your message has been sent successfully. We will get back to you soon!"
    assert webhook["calls"][0]["subject"] == "Contact Form: Partnership"
    assert webhook["calls"][0]["message"].startswith("From: Nadia Karim <nadia@example.com>")


@pytest.mark.parametrize(
    "url, payload",
    [
        ("/api/support/ticket", dict(TICKET, email="not-an-email")),
        ("/api/support/ticket", {key: value for key, value in TICKET.items() if key != "category"}),
        ("/api/support/ticket", dict(TICKET, description="")),
        ("/api/support/contact", dict(CONTACT, email="nadia@")),
        ("/api/support/contact", {key: value for key, value in CONTACT.items() if key != "last_name"}),
    ],
)
def test_invalid_submissions(client, webhook, url, payload):
    response = client.post(url, json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Validation Error"
    assert webhook["calls"] == []


def test_ticket_delivery_failure(client, webhook):
    webhook["fail_for"] = "help@gamebazaar.test"

    response = client.post("/api/support/ticket", json=TICKET)

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Failed to submit support ticket. Please try again.",
    }
    assert len(webhook["calls"]) == 1


def test_contact_delivery_failure(client, monkeypatch):
    def unreachable(url, json, timeout):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(notifications, "NOTIFICATION_WEBHOOK_URL", "http://hooks.test/notify")
    monkeypatch.setattr(notifications.requests, "post", unreachable)

    response = client.post("/api/support/contact", json=CONTACT)

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to send your message. Please try again."


def test_failed_confirmation_still_succeeds(client, webhook):
    webhook["fail_for"] = "rafi@example.com"

    response = client.post("/api/support/ticket", json=TICKET)

    assert response.status_code == 200
    assert len(webhook["calls"]) == 2

import logging
from datetime import datetime
from typing import Optional

import requests

from ..core.config import NOTIFICATION_TIMEOUT_SECONDS, NOTIFICATION_WEBHOOK_URL, SUPPORT_EMAIL

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "placed": (
        "Your order #{order_id} has been placed. "
        "We'll let you know as soon as your payment is confirmed."
    ),
    "pending": "Thank you for your payment! Your order #{order_id} is pending approval.",
    "processing": "Great news! Your order #{order_id} has been approved and is now being processed.",
    "shipped": (
        "Your order #{order_id} has been shipped! "
        "You can track your package with the provided tracking information."
    ),
    "delivered": "Your order #{order_id} has been delivered. Thank you for shopping with us!",
    "cancelled": (
        "We're sorry, but your order #{order_id} has been cancelled. "
        "Please contact customer support for more information."
    ),
}
DEFAULT_MESSAGE = "The status of your order #{order_id} has been updated to: {status}."


def build_order_message(order_id: str, status: str) -> tuple[str, str]:
    subject = f"Update on your order #{order_id}"
    template = STATUS_MESSAGES.get(status, DEFAULT_MESSAGE)
    return subject, template.format(order_id=order_id, status=status)


def send_notification(email: str, subject: str, message: str, data: Optional[dict] = None) -> None:
    logger.info("[NOTIFICATION EMAIL] To: %s, Subject: %s", email, subject)
    logger.debug("Message: %s", message)
    if not NOTIFICATION_WEBHOOK_URL:
        return
    response = requests.post(
        NOTIFICATION_WEBHOOK_URL,
        json={
            "type": "email",
            "to": email,
            "subject": subject,
            "message": message,
            "data": data or {},
            "sent_at": datetime.utcnow().isoformat(),
        },
        timeout=NOTIFICATION_TIMEOUT_SECONDS,
    )
    response.raise_for_status()


def send_order_status_notification(order: dict, status: str) -> bool:
    """Best effort notice about an order transition.

    Runs after the response has been sent. Failures are logged and reported
    through the return value only, the order itself is already committed.
    """
    order_id = order.get("id", "")
    try:
        user = order.get("user") or {}
        email = user.get("email")
        if not email:
            raise ValueError(f"order {order_id} has no customer email")
        subject, message = build_order_message(order_id, status)
        send_notification(email, subject, message, {"order": order_id, "status": status})
        return True
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Order notification for %s (%s) failed: %s", order_id, status, exc)
        return False
    except Exception:
        logger.exception("Unexpected error sending order notification for %s", order_id)
        return False


def _confirm_to_customer(email: str, subject: str, message: str) -> None:
    try:
        send_notification(email, subject, message)
    except requests.RequestException as exc:
        logger.warning("Confirmation to %s failed: %s", email, exc)


def send_support_ticket(ticket: dict) -> None:
    """Forward a ticket to the support inbox, then confirm to the customer.

    Raises ``requests.RequestException`` when the support copy cannot be
    delivered. A failed confirmation is only logged.
    """
    lines = [
        f"From: {ticket['name']} <{ticket['email']}>",
        f"Category: {ticket['category']}",
    ]
    if ticket.get("order_number"):
        lines.append(f"Order number: {ticket['order_number']}")
    lines += ["", ticket["description"]]
    send_notification(
        SUPPORT_EMAIL,
        f"Support Ticket: {ticket['subject']} ({ticket['category']})",
        "\n".join(lines),
        {"reply_to": ticket["email"], "order": ticket.get("order_number")},
    )
    _confirm_to_customer(
        ticket["email"],
        "Support Ticket Received - GameBazaar",
        f"Hi {ticket['name']}, we received your ticket \"{ticket['subject']}\" "
        "and will respond within 24 hours.",
    )


def send_contact_message(contact: dict) -> None:
    full_name = f"{contact['first_name']} {contact['last_name']}"
    send_notification(
        SUPPORT_EMAIL,
        f"Contact Form: {contact['subject']}",
        f"From: {full_name} <{contact['email']}>\n\n{contact['message']}",
        {"reply_to": contact["email"]},
    )
    _confirm_to_customer(
        contact["email"],
        "Thank you for contacting GameBazaar",
        f"Hi {contact['first_name']}, thanks for reaching out. We will get back to you soon!",
    )

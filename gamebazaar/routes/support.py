import logging

import requests
from fastapi import APIRouter, HTTPException

from ..schemas import ContactIn, SupportTicketIn
from ..services import notifications

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ticket")
def submit_ticket(payload: SupportTicketIn):
    try:
        notifications.send_support_ticket(payload.model_dump())
    except requests.RequestException as exc:
        logger.error("Support ticket from %s not delivered: %s", payload.email, exc)
        raise HTTPException(status_code=500, detail="Failed to submit support ticket. Please try again.")
    return {
        "success": True,
        "message": "Support ticket submitted successfully. We will respond within 24 hours.",
    }


@router.post("/contact")
def submit_contact(payload: ContactIn):
    try:
        notifications.send_contact_message(payload.model_dump())
    except requests.RequestException as exc:
        logger.error("Contact message from %s not delivered: %s", payload.email, exc)
        raise HTTPException(status_code=500, detail="Failed to send your message. Please try again.")
    return {
        "success": True,
        "message": "Your message has been sent successfully. We will get back to you soon!",
    }

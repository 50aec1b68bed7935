import logging

import stripe

from ..core.config import STRIPE_SECRET_KEY

logger = logging.getLogger(__name__)


class StripeService:
    def __init__(self) -> None:
        if STRIPE_SECRET_KEY:
            stripe.api_key = STRIPE_SECRET_KEY

    def enabled(self) -> bool:
        return bool(STRIPE_SECRET_KEY)

    def payment_succeeded(self, payment_intent_id: str) -> bool:
        if not STRIPE_SECRET_KEY:
            raise RuntimeError("Stripe is not configured")
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as exc:
            logger.warning("Stripe lookup for %s failed: %s", payment_intent_id, exc)
            return False
        return intent.status == "succeeded"


stripe_service = StripeService()

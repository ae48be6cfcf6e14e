# bodyid/integrations/payment_gateway.py
"""
Stripe Payment Gateway
Creates payment intents and verifies signed webhook events
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

import stripe
from fastapi import Request

from config.integrationsconfig import IntegrationSettings
from bodyid.helpers.errors import SignatureInvalid, UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


@dataclass
class PaymentEvent:
    """The parts of a processor event the payment recorder needs."""
    type: str
    intent_id: Optional[str] = None
    amount_minor: int = 0
    appointment_id: Optional[str] = None


class StripeGateway:
    """Thin wrapper over the Stripe SDK, configured per instance."""

    def __init__(self, secret_key: str, webhook_secret: str, currency: str = "usd"):
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self.currency = currency

    def create_intent(self, appointment_id: int, amount: float) -> str:
        """Create a payment intent for the appointment and return its client secret."""
        try:
            intent = stripe.PaymentIntent.create(
                amount=int(round(amount * 100)),  # minor units
                currency=self.currency,
                metadata={"appointment_id": str(appointment_id)},
                api_key=self._secret_key,
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe intent creation failed: {e}")
            raise UpstreamFailure(f"Payment processor error: {e.user_message or str(e)}")

        logger.info(f"✅ Payment intent {intent['id']} created for appointment {appointment_id}")
        return intent["client_secret"]

    def parse_event(self, payload: bytes, signature: Optional[str]) -> PaymentEvent:
        """Verify the webhook signature and extract the event fields."""
        if not signature:
            raise SignatureInvalid("Missing payment processor signature")
        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, self._webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
            event = json.loads(payload)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"❌ Webhook signature verification failed: {e}")
            raise SignatureInvalid(f"Webhook Error: {e}")

        try:
            event_type = event["type"]
            if event_type != PAYMENT_SUCCEEDED:
                return PaymentEvent(type=event_type)

            intent = event["data"]["object"]
            metadata = intent.get("metadata") or {}
            return PaymentEvent(
                type=event_type,
                intent_id=intent["id"],
                amount_minor=int(intent["amount"]),
                appointment_id=metadata.get("appointment_id"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"❌ Malformed payment event: {e!r}")
            raise ValidationError(f"Malformed payment event: missing or invalid {e}")


def build_payment_gateway(config: IntegrationSettings) -> Optional[StripeGateway]:
    if not config.payments_configured:
        logger.warning("⚠️ STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET not set - processor payments disabled")
        return None
    return StripeGateway(
        secret_key=config.STRIPE_SECRET_KEY,
        webhook_secret=config.STRIPE_WEBHOOK_SECRET,
        currency=config.STRIPE_CURRENCY,
    )


def get_payment_gateway(request: Request) -> Optional[StripeGateway]:
    return getattr(request.app.state, "payment_gateway", None)

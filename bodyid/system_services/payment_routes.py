# bodyid/system_services/payment_routes.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bodyid.database.connection import get_db
from bodyid.integrations.payment_gateway import StripeGateway, get_payment_gateway
from bodyid.system_models.appointment_model.appointment_schemas import AppointmentResponse
from bodyid.system_models.payment_model.payment_schemas import (
    PaymentIntentResponse,
    PaymentRequest,
    WebhookAck,
)
from bodyid.system_services.payment_services import create_payment_intent, fake_payment, handle_webhook
from bodyid.users.auth_dependencies import get_current_patient
from bodyid.users.user_models.user_model import User

router = APIRouter()


@router.post("/create-intent", response_model=PaymentIntentResponse)
async def create_intent_endpoint(
    payment: PaymentRequest,
    current_user: User = Depends(get_current_patient),
    gateway: Optional[StripeGateway] = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    """Start a processor payment and hand the client secret to the frontend."""
    client_secret = await create_payment_intent(db, gateway, payment.appointment_id, payment.amount, current_user)
    return PaymentIntentResponse(client_secret=client_secret)


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook_endpoint(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    gateway: Optional[StripeGateway] = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    # Signature is computed over the exact bytes, so read the raw body
    payload = await request.body()
    await handle_webhook(db, gateway, payload, stripe_signature)
    return WebhookAck()


@router.post("/fake-payment", response_model=AppointmentResponse)
async def fake_payment_endpoint(
    payment: PaymentRequest,
    current_user: User = Depends(get_current_patient),
    db: AsyncSession = Depends(get_db),
):
    """Demo-mode confirmation that skips the processor. Disabled in production."""
    return await fake_payment(db, payment.appointment_id, payment.amount, current_user)

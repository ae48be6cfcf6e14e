# bodyid/system_models/payment_model/payment_schemas.py
from pydantic import BaseModel


class PaymentRequest(BaseModel):
    appointment_id: int
    amount: float


class PaymentIntentResponse(BaseModel):
    client_secret: str


class WebhookAck(BaseModel):
    received: bool = True

import logging

from fastapi import APIRouter, Depends
from mongoengine.errors import NotUniqueError
from pydantic import BaseModel, Field

from app.models.base import utcnow
from app.models.payment import Payment
from app.models.user import User
from app.utils.config import settings
from app.utils.errors import InvalidInput
from app.services.auth import TokenClaims, get_current_claims, require_self
from app.services.coupons import find_active_coupon
from app.services.payments import PaymentProvider, apply_discount, get_payment_provider, validate_price


logger = logging.getLogger(__name__)

router = APIRouter()


class IntentBody(BaseModel):
    price: float
    coupon_code: str | None = None

@router.post("/intent")
def create_payment_intent(
    body: IntentBody,
    claims: TokenClaims = Depends(get_current_claims),
    provider: PaymentProvider = Depends(get_payment_provider),
) -> dict:
    """PROTECTED: Create a provider payment intent and return its client secret."""
    price = validate_price(body.price)
    if body.coupon_code:
        price = apply_discount(price, find_active_coupon(body.coupon_code).discount)
    intent = provider.create_intent(price)
    logger.info("Payment intent of %s %s created for %s", intent.amount, intent.currency, claims.email)
    return {"client_secret": intent.client_secret, "amount": intent.amount, "currency": intent.currency}


class PaymentBody(BaseModel):
    amount: float
    transaction_id: str = Field(min_length=1)
    coupon_code: str | None = None

@router.post("", status_code=201)
def record_payment(body: PaymentBody, claims: TokenClaims = Depends(get_current_claims)) -> dict:
    """PROTECTED: Record a completed payment and mark the caller as subscribed."""
    payment = Payment(
        email=claims.email,
        amount=validate_price(body.amount),
        currency=settings.payment_currency,
        transaction_id=body.transaction_id,
        coupon_code=body.coupon_code,
    )
    try:
        payment.save()
    except NotUniqueError:
        raise InvalidInput("Transaction already recorded")
    User.objects(email=claims.email.lower()).update_one(set__subscribed=True, set__updated_at=utcnow())
    return payment.to_dict()


@router.get("/{email}")
def list_my_payments(email: str, claims: TokenClaims = Depends(get_current_claims)) -> list[dict]:
    """PROTECTED | SELF: Payment history of the caller."""
    require_self(claims, email)
    return [p.to_dict() for p in Payment.objects(email=email.lower()).order_by("-timestamp")]

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from mongoengine.errors import NotUniqueError
from pydantic import BaseModel, Field

from app.models.base import parse_object_id
from app.models.coupon import Coupon
from app.utils.errors import InvalidInput, NotFound
from app.services.auth import TokenClaims, require_moderator
from app.services.coupons import find_active_coupon, list_active_coupons, normalize_code


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_coupons() -> list[dict]:
    """PUBLIC: Coupons that have not expired."""
    return [c.to_dict() for c in list_active_coupons()]


class ValidateBody(BaseModel):
    code: str

@router.post("/validate")
def validate_coupon(body: ValidateBody) -> dict:
    """PUBLIC: Resolve a coupon code to its discount."""
    coupon = find_active_coupon(body.code)
    return {"code": coupon.code, "discount": coupon.discount}


class CouponBody(BaseModel):
    code: str = Field(min_length=1)
    discount: int = Field(ge=1, le=100)
    description: str = ""
    expires_at: datetime

@router.post("", status_code=201)
def create_coupon(body: CouponBody, claims: TokenClaims = Depends(require_moderator)) -> dict:
    """MODERATOR: Create a coupon."""
    coupon = Coupon(
        code=normalize_code(body.code),
        discount=body.discount,
        description=body.description,
        expires_at=body.expires_at,
    )
    try:
        coupon.save()
    except NotUniqueError:
        raise InvalidInput("Coupon code already exists")
    logger.info("%s created coupon %s", claims.email, coupon.code)
    return coupon.to_dict()


class CouponUpdateBody(BaseModel):
    discount: int | None = Field(default=None, ge=1, le=100)
    description: str | None = None
    expires_at: datetime | None = None

@router.patch("/{coupon_id}", dependencies=[Depends(require_moderator)])
def update_coupon(coupon_id: str, body: CouponUpdateBody) -> dict:
    """MODERATOR: Change a coupon's discount, description or expiry."""
    coupon: Coupon | None = Coupon.objects(id=parse_object_id(coupon_id, "coupon id")).first()
    if not coupon:
        raise NotFound("Coupon not found")
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(coupon, field, value)
    coupon.save()
    return coupon.to_dict()


@router.delete("/{coupon_id}")
def delete_coupon(coupon_id: str, claims: TokenClaims = Depends(require_moderator)) -> dict:
    """MODERATOR: Remove a coupon."""
    deleted = Coupon.objects(id=parse_object_id(coupon_id, "coupon id")).delete()
    if not deleted:
        raise NotFound("Coupon not found")
    logger.info("%s deleted coupon %s", claims.email, coupon_id)
    return {"success": True}

from datetime import datetime, timezone

from app.models.coupon import Coupon
from app.utils.errors import NotFound


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_active(coupon: Coupon, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return bool(coupon.expires_at) and _as_utc(coupon.expires_at) >= now


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def find_active_coupon(code: str) -> Coupon:
    """Resolve an unexpired coupon by code; unknown and expired codes are both NotFound."""
    coupon: Coupon | None = Coupon.objects(code=normalize_code(code)).first()
    if not coupon or not is_active(coupon):
        raise NotFound("Coupon not found or expired")
    return coupon


def list_active_coupons() -> list[Coupon]:
    now = datetime.now(timezone.utc)
    return [c for c in Coupon.objects.order_by("expires_at") if is_active(c, now)]

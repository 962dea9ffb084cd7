import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr

from app.models.base import utcnow
from app.models.user import User
from app.utils.base import Role
from app.utils.errors import NotFound
from app.services.auth import TokenClaims, get_current_claims, require_admin, require_self


logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterBody(BaseModel):
    email: EmailStr
    name: str | None = None
    photo: str | None = None

@router.post("")
def register(body: RegisterBody) -> dict:
    """PUBLIC: Insert the user unless the email is already registered."""
    now = utcnow()
    result = User.objects(email=body.email.lower()).update_one(
        upsert=True,
        full_result=True,
        set_on_insert__name=body.name,
        set_on_insert__photo=body.photo,
        set_on_insert__role=Role.NONE.value,
        set_on_insert__subscribed=False,
        set_on_insert__created_at=now,
        set_on_insert__updated_at=now,
    )
    inserted = result.upserted_id is not None
    if inserted:
        logger.info("Registered user %s", body.email.lower())
    return {"inserted": inserted}


@router.get("", dependencies=[Depends(require_admin)])
def list_users() -> list[dict]:
    """ADMIN: List all users."""
    return [u.to_dict() for u in User.objects.order_by("email")]


@router.get("/{email}/role")
def get_role(email: str, claims: TokenClaims = Depends(get_current_claims)) -> dict:
    """PROTECTED | SELF: Role and subscription status of the caller."""
    require_self(claims, email)
    user: User | None = User.objects(email=email.lower()).first()
    if not user:
        raise NotFound("User not found")
    return {
        "email": user.email,
        "role": user.role,
        "admin": user.role == Role.ADMIN.value,
        "moderator": user.role == Role.MODERATOR.value,
        "subscribed": bool(user.subscribed),
    }


class RoleBody(BaseModel):
    role: Role

@router.patch("/{email}/role")
def set_role(email: str, body: RoleBody, claims: TokenClaims = Depends(require_admin)) -> dict:
    """ADMIN: Make a user moderator/admin (or revoke). Applies from their next token."""
    matched = User.objects(email=email.lower()).update_one(set__role=body.role.value, set__updated_at=utcnow())
    if not matched:
        raise NotFound("User not found")
    logger.info("%s set role of %s to %s", claims.email, email.lower(), body.role.value)
    return {"email": email.lower(), "role": body.role.value}

import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import APIKeyCookie
from jose import jwt, JWTError
from pydantic import BaseModel

from app.models.user import User
from app.utils.base import Role
from app.utils.config import settings
from app.utils.errors import Forbidden, InvalidCredential, Unauthenticated


logger = logging.getLogger(__name__)

cookie_scheme = APIKeyCookie(name=settings.token_cookie_name, auto_error=False)


class TokenClaims(BaseModel):
    """Identity snapshot carried by a session token.

    The role is frozen at issuance; a role change takes effect with the next token.
    """
    email: str
    name: str | None = None
    role: str = Role.NONE.value
    iat: int | None = None
    exp: int | None = None


def claims_for_user(user: User) -> TokenClaims:
    return TokenClaims(email=user.email, name=user.name, role=user.role or Role.NONE.value)


def issue_token(claims: TokenClaims, expires_delta: timedelta | None = None) -> str:
    """Sign the claims with an absolute expiry (session lifetime by default)."""
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.session_token_expires_hours)
    now = datetime.now(timezone.utc)
    payload = {
        "sub": claims.email,
        "email": claims.email,
        "name": claims.name,
        "role": claims.role,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "typ": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str | None) -> TokenClaims:
    """Check signature and expiry, returning the embedded claims."""
    if not token:
        raise Unauthenticated()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise InvalidCredential()

    email = payload.get("email") or payload.get("sub")
    if not email or payload.get("typ") != "access":
        raise InvalidCredential()
    return TokenClaims(
        email=email,
        name=payload.get("name"),
        role=payload.get("role") or Role.NONE.value,
        iat=payload.get("iat"),
        exp=payload.get("exp"),
    )


def get_current_claims(token: str | None = Depends(cookie_scheme)) -> TokenClaims:
    """Auth dependency: requires a valid session cookie."""
    return verify_token(token)


def require_self(claims: TokenClaims, target_email: str) -> None:
    """Only the identity itself may query its ownership/role data, whatever its role."""
    if claims.email.strip().lower() != (target_email or "").strip().lower():
        logger.warning("Denied %s access to data of %s", claims.email, target_email)
        raise Forbidden()


def has_role(claims: TokenClaims, *roles: Role, fresh: bool = False) -> bool:
    """Check role membership from the token, or from the stored user when ``fresh``."""
    allowed = {role.value for role in roles}
    if not fresh:
        return claims.role in allowed
    user: User | None = User.objects(email=claims.email.lower()).first()
    return bool(user and user.role in allowed)


def require_role(*roles: Role, fresh: bool = False):
    """Return a FastAPI dependency admitting only the given roles.

    With ``fresh`` the stored role is consulted so that claims frozen in an
    older token cannot authorize irrevocable actions.
    """

    def _dependency(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
        if not has_role(claims, *roles, fresh=fresh):
            logger.warning("Denied %s (role=%s): requires %s", claims.email, claims.role,
                           ", ".join(role.value for role in roles))
            raise Forbidden()
        return claims

    return _dependency


require_moderator = require_role(Role.MODERATOR, Role.ADMIN)
require_admin = require_role(Role.ADMIN, fresh=True)

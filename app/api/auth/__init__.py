from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, EmailStr

from app.models.user import User
from app.utils.config import settings
from app.utils.errors import NotFound
from app.services.auth import TokenClaims, claims_for_user, get_current_claims, issue_token


router = APIRouter()


class SessionBody(BaseModel):
    email: EmailStr

@router.post("/jwt")
def create_session(body: SessionBody, response: Response) -> dict:
    """PUBLIC: Issue a session token for a registered user and store it in the cookie.

    The caller is not authenticated here. The email is trusted as already
    verified by the external identity provider, so in deployment this route must
    only be reachable through that provider's sign-in flow (for example behind
    the gateway that completes it). Fresh role checks guard against demoted
    users, not against someone who can reach this route with another's email.
    """
    # Role comes from the stored user, never from the request
    user: User | None = User.objects(email=body.email.lower()).first()
    if not user:
        raise NotFound("User not registered")

    token = issue_token(claims_for_user(user))
    response.set_cookie(
        key=settings.token_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.session_token_expires_hours * 3600,
    )
    return {"success": True}


@router.post("/logout")
def logout(response: Response) -> dict:
    """PUBLIC: Clear the session cookie. The token itself stays valid until it expires."""
    response.delete_cookie(
        key=settings.token_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return {"success": True}


@router.get("/me")
def whoami(claims: TokenClaims = Depends(get_current_claims)) -> dict:
    """PROTECTED: Return the claims of the current session."""
    return claims.model_dump()

from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.utils.base import Role
from app.utils.config import settings
from app.utils.errors import Forbidden
from app.services.auth import TokenClaims, get_current_claims, has_role, require_moderator, require_self
from app.services.products import ProductLifecycleStore, get_product_store
from app.services.rate_limit import limit_route
from app.services.voting import VotingLedger, get_voting_ledger


router = APIRouter()

vote_limit = limit_route(settings.vote_rate_limit_seconds)


class ProductBody(BaseModel):
    name: str = Field(min_length=1)
    image: str | None = None
    description: str = ""
    external_link: str | None = None
    tags: list[str] = Field(default_factory=list)
    owner_image: str | None = None

@router.post("", status_code=201)
def submit_product(
    body: ProductBody,
    claims: TokenClaims = Depends(get_current_claims),
    store: ProductLifecycleStore = Depends(get_product_store),
) -> dict:
    """PROTECTED: Submit a product; it stays pending until a moderator decides."""
    product = store.submit(
        body.model_dump(exclude={"owner_image"}),
        owner_email=claims.email,
        owner_name=claims.name,
        owner_image=body.owner_image,
    )
    return product.to_dict()


@router.get("")
def list_products(
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort: Literal["recent", "votes"] = "recent",
    store: ProductLifecycleStore = Depends(get_product_store),
) -> dict:
    """PUBLIC: Accepted products, optionally searched by tag, newest (or most voted) first."""
    products = store.list_public(search=search, page=page, page_size=page_size, sort=sort)
    return {
        "products": [p.to_dict() for p in products],
        "total": store.count_public(search),
        "page": page,
        "page_size": page_size,
    }


@router.get("/owned/{email}")
def list_my_products(
    email: str,
    claims: TokenClaims = Depends(get_current_claims),
    store: ProductLifecycleStore = Depends(get_product_store),
) -> list[dict]:
    """PROTECTED | SELF: All products submitted by the caller, any status."""
    require_self(claims, email)
    return [p.to_dict() for p in store.list_owned(email)]


@router.get("/moderation", dependencies=[Depends(require_moderator)])
def list_for_moderation(
    status: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    store: ProductLifecycleStore = Depends(get_product_store),
) -> list[dict]:
    """MODERATOR: Every product regardless of status."""
    return [p.to_dict() for p in store.list_all(page=page, page_size=page_size, status=status)]


@router.get("/reported", dependencies=[Depends(require_moderator)])
def list_reported(store: ProductLifecycleStore = Depends(get_product_store)) -> list[dict]:
    """MODERATOR: Products flagged by a report."""
    return [p.to_dict() for p in store.list_reported()]


@router.get("/{product_id}")
def get_product(product_id: str, store: ProductLifecycleStore = Depends(get_product_store)) -> dict:
    """PUBLIC: A single product by id."""
    return store.get(product_id).to_dict()


class ProductUpdateBody(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    image: str | None = None
    description: str | None = None
    external_link: str | None = None
    tags: list[str] | None = None

@router.patch("/{product_id}")
def update_product(
    product_id: str,
    body: ProductUpdateBody,
    claims: TokenClaims = Depends(get_current_claims),
    store: ProductLifecycleStore = Depends(get_product_store),
) -> dict:
    """PROTECTED | OWNER: Edit product content. Status, votes and owner are not editable."""
    product = store.update(product_id, body.model_dump(exclude_unset=True), owner_email=claims.email)
    return product.to_dict()


class StatusBody(BaseModel):
    status: str

@router.patch("/{product_id}/status", dependencies=[Depends(require_moderator)])
def set_product_status(
    product_id: str,
    body: StatusBody,
    store: ProductLifecycleStore = Depends(get_product_store),
) -> dict:
    """MODERATOR: Accept or reject a product."""
    store.set_status(product_id, body.status)
    return {"success": True, "status": body.status}


@router.post("/{product_id}/report", dependencies=[Depends(vote_limit)])
def report_product(
    product_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    store: ProductLifecycleStore = Depends(get_product_store),
) -> dict:
    """PROTECTED | RATE-LIMITED: Flag a product for moderator attention."""
    store.report(product_id)
    return {"success": True}


def upvote_precondition(
    product_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    ledger: VotingLedger = Depends(get_voting_ledger),
) -> None:
    ledger.check_upvote(product_id, claims.email)


def unvote_precondition(
    product_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    ledger: VotingLedger = Depends(get_voting_ledger),
) -> None:
    ledger.check_unvote(product_id, claims.email)


# Ledger errors (NotFound, AlreadyVoted, NotVoted) take precedence over the rate limit
@router.post("/{product_id}/upvote", dependencies=[Depends(upvote_precondition), Depends(vote_limit)])
def upvote_product(
    product_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    ledger: VotingLedger = Depends(get_voting_ledger),
) -> dict:
    """PROTECTED | RATE-LIMITED: Vote for a product once."""
    ledger.upvote(product_id, claims.email)
    return {"success": True}


@router.post("/{product_id}/unvote", dependencies=[Depends(unvote_precondition), Depends(vote_limit)])
def unvote_product(
    product_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    ledger: VotingLedger = Depends(get_voting_ledger),
) -> dict:
    """PROTECTED | RATE-LIMITED: Withdraw the caller's vote and return the product."""
    return ledger.unvote(product_id, claims.email).to_dict()


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    store: ProductLifecycleStore = Depends(get_product_store),
) -> dict:
    """PROTECTED: Owners delete their own products; moderators delete any."""
    product = store.get(product_id)
    is_owner = product.owner_email.lower() == claims.email.lower()
    # Deletion is irreversible, so moderator rights are checked against the stored role
    if not is_owner and not has_role(claims, Role.MODERATOR, Role.ADMIN, fresh=True):
        raise Forbidden()
    store.delete(product_id)
    return {"success": True}

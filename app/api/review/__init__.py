from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.models.review import Review
from app.utils.config import settings
from app.services.auth import TokenClaims, get_current_claims
from app.services.products import ProductLifecycleStore, get_product_store
from app.services.rate_limit import limit_route


router = APIRouter()


class ReviewBody(BaseModel):
    product_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    reviewer_image: str | None = None

@router.post("", status_code=201, dependencies=[Depends(limit_route(settings.review_rate_limit_seconds))])
def create_review(
    body: ReviewBody,
    claims: TokenClaims = Depends(get_current_claims),
    store: ProductLifecycleStore = Depends(get_product_store),
) -> dict:
    """PROTECTED | RATE-LIMITED: Post a review on an existing product."""
    product = store.get(body.product_id)
    review = Review(
        product=product,
        reviewer_email=claims.email,
        reviewer_name=claims.name,
        reviewer_image=body.reviewer_image,
        rating=body.rating,
        comment=body.comment,
    )
    review.save()
    return review.to_dict()


@router.get("/{product_id}")
def list_reviews(product_id: str, store: ProductLifecycleStore = Depends(get_product_store)) -> list[dict]:
    """PUBLIC: Reviews of a product, newest first."""
    product = store.get(product_id)
    return [r.to_dict() for r in Review.objects(product=product).order_by("-timestamp")]

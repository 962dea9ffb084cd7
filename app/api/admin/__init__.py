from fastapi import APIRouter, Depends

from app.models.product import Product
from app.models.review import Review
from app.models.user import User
from app.utils.base import ProductStatus
from app.services.auth import require_admin, require_moderator
from app.services.scheduler import get_queue
from app.services.vote_reconciliation import reconcile_vote_counts


router = APIRouter()


@router.get("/stats", dependencies=[Depends(require_moderator)])
def stats() -> dict:
    """MODERATOR: Site-wide counters."""
    by_status = {status: Product.objects(status=status).count() for status in ProductStatus.values()}
    return {
        "products": sum(by_status.values()),
        "products_by_status": by_status,
        "reported": Product.objects(reported=True).count(),
        "users": User.objects.count(),
        "reviews": Review.objects.count(),
    }


@router.post("/reconcile-votes", dependencies=[Depends(require_admin)])
def enqueue_vote_reconciliation() -> dict:
    """ADMIN: Queue an immediate vote_count consistency repair."""
    job = get_queue().enqueue(reconcile_vote_counts)
    return {"job_id": job.id}

"""Product lifecycle: submission, moderation status, reports, listings and deletion.

Status moves from ``pending`` to ``accepted`` or ``rejected`` through a single
moderation action. Any target in that pair is accepted from any current state;
the ``reported`` flag is independent of status.
"""
import logging
import re
from typing import Type

from mongoengine.errors import OperationError, ValidationError
from pymongo.errors import PyMongoError

from app.models.base import parse_object_id, utcnow
from app.models.product import Product
from app.models.review import Review
from app.utils.base import ProductStatus
from app.utils.errors import Forbidden, InvalidInput, InvalidStatus, NotFound, StorageError


logger = logging.getLogger(__name__)

HIDDEN_STATUSES = [ProductStatus.PENDING.value, ProductStatus.REJECTED.value]
MODERATION_STATUSES = {ProductStatus.ACCEPTED.value, ProductStatus.REJECTED.value}
EDITABLE_FIELDS = ("name", "image", "description", "external_link", "tags")

SORT_ORDERS = {
    "recent": ("-timestamp",),
    "votes": ("-vote_count", "-timestamp"),
}


def _tag_filter(search: str) -> dict:
    return {"tags": {"$regex": re.escape(search.strip()), "$options": "i"}}


def _offset(page: int, page_size: int) -> int:
    if page < 1 or page_size < 1:
        raise InvalidInput("page and page_size must be positive")
    return (page - 1) * page_size


class ProductLifecycleStore:
    """Owns the product status field and its transitions."""

    def __init__(self, document: Type[Product] = Product, reviews: Type[Review] = Review):
        self.document = document
        self.reviews = reviews

    def submit(self, data: dict, owner_email: str, owner_name: str | None = None,
               owner_image: str | None = None) -> Product:
        content = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        product = self.document(
            **content,
            owner_email=owner_email.lower(),
            owner_name=owner_name,
            owner_image=owner_image,
            status=ProductStatus.PENDING.value,
            votes=[],
            vote_count=0,
            reported=False,
            timestamp=utcnow(),
        )
        try:
            product.save()
        except ValidationError as exc:
            raise InvalidInput(str(exc))
        except (OperationError, PyMongoError) as exc:
            raise StorageError(f"Could not store product: {exc}")
        logger.info("Product %s submitted by %s", product.id, owner_email)
        return product

    def get(self, product_id: str) -> Product:
        product = self.document.objects(id=parse_object_id(product_id, "product id")).first()
        if not product:
            raise NotFound("Product not found")
        return product

    def update(self, product_id: str, fields: dict, owner_email: str) -> Product:
        product = self.get(product_id)
        if product.owner_email.lower() != owner_email.lower():
            raise Forbidden("Only the owner can edit this product")
        changes = {f"set__{k}": v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        if not changes:
            return product
        self.document.objects(id=product.id).update_one(set__updated_at=utcnow(), **changes)
        product.reload()
        return product

    def set_status(self, product_id: str, new_status: str) -> None:
        if new_status not in MODERATION_STATUSES:
            raise InvalidStatus()
        oid = parse_object_id(product_id, "product id")
        matched = self.document.objects(id=oid).update_one(set__status=new_status, set__updated_at=utcnow())
        if not matched:
            raise NotFound("Product not found")
        logger.info("Product %s status set to %s", oid, new_status)

    def report(self, product_id: str) -> None:
        oid = parse_object_id(product_id, "product id")
        matched = self.document.objects(id=oid).update_one(set__reported=True, set__updated_at=utcnow())
        if not matched:
            raise NotFound("Product not found")
        logger.info("Product %s reported", oid)

    def list_public(self, search: str | None = None, page: int = 1, page_size: int = 6,
                    sort: str = "recent") -> list[Product]:
        if sort not in SORT_ORDERS:
            raise InvalidInput(f"Unknown sort order: {sort}")
        offset = _offset(page, page_size)
        queryset = self._public(search).order_by(*SORT_ORDERS[sort]).skip(offset).limit(page_size)
        return list(queryset)

    def count_public(self, search: str | None = None) -> int:
        return self._public(search).count()

    def list_all(self, page: int = 1, page_size: int = 20, status: str | None = None) -> list[Product]:
        queryset = self.document.objects
        if status:
            if status not in ProductStatus.values():
                raise InvalidStatus(f"Unknown status: {status}")
            queryset = queryset(status=status)
        offset = _offset(page, page_size)
        return list(queryset.order_by("-timestamp").skip(offset).limit(page_size))

    def list_reported(self) -> list[Product]:
        return list(self.document.objects(reported=True).order_by("-timestamp"))

    def list_owned(self, owner_email: str) -> list[Product]:
        return list(self.document.objects(owner_email=owner_email.lower()).order_by("-timestamp"))

    def delete(self, product_id: str) -> None:
        oid = parse_object_id(product_id, "product id")
        self.reviews.objects(product=oid).delete()
        deleted = self.document.objects(id=oid).delete()
        if not deleted:
            raise NotFound("Product not found")
        logger.info("Product %s deleted", oid)

    def _public(self, search: str | None):
        queryset = self.document.objects(status__nin=HIDDEN_STATUSES)
        if search and search.strip():
            queryset = queryset.filter(__raw__=_tag_filter(search))
        return queryset


def get_product_store() -> ProductLifecycleStore:
    return ProductLifecycleStore()

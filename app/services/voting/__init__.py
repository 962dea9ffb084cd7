"""Voting ledger.

Each product stores its voters (``votes``) and a denormalized ``vote_count``
used for cheap reads and sorting. Both are changed only by one conditional
single-document update, so concurrent voters can never leave the counter out
of step with the set. When the conditional update matches nothing, a second
lookup tells a missing product apart from a violated ledger precondition.
"""
import logging
from typing import Type

from app.models.base import parse_object_id, utcnow
from app.models.product import Product
from app.utils.errors import AlreadyVoted, NotFound, NotVoted


logger = logging.getLogger(__name__)


class VotingLedger:

    def __init__(self, document: Type[Product] = Product):
        self.document = document

    def upvote(self, product_id: str, voter: str) -> None:
        oid = parse_object_id(product_id, "product id")
        updated = self.document.objects(id=oid, votes__ne=voter).update_one(
            push__votes=voter,
            inc__vote_count=1,
            set__updated_at=utcnow(),
        )
        if updated:
            logger.debug("%s upvoted %s", voter, oid)
            return
        if not self._exists(oid):
            raise NotFound("Product not found")
        raise AlreadyVoted()

    def unvote(self, product_id: str, voter: str) -> Product:
        oid = parse_object_id(product_id, "product id")
        updated = self.document.objects(id=oid, votes=voter).update_one(
            pull__votes=voter,
            dec__vote_count=1,
            set__updated_at=utcnow(),
        )
        product = self.document.objects(id=oid).first()
        if updated and product is not None:
            logger.debug("%s removed vote from %s", voter, oid)
            return product
        if product is None:
            raise NotFound("Product not found")
        raise NotVoted()

    def check_upvote(self, product_id: str, voter: str) -> None:
        """Raise the error ``upvote`` would raise right now, without writing."""
        oid = parse_object_id(product_id, "product id")
        if not self._exists(oid):
            raise NotFound("Product not found")
        if self.document.objects(id=oid, votes=voter).count():
            raise AlreadyVoted()

    def check_unvote(self, product_id: str, voter: str) -> None:
        oid = parse_object_id(product_id, "product id")
        if not self._exists(oid):
            raise NotFound("Product not found")
        if not self.document.objects(id=oid, votes=voter).count():
            raise NotVoted()

    def has_voted(self, product_id: str, voter: str) -> bool:
        oid = parse_object_id(product_id, "product id")
        return self.document.objects(id=oid, votes=voter).count() > 0

    def _exists(self, oid) -> bool:
        return self.document.objects(id=oid).count() > 0


def get_voting_ledger() -> VotingLedger:
    return VotingLedger()

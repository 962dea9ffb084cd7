"""Tests for VotingLedger and the vote_count reconciliation job."""

import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.models.product import Product
from app.services.products import ProductLifecycleStore
from app.services.vote_reconciliation import reconcile_vote_counts
from app.services.voting import VotingLedger
from app.utils.errors import AlreadyVoted, InvalidInput, NotFound, NotVoted


MISSING_ID = "0123456789abcdef01234567"


@pytest.fixture
def ledger() -> VotingLedger:
    return VotingLedger()


@pytest.fixture
def product_id() -> str:
    product = ProductLifecycleStore().submit({"name": "Widget"}, owner_email="owner@example.com")
    return str(product.id)


def _state(product_id: str) -> tuple[list[str], int]:
    product = Product.objects(id=product_id).first()
    return list(product.votes), product.vote_count


class TestUpvote:
    def test_first_vote_counts(self, ledger: VotingLedger, product_id: str) -> None:
        ledger.upvote(product_id, "v@example.com")
        assert _state(product_id) == (["v@example.com"], 1)
        assert ledger.has_voted(product_id, "v@example.com")

    def test_second_vote_rejected_and_state_unchanged(self, ledger: VotingLedger, product_id: str) -> None:
        ledger.upvote(product_id, "v@example.com")
        before = _state(product_id)
        with pytest.raises(AlreadyVoted):
            ledger.upvote(product_id, "v@example.com")
        assert _state(product_id) == before

    def test_unknown_product(self, ledger: VotingLedger) -> None:
        with pytest.raises(NotFound):
            ledger.upvote(MISSING_ID, "v@example.com")

    def test_malformed_id(self, ledger: VotingLedger) -> None:
        with pytest.raises(InvalidInput):
            ledger.upvote("abc", "v@example.com")


class TestUnvote:
    def test_unvote_returns_updated_product(self, ledger: VotingLedger, product_id: str) -> None:
        ledger.upvote(product_id, "a@example.com")
        ledger.upvote(product_id, "b@example.com")
        product = ledger.unvote(product_id, "a@example.com")
        assert product.votes == ["b@example.com"]
        assert product.vote_count == 1

    def test_not_voted_leaves_state_unchanged(self, ledger: VotingLedger, product_id: str) -> None:
        ledger.upvote(product_id, "a@example.com")
        before = _state(product_id)
        with pytest.raises(NotVoted):
            ledger.unvote(product_id, "b@example.com")
        assert _state(product_id) == before

    def test_unknown_product(self, ledger: VotingLedger) -> None:
        with pytest.raises(NotFound):
            ledger.unvote(MISSING_ID, "v@example.com")

    def test_vote_unvote_unvote_scenario(self, ledger: VotingLedger, product_id: str) -> None:
        ledger.upvote(product_id, "v@example.com")
        assert _state(product_id)[1] == 1
        ledger.unvote(product_id, "v@example.com")
        assert _state(product_id)[1] == 0
        with pytest.raises(NotVoted):
            ledger.unvote(product_id, "v@example.com")
        assert _state(product_id) == ([], 0)


class TestPreconditionChecks:
    def test_check_upvote(self, ledger: VotingLedger, product_id: str) -> None:
        ledger.check_upvote(product_id, "v@example.com")
        ledger.upvote(product_id, "v@example.com")
        with pytest.raises(AlreadyVoted):
            ledger.check_upvote(product_id, "v@example.com")
        with pytest.raises(NotFound):
            ledger.check_upvote(MISSING_ID, "v@example.com")
        assert _state(product_id) == (["v@example.com"], 1)

    def test_check_unvote(self, ledger: VotingLedger, product_id: str) -> None:
        with pytest.raises(NotVoted):
            ledger.check_unvote(product_id, "v@example.com")
        ledger.upvote(product_id, "v@example.com")
        ledger.check_unvote(product_id, "v@example.com")
        with pytest.raises(NotFound):
            ledger.check_unvote(MISSING_ID, "v@example.com")


class TestCounterConsistency:
    def test_random_sequences_keep_count_equal_to_voters(self, ledger: VotingLedger, product_id: str) -> None:
        rng = random.Random(7)
        voters = [f"user{i}@example.com" for i in range(6)]
        present: set[str] = set()
        for _ in range(80):
            voter = rng.choice(voters)
            if rng.random() < 0.5:
                if voter in present:
                    with pytest.raises(AlreadyVoted):
                        ledger.upvote(product_id, voter)
                else:
                    ledger.upvote(product_id, voter)
                    present.add(voter)
            else:
                if voter in present:
                    ledger.unvote(product_id, voter)
                    present.discard(voter)
                else:
                    with pytest.raises(NotVoted):
                        ledger.unvote(product_id, voter)
            votes, count = _state(product_id)
            assert count == len(votes) == len(present)
            assert set(votes) == present
        # Nothing for the background job to repair
        assert reconcile_vote_counts() == 0

    def test_concurrent_distinct_voters(self, ledger: VotingLedger, product_id: str) -> None:
        voters = [f"user{i}@example.com" for i in range(16)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda voter: ledger.upvote(product_id, voter), voters))
        votes, count = _state(product_id)
        assert sorted(votes) == sorted(voters)
        assert count == len(voters)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda voter: ledger.unvote(product_id, voter), voters[::2]))
        votes, count = _state(product_id)
        assert sorted(votes) == sorted(voters[1::2])
        assert count == len(votes)


class TestReconciliation:
    def test_repairs_drifted_counters(self, ledger: VotingLedger, product_id: str) -> None:
        ledger.upvote(product_id, "a@example.com")
        ledger.upvote(product_id, "b@example.com")
        Product.objects(id=product_id).update_one(set__vote_count=7)
        healthy = ProductLifecycleStore().submit({"name": "Healthy"}, owner_email="owner@example.com")

        assert reconcile_vote_counts() == 1
        assert _state(product_id)[1] == 2
        assert Product.objects(id=healthy.id).first().vote_count == 0
        assert reconcile_vote_counts() == 0

    def test_small_batches(self, product_id: str) -> None:
        store = ProductLifecycleStore()
        ids = [product_id] + [str(store.submit({"name": f"P{i}"}, owner_email="o@example.com").id) for i in range(4)]
        for pid in ids:
            Product.objects(id=pid).update_one(set__vote_count=3)
        assert reconcile_vote_counts(batch_size=2) == 5
        assert all(p.vote_count == 0 for p in Product.objects)

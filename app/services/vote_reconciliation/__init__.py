import logging

from pymongo import UpdateOne

from app.models.product import Product


logger = logging.getLogger(__name__)


def reconcile_vote_counts(batch_size: int = 1000) -> int:
    """Rewrite ``vote_count`` to ``len(votes)`` wherever the two disagree.

    Streams a projection of every product and batches the repairs. Returns the
    number of products fixed; zero is the expected steady state.
    """
    coll = Product._get_collection()

    ops: list[UpdateOne] = []
    repaired = 0
    for doc in coll.find({}, {"votes": 1, "vote_count": 1}):
        counted = len(doc.get("votes") or [])
        if int(doc.get("vote_count") or 0) == counted:
            continue
        # Only overwrite if the voter set is unchanged since it was measured
        ops.append(UpdateOne(
            {"_id": doc["_id"], "votes": {"$size": counted}},
            {"$set": {"vote_count": counted}},
        ))
        repaired += 1
        if len(ops) >= batch_size:
            coll.bulk_write(ops, ordered=False)
            ops.clear()
    if ops:
        coll.bulk_write(ops, ordered=False)
        ops.clear()

    if repaired:
        logger.warning("Repaired vote_count on %d product(s)", repaired)
    return repaired

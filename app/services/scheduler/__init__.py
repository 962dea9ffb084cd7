from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from rq import Queue
from rq_scheduler import Scheduler
from redis import Redis

from app.connections.redis import get_redis
from app.services.vote_reconciliation import reconcile_vote_counts
from app.utils.config import settings


logger = logging.getLogger(__name__)

QUEUE_NAME = "maintenance"
VOTE_RECONCILE_JOB_ID = "reconcile-vote-counts"


def _redis_conn() -> Redis:
    return get_redis()


def get_scheduler() -> Scheduler:
    return Scheduler(queue_name=QUEUE_NAME, connection=_redis_conn())


def get_queue() -> Queue:
    return Queue(name=QUEUE_NAME, connection=_redis_conn())


def schedule_every(interval_seconds: int, func: Callable, job_id: str, *args, **kwargs) -> None:
    """Register a repeating job, replacing any earlier registration under ``job_id``."""
    sched = get_scheduler()
    if job_id in sched:
        sched.cancel(job_id)
    sched.schedule(
        scheduled_time=datetime.now(timezone.utc),
        func=func,
        args=args,
        kwargs=kwargs,
        interval=interval_seconds,
        repeat=None,
        id=job_id,
    )


def schedule_vote_reconciliation() -> None:
    interval = settings.vote_reconcile_interval_seconds
    if interval <= 0:
        logger.info("Vote reconciliation disabled")
        return
    schedule_every(interval, reconcile_vote_counts, VOTE_RECONCILE_JOB_ID)
    logger.info("Vote reconciliation scheduled every %ss", interval)

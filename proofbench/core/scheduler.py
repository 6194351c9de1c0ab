from typing import Any, Awaitable, Callable

from apscheduler.jobstores.base import ConflictingIdError, JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

scheduler = AsyncIOScheduler()


def schedule_interval_job(
    func: Callable[..., Awaitable[Any]],
    seconds: float,
    job_id: str,
    target: Any = None,
    **kwargs: Any,
) -> None:
    """Register `func` every `seconds` under `job_id` (one running instance at a time)."""
    target = target or scheduler
    try:
        target.add_job(
            func,  # pass the function, do not call it
            trigger=IntervalTrigger(seconds=seconds),
            id=job_id,
            kwargs=kwargs,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
    except ConflictingIdError:
        logger.warning(f"⚠ {job_id} existed")


def cancel_job(job_id: str, target: Any = None) -> bool:
    target = target or scheduler
    try:
        target.remove_job(job_id)
        return True
    except JobLookupError:
        return False


def start_scheduler() -> None:
    if not scheduler.running:
        scheduler.start()
    logger.info("🔔 Scheduler started")


def shutdown_scheduler() -> None:
    try:
        if scheduler.running:
            scheduler.shutdown(wait=False)
        logger.info("🛑 Scheduler stopped")
    except Exception as e:
        logger.error(f"⚠ Scheduler shutdown error: {e}")

"""Periodic watch-progress persistence for one (user, video) viewing session.

The tracker does not know how playback advances. Position and duration come
from a ``PlayerAdapter``. Over the watch WebSocket that is a
``ReportedPositionPlayer`` fed by the client's own player.
"""
import uuid
from typing import Any, Awaitable, Callable, Optional, Protocol

from loguru import logger

from proofbench.core.enum import ProgressState
from proofbench.core.scheduler import cancel_job, schedule_interval_job
from proofbench.core.settings import settings
from proofbench.db.session import AsyncSessionLocal
from proofbench.libs.formats.duration import (
    compute_watch_percentage,
    normalize_watch_percentage,
    should_mark_complete,
)
from proofbench.schemas.user.learning import UpdateVideoProgress
from proofbench.services.user.progress import ProgressService

PersistFn = Callable[[float, int, bool], Awaitable[Any]]
EventFn = Callable[[dict], Awaitable[Any]]


class PlayerAdapter(Protocol):
    async def get_position(self) -> Optional[float]: ...

    async def get_duration(self) -> Optional[float]: ...


class ReportedPositionPlayer:
    """Holds the last position / duration the client reported."""

    def __init__(self, position: float = 0.0, duration: Optional[float] = None):
        self.position = position
        self.duration = duration

    def report(self, position: Optional[float], duration: Optional[float] = None):
        if position is not None and position >= 0:
            self.position = float(position)
        if duration:
            self.duration = float(duration)

    async def get_position(self) -> Optional[float]:
        return self.position

    async def get_duration(self) -> Optional[float]:
        return self.duration


class VideoProgressTracker:
    def __init__(
        self,
        user_id: uuid.UUID,
        video_id: uuid.UUID,
        player: PlayerAdapter,
        persist: PersistFn,
        *,
        duration: Optional[float] = None,
        initial: Optional[dict] = None,
        threshold: int = settings.COMPLETION_THRESHOLD,
        interval_seconds: float = settings.PROGRESS_SAVE_INTERVAL_SECONDS,
        on_saved: Optional[EventFn] = None,
        on_complete: Optional[EventFn] = None,
    ):
        self.user_id = user_id
        self.video_id = video_id
        self.player = player
        self.persist = persist
        self.duration = duration
        self.threshold = threshold
        self.interval_seconds = interval_seconds
        self.on_saved = on_saved
        self.on_complete = on_complete

        # last values known to be stored
        initial = initial or {}
        self.has_record = bool(initial)
        self.recorded_percentage = int(initial.get("watch_percentage") or 0)
        self.completed = bool(initial.get("completed"))
        self._scheduler = None
        # one timer per viewing session, even for the same (user, video)
        self.session_id = uuid.uuid4().hex

    @property
    def job_id(self) -> str:
        return f"video_progress_{self.user_id}_{self.video_id}_{self.session_id}"

    @property
    def state(self) -> ProgressState:
        if self.completed:
            return ProgressState.COMPLETED
        if self.has_record:
            return ProgressState.IN_PROGRESS
        return ProgressState.UNTOUCHED

    async def _current_percentage(self, position: float) -> int:
        duration = await self.player.get_duration() or self.duration
        percentage = compute_watch_percentage(position, duration)
        # unknown duration: keep what we had
        return self.recorded_percentage if percentage is None else percentage

    async def tick(self) -> Optional[dict]:
        """Timer body: save only when the percentage moved forward."""
        try:
            position = await self.player.get_position()
            if position is None:
                return None
            percentage = await self._current_percentage(position)
        except Exception:
            logger.exception(f"❌ Cannot read player state ({self.job_id})")
            return None

        if percentage <= self.recorded_percentage:
            return None
        return await self.save(position, percentage)

    async def save(
        self, position: float, percentage: float, force_complete: bool = False
    ) -> Optional[dict]:
        """Persist (position, percentage). Failures are logged and dropped."""
        percentage = normalize_watch_percentage(percentage)
        completed = (
            self.completed
            or force_complete
            or should_mark_complete(percentage, self.threshold)
        )

        try:
            await self.persist(position, percentage, completed)
        except Exception:
            logger.exception(f"❌ Progress save failed ({self.job_id})")
            return None

        self.has_record = True
        self.recorded_percentage = max(self.recorded_percentage, percentage)
        just_completed = completed and not self.completed
        self.completed = completed

        event = {
            "type": "progress_saved",
            "video_id": str(self.video_id),
            "position": position,
            "watch_percentage": percentage,
            "completed": completed,
        }
        await self._emit(self.on_saved, event)
        if just_completed or force_complete:
            await self._emit(
                self.on_complete,
                {"type": "video_completed", "video_id": str(self.video_id)},
            )
        return event

    async def mark_complete(self) -> Optional[dict]:
        return await self.save(0, 100, force_complete=True)

    async def _emit(self, callback: Optional[EventFn], event: dict) -> None:
        if callback is None:
            return
        try:
            await callback(event)
        except Exception as e:
            logger.warning(f"⚠️ Progress event not delivered ({self.job_id}): {e}")

    def start(self, target: Any = None) -> None:
        self._scheduler = target
        schedule_interval_job(
            self.tick, self.interval_seconds, self.job_id, target=target
        )
        logger.info(f"▶️ Tracking {self.job_id} every {self.interval_seconds}s")

    async def stop(self) -> Optional[dict]:
        """Cancel the timer, then one last save attempt."""
        cancel_job(self.job_id, target=self._scheduler)
        logger.info(f"⏹️ Stopped tracking {self.job_id}")
        return await self.tick()


def make_progress_persister(user_id: uuid.UUID, video_id: uuid.UUID) -> PersistFn:
    """Persist callback for trackers running outside a request (own session)."""

    async def persist(position: float, percentage: int, completed: bool):
        async with AsyncSessionLocal() as db:
            return await ProgressService(db).update_video_progress_async(
                video_id,
                user_id,
                UpdateVideoProgress(
                    last_position=position,
                    watch_percentage=percentage,
                    completed=completed,
                ),
            )

    return persist

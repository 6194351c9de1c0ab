import math
from datetime import datetime
from typing import Iterable, Optional

from proofbench.libs.formats.datetime import now as get_now


def format_duration(seconds: Optional[float]) -> str:
    """Seconds → "H:MM:SS", or "M:SS" when there is no hour part.
    Zero, negative or missing input gives "0:00".
    """
    if not seconds or seconds < 0:
        return "0:00"

    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_duration(text: str) -> int:
    """ "MM:SS" or "HH:MM:SS" → seconds. Any other shape gives 0."""
    if not text:
        return 0

    try:
        parts = [int(p) for p in text.strip().split(":")]
    except ValueError:
        return 0

    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    return 0


def normalize_watch_percentage(percentage: float) -> int:
    """Round and clamp to [0, 100]. Every stored percentage goes through here."""
    if percentage is None or math.isnan(percentage):
        return 0
    # half up, not round()'s half-to-even
    rounded = math.floor(percentage + 0.5)
    return max(0, min(100, int(rounded)))


def should_mark_complete(watch_percentage: float, threshold: int = 95) -> bool:
    return watch_percentage >= threshold


def compute_watch_percentage(
    position: float, duration: Optional[float]
) -> Optional[int]:
    """Percentage of `duration` covered by `position`; None if duration is unknown."""
    if not duration or duration <= 0:
        return None
    return normalize_watch_percentage(max(0.0, position) / duration * 100)


def calculate_total_duration(durations: Iterable[Optional[int]]) -> int:
    return sum(d or 0 for d in durations)


def calculate_progress_percentage(completed: int, total: int) -> int:
    if total == 0:
        return 0
    return normalize_watch_percentage(completed / total * 100)


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'} ago"


def format_relative_time(
    dt: Optional[datetime], reference: Optional[datetime] = None
) -> str:
    """ "Just now", "3 minutes ago", "2 weeks ago"... ; None → "Never"."""
    if dt is None:
        return "Never"

    reference = reference or get_now()
    diff_seconds = int((reference - dt).total_seconds())
    diff_minutes = diff_seconds // 60
    diff_hours = diff_minutes // 60
    diff_days = diff_hours // 24

    if diff_seconds < 60:
        return "Just now"
    if diff_minutes < 60:
        return _plural(diff_minutes, "minute")
    if diff_hours < 24:
        return _plural(diff_hours, "hour")
    if diff_days < 7:
        return _plural(diff_days, "day")
    if diff_days < 30:
        return _plural(diff_days // 7, "week")
    if diff_days < 365:
        return _plural(diff_days // 30, "month")
    return _plural(diff_days // 365, "year")

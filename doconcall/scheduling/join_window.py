import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from doconcall.core import config

MS_PER_MINUTE = 60 * 1000


@dataclass(frozen=True)
class JoinDecision:
    allowed: bool
    ms_until_start: int
    reason: str | None = None


def default_window() -> timedelta:
    return timedelta(minutes=config.JOIN_WINDOW_MINUTES)


def can_join(now: datetime, slot_start: datetime, window: timedelta | None = None) -> JoinDecision:
    """Decide whether ``now`` lies within ``window`` of ``slot_start`` on either side.

    Pure: appointment status and participants are the caller's concern.
    """
    window = default_window() if window is None else window
    ms_until_start = int((slot_start - now) / timedelta(milliseconds=1))
    window_ms = int(window / timedelta(milliseconds=1))

    if abs(ms_until_start) <= window_ms:
        return JoinDecision(allowed=True, ms_until_start=ms_until_start)

    if ms_until_start > window_ms:
        minutes_until_start = math.ceil(ms_until_start / MS_PER_MINUTE)
        return JoinDecision(
            allowed=False,
            ms_until_start=ms_until_start,
            reason=f'Consultation starts in {minutes_until_start} minutes. Please wait.',
        )

    return JoinDecision(
        allowed=False,
        ms_until_start=ms_until_start,
        reason='This consultation has already ended.',
    )


def _plural(count: int, unit: str) -> str:
    return f'{count} {unit}{"" if count == 1 else "s"}'


def format_time_until_start(ms_until_start: int) -> str:
    minutes = math.ceil(ms_until_start / MS_PER_MINUTE)

    if minutes < 60:
        return _plural(minutes, 'minute')

    hours, remaining_minutes = divmod(minutes, 60)
    if remaining_minutes == 0:
        return _plural(hours, 'hour')

    return f'{_plural(hours, "hour")} {_plural(remaining_minutes, "minute")}'

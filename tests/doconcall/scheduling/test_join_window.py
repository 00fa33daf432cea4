from datetime import datetime, timedelta

import pytest

from doconcall.scheduling.join_window import can_join, format_time_until_start

SLOT_START = datetime(2025, 1, 6, 9, 0)
FIVE_MINUTES = timedelta(minutes=5)


@pytest.mark.parametrize(
    'offset',
    [-FIVE_MINUTES, timedelta(minutes=-1), timedelta(0), timedelta(minutes=3), FIVE_MINUTES],
)
def test_join_allowed_inside_window(offset: timedelta) -> None:
    decision = can_join(SLOT_START + offset, SLOT_START, FIVE_MINUTES)

    assert decision.allowed
    assert decision.reason is None
    assert decision.ms_until_start == -int(offset.total_seconds() * 1000)


def test_join_before_window_reports_minutes_rounded_up() -> None:
    decision = can_join(SLOT_START - FIVE_MINUTES - timedelta(milliseconds=1), SLOT_START, FIVE_MINUTES)

    assert not decision.allowed
    assert decision.reason == 'Consultation starts in 6 minutes. Please wait.'
    assert decision.ms_until_start == 300_001


def test_join_long_before_window() -> None:
    decision = can_join(SLOT_START - timedelta(minutes=30), SLOT_START, FIVE_MINUTES)

    assert not decision.allowed
    assert decision.reason == 'Consultation starts in 30 minutes. Please wait.'


def test_join_after_window_reports_ended() -> None:
    decision = can_join(SLOT_START + FIVE_MINUTES + timedelta(seconds=1), SLOT_START, FIVE_MINUTES)

    assert not decision.allowed
    assert decision.reason == 'This consultation has already ended.'
    assert decision.ms_until_start == -301_000


def test_join_window_defaults_to_configured_width(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('doconcall.core.config.JOIN_WINDOW_MINUTES', 10)

    assert can_join(SLOT_START - timedelta(minutes=9), SLOT_START).allowed
    assert not can_join(SLOT_START + timedelta(minutes=11), SLOT_START).allowed


@pytest.mark.parametrize(
    ('ms_until_start', 'expected'),
    [
        (60_000, '1 minute'),
        (61_000, '2 minutes'),
        (45 * 60_000, '45 minutes'),
        (60 * 60_000, '1 hour'),
        (120 * 60_000, '2 hours'),
        (90 * 60_000, '1 hour 30 minutes'),
        (121 * 60_000, '2 hours 1 minute'),
    ],
)
def test_format_time_until_start(ms_until_start: int, expected: str) -> None:
    assert format_time_until_start(ms_until_start) == expected

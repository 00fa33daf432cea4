"""Expansion of recurring availability into discrete slot candidates."""

import logging
import re
from datetime import date, datetime, time, timedelta

from doconcall.core import config
from doconcall.scheduling.errors import InvalidTimeRange, SlotInPast
from doconcall.scheduling.types import RecurringSlotConfig, SlotInput

logger = logging.getLogger(__name__)

CLOCK_TIME_PATTERN = re.compile(r'^([0-1][0-9]|2[0-3]):[0-5][0-9]$')


def parse_clock_time(value: str) -> time:
    if not CLOCK_TIME_PATTERN.match(value or ''):
        raise InvalidTimeRange(f'Time must be in HH:MM format (24-hour), got {value!r}.')
    hour, minute = value.split(':')
    return time(int(hour), int(minute))


def weekday_number(day: date) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return (day.weekday() + 1) % 7


def validate_recurring_config(recurring: RecurringSlotConfig) -> tuple[time, time]:
    if recurring.start_date > recurring.end_date:
        raise InvalidTimeRange('Start date must be before or equal to end date.')

    start_time = parse_clock_time(recurring.start_time)
    end_time = parse_clock_time(recurring.end_time)
    if start_time >= end_time:
        raise InvalidTimeRange('End time must be after start time.')

    if not recurring.days_of_week:
        raise InvalidTimeRange('At least one day of week must be selected.')
    if any(day not in range(7) for day in recurring.days_of_week):
        raise InvalidTimeRange('Days of week must be between 0 (Sunday) and 6 (Saturday).')

    if not (
        config.MIN_SLOT_DURATION_MINUTES
        <= recurring.duration_minutes
        <= config.MAX_SLOT_DURATION_MINUTES
    ):
        raise InvalidTimeRange(
            f'Duration must be between {config.MIN_SLOT_DURATION_MINUTES} '
            f'and {config.MAX_SLOT_DURATION_MINUTES} minutes.'
        )

    return start_time, end_time


def validate_slot_input(slot_input: SlotInput, now: datetime) -> None:
    if slot_input.start >= slot_input.end:
        raise InvalidTimeRange()
    if slot_input.end - slot_input.start > timedelta(minutes=config.MAX_SLOT_DURATION_MINUTES):
        raise InvalidTimeRange(
            f'Slot duration cannot exceed {config.MAX_SLOT_DURATION_MINUTES} minutes.'
        )
    if slot_input.start <= now:
        raise SlotInPast('Cannot create slots in the past.')


def iterate_day_slots(day: date, start_time: time, end_time: time, duration: timedelta):
    current_start = datetime.combine(day, start_time)
    day_end = datetime.combine(day, end_time)

    while current_start + duration <= day_end:
        yield SlotInput(start=current_start, end=current_start + duration)
        current_start += duration


def generate(recurring: RecurringSlotConfig, now: datetime) -> tuple[list[SlotInput], int]:
    """Return the future candidates of ``recurring`` and the number dropped.

    Trailing remainders shorter than the duration are never emitted and are
    not counted. Candidates starting at or before ``now`` are dropped and
    counted as rejected.
    """
    start_time, end_time = validate_recurring_config(recurring)
    duration = timedelta(minutes=recurring.duration_minutes)

    slots: list[SlotInput] = []
    rejected = 0
    current_day = recurring.start_date

    while current_day <= recurring.end_date:
        if weekday_number(current_day) in recurring.days_of_week:
            for candidate in iterate_day_slots(current_day, start_time, end_time, duration):
                try:
                    validate_slot_input(candidate, now)
                except (InvalidTimeRange, SlotInPast):
                    rejected += 1
                    continue
                slots.append(candidate)

        current_day += timedelta(days=1)

    if rejected:
        logger.warning('Dropped %s past slot candidates between %s and %s', rejected, recurring.start_date, recurring.end_date)

    return slots, rejected

"""Drum status classification (Active / DueSoon / Overdue).

Classification is evaluated against the wall clock every time it is needed
and is never stored: a drum becomes overdue simply by time passing.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import date, datetime

from drum_returns.config import settings

SECONDS_PER_DAY = 86400


class DrumCategory(str, enum.Enum):
    ACTIVE = "Active"
    DUE_SOON = "DueSoon"
    OVERDUE = "Overdue"


@dataclass(frozen=True)
class DrumClassification:
    category: DrumCategory
    days_until_due: int | None
    days_overdue: int
    days_in_possession: int | None


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime(value.year, value.month, value.day)


def ceil_days(later: date | datetime, earlier: date | datetime) -> int:
    """ceil((later - earlier) / 1 day); dates count as midnight."""
    delta = _as_datetime(later) - _as_datetime(earlier)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def classify_drum(
    due_date: date | None,
    now: date | datetime,
    reference: date | None = None,
    due_soon_days: int | None = None,
) -> DrumClassification:
    """Classify a drum by its due date.

    Order of checks: overdue (< 0 days left), due soon (0..threshold days
    left), active. A drum without a due date is active. Possession days are
    reported as computed, negative values included.
    """
    threshold = settings.due_soon_threshold_days if due_soon_days is None else due_soon_days
    days_in_possession = ceil_days(now, reference) if reference is not None else None

    if due_date is None:
        return DrumClassification(
            category=DrumCategory.ACTIVE,
            days_until_due=None,
            days_overdue=0,
            days_in_possession=days_in_possession,
        )

    days_until_due = ceil_days(due_date, now)
    if days_until_due < 0:
        category = DrumCategory.OVERDUE
    elif days_until_due <= threshold:
        category = DrumCategory.DUE_SOON
    else:
        category = DrumCategory.ACTIVE

    return DrumClassification(
        category=category,
        days_until_due=days_until_due,
        days_overdue=abs(days_until_due) if days_until_due < 0 else 0,
        days_in_possession=days_in_possession,
    )

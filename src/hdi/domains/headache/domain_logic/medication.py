"""Medication usage counts and overuse levels."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal

from hdi.domains.headache.domain_logic.models import HeadacheEvent, MedicationEntry

OveruseLevel = Literal["severe", "moderate", "mild"]

SEVERE_MONTHLY_DOSES = 10
MODERATE_WEEKLY_DOSES = 3
MILD_MONTHLY_DOSES = 6
HIGH_MONTHLY_DOSE_MG = 15000.0


@dataclass
class MedicationUsage:
    """Doses counted over the trailing 7 and 30 days."""

    last_7_days: int = 0
    last_30_days: int = 0
    dose_mg_30_days: float = 0.0

    @property
    def overuse_level(self) -> OveruseLevel | None:
        if self.last_30_days > SEVERE_MONTHLY_DOSES:
            return "severe"
        if self.last_7_days > MODERATE_WEEKLY_DOSES:
            return "moderate"
        if self.last_30_days > MILD_MONTHLY_DOSES:
            return "mild"
        return None

    @property
    def high_dose(self) -> bool:
        return self.dose_mg_30_days > HIGH_MONTHLY_DOSE_MG


def medication_usage(
    events: Sequence[HeadacheEvent],
    as_of: date,
    history: Iterable[MedicationEntry] = (),
) -> MedicationUsage:
    """Count doses taken within the trailing windows ending on ``as_of``.

    Entries appearing both on an event and in ``history`` are counted once.
    """
    seen: set[tuple] = set()
    entries: list[MedicationEntry] = []
    for entry in [m for e in events for m in e.medications] + list(history):
        key = (entry.time, entry.substance)
        if key in seen:
            continue
        seen.add(key)
        entries.append(entry)

    week_start = as_of - timedelta(days=7)
    month_start = as_of - timedelta(days=30)
    usage = MedicationUsage()
    for entry in entries:
        day = entry.time.date()
        if day > as_of or day < month_start:
            continue
        usage.last_30_days += 1
        usage.dose_mg_30_days += entry.dose_mg
        if day >= week_start:
            usage.last_7_days += 1
    return usage

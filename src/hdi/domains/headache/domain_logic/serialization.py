"""JSON conversion for analysis results and tool payloads."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from typing import Any

from hdi.domains.headache.domain_logic.models import (
    HEALTH_METRICS,
    MedicationEntry,
    WeatherFeatures,
)


def to_jsonable(obj: Any, ndigits: int = 4) -> Any:
    """Recursively convert dataclasses, dates and sets into JSON-safe values."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_jsonable(getattr(obj, f.name), ndigits)
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, float):
        return round(obj, ndigits)
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v, ndigits) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return sorted(to_jsonable(v, ndigits) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v, ndigits) for v in obj]
    return obj


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError(f"Invalid date {value!r}; expected ISO 8601 (YYYY-MM-DD)") from None


def parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid timestamp {value!r}; expected ISO 8601") from None


def parse_weather(data: dict[str, Any]) -> WeatherFeatures:
    """Build WeatherFeatures from a plain dict; temperature, humidity and pressure are required."""
    missing = [k for k in ("temperature", "humidity", "pressure") if k not in data]
    if missing:
        raise ValueError(f"Weather is missing required field(s): {', '.join(missing)}")
    known = {f.name for f in dataclasses.fields(WeatherFeatures)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown weather field(s): {', '.join(unknown)}")
    values = {k: (v if k == "condition" else float(v)) for k, v in data.items()}
    return WeatherFeatures(**values)


def parse_health(data: dict[str, Any]) -> dict[str, float]:
    unknown = sorted(set(data) - set(HEALTH_METRICS))
    if unknown:
        raise ValueError(f"Unknown health metric(s): {', '.join(unknown)}")
    return {k: float(v) for k, v in data.items()}


def parse_medication(data: dict[str, Any]) -> MedicationEntry:
    if "time" not in data or "substance" not in data:
        raise ValueError("Medication entries need 'time' and 'substance'")
    relief_time = data.get("relief_time")
    return MedicationEntry(
        time=parse_datetime(data["time"]),
        substance=str(data["substance"]),
        dose_mg=float(data.get("dose_mg", 0.0)),
        relief_achieved=bool(data.get("relief_achieved", False)),
        relief_time=parse_datetime(relief_time) if relief_time else None,
    )

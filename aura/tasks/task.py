"""
AgentTask — the core data model.

An AgentTask describes what to ask the assistant, how often, and its
current state. Tasks serialize to plain dicts so the whole collection can
be stored as one JSON document.

Times are device-local and naive. Timestamps written by other clients
with a UTC offset (e.g. "2025-01-06T09:00:00.000Z") are converted to local
time on load.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from aura.core.errors import TaskValidationError


class Schedule(str, Enum):
    """How often a task recurs."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: "str | Schedule") -> "Schedule":
        if isinstance(value, Schedule):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise TaskValidationError(
                f"Unknown schedule: {value!r} (expected daily, weekly or monthly)",
                field="schedule",
            ) from None


_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def parse_time(value: str) -> tuple[int, int]:
    """
    Parse a time of day into (hour, minute).

    Accepts "HH:MM" (24h) and "HH:MM AM" / "HH:MM PM" (12h).
    Raises TaskValidationError for anything else.
    """
    m = _TIME_RE.match(value or "")
    if not m:
        raise TaskValidationError(f"Invalid time: {value!r}", field="time")
    hour, minute = int(m.group(1)), int(m.group(2))
    meridiem = (m.group(3) or "").upper()
    if meridiem:
        if not 1 <= hour <= 12:
            raise TaskValidationError(f"Invalid time: {value!r}", field="time")
        if meridiem == "PM" and hour != 12:
            hour += 12
        elif meridiem == "AM" and hour == 12:
            hour = 0
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise TaskValidationError(f"Invalid time: {value!r}", field="time")
    return hour, minute


def normalize_time(value: str) -> str:
    """Return the canonical "HH:MM" form of a time of day."""
    hour, minute = parse_time(value)
    return f"{hour:02d}:{minute:02d}"


def new_task_id() -> str:
    return uuid.uuid4().hex[:12]


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp into naive local time."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


# Creation time assumed for old records that carry no other clue
LEGACY_CREATED_AT = datetime(2000, 1, 1)


def _legacy_created_at(d: dict) -> datetime:
    """
    A stable creation time for records written before createdAt existed.

    Older clients used the millisecond timestamp of creation as the id;
    failing that, the last run is the earliest known instant. The value
    must not depend on when the record is loaded, or the task would never
    become due and its weekly/monthly anchor would drift.
    """
    raw_id = str(d.get("id", ""))
    if raw_id.isdigit() and 12 <= len(raw_id) <= 13:
        try:
            return datetime.fromtimestamp(int(raw_id) / 1000).replace(microsecond=0)
        except (OverflowError, OSError, ValueError):
            pass
    return parse_timestamp(d.get("lastRun")) or LEGACY_CREATED_AT


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class AgentTask:
    """A recurring automated request."""

    task_name: str
    instructions: str
    schedule: Schedule
    time: str                 # "HH:MM", device-local

    id: str = field(default_factory=new_task_id)
    is_search: bool = False   # True = web search, False = chat
    enabled: bool = True
    last_run: datetime | None = None
    created_at: datetime = field(default_factory=_now)
    enabled_at: datetime | None = None  # last disabled → enabled switch

    @property
    def hour(self) -> int:
        return parse_time(self.time)[0]

    @property
    def minute(self) -> int:
        return parse_time(self.time)[1]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "taskName": self.task_name,
            "instructions": self.instructions,
            "schedule": self.schedule.value,
            "time": self.time,
            "isSearch": self.is_search,
            "enabled": self.enabled,
            "lastRun": _format_timestamp(self.last_run),
            "createdAt": _format_timestamp(self.created_at),
            "enabledAt": _format_timestamp(self.enabled_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "AgentTask":
        return cls(
            id=str(d["id"]),
            task_name=d["taskName"],
            instructions=d.get("instructions", ""),
            schedule=Schedule.parse(d["schedule"]),
            time=normalize_time(d["time"]),
            is_search=bool(d.get("isSearch", False)),  # absent on old records
            enabled=bool(d.get("enabled", True)),
            last_run=parse_timestamp(d.get("lastRun")),
            created_at=parse_timestamp(d.get("createdAt")) or _legacy_created_at(d),
            enabled_at=parse_timestamp(d.get("enabledAt")),
        )

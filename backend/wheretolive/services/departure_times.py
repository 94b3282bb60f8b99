"""Departure slots ("mon 12:00") and their next local occurrence."""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from wheretolive.services.errors import ConfigurationError

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

_SLOT_RE = re.compile(r"^\s*([a-zA-Z]{3})\s+(\d{1,2}):(\d{2})\s*$")


@dataclass(frozen=True)
class DepartureSlot:
    """A weekly departure time: weekday (0=Monday) plus local hour and minute."""
    weekday: int
    hour: int
    minute: int

    @classmethod
    def parse(cls, text: str) -> "DepartureSlot":
        m = _SLOT_RE.match(text or "")
        if not m:
            raise ConfigurationError(f"Invalid departure slot {text!r}, expected e.g. 'mon 07:00'")
        day, hour, minute = m.group(1).lower(), int(m.group(2)), int(m.group(3))
        if day not in WEEKDAYS:
            raise ConfigurationError(f"Unknown weekday in departure slot {text!r}")
        if hour > 23 or minute > 59:
            raise ConfigurationError(f"Time out of range in departure slot {text!r}")
        return cls(weekday=WEEKDAYS.index(day), hour=hour, minute=minute)

    def __str__(self) -> str:
        return f"{WEEKDAYS[self.weekday]} {self.hour:02d}:{self.minute:02d}"


def next_weekday(today: date, weekday: int) -> date:
    """The first date strictly after `today` falling on `weekday`."""
    days_ahead = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days_ahead)


def next_occurrence(slot: DepartureSlot, tz: tzinfo, now: datetime | None = None) -> datetime:
    """Timezone-aware instant of the slot's next occurrence in `tz`."""
    local_now = (now or datetime.now(tz)).astimezone(tz)
    day = next_weekday(local_now.date(), slot.weekday)
    return datetime.combine(day, time(slot.hour, slot.minute), tzinfo=tz)

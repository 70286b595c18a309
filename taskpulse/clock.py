"""Wall-clock helpers: resolve a local time-of-day in a named zone to epoch ms."""

from __future__ import annotations

import zoneinfo
from datetime import UTC, datetime, timedelta


def _zone(tz_name: str) -> zoneinfo.ZoneInfo:
    return zoneinfo.ZoneInfo(tz_name)


def local_date(now_ms: int, tz_name: str) -> tuple[int, int, int]:
    """Calendar date ``(year, month, day)`` in *tz_name* at instant *now_ms*."""
    local = datetime.fromtimestamp(now_ms / 1000, tz=_zone(tz_name))
    return local.year, local.month, local.day


def utc_offset_at(instant: datetime, tz_name: str) -> timedelta:
    """UTC offset of *tz_name* at *instant* (aware)."""
    return instant.astimezone(_zone(tz_name)).utcoffset() or timedelta(0)


def resolve_target_ms(now_ms: int, tz_name: str, hour: int, minute: int) -> int:
    """Epoch ms of today's ``hour:minute`` in *tz_name*.

    "Today" is the local calendar date in *tz_name* at *now_ms*.  The wall
    time is first read as UTC, then shifted by the zone's offset on that
    date, so daylight-saving changes are picked up.
    """
    year, month, day = local_date(now_ms, tz_name)
    wall_utc = datetime(year, month, day, hour, minute, tzinfo=UTC)
    target = wall_utc - utc_offset_at(wall_utc, tz_name)
    return int(target.timestamp() * 1000)


def format_local(instant_ms: int, tz_name: str, fmt: str = "%Y-%m-%d %H:%M %Z") -> str:
    return datetime.fromtimestamp(instant_ms / 1000, tz=_zone(tz_name)).strftime(fmt)


def date_label(now_ms: int, tz_name: str) -> str:
    """Human-readable local date, e.g. ``"Oct 19, 2026"``."""
    local = datetime.fromtimestamp(now_ms / 1000, tz=_zone(tz_name))
    return f"{local:%b} {local.day}, {local.year}"

"""Inclusive period filtering of normalized events."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Optional

import pandas as pd

from .normalization import NormalizedEvent, parse_event_time


LOGGER = logging.getLogger("shopreport.filtering")


def _coerce_bound(value: Any) -> Optional[pd.Timestamp]:
    if value is None or value == "":
        return None
    ts = parse_event_time(value)
    if pd.isna(ts):
        raise ValueError(f"Unable to read period bound {value!r} as a timestamp")
    return ts


@dataclass(frozen=True)
class PeriodFilter:
    """Inclusive ``[start, end]`` window; a missing bound leaves that side open."""

    start: Optional[pd.Timestamp] = None
    end: Optional[pd.Timestamp] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _coerce_bound(self.start))
        object.__setattr__(self, "end", _coerce_bound(self.end))

    @classmethod
    def from_mapping(cls, filter_input: Optional[Mapping[str, Any]]) -> "PeriodFilter":
        """Build from ``{"period": {"start": ..., "end": ...}}``."""

        period = (filter_input or {}).get("period") or {}
        return cls(start=period.get("start"), end=period.get("end"))

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def includes(self, event: NormalizedEvent) -> bool:
        # NaT never compares true, so unreadable timestamps pass through
        if self.start is not None and event.event_time < self.start:
            return False
        if self.end is not None and event.event_time > self.end:
            return False
        return True


def include(event: NormalizedEvent, period_filter: Optional[PeriodFilter] = None) -> bool:
    """Return True when ``event`` falls inside ``period_filter``."""

    if period_filter is None:
        return True
    return period_filter.includes(event)


def filter_events(
    events: Iterable[NormalizedEvent], period_filter: Optional[PeriodFilter] = None
) -> Iterator[NormalizedEvent]:
    kept = 0
    dropped = 0
    for event in events:
        if include(event, period_filter):
            kept += 1
            yield event
        else:
            dropped += 1
    LOGGER.debug("Period filter kept %d events and dropped %d", kept, dropped)

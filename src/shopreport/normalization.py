"""Validation and normalization of raw shop event records.

Raw records come out of :mod:`shopreport.parsing` as plain string maps. This
module checks that the shop event layout is present, coerces prices and
timestamps, and derives the three-level category hierarchy used by the
aggregation stage.

Layout validation is sample based: only the first ``sample_size`` records are
inspected for the required field names, so a field that disappears further
down the file goes unnoticed. Pass ``strict=True`` to scan every record
instead.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import PriceCoercionError, ValidationError


LOGGER = logging.getLogger("shopreport.normalization")

REQUIRED_FIELDS: Tuple[str, ...] = (
    "brand",
    "category_code",
    "event_time",
    "event_type",
    "price",
    "product_id",
    "user_id",
    "user_session",
)
DEFAULT_SAMPLE_SIZE = 3
NONE_LABEL = "_none"
CATEGORY_DEPTH = 3
EVENT_TYPES = ("view", "cart", "purchase")

_WHITESPACE = re.compile(r"\s")
_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_RADIX_NUMBER = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_INFINITY = re.compile(r"^([+-]?)Infinity$")


@dataclass(frozen=True)
class NormalizedEvent:
    """Typed shop event ready for filtering and aggregation."""

    brand: str
    category_code: Optional[str]
    category_code_lv0: str
    category_code_lv1: str
    category_code_lv2: str
    event_time: pd.Timestamp
    event_type: Optional[str]
    price: float
    product_id: Optional[str]
    user_id: Optional[str]
    user_session: Optional[str]

    @property
    def is_purchase(self) -> bool:
        return self.event_type == "purchase"


def validate_required_fields(
    records: Sequence[Mapping[str, object]],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    strict: bool = False,
) -> None:
    """Ensure every required field name appears in the inspected records.

    A field only has to be present as a key; an empty or ``None`` value is
    accepted. Scanning stops as soon as every field has been seen.
    """

    if not records:
        return
    inspected = records if strict else records[:sample_size]
    missing = list(REQUIRED_FIELDS)
    for record in inspected:
        missing = [name for name in missing if name not in record]
        if not missing:
            break

    if missing:
        LOGGER.warning("Layout validation failed; missing fields: %s", missing)
        raise ValidationError(missing)
    LOGGER.debug("Layout validation passed on %d inspected records", len(inspected))


def coerce_price(value: object, strict: bool = False) -> float:
    """Convert a raw price such as ``"1 200,50"`` into a float.

    Whitespace is removed and the first decimal comma becomes a point. An empty
    string reads as ``0.0``; ``Infinity`` and unsigned ``0x``/``0o``/``0b``
    literals are accepted. Anything else that is not a number yields NaN,
    or raises :class:`PriceCoercionError` when ``strict`` is set.
    """

    if value is None:
        if strict:
            raise PriceCoercionError("Price value is missing")
        return np.nan
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    cleaned = _WHITESPACE.sub("", str(value)).replace(",", ".", 1)
    if cleaned == "":
        return 0.0
    if _RADIX_NUMBER.match(cleaned):
        return float(int(cleaned, 0))
    infinity = _INFINITY.match(cleaned)
    if infinity:
        return -np.inf if infinity.group(1) == "-" else np.inf
    if not _NUMBER.match(cleaned):
        if strict:
            raise PriceCoercionError(f"Price value {value!r} is not a number")
        return np.nan
    return float(cleaned)


def parse_event_time(value: object) -> pd.Timestamp:
    """Return a tz-naive UTC timestamp, or ``NaT`` when the value is unreadable."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return pd.NaT
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return pd.NaT
    ts = pd.Timestamp(ts)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def split_category_levels(category_code: Optional[str]) -> Tuple[str, str, str]:
    """Return the first three dot-separated levels of a category code.

    Levels the code does not reach become ``"_none"``; an absent or empty code
    gives ``("_none", "_none", "_none")``.
    """

    parts: List[str] = category_code.split(".") if category_code else []
    parts = parts[:CATEGORY_DEPTH] + [NONE_LABEL] * (CATEGORY_DEPTH - len(parts))
    return parts[0], parts[1], parts[2]


def normalize_event(record: Mapping[str, Optional[str]], strict_prices: bool = False) -> NormalizedEvent:
    category_code = record.get("category_code")
    lv0, lv1, lv2 = split_category_levels(category_code)
    return NormalizedEvent(
        brand=record.get("brand") or NONE_LABEL,
        category_code=category_code,
        category_code_lv0=lv0,
        category_code_lv1=lv1,
        category_code_lv2=lv2,
        event_time=parse_event_time(record.get("event_time")),
        event_type=record.get("event_type"),
        price=coerce_price(record.get("price"), strict=strict_prices),
        product_id=record.get("product_id"),
        user_id=record.get("user_id"),
        user_session=record.get("user_session"),
    )


def normalize_events(
    records: Sequence[Mapping[str, Optional[str]]],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    strict: bool = False,
    strict_prices: bool = False,
) -> List[NormalizedEvent]:
    """Validate the record layout and normalize every record."""

    validate_required_fields(records, sample_size=sample_size, strict=strict)
    events = [normalize_event(record, strict_prices=strict_prices) for record in records]

    malformed = sum(1 for event in events if math.isnan(event.price))
    if malformed:
        LOGGER.warning("%d of %d records carry a price that is not a number", malformed, len(events))
    return events


def count_event_types(events: Iterable[NormalizedEvent]) -> pd.Series:
    """Tally events by type, used for run summaries."""

    counts = pd.Series([event.event_type for event in events], dtype="object").value_counts()
    return counts.reindex(list(EVENT_TYPES), fill_value=0)

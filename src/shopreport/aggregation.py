"""Single-pass purchase aggregation by category and brand.

Every observed group gets an entry, but only ``purchase`` events move its
numbers. The average is recomputed on each purchase so a :class:`GroupStats`
is consistent after every update, not just at the end of the pass.

A price that failed numeric coercion (NaN) is added like any other value and
therefore turns that group's total and average into NaN for the rest of the
pass. Use strict price mode in :mod:`shopreport.normalization` to reject such
records instead.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable

import pandas as pd

from .normalization import NormalizedEvent


LOGGER = logging.getLogger("shopreport.aggregation")

DIMENSIONS = ("category", "brand")
STATS_COLUMNS = ["key", "count", "total_price", "avg_price"]


@dataclass
class GroupStats:
    count: int = 0
    total_price: float = 0.0
    avg_price: float = 0.0

    def add_purchase(self, price: float) -> None:
        self.count += 1
        self.total_price += price
        self.avg_price = self.total_price / self.count


@dataclass
class AggregationResult:
    """Per-group purchase statistics; categories are keyed by their top level."""

    categories: Dict[str, GroupStats] = field(default_factory=dict)
    brands: Dict[str, GroupStats] = field(default_factory=dict)

    def dimension(self, name: str) -> Dict[str, GroupStats]:
        if name == "category":
            return self.categories
        if name == "brand":
            return self.brands
        raise ValueError(f"Unknown dimension {name!r}; expected one of {DIMENSIONS}")

    def to_frame(self, dimension: str) -> pd.DataFrame:
        groups = self.dimension(dimension)
        rows = [
            {"key": key, "count": stats.count, "total_price": stats.total_price, "avg_price": stats.avg_price}
            for key, stats in groups.items()
        ]
        return pd.DataFrame(rows, columns=STATS_COLUMNS)


def aggregate_events(events: Iterable[NormalizedEvent]) -> AggregationResult:
    result = AggregationResult()
    seen = 0
    purchases = 0
    for event in events:
        seen += 1
        category = result.categories.setdefault(event.category_code_lv0, GroupStats())
        brand = result.brands.setdefault(event.brand, GroupStats())
        if event.is_purchase:
            purchases += 1
            category.add_purchase(event.price)
            brand.add_purchase(event.price)

    LOGGER.info(
        "Aggregated %d events (%d purchases) into %d categories and %d brands",
        seen,
        purchases,
        len(result.categories),
        len(result.brands),
    )
    return result

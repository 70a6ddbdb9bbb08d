"""Report structures handed to renderers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

import pandas as pd

from .aggregation import AggregationResult, GroupStats
from .ranking import TABLE_LIMIT, TOP_LIMIT, RankedGroup, rank_table, rank_top


DEFAULT_TITLES: Dict[str, str] = {
    "category": "Purchases by category",
    "brand": "Purchases by brand",
}

# section name -> metric shown in that section
SECTION_METRICS: Dict[str, str] = {
    "top_by_count": "count",
    "top_by_avg_price": "avg_price",
    "table_by_count": "count",
    "table_by_avg_price": "avg_price",
}


@dataclass(frozen=True)
class PurchaseReport:
    """Rankings for one dimension under a display title."""

    title: str
    top_by_count: List[RankedGroup] = field(default_factory=list)
    top_by_avg_price: List[RankedGroup] = field(default_factory=list)
    table_by_count: List[RankedGroup] = field(default_factory=list)
    table_by_avg_price: List[RankedGroup] = field(default_factory=list)

    def section(self, name: str) -> List[RankedGroup]:
        if name not in SECTION_METRICS:
            raise ValueError(f"Unknown report section {name!r}")
        return getattr(self, name)

    def to_frame(self, name: str) -> pd.DataFrame:
        """Two-column ``key``/metric view of a section, in report order."""

        rows = self.section(name)
        metric = SECTION_METRICS[name]
        return pd.DataFrame(
            {"key": [row.key for row in rows], metric: [row.value(metric) for row in rows]},
            columns=["key", metric],
        )


@dataclass(frozen=True)
class AnalyticsReport:
    categories: PurchaseReport
    brands: PurchaseReport

    def __iter__(self):
        yield self.categories
        yield self.brands


def build_purchase_report(
    groups: Mapping[str, GroupStats],
    title: str,
    top_limit: int = TOP_LIMIT,
    table_limit: int = TABLE_LIMIT,
) -> PurchaseReport:
    return PurchaseReport(
        title=title,
        top_by_count=rank_top(groups, "count", top_limit),
        top_by_avg_price=rank_top(groups, "avg_price", top_limit),
        table_by_count=rank_table(groups, "count", table_limit),
        table_by_avg_price=rank_table(groups, "avg_price", table_limit),
    )


def assemble_report(
    result: AggregationResult,
    titles: Mapping[str, str] | None = None,
    top_limit: int = TOP_LIMIT,
    table_limit: int = TABLE_LIMIT,
) -> AnalyticsReport:
    labels = {**DEFAULT_TITLES, **(titles or {})}
    return AnalyticsReport(
        categories=build_purchase_report(result.categories, labels["category"], top_limit, table_limit),
        brands=build_purchase_report(result.brands, labels["brand"], top_limit, table_limit),
    )

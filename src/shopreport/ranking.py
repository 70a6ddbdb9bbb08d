"""Top-N and capped alphabetical rankings over aggregated groups.

Each call builds its own frame snapshot of the group map, so rankings never
share sort state. Ties on the metric are broken by ascending key; NaN metrics
(groups poisoned by an unreadable price) sort last. Every group is ranked,
including ones with no purchases, but a dimension without any purchase at
all yields empty rankings.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Mapping, Tuple

import pandas as pd

from .aggregation import GroupStats


METRICS: Tuple[str, ...] = ("count", "avg_price")
TOP_LIMIT = 3
TABLE_LIMIT = 15


@dataclass(frozen=True)
class RankedGroup:
    key: str
    stats: GroupStats

    def value(self, metric: str) -> float:
        return getattr(self.stats, metric)


def collation_key(key: str) -> Tuple[str, str]:
    """Case-insensitive ordering with a code point tie-break."""

    return str(key).casefold(), str(key)


def _snapshot(groups: Mapping[str, GroupStats], metric: str) -> pd.DataFrame:
    if metric not in METRICS:
        raise ValueError(f"Unknown ranking metric {metric!r}; expected one of {METRICS}")
    frame = pd.DataFrame(
        {
            "key": list(groups),
            "count": [stats.count for stats in groups.values()],
            "value": [float(getattr(stats, metric)) for stats in groups.values()],
        },
        columns=["key", "count", "value"],
    )
    return frame


def _select_by_metric(groups: Mapping[str, GroupStats], metric: str, limit: int) -> List[str]:
    frame = _snapshot(groups, metric)
    if limit <= 0 or not (frame["count"] > 0).any():
        return []
    ordered = frame.sort_values(
        by=["value", "key"],
        ascending=[False, True],
        kind="mergesort",
        na_position="last",
    )
    return ordered["key"].head(limit).tolist()


def _as_ranked(groups: Mapping[str, GroupStats], keys: List[str]) -> List[RankedGroup]:
    return [RankedGroup(key=key, stats=replace(groups[key])) for key in keys]


def rank_top(groups: Mapping[str, GroupStats], metric: str, limit: int = TOP_LIMIT) -> List[RankedGroup]:
    """Return the ``limit`` groups with the highest ``metric``, best first."""

    return _as_ranked(groups, _select_by_metric(groups, metric, limit))


def rank_table(groups: Mapping[str, GroupStats], metric: str, limit: int = TABLE_LIMIT) -> List[RankedGroup]:
    """Return the ``limit`` highest groups by ``metric``, listed alphabetically.

    Selection uses the metric; the returned order does not.
    """

    selected = _select_by_metric(groups, metric, limit)
    return _as_ranked(groups, sorted(selected, key=collation_key))

"""Purchase analytics for shop event exports.

Parses delimited event exports, aggregates purchases by category and brand,
and ranks the groups into report structures ready for rendering.
"""

from .aggregation import AggregationResult, GroupStats, aggregate_events
from .errors import (
    ConfigError,
    ParseError,
    PriceCoercionError,
    ShopReportError,
    SourceError,
    ValidationError,
)
from .filtering import PeriodFilter, filter_events, include
from .normalization import NormalizedEvent, normalize_event, normalize_events, validate_required_fields
from .parsing import parse_records
from .pipeline import analyze_records, run_pipeline
from .ranking import RankedGroup, rank_table, rank_top
from .report import AnalyticsReport, PurchaseReport, assemble_report, build_purchase_report

__all__ = [
    "AggregationResult",
    "AnalyticsReport",
    "ConfigError",
    "GroupStats",
    "NormalizedEvent",
    "ParseError",
    "PeriodFilter",
    "PriceCoercionError",
    "PurchaseReport",
    "RankedGroup",
    "ShopReportError",
    "SourceError",
    "ValidationError",
    "aggregate_events",
    "analyze_records",
    "assemble_report",
    "build_purchase_report",
    "filter_events",
    "include",
    "normalize_event",
    "normalize_events",
    "parse_records",
    "rank_table",
    "rank_top",
    "run_pipeline",
    "validate_required_fields",
]

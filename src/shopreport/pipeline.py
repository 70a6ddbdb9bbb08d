"""End-to-end report pipeline and command line entry point.

Stages run strictly forward: parse → normalize → filter → aggregate → rank.
Any stage error aborts the run; the CLI reports it through the user logger.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .aggregation import AggregationResult, aggregate_events
from .config import ReportConfig, load_and_validate_config, load_config
from .dashboard_utils import write_report_workbook
from .errors import ShopReportError
from .filtering import PeriodFilter, filter_events
from .logging_utils import (
    end_phase_timer,
    get_logger,
    get_user_logger,
    log_error,
    log_system_event,
    start_phase_timer,
    write_timing_report,
)
from .normalization import DEFAULT_SAMPLE_SIZE, count_event_types, normalize_events
from .parsing import parse_records
from .report import AnalyticsReport, assemble_report
from .sources import read_settings_workbook, read_source_text


LOGGER = logging.getLogger("shopreport.pipeline")


def analyze_records(
    records: Sequence[Mapping[str, Optional[str]]],
    period_filter: Optional[PeriodFilter] = None,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    strict: bool = False,
    strict_prices: bool = False,
    timings: Optional[Dict[str, float]] = None,
) -> AggregationResult:
    """Validate, normalize, filter and aggregate parsed records."""

    timings = timings if timings is not None else {}
    started = start_phase_timer("Normalize")
    events = normalize_events(records, sample_size=sample_size, strict=strict, strict_prices=strict_prices)
    end_phase_timer("Normalize", started, timings, LOGGER)
    LOGGER.debug("Event types: %s", count_event_types(events).to_dict())

    started = start_phase_timer("Filter")
    kept = list(filter_events(events, period_filter))
    end_phase_timer("Filter", started, timings, LOGGER)

    started = start_phase_timer("Aggregate")
    result = aggregate_events(kept)
    end_phase_timer("Aggregate", started, timings, LOGGER)
    return result


def run_pipeline(
    text: str,
    config: Optional[ReportConfig] = None,
    period_filter: Optional[PeriodFilter] = None,
    timings: Optional[Dict[str, float]] = None,
) -> AnalyticsReport:
    """Turn raw export text into an :class:`AnalyticsReport`.

    ``period_filter`` overrides the period in ``config`` when given.
    """

    config = config or ReportConfig()
    timings = timings if timings is not None else {}
    if period_filter is None:
        period_filter = PeriodFilter.from_mapping(config.filter_input())

    started = start_phase_timer("Parse")
    records = parse_records(text, delimiter=config.source.delimiter)
    end_phase_timer("Parse", started, timings, LOGGER)

    result = analyze_records(
        records,
        period_filter=period_filter,
        sample_size=config.validation.sample_size,
        strict=config.validation.strict,
        strict_prices=config.normalization.strict_prices,
        timings=timings,
    )

    started = start_phase_timer("Rank")
    report = assemble_report(
        result,
        titles={"category": config.report.category_title, "brand": config.report.brand_title},
        top_limit=config.ranking.top_limit,
        table_limit=config.ranking.table_limit,
    )
    end_phase_timer("Rank", started, timings, LOGGER)
    return report


def merge_period(
    config: ReportConfig, start: Optional[pd.Timestamp], end: Optional[pd.Timestamp], logger: logging.Logger
) -> PeriodFilter:
    """Combine workbook period cells with configured bounds; configured bounds win."""

    if config.period.start is not None:
        logger.info("Period start %s from configuration overrides workbook value %s", config.period.start, start)
        start = config.period.start
    if config.period.end is not None:
        logger.info("Period end %s from configuration overrides workbook value %s", config.period.end, end)
        end = config.period.end
    return PeriodFilter(start=start, end=end)


def run_from_config(config: ReportConfig, settings_workbook: Optional[str] = None) -> AnalyticsReport:
    """Read the configured source, build the report and render it when requested."""

    raw_config = config.model_dump()
    logger = get_logger("shopreport", raw_config)
    timings: Dict[str, float] = {}

    source_path = config.source.path
    period_filter = None
    if settings_workbook:
        settings = read_settings_workbook(settings_workbook)
        source_path = source_path or settings.source_path
        period_filter = merge_period(config, settings.start, settings.end, logger)

    log_system_event(logger, f"Reading source {source_path}")
    text = read_source_text(source_path, encoding=config.source.encoding)
    report = run_pipeline(text, config=config, period_filter=period_filter, timings=timings)

    if config.report.output_path:
        started = start_phase_timer("Render")
        write_report_workbook(report, config.report.output_path, logger=logger)
        end_phase_timer("Render", started, timings, logger)

    write_timing_report(timings, raw_config)
    return report


def build_arg_parser() -> argparse.ArgumentParser:
    """Create an argument parser for the report CLI."""

    parser = argparse.ArgumentParser(description="Purchase reports by category and brand from shop event exports")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--input", help="Event export path or file:// URL (overrides source.path)")
    parser.add_argument("--settings-workbook", help="Workbook holding the source path and period on its settings sheet")
    parser.add_argument("--start", help="Inclusive period start, e.g. 2023-01-01")
    parser.add_argument("--end", help="Inclusive period end, e.g. 2023-01-31")
    parser.add_argument("--delimiter", help="Field delimiter (default ';')")
    parser.add_argument("--output", help="Workbook to write the report sheets to")
    parser.add_argument("--strict-validation", action="store_true", help="Check required fields on every record")
    parser.add_argument("--strict-prices", action="store_true", help="Fail on prices that are not numbers")
    return parser


def _apply_cli_overrides(raw: dict, args: argparse.Namespace) -> dict:
    raw = dict(raw)
    for section in ("source", "period", "report", "validation", "normalization"):
        raw[section] = dict(raw.get(section) or {})
    if args.input:
        raw["source"]["path"] = args.input
    if args.delimiter:
        raw["source"]["delimiter"] = args.delimiter
    if args.start:
        raw["period"]["start"] = args.start
    if args.end:
        raw["period"]["end"] = args.end
    if args.output:
        raw["report"]["output_path"] = args.output
    if args.strict_validation:
        raw["validation"]["strict"] = True
    if args.strict_prices:
        raw["normalization"]["strict_prices"] = True
    return raw


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    user_logger = None
    try:
        raw = load_config(args.config) if args.config else {}
        config = load_and_validate_config(_apply_cli_overrides(raw, args))
        user_logger = get_user_logger(config.model_dump())
        run_from_config(config, settings_workbook=args.settings_workbook)
    except ShopReportError as exc:
        user_logger = user_logger or get_user_logger()
        log_error(user_logger, str(exc))
        return 1
    user_logger.info("Report ready")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI guard
    sys.exit(main())

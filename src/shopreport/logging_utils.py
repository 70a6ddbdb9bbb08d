"""Logging setup and stage timing helpers for shopreport.

Two loggers are configured per run:
  - a system logger (console + ``system.log``) used by the pipeline stages
  - a user logger (console + ``user_readable.log``) for short status lines

If a log file cannot be opened the logger keeps its console handler only.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Optional


SYSTEM_FMT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
HUMAN_FMT = "%(message)s"
ROOT_LOGGER = "shopreport"

STAGES = ("Parse", "Normalize", "Filter", "Aggregate", "Rank", "Render")


def _ensure_logs_dir(config: Optional[dict]) -> Path:
    paths = (config or {}).get("paths", {})
    logs_dir = Path(paths.get("logs_dir", "logs")).expanduser().resolve()
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def _level(config: Optional[dict]) -> int:
    name = str(((config or {}).get("logging") or {}).get("level", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def _safe_add_file_handler(logger: logging.Logger, path: Path, fmt: str, level: int) -> None:
    try:
        fh = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        logger.warning("[WARNING] Failed to attach file handler %s (%s)", str(path), exc)
        return
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(fmt))
    logger.addHandler(fh)


def get_logger(name: str = ROOT_LOGGER, config: Optional[dict] = None) -> logging.Logger:
    """Return a system logger with console + ``system.log`` handlers.

    Stage modules log under ``shopreport.<module>`` and propagate here.
    """
    logs_dir = _ensure_logs_dir(config)
    level = _level(config)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Reset handlers to avoid duplication across repeated initializations
    logger.handlers = []

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter(SYSTEM_FMT))
    logger.addHandler(sh)

    _safe_add_file_handler(logger, logs_dir / "system.log", SYSTEM_FMT, level)
    return logger


def get_user_logger(config: Optional[dict] = None) -> logging.Logger:
    """Return the user-facing logger writing plain messages to console and file."""
    logs_dir = _ensure_logs_dir(config)
    logger = logging.getLogger("shopreport.user")
    logger.setLevel(logging.INFO)
    logger.handlers = []
    logger.propagate = False

    sh = logging.StreamHandler()
    sh.setLevel(logging.INFO)
    sh.setFormatter(logging.Formatter(HUMAN_FMT))
    logger.addHandler(sh)

    _safe_add_file_handler(logger, logs_dir / "user_readable.log", HUMAN_FMT, logging.INFO)
    return logger


def start_phase_timer(phase_name: str) -> float:
    return time.perf_counter()


def end_phase_timer(
    phase_name: str, start_time: float, timing_dict: Dict[str, float], logger: Optional[logging.Logger] = None
) -> float:
    """Record the elapsed time for ``phase_name`` and log it at DEBUG."""
    elapsed = time.perf_counter() - float(start_time)
    timing_dict[phase_name] = timing_dict.get(phase_name, 0.0) + elapsed
    if logger is not None:
        logger.debug("Stage %s completed in %.3f seconds", phase_name, elapsed)
    return elapsed


def write_timing_report(timing_dict: Dict[str, float], config: Optional[dict] = None) -> Optional[Path]:
    """Write a timing breakdown to ``<logs_dir>/timing.log``.

    Returns the written path, or None when the file cannot be written.
    """
    logs_dir = _ensure_logs_dir(config)
    out_path = logs_dir / "timing.log"
    lines = ["---- SHOPREPORT TIMING REPORT ----"]
    total = 0.0
    for stage in STAGES:
        if stage in timing_dict:
            val = float(timing_dict[stage])
            total += val
            lines.append(f"{stage}: {val:.3f} seconds")
    lines.append(f"Total Duration: {total:.3f} seconds")
    try:
        out_path.write_text("\n".join(lines), encoding="utf-8")
    except OSError as exc:
        logging.getLogger(ROOT_LOGGER).warning("[WARNING] Failed to write timing report (%s): %s", str(out_path), exc)
        return None
    return out_path


def log_system_event(logger: logging.Logger, message: str):
    logger.info("[SYSTEM] %s", message)


def log_error(logger: logging.Logger, message: str):
    logger.error("[ERROR] %s", message)

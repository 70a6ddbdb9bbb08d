"""Source text retrieval and spreadsheet-held run settings.

Exports usually arrive as Windows paths copied from Explorer; ``convert_path``
turns those into ``file:///`` URLs and ``read_source_text`` accepts either form.
Run settings can also be kept in a workbook sheet: the export path in C4 and
the analysis period in C6/C7 (dates or spreadsheet serial numbers).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.datetime import from_excel

from .errors import SourceError


LOGGER = logging.getLogger("shopreport.sources")

SETTINGS_SHEET = "Анализ данных"
SOURCE_CELL = "C4"
START_CELL = "C6"
END_CELL = "C7"
DEFAULT_START = pd.Timestamp(2000, 1, 1)
DEFAULT_END = pd.Timestamp(2099, 12, 31, 23, 59, 59, 99000)

_LONG_PATH_PREFIX = re.compile(r"^\\\\\?\\")
_REPEATED_SLASHES = re.compile(r"//+")
_FILE_SCHEME = re.compile(r"^file:/+", flags=re.IGNORECASE)
_DRIVE = re.compile(r"^[A-Za-z]:/")


def convert_path(path: str) -> str:
    """Return a ``file:///`` URL for a Windows or POSIX path."""

    path = _LONG_PATH_PREFIX.sub("", str(path))
    path = path.replace("\\", "/")
    path = _REPEATED_SLASHES.sub("/", path)
    path = _FILE_SCHEME.sub("", path)
    return "file:///" + path.lstrip("/")


def url_to_path(location: str) -> Path:
    """Inverse of :func:`convert_path`; plain paths are returned unchanged."""

    if not _FILE_SCHEME.match(location):
        return Path(location)
    rest = unquote(_FILE_SCHEME.sub("", location))
    if _DRIVE.match(rest):
        return Path(rest)
    return Path("/" + rest)


def read_source_text(location: Optional[str], encoding: str = "utf-8") -> str:
    if not location:
        raise SourceError("No source path was given")
    path = url_to_path(str(location))
    if not path.is_file():
        raise SourceError(f"Source file not found: {path}")
    try:
        text = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceError(f"Unable to read source file {path}: {exc}") from exc
    LOGGER.info("Loaded %d characters from %s", len(text), path)
    return text


def serial_to_timestamp(serial: float) -> pd.Timestamp:
    """Convert a 1900-system spreadsheet serial date to a timestamp."""

    return pd.Timestamp(from_excel(serial))


@dataclass(frozen=True)
class ReportSettings:
    source_path: Optional[str]
    start: pd.Timestamp
    end: pd.Timestamp

    def filter_input(self) -> dict:
        return {"period": {"start": self.start, "end": self.end}}


def _settings_date(value: object, default: pd.Timestamp) -> pd.Timestamp:
    if isinstance(value, datetime):
        return pd.Timestamp(value)
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        serial = float(value)
    except (TypeError, ValueError):
        return default
    if not serial:
        return default
    return serial_to_timestamp(serial)


def read_settings_workbook(path: str | Path, sheet_name: str = SETTINGS_SHEET) -> ReportSettings:
    """Read the export path and analysis period from a settings sheet.

    Blank or unreadable dates fall back to 2000-01-01 and the end of 2099.
    """

    workbook_path = Path(path)
    if not workbook_path.is_file():
        raise SourceError(f"Settings workbook not found: {workbook_path}")
    workbook = load_workbook(workbook_path, data_only=True)
    try:
        if sheet_name not in workbook.sheetnames:
            raise SourceError(f'Settings sheet "{sheet_name}" was not found in {workbook_path}')
        sheet = workbook[sheet_name]
        source = sheet[SOURCE_CELL].value
        start = _settings_date(sheet[START_CELL].value, DEFAULT_START)
        end = _settings_date(sheet[END_CELL].value, DEFAULT_END)
    finally:
        workbook.close()

    settings = ReportSettings(
        source_path=convert_path(source) if source else None,
        start=start,
        end=end,
    )
    LOGGER.debug("Settings read from %s: %s", workbook_path, settings)
    return settings

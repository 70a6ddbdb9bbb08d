"""Delimited text parsing into raw field maps."""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from .errors import ParseError


LOGGER = logging.getLogger("shopreport.parsing")

LINE_BREAKS = re.compile(r"[\r\n]+")

RawRecord = Dict[str, Optional[str]]


def split_lines(text: str) -> List[str]:
    """Split on any run of ``\\r``/``\\n`` so mixed line endings collapse."""

    return LINE_BREAKS.split(text)


def parse_records(text: str, delimiter: str = ";") -> List[RawRecord]:
    """Turn delimited text into one mapping per data line.

    The first line is the header row (each header stripped). Data lines are
    zipped positionally against the headers: surplus tokens are dropped and
    missing tokens map to ``None``. Whitespace-only lines are skipped.
    """

    if not text or not isinstance(text, str):
        raise ParseError("Source text is missing or is not a string")

    lines = split_lines(text)
    if sum(1 for line in lines if line.strip()) < 2:
        raise ParseError("Source text must contain a header row and at least one data row")

    headers = [header.strip() for header in lines[0].split(delimiter)]
    records: List[RawRecord] = []
    for line in lines[1:]:
        if not line.strip():
            continue
        values = line.split(delimiter)
        records.append(
            {header: (values[idx] if idx < len(values) else None) for idx, header in enumerate(headers)}
        )

    LOGGER.debug("Parsed %d records with %d headers", len(records), len(headers))
    return records

"""Exception taxonomy shared by every shopreport stage."""
from __future__ import annotations

from typing import Iterable, List


class ShopReportError(Exception):
    """Base class for all errors raised by the report pipeline."""


class ParseError(ShopReportError, ValueError):
    """Raised when source text is missing, not text, or has no data rows."""


class ValidationError(ShopReportError, ValueError):
    """Raised when required fields are absent from the sampled records."""

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields: List[str] = list(missing_fields)
        super().__init__(
            "Records do not match the shop event layout: missing fields "
            + ", ".join(self.missing_fields)
        )


class PriceCoercionError(ShopReportError, ValueError):
    """Raised in strict price mode when a price cannot be read as a number."""


class ConfigError(ShopReportError, ValueError):
    """Raised when a configuration file cannot be read or fails validation."""


class SourceError(ShopReportError, OSError):
    """Raised when the source text or settings workbook cannot be located."""

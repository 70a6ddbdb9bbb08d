"""Configuration loading and validation using YAML and Pydantic."""
from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator, model_validator

from .errors import ConfigError


class SourceConfig(BaseModel):
    """Where the raw event export lives and how it is delimited."""

    path: Optional[str] = Field(None, description="File path or file:// URL of the export")
    delimiter: str = Field(";", min_length=1, description="Field delimiter")
    encoding: str = Field("utf-8", description="Text encoding of the export")


class ValidationConfig(BaseModel):
    sample_size: int = Field(3, ge=1, description="Records inspected for the required field check")
    strict: bool = Field(False, description="Inspect every record instead of a sample")


class NormalizationConfig(BaseModel):
    strict_prices: bool = Field(False, description="Raise on unreadable prices instead of using NaN")


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class PeriodConfig(BaseModel):
    """Inclusive analysis window."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator('start', 'end', mode='before')
    @classmethod
    def coerce_dates(cls, v):
        """YAML reads bare dates as ``date``; widen them to midnight."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime(v.year, v.month, v.day)
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if len(v) == 10:
                return datetime.fromisoformat(v)
        return v

    @model_validator(mode='after')
    def validate_order(self):
        if self.start is not None and self.end is not None:
            if _naive_utc(self.start) > _naive_utc(self.end):
                raise ValueError("period.start must not be later than period.end")
        return self


class RankingConfig(BaseModel):
    top_limit: int = Field(3, ge=1, description="Rows in each top list")
    table_limit: int = Field(15, ge=1, description="Rows in each alphabetical table")


class ReportOutputConfig(BaseModel):
    category_title: str = Field("Purchases by category", min_length=1)
    brand_title: str = Field("Purchases by brand", min_length=1)
    output_path: Optional[str] = Field(None, description="Workbook written by the renderer")

    @field_validator('category_title', 'brand_title')
    @classmethod
    def validate_title(cls, v):
        """Titles double as sheet names, so keep them within Excel's limits."""
        if any(ch in v for ch in '[]:*?/\\'):
            raise ValueError("report titles cannot contain any of []:*?/\\")
        if len(v) > 31:
            raise ValueError("report titles must be 31 characters or fewer")
        return v


class PathsConfig(BaseModel):
    logs_dir: str = "logs"


class LoggingConfig(BaseModel):
    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR'] = 'INFO'


class ReportConfig(BaseModel):
    """Complete configuration for one report run."""

    source: SourceConfig = Field(default_factory=SourceConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    period: PeriodConfig = Field(default_factory=PeriodConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    report: ReportOutputConfig = Field(default_factory=ReportOutputConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def filter_input(self) -> dict:
        """Return the ``{"period": {...}}`` mapping consumed by the period filter."""
        return {"period": {"start": self.period.start, "end": self.period.end}}


def load_config(path: str | Path) -> dict:
    """Load a YAML configuration file."""

    try:
        with open(path, "r", encoding="utf-8") as stream:
            return yaml.safe_load(stream) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read configuration {path}: {exc}") from exc


def load_and_validate_config(config_dict: Optional[dict]) -> ReportConfig:
    """
    Validate a raw configuration mapping.

    Args:
        config_dict: Parsed configuration, typically from :func:`load_config`

    Returns:
        Validated ReportConfig object

    Raises:
        ConfigError: If configuration is invalid
    """
    try:
        return ReportConfig(**(config_dict or {}))
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

"""Unit tests for configuration loading and validation."""
from datetime import datetime
from textwrap import dedent

import pytest

from shopreport.config import ReportConfig, load_and_validate_config, load_config
from shopreport.errors import ConfigError


def test_defaults():
    config = load_and_validate_config({})
    assert config.source.delimiter == ";"
    assert config.validation.sample_size == 3
    assert config.validation.strict is False
    assert config.normalization.strict_prices is False
    assert (config.ranking.top_limit, config.ranking.table_limit) == (3, 15)
    assert config.period.start is None and config.period.end is None
    assert config.filter_input() == {"period": {"start": None, "end": None}}


def test_yaml_round_trip(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        dedent(
            """
            source:
              path: exports/events.csv
              delimiter: ","
            validation:
              sample_size: 10
            period:
              start: 2023-01-01
              end: "2023-01-31"
            report:
              category_title: Categories
              output_path: out/report.xlsx
            """
        )
    )
    config = load_and_validate_config(load_config(path))
    assert config.source.delimiter == ","
    assert config.validation.sample_size == 10
    assert config.period.start == datetime(2023, 1, 1)
    assert config.period.end == datetime(2023, 1, 31)
    assert config.report.category_title == "Categories"
    assert config.report.brand_title == "Purchases by brand"


def test_empty_yaml_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_and_validate_config(load_config(path)) == ReportConfig()


@pytest.mark.parametrize(
    "raw",
    [
        {"period": {"start": "2023-02-01", "end": "2023-01-01"}},
        {"validation": {"sample_size": 0}},
        {"ranking": {"table_limit": 0}},
        {"report": {"brand_title": "Brands/2023"}},
        {"source": {"delimiter": ""}},
        {"logging": {"level": "LOUD"}},
    ],
)
def test_invalid_configuration(raw):
    with pytest.raises(ConfigError):
        load_and_validate_config(raw)


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.yaml")

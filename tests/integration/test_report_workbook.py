"""Workbook rendering and CLI tests."""
from pathlib import Path
from textwrap import dedent

from openpyxl import Workbook, load_workbook

from shopreport.config import load_and_validate_config
from shopreport.dashboard_utils import write_report_workbook
from shopreport.pipeline import main, run_pipeline
from shopreport.sources import SETTINGS_SHEET


def _report(sample_export, sample_filter):
    config = load_and_validate_config({"period": sample_filter["period"]})
    return run_pipeline(sample_export, config=config)


def test_workbook_layout(tmp_path, sample_export, sample_filter):
    path = write_report_workbook(_report(sample_export, sample_filter), tmp_path / "report.xlsx")
    workbook = load_workbook(path)
    assert workbook.sheetnames == ["Purchases by category", "Purchases by brand"]

    brands = workbook["Purchases by brand"]
    assert brands.cell(row=4, column=4).value == "Purchases by brand"
    assert brands.cell(row=6, column=2).value == "Top by purchases"
    assert [brands.cell(row=r, column=3).value for r in (7, 8)] == ["Acme", "Zeta"]
    assert brands.cell(row=11, column=2).value == "Top by average check"
    assert brands.cell(row=12, column=3).value == "Zeta"
    assert brands.cell(row=12, column=4).value == 299.0
    assert brands.cell(row=12, column=4).number_format == "#,##0.00"

    assert [brands.cell(row=16, column=c).value for c in (2, 3)] == ["Group", "Purchases"]
    assert [brands.cell(row=r, column=2).value for r in (17, 18)] == ["Acme", "Zeta"]
    assert [brands.cell(row=16, column=c).value for c in (11, 12)] == ["Group", "Average price"]
    assert brands.cell(row=18, column=12).value == 299.0
    assert len(brands._charts) == 2

    categories = workbook["Purchases by category"]
    assert categories.cell(row=17, column=2).value == "electronics"
    assert categories.cell(row=17, column=3).value == 2


def test_rerender_replaces_report_sheets_only(tmp_path, sample_export, sample_filter):
    path = tmp_path / "report.xlsx"
    workbook = Workbook()
    workbook.active.title = "Notes"
    workbook.save(path)

    report = _report(sample_export, sample_filter)
    write_report_workbook(report, path)
    write_report_workbook(report, path)

    sheetnames = load_workbook(path).sheetnames
    assert sheetnames == ["Notes", "Purchases by category", "Purchases by brand"]


def _write_config(tmp_path: Path, source: Path, output: Path) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        dedent(
            f"""
            source:
              path: {source}
            period:
              start: 2023-01-01
              end: 2023-01-31
            report:
              output_path: {output}
            paths:
              logs_dir: {tmp_path / 'logs'}
            """
        )
    )
    return config_path


def test_cli_writes_workbook_and_logs(tmp_path, sample_export):
    source = tmp_path / "events.csv"
    source.write_text(sample_export, encoding="utf-8")
    output = tmp_path / "out" / "report.xlsx"
    config_path = _write_config(tmp_path, source, output)

    assert main(["--config", str(config_path)]) == 0
    assert output.is_file()
    assert (tmp_path / "logs" / "timing.log").read_text(encoding="utf-8").startswith("---- SHOPREPORT")
    assert "Report ready" in (tmp_path / "logs" / "user_readable.log").read_text(encoding="utf-8")


def test_cli_input_override_and_failure(tmp_path, sample_export):
    source = tmp_path / "events.csv"
    source.write_text(sample_export.replace(";", ","), encoding="utf-8")
    output = tmp_path / "report.xlsx"
    config_path = _write_config(tmp_path, tmp_path / "absent.csv", output)

    assert main(["--config", str(config_path)]) == 1
    assert "[ERROR]" in (tmp_path / "logs" / "user_readable.log").read_text(encoding="utf-8")

    args = ["--config", str(config_path), "--input", str(source), "--delimiter", ","]
    assert main(args) == 0
    assert load_workbook(output)["Purchases by category"].cell(row=17, column=2).value == "electronics"


def _settings_workbook(tmp_path: Path, source: Path) -> Path:
    workbook = Workbook()
    ws = workbook.active
    ws.title = SETTINGS_SHEET
    ws["C4"] = str(source)
    ws["C6"] = 45078  # 2023-06-01
    ws["C7"] = 45107  # 2023-06-30
    path = tmp_path / "settings.xlsx"
    workbook.save(path)
    return path


def test_cli_period_overrides_settings_workbook(tmp_path, sample_export):
    source = tmp_path / "events.csv"
    source.write_text(sample_export, encoding="utf-8")
    output = tmp_path / "report.xlsx"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        dedent(
            f"""
            report:
              output_path: {output}
            paths:
              logs_dir: {tmp_path / 'logs'}
            """
        )
    )
    settings = _settings_workbook(tmp_path, source)

    assert main(["--config", str(config_path), "--settings-workbook", str(settings)]) == 0
    june = load_workbook(output)["Purchases by category"]
    assert june.cell(row=17, column=2).value is None

    args = ["--config", str(config_path), "--settings-workbook", str(settings), "--start", "2023-01-01", "--end", "2023-01-31"]
    assert main(args) == 0
    january = load_workbook(output)["Purchases by category"]
    assert january.cell(row=17, column=2).value == "electronics"
    assert january.cell(row=17, column=3).value == 2
    assert "Filter:" in (tmp_path / "logs" / "timing.log").read_text(encoding="utf-8")

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

import pytest

from edi_import.models.processing_result import ImportResult
from edi_import.services.summary import format_elapsed, render_summary_line

SUMMARY_RE = re.compile(
    r"^SUMMARY files=\d+ processed=\d+ amended=\d+ failed=\d+ details=\d+ qty=-?\d+ elapsed_sec=[0-9.]+$"
)


def _result(processed=0, amended=0, failed=0, details=0, qty=0, elapsed=0.0) -> ImportResult:
    start = datetime(2024, 1, 1, tzinfo=UTC)
    return ImportResult(
        processed_files=processed,
        amended_files=amended,
        failed_files=failed,
        total_detail_rows=details,
        total_quantity=qty,
        start_time=start,
        end_time=start + timedelta(seconds=elapsed),
        elapsed_seconds=elapsed,
    )


def test_render_summary_line_format():
    line = render_summary_line(_result(processed=2, amended=1, failed=1, details=7, qty=130, elapsed=2.0))
    assert line == "SUMMARY files=4 processed=2 amended=1 failed=1 details=7 qty=130 elapsed_sec=2"
    assert SUMMARY_RE.match(line)


def test_render_summary_line_empty_run():
    assert render_summary_line(_result()) == (
        "SUMMARY files=0 processed=0 amended=0 failed=0 details=0 qty=0 elapsed_sec=0"
    )


@pytest.mark.parametrize("seconds, expected", [
    (0.0, "0"),
    (3.0, "3"),
    (1.5, "1.5"),
    (1.23456, "1.235"),
    (0.004, "0.004"),
    (0.0000123, "0.000012"),
])
def test_format_elapsed(seconds: float, expected: str):
    assert format_elapsed(seconds) == expected

from __future__ import annotations

from ..models.processing_result import ImportResult

"""SUMMARY line rendering for the end of an import run."""

__all__ = [
    "format_elapsed",
    "render_summary_line",
]


def format_elapsed(seconds: float) -> str:
    """Render elapsed seconds without trailing zeros or scientific notation."""
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for a finished run.

    Format:
    SUMMARY files={total} processed={processed} amended={amended} failed={failed}
    details={detail rows} qty={total quantity} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = ImportResult(2, 1, 0, 5, 120, t, t, 1.5)
        >>> render_summary_line(r)
        'SUMMARY files=3 processed=2 amended=1 failed=0 details=5 qty=120 elapsed_sec=1.5'
    """
    return (
        f"SUMMARY files={result.total_files} "
        f"processed={result.processed_files} "
        f"amended={result.amended_files} "
        f"failed={result.failed_files} "
        f"details={result.total_detail_rows} "
        f"qty={result.total_quantity} "
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}"
    )

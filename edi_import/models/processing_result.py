from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for the EDI import run.

FileStat holds the outcome of one input file; ImportResult aggregates a whole
run and feeds the SUMMARY line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str
    status: str  # EdiFileStatus value, or "Unopened" when the file never opened
    detail_rows: int  # detail records inserted
    running_qty: int  # accumulated detail quantity
    elapsed_seconds: float
    error: str | None = None


@dataclass(frozen=True)
class ImportResult:
    """Aggregated results for one run of the importer."""
    processed_files: int
    amended_files: int
    failed_files: int
    total_detail_rows: int
    total_quantity: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None
    disabled: bool = False  # run skipped because the application is disabled

    @property
    def total_files(self) -> int:
        return self.processed_files + self.amended_files + self.failed_files

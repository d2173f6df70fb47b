from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..edi.reader import EdiReader

"""EdiFile working state and EdiFileStatus lifecycle.

The EdiFile represents the processing context for a single EDI order file,
from open through archive update. It is mutated only by the pipeline
handling that file and is never shared between files.
"""

__all__ = [
    "EdiFileStatus",
    "EdiFile",
]


class EdiFileStatus(Enum):
    """Archive status of an EDI file.

    State transitions: new -> (processed | amended_po | error)

    - NEW: raw content stored in the archive table
    - PROCESSED: all rows committed
    - AMENDED_PO: update to an existing order, intentionally not imported
    - ERROR: a rule violation or exception aborted the file
    """
    NEW = "New"
    PROCESSED = "Processed"
    AMENDED_PO = "AmendedPO"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self is not EdiFileStatus.NEW


@dataclass
class EdiFile:
    path: Path
    content: str                  # raw text, kept for the archive table
    reader: EdiReader
    purchase_order: str
    customer_code: str
    version: str
    file_date: datetime           # creation (or modification) time, UTC; part of the archive key
    status: EdiFileStatus = EdiFileStatus.NEW
    error_message: str = ""
    company_db: str = ""
    is_aldi: bool = False
    batch_id: int = 0
    header_id: int = 0
    running_qty: int = 0
    record_count: int = 0
    detail_count: int = 0

    @property
    def name(self) -> str:
        return self.path.name

    def mark(self, status: EdiFileStatus, message: str = "") -> None:
        self.status = status
        self.error_message = message

    def close(self) -> None:
        self.reader.close()

    def __enter__(self) -> EdiFile:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

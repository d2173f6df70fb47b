from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record is written for every file that did not end up PROCESSED.
`line` is the 1-based row being processed when the failure happened, or -1
for file-level failures (open, archive) where no row applies.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: EDI filename being processed
        purchase_order: PO taken from the header row ("" if the file never opened)
        line: Row number (1-based), -1 when unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Error message as stored in the archive table
    """
    timestamp: str
    file: str
    purchase_order: str
    line: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, purchase_order: str, line: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            purchase_order=purchase_order,
            line=line,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

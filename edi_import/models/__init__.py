"""Domain models for the EDI order import tool."""

from .detail_line import DetailLine
from .edi_file import EdiFile, EdiFileStatus
from .error_record import ErrorRecord
from .outcome import Decision, OperationResult, RuleOutcome
from .processing_result import FileStat, ImportResult

__all__ = [
    # File state
    "EdiFile",
    "EdiFileStatus",
    # Pipeline results
    "Decision",
    "RuleOutcome",
    "OperationResult",
    "DetailLine",
    # Run results
    "FileStat",
    "ImportResult",
    "ErrorRecord",
]

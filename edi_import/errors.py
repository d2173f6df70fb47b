from __future__ import annotations

"""Exception hierarchy shared across the import pipeline.

- DataFormatError: the file content cannot be imported (aborts that file only)
- InfrastructureError: the run cannot continue (database / lock unavailable)
"""

__all__ = [
    "EdiImportError",
    "DataFormatError",
    "InfrastructureError",
    "DatabaseConnectionError",
    "LockError",
]


class EdiImportError(Exception):
    """Base exception for the EDI import tool."""


class DataFormatError(EdiImportError):
    """Raised when a file or row cannot be interpreted (missing header, bad indicator, ...)."""


class InfrastructureError(EdiImportError):
    """Raised for failures that are fatal to the whole run."""


class DatabaseConnectionError(InfrastructureError):
    pass


class LockError(InfrastructureError):
    pass

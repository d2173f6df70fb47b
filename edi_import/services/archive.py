from __future__ import annotations

import logging

from ..db import procedures
from ..db.lock import ExclusiveLock
from ..models.edi_file import EdiFile
from ..models.outcome import OperationResult

"""Archive table writer.

Every opened file is inserted with status New before it is loaded, and
updated with its final status and message afterwards. Each write is its own
locked transaction.
"""

__all__ = [
    "ArchiveWriter",
]

logger = logging.getLogger(__name__)


class ArchiveWriter:
    def __init__(self, lock: ExclusiveLock) -> None:
        self.lock = lock

    def upsert(self, edi_file: EdiFile, is_update: bool = False) -> OperationResult:
        """Insert or update the archive row of a file.

        Database errors are logged and returned as a failed result. Lock
        acquisition errors propagate.
        """
        action = "Updating" if is_update else "Inserting"
        logger.info(f"{action} file in archive table {edi_file.path}")

        cursor = self.lock.acquire()
        result = OperationResult()
        try:
            if is_update:
                procedures.update_archive(
                    cursor,
                    file_name=edi_file.name,
                    file_date=edi_file.file_date,
                    purchase_order=edi_file.purchase_order,
                    status=edi_file.status.value,
                    message=edi_file.error_message,
                )
            else:
                procedures.insert_archive(
                    cursor,
                    file_name=edi_file.name,
                    file_date=edi_file.file_date,
                    purchase_order=edi_file.purchase_order,
                    content=edi_file.content,
                    status=edi_file.status.value,
                    message=edi_file.error_message,
                )
        except Exception as e:
            logger.error(f"Error {action.lower()} file {edi_file.path} in archive table: {e}")
            result = OperationResult.failed(str(e))
        finally:
            committed = self.lock.release(commit=result.success)
        if result.success and not committed:
            result = OperationResult.failed(f"Unable to commit the archive row for file {edi_file.name}")
        return result

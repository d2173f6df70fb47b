from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import AppConfig
from ..config.provider import ConfigProvider
from ..db import procedures
from ..db.lock import ExclusiveLock
from ..edi.reader import open_edi_file
from ..edi.rows import EdiRow, RowKind, SummaryField
from ..errors import DataFormatError, InfrastructureError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.edi_file import EdiFile, EdiFileStatus
from ..models.outcome import Decision, OperationResult, RuleOutcome
from ..models.processing_result import FileStat, ImportResult
from .archive import ArchiveWriter
from .pricing import PricingResolver
from .progress import ProgressTracker
from .rules import BusinessRuleEngine

"""Import orchestration.

Per file:
    open -> archive insert (New) -> load -> archive update -> delete

- open failure: logged and recorded, nothing archived, next file
- archive insert failure: load skipped, archive update still attempted
- load: one locked transaction from the header to the summary row,
  committed only when every row succeeded
- only PROCESSED files are deleted from the input directory

Infrastructure errors (connection, lock) abort the run; anything else is
handled per file and the run continues.
"""

__all__ = [
    "UNOPENED",
    "ProcessingError",
    "ImportOrchestrator",
    "is_application_enabled",
    "remove_physical_file",
    "scan_edi_files",
]

logger = logging.getLogger(__name__)

UNOPENED = "Unopened"


class ProcessingError(Exception):
    """Fatal error that prevents the run from processing any file."""


def scan_edi_files(directory: Path) -> list[Path]:
    """Regular files in the input directory (non-recursive), sorted by name.

    Raises:
        ProcessingError: the directory is missing or cannot be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        return sorted(p for p in directory.iterdir() if p.is_file())
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def is_application_enabled(cfg: AppConfig, base_dir: Path | None = None) -> bool:
    if cfg.disabled:
        logger.info("Application has been disabled. Set disabled to false in the configuration to enable it.")
        return False
    if not cfg.disabled_file_location:
        return True

    sentinel = Path(cfg.disabled_file_location)
    if not sentinel.is_absolute():
        sentinel = (base_dir or Path.cwd()) / sentinel
    try:
        exists = sentinel.exists()
    except OSError as e:
        logger.error(f"Unable to check the disabled file {sentinel}: {e}")
        return False
    if exists:
        logger.info(f"Located {sentinel}. Application has been disabled. Remove or rename the file to enable it.")
        return False
    return True


def remove_physical_file(path: Path) -> bool:
    logger.info(f"Deleting file {path}")
    try:
        path.unlink()
    except OSError as e:
        logger.error(f"Unable to delete file {path}: {e}")
        return False
    return True


class ImportOrchestrator:
    """Runs the import over every file of the input directory."""

    def __init__(
        self,
        config: ConfigProvider,
        lock: ExclusiveLock,
        *,
        rules: BusinessRuleEngine | None = None,
        pricing: PricingResolver | None = None,
        archive: ArchiveWriter | None = None,
        error_log: ErrorLogBuffer | None = None,
        base_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.lock = lock
        self.rules = rules or BusinessRuleEngine(config)
        self.pricing = pricing or PricingResolver()
        self.archive = archive or ArchiveWriter(lock)
        self.error_log = error_log or ErrorLogBuffer(Path(config.current().logging.error_log_dir))
        self.base_dir = base_dir

    def _record_error(self, file: str, purchase_order: str, line: int, error_type: str, message: str) -> None:
        self.error_log.append(ErrorRecord.create(file, purchase_order, line, error_type, message))

    def run(self) -> ImportResult:
        """Import every file of the configured input directory.

        Returns:
            ImportResult with per-file statistics

        Raises:
            ProcessingError: the input directory is missing
            InfrastructureError: the database connection or the lock failed
        """
        start_time = datetime.now(UTC)
        cfg = self.config.current()
        if not is_application_enabled(cfg, self.base_dir):
            return self._result(start_time, [], disabled=True)

        file_paths = scan_edi_files(Path(cfg.input_file_location))
        if not file_paths:
            logger.info(f"No files found in {cfg.input_file_location}")
            return self._result(start_time, [])

        logger.info(f"Starting import process for DFMID {cfg.dfm_id} and Company {cfg.company}")
        logger.info(f"Found {len(file_paths)} files to import")

        file_stats: list[FileStat] = []
        counts = {"processed": 0, "amended": 0, "failed": 0}
        try:
            with ProgressTracker(len(file_paths)) as progress:
                for path in file_paths:
                    progress.start_file(path)
                    stat = self.import_file(path)
                    file_stats.append(stat)
                    if stat.status == EdiFileStatus.PROCESSED.value:
                        counts["processed"] += 1
                    elif stat.status == EdiFileStatus.AMENDED_PO.value:
                        counts["amended"] += 1
                    else:
                        counts["failed"] += 1
                    progress.set_postfix(**counts)
                    progress.finish_file(success=stat.status == EdiFileStatus.PROCESSED.value)
        finally:
            self._flush_error_log()

        logger.info(f"Done importing for DFMID {cfg.dfm_id} and Company {cfg.company}")
        return self._result(start_time, file_stats)

    def _flush_error_log(self) -> None:
        try:
            path = self.error_log.flush()
        except OSError as e:
            logger.warning(f"Unable to write the error log: {e}")
            return
        if path is not None:
            logger.info(f"Error details written to {path}")

    def _result(self, start_time: datetime, file_stats: list[FileStat], disabled: bool = False) -> ImportResult:
        end_time = datetime.now(UTC)
        return ImportResult(
            processed_files=sum(1 for s in file_stats if s.status == EdiFileStatus.PROCESSED.value),
            amended_files=sum(1 for s in file_stats if s.status == EdiFileStatus.AMENDED_PO.value),
            failed_files=sum(
                1 for s in file_stats
                if s.status not in (EdiFileStatus.PROCESSED.value, EdiFileStatus.AMENDED_PO.value)
            ),
            total_detail_rows=sum(s.detail_rows for s in file_stats),
            total_quantity=sum(s.running_qty for s in file_stats),
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            file_stats=file_stats,
            disabled=disabled,
        )

    def import_file(self, path: Path) -> FileStat:
        """Run the per-file pipeline; only infrastructure errors escape."""
        file_start = datetime.now(UTC)
        try:
            edi_file = open_edi_file(path)
        except Exception as e:
            logger.error(f"Unable to open the order file {path}: {e}")
            self._record_error(path.name, "", -1, "OPEN_ERROR", str(e))
            return FileStat(path.name, UNOPENED, 0, 0, self._elapsed(file_start), error=str(e))

        with edi_file:
            try:
                archived = self.archive.upsert(edi_file, is_update=False)
                if archived.success:
                    self.load(edi_file)
                else:
                    edi_file.mark(EdiFileStatus.ERROR, archived.error_message)
                    self._record_error(edi_file.name, edi_file.purchase_order, -1, "ARCHIVE_ERROR",
                                       archived.error_message)

                self.archive.upsert(edi_file, is_update=True)

                if archived.success and edi_file.status is EdiFileStatus.PROCESSED:
                    edi_file.close()
                    remove_physical_file(path)
            except InfrastructureError:
                raise
            except Exception as e:
                logger.error(f"Unable to import the order file {path}: {e}")
                if not edi_file.status.is_terminal:
                    edi_file.mark(EdiFileStatus.ERROR, str(e))
                self._record_error(edi_file.name, edi_file.purchase_order, edi_file.record_count,
                                   "PROCESSING_ERROR", str(e))

        return FileStat(
            file_name=edi_file.name,
            status=edi_file.status.value,
            detail_rows=edi_file.detail_count,
            running_qty=edi_file.running_qty,
            elapsed_seconds=self._elapsed(file_start),
            error=edi_file.error_message or None,
        )

    @staticmethod
    def _elapsed(start: datetime) -> float:
        return (datetime.now(UTC) - start).total_seconds()

    def load(self, edi_file: EdiFile) -> OperationResult:
        """Load all rows of a file in one locked transaction.

        The transaction is committed only when the file ends up PROCESSED;
        amended, rejected and failed files are rolled back. A file whose
        commit fails is marked ERROR and kept.
        """
        logger.info(f"Opening the EDI file {edi_file.path}")
        cursor = self.lock.acquire()
        result = OperationResult.failed("load did not complete")
        try:
            outcome = self._load_rows(cursor, edi_file)
            if outcome.proceeds:
                edi_file.mark(EdiFileStatus.PROCESSED)
                logger.info(
                    f"{edi_file.record_count} rows read, {edi_file.detail_count} details inserted "
                    f"(total qty {edi_file.running_qty}) for {edi_file.path}"
                )
                result = OperationResult()
            elif outcome.decision is Decision.SKIP:
                logger.warning(f"{outcome.reason}. File {edi_file.name} was not imported")
                self._record_error(edi_file.name, edi_file.purchase_order, edi_file.record_count,
                                   "AMENDED_PO", outcome.reason)
                result = OperationResult.failed(outcome.reason)
            else:
                logger.error(f"{outcome.reason}. File {edi_file.name} was not imported")
                self._record_error(edi_file.name, edi_file.purchase_order, edi_file.record_count,
                                   "OVERLAPPING_PO", outcome.reason)
                result = OperationResult.failed(outcome.reason)
        except InfrastructureError:
            raise
        except DataFormatError as e:
            edi_file.mark(EdiFileStatus.ERROR, str(e))
            logger.error(f"Error importing file {edi_file.path}: {e}")
            self._record_error(edi_file.name, edi_file.purchase_order, edi_file.record_count,
                               "DATA_FORMAT", str(e))
            result = OperationResult.failed(str(e))
        except Exception as e:
            edi_file.mark(EdiFileStatus.ERROR, str(e))
            logger.error(f"Error importing file {edi_file.path}: {e}")
            self._record_error(edi_file.name, edi_file.purchase_order, edi_file.record_count,
                               "PROCESSING_ERROR", str(e))
            result = OperationResult.failed(str(e))
        finally:
            committed = self.lock.release(commit=result.success)

        if result.success and not committed:
            message = f"Unable to commit the order data for file {edi_file.name}"
            edi_file.mark(EdiFileStatus.ERROR, message)
            self._record_error(edi_file.name, edi_file.purchase_order, edi_file.record_count,
                               "COMMIT_ERROR", message)
            return OperationResult.failed(message)
        if result.success:
            logger.info(f"File {edi_file.path} has been imported successfully")
        return result

    def _load_rows(self, cursor: Any, edi_file: EdiFile) -> RuleOutcome:
        header_seen = False
        for row in edi_file.reader:
            edi_file.record_count += 1
            kind = row.kind
            if kind is RowKind.HEADER:
                if header_seen:
                    raise DataFormatError(
                        f"Unexpected second header record at line [{row.line_number}] in file {edi_file.path}"
                    )
                header_seen = True
                outcome = self.rules.process_header(cursor, edi_file, row)
                if not outcome.proceeds:
                    return outcome
            elif kind is RowKind.DETAIL:
                self.process_detail(cursor, edi_file, row)
            elif kind is RowKind.SUMMARY:
                self.process_summary(cursor, edi_file, row)
            else:
                raise DataFormatError(
                    f"Unexpected row indicator [{row.indicator}] at line [{row.line_number}] "
                    f"in file {edi_file.path}"
                )
        return RuleOutcome.proceed()

    def process_detail(self, cursor: Any, edi_file: EdiFile, row: EdiRow) -> None:
        if row.quantity == 0:
            logger.debug(f"Skipping zero quantity line [{row.line_number}] in file {edi_file.name}")
            return
        line = self.pricing.resolve_detail(cursor, edi_file, row)
        procedures.insert_detail(cursor, edi_file.batch_id, edi_file.header_id, line)
        edi_file.running_qty += line.quantity
        edi_file.detail_count += 1
        logger.info(
            f"Inserted Detail. PartNumber: {line.part_number}, Qty: {line.quantity}, "
            f"UOM: {line.unit_of_measure}, Price: {line.price}, PO line: {line.purchase_order_line}"
        )

    def process_summary(self, cursor: Any, edi_file: EdiFile, row: EdiRow) -> None:
        total_lines = row.field(SummaryField.TOTAL_LINES)
        total_value = row.field(SummaryField.TOTAL_VALUE)
        procedures.update_header_totals(
            cursor, edi_file.batch_id, edi_file.header_id, total_lines, edi_file.running_qty, total_value
        )
        logger.info(
            f"Updated header {edi_file.header_id}: lines {total_lines}, qty {edi_file.running_qty}, "
            f"value {total_value}"
        )
        procedures.complete_batch(cursor, edi_file.batch_id)
        logger.info(f"BatchID: {edi_file.batch_id} completed successfully.")

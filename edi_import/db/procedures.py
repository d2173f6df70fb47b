from __future__ import annotations

from datetime import datetime
from typing import Any

from psycopg2 import sql

from ..errors import EdiImportError
from ..models.detail_line import DetailLine

"""Write side of the database contract.

Order data is written through functions in the `edi` schema, which own the
batch / header / detail tables; the importer only threads the returned batch
and header ids through the calls. The archive table is written directly.
"""

__all__ = [
    "ARCHIVE_TABLE",
    "SOURCE_TAG",
    "ProcedureError",
    "create_batch",
    "insert_header",
    "insert_detail",
    "update_header_totals",
    "complete_batch",
    "insert_archive",
    "update_archive",
]

ARCHIVE_TABLE = sql.Identifier("edi_import_archive")
SOURCE_TAG = "EDIImport"


class ProcedureError(EdiImportError):
    """Raised when a database function does not return the expected id."""


def _returned_id(cursor: Any, name: str) -> int:
    row = cursor.fetchone()
    if row is None or row[0] is None:
        raise ProcedureError(f"{name} did not return an id")
    return int(row[0])


def create_batch(cursor: Any, dfm_id: str, company: str, requestor: str, source: str = SOURCE_TAG) -> int:
    """Open a new batch and return its id."""
    cursor.execute(
        "SELECT edi.batch_insert(%s, %s, %s, %s)",
        (dfm_id, company, requestor, source),
    )
    return _returned_id(cursor, "edi.batch_insert")


def insert_header(
    cursor: Any,
    batch_id: int,
    purchase_order: str,
    customer: str,
    delivery_date: str,
    document_number: str,
    delivery_time: str,
    vendor_number: str,
) -> int:
    """Insert the order header for a batch and return the header id."""
    cursor.execute(
        "SELECT edi.edi_header_insert(%s, %s, %s, %s, %s, %s, %s)",
        (batch_id, purchase_order, customer, delivery_date, document_number, delivery_time, vendor_number),
    )
    return _returned_id(cursor, "edi.edi_header_insert")


def insert_detail(cursor: Any, batch_id: int, header_id: int, line: DetailLine) -> None:
    cursor.execute(
        "SELECT edi.edi_detail_insert(%s, %s, %s, %s, %s, %s, %s, %s, %s)",
        (
            batch_id,
            header_id,
            line.part_number,
            line.quantity,
            line.unit_of_measure,
            line.price,
            line.purchase_order_line,
            line.additional_part_number,
            line.customer_po_line,
        ),
    )


def update_header_totals(
    cursor: Any, batch_id: int, header_id: int, total_lines: str, total_qty: int, total_value: str
) -> None:
    cursor.execute(
        "SELECT edi.edi_header_update_totals(%s, %s, %s, %s, %s)",
        (batch_id, header_id, total_lines, total_qty, total_value),
    )


def complete_batch(cursor: Any, batch_id: int) -> None:
    cursor.execute("SELECT edi.batch_insert_complete(%s)", (batch_id,))


def insert_archive(
    cursor: Any,
    file_name: str,
    file_date: datetime,
    purchase_order: str,
    content: str,
    status: str,
    message: str,
) -> None:
    cursor.execute(
        sql.SQL(
            "INSERT INTO {} (file_name, file_date, customer_po_number, file_content, status, error_message) "
            "VALUES (%s, %s, %s, %s, %s, %s)"
        ).format(ARCHIVE_TABLE),
        (file_name, file_date, purchase_order, content, status, message),
    )


def update_archive(
    cursor: Any,
    file_name: str,
    file_date: datetime,
    purchase_order: str,
    status: str,
    message: str,
) -> None:
    cursor.execute(
        sql.SQL(
            "UPDATE {} SET status = %s, error_message = %s "
            "WHERE file_name = %s AND file_date = %s AND customer_po_number = %s"
        ).format(ARCHIVE_TABLE),
        (status, message, file_name, file_date, purchase_order),
    )

from __future__ import annotations

import csv
import io
import os
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..errors import DataFormatError
from ..models.edi_file import EdiFile
from .rows import EdiRow, HeaderField, RowKind, parse_quantity

"""EDI file reader.

The whole file is read as text (kept for the archive table) and parsed with
pandas into rows of strings. Rows are pipe-delimited with no column-name
header; the "header" is a data row whose discriminator is H.

Row lengths vary by row kind (header rows are much wider than detail rows),
so the frame is sized to the widest line and fields missing from shorter
rows come back as NaN, which EdiRow stores as None.
"""

__all__ = [
    "DELIMITER",
    "EdiReader",
    "parse_rows",
    "file_creation_time",
    "open_edi_file",
]

DELIMITER = "|"
UNKNOWN = "Unknown"


def parse_rows(content: str) -> list[EdiRow]:
    """Parse raw file text into EdiRow objects (blank lines skipped)."""
    lines = [line for line in content.splitlines() if line.strip()]
    if not lines:
        return []
    width = max(line.count(DELIMITER) for line in lines) + 1
    df = pd.read_csv(
        io.StringIO("\n".join(lines)),
        sep=DELIMITER,
        header=None,
        names=range(width),
        dtype=str,
        keep_default_na=False,
        quoting=csv.QUOTE_NONE,
        skip_blank_lines=True,
        index_col=False,
    )
    rows: list[EdiRow] = []
    for position, raw in enumerate(df.itertuples(index=False, name=None), start=1):
        values = [None if pd.isna(v) else str(v) for v in raw]
        while values and values[-1] is None:
            values.pop()
        rows.append(EdiRow(line_number=position, fields=tuple(values)))
    return rows


class EdiReader:
    """Forward cursor over the rows of one EDI file.

    read_next() advances the cursor and returns the new current row, or None
    at the end. reset() moves the cursor back before the first row.
    """

    def __init__(self, path: Path, rows: list[EdiRow]) -> None:
        self.path = path
        self._rows: list[EdiRow] | None = rows
        self._position = -1

    @classmethod
    def from_text(cls, path: Path, content: str) -> EdiReader:
        return cls(path, parse_rows(content))

    @property
    def closed(self) -> bool:
        return self._rows is None

    def _require_open(self) -> list[EdiRow]:
        if self._rows is None:
            raise ValueError(f"reader for {self.path.name} is closed")
        return self._rows

    @property
    def current(self) -> EdiRow | None:
        rows = self._require_open()
        if 0 <= self._position < len(rows):
            return rows[self._position]
        return None

    def read_next(self) -> EdiRow | None:
        rows = self._require_open()
        if self._position < len(rows):
            self._position += 1
        return self.current

    def row_kind(self) -> RowKind:
        row = self.current
        return row.kind if row is not None else RowKind.OTHER

    def field_at(self, index: int, default: str | None = "") -> str | None:
        row = self.current
        if row is None:
            return default
        return row.field(index, default)

    def row_quantity(self) -> int:
        row = self.current
        return row.quantity if row is not None else parse_quantity(None)

    def reset(self) -> None:
        self._require_open()
        self._position = -1

    def close(self) -> None:
        self._rows = None

    def __iter__(self) -> Iterator[EdiRow]:
        while (row := self.read_next()) is not None:
            yield row

    def __enter__(self) -> EdiReader:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def file_creation_time(stat: os.stat_result) -> datetime:
    """Creation time (UTC) where the platform records one, else modification time.

    st_ctime is the inode change time on Linux, so it is never used.
    """
    timestamp = getattr(stat, "st_birthtime", None)
    if timestamp is None:
        timestamp = stat.st_mtime
    return datetime.fromtimestamp(timestamp, UTC)


def open_edi_file(path: Path) -> EdiFile:
    """Open an EDI file and extract its identity from the header row.

    Raises:
        DataFormatError: the first row is not a header row (or the file is empty)
        OSError: the file cannot be read
    """
    content = path.read_text(encoding="utf-8-sig")
    reader = EdiReader.from_text(path, content)
    try:
        header = reader.read_next()
        if header is None or header.kind is not RowKind.HEADER:
            raise DataFormatError(f"File {path.name} does not contain a header record.")
        purchase_order = header.field(HeaderField.PURCHASE_ORDER, UNKNOWN)
        customer_code = header.field(HeaderField.CUSTOMER_CODE, UNKNOWN)
        version = header.field(HeaderField.VERSION, "")
        # rewind so the load phase sees the header again
        reader.reset()
    except Exception:
        reader.close()
        raise
    return EdiFile(
        path=path,
        content=content,
        reader=reader,
        purchase_order=purchase_order,
        customer_code=customer_code,
        version=version,
        file_date=file_creation_time(path.stat()),
    )

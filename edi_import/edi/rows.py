from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, IntEnum

"""Row classification and fixed field positions for pipe-delimited EDI order files.

Every row carries a single-character discriminator in column 0:
    H -> header, D -> detail, S -> summary, anything else -> other (fatal).

Decode (char -> kind) and encode (kind -> char) are kept as two separate
lookups so neither direction depends on scanning the other.
"""

__all__ = [
    "RowKind",
    "HeaderField",
    "DetailField",
    "SummaryField",
    "EdiRow",
    "classify",
    "encode",
    "parse_quantity",
    "MAX_QUANTITY_DIGITS",
]


class RowKind(Enum):
    HEADER = "header"
    DETAIL = "detail"
    SUMMARY = "summary"
    OTHER = "other"


class HeaderField(IntEnum):
    ROW_TYPE = 0
    PURCHASE_ORDER = 20
    CUSTOMER_CODE = 29
    DOCUMENT_NUMBER = 31
    DELIVERY_DATE = 35
    DELIVERY_TIME = 36
    VERSION = 39
    VENDOR_NUMBER = 100


class DetailField(IntEnum):
    ROW_TYPE = 0
    PURCHASE_ORDER_LINE = 4
    PRODUCT_NUMBER = 6
    STOCK_CODE = 8
    ALDI_STOCK_CODE = 12
    QUANTITY = 13
    UNIT_OF_MEASURE = 14
    PRICE = 15


class SummaryField(IntEnum):
    ROW_TYPE = 0
    TOTAL_LINES = 4
    TOTAL_VALUE = 6


MAX_QUANTITY_DIGITS = 18

_KIND_BY_CHAR: dict[str, RowKind] = {
    "H": RowKind.HEADER,
    "D": RowKind.DETAIL,
    "S": RowKind.SUMMARY,
}

_CHAR_BY_KIND: dict[RowKind, str] = {
    RowKind.HEADER: "H",
    RowKind.DETAIL: "D",
    RowKind.SUMMARY: "S",
    RowKind.OTHER: "\0",
}


def classify(indicator: str | None) -> RowKind:
    """Map a discriminator value to its RowKind (exact match, no case folding)."""
    if indicator is None:
        return RowKind.OTHER
    return _KIND_BY_CHAR.get(indicator, RowKind.OTHER)


def encode(kind: RowKind) -> str:
    """Inverse of classify(); OTHER encodes to NUL."""
    return _CHAR_BY_KIND[kind]


def parse_quantity(text: str | None) -> int:
    """Parse a quantity field, truncating decimals toward zero.

    Some trading partners send "10.00", others "10", so the value is always
    parsed as a decimal first. Empty or unparsable text yields 0, as does a
    value with more than MAX_QUANTITY_DIGITS integer digits.
    """
    if text is None or text.strip() == "":
        return 0
    try:
        value = Decimal(text.strip())
        # checked before int(), which would expand an exponent like 1e999999999
        if value.is_finite() and value.adjusted() >= MAX_QUANTITY_DIGITS:
            return 0
        return int(value)
    except (ArithmeticError, ValueError):
        return 0


@dataclass(frozen=True)
class EdiRow:
    """A single parsed row. Fields missing from a short row are stored as None."""

    line_number: int  # 1-based position among non-blank rows
    fields: tuple[str | None, ...]

    @property
    def kind(self) -> RowKind:
        return classify(self.field(HeaderField.ROW_TYPE, default=None))

    @property
    def indicator(self) -> str:
        return self.field(HeaderField.ROW_TYPE)

    def has_field(self, index: int) -> bool:
        return index < len(self.fields) and self.fields[index] is not None

    def field(self, index: int, default: str | None = "") -> str | None:
        if not self.has_field(index):
            return default
        return self.fields[index]

    @property
    def quantity(self) -> int:
        return parse_quantity(self.field(DetailField.QUANTITY))

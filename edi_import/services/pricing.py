from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import psycopg2

from ..db import lookups
from ..db.connection import savepoint
from ..edi.rows import DetailField, EdiRow
from ..errors import DataFormatError
from ..models.detail_line import DetailLine
from ..models.edi_file import EdiFile

"""Detail row resolution: product number, unit price and quantity.

Non-ALDI customers send the unit price on the row. ALDI orders are priced
from contract data instead and may be ordered in pallets (unit "200"), which
are converted to cartons using the item's pallet capacity.
"""

__all__ = [
    "PALLET_UOM",
    "CARTON_UOM",
    "PricingResolver",
]

logger = logging.getLogger(__name__)

PALLET_UOM = "200"
CARTON_UOM = "CT"

_PRICE_ERRORS = (psycopg2.Error, ArithmeticError, ValueError)


def _parse_price(text: str | None, po_line: str) -> Decimal:
    try:
        return Decimal((text or "").strip())
    except InvalidOperation as e:
        raise DataFormatError(f"Invalid unit price [{text}] in PO line: {po_line}") from e


def _parse_po_line(text: str | None) -> int:
    try:
        return int((text or "").strip())
    except ValueError as e:
        raise DataFormatError(f"Invalid purchase order line number [{text}]") from e


class PricingResolver:
    def resolve_product_number(self, cursor: Any, edi_file: EdiFile, row: EdiRow) -> str:
        """Product number from the row, or the GTIN registered for its stock code."""
        product = (row.field(DetailField.PRODUCT_NUMBER) or "").strip()
        if product:
            return product
        stock_code = row.field(DetailField.STOCK_CODE)
        gtin = lookups.gtin_for_stock_code(cursor, edi_file.company_db, stock_code)
        if gtin is None:
            raise DataFormatError(
                f"No valid GTIN/StockCode is listed in PO line: {row.field(DetailField.PURCHASE_ORDER_LINE)}"
            )
        logger.info(f"Transferred StockCode {stock_code} to GTIN: {gtin}")
        return gtin

    def aldi_unit_price(self, cursor: Any, edi_file: EdiFile, stock_code: str) -> Decimal:
        """Contract price for an ALDI line.

        The active contract for the customer is tried first, then the most
        recent contract price for the item. Returns 0 when neither is found.
        """
        try:
            with savepoint(cursor, "edi_contract_price"):
                price = lookups.contract_price(cursor, edi_file.company_db, edi_file.customer_code, stock_code)
            if price is not None:
                return price
        except _PRICE_ERRORS as e:
            logger.debug(f"Contract price query failed for Stock Code: {stock_code}: {e}")

        try:
            with savepoint(cursor, "edi_latest_price"):
                price = lookups.latest_contract_price(cursor, edi_file.company_db, stock_code)
            if price is not None:
                return price
            logger.info(
                f"Could not find Unit Price for Customer: {edi_file.customer_code}, Stock Code: {stock_code}"
            )
        except _PRICE_ERRORS as e:
            logger.info(
                f"Unable to get Unit Price for Customer: {edi_file.customer_code}, "
                f"Stock Code: {stock_code}. Error: {e}"
            )
        return Decimal("0")

    def pallet_capacity(self, cursor: Any, edi_file: EdiFile, stock_code: str) -> int:
        capacity = lookups.pallet_capacity(cursor, edi_file.company_db, stock_code)
        if capacity is None:
            raise DataFormatError(f"Could not find stock code: {stock_code} while checking the pallet capacity")
        return capacity

    def resolve_detail(self, cursor: Any, edi_file: EdiFile, row: EdiRow) -> DetailLine:
        """Build the detail line to insert for a row with a non-zero quantity.

        Raises:
            DataFormatError: no product number or GTIN, unparsable price or
                PO line, or unknown pallet capacity
        """
        customer_po_line = row.field(DetailField.PURCHASE_ORDER_LINE)
        stock_code = row.field(DetailField.STOCK_CODE)
        part_number = self.resolve_product_number(cursor, edi_file, row)
        quantity = row.quantity
        unit = row.field(DetailField.UNIT_OF_MEASURE)

        if edi_file.is_aldi:
            additional_part_number = row.field(DetailField.ALDI_STOCK_CODE)
            price = self.aldi_unit_price(cursor, edi_file, stock_code)
            if unit == PALLET_UOM:
                capacity = self.pallet_capacity(cursor, edi_file, stock_code)
                logger.info(f"Stock Code {stock_code}: {quantity} pallet(s) of {capacity} converted to cartons")
                quantity *= capacity
                unit = CARTON_UOM
        else:
            additional_part_number = stock_code
            price = _parse_price(row.field(DetailField.PRICE), customer_po_line)

        return DetailLine(
            part_number=part_number,
            quantity=quantity,
            unit_of_measure=unit,
            price=price,
            purchase_order_line=_parse_po_line(customer_po_line),
            additional_part_number=additional_part_number,
            customer_po_line=customer_po_line,
        )

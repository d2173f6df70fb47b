from __future__ import annotations

from decimal import Decimal
from typing import Any

from psycopg2 import sql

"""Read-only queries used by the business rules and the pricing resolver.

Company specific tables live in a per-company schema whose name is resolved
from company_details at the start of each file; those queries are composed
with psycopg2.sql.Identifier. All functions take the cursor of the current
locking transaction and return None when no row matches.
"""

__all__ = [
    "ORDER_HEADER_TABLE",
    "company_database_name",
    "edi_customer",
    "order_exists",
    "gtin_for_stock_code",
    "pallet_capacity",
    "contract_price",
    "latest_contract_price",
]

ORDER_HEADER_TABLE = sql.Identifier("edi", "sortoi_edi_header")


def _scalar(cursor: Any, query: Any, params: tuple[Any, ...]) -> Any:
    cursor.execute(query, params)
    row = cursor.fetchone()
    if row is None:
        return None
    return row[0]


def company_database_name(cursor: Any, company_id: str) -> str | None:
    value = _scalar(
        cursor,
        "SELECT database_name FROM company_details WHERE company_id = %s",
        (int(company_id),),
    )
    return value or None


def edi_customer(cursor: Any, company_db: str, edi_code: str) -> str | None:
    """Customer code registered for an EDI sender code."""
    query = sql.SQL("SELECT customer FROM {} WHERE edi_sender_code = %s").format(
        sql.Identifier(company_db, "ar_mult_address")
    )
    value = _scalar(cursor, query, (edi_code,))
    return value or None


def order_exists(cursor: Any, customer: str, purchase_order: str) -> bool:
    query = sql.SQL("SELECT COUNT(1) FROM {} WHERE customer = %s AND customer_po_number = %s").format(
        ORDER_HEADER_TABLE
    )
    count = _scalar(cursor, query, (customer, purchase_order))
    return int(count or 0) != 0


def gtin_for_stock_code(cursor: Any, company_db: str, stock_code: str) -> str | None:
    query = sql.SQL("SELECT alternate_key1 FROM {} WHERE stock_code = %s").format(
        sql.Identifier(company_db, "inv_master")
    )
    value = _scalar(cursor, query, (stock_code,))
    if value is None or str(value).strip() == "":
        return None
    return str(value)


def pallet_capacity(cursor: Any, company_db: str, stock_code: str) -> int | None:
    """Units per pallet (alternate unit conversion factor, rounded)."""
    query = sql.SQL("SELECT ROUND(conv_fact_alt_uom, 0) FROM {} WHERE stock_code = %s").format(
        sql.Identifier(company_db, "inv_master")
    )
    value = _scalar(cursor, query, (stock_code,))
    return None if value is None else int(value)


def contract_price(cursor: Any, company_db: str, edi_code: str, stock_code: str) -> Decimal | None:
    """Fixed price from the customer's contract that is active today."""
    query = sql.SQL(
        """
        SELECT ROUND(cp.fixed_price, 2) AS price
        FROM {price} cp
        INNER JOIN {master} cm ON cm.contract_id = cp.contract_id
        INNER JOIN {address} adr ON adr.pricing_code = cp.pricing_code
        INNER JOIN {customer} c ON c.customer = adr.customer AND c.buying_group1 = cm.buying_group
        WHERE CURRENT_DATE BETWEEN cm.contract_start_date AND cm.contract_end_date
          AND adr.edi_sender_code = %s
          AND cp.stock_code = %s
        """
    ).format(
        price=sql.Identifier(company_db, "bsl_contract_price"),
        master=sql.Identifier(company_db, "bsl_contract_master"),
        address=sql.Identifier(company_db, "ar_mult_address"),
        customer=sql.Identifier(company_db, "ar_customer"),
    )
    value = _scalar(cursor, query, (edi_code, stock_code))
    return None if value is None else Decimal(value)


def latest_contract_price(cursor: Any, company_db: str, stock_code: str) -> Decimal | None:
    """Most recent contract price for a stock code or GTIN, any customer or date."""
    query = sql.SQL(
        """
        SELECT ROUND(cp.fixed_price, 2) AS price
        FROM {price} cp
        INNER JOIN {inventory} im ON im.stock_code = cp.stock_code
        WHERE im.stock_code = %s OR im.alternate_key1 = %s
        ORDER BY cp.contract_price_id DESC
        LIMIT 1
        """
    ).format(
        price=sql.Identifier(company_db, "bsl_contract_price"),
        inventory=sql.Identifier(company_db, "inv_master"),
    )
    value = _scalar(cursor, query, (stock_code, stock_code))
    return None if value is None else Decimal(value)

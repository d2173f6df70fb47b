from __future__ import annotations

import getpass
import logging
from typing import Any

from ..config.provider import ConfigProvider
from ..db import lookups, procedures
from ..edi.rows import EdiRow, HeaderField
from ..errors import EdiImportError
from ..models.edi_file import EdiFile, EdiFileStatus
from ..models.outcome import Decision, RuleOutcome

"""Business rules applied once per file, on its header row.

1. Resolve the company database (schema) from the configured company id.
2. Flag ALDI customers (customer code starting with "ALDI").
3. Version check:
   * version set and not "000" -> amended order, skipped (not an error)
   * otherwise an existing order for the same customer + PO is an
     overlapping order and the file is rejected
4. Otherwise open a batch and insert the order header.

The decision is returned as a RuleOutcome; only unexpected failures raise.
"""

__all__ = [
    "ALDI_PREFIX",
    "NEW_ORDER_VERSION",
    "BusinessRuleEngine",
]

logger = logging.getLogger(__name__)

ALDI_PREFIX = "ALDI"
NEW_ORDER_VERSION = "000"


class BusinessRuleEngine:
    def __init__(self, config: ConfigProvider, requestor: str | None = None) -> None:
        self.config = config
        self.requestor = requestor or getpass.getuser()

    def resolve_company_database(self, cursor: Any, company_id: str) -> str:
        name = lookups.company_database_name(cursor, company_id)
        if not name:
            raise EdiImportError(f"Could not find database name for company {company_id}")
        return name

    def is_aldi_customer(self, cursor: Any, company_db: str, edi_code: str) -> bool:
        customer = lookups.edi_customer(cursor, company_db, edi_code)
        return bool(customer) and customer[:4] == ALDI_PREFIX

    def check_version(self, cursor: Any, edi_file: EdiFile) -> RuleOutcome:
        """Decide whether the order in this file may be imported."""
        version = edi_file.version
        if version and version != NEW_ORDER_VERSION:
            return RuleOutcome.skip(
                f"This is an update to an existing Purchase Order : {edi_file.purchase_order} "
                f"for Customer : {edi_file.customer_code}"
            )
        if lookups.order_exists(cursor, edi_file.customer_code, edi_file.purchase_order):
            return RuleOutcome.reject(
                f"Overlapping EDI Customer: {edi_file.customer_code} PO: {edi_file.purchase_order}"
            )
        return RuleOutcome.proceed()

    def open_order(self, cursor: Any, edi_file: EdiFile, header: EdiRow) -> None:
        cfg = self.config.current()
        edi_file.batch_id = procedures.create_batch(cursor, cfg.dfm_id, cfg.company, self.requestor)
        logger.info(f"Added new batch {edi_file.batch_id}")

        delivery_date = header.field(HeaderField.DELIVERY_DATE)
        edi_file.header_id = procedures.insert_header(
            cursor,
            batch_id=edi_file.batch_id,
            purchase_order=edi_file.purchase_order,
            customer=edi_file.customer_code,
            delivery_date=delivery_date,
            document_number=header.field(HeaderField.DOCUMENT_NUMBER),
            delivery_time=header.field(HeaderField.DELIVERY_TIME),
            vendor_number=header.field(HeaderField.VENDOR_NUMBER),
        )
        logger.info(
            f"Inserted header {edi_file.header_id} for Customer: {edi_file.customer_code}, "
            f"PO: {edi_file.purchase_order}, delivery date: {delivery_date}"
        )

    def process_header(self, cursor: Any, edi_file: EdiFile, header: EdiRow) -> RuleOutcome:
        """Run the header rules and apply the outcome to the file state.

        SKIP marks the file AMENDED_PO, REJECT marks it ERROR; the reason is
        kept as the file's error message. Unexpected errors mark the file
        ERROR and are re-raised for the caller to log.
        """
        try:
            cfg = self.config.current()
            edi_file.company_db = self.resolve_company_database(cursor, cfg.company)
            edi_file.is_aldi = self.is_aldi_customer(cursor, edi_file.company_db, edi_file.customer_code)

            outcome = self.check_version(cursor, edi_file)
            if outcome.decision is Decision.SKIP:
                edi_file.mark(EdiFileStatus.AMENDED_PO, outcome.reason)
            elif outcome.decision is Decision.REJECT:
                edi_file.mark(EdiFileStatus.ERROR, outcome.reason)
            else:
                self.open_order(cursor, edi_file, header)
            return outcome
        except Exception as e:
            edi_file.mark(EdiFileStatus.ERROR, str(e))
            raise

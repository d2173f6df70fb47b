# Shared pytest fixtures
from __future__ import annotations

import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from edi_import.config.loader import AppConfig
from edi_import.config.provider import ConfigProvider
from edi_import.db import lookups, procedures
from edi_import.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "input").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """company: "1"
dfm_id: "15"
input_file_location: ./input
disabled: false
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: erp
logging:
  level: INFO
  error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "edi_import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def app_config(temp_workdir: Path) -> AppConfig:
    return AppConfig(input_file_location=str(temp_workdir / "input"))


@pytest.fixture()
def config_provider(app_config: AppConfig) -> ConfigProvider:
    return ConfigProvider.static(app_config)


class EdiBuilder:
    """Builds pipe-delimited EDI order text row by row."""

    HEADER_WIDTH = 101
    DETAIL_WIDTH = 16
    SUMMARY_WIDTH = 7

    def __init__(self) -> None:
        self.lines: list[str] = []

    @staticmethod
    def _line(width: int, values: dict[int, str]) -> str:
        fields = [""] * width
        for index, value in values.items():
            fields[index] = value
        return "|".join(fields)

    def header(self, po: str = "PO1001", customer: str = "WOOL01", version: str = "000",
               document: str = "DOC1", delivery_date: str = "20240105", delivery_time: str = "0800",
               vendor: str = "V100") -> EdiBuilder:
        self.lines.append(self._line(self.HEADER_WIDTH, {
            0: "H", 20: po, 29: customer, 31: document, 35: delivery_date,
            36: delivery_time, 39: version, 100: vendor,
        }))
        return self

    def detail(self, po_line: str = "1", product: str = "9300000000011", stock_code: str = "SC100",
               aldi_stock_code: str = "", quantity: str = "10.00", uom: str = "CT",
               price: str = "2.50") -> EdiBuilder:
        self.lines.append(self._line(self.DETAIL_WIDTH, {
            0: "D", 4: po_line, 6: product, 8: stock_code, 12: aldi_stock_code,
            13: quantity, 14: uom, 15: price,
        }))
        return self

    def summary(self, total_lines: str = "1", total_value: str = "25.00") -> EdiBuilder:
        self.lines.append(self._line(self.SUMMARY_WIDTH, {0: "S", 4: total_lines, 6: total_value}))
        return self

    def raw(self, line: str) -> EdiBuilder:
        self.lines.append(line)
        return self

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"

    def write(self, path: Path) -> Path:
        path.write_text(self.text(), encoding="utf-8")
        return path


@pytest.fixture()
def edi_builder() -> type[EdiBuilder]:
    return EdiBuilder


class FakeOrderDb:
    """In-memory stand-in for the lookups and procedures modules.

    Writes are staged until the fake lock commits them; a rollback discards
    them, like the real locking transaction.
    """

    def __init__(self) -> None:
        self.company_db = "erp1"
        self.customers: dict[str, str] = {"WOOL01": "WOOLWORTHS", "ALDI01": "ALDI0001"}
        self.existing_orders: set[tuple[str, str]] = set()
        self.gtins: dict[str, str] = {}
        self.pallets: dict[str, int] = {}
        self.contract_prices: dict[tuple[str, str], Decimal] = {}
        self.latest_prices: dict[str, Decimal] = {}
        self.failures: dict[str, Exception] = {}

        self.batches: list[dict[str, Any]] = []
        self.headers: list[dict[str, Any]] = []
        self.details: list[dict[str, Any]] = []
        self.totals: list[dict[str, Any]] = []
        self.completed: list[int] = []
        self.archive: dict[tuple[str, Any, str], dict[str, Any]] = {}

        self._pending: list[tuple[str, dict[str, Any]]] = []
        self._next_id = 100

    def _check(self, name: str) -> None:
        if name in self.failures:
            raise self.failures[name]

    def _stage(self, table: str, record: dict[str, Any]) -> None:
        self._pending.append((table, record))

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def commit(self) -> None:
        for table, record in self._pending:
            if table == "archive_insert":
                key = (record["file_name"], record["file_date"], record["purchase_order"])
                self.archive[key] = record
            elif table == "archive_update":
                key = (record["file_name"], record["file_date"], record["purchase_order"])
                if key in self.archive:
                    self.archive[key].update(status=record["status"], message=record["message"])
            elif table == "completed":
                self.completed.append(record["batch_id"])
            else:
                getattr(self, table).append(record)
        self._pending.clear()

    def rollback(self) -> None:
        self._pending.clear()

    # lookups
    def company_database_name(self, cursor, company_id):
        self._check("company_database_name")
        return self.company_db

    def edi_customer(self, cursor, company_db, edi_code):
        return self.customers.get(edi_code)

    def order_exists(self, cursor, customer, purchase_order):
        return (customer, purchase_order) in self.existing_orders

    def gtin_for_stock_code(self, cursor, company_db, stock_code):
        return self.gtins.get(stock_code)

    def pallet_capacity(self, cursor, company_db, stock_code):
        return self.pallets.get(stock_code)

    def contract_price(self, cursor, company_db, edi_code, stock_code):
        self._check("contract_price")
        return self.contract_prices.get((edi_code, stock_code))

    def latest_contract_price(self, cursor, company_db, stock_code):
        self._check("latest_contract_price")
        return self.latest_prices.get(stock_code)

    # procedures
    def create_batch(self, cursor, dfm_id, company, requestor, source=procedures.SOURCE_TAG):
        self._check("create_batch")
        batch_id = self._new_id()
        self._stage("batches", {"batch_id": batch_id, "dfm_id": dfm_id, "company": company,
                                "requestor": requestor, "source": source})
        return batch_id

    def insert_header(self, cursor, batch_id, purchase_order, customer, delivery_date,
                      document_number, delivery_time, vendor_number):
        header_id = self._new_id()
        self._stage("headers", {"header_id": header_id, "batch_id": batch_id,
                                "purchase_order": purchase_order, "customer": customer,
                                "delivery_date": delivery_date, "document_number": document_number,
                                "delivery_time": delivery_time, "vendor_number": vendor_number})
        return header_id

    def insert_detail(self, cursor, batch_id, header_id, line):
        self._check("insert_detail")
        self._stage("details", {"batch_id": batch_id, "header_id": header_id, "line": line})

    def update_header_totals(self, cursor, batch_id, header_id, total_lines, total_qty, total_value):
        self._stage("totals", {"batch_id": batch_id, "header_id": header_id, "total_lines": total_lines,
                               "total_qty": total_qty, "total_value": total_value})

    def complete_batch(self, cursor, batch_id):
        self._stage("completed", {"batch_id": batch_id})

    def insert_archive(self, cursor, file_name, file_date, purchase_order, content, status, message):
        self._check("insert_archive")
        self._stage("archive_insert", {"file_name": file_name, "file_date": file_date,
                                       "purchase_order": purchase_order, "content": content,
                                       "status": status, "message": message})

    def update_archive(self, cursor, file_name, file_date, purchase_order, status, message):
        self._check("update_archive")
        self._stage("archive_update", {"file_name": file_name, "file_date": file_date,
                                       "purchase_order": purchase_order, "status": status,
                                       "message": message})

    def archive_by_name(self, file_name: str) -> dict[str, Any] | None:
        for key, record in self.archive.items():
            if key[0] == file_name:
                return record
        return None


_LOOKUPS = ("company_database_name", "edi_customer", "order_exists", "gtin_for_stock_code",
            "pallet_capacity", "contract_price", "latest_contract_price")
_PROCEDURES = ("create_batch", "insert_header", "insert_detail", "update_header_totals",
               "complete_batch", "insert_archive", "update_archive")


@pytest.fixture()
def fake_db(monkeypatch) -> FakeOrderDb:
    db = FakeOrderDb()
    for name in _LOOKUPS:
        monkeypatch.setattr(lookups, name, getattr(db, name))
    for name in _PROCEDURES:
        monkeypatch.setattr(procedures, name, getattr(db, name))
    return db


class FakeLock:
    """Duck-typed ExclusiveLock that commits or discards the fake database's staged writes."""

    def __init__(self, db: FakeOrderDb) -> None:
        self.db = db
        self.cursor = MagicMock(name="cursor")
        self.held = False
        self.acquired = 0
        self.commits = 0
        self.rollbacks = 0

    def acquire(self):
        self.held = True
        self.acquired += 1
        return self.cursor

    def release(self, commit: bool = True, rollback: bool = True) -> bool:
        if not self.held:
            return True
        if commit:
            self.db.commit()
            self.commits += 1
        else:
            self.db.rollback()
            self.rollbacks += 1
        self.held = False
        return True


@pytest.fixture()
def fake_lock(fake_db: FakeOrderDb) -> FakeLock:
    return FakeLock(fake_db)


@pytest.fixture()
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE",
                 "EDI_IMPORT_ENVIRONMENT", "EDI_IMPORT_DISABLED", "EDI_IMPORT_INPUT_FILE_LOCATION"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def live(fake_db: FakeOrderDb, fake_lock: FakeLock):
    """Patch the connection and lock so the CLI runs against the fake order database."""
    with patch("edi_import.cli.__main__.Database") as database, \
         patch("edi_import.cli.__main__.ExclusiveLock", return_value=fake_lock):
        yield database

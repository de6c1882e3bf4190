from datetime import datetime
from decimal import Decimal

import pytest

from retail_ingest.database import SUPPLIER, SQLiteRepository
from retail_ingest.ingestion import IngestionCoordinator
from retail_ingest.models import IngestMode
from retail_ingest.valuation import ValuationEngine

INGESTED_AT = datetime(2026, 2, 1, 9, 30)

POS_TABLE_HEAD = ["No", "Kode", "Nama", "Kuantitas", "Sat", "Harga", "Diskon", "Jumlah"]
PURCHASE_TABLE_HEAD = ["No", "Kode", "Nama", "Kuantitas", "Sat", "Harga Beli", "Diskon", "Jumlah"]
LEDGER_TABLE_HEAD = ["No", "Kode", "Nama", "Kts", "Sat", "Harga Pokok", "Harga Jual", "Diskon", "Laba", "Jumlah"]


def pos_header(number="SL2601000045", customer="Umum", day="18/01/2026", cashier="SHIFT 1"):
    return [
        "Nomor", ":", number,
        "Pelanggan", ":", customer,
        "Tanggal", ":", day,
        "Kasir", ":", cashier,
        *POS_TABLE_HEAD,
    ]


def pos_summary(subtotal="30,000", discount="0", total="30,000"):
    return ["Sub Total", subtotal, "Diskon", discount, "Total", total]


def purchase_header(
    number="PB2602000001",
    admin="budi",
    day="05/02/2026",
    supplier="PT Sumber Rejeki",
    due="05/03/2026",
    location="Jl. Merdeka 1",
):
    return [
        "Nomor", ":", number,
        "Admin", ":", admin,
        "Tanggal", ":", day,
        "Pemasok", ":", supplier,
        "Jatuh Tempo", ":", due,
        location,
        *PURCHASE_TABLE_HEAD,
    ]


def purchase_summary(notes="titip gudang", subtotal="1.000", discount="0", total="1.000"):
    return [
        "Keterangan", ":", notes,
        "Sub Total", ":", subtotal,
        "Diskon", ":", discount,
        "Total", ":", total,
    ]


def ledger_header(number="SL2601000045"):
    return [number, *LEDGER_TABLE_HEAD]


@pytest.fixture()
def repository(tmp_path):
    repo = SQLiteRepository(tmp_path / "store.db")
    repo.initialise_schema()
    yield repo
    repo.close()


@pytest.fixture()
def branch(repository):
    return repository.resolve_branch("MAIN", "Main Branch").entity


@pytest.fixture()
def make_item(repository):
    """Create a catalog item with the given unit variants ``(label, factor, sell_price)``."""

    def _make(code="BRG001", variants=(("PCS", "1", "0"),)):
        supplier = repository.resolve_counterparty(SUPPLIER, "PT Test").entity
        category = repository.resolve_category("GEN", "General").entity
        item = repository.create_catalog_item(code, f"Item {code}", category.id, supplier.id)
        for label, factor, sell_price in variants:
            repository.create_unit_variant(item.id, label, Decimal(factor), Decimal(sell_price))
        return item

    return _make


@pytest.fixture()
def make_coordinator(repository, branch):
    def _make(mode=IngestMode.CREATE):
        return IngestionCoordinator(
            repository,
            ValuationEngine(repository),
            branch_id=branch.id,
            hash_password=lambda: "pbkdf2-test-hash",
            admin_name="ADMIN",
            mode=mode,
            clock=lambda: INGESTED_AT,
        )

    return _make

from datetime import date
from decimal import Decimal

from conftest import ledger_header, pos_header, pos_summary, purchase_header, purchase_summary
from retail_ingest.layouts import (
    PointOfSaleLayout,
    PurchaseInvoiceLayout,
    SalesLedgerLayout,
    get_layout,
    scan_labels,
)
from retail_ingest.models import DocumentFamily, RowKind


def test_get_layout_dispatches_on_family():
    assert isinstance(get_layout("pos"), PointOfSaleLayout)
    assert isinstance(get_layout(DocumentFamily.PURCHASE), PurchaseInvoiceLayout)
    assert isinstance(get_layout("sales-ledger"), SalesLedgerLayout)


def test_pos_rows_are_classified_by_shape():
    layout = PointOfSaleLayout()

    assert layout.classify(pos_header()) is RowKind.HEADER
    assert layout.classify(["1", "BRG001", "Gula", "2", "PCS", "15,000", "0", "30,000"]) is RowKind.LINE_ITEM
    assert layout.classify(pos_summary()) is RowKind.SUMMARY
    assert layout.classify(["Dicetak oleh", "ADMIN"]) is RowKind.NOISE
    assert layout.classify(["1.5", "BRG001"]) is RowKind.NOISE


def test_pos_header_requires_labels_and_table_head_on_one_row():
    layout = PointOfSaleLayout()
    labels_only = pos_header()[:12]

    assert layout.classify(labels_only) is RowKind.NOISE


def test_pos_header_fields_are_found_by_label_not_position():
    layout = PointOfSaleLayout()
    row = ["", "Kasir", ":", "SHIFT 2", "Nomor", ":", "SL01", "", "Tanggal", ":", "1/2/2026",
           "Pelanggan", ":", "", "No", "Kode", "Nama", "Kuantitas"]

    header = layout.parse_header(row)

    assert header.invoice_number == "SL01"
    assert header.operator_name == "SHIFT 2"
    assert header.transaction_date == date(2026, 2, 1)
    assert header.counterparty_name is None


def test_pos_summary_reads_values_following_labels():
    summary = PointOfSaleLayout().parse_summary(pos_summary("107,000.00", "2,000", "105,000.00"))

    assert summary.subtotal == Decimal("107000.00")
    assert summary.discount == Decimal("2000")
    assert summary.total == Decimal("105000.00")


def test_line_item_keeps_empty_numbers_as_none():
    item = PointOfSaleLayout().parse_line_item(["3", "BRG9", "Kopi", "", "PCS", "abc"])

    assert item.sequence_number == 3
    assert item.code == "BRG9"
    assert item.quantity is None
    assert item.unit_price is None
    assert item.line_total is None


def test_line_item_without_code_and_name_is_discarded():
    layout = PointOfSaleLayout()

    assert layout.parse_line_item(["4", "", "", "1", "PCS"]) is None
    assert layout.parse_line_item(["x", "BRG1", "Teh"]) is None


def test_purchase_header_reads_due_date_and_salvages_location():
    header = PurchaseInvoiceLayout().parse_header(purchase_header())

    assert header.invoice_number == "PB2602000001"
    assert header.operator_name == "budi"
    assert header.transaction_date == date(2026, 2, 5)
    assert header.counterparty_name == "PT Sumber Rejeki"
    assert header.due_date == date(2026, 3, 5)
    assert header.location == "Jl. Merdeka 1"


def test_purchase_location_is_not_taken_from_a_label_or_colon():
    layout = PurchaseInvoiceLayout()
    after_label = ["Nomor", ":", "PB1", "Jatuh Tempo", "No", "Kode", "Nama"]
    after_colon = ["Nomor", ":", "PB1", ":", "No", "Kode", "Nama"]

    assert layout.parse_header(after_label).location is None
    assert layout.parse_header(after_colon).location is None


def test_purchase_label_without_colon_is_ignored():
    row = ["Nomor", ":", "PB1", "Admin", "budi", ":", "x", "No", "Kode", "Nama"]

    header = PurchaseInvoiceLayout().parse_header(row)

    assert header.invoice_number == "PB1"
    assert header.operator_name is None


def test_purchase_summary_reads_notes_and_totals():
    layout = PurchaseInvoiceLayout()
    row = purchase_summary(notes="", subtotal="1.384,92", discount="0", total="1.384,92")

    assert layout.classify(row) is RowKind.SUMMARY
    summary = layout.parse_summary(row)
    assert summary.notes is None
    assert summary.subtotal == Decimal("1384.92")
    assert summary.total == Decimal("1384.92")


def test_sales_ledger_header_and_item_columns():
    layout = SalesLedgerLayout()
    item_row = ["1", "BRG001", "Gula", "2", "PCS", "12,000", "15,000", "0", "6,000", "30,000"]

    assert layout.classify(ledger_header()) is RowKind.HEADER
    assert layout.classify(["PB01", *ledger_header()[1:]]) is RowKind.NOISE
    assert layout.parse_header(ledger_header("sl99")).invoice_number == "sl99"

    item = layout.parse_line_item(item_row)
    assert item.cost_price == Decimal("12000")
    assert item.unit_price == Decimal("15000")
    assert item.profit == Decimal("6000")
    assert item.line_total == Decimal("30000")


def test_parse_meta_reads_banner_and_period():
    meta = PointOfSaleLayout().parse_meta(
        ["HaSmart", "LAPORAN POINT OF SALES", "Jl. Pasar 3", "Periode 18/01/2026 Sampai 06/02/2026", "0812"]
    )

    assert meta.app == "HaSmart"
    assert meta.report == "LAPORAN POINT OF SALES"
    assert meta.address == "Jl. Pasar 3"
    assert meta.phone == "0812"
    assert meta.period.date_from == date(2026, 1, 18)
    assert meta.period.date_to == date(2026, 2, 6)


def test_parse_meta_of_blank_banner_is_none():
    assert PurchaseInvoiceLayout().parse_meta(["", ""]) is None


def test_scan_labels_supports_both_label_styles():
    row = ["Nomor", ":", "A1", "Total", "500"]

    assert scan_labels(row, {"Nomor": "number"}) == {"number": "A1"}
    assert scan_labels(row, {"Total": "total"}, colon=False) == {"total": "500"}
    assert scan_labels(row, {"Total": "total"}) == {}

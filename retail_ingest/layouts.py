"""Row classification rules for the supported report layouts.

Every export of the retail application is a flat grid: a banner row, then for
each document a header row (metadata labels *and* the item table head on the
same physical row), the item rows and an optional totals row.  A layout knows
how to recognise each kind of row for one document family and how to pull the
fields out of it.  Label positions drift between exports, so label keyed fields
are located by scanning for the label cell rather than by column offset.
"""
from __future__ import annotations

import re
from typing import Callable, Mapping, Optional, Sequence

from .cells import normalize_text, parse_day_month_year, parse_period, parse_smart_number
from .models import (
    DocumentFamily,
    DocumentHeader,
    DocumentSummary,
    LineItem,
    RowKind,
    SheetMeta,
)

Row = Sequence[str]

COLON = ":"
_SEQUENCE_NUMBER = re.compile(r"^\d+$")
_SALES_LEDGER_INVOICE = re.compile(r"^SL\d+$", re.IGNORECASE)

_NUMERIC_ITEM_FIELDS = {"quantity", "unit_price", "discount", "line_total", "cost_price", "profit"}


def cell(row: Row, index: int) -> str:
    """Return the cell at ``index``; cells past the end of the row are empty."""

    if 0 <= index < len(row):
        return row[index]
    return ""


def is_blank(row: Row) -> bool:
    return all(value == "" for value in row)


def scan_labels(row: Row, labels: Mapping[str, str], colon: bool = True) -> dict[str, str]:
    """Collect ``label -> value`` pairs from a row.

    With ``colon`` the layout is ``label, ":", value``; a label not followed by a
    colon cell is ignored.  Without it the value sits right after the label.
    Keys of the result are the field names that ``labels`` maps to.
    """

    found: dict[str, str] = {}
    for index, value in enumerate(row):
        field_name = labels.get(value)
        if field_name is None:
            continue
        if colon:
            if cell(row, index + 1) != COLON:
                continue
            found[field_name] = cell(row, index + 2)
        else:
            found[field_name] = cell(row, index + 1)
    return found


def _text_or_none(value: str) -> Optional[str]:
    return normalize_text(value) or None


class RowClassifier:
    """Base class for a document family's row rules.

    Subclasses declare their labels and column layout and implement the two
    family specific predicates :meth:`is_header_row` and :meth:`is_summary_row`.
    """

    family: DocumentFamily
    header_labels: Mapping[str, str] = {}
    item_columns: tuple[str, ...] = ()
    summary_labels: Mapping[str, str] = {
        "Sub Total": "subtotal",
        "Diskon": "discount",
        "Total": "total",
    }
    summary_colon = False
    meta_columns: tuple[str, ...] = ()

    _HEADER_PARSERS: Mapping[str, Callable[[str], object]] = {
        "invoice_number": _text_or_none,
        "transaction_date": parse_day_month_year,
        "operator_name": _text_or_none,
        "counterparty_name": _text_or_none,
        "due_date": parse_day_month_year,
    }

    def classify(self, row: Row) -> RowKind:
        if self.is_header_row(row):
            return RowKind.HEADER
        if self.is_summary_row(row):
            return RowKind.SUMMARY
        if self.is_line_item_row(row):
            return RowKind.LINE_ITEM
        return RowKind.NOISE

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------
    def is_header_row(self, row: Row) -> bool:
        raise NotImplementedError

    def is_summary_row(self, row: Row) -> bool:
        raise NotImplementedError

    def is_line_item_row(self, row: Row) -> bool:
        return bool(_SEQUENCE_NUMBER.match(cell(row, 0)))

    # ------------------------------------------------------------------
    # Field extraction
    # ------------------------------------------------------------------
    def parse_header(self, row: Row) -> DocumentHeader:
        header = DocumentHeader()
        for field_name, raw in scan_labels(row, self.header_labels).items():
            setattr(header, field_name, self._HEADER_PARSERS[field_name](raw))
        return header

    def parse_line_item(self, row: Row) -> Optional[LineItem]:
        """Build a :class:`LineItem` or return ``None`` for a malformed row."""

        sequence = parse_smart_number(cell(row, 0))
        if sequence is None:
            return None

        values: dict[str, object] = {}
        for index, field_name in enumerate(self.item_columns):
            if field_name == "sequence_number":
                continue
            raw = cell(row, index)
            if field_name in _NUMERIC_ITEM_FIELDS:
                values[field_name] = parse_smart_number(raw)
            else:
                values[field_name] = normalize_text(raw)

        item = LineItem(sequence_number=int(sequence), **values)
        if not item.code and not item.name:
            return None
        return item

    def parse_summary(self, row: Row) -> DocumentSummary:
        summary = DocumentSummary()
        for field_name, raw in scan_labels(row, self.summary_labels, colon=self.summary_colon).items():
            if field_name == "notes":
                summary.notes = _text_or_none(raw)
            else:
                setattr(summary, field_name, parse_smart_number(raw))
        return summary

    def parse_meta(self, row: Row) -> Optional[SheetMeta]:
        """Read the banner row: application name, report title, address and so on."""

        if is_blank(row):
            return None
        meta = SheetMeta()
        for index, field_name in enumerate(self.meta_columns):
            raw = cell(row, index)
            if field_name == "period":
                meta.period = parse_period(raw) if raw else None
            else:
                setattr(meta, field_name, raw or None)
        return meta


class PointOfSaleLayout(RowClassifier):
    """``LAPORAN POINT OF SALES``: one receipt per cashier transaction."""

    family = DocumentFamily.POINT_OF_SALE
    header_labels = {
        "Nomor": "invoice_number",
        "Pelanggan": "counterparty_name",
        "Tanggal": "transaction_date",
        "Kasir": "operator_name",
    }
    item_columns = (
        "sequence_number",
        "code",
        "name",
        "quantity",
        "unit_label",
        "unit_price",
        "discount",
        "line_total",
    )
    meta_columns = ("app", "report", "address", "period", "phone")

    def is_header_row(self, row: Row) -> bool:
        has_labels = all(label in row for label in ("Nomor", "Pelanggan", "Tanggal", "Kasir"))
        has_table_head = all(label in row for label in ("No", "Kode", "Nama", "Kuantitas"))
        return has_labels and has_table_head

    def is_summary_row(self, row: Row) -> bool:
        return cell(row, 0) == "Sub Total" and "Total" in row


class PurchaseInvoiceLayout(RowClassifier):
    """``PEMBELIAN``: supplier invoices with due date and notes."""

    family = DocumentFamily.PURCHASE
    header_labels = {
        "Nomor": "invoice_number",
        "Admin": "operator_name",
        "Tanggal": "transaction_date",
        "Pemasok": "counterparty_name",
        "Jatuh Tempo": "due_date",
    }
    item_columns = (
        "sequence_number",
        "code",
        "name",
        "quantity",
        "unit_label",
        "unit_price",
        "discount",
        "line_total",
    )
    summary_labels = {
        "Keterangan": "notes",
        "Sub Total": "subtotal",
        "Diskon": "discount",
        "Total": "total",
    }
    summary_colon = True
    meta_columns = ("app", "report", "address", "phone")

    def is_header_row(self, row: Row) -> bool:
        has_table_head = all(label in row for label in ("No", "Kode", "Nama"))
        return "Nomor" in row and COLON in row and has_table_head

    def is_summary_row(self, row: Row) -> bool:
        return "Keterangan" in row and "Total" in row

    def parse_header(self, row: Row) -> DocumentHeader:
        header = super().parse_header(row)
        # The supplier address has no label; it is the cell right before the
        # item table head.
        if "No" in row:
            position = list(row).index("No")
            if position > 0:
                candidate = cell(row, position - 1)
                if candidate and candidate != COLON and candidate not in self.header_labels:
                    header.location = candidate
        return header


class SalesLedgerLayout(RowClassifier):
    """``PENJUALAN``: sales ledger with cost price and profit per line."""

    family = DocumentFamily.SALES_LEDGER
    item_columns = (
        "sequence_number",
        "code",
        "name",
        "quantity",
        "unit_label",
        "cost_price",
        "unit_price",
        "discount",
        "profit",
        "line_total",
    )
    meta_columns = ("app", "report", "address", "period")

    def is_header_row(self, row: Row) -> bool:
        has_table_head = all(label in row for label in ("No", "Kode", "Nama", "Kts", "Sat"))
        return bool(_SALES_LEDGER_INVOICE.match(cell(row, 0))) and has_table_head

    def is_summary_row(self, row: Row) -> bool:
        return cell(row, 0) == "Sub Total" and "Total" in row

    def parse_header(self, row: Row) -> DocumentHeader:
        return DocumentHeader(invoice_number=cell(row, 0) or None)


LAYOUTS: dict[DocumentFamily, RowClassifier] = {
    DocumentFamily.POINT_OF_SALE: PointOfSaleLayout(),
    DocumentFamily.PURCHASE: PurchaseInvoiceLayout(),
    DocumentFamily.SALES_LEDGER: SalesLedgerLayout(),
}


def get_layout(family: DocumentFamily | str) -> RowClassifier:
    return LAYOUTS[DocumentFamily(family)]


__all__ = [
    "LAYOUTS",
    "PointOfSaleLayout",
    "PurchaseInvoiceLayout",
    "RowClassifier",
    "SalesLedgerLayout",
    "cell",
    "get_layout",
    "is_blank",
    "scan_labels",
]

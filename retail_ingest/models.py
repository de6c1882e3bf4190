"""Domain models used by retail_ingest.

The classes defined here are plain data containers that know nothing about
spreadsheets or SQL.  Parsed documents are produced by :mod:`.importers`, the
persistent entities are hydrated by :mod:`.database` and both meet in the
ingestion coordinator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, Optional, TypeVar


class DocumentFamily(str, Enum):
    """Report shapes exported by the retail application."""

    POINT_OF_SALE = "pos"
    PURCHASE = "purchase"
    SALES_LEDGER = "sales-ledger"

    @property
    def direction(self) -> "Direction":
        if self is DocumentFamily.PURCHASE:
            return Direction.PURCHASE
        return Direction.SALE


class Direction(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"


class IngestMode(str, Enum):
    """``create`` records unseen invoices only; ``reconcile`` also updates seen ones."""

    CREATE = "create"
    RECONCILE = "reconcile"


class RowKind(str, Enum):
    HEADER = "header"
    LINE_ITEM = "line_item"
    SUMMARY = "summary"
    NOISE = "noise"


class ResolutionStatus(str, Enum):
    FOUND = "found"
    CREATED = "created"


# ---------------------------------------------------------------------------
# Parsed sheet content
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ReportPeriod:
    """Free-text reporting period from the sheet banner, e.g. ``Periode 18/01/2026 Sampai 06/02/2026``."""

    raw: str
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass(slots=True)
class SheetMeta:
    """Positional banner fields found on the first row of a sheet."""

    app: Optional[str] = None
    report: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    period: Optional[ReportPeriod] = None


@dataclass(slots=True)
class DocumentHeader:
    """Label keyed fields of a document header row.

    Only labels recognised by the document family are filled, everything else
    on the row is ignored.  ``location`` is salvaged from purchase invoices
    where the supplier address sits just before the item table.
    """

    invoice_number: Optional[str] = None
    transaction_date: Optional[date] = None
    operator_name: Optional[str] = None
    counterparty_name: Optional[str] = None
    due_date: Optional[date] = None
    location: Optional[str] = None


@dataclass(slots=True)
class LineItem:
    """One row of a document's item table.

    Numeric fields stay ``None`` when the cell is empty or unparsable; zero
    defaults are applied at ingestion time only.
    """

    sequence_number: int
    code: str
    name: str
    quantity: Optional[Decimal] = None
    unit_label: str = ""
    unit_price: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    line_total: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    profit: Optional[Decimal] = None


@dataclass(slots=True)
class DocumentSummary:
    subtotal: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    total: Optional[Decimal] = None
    notes: Optional[str] = None


@dataclass(slots=True)
class Document:
    """One business transaction extracted from a sheet."""

    family: DocumentFamily
    header: DocumentHeader
    line_items: list[LineItem] = field(default_factory=list)
    summary: Optional[DocumentSummary] = None


@dataclass(slots=True)
class ParsedSheet:
    family: DocumentFamily
    meta: Optional[SheetMeta]
    documents: list[Document] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Persistent entities
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Branch:
    id: int
    code: str
    name: str


@dataclass(slots=True)
class Operator:
    id: int
    name: str
    password_hash: str
    is_active: bool = True
    is_superuser: bool = False


@dataclass(slots=True)
class Counterparty:
    """A member (sales) or supplier (purchases)."""

    id: int
    kind: str
    code: str
    name: str
    address: Optional[str] = None


@dataclass(slots=True)
class Category:
    id: int
    code: str
    name: str


@dataclass(slots=True)
class CatalogItem:
    """Catalog entry carrying the rolling cost of one base unit."""

    id: int
    code: str
    name: str
    category_id: int
    supplier_id: int
    average_buy_price: Decimal = Decimal("0")
    is_active: bool = True


@dataclass(slots=True)
class UnitVariant:
    """A sellable unit of a catalog item.

    ``conversion_factor`` is the number of base units in one of this unit.
    ``buy_price``, ``profit_amount`` and ``profit_percentage`` are derived from
    the item's average buy price by the valuation engine.
    """

    id: int
    catalog_item_id: int
    unit_label: str
    conversion_factor: Decimal = Decimal("1")
    sell_price: Decimal = Decimal("0")
    buy_price: Decimal = Decimal("0")
    profit_amount: Decimal = Decimal("0")
    profit_percentage: Decimal = Decimal("0")
    is_base_unit: bool = False


@dataclass(slots=True)
class StockLevel:
    id: int
    catalog_item_id: int
    branch_id: int
    recorded_stock: Decimal = Decimal("0")


@dataclass(slots=True)
class TransactionRecord:
    """A recorded sale or purchase, keyed by its invoice number."""

    id: Optional[int]
    invoice_number: str
    direction: Direction
    branch_id: int
    operator_id: int
    counterparty_id: Optional[int]
    transaction_date: datetime
    due_date: Optional[date] = None
    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    cash_received: Decimal = Decimal("0")
    cash_change: Decimal = Decimal("0")
    notes: str = ""
    line_items: list["TransactionLineItem"] = field(default_factory=list)


@dataclass(slots=True)
class TransactionLineItem:
    """Snapshot of one sold or purchased line.

    ``recorded_buy_price`` is the cost of one unit of the variant at the time
    of recording and is never recomputed afterwards.
    """

    id: Optional[int]
    transaction_id: int
    catalog_item_id: int
    unit_variant_id: int
    quantity: Decimal
    conversion_factor: Decimal
    total_quantity: Decimal
    price: Decimal
    discount: Decimal
    subtotal: Decimal
    total: Decimal
    recorded_buy_price: Decimal
    item_code: str = ""


@dataclass(slots=True)
class AuditEntry:
    id: int
    action_type: str
    model_type: str
    model_id: int
    operator_id: Optional[int]
    payload_before: Optional[dict[str, object]]
    payload_after: Optional[dict[str, object]]
    created_at: datetime


T = TypeVar("T")


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """Result of a resolve-or-create lookup, tagged with the path taken."""

    status: ResolutionStatus
    entity: T

    @property
    def created(self) -> bool:
        return self.status is ResolutionStatus.CREATED

    @classmethod
    def found(cls, entity: T) -> "Resolution[T]":
        return cls(ResolutionStatus.FOUND, entity)

    @classmethod
    def new(cls, entity: T) -> "Resolution[T]":
        return cls(ResolutionStatus.CREATED, entity)


__all__ = [
    "AuditEntry",
    "Branch",
    "CatalogItem",
    "Category",
    "Counterparty",
    "Direction",
    "Document",
    "DocumentFamily",
    "DocumentHeader",
    "DocumentSummary",
    "IngestMode",
    "LineItem",
    "Operator",
    "ParsedSheet",
    "ReportPeriod",
    "Resolution",
    "ResolutionStatus",
    "RowKind",
    "SheetMeta",
    "StockLevel",
    "TransactionLineItem",
    "TransactionRecord",
    "UnitVariant",
]

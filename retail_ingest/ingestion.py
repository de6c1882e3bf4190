"""Ingestion of parsed documents into the relational store.

Documents are written one at a time, each inside its own unit of work, in
sheet order: later purchases of an item are valued against the stock and cost
left behind by earlier ones.  The invoice number is the natural key; a
document whose invoice is already recorded is skipped in ``create`` mode and
reconciled in ``reconcile`` mode.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, Optional
from uuid import uuid4

from .database import MEMBER, SUPPLIER, SQLiteRepository
from .models import (
    CatalogItem,
    Counterparty,
    Direction,
    Document,
    DocumentSummary,
    IngestMode,
    LineItem,
    Operator,
    TransactionLineItem,
    TransactionRecord,
)
from .valuation import ValuationEngine

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
PLACEHOLDER_CODE = "MISSING"
MODEL_TYPES = {
    Direction.SALE: "TRANSACTION_SALES",
    Direction.PURCHASE: "TRANSACTION_PURCHASE",
}


class Outcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass(slots=True)
class IngestionReport:
    """Counts collected over one ingestion run."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    failed_invoices: list[str] = field(default_factory=list)

    def record(self, outcome: Outcome) -> None:
        if outcome is Outcome.CREATED:
            self.created += 1
        elif outcome is Outcome.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1

    def summary(self) -> str:
        return (
            f"created={self.created} updated={self.updated} "
            f"skipped={self.skipped} failed={self.failed}"
        )


def natural_key(document: Document) -> str:
    """Invoice number of a document, or a unique placeholder when it has none."""

    if document.header.invoice_number:
        return document.header.invoice_number
    return f"Missing Invoice {uuid4().hex}"


def _or_zero(value: Optional[Decimal]) -> Decimal:
    return ZERO if value is None else value


class IngestionCoordinator:
    """Maps parsed documents onto persistent transactions exactly once.

    Args:
        repository: Store receiving the writes.
        valuation: Engine refreshing item cost after purchases.
        branch_id: Branch whose stock the documents move.
        hash_password: Returns a password hash for auto-created operators.
        admin_name: Operator used when a document names none.
        mode: ``create`` skips recorded invoices, ``reconcile`` updates them.
        clock: Source of the ingestion time, used for undated documents.
    """

    def __init__(
        self,
        repository: SQLiteRepository,
        valuation: ValuationEngine,
        branch_id: int,
        hash_password: Callable[[], str],
        admin_name: str = "ADMIN",
        mode: IngestMode = IngestMode.CREATE,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._repository = repository
        self._valuation = valuation
        self._branch_id = branch_id
        self._hash_password = hash_password
        self._admin_name = admin_name
        self._mode = mode
        self._clock = clock

    def ingest(self, documents: Iterable[Document]) -> IngestionReport:
        """Ingest documents in order; a failing document does not stop the run."""

        report = IngestionReport()
        for document in documents:
            invoice_number = natural_key(document)
            try:
                with self._repository.atomic():
                    outcome = self.ingest_document(document, invoice_number)
            except Exception:
                logger.exception("Failed to ingest invoice %s, rolled back", invoice_number)
                report.failed += 1
                report.failed_invoices.append(invoice_number)
                continue
            report.record(outcome)

        logger.info("Ingestion finished: %s", report.summary())
        return report

    def ingest_document(self, document: Document, invoice_number: Optional[str] = None) -> Outcome:
        """Write one document.  Callers provide the surrounding unit of work."""

        invoice_number = invoice_number or natural_key(document)
        existing = self._repository.find_transaction(invoice_number)
        if existing is not None:
            if self._mode is IngestMode.CREATE:
                logger.info("Invoice %s already recorded, skipping", invoice_number)
                return Outcome.SKIPPED
            self._reconcile(existing, document)
            return Outcome.UPDATED

        self._create(document, invoice_number)
        return Outcome.CREATED

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def _create(self, document: Document, invoice_number: str) -> TransactionRecord:
        header = document.header
        direction = document.family.direction
        summary = document.summary or DocumentSummary()

        operator = self._resolve_operator(header.operator_name)
        counterparty = self._resolve_counterparty(document)
        if direction is Direction.PURCHASE:
            item_supplier = counterparty
        else:
            item_supplier = self._placeholder_supplier()

        if header.transaction_date is not None:
            transaction_date = datetime.combine(header.transaction_date, time.min)
        else:
            transaction_date = self._clock()

        total = _or_zero(summary.total)
        record = self._repository.create_transaction(
            TransactionRecord(
                id=None,
                invoice_number=invoice_number,
                direction=direction,
                branch_id=self._branch_id,
                operator_id=operator.id,
                counterparty_id=counterparty.id if counterparty else None,
                transaction_date=transaction_date,
                due_date=(header.due_date or transaction_date.date()) if direction is Direction.PURCHASE else None,
                subtotal=_or_zero(summary.subtotal),
                discount=_or_zero(summary.discount),
                total=total,
                cash_received=total if direction is Direction.SALE else ZERO,
                notes=summary.notes or "",
            )
        )

        for line in document.line_items:
            record.line_items.append(self._record_line(record, line, item_supplier))

        self._repository.record_audit("CREATE", MODEL_TYPES[direction], record.id, operator.id, None, record)
        logger.info(
            "Recorded %s %s with %d line item(s)",
            direction.value,
            invoice_number,
            len(record.line_items),
        )
        return record

    def _record_line(self, record: TransactionRecord, line: LineItem, supplier: Counterparty) -> TransactionLineItem:
        item = self._resolve_catalog_item(line, supplier)
        variant_resolution = self._repository.resolve_unit_variant(item.id, line.unit_label)
        variant = variant_resolution.entity
        if variant_resolution.created:
            # No conversion data in the exports: new units count as one base unit.
            logger.info("Created unit %s for item %s with conversion factor 1", variant.unit_label, item.code)

        quantity = _or_zero(line.quantity)
        base_quantity = quantity * variant.conversion_factor
        price = _or_zero(line.unit_price)
        line_total = _or_zero(line.line_total)

        snapshot = self._repository.add_transaction_item(
            TransactionLineItem(
                id=None,
                transaction_id=record.id,
                catalog_item_id=item.id,
                unit_variant_id=variant.id,
                quantity=quantity,
                conversion_factor=variant.conversion_factor,
                total_quantity=base_quantity,
                price=price,
                discount=_or_zero(line.discount),
                subtotal=line_total,
                total=line_total,
                recorded_buy_price=item.average_buy_price * variant.conversion_factor,
                item_code=item.code,
            )
        )

        if record.direction is Direction.PURCHASE:
            self._repository.adjust_stock(item.id, self._branch_id, base_quantity)
            self._valuation.refresh_cost(item.id, base_quantity, price / variant.conversion_factor)
        else:
            self._repository.adjust_stock(item.id, self._branch_id, -base_quantity)
        return snapshot

    # ------------------------------------------------------------------
    # Reconcile
    # ------------------------------------------------------------------
    def _reconcile(self, existing: TransactionRecord, document: Document) -> None:
        """Overwrite a recorded transaction with the figures of ``document``.

        Totals are recomputed from the document's line items.  Recorded lines
        are paired with document lines by catalog item code; recorded lines
        without a counterpart are left as they are.
        """

        before = copy.deepcopy(existing)
        subtotal = sum((_or_zero(line.line_total) for line in document.line_items), ZERO)
        discount = sum((_or_zero(line.discount) for line in document.line_items), ZERO)
        # Line totals are already net of line discounts.
        total = subtotal
        cash_received = total if existing.direction is Direction.SALE else existing.cash_received
        self._repository.update_transaction_totals(existing.id, subtotal, discount, total, cash_received)

        unmatched = list(existing.line_items)
        for line in document.line_items:
            code = (line.code or line.name).strip().upper()
            recorded = next((item for item in unmatched if item.item_code == code), None)
            if recorded is None:
                logger.debug("Invoice %s has no recorded line for item %s", existing.invoice_number, code)
                continue
            unmatched.remove(recorded)

            recorded.quantity = _or_zero(line.quantity)
            recorded.total_quantity = recorded.quantity * recorded.conversion_factor
            recorded.price = _or_zero(line.unit_price)
            recorded.discount = _or_zero(line.discount)
            recorded.subtotal = _or_zero(line.line_total)
            recorded.total = recorded.subtotal
            if line.cost_price is not None:
                recorded.recorded_buy_price = line.cost_price
            self._repository.update_transaction_item(recorded)

        after = self._repository.find_transaction(existing.invoice_number)
        self._repository.record_audit(
            "UPDATE",
            MODEL_TYPES[existing.direction],
            existing.id,
            existing.operator_id,
            before,
            after,
        )
        logger.info("Reconciled %s %s", existing.direction.value, existing.invoice_number)

    # ------------------------------------------------------------------
    # Reference entities
    # ------------------------------------------------------------------
    def _resolve_operator(self, name: Optional[str]) -> Operator:
        resolution = self._repository.resolve_operator(name or self._admin_name, self._hash_password)
        if resolution.created:
            logger.info("Created operator %s", resolution.entity.name)
        return resolution.entity

    def _resolve_counterparty(self, document: Document) -> Optional[Counterparty]:
        name = document.header.counterparty_name
        if document.family.direction is Direction.SALE:
            if not name:
                return None
            resolution = self._repository.resolve_counterparty(MEMBER, name)
        elif name:
            resolution = self._repository.resolve_counterparty(SUPPLIER, name, document.header.location)
        else:
            return self._placeholder_supplier()

        if resolution.created:
            logger.info("Created %s %s", resolution.entity.kind, resolution.entity.name)
        return resolution.entity

    def _placeholder_supplier(self) -> Counterparty:
        return self._repository.resolve_counterparty(SUPPLIER, PLACEHOLDER_CODE).entity

    def _resolve_catalog_item(self, line: LineItem, supplier: Counterparty) -> CatalogItem:
        category = self._repository.resolve_category(PLACEHOLDER_CODE, "Missing Category").entity
        resolution = self._repository.resolve_catalog_item(
            line.code or line.name,
            line.name or line.code,
            category.id,
            supplier.id,
        )
        if resolution.created:
            logger.info("Created catalog item %s (%s)", resolution.entity.code, resolution.entity.name)
        return resolution.entity


__all__ = [
    "IngestionCoordinator",
    "IngestionReport",
    "Outcome",
    "natural_key",
]

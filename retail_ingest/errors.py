"""Exceptions raised by the retail_ingest pipeline.

Only failures that stop work are modelled as exceptions.  Malformed rows are
dropped by the parser and duplicate invoices are counted by the coordinator,
so neither has an exception type.
"""
from __future__ import annotations


class IngestError(Exception):
    """Base class for all retail_ingest errors."""


class StructuralParseError(IngestError):
    """The workbook is missing, unreadable or has no sheet to parse.

    Fatal for the whole run.
    """


class ValuationPreconditionError(IngestError):
    """The catalog item to revalue does not exist.

    Fatal for the document being ingested; its unit of work is rolled back.
    """

    def __init__(self, catalog_item_id: int) -> None:
        super().__init__(f"Catalog item with id {catalog_item_id} not found")
        self.catalog_item_id = catalog_item_id


__all__ = [
    "IngestError",
    "StructuralParseError",
    "ValuationPreconditionError",
]

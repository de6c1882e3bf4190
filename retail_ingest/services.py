"""High-level application services orchestrating retail_ingest."""
from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Callable

from passlib.hash import pbkdf2_sha256

from .config import AppConfig
from .database import SQLiteRepository
from .ingestion import IngestionCoordinator, IngestionReport
from .importers import WorkbookImporter
from .models import DocumentFamily, IngestMode, ParsedSheet
from .valuation import ValuationEngine

logger = logging.getLogger(__name__)


def password_hasher(plain_password: str) -> Callable[[], str]:
    """Return a callable producing a fresh pbkdf2 hash of ``plain_password``."""

    return lambda: pbkdf2_sha256.hash(plain_password)


class ImportService:
    """Coordinates parsing, persistence and valuation for one store."""

    def __init__(self, config: AppConfig, repository: SQLiteRepository) -> None:
        self._config = config
        self._repository = repository
        self._valuation = ValuationEngine(repository)

    # ------------------------------------------------------------------
    # Import workflows
    # ------------------------------------------------------------------
    def parse_workbook(self, workbook_path: str | Path, family: DocumentFamily | str) -> ParsedSheet:
        """Parse a workbook without touching the database."""

        return WorkbookImporter(workbook_path, family).load()

    def import_workbook(
        self,
        workbook_path: str | Path,
        family: DocumentFamily | str,
        mode: IngestMode | str = IngestMode.CREATE,
    ) -> IngestionReport:
        """Parse a workbook and ingest its documents.

        Running the import twice in ``create`` mode records nothing new the
        second time: every invoice number already present is skipped.

        Raises:
            StructuralParseError: if the workbook cannot be read.
        """

        sheet = self.parse_workbook(workbook_path, family)
        with self._repository.atomic():
            branch = self._repository.resolve_branch(self._config.branch_code, self._config.branch_name).entity
        coordinator = IngestionCoordinator(
            self._repository,
            self._valuation,
            branch_id=branch.id,
            hash_password=password_hasher(self._config.default_password),
            admin_name=self._config.admin_name,
            mode=IngestMode(mode),
        )
        return coordinator.ingest(sheet.documents)

    # ------------------------------------------------------------------
    # Valuation utilities
    # ------------------------------------------------------------------
    def override_cost(self, item_code: str, unit_cost: Decimal) -> Decimal:
        """Hard-set the average cost of an item and refresh its unit variants.

        Raises:
            LookupError: if no catalog item has ``item_code``.
        """

        item = self._repository.find_catalog_item(item_code)
        if item is None:
            raise LookupError(f"Unknown catalog item {item_code!r}")
        with self._repository.atomic():
            price = self._valuation.refresh_cost(item.id, 0, unit_cost, is_override=True)
        logger.info("Average cost of %s reset to %s", item.code, price)
        return price

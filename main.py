"""Command-line entrypoint for retail_ingest."""
from __future__ import annotations

import json
import logging
from contextlib import closing
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import typer

from retail_ingest.config import AppConfig, load_config
from retail_ingest.database import SQLiteRepository
from retail_ingest.errors import StructuralParseError
from retail_ingest.importers import WorkbookImporter
from retail_ingest.models import DocumentFamily, IngestMode
from retail_ingest.services import ImportService

logger = logging.getLogger("retail_ingest")

app = typer.Typer(add_completion=False, help="Import retail report exports into the store database")


def _configure_logging(config: AppConfig) -> None:
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=getattr(logging, config.log_level.upper(), logging.INFO),
    )


def _open_repository(config: AppConfig, database: Optional[Path]) -> SQLiteRepository:
    repository = SQLiteRepository(database or config.database_file)
    repository.initialise_schema()
    return repository


@app.command("import")
def import_command(
    workbook: Path = typer.Argument(..., help="Exported .xls/.xlsx report"),
    family: DocumentFamily = typer.Option(..., "--family", help="Report layout of the workbook"),
    mode: IngestMode = typer.Option(IngestMode.CREATE, "--mode", help="create skips recorded invoices, reconcile updates them"),
    database: Optional[Path] = typer.Option(None, "--database", help="SQLite file, overrides RETAIL_INGEST_DB_FILE"),
) -> None:
    config = load_config()
    _configure_logging(config)
    with closing(_open_repository(config, database)) as repository:
        service = ImportService(config, repository)
        try:
            report = service.import_workbook(workbook, family, mode)
        except StructuralParseError as exc:
            logger.error("Import aborted: %s", exc)
            raise typer.Exit(code=1) from exc
    typer.echo(report.summary())
    for invoice_number in report.failed_invoices:
        typer.echo(f"failed: {invoice_number}")


@app.command("parse")
def parse_command(
    workbook: Path = typer.Argument(..., help="Exported .xls/.xlsx report"),
    family: DocumentFamily = typer.Option(..., "--family", help="Report layout of the workbook"),
) -> None:
    """Print the documents found in a workbook as JSON."""

    _configure_logging(load_config())
    try:
        sheet = WorkbookImporter(workbook, family).load()
    except StructuralParseError as exc:
        logger.error("Parse aborted: %s", exc)
        raise typer.Exit(code=1) from exc
    typer.echo(json.dumps(asdict(sheet), default=str, indent=2))


@app.command("recompute-cost")
def recompute_cost_command(
    item_code: str = typer.Argument(..., help="Catalog item code"),
    unit_cost: str = typer.Argument(..., help="New cost of one base unit"),
    database: Optional[Path] = typer.Option(None, "--database", help="SQLite file, overrides RETAIL_INGEST_DB_FILE"),
) -> None:
    """Reset an item's average cost, ignoring its purchase history."""

    try:
        cost = Decimal(unit_cost)
    except InvalidOperation as exc:
        raise typer.BadParameter(f"{unit_cost!r} is not a number", param_hint="UNIT_COST") from exc
    if not cost.is_finite() or cost < 0:
        raise typer.BadParameter("cost must be a finite, non-negative number", param_hint="UNIT_COST")

    config = load_config()
    _configure_logging(config)
    with closing(_open_repository(config, database)) as repository:
        try:
            price = ImportService(config, repository).override_cost(item_code, cost)
        except LookupError as exc:
            logger.error("%s", exc)
            raise typer.Exit(code=1) from exc
    typer.echo(f"{item_code.upper()} average cost: {price}")


if __name__ == "__main__":
    app()

"""Excel importers for retail report exports."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial, reduce
from pathlib import Path
from typing import Optional, Sequence
from zipfile import BadZipFile

import pandas as pd

from .cells import normalize_text
from .errors import StructuralParseError
from .layouts import Row, RowClassifier, get_layout, is_blank
from .models import Document, DocumentFamily, ParsedSheet, RowKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Assembly:
    """Accumulator threaded through :func:`assemble_documents`."""

    documents: tuple[Document, ...] = ()
    current: Optional[Document] = None

    def finish(self) -> list[Document]:
        if self.current is None:
            return list(self.documents)
        return [*self.documents, self.current]


def _consume(layout: RowClassifier, state: _Assembly, row: Row) -> _Assembly:
    if is_blank(row):
        return state

    kind = layout.classify(row)
    if kind is RowKind.HEADER:
        document = Document(family=layout.family, header=layout.parse_header(row))
        return _Assembly(documents=tuple(state.finish()), current=document)

    # Anything before the first header is not part of a document.
    if state.current is None:
        return state

    if kind is RowKind.SUMMARY:
        state.current.summary = layout.parse_summary(row)
    elif kind is RowKind.LINE_ITEM:
        item = layout.parse_line_item(row)
        if item is not None:
            state.current.line_items.append(item)
    return state


def assemble_documents(rows: Sequence[Row], layout: RowClassifier) -> list[Document]:
    """Group item table rows under the header row that precedes them.

    A document starts at a header row and ends at the next header row or at
    the end of ``rows``.  Summary rows attach to the open document, malformed
    item rows and noise rows are dropped.
    """

    return reduce(partial(_consume, layout), rows, _Assembly()).finish()


def parse_rows(rows: Sequence[Row], layout: RowClassifier) -> ParsedSheet:
    """Parse a full sheet: banner on the first row, documents after it."""

    if not rows:
        return ParsedSheet(family=layout.family, meta=None)
    meta = layout.parse_meta(rows[0])
    documents = assemble_documents(rows[1:], layout)
    return ParsedSheet(family=layout.family, meta=meta, documents=documents)


def read_first_sheet(workbook_path: str | Path) -> list[list[str]]:
    """Return the non-blank rows of the first sheet as trimmed text cells.

    Cells are read untyped and rendered by :func:`~.cells.normalize_text`, so
    date cells come out as ``DD/MM/YYYY`` like the rest of the report.

    Raises:
        StructuralParseError: if the file is missing, unreadable or has no sheet.
    """

    path = Path(workbook_path)
    if not path.is_file():
        raise StructuralParseError(f"Workbook not found: {path}")
    try:
        with pd.ExcelFile(path) as workbook:
            if not workbook.sheet_names:
                raise StructuralParseError(f"Workbook {path} has no sheet")
            dataframe = workbook.parse(workbook.sheet_names[0], header=None, dtype=object)
    except (OSError, ValueError, BadZipFile) as exc:
        raise StructuralParseError(f"Unable to read workbook {path}: {exc}") from exc

    rows: list[list[str]] = []
    for _, row in dataframe.fillna("").iterrows():
        cells = [normalize_text(value) for value in row.tolist()]
        if not is_blank(cells):
            rows.append(cells)
    return rows


class WorkbookImporter:
    """Load one exported report and split it into documents.

    Only the first sheet is read and every cell reaches the layouts as its
    display text, whatever type the spreadsheet engine gave it.
    """

    def __init__(self, workbook_path: str | Path, family: DocumentFamily | str) -> None:
        self.workbook_path = Path(workbook_path)
        self.layout = get_layout(family)

    def load(self) -> ParsedSheet:
        rows = read_first_sheet(self.workbook_path)
        sheet = parse_rows(rows, self.layout)
        logger.info(
            "Parsed %d %s document(s) from %s",
            len(sheet.documents),
            self.layout.family.value,
            self.workbook_path.name,
        )
        return sheet


__all__ = [
    "WorkbookImporter",
    "assemble_documents",
    "parse_rows",
    "read_first_sheet",
]

"""SQLite persistence layer for retail_ingest.

The repository hides SQL details from the rest of the code behind small,
typed methods: ``find_*`` / ``create_*`` / ``update_*`` per entity plus
``resolve_*`` helpers that return a :class:`~.models.Resolution` telling the
caller whether the entity already existed.  It relies on the standard library
:mod:`sqlite3` module; :meth:`SQLiteRepository.atomic` provides the unit of
work the ingestion coordinator needs.
"""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterator, Optional

from .models import (
    AuditEntry,
    Branch,
    CatalogItem,
    Category,
    Counterparty,
    Direction,
    Operator,
    Resolution,
    StockLevel,
    TransactionLineItem,
    TransactionRecord,
    UnitVariant,
)

# Money and quantities are kept as text so SQLite stores the exact digits; the
# declared type contains "TEXT" which gives the column text affinity.
sqlite3.register_adapter(Decimal, str)
sqlite3.register_converter("DECIMAL_TEXT", lambda raw: Decimal(raw.decode()))

ZERO = Decimal("0")
ONE = Decimal("1")

MEMBER = "member"
SUPPLIER = "supplier"


class SQLiteRepository:
    """Encapsulates all SQLite access for the application."""

    def __init__(self, database_path: Path | str) -> None:
        self._database_path = database_path
        # Autocommit mode: transactions are opened explicitly by atomic().
        self._connection = sqlite3.connect(
            database_path,
            detect_types=sqlite3.PARSE_DECLTYPES,
            isolation_level=None,
        )
        self._connection.execute("PRAGMA foreign_keys = ON;")
        self._connection.row_factory = sqlite3.Row
        self._depth = 0

    def close(self) -> None:
        """Close the underlying SQLite connection."""

        self._connection.close()

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------
    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the enclosed block in one transaction.

        Nested calls open a savepoint, so an inner block can roll back on its
        own while the outer transaction decides about the final commit.  Any
        exception rolls the block back and propagates.
        """

        savepoint = f"sp_{self._depth}" if self._depth else None
        self._connection.execute(f"SAVEPOINT {savepoint}" if savepoint else "BEGIN")
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if savepoint:
                self._connection.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                self._connection.execute(f"RELEASE SAVEPOINT {savepoint}")
            else:
                self._connection.execute("ROLLBACK")
            raise
        else:
            self._depth -= 1
            self._connection.execute(f"RELEASE SAVEPOINT {savepoint}" if savepoint else "COMMIT")

    # ------------------------------------------------------------------
    # Schema management
    # ------------------------------------------------------------------
    def initialise_schema(self) -> None:
        """Create all tables required by the application if they do not exist."""

        self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS branches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS operators (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE COLLATE NOCASE,
                password_hash TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                is_superuser INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS counterparties (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                kind TEXT NOT NULL CHECK (kind IN ('member', 'supplier')),
                code TEXT NOT NULL,
                name TEXT NOT NULL,
                address TEXT,
                UNIQUE(kind, code)
            );

            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS catalog_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                category_id INTEGER NOT NULL REFERENCES categories(id),
                supplier_id INTEGER NOT NULL REFERENCES counterparties(id),
                average_buy_price DECIMAL_TEXT NOT NULL DEFAULT '0',
                is_active INTEGER NOT NULL DEFAULT 1
            );

            CREATE TABLE IF NOT EXISTS unit_variants (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                catalog_item_id INTEGER NOT NULL REFERENCES catalog_items(id),
                unit_label TEXT NOT NULL,
                conversion_factor DECIMAL_TEXT NOT NULL DEFAULT '1'
                    CHECK (CAST(conversion_factor AS REAL) > 0),
                sell_price DECIMAL_TEXT NOT NULL DEFAULT '0',
                buy_price DECIMAL_TEXT NOT NULL DEFAULT '0',
                profit_amount DECIMAL_TEXT NOT NULL DEFAULT '0',
                profit_percentage DECIMAL_TEXT NOT NULL DEFAULT '0',
                is_base_unit INTEGER NOT NULL DEFAULT 0,
                UNIQUE(id, catalog_item_id)
            );

            CREATE UNIQUE INDEX IF NOT EXISTS ux_unit_variants_label
                ON unit_variants (catalog_item_id, unit_label COLLATE NOCASE);

            CREATE TABLE IF NOT EXISTS stock_levels (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                catalog_item_id INTEGER NOT NULL REFERENCES catalog_items(id),
                branch_id INTEGER NOT NULL REFERENCES branches(id),
                recorded_stock DECIMAL_TEXT NOT NULL DEFAULT '0',
                UNIQUE(catalog_item_id, branch_id)
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                invoice_number TEXT NOT NULL UNIQUE,
                direction TEXT NOT NULL CHECK (direction IN ('sale', 'purchase')),
                branch_id INTEGER NOT NULL REFERENCES branches(id),
                operator_id INTEGER NOT NULL REFERENCES operators(id),
                counterparty_id INTEGER REFERENCES counterparties(id),
                transaction_date TEXT NOT NULL,
                due_date TEXT,
                subtotal DECIMAL_TEXT NOT NULL DEFAULT '0',
                discount DECIMAL_TEXT NOT NULL DEFAULT '0',
                total DECIMAL_TEXT NOT NULL DEFAULT '0',
                cash_received DECIMAL_TEXT NOT NULL DEFAULT '0',
                cash_change DECIMAL_TEXT NOT NULL DEFAULT '0',
                notes TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS transaction_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                transaction_id INTEGER NOT NULL REFERENCES transactions(id) ON DELETE CASCADE,
                catalog_item_id INTEGER NOT NULL,
                unit_variant_id INTEGER NOT NULL,
                quantity DECIMAL_TEXT NOT NULL,
                conversion_factor DECIMAL_TEXT NOT NULL,
                total_quantity DECIMAL_TEXT NOT NULL,
                price DECIMAL_TEXT NOT NULL,
                discount DECIMAL_TEXT NOT NULL,
                subtotal DECIMAL_TEXT NOT NULL,
                total DECIMAL_TEXT NOT NULL,
                recorded_buy_price DECIMAL_TEXT NOT NULL,
                FOREIGN KEY (unit_variant_id, catalog_item_id)
                    REFERENCES unit_variants(id, catalog_item_id)
            );

            CREATE TABLE IF NOT EXISTS audit_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                action_type TEXT NOT NULL,
                model_type TEXT NOT NULL,
                model_id INTEGER NOT NULL,
                operator_id INTEGER REFERENCES operators(id),
                payload_before TEXT,
                payload_after TEXT,
                created_at TEXT NOT NULL
            );
            """
        )

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------
    def find_branch(self, code: str) -> Optional[Branch]:
        row = self._connection.execute(
            "SELECT id, code, name FROM branches WHERE code = ?",
            (code,),
        ).fetchone()
        return Branch(**dict(row)) if row else None

    def resolve_branch(self, code: str, name: str) -> Resolution[Branch]:
        branch = self.find_branch(code)
        if branch:
            return Resolution.found(branch)
        cursor = self._connection.execute(
            "INSERT INTO branches (code, name) VALUES (?, ?)",
            (code, name),
        )
        return Resolution.new(Branch(id=cursor.lastrowid, code=code, name=name))

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------
    def find_operator(self, name: str) -> Optional[Operator]:
        """Case-insensitive lookup by operator name."""

        row = self._connection.execute(
            "SELECT * FROM operators WHERE name = ? COLLATE NOCASE",
            (name.strip(),),
        ).fetchone()
        return _row_to_operator(row) if row else None

    def create_operator(self, name: str, password_hash: str) -> Operator:
        cursor = self._connection.execute(
            "INSERT INTO operators (name, password_hash, is_active, is_superuser) VALUES (?, ?, 1, 0)",
            (name, password_hash),
        )
        return Operator(id=cursor.lastrowid, name=name, password_hash=password_hash)

    def resolve_operator(self, name: str, hash_password: Callable[[], str]) -> Resolution[Operator]:
        """Return the operator called ``name``, creating it when missing.

        ``hash_password`` is only called when an operator has to be created.
        New operators are stored with the upper-cased name.
        """

        operator = self.find_operator(name)
        if operator:
            return Resolution.found(operator)
        return Resolution.new(self.create_operator(name.strip().upper(), hash_password()))

    # ------------------------------------------------------------------
    # Counterparties (members and suppliers)
    # ------------------------------------------------------------------
    def find_counterparty(self, kind: str, code: str) -> Optional[Counterparty]:
        row = self._connection.execute(
            "SELECT * FROM counterparties WHERE kind = ? AND code = ?",
            (kind, code),
        ).fetchone()
        return Counterparty(**dict(row)) if row else None

    def create_counterparty(self, kind: str, code: str, name: str, address: Optional[str] = None) -> Counterparty:
        cursor = self._connection.execute(
            "INSERT INTO counterparties (kind, code, name, address) VALUES (?, ?, ?, ?)",
            (kind, code, name, address),
        )
        return Counterparty(id=cursor.lastrowid, kind=kind, code=code, name=name, address=address)

    def resolve_counterparty(self, kind: str, name: str, address: Optional[str] = None) -> Resolution[Counterparty]:
        """Resolve a member or supplier by name; new ones use the upper-cased name as code."""

        code = name.strip().upper()
        counterparty = self.find_counterparty(kind, code)
        if counterparty:
            return Resolution.found(counterparty)
        return Resolution.new(self.create_counterparty(kind, code, code, address))

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    def resolve_category(self, code: str, name: str) -> Resolution[Category]:
        row = self._connection.execute(
            "SELECT id, code, name FROM categories WHERE code = ?",
            (code,),
        ).fetchone()
        if row:
            return Resolution.found(Category(**dict(row)))
        cursor = self._connection.execute(
            "INSERT INTO categories (code, name) VALUES (?, ?)",
            (code, name),
        )
        return Resolution.new(Category(id=cursor.lastrowid, code=code, name=name))

    # ------------------------------------------------------------------
    # Catalog items and unit variants
    # ------------------------------------------------------------------
    def get_catalog_item(self, catalog_item_id: int) -> Optional[CatalogItem]:
        row = self._connection.execute(
            "SELECT * FROM catalog_items WHERE id = ?",
            (catalog_item_id,),
        ).fetchone()
        return _row_to_catalog_item(row) if row else None

    def find_catalog_item(self, code: str) -> Optional[CatalogItem]:
        row = self._connection.execute(
            "SELECT * FROM catalog_items WHERE code = ?",
            (code.strip().upper(),),
        ).fetchone()
        return _row_to_catalog_item(row) if row else None

    def create_catalog_item(
        self,
        code: str,
        name: str,
        category_id: int,
        supplier_id: int,
        average_buy_price: Decimal = ZERO,
    ) -> CatalogItem:
        code = code.strip().upper()
        cursor = self._connection.execute(
            """
            INSERT INTO catalog_items (code, name, category_id, supplier_id, average_buy_price, is_active)
            VALUES (?, ?, ?, ?, ?, 1)
            """,
            (code, name, category_id, supplier_id, average_buy_price),
        )
        return CatalogItem(
            id=cursor.lastrowid,
            code=code,
            name=name,
            category_id=category_id,
            supplier_id=supplier_id,
            average_buy_price=average_buy_price,
        )

    def resolve_catalog_item(self, code: str, name: str, category_id: int, supplier_id: int) -> Resolution[CatalogItem]:
        item = self.find_catalog_item(code)
        if item:
            return Resolution.found(item)
        return Resolution.new(self.create_catalog_item(code, name, category_id, supplier_id))

    def set_average_buy_price(self, catalog_item_id: int, price: Decimal) -> None:
        self._connection.execute(
            "UPDATE catalog_items SET average_buy_price = ? WHERE id = ?",
            (price, catalog_item_id),
        )

    def list_unit_variants(self, catalog_item_id: int) -> list[UnitVariant]:
        rows = self._connection.execute(
            "SELECT * FROM unit_variants WHERE catalog_item_id = ? ORDER BY id",
            (catalog_item_id,),
        ).fetchall()
        return [_row_to_unit_variant(row) for row in rows]

    def find_unit_variant(self, catalog_item_id: int, unit_label: str) -> Optional[UnitVariant]:
        """Case-insensitive lookup of a unit within one catalog item."""

        row = self._connection.execute(
            "SELECT * FROM unit_variants WHERE catalog_item_id = ? AND unit_label = ? COLLATE NOCASE",
            (catalog_item_id, unit_label.strip()),
        ).fetchone()
        return _row_to_unit_variant(row) if row else None

    def create_unit_variant(
        self,
        catalog_item_id: int,
        unit_label: str,
        conversion_factor: Decimal = ONE,
        sell_price: Decimal = ZERO,
        is_base_unit: bool = False,
    ) -> UnitVariant:
        unit_label = unit_label.strip().upper()
        cursor = self._connection.execute(
            """
            INSERT INTO unit_variants (
                catalog_item_id, unit_label, conversion_factor, sell_price,
                buy_price, profit_amount, profit_percentage, is_base_unit
            ) VALUES (?, ?, ?, ?, '0', '0', '0', ?)
            """,
            (catalog_item_id, unit_label, conversion_factor, sell_price, int(is_base_unit)),
        )
        return UnitVariant(
            id=cursor.lastrowid,
            catalog_item_id=catalog_item_id,
            unit_label=unit_label,
            conversion_factor=conversion_factor,
            sell_price=sell_price,
            is_base_unit=is_base_unit,
        )

    def resolve_unit_variant(self, catalog_item_id: int, unit_label: str) -> Resolution[UnitVariant]:
        """Find a unit by label; new units get a conversion factor of one and zero prices."""

        variant = self.find_unit_variant(catalog_item_id, unit_label)
        if variant:
            return Resolution.found(variant)
        return Resolution.new(self.create_unit_variant(catalog_item_id, unit_label, ONE, ZERO, is_base_unit=True))

    def update_variant_pricing(
        self,
        variant_id: int,
        buy_price: Decimal,
        profit_amount: Decimal,
        profit_percentage: Decimal,
    ) -> None:
        self._connection.execute(
            """
            UPDATE unit_variants
            SET buy_price = ?, profit_amount = ?, profit_percentage = ?
            WHERE id = ?
            """,
            (buy_price, profit_amount, profit_percentage, variant_id),
        )

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------
    def get_stock_level(self, catalog_item_id: int, branch_id: int) -> Optional[StockLevel]:
        row = self._connection.execute(
            "SELECT * FROM stock_levels WHERE catalog_item_id = ? AND branch_id = ?",
            (catalog_item_id, branch_id),
        ).fetchone()
        return StockLevel(**dict(row)) if row else None

    def adjust_stock(self, catalog_item_id: int, branch_id: int, delta: Decimal) -> Decimal:
        """Add ``delta`` base units to a branch's stock and return the new level."""

        current = self.get_stock_level(catalog_item_id, branch_id)
        if current is None:
            self._connection.execute(
                "INSERT INTO stock_levels (catalog_item_id, branch_id, recorded_stock) VALUES (?, ?, ?)",
                (catalog_item_id, branch_id, delta),
            )
            return delta
        stock = current.recorded_stock + delta
        self._connection.execute(
            "UPDATE stock_levels SET recorded_stock = ? WHERE id = ?",
            (stock, current.id),
        )
        return stock

    def total_stock(self, catalog_item_id: int) -> Decimal:
        """Sum of recorded stock across all branches.

        Summed in Python because SQLite would add the text columns as floats.
        """

        rows = self._connection.execute(
            "SELECT recorded_stock FROM stock_levels WHERE catalog_item_id = ?",
            (catalog_item_id,),
        ).fetchall()
        return sum((row["recorded_stock"] for row in rows), ZERO)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def find_transaction(self, invoice_number: str) -> Optional[TransactionRecord]:
        row = self._connection.execute(
            "SELECT * FROM transactions WHERE invoice_number = ?",
            (invoice_number,),
        ).fetchone()
        if row is None:
            return None
        record = _row_to_transaction(row)
        record.line_items = self.list_transaction_items(record.id)
        return record

    def create_transaction(self, record: TransactionRecord) -> TransactionRecord:
        now = datetime.now().isoformat(timespec="seconds")
        cursor = self._connection.execute(
            """
            INSERT INTO transactions (
                invoice_number, direction, branch_id, operator_id, counterparty_id,
                transaction_date, due_date, subtotal, discount, total,
                cash_received, cash_change, notes, created_at, updated_at
            ) VALUES (
                :invoice_number, :direction, :branch_id, :operator_id, :counterparty_id,
                :transaction_date, :due_date, :subtotal, :discount, :total,
                :cash_received, :cash_change, :notes, :created_at, :updated_at
            )
            """,
            {
                "invoice_number": record.invoice_number,
                "direction": record.direction.value,
                "branch_id": record.branch_id,
                "operator_id": record.operator_id,
                "counterparty_id": record.counterparty_id,
                "transaction_date": record.transaction_date.isoformat(timespec="seconds"),
                "due_date": _date_to_iso(record.due_date),
                "subtotal": record.subtotal,
                "discount": record.discount,
                "total": record.total,
                "cash_received": record.cash_received,
                "cash_change": record.cash_change,
                "notes": record.notes,
                "created_at": now,
                "updated_at": now,
            },
        )
        record.id = cursor.lastrowid
        return record

    def update_transaction_totals(
        self,
        transaction_id: int,
        subtotal: Decimal,
        discount: Decimal,
        total: Decimal,
        cash_received: Decimal,
    ) -> None:
        self._connection.execute(
            """
            UPDATE transactions
            SET subtotal = ?, discount = ?, total = ?, cash_received = ?, updated_at = ?
            WHERE id = ?
            """,
            (subtotal, discount, total, cash_received, datetime.now().isoformat(timespec="seconds"), transaction_id),
        )

    def add_transaction_item(self, item: TransactionLineItem) -> TransactionLineItem:
        cursor = self._connection.execute(
            """
            INSERT INTO transaction_items (
                transaction_id, catalog_item_id, unit_variant_id, quantity,
                conversion_factor, total_quantity, price, discount, subtotal,
                total, recorded_buy_price
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.transaction_id,
                item.catalog_item_id,
                item.unit_variant_id,
                item.quantity,
                item.conversion_factor,
                item.total_quantity,
                item.price,
                item.discount,
                item.subtotal,
                item.total,
                item.recorded_buy_price,
            ),
        )
        item.id = cursor.lastrowid
        return item

    def update_transaction_item(self, item: TransactionLineItem) -> None:
        self._connection.execute(
            """
            UPDATE transaction_items
            SET quantity = ?, total_quantity = ?, price = ?, discount = ?,
                subtotal = ?, total = ?, recorded_buy_price = ?
            WHERE id = ?
            """,
            (
                item.quantity,
                item.total_quantity,
                item.price,
                item.discount,
                item.subtotal,
                item.total,
                item.recorded_buy_price,
                item.id,
            ),
        )

    def list_transaction_items(self, transaction_id: int) -> list[TransactionLineItem]:
        rows = self._connection.execute(
            """
            SELECT ti.*, ci.code AS item_code
            FROM transaction_items ti
            JOIN catalog_items ci ON ci.id = ti.catalog_item_id
            WHERE ti.transaction_id = ?
            ORDER BY ti.id
            """,
            (transaction_id,),
        ).fetchall()
        return [TransactionLineItem(**dict(row)) for row in rows]

    def count_transactions(self, direction: Optional[Direction] = None) -> int:
        if direction is None:
            row = self._connection.execute("SELECT COUNT(*) AS n FROM transactions").fetchone()
        else:
            row = self._connection.execute(
                "SELECT COUNT(*) AS n FROM transactions WHERE direction = ?",
                (direction.value,),
            ).fetchone()
        return int(row["n"])

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------
    def record_audit(
        self,
        action_type: str,
        model_type: str,
        model_id: int,
        operator_id: Optional[int],
        payload_before: Optional[TransactionRecord],
        payload_after: Optional[TransactionRecord],
    ) -> None:
        self._connection.execute(
            """
            INSERT INTO audit_log (
                action_type, model_type, model_id, operator_id,
                payload_before, payload_after, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                action_type,
                model_type,
                model_id,
                operator_id,
                _to_json(payload_before),
                _to_json(payload_after),
                datetime.now().isoformat(timespec="seconds"),
            ),
        )

    def list_audit_entries(self, model_id: Optional[int] = None) -> list[AuditEntry]:
        query = "SELECT * FROM audit_log"
        params: tuple[object, ...] = ()
        if model_id is not None:
            query += " WHERE model_id = ?"
            params = (model_id,)
        rows = self._connection.execute(query + " ORDER BY id", params).fetchall()
        return [
            AuditEntry(
                id=row["id"],
                action_type=row["action_type"],
                model_type=row["model_type"],
                model_id=row["model_id"],
                operator_id=row["operator_id"],
                payload_before=json.loads(row["payload_before"]) if row["payload_before"] else None,
                payload_after=json.loads(row["payload_after"]) if row["payload_after"] else None,
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]


def _row_to_operator(row: sqlite3.Row) -> Operator:
    return Operator(
        id=row["id"],
        name=row["name"],
        password_hash=row["password_hash"],
        is_active=bool(row["is_active"]),
        is_superuser=bool(row["is_superuser"]),
    )


def _row_to_catalog_item(row: sqlite3.Row) -> CatalogItem:
    payload = dict(row)
    payload["is_active"] = bool(payload["is_active"])
    return CatalogItem(**payload)


def _row_to_unit_variant(row: sqlite3.Row) -> UnitVariant:
    payload = dict(row)
    payload["is_base_unit"] = bool(payload["is_base_unit"])
    return UnitVariant(**payload)


def _row_to_transaction(row: sqlite3.Row) -> TransactionRecord:
    return TransactionRecord(
        id=row["id"],
        invoice_number=row["invoice_number"],
        direction=Direction(row["direction"]),
        branch_id=row["branch_id"],
        operator_id=row["operator_id"],
        counterparty_id=row["counterparty_id"],
        transaction_date=datetime.fromisoformat(row["transaction_date"]),
        due_date=date.fromisoformat(row["due_date"]) if row["due_date"] else None,
        subtotal=row["subtotal"],
        discount=row["discount"],
        total=row["total"],
        cash_received=row["cash_received"],
        cash_change=row["cash_change"],
        notes=row["notes"],
    )


def _to_json(record: Optional[TransactionRecord]) -> Optional[str]:
    if record is None:
        return None
    return json.dumps(asdict(record), default=str)


def _date_to_iso(value: Optional[date | datetime]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    return value.isoformat()

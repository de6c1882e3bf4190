"""Settings for an import run, read from ``RETAIL_INGEST_*`` variables.

Variables may also come from a ``.env`` file located by python-dotenv.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Values already in the environment win over the .env file.
load_dotenv()


@dataclass(frozen=True)
class AppConfig:
    """Settings shared by every command of one CLI invocation.

    Attributes:
        project_root: Checkout directory; the default database lives here.
        database_file: Path of the SQLite database that receives the
            ingested transactions.
        branch_code: Code of the branch whose stock the imported documents
            move. The branch is created on first use.
        branch_name: Display name used when the branch has to be created.
        default_password: Plain password given to operators that are created
            because a document names them. Stored hashed.
        admin_name: Operator used when a document names no cashier or admin.
        log_level: Name of the :mod:`logging` level for the CLI.
    """

    project_root: Path
    database_file: Path
    branch_code: str
    branch_name: str
    default_password: str
    admin_name: str
    log_level: str


def load_config() -> AppConfig:
    """Build the run settings; unset variables fall back to a single-branch store."""

    project_root = Path(__file__).resolve().parent.parent
    database_file = Path(
        getenv_with_default(
            "RETAIL_INGEST_DB_FILE",
            project_root / "retail_ingest.db",
        )
    )

    # Ensure the directory exists so the repository can create the file.
    database_file.parent.mkdir(parents=True, exist_ok=True)

    return AppConfig(
        project_root=project_root,
        database_file=database_file,
        branch_code=getenv_with_default("RETAIL_INGEST_BRANCH_CODE", "MAIN"),
        branch_name=getenv_with_default("RETAIL_INGEST_BRANCH_NAME", "Main Branch"),
        default_password=getenv_with_default("RETAIL_INGEST_DEFAULT_PASSWORD", "12345678"),
        admin_name=getenv_with_default("RETAIL_INGEST_ADMIN_NAME", "ADMIN"),
        log_level=getenv_with_default("RETAIL_INGEST_LOG_LEVEL", "INFO"),
    )


def getenv_with_default(name: str, default: Optional[Path | str] = None) -> Optional[str]:
    """Read ``name`` from the environment, else ``default`` as text.

    An empty variable counts as set. With no default an unset variable gives
    ``None``.
    """

    from os import getenv

    value = getenv(name)
    if value is not None:
        return value
    if default is None:
        return None
    return str(default)

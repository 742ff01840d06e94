"""
Core types and database access.

This module contains the foundational components for:
- Result types (QueryResult, AgentResult)
- Errors raised by the agent layer
- Database connection (SQLite / DuckDB through SQLAlchemy)
- Database validation (no SQLAlchemy, no LLM)
- Parsing of query tool output
"""

import json
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import duckdb
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from langchain_community.utilities import SQLDatabase


# ============================================================================
# Errors
# ============================================================================

class SQLChatError(RuntimeError):
    """Base class for errors raised while answering a question."""


class MissingApiKeyError(SQLChatError):
    """No API key is configured for the selected LLM provider."""


class DatabaseConnectionError(SQLChatError):
    """The database could not be opened or reflected."""


# ============================================================================
# Result Types
# ============================================================================

@dataclass
class QueryResult:
    """A SQL statement executed by the agent and the rows it returned."""
    query: str
    result: list[dict[str, Any]]

    def to_dict(self) -> dict:
        return {"query": self.query, "result": self.result}


@dataclass
class AgentResult:
    """Everything a single agent run produced."""
    queries: list[QueryResult] = field(default_factory=list)
    final_answer: str = ""

    def to_dict(self) -> dict:
        return {
            "queries": [q.to_dict() for q in self.queries],
            "finalAnswer": self.final_answer,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AgentResult":
        return cls(
            queries=[
                QueryResult(query=q["query"], result=q["result"])
                for q in data.get("queries", [])
            ],
            final_answer=data.get("finalAnswer", ""),
        )


@dataclass
class DatabaseValidation:
    """Outcome of validate_database()."""
    valid: bool
    path: str
    dialect: str
    tables: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "path": self.path,
            "dialect": self.dialect,
            "tables": list(self.tables),
            "error": self.error,
        }


# ============================================================================
# Database Access
# ============================================================================

DUCKDB_SUFFIXES = (".duckdb", ".ddb")


def resolve_db_path(db_path: str) -> str:
    """Normalize a user-supplied database path."""
    path = db_path.strip()
    if path.startswith("./"):
        path = path[2:]
    return str(Path(path).expanduser())


def detect_dialect(db_path: str) -> str:
    """Return the SQL dialect name used in prompts for this database file."""
    if Path(db_path).suffix.lower() in DUCKDB_SUFFIXES:
        return "DuckDB"
    return "SQLite"


def database_uri(db_path: str) -> str:
    """Build the SQLAlchemy URI for a database file."""
    absolute = Path(resolve_db_path(db_path)).resolve()
    if detect_dialect(db_path) == "DuckDB":
        return f"duckdb:///{absolute}"
    return f"sqlite:///{absolute}"


def _set_sqlite_query_only(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA query_only = ON")
    cursor.close()


def create_read_only_engine(db_path: str) -> Engine:
    """
    Create an engine that cannot change the database file.

    SQLite connections run with `PRAGMA query_only`, which rejects DDL as well
    as DML; DuckDB files are opened in read-only mode.
    """
    uri = database_uri(db_path)
    if detect_dialect(db_path) == "DuckDB":
        return create_engine(uri, connect_args={"read_only": True})

    engine = create_engine(uri)
    event.listen(engine, "connect", _set_sqlite_query_only)
    return engine


def connect_database(db_path: str) -> tuple[SQLDatabase, Engine]:
    """
    Open the database for the SQL toolkit.

    Returns the LangChain SQLDatabase wrapper and the underlying read-only
    engine (the caller owns the engine and must dispose it).
    """
    resolved = resolve_db_path(db_path)
    if not Path(resolved).is_file():
        raise DatabaseConnectionError(
            f"Failed to initialize database at {db_path}: file does not exist"
        )

    engine = create_read_only_engine(db_path)
    try:
        db = SQLDatabase(engine)
    except Exception as e:
        engine.dispose()
        raise DatabaseConnectionError(
            f"Failed to initialize database at {db_path}: {e}"
        ) from e
    return db, engine


def _list_sqlite_tables(path: Path) -> list[str]:
    con = sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
    try:
        rows = con.execute(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        ).fetchall()
    finally:
        con.close()
    return [row[0] for row in rows]


def _list_duckdb_tables(path: Path) -> list[str]:
    con = duckdb.connect(str(path), read_only=True)
    try:
        rows = con.execute(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'main' ORDER BY table_name"
        ).fetchall()
    finally:
        con.close()
    return [row[0] for row in rows]


def validate_database(db_path: str) -> DatabaseValidation:
    """
    Check that a database file exists, opens, and list its tables.

    Never raises: problems are reported through DatabaseValidation.error.
    The file is opened read-only so a missing database is never created.
    """
    dialect = detect_dialect(db_path)
    path = Path(resolve_db_path(db_path))

    if not path.exists():
        return DatabaseValidation(False, str(path), dialect, error="Database file not found")
    if not path.is_file():
        return DatabaseValidation(False, str(path), dialect, error="Database path is not a file")

    try:
        if dialect == "DuckDB":
            tables = _list_duckdb_tables(path)
        else:
            tables = _list_sqlite_tables(path)
    except (sqlite3.Error, duckdb.Error) as e:
        return DatabaseValidation(False, str(path), dialect, error=str(e))

    return DatabaseValidation(True, str(path), dialect, tables=tables)


# ============================================================================
# Tool Output Parsing
# ============================================================================

def parse_tool_result(content: Any) -> tuple[list[dict[str, Any]], bool]:
    """
    Turn the content of a query tool message into a list of row dicts.

    JSON arrays are kept as they are, a single JSON object becomes a one-row
    list, other JSON values are wrapped as [{"result": value}] and non-JSON
    text as [{"result": content}].

    Returns:
        (rows, is_json) tuple
    """
    if isinstance(content, list):
        # Content blocks, keep only the text
        content = "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )

    try:
        parsed = json.loads(content)
    except (TypeError, ValueError):
        return [{"result": content}], False

    if isinstance(parsed, list):
        return parsed, True
    if isinstance(parsed, dict):
        return [parsed], True
    return [{"result": parsed}], True

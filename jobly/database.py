"""
Database schema and query client.

Uses SQLAlchemy for connections and table creation. Models talk to the
store only through Database.query(), which takes SQL written with
``$N`` positional placeholders and an ordered list of values.
"""

import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base

from .logger import StructuredLogger, get_logger

Base = declarative_base()

_PLACEHOLDER = re.compile(r"\$(\d+)")


class CompanyRecord(Base):
    """Company table."""

    __tablename__ = "companies"

    handle = Column(String(25), primary_key=True)
    name = Column(Text, nullable=False, unique=True)
    num_employees = Column(Integer, CheckConstraint("num_employees >= 0"))
    description = Column(Text, nullable=False)
    logo_url = Column(Text)


class JobRecord(Base):
    """Job table."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    salary = Column(Integer, CheckConstraint("salary >= 0"))
    equity = Column(Numeric, CheckConstraint("equity <= 1.0"))
    company_handle = Column(
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    )


class QueryResult(NamedTuple):
    rows: List[Dict[str, Any]]
    rowcount: int


def bind_positional(sql: str, values: Sequence[Any]) -> Tuple[str, Dict[str, Any]]:
    """
    Rewrite ``$N`` placeholders as named binds for sqlalchemy.text().

    Args:
        sql: Statement using $1, $2, ... placeholders
        values: Values for the placeholders, $N taking values[N-1]

    Returns:
        Tuple of (statement with :pN binds, {"pN": value})

    Raises:
        ValueError: If a placeholder has no matching value
    """
    def _replace(match: "re.Match") -> str:
        position = int(match.group(1))
        if position < 1 or position > len(values):
            raise ValueError(
                f"Placeholder ${position} has no value ({len(values)} values supplied)"
            )
        return f":p{position}"

    statement = _PLACEHOLDER.sub(_replace, sql)
    params = {f"p{idx}": value for idx, value in enumerate(values, start=1)}
    return statement, params


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _execute(conn, statement: str, params: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], int]:
    result = conn.execute(text(statement), params)
    rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
    return rows, result.rowcount


class Database:
    """Query-executing client injected into the models."""

    def __init__(self, url: str, logger: Optional[StructuredLogger] = None):
        """
        Create an engine for the given database URL.

        SQLite file databases get their parent directory created and
        foreign key enforcement switched on for every connection.

        Args:
            url: SQLAlchemy database URL
            logger: Logger to use (default: global logger)
        """
        self.url = url
        self.logger = logger or get_logger()
        self._conn = None

        parsed = make_url(url)
        self.is_sqlite = parsed.get_backend_name() == "sqlite"
        if self.is_sqlite and parsed.database not in (None, "", ":memory:"):
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(url)
        if self.is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Run every query issued inside the block in one transaction.

        Commits when the block exits normally and rolls back if it raises.
        Nested blocks join the outer transaction.
        """
        if self._conn is not None:
            yield self
            return
        with self.engine.begin() as conn:
            self._conn = conn
            try:
                yield self
            finally:
                self._conn = None

    def query(self, sql: str, values: Sequence[Any] = ()) -> QueryResult:
        """
        Execute one statement, in its own transaction unless inside transaction().

        Args:
            sql: Statement with $N placeholders
            values: Placeholder values in order

        Returns:
            QueryResult with rows as dicts (empty for statements without a
            result set) and the driver's affected-row count
        """
        statement, params = bind_positional(sql, values)
        self.logger.debug("Executing query", sql=" ".join(sql.split()), values=list(values))

        try:
            if self._conn is not None:
                rows, rowcount = _execute(self._conn, statement, params)
            else:
                with self.engine.begin() as conn:
                    rows, rowcount = _execute(conn, statement, params)
        except SQLAlchemyError as e:
            self.logger.record_error(type(e).__name__)
            self.logger.error("Query failed", error=str(e), sql=" ".join(sql.split()))
            raise

        self.logger.record_query(sql, rows=len(rows))
        return QueryResult(rows, rowcount)

    def close(self) -> None:
        self.engine.dispose()


def init_database(url: str) -> Database:
    """
    Initialize database and create tables.

    Args:
        url: SQLAlchemy database URL

    Returns:
        Database client bound to the URL
    """
    db = Database(url)
    db.create_tables()
    return db


def get_database(url: str) -> Database:
    """
    Get a database client without touching the schema.

    Args:
        url: SQLAlchemy database URL

    Returns:
        Database client
    """
    return Database(url)

"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from src.core.config import settings


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """A store operation failed."""


class RecordNotFoundError(KeyError):
    """A record looked up by ID does not exist."""


class DatabaseClient(Protocol):
    """Record-level store API the services depend on."""

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]: ...

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]: ...

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]: ...

    async def delete_record(self, *, collection: str, record_id: str) -> None: ...

    async def delete_records(self, *, collection: str, filter_query: str) -> int: ...

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]: ...

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None: ...

    def transaction(self) -> Any: ...


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def utc_timestamp() -> str:
    """Current UTC time as an ISO string with a Z suffix."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _to_sql_value(val: Any) -> Any:
    """Convert a Python value to something sqlite3 can bind."""
    if isinstance(val, datetime | date):
        return val.isoformat()
    if isinstance(val, dict | list):
        return json.dumps(val)
    return val


def _parse_value(value: str, *, is_like: bool = False) -> str | bool:
    """Parse a filter value for SQLite.

    Values stay text so IDs such as ``"007"`` match exactly; column affinity
    converts them for numeric columns. Only ``true``/``false`` become booleans.
    """
    if is_like:
        return f"%{value}%"

    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False

    return value


def _unescape(raw: str, quote: str) -> str:
    """Undo the escaping applied by ``sanitize_param``."""
    if quote == '"':
        return json.loads(f'"{raw}"')
    return re.sub(r"\\(.)", r"\1", raw)


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


_COMPARISON = re.compile(r"""(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(['"])((?:\\.|(?!\3)[^\\])*)\3""")


def _parse_single_comparison(comparison: str) -> tuple[str, str | bool]:
    """Parse a single comparison expression into a SQL condition and parameter."""
    match = _COMPARISON.fullmatch(comparison.strip())
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field, op, quote, raw_value = match.groups()

    sql_op = _get_sql_operator(op)
    try:
        text = _unescape(raw_value, quote)
    except json.JSONDecodeError as e:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg) from e
    value = _parse_value(text, is_like=sql_op == "LIKE")

    return f"{field} {sql_op} ?", value


def _split_top_level(filter_query: str, separator: str) -> list[str]:
    """Split on ``separator`` outside quoted values and parenthesized groups."""
    parts = []
    current = ""
    paren_depth = 0
    quote = None
    escaped = False
    i = 0

    while i < len(filter_query):
        char = filter_query[i]
        if quote:
            current += char
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            i += 1
            continue

        if char in "'\"":
            quote = char
        elif char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1
        elif paren_depth == 0 and filter_query.startswith(separator, i):
            parts.append(current.strip())
            current = ""
            i += len(separator)
            continue

        current += char
        i += 1

    if current.strip():
        parts.append(current.strip())

    return parts


def _parse_or_group(or_group: str) -> tuple[str, list[str | bool]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    or_conditions = []
    or_params = []

    for part in _split_top_level(or_group[1:-1], "||"):
        cond, value = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.append(value)

    return f"({' OR '.join(or_conditions)})", or_params


def parse_filter(filter_query: str) -> tuple[str, list[str | bool]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list."""
    if not filter_query:
        return "", []

    conditions = []
    params: list[str | bool] = []

    for part in _split_top_level(filter_query, "&&"):
        # Handle parenthesized OR groups
        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
            conditions.append(cond)
            params.extend(cond_params)
        else:
            cond, value = _parse_single_comparison(part)
            conditions.append(cond)
            params.append(value)

    return " AND ".join(conditions), params


def _parse_sort(sort: str) -> str:
    """Translate a `-field` / `+field` / `field` sort spec into an ORDER BY clause."""
    if not sort:
        return "created ASC, rowid ASC"

    clauses = []
    for raw in sort.split(","):
        item = raw.strip()
        direction = "DESC" if item.startswith("-") else "ASC"
        field = item.lstrip("+-")
        if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", field):
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
            return "created ASC, rowid ASC"
        clauses.append(f"{field} {direction}")
    clauses.append("rowid ASC")
    return ", ".join(clauses)


# Set while the current task is inside SQLiteClient.transaction()
_in_transaction: ContextVar[bool] = ContextVar("_in_transaction", default=False)


class SQLiteClient:
    """aiosqlite-backed store.

    One connection per client. Every statement runs under the client lock unless the
    calling task already holds it through ``transaction()``, so readers never observe a
    half-applied transaction and concurrent writers are serialized.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self._path = get_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> "SQLiteClient":
        """Open the connection (idempotent)."""
        if self._conn is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = await aiosqlite.connect(str(self._path))
            self._conn.row_factory = aiosqlite.Row
            await self._conn.execute("PRAGMA foreign_keys = ON")
            await self._conn.execute("PRAGMA journal_mode = WAL")
            logger.info("Created new SQLite connection", extra={"db_path": str(self._path)})
        return self

    async def close(self) -> None:
        """Close the connection if open."""
        if self._conn is None:
            return
        try:
            await self._conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": str(self._path)})
        except Exception as e:
            logger.warning("Error closing SQLite connection", extra={"error": str(e)})
        finally:
            self._conn = None

    async def __aenter__(self) -> "SQLiteClient":
        return await self.connect()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = "SQLiteClient is not connected. Call connect() first."
            raise DatabaseError(msg)
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLiteClient"]:
        """Run the enclosed operations atomically (BEGIN IMMEDIATE ... COMMIT/ROLLBACK)."""
        if _in_transaction.get():
            yield self
            return

        async with self._lock:
            conn = self.connection
            token = _in_transaction.set(True)
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield self
            except BaseException:
                await conn.rollback()
                logger.warning("Rolled back transaction", extra={"db_path": str(self._path)})
                raise
            else:
                await conn.commit()
            finally:
                _in_transaction.reset(token)

    @asynccontextmanager
    async def _statement(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield the connection, taking the lock and committing unless inside a transaction."""
        if _in_transaction.get():
            yield self.connection
            return
        async with self._lock:
            conn = self.connection
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def execute_script(self, script: str) -> None:
        """Run a multi-statement SQL script (schema setup)."""
        async with self._lock:
            await self.connection.executescript(script)
            await self.connection.commit()

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record and return it with its assigned id."""
        try:
            _validate_collection_name(collection)
            now = utc_timestamp()
            record = {"id": uuid.uuid4().hex, "created": now, "updated": now, **data}

            columns = list(record.keys())
            columns_str = ", ".join(columns)
            placeholders_str = ", ".join("?" for _ in columns)
            values = [_to_sql_value(record[key]) for key in columns]

            query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
            async with self._statement() as conn:
                await conn.execute(query, values)

            logger.info("Created record", extra={"collection": collection, "record_id": record["id"]})
            return await self.get_record(collection=collection, record_id=record["id"])
        except Exception as e:
            if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
                msg = f"Table '{collection}' does not exist. Call init_db() first."
                logger.error("Table not found", extra={"collection": collection})
                raise DatabaseError(msg) from e
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a single record by ID, raising RecordNotFoundError if not found."""
        try:
            _validate_collection_name(collection)
            query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
            async with self._statement() as conn:
                cursor = await conn.execute(query, (record_id,))
                row = await cursor.fetchone()

            if row is None:
                msg = f"Record not found in {collection}: {record_id}"
                raise RecordNotFoundError(msg)

            logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
            return dict(row)
        except RecordNotFoundError:
            raise
        except Exception as e:
            logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to get record from {collection}: {e}"
            raise DatabaseError(msg) from e

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update a record by ID and return the updated record."""
        if not data:
            msg = "Empty update payload"
            raise ValueError(msg)

        try:
            _validate_collection_name(collection)
            payload = {**data, "updated": utc_timestamp()}
            set_clause = ", ".join(f"{key} = ?" for key in payload)
            values = [_to_sql_value(val) for val in payload.values()]
            values.append(record_id)

            query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
            async with self._statement() as conn:
                cursor = await conn.execute(query, values)

            if cursor.rowcount == 0:
                msg = f"Record not found in {collection}: {record_id}"
                raise RecordNotFoundError(msg)

            logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
            return await self.get_record(collection=collection, record_id=record_id)
        except RecordNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record by ID, raising RecordNotFoundError if not found."""
        try:
            _validate_collection_name(collection)
            query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
            async with self._statement() as conn:
                cursor = await conn.execute(query, (record_id,))

            if cursor.rowcount == 0:
                msg = f"Record not found in {collection}: {record_id}"
                raise RecordNotFoundError(msg)

            logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})
        except RecordNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to delete record from {collection}: {e}"
            raise DatabaseError(msg) from e

    async def delete_records(self, *, collection: str, filter_query: str) -> int:
        """Delete every record matching the filter and return how many were removed."""
        try:
            _validate_collection_name(collection)
            where_clause, params = parse_filter(filter_query)
            if not where_clause:
                msg = "delete_records requires a filter"
                raise ValueError(msg)

            query = f"DELETE FROM {collection} WHERE {where_clause}"  # noqa: S608 - collection is validated
            async with self._statement() as conn:
                cursor = await conn.execute(query, params)

            logger.info("Deleted records", extra={"collection": collection, "count": cursor.rowcount})
            return cursor.rowcount
        except Exception as e:
            logger.error(
                "delete_records_failed", extra={"collection": collection, "filter_query": filter_query, "error": str(e)}
            )
            msg = f"Failed to delete records from {collection}: {e}"
            raise DatabaseError(msg) from e

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting, and pagination."""
        try:
            _validate_collection_name(collection)

            where_clause = ""
            params: list[Any] = []
            if filter_query:
                where_clause, params = parse_filter(filter_query)
                where_clause = f"WHERE {where_clause}"

            order_by = _parse_sort(sort)
            offset = (page - 1) * per_page

            query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
            params.extend([per_page, offset])

            async with self._statement() as conn:
                cursor = await conn.execute(query, params)
                rows = await cursor.fetchall()

            records = [dict(row) for row in rows]
            logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
            return records
        except Exception as e:
            logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to list records from {collection}: {e}"
            raise DatabaseError(msg) from e

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Return the first record matching the filter, or None."""
        records = await self.list_records(collection=collection, per_page=1, filter_query=filter_query)
        return records[0] if records else None


async def open_client(*, db_path: str | None = None) -> SQLiteClient:
    """Open a SQLite client and make sure the schema exists."""
    from src.core.schema import init_db  # noqa: PLC0415 - schema imports this module

    client = await SQLiteClient(db_path).connect()
    await init_db(client)
    return client


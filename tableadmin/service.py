"""
Generic table access over the active database.

TableService is what the HTTP layer talks to. It validates requests before
anything reaches the backend, checks every referenced column against the
table's catalog entry, wraps backend failures in DatabaseError, and runs
bulk operations item by item so that one failing item does not stop the
rest.
"""

import base64
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .columns import ColumnMeta, normalize_columns
from .database.base import DatabaseInterface
from .exceptions import DatabaseError, InvalidArgument, TableAdminError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

# RFC 3339 at second precision, always in UTC
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: Any) -> Any:
    """
    Render a temporal value as a UTC RFC 3339 string.

    Naive datetimes are taken to be UTC already. Strings are parsed as
    ISO-8601 and returned untouched when they do not parse.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).strftime(TIMESTAMP_FORMAT)
    return value


def normalize_row(row: Dict[str, Any], temporal_columns: Set[str]) -> Dict[str, Any]:
    normalized = {}
    for key, value in row.items():
        if isinstance(value, (bytes, bytearray, memoryview)):
            # Binary values travel as standard base64 text
            value = base64.b64encode(bytes(value)).decode("ascii")
        elif isinstance(value, (datetime, date)) or (
            key in temporal_columns and isinstance(value, str)
        ):
            value = format_timestamp(value)
        normalized[key] = value
    return normalized


def parse_page_argument(value: Any, default: int) -> int:
    """Parse a page or page-size argument, falling back to the default when absent, invalid or not positive."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


class TableService:
    """
    Table introspection, paginated reads and condition-based mutations.
    """

    def __init__(self, database: DatabaseInterface):
        self.database = database

    # --- Introspection ---

    def list_tables(self) -> List[str]:
        try:
            return self.database.list_tables()
        except SQLAlchemyError as e:
            logging.error(f"Failed to list tables: {e}")
            raise DatabaseError(f"Failed to get table names: {e}") from e

    def describe_table(self, table_name: str) -> List[Dict[str, Any]]:
        """Raw, engine-specific column descriptions."""
        self._require_table_name(table_name)
        try:
            return self.database.describe_table(table_name)
        except SQLAlchemyError as e:
            logging.error(f"Failed to describe table '{table_name}': {e}")
            raise DatabaseError(f"Failed to get table info: {e}") from e

    def get_columns(self, table_name: str) -> List[ColumnMeta]:
        """Normalized column metadata for a table."""
        return normalize_columns(self.describe_table(table_name))

    # --- Reads ---

    def fetch_page(
        self,
        table_name: str,
        page: Any = None,
        page_size: Any = None,
        columns: Optional[List[ColumnMeta]] = None,
    ) -> Tuple[int, List[Dict[str, Any]]]:
        """
        Fetch one page of rows along with the unfiltered total.

        Rows come back in the backend's default order; nothing guarantees
        that order stays stable from one page to the next. Pass ``columns``
        when the caller already described the table.
        """
        self._require_table_name(table_name)
        page = parse_page_argument(page, DEFAULT_PAGE)
        page_size = parse_page_argument(page_size, DEFAULT_PAGE_SIZE)

        if columns is None:
            columns = self.get_columns(table_name)
        temporal_columns = {column.name for column in columns if column.temporal}

        try:
            total = self.database.count(table_name)
        except SQLAlchemyError as e:
            logging.error(f"Failed to count rows of '{table_name}': {e}")
            raise DatabaseError(f"Failed to count records: {e}") from e

        try:
            rows = self.database.select(table_name, (page - 1) * page_size, page_size)
        except SQLAlchemyError as e:
            logging.error(f"Failed to read rows of '{table_name}': {e}")
            raise DatabaseError(f"Failed to get table data: {e}") from e

        return total, [normalize_row(row, temporal_columns) for row in rows]

    # --- Mutations ---

    def insert(self, table_name: str, row: Mapping[str, Any]) -> int:
        self._require_table_name(table_name)
        if not row:
            raise InvalidArgument("Record data is required")

        self._check_columns(table_name, self._column_names(table_name), row)

        try:
            written = self.database.insert(table_name, dict(row))
        except SQLAlchemyError as e:
            logging.error(f"Failed to insert into '{table_name}': {e}")
            raise DatabaseError(f"Failed to create record: {e}") from e

        logging.info(f"Inserted record into '{table_name}'")
        return written

    def update(
        self,
        table_name: str,
        condition: Mapping[str, Any],
        update: Mapping[str, Any],
        known_columns: Optional[Set[str]] = None,
    ) -> int:
        """
        Apply ``update`` to every row matching ``condition``.

        Returns the number of affected rows. Both maps must be non-empty.
        """
        self._require_table_name(table_name)
        if not condition or not update:
            raise InvalidArgument("Both condition and update are required")

        if known_columns is None:
            known_columns = self._column_names(table_name)
        self._check_columns(table_name, known_columns, condition)
        self._check_columns(table_name, known_columns, update)

        try:
            rows = self.database.update_where(table_name, dict(condition), dict(update))
        except SQLAlchemyError as e:
            logging.error(f"Failed to update '{table_name}': {e}")
            raise DatabaseError(f"Failed to update record: {e}") from e

        logging.info(f"Updated {rows} row(s) in '{table_name}'")
        return rows

    def delete(
        self,
        table_name: str,
        condition: Mapping[str, Any],
        known_columns: Optional[Set[str]] = None,
    ) -> int:
        """Delete every row matching ``condition`` and return the affected row count."""
        self._require_table_name(table_name)
        if not condition:
            raise InvalidArgument("Condition is required")

        if known_columns is None:
            known_columns = self._column_names(table_name)
        self._check_columns(table_name, known_columns, condition)

        try:
            rows = self.database.delete_where(table_name, dict(condition))
        except SQLAlchemyError as e:
            logging.error(f"Failed to delete from '{table_name}': {e}")
            raise DatabaseError(f"Failed to delete record: {e}") from e

        logging.info(f"Deleted {rows} row(s) from '{table_name}'")
        return rows

    def bulk_update(
        self, table_name: str, items: Iterable[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Run each ``{"condition": ..., "update": ...}`` item as its own update.

        Returns one outcome per item, in input order.
        """
        self._require_table_name(table_name)
        items = list(items or [])
        if not items:
            raise InvalidArgument("Items are required for bulk update")

        known_columns = self._column_names(table_name)

        results = []
        for item in items:
            condition = item.get("condition") or {}
            result = {"ok": True, "error": "", "rows": 0}
            if "id" in condition:
                result["id"] = condition["id"]
            try:
                result["rows"] = self.update(
                    table_name, condition, item.get("update") or {}, known_columns
                )
            except TableAdminError as e:
                result["ok"] = False
                result["error"] = str(e)
            results.append(result)

        self._log_batch("update", table_name, results)
        return results

    def bulk_delete(
        self, table_name: str, conditions: Iterable[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Run each condition as its own delete.

        Returns one outcome per condition, in input order. A condition that
        matches nothing is a success with zero rows.
        """
        self._require_table_name(table_name)
        conditions = list(conditions or [])
        if not conditions:
            raise InvalidArgument("Conditions are required for bulk delete")

        known_columns = self._column_names(table_name)

        results = []
        for condition in conditions:
            result = {"ok": True, "error": "", "rows": 0}
            if "id" in condition:
                result["id"] = condition["id"]
            else:
                result["condition"] = dict(condition)
            try:
                result["rows"] = self.delete(table_name, condition, known_columns)
            except TableAdminError as e:
                result["ok"] = False
                result["error"] = str(e)
            results.append(result)

        self._log_batch("delete", table_name, results)
        return results

    # --- Helpers ---

    @staticmethod
    def _require_table_name(table_name: str) -> None:
        if not table_name or not table_name.strip():
            raise InvalidArgument("Table name is required")

    def _column_names(self, table_name: str) -> Set[str]:
        columns = self.get_columns(table_name)
        if not columns:
            raise InvalidArgument(f"Table '{table_name}' does not exist or has no columns")
        return {column.name for column in columns}

    @staticmethod
    def _check_columns(table_name: str, known_columns: Set[str], values: Mapping[str, Any]) -> None:
        unknown = [name for name in values if name not in known_columns]
        if unknown:
            raise InvalidArgument(
                f"Unknown column(s) for table '{table_name}': {', '.join(sorted(unknown))}"
            )

    @staticmethod
    def _log_batch(operation: str, table_name: str, results: List[Dict[str, Any]]) -> None:
        failed = sum(1 for result in results if not result["ok"])
        logging.info(
            f"Bulk {operation} on '{table_name}' finished: "
            f"{len(results) - failed} succeeded, {failed} failed"
        )

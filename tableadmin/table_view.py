"""
Server-side half of the admin table grid.

Everything the grid derives from column metadata lives here: display
columns, the side-panel form fields, the key that identifies a row in the
grid, and the summary shown once a bulk operation finishes.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .columns import ColumnMeta, find_primary_key

COLUMN_WIDTH = 150
ROW_KEY_SEPARATOR = "|"


def display_columns(columns: List[ColumnMeta]) -> List[Dict[str, Any]]:
    """Grid column definitions, one per table column."""
    return [
        {
            "title": column.name,
            "dataIndex": column.name,
            "key": column.name,
            "ellipsis": True,
            "width": COLUMN_WIDTH,
            "temporal": column.temporal,
        }
        for column in columns
    ]


def form_fields(columns: List[ColumnMeta]) -> List[Dict[str, Any]]:
    """
    Side-panel form fields.

    Primary key and auto-increment columns are shown but not editable;
    every other non-nullable column is required.
    """
    fields = []
    for column in columns:
        disabled = column.pk or column.auto_increment
        fields.append(
            {
                "field": column.name,
                "label": column.name,
                "disabled": disabled,
                "required": not column.nullable and not disabled,
            }
        )
    return fields


def _key_part(value: Any) -> str:
    return "null" if value is None else str(value)


def row_key(row: Mapping[str, Any], columns: List[ColumnMeta]) -> str:
    """
    Identify a row in the grid by the values of all of its columns.

    Two rows holding identical values share a key.
    """
    return ROW_KEY_SEPARATOR.join(_key_part(row.get(column.name)) for column in columns)


def count_outcomes(results: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    succeeded = failed = 0
    for result in results:
        if result.get("ok"):
            succeeded += 1
        else:
            failed += 1
    return {"succeeded": succeeded, "failed": failed}


def summary_message(operation: str, results: Iterable[Mapping[str, Any]]) -> str:
    """E.g. ``Bulk update finished: 2 succeeded, 1 failed``."""
    counts = count_outcomes(results)
    return (
        f"Bulk {operation} finished: "
        f"{counts['succeeded']} succeeded, {counts['failed']} failed"
    )


def table_layout(columns: List[ColumnMeta]) -> Dict[str, Any]:
    """Everything the grid needs to render a table, derived from its columns."""
    primary_key: Optional[str] = find_primary_key(columns)
    return {
        "columns": [column.to_dict() for column in columns],
        "primary_key": primary_key,
        "display": display_columns(columns),
        "editable": form_fields(columns),
    }

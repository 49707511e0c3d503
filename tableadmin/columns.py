"""
Canonical column metadata.

Each engine describes its columns differently:

- SQLite ``PRAGMA table_info``: ``cid, name, type, notnull, dflt_value, pk``
- MySQL ``DESCRIBE``: ``Field, Type, Null, Key, Default, Extra``
- PostgreSQL ``information_schema.columns``:
  ``column_name, data_type, is_nullable, column_default``

``normalize_column`` folds all three into a single ``ColumnMeta``.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional

# Key designator MySQL uses for primary key columns
PRIMARY_KEY_MARKER = "PRI"


@dataclass
class ColumnMeta:
    """Canonical description of a single table column."""

    name: str
    type: Optional[str]
    pk: bool
    nullable: bool
    default: Any = None
    extra: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def auto_increment(self) -> bool:
        return bool(self.extra) and "auto_increment" in self.extra.lower()

    @property
    def temporal(self) -> bool:
        return is_temporal_type(self.type)


def is_temporal_type(type_name: Optional[str]) -> bool:
    """True for date, time, datetime and timestamp column types."""
    if not type_name:
        return False
    lowered = type_name.lower()
    return "date" in lowered or "time" in lowered


def normalize_column(raw: Dict[str, Any]) -> ColumnMeta:
    """
    Normalize one raw column description into a ColumnMeta.

    Raises:
        ValueError: If the description matches none of the known shapes
    """
    if "name" in raw:
        # SQLite shape, tolerating the alternate field names of the other engines
        column_type = raw.get("type") or raw.get("data_type")
        default = raw.get("column_default")
        if default is None:
            default = raw.get("dflt_value")
        return ColumnMeta(
            name=raw["name"],
            type=column_type,
            pk=bool(raw.get("pk")) or raw.get("key") == PRIMARY_KEY_MARKER,
            nullable=raw.get("is_nullable") == "YES" or raw.get("notnull") == 0,
            default=default,
            extra=raw.get("extra"),
        )

    if "Field" in raw:
        return ColumnMeta(
            name=raw["Field"],
            type=raw.get("Type"),
            pk=raw.get("Key") == PRIMARY_KEY_MARKER,
            nullable=raw.get("Null") == "YES",
            default=raw.get("Default"),
            extra=raw.get("Extra"),
        )

    if "column_name" in raw:
        # information_schema does not report keys here, pk stays False
        return ColumnMeta(
            name=raw["column_name"],
            type=raw.get("data_type"),
            pk=False,
            nullable=raw.get("is_nullable") == "YES",
            default=raw.get("column_default"),
        )

    raise ValueError(f"Unrecognized column description: {sorted(raw)}")


def normalize_columns(raw_columns: Iterable[Dict[str, Any]]) -> List[ColumnMeta]:
    return [normalize_column(raw) for raw in raw_columns]


def find_primary_key(columns: List[ColumnMeta]) -> Optional[str]:
    """
    Pick the column that identifies a row.

    A column flagged as primary key wins, then a column literally named
    ``id``. Returns None when neither exists.
    """
    for column in columns:
        if column.pk:
            return column.name
    for column in columns:
        if column.name == "id":
            return column.name
    return None

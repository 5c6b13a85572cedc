"""Parameterized SQL fragment builders.

Column names handed to these functions must already be allow-listed by
the caller (see :mod:`device_factory.querying.validation`); only values
are bound.  Fragments use ``?`` placeholders and render to a SQLAlchemy
``text()`` clause with numbered bind parameters.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.sql.elements import TextClause

from device_factory.common.exceptions import InvalidInputError
from device_factory.common.messages import ApiMessage

PLACEHOLDER = "?"
ASC = "ASC"
DESC = "DESC"


@dataclass
class SqlFragment:
    """A SQL snippet plus its bind values, aligned with the ``?`` placeholders."""

    sql: str = ""
    params: list[Any] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.sql)

    def to_text(self) -> TextClause:
        parts = self.sql.split(PLACEHOLDER)
        if len(parts) - 1 != len(self.params):
            raise ValueError(
                f"Fragment has {len(parts) - 1} placeholders but {len(self.params)} params"
            )
        rendered = parts[0]
        binds = []
        for i, (value, tail) in enumerate(zip(self.params, parts[1:])):
            name = f"p{i}"
            rendered += f":{name}{tail}"
            if isinstance(value, datetime):
                binds.append(bindparam(name, value, type_=DateTime()))
            else:
                binds.append(bindparam(name, value))
        return text(rendered).bindparams(*binds)


def quote(column: str, table_alias: str | None = None) -> str:
    quoted = f'"{column}"'
    return f"{table_alias}.{quoted}" if table_alias else quoted


def join_fragments(fragments: list[SqlFragment], separator: str = " ") -> SqlFragment:
    """Concatenate non-empty fragments, keeping bind values in order."""
    present = [f for f in fragments if f]
    return SqlFragment(
        sql=separator.join(f.sql for f in present),
        params=[p for f in present for p in f.params],
    )


def build_predicate(
    prefix: str | None, join_operator: str, fields: dict[str, Any]
) -> SqlFragment | None:
    """Build ``<prefix> k1 = ? <op> k2 = ?`` in the mapping's insertion order.

    Returns None when there is nothing to filter on or no prefix.
    """
    if not fields or not prefix or not prefix.strip():
        return None
    clauses = [f"{quote(column)} = {PLACEHOLDER}" for column in fields]
    sql = f"{prefix.strip()} " + f" {join_operator.strip()} ".join(clauses)
    return SqlFragment(sql=sql, params=list(fields.values()))


def build_like_clause(
    like_fields: list[str] | None,
    like_values: list[str] | None,
    table_alias: str | None = None,
) -> SqlFragment:
    """Case-insensitive substring match per field/value pair, joined by AND."""
    if not like_fields or not like_values or len(like_fields) != len(like_values):
        return SqlFragment()
    clauses = []
    params = []
    for column, value in zip(like_fields, like_values):
        clauses.append(
            f"lower(CAST({quote(column, table_alias)} AS VARCHAR)) LIKE lower({PLACEHOLDER})"
        )
        params.append(f"%{value}%")
    return SqlFragment(sql=" AND ".join(clauses), params=params)


def _millis_to_datetime(raw: str) -> datetime:
    try:
        millis = int(raw.strip())
    except ValueError:
        raise InvalidInputError(ApiMessage.INVALID_RANGE_VALUE)
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).replace(tzinfo=None)


def build_range_clause(
    range_fields: list[str] | None,
    range_values: list[str] | None,
    table_alias: str | None = None,
) -> SqlFragment:
    """Inclusive ``lower_upper`` epoch-millis ranges per field, joined by AND."""
    if not range_fields or not range_values or len(range_fields) != len(range_values):
        return SqlFragment()
    clauses = []
    params = []
    for column, value in zip(range_fields, range_values):
        bounds = value.split("_")
        if len(bounds) != 2:
            raise InvalidInputError(ApiMessage.INVALID_RANGE_VALUE)
        quoted = quote(column, table_alias)
        clauses.append(f"{quoted} >= {PLACEHOLDER} AND {quoted} <= {PLACEHOLDER}")
        params.extend(_millis_to_datetime(b) for b in bounds)
    return SqlFragment(sql=" AND ".join(clauses), params=params)


def build_order_by_clause(
    sort_by: str | None, order: str | None = None, table_alias: str | None = None
) -> SqlFragment:
    if not sort_by or not sort_by.strip():
        return SqlFragment()
    direction = DESC if order and order.strip().upper() == DESC else ASC
    return SqlFragment(sql=f"ORDER BY {quote(sort_by.strip(), table_alias)} {direction}")


def split_list(csv: str | None, delimiter: str = ",") -> list[str]:
    if not csv:
        return []
    return [token.strip() for token in csv.split(delimiter) if token.strip()]

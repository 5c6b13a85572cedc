"""Read-side queries over factory data, keyed by an allow-listed search input."""

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from device_factory.factory.models import (
    DeviceAssociationModel,
    DeviceFactoryDataHistoryModel,
    DeviceFactoryDataModel,
    VinDetailsModel,
)
from device_factory.factory.states import COUNTED_STATES
from device_factory.querying.sql import (
    SqlFragment,
    build_like_clause,
    build_order_by_clause,
    build_range_clause,
    join_fragments,
    quote,
)
from device_factory.querying.validation import InputType

FACTORY = "f"
VIN = "v"
ASSOCIATION = "a"

_FACTORY_TABLE = f'"{DeviceFactoryDataModel.__tablename__}" {FACTORY}'
_VIN_JOIN = (
    f'JOIN "{VinDetailsModel.__tablename__}" {VIN} '
    f'ON {VIN}."reference_id" = {FACTORY}."id"'
)
_ASSOCIATION_JOIN = (
    f'JOIN "{DeviceAssociationModel.__tablename__}" {ASSOCIATION} '
    f'ON {ASSOCIATION}."factory_id" = {FACTORY}."id"'
)


@dataclass
class Criteria:
    """Join and WHERE condition shared by the count, fetch and aggregate queries."""

    joins: list[str] = field(default_factory=list)
    where: SqlFragment = field(default_factory=SqlFragment)

    def alias_for(self, column: str) -> str:
        return ASSOCIATION if column == "device_id" else FACTORY

    def from_clause(self, select_sql: str) -> SqlFragment:
        parts = [SqlFragment(f"{select_sql} FROM {_FACTORY_TABLE}")]
        parts.extend(SqlFragment(join) for join in self.joins)
        if self.where:
            parts.append(join_fragments([SqlFragment("WHERE"), self.where]))
        return join_fragments(parts)


def page_fragment(page: int, size: int) -> SqlFragment:
    return SqlFragment("LIMIT ? OFFSET ?", [size, (page - 1) * size])


def order_fragment(
    sort_by: str | None, order: str | None = None, table_alias: str | None = None
) -> SqlFragment:
    """ORDER BY for a paged read; falls back to the primary key so pages stay stable."""
    if not sort_by or not sort_by.strip():
        return build_order_by_clause("id", "ASC", table_alias)
    return build_order_by_clause(sort_by, order, table_alias)


class DeviceDetailsRepository:
    """One query component for every device search shape.

    Callers choose the shape with :meth:`criteria_for_input` (one search
    key) or :meth:`criteria_for_filters` (contains-like and range filters)
    and then count, fetch or aggregate with the same criteria.
    """

    @staticmethod
    def criteria_for_input(input_type: InputType, value: str) -> Criteria:
        if input_type is InputType.VIN:
            return Criteria(
                joins=[_VIN_JOIN],
                where=SqlFragment(f'{quote("vin", VIN)} = ?', [value]),
            )
        if input_type is InputType.DEVICE_ID:
            return Criteria(
                joins=[_ASSOCIATION_JOIN],
                where=build_like_clause(["device_id"], [value], ASSOCIATION),
            )
        if input_type is InputType.STATE:
            return Criteria(where=SqlFragment(f'{quote("state", FACTORY)} = ?', [value]))
        if input_type is InputType.SERIAL_NUMBER:
            return Criteria(where=build_like_clause(["serial_number"], [value], FACTORY))
        if not value:
            return Criteria()
        return Criteria(where=build_like_clause(["imei"], [value], FACTORY))

    @staticmethod
    def criteria_for_filters(
        like_fields: list[str],
        like_values: list[str],
        range_fields: list[str],
        range_values: list[str],
    ) -> Criteria:
        where = join_fragments(
            [
                build_like_clause(like_fields, like_values, FACTORY),
                build_range_clause(range_fields, range_values, FACTORY),
            ],
            separator=" AND ",
        )
        return Criteria(where=where)

    async def count(self, session: AsyncSession, criteria: Criteria) -> int:
        statement = criteria.from_clause("SELECT COUNT(*)")
        result = await session.execute(statement.to_text())
        return int(result.scalar_one())

    async def fetch(
        self,
        session: AsyncSession,
        criteria: Criteria,
        page: int,
        size: int,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> list[DeviceFactoryDataModel]:
        statement = join_fragments([
            criteria.from_clause(f"SELECT {FACTORY}.*"),
            order_fragment(sort_by, order, criteria.alias_for(sort_by or "")),
            page_fragment(page, size),
        ])
        result = await session.execute(
            select(DeviceFactoryDataModel).from_statement(statement.to_text())
        )
        return list(result.scalars().all())

    async def state_counts(self, session: AsyncSession, criteria: Criteria) -> dict[str, int]:
        """Record count per reported state; states with no records count zero."""
        state_column = quote("state", FACTORY)
        statement = join_fragments([
            criteria.from_clause(f"SELECT {state_column}, COUNT(*)"),
            SqlFragment(f"GROUP BY {state_column}"),
        ])
        result = await session.execute(statement.to_text())
        found = {row[0]: int(row[1]) for row in result.all()}
        return {state.value: found.get(state.value, 0) for state in COUNTED_STATES}

    async def count_history(self, session: AsyncSession, imei: str) -> int:
        statement = SqlFragment(
            f'SELECT COUNT(*) FROM "{DeviceFactoryDataHistoryModel.__tablename__}" '
            f'WHERE {quote("imei")} = ?',
            [imei],
        )
        result = await session.execute(statement.to_text())
        return int(result.scalar_one())

    async def fetch_history(
        self,
        session: AsyncSession,
        imei: str,
        page: int,
        size: int,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> list[DeviceFactoryDataHistoryModel]:
        statement = join_fragments([
            SqlFragment(
                f'SELECT * FROM "{DeviceFactoryDataHistoryModel.__tablename__}" '
                f'WHERE {quote("imei")} = ?',
                [imei],
            ),
            order_fragment(sort_by, order),
            page_fragment(page, size),
        ])
        result = await session.execute(
            select(DeviceFactoryDataHistoryModel).from_statement(statement.to_text())
        )
        return list(result.scalars().all())

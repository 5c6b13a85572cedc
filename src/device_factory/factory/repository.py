"""Factory data persistence: records, history snapshots and VIN links."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from device_factory.common.exceptions import InvalidInputError, TechnicalError
from device_factory.common.messages import ApiMessage
from device_factory.factory.models import (
    SNAPSHOT_FIELDS,
    DeviceFactoryDataHistoryModel,
    DeviceFactoryDataModel,
    VinDetailsModel,
)
from device_factory.factory.schemas import DeviceFactoryDataCreate
from device_factory.factory.states import ACTION_UPDATED, DeviceState
from device_factory.querying.sql import SqlFragment, build_predicate, join_fragments

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y/%m/%d"
DATE_COLUMNS = ("manufacturing_date", "record_date")


def parse_factory_date(raw: str | None) -> datetime | None:
    """Parse a ``yyyy/MM/dd`` upload date.

    A malformed date from an already validated upload is a contract
    violation, so it raises TechnicalError rather than a client error.
    """
    if raw is None or not raw.strip():
        return None
    try:
        return datetime.strptime(raw.strip(), DATE_FORMAT)
    except ValueError as exc:
        raise TechnicalError(ApiMessage.INVALID_DATE_FORMAT) from exc


def coerce_column_values(values: dict[str, str]) -> dict[str, Any]:
    """Convert request column values to column types; bad dates are client errors."""
    coerced: dict[str, Any] = {}
    for column, value in values.items():
        if column in DATE_COLUMNS:
            try:
                coerced[column] = datetime.strptime(value.strip(), DATE_FORMAT)
            except ValueError:
                raise InvalidInputError(ApiMessage.INVALID_DATE_FORMAT)
        else:
            coerced[column] = value
    return coerced


class FactoryDataRepository:
    """Owns the factory data table, its history and VIN associations."""

    def _new_record(self, data: DeviceFactoryDataCreate, user_id: str) -> DeviceFactoryDataModel:
        return DeviceFactoryDataModel(
            manufacturing_date=parse_factory_date(data.manufacturing_date),
            model=data.model,
            imei=data.imei,
            serial_number=data.serial_number,
            platform_version=data.platform_version,
            iccid=data.iccid,
            ssid=data.ssid,
            bssid=data.bssid,
            msisdn=data.msisdn,
            imsi=data.imsi,
            record_date=parse_factory_date(data.record_date),
            factory_admin=user_id,
            state=DeviceState.PROVISIONED.value,
            package_serial_number=data.package_serial_number,
            device_type=data.device_type,
            region=data.region,
            is_stolen=False,
            is_faulty=False,
        )

    async def _append_history(
        self, session: AsyncSession, record: DeviceFactoryDataModel, action: str
    ) -> DeviceFactoryDataHistoryModel:
        snapshot = {name: getattr(record, name) for name in SNAPSHOT_FIELDS}
        entry = DeviceFactoryDataHistoryModel(factory_id=record.id, action=action, **snapshot)
        session.add(entry)
        await session.flush()
        return entry

    async def _insert(
        self, session: AsyncSession, data: DeviceFactoryDataCreate, user_id: str
    ) -> DeviceFactoryDataModel:
        record = self._new_record(data, user_id)
        session.add(record)
        await session.flush()
        return record

    async def create(
        self, session: AsyncSession, data: DeviceFactoryDataCreate, user_id: str
    ) -> bool:
        """Insert one PROVISIONED record plus its PROVISIONED history row."""
        record = await self._insert(session, data, user_id)
        if record.id is None:
            return False
        await session.refresh(record)
        await self._append_history(session, record, DeviceState.PROVISIONED.value)
        logger.info("Created factory data id=%s", record.id)
        return True

    async def create_with_vin(
        self, session: AsyncSession, data: DeviceFactoryDataCreate, user_id: str
    ) -> bool:
        """Insert the record and its VIN association in the caller's transaction.

        Without a VIN nothing is written and False is returned.
        """
        if data.vin is None or not data.vin.strip():
            logger.error("VIN missing, factory data not created")
            return False
        record = await self._insert(session, data, user_id)
        if record.id is None:
            return False
        session.add(VinDetailsModel(vin=data.vin.strip(), region=data.region, reference_id=record.id))
        await session.flush()
        await session.refresh(record)
        await self._append_history(session, record, DeviceState.PROVISIONED.value)
        logger.info("Created factory data id=%s with VIN association", record.id)
        return True

    async def find_by_serial_number(
        self, session: AsyncSession, serial_number: str
    ) -> DeviceFactoryDataModel | None:
        result = await session.execute(
            select(DeviceFactoryDataModel).where(
                DeviceFactoryDataModel.serial_number == serial_number
            )
        )
        return result.scalar_one_or_none()

    async def find_by_id(
        self, session: AsyncSession, factory_id: int
    ) -> DeviceFactoryDataModel | None:
        return await session.get(DeviceFactoryDataModel, factory_id)

    async def find_by_imei(
        self, session: AsyncSession, imei: str
    ) -> DeviceFactoryDataModel | None:
        result = await session.execute(
            select(DeviceFactoryDataModel).where(DeviceFactoryDataModel.imei == imei)
        )
        return result.scalars().first()

    async def find_by_id_and_imei(
        self, session: AsyncSession, factory_id: int, imei: str
    ) -> DeviceFactoryDataModel | None:
        result = await session.execute(
            select(DeviceFactoryDataModel).where(
                DeviceFactoryDataModel.id == factory_id,
                DeviceFactoryDataModel.imei == imei,
            )
        )
        return result.scalar_one_or_none()

    async def find_matching(
        self, session: AsyncSession, fields: dict[str, Any]
    ) -> DeviceFactoryDataModel | None:
        """First record whose columns equal every value in ``fields``."""
        predicate = build_predicate("WHERE", "AND", fields)
        if predicate is None:
            return None
        statement = join_fragments([
            SqlFragment(f'SELECT * FROM "{DeviceFactoryDataModel.__tablename__}"'),
            predicate,
            SqlFragment("LIMIT 1"),
        ]).to_text()
        result = await session.execute(
            select(DeviceFactoryDataModel).from_statement(statement)
        )
        return result.scalars().first()

    async def update_fields(
        self,
        session: AsyncSession,
        record: DeviceFactoryDataModel,
        fields: dict[str, Any],
        action: str = ACTION_UPDATED,
    ) -> DeviceFactoryDataModel:
        for column, value in fields.items():
            setattr(record, column, value)
        await session.flush()
        await self._append_history(session, record, action)
        return record

    async def change_state(
        self, session: AsyncSession, record: DeviceFactoryDataModel, state: DeviceState
    ) -> DeviceFactoryDataModel:
        record.state = state.value
        record.is_stolen = state is DeviceState.STOLEN
        record.is_faulty = state is DeviceState.FAULTY
        await session.flush()
        await self._append_history(session, record, ACTION_UPDATED)
        logger.info("Factory data id=%s moved to %s", record.id, state.value)
        return record

    async def delete(self, session: AsyncSession, record: DeviceFactoryDataModel) -> None:
        """Remove a PROVISIONED record, leaving a DEACTIVATED history row behind."""
        if record.state != DeviceState.PROVISIONED.value:
            raise InvalidInputError(
                ApiMessage.STATE_CHANGE_ERROR,
                message=f"Factory data can't be deleted as the device is not in {DeviceState.PROVISIONED.value} state",
            )
        await self._append_history(session, record, DeviceState.DEACTIVATED.value)
        await session.execute(
            delete(VinDetailsModel).where(VinDetailsModel.reference_id == record.id)
        )
        await session.delete(record)
        await session.flush()
        logger.info("Deleted factory data id=%s", record.id)

    async def vin_exists(self, session: AsyncSession, vin: str) -> bool:
        result = await session.execute(
            select(VinDetailsModel.id).where(VinDetailsModel.vin == vin)
        )
        return result.first() is not None

    async def vin_belongs_to(self, session: AsyncSession, factory_id: int, vin: str) -> bool:
        result = await session.execute(
            select(VinDetailsModel.id).where(
                VinDetailsModel.reference_id == factory_id,
                VinDetailsModel.vin == vin,
            )
        )
        return result.first() is not None

    async def update_vin(self, session: AsyncSession, factory_id: int, vin: str) -> None:
        result = await session.execute(
            select(VinDetailsModel).where(VinDetailsModel.reference_id == factory_id)
        )
        link = result.scalars().first()
        if link is None:
            session.add(VinDetailsModel(vin=vin, reference_id=factory_id))
        else:
            link.vin = vin
        await session.flush()

    async def find_vin(
        self, session: AsyncSession, imei: str | None, serial_number: str | None
    ) -> str | None:
        """VIN linked to the record with ``serial_number``, else the one with ``imei``."""
        for column, value in (
            (DeviceFactoryDataModel.serial_number, serial_number),
            (DeviceFactoryDataModel.imei, imei),
        ):
            if not value:
                continue
            result = await session.execute(
                select(VinDetailsModel.vin)
                .join(DeviceFactoryDataModel, VinDetailsModel.reference_id == DeviceFactoryDataModel.id)
                .where(column == value)
            )
            vin = result.scalars().first()
            if vin is not None:
                return vin
        return None

    async def find_vin_by_factory_id(self, session: AsyncSession, factory_id: int) -> str | None:
        result = await session.execute(
            select(VinDetailsModel.vin).where(VinDetailsModel.reference_id == factory_id)
        )
        return result.scalars().first()

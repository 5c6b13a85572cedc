"""Device search, filtered factory data listing and state history."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from device_factory.common.config import DeviceFactorySettings
from device_factory.common.exceptions import NotFoundError
from device_factory.common.logging import sanitize
from device_factory.common.messages import ApiMessage
from device_factory.details.repository import DeviceDetailsRepository
from device_factory.details.schemas import (
    DeviceDetailsPage,
    DeviceStateHistoryPage,
    DeviceStateHistoryResponse,
)
from device_factory.factory.schemas import DeviceFactoryDataResponse
from device_factory.querying.validation import (
    DEVICE_DETAILS_SORT_FIELDS,
    DEVICE_ID_SORT_FIELDS,
    DEVICE_STATE_SORT_FIELDS,
    InputType,
    resolve_input_type,
    validate_contains_like,
    validate_details_required,
    validate_imei,
    validate_order,
    validate_page,
    validate_range,
    validate_size,
    validate_sort_by,
)

logger = logging.getLogger(__name__)


class DeviceDetailsService:
    def __init__(
        self,
        settings: DeviceFactorySettings,
        repository: DeviceDetailsRepository | None = None,
    ):
        self._settings = settings
        self.repository = repository or DeviceDetailsRepository()

    async def search_devices(
        self,
        session: AsyncSession,
        imei: str | None = None,
        serial_number: str | None = None,
        device_id: str | None = None,
        vin: str | None = None,
        state: str | None = None,
        page: str | None = None,
        size: str | None = None,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> DeviceDetailsPage:
        """Search by exactly one of imei / serial number / device id / VIN / state."""
        input_type, value = resolve_input_type(
            imei=imei,
            serial_number=serial_number,
            device_id=device_id,
            vin=vin,
            state=state,
            min_length=self._settings.imei_min_length,
            serial_number_min_length=self._settings.serial_number_min_length,
            device_id_min_length=self._settings.device_id_min_length,
        )
        page_number = validate_page(page, self._settings.default_page)
        page_size = validate_size(
            size, self._settings.max_page_size, self._settings.default_page_size
        )
        if input_type is InputType.DEVICE_ID:
            sort_column = validate_sort_by(
                sort_by, DEVICE_ID_SORT_FIELDS,
                ApiMessage.DEVICE_DETAILS_SORT_BY_FIELD_BY_DEVICE_ID,
            )
        else:
            sort_column = validate_sort_by(sort_by, DEVICE_DETAILS_SORT_FIELDS)
        direction = validate_order(order)

        criteria = self.repository.criteria_for_input(input_type, value)
        total = await self.repository.count(session, criteria)
        if total == 0 and value:
            logger.info("No devices for %s=%s", input_type.value, sanitize(value))
            raise NotFoundError(ApiMessage.DEVICE_DETAILS_NOT_FOUND)

        records = await self.repository.fetch(
            session, criteria, page_number, page_size, sort_column, direction
        )
        return DeviceDetailsPage(
            records=[DeviceFactoryDataResponse.model_validate(r) for r in records],
            total=total,
            page=page_number,
            size=page_size,
            state_counts=await self.repository.state_counts(session, criteria),
        )

    async def list_factory_data(
        self,
        session: AsyncSession,
        contains_like_fields: str | None = None,
        contains_like_values: str | None = None,
        range_fields: str | None = None,
        range_values: str | None = None,
        sort_by: str | None = None,
        sorting_order: str | None = None,
        details_required: str | None = None,
        page: str | None = None,
        size: str | None = None,
    ) -> DeviceDetailsPage:
        """Aggregate state counts over a filtered listing, plus the page when asked for."""
        sort_column = validate_sort_by(
            sort_by, DEVICE_DETAILS_SORT_FIELDS, ApiMessage.INVALID_SORTBY_FIELD
        )
        direction = validate_order(sorting_order, ApiMessage.INVALID_SORTING_ORDER_VALUE)
        with_details = validate_details_required(details_required)
        like_columns, like_values = validate_contains_like(contains_like_fields, contains_like_values)
        range_columns, range_bounds = validate_range(range_fields, range_values)
        page_number = validate_page(page, self._settings.default_page)
        page_size = validate_size(
            size, self._settings.max_page_size, self._settings.default_page_size
        )

        criteria = self.repository.criteria_for_filters(
            like_columns, like_values, range_columns, range_bounds
        )
        total = await self.repository.count(session, criteria)
        if total == 0 and (like_values or range_bounds):
            raise NotFoundError(ApiMessage.DEVICE_DETAILS_NOT_FOUND)

        records = []
        if with_details:
            records = await self.repository.fetch(
                session, criteria, page_number, page_size, sort_column, direction
            )
        return DeviceDetailsPage(
            records=[DeviceFactoryDataResponse.model_validate(r) for r in records],
            total=total,
            page=page_number,
            size=page_size,
            state_counts=await self.repository.state_counts(session, criteria),
        )

    async def state_history(
        self,
        session: AsyncSession,
        imei: str,
        page: str | None = None,
        size: str | None = None,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> DeviceStateHistoryPage:
        imei = validate_imei(imei, self._settings.imei_min_length)
        page_number = validate_page(page, self._settings.default_page)
        page_size = validate_size(
            size, self._settings.max_page_size, self._settings.default_page_size
        )
        sort_column = validate_sort_by(
            sort_by, DEVICE_STATE_SORT_FIELDS, ApiMessage.DEVICE_STATE_SORT_BY_FIELD
        )
        direction = validate_order(order)

        total = await self.repository.count_history(session, imei)
        if total == 0:
            raise NotFoundError(ApiMessage.DEVICE_NOT_FOUND_FOR_IMEI)
        rows = await self.repository.fetch_history(
            session, imei, page_number, page_size, sort_column, direction
        )
        return DeviceStateHistoryPage(
            records=[DeviceStateHistoryResponse.model_validate(r) for r in rows],
            total=total,
            page=page_number,
            size=page_size,
        )

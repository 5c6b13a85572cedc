"""Factory data workflows: create, update, delete and state change with SWM mirroring."""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from device_factory.common.config import (
    CREATION_TYPE_DEFAULT,
    CREATION_TYPE_GUEST_USER,
    CREATION_TYPE_SWM_INTEGRATION,
    DeviceFactorySettings,
)
from device_factory.common.exceptions import (
    DuplicateDeviceError,
    InvalidInputError,
    NotFoundError,
    SwmIntegrationError,
)
from device_factory.common.logging import sanitize
from device_factory.common.messages import ApiMessage
from device_factory.factory.models import DeviceFactoryDataModel
from device_factory.factory.repository import FactoryDataRepository, coerce_column_values
from device_factory.factory.schemas import (
    DeviceData,
    DeviceFactoryDataCreate,
    DeviceFactoryDataUpload,
    DeviceFactoryDataUploadResult,
    DeviceUpdateRequest,
    StateChangeRequest,
)
from device_factory.factory.states import DeviceState, can_transition, parse_state
from device_factory.querying.validation import (
    check_duplicate_serial_number,
    check_duplicate_vin,
    validate_imei,
    validate_mandatory_params_for_device_type,
    validate_region,
    validate_serial_number,
    validate_vin,
)
from device_factory.swm.client import SwmClient
from device_factory.swm.schemas import (
    SwmCreateVehicleRequest,
    SwmUpdateVehicleRequest,
    SwmVehicle,
    SwmVinRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_PLANT = "Plant"
VEHICLE_MODEL_YEAR = "vehicleModelYear"
OPTIONAL_UPDATE_COLUMNS = ("package_serial_number",)


def default_production_week(today: date | None = None) -> str:
    """Current year followed by the zero-padded ISO week, e.g. ``202407``."""
    today = today or date.today()
    return f"{today.year}{today.isocalendar()[1]:02d}"


class FactoryDataService:
    """Write-side device factory operations."""

    def __init__(
        self,
        settings: DeviceFactorySettings,
        repository: FactoryDataRepository | None = None,
        swm_client: SwmClient | None = None,
    ):
        self._settings = settings
        self.repository = repository or FactoryDataRepository()
        self.swm_client = swm_client

    @property
    def creation_type(self) -> str:
        return self._settings.device_creation_type

    @property
    def mirrors_to_swm(self) -> bool:
        return (
            self.creation_type == CREATION_TYPE_SWM_INTEGRATION
            and self._settings.swm_integration_enabled
            and self.swm_client is not None
        )

    # ── Create ──

    async def _validate_upload(
        self, session: AsyncSession, upload: DeviceFactoryDataUpload
    ) -> None:
        mandatory_params = self._settings.mandatory_params
        seen_serials: set[str] = set()
        seen_vins: set[str] = set()
        for data in upload.data:
            validate_mandatory_params_for_device_type(
                data, mandatory_params, self._settings.allowed_device_types
            )
            if data.region is not None:
                validate_region(data.region, self._settings.allowed_regions)
            serial_number = validate_serial_number(
                data.serial_number, self._settings.serial_number_min_length
            )
            if data.imei:
                validate_imei(data.imei, self._settings.imei_min_length)
            if serial_number in seen_serials:
                raise DuplicateDeviceError(ApiMessage.DEVICE_ALREADY_EXIST_BY_SERIAL_NUMBER)
            seen_serials.add(serial_number)
            await check_duplicate_serial_number(session, self.repository, serial_number)

            if data.vin and self.creation_type != CREATION_TYPE_DEFAULT:
                vin = validate_vin(data.vin)
                if vin in seen_vins:
                    raise DuplicateDeviceError(ApiMessage.DEVICE_ALREADY_EXIST_BY_VIN)
                seen_vins.add(vin)
                await check_duplicate_vin(session, self.repository, vin)

    def build_swm_create_request(self, data: DeviceFactoryDataCreate) -> SwmCreateVehicleRequest:
        today = date.today()
        vehicle = SwmVehicle(
            chassis_number=data.chassis_number or data.vin,
            domain_id=self._settings.swm_domain_id,
            friendly_name=data.friendly_name,
            plant=data.plant or DEFAULT_PLANT,
            production_week=data.production_week or default_production_week(today),
            specific_attributes={VEHICLE_MODEL_YEAR: data.vehicle_model_year or str(today.year)},
            vehicle_model_id=data.model,
            vin=data.vin,
        )
        return SwmCreateVehicleRequest(vehicles=[vehicle])

    async def _create_one(
        self, session: AsyncSession, data: DeviceFactoryDataCreate, user_id: str
    ) -> bool:
        if self.creation_type == CREATION_TYPE_DEFAULT:
            return await self.repository.create(session, data, user_id)
        if self.creation_type == CREATION_TYPE_GUEST_USER:
            return await self.repository.create_with_vin(session, data, user_id)

        if not data.vin:
            return await self.repository.create(session, data, user_id)
        if self.mirrors_to_swm:
            # Mirror first so a rejected vehicle never leaves a local row.
            try:
                mirrored = await self.swm_client.create_vehicle(self.build_swm_create_request(data))
            except SwmIntegrationError as exc:
                logger.error(
                    "SWM creation failed for serial number %s: %s %s",
                    sanitize(data.serial_number), exc.code, exc.message,
                )
                return False
            if not mirrored:
                return False
        return await self.repository.create_with_vin(session, data, user_id)

    async def create_devices(
        self, session: AsyncSession, upload: DeviceFactoryDataUpload, user_id: str | None
    ) -> DeviceFactoryDataUploadResult:
        """Validate every device in the upload, then create them one by one.

        Validation errors reject the whole upload.  A device whose SWM
        mirror fails is skipped and reported in ``failed``.
        """
        if user_id is None or not user_id.strip():
            raise InvalidInputError(ApiMessage.MISSING_USERID)
        await self._validate_upload(session, upload)

        result = DeviceFactoryDataUploadResult()
        for data in upload.data:
            if await self._create_one(session, data, user_id.strip()):
                result.created.append(data.serial_number)
            else:
                result.failed.append(data.serial_number)
        logger.info(
            "Factory data upload: %d created, %d failed",
            len(result.created), len(result.failed),
        )
        return result

    # ── Update ──

    @staticmethod
    def _required_columns(data: DeviceData) -> dict[str, str]:
        values = data.column_values()
        required = {k: v for k, v in values.items() if k not in OPTIONAL_UPDATE_COLUMNS}
        if not required or any(not v.strip() for v in required.values()):
            raise InvalidInputError(ApiMessage.MISSING_INPUT)
        return values

    async def update_device(
        self, session: AsyncSession, request: DeviceUpdateRequest
    ) -> DeviceFactoryDataModel:
        current_values = self._required_columns(request.current_value)
        replace_values = self._required_columns(request.replace_with)

        record = await self.repository.find_matching(
            session, coerce_column_values(current_values)
        )
        if record is None:
            raise NotFoundError(ApiMessage.FACTORY_DATA_DOES_NOT_EXIST)
        if record.state != DeviceState.PROVISIONED.value:
            raise InvalidInputError(
                ApiMessage.STATE_CHANGE_ERROR,
                message="Device is not in valid state to perform the action",
            )

        await self.repository.update_fields(
            session, record, coerce_column_values(replace_values)
        )
        if self.creation_type == CREATION_TYPE_SWM_INTEGRATION:
            await self._update_vin(session, record, request.current_value, request.replace_with)
            if self.mirrors_to_swm:
                await self._mirror_update(session, request.current_value, request.replace_with)
        logger.info("Updated factory data id=%s", record.id)
        return record

    async def _update_vin(
        self,
        session: AsyncSession,
        record: DeviceFactoryDataModel,
        current: DeviceData,
        replace_with: DeviceData,
    ) -> None:
        if not current.vin or not replace_with.vin:
            raise InvalidInputError(ApiMessage.MISSING_INPUT)
        if not await self.repository.vin_belongs_to(session, record.id, current.vin):
            raise NotFoundError(ApiMessage.DEVICE_DETAILS_NOT_FOUND)
        if replace_with.vin == current.vin:
            return
        validate_vin(replace_with.vin)
        if await self.repository.vin_exists(session, replace_with.vin):
            raise DuplicateDeviceError(ApiMessage.DEVICE_ALREADY_EXIST_BY_VIN)
        await self.repository.update_vin(session, record.id, replace_with.vin)

    async def _mirror_update(
        self, session: AsyncSession, current: DeviceData, replace_with: DeviceData
    ) -> None:
        if not all((
            current.chassis_number, current.production_week,
            replace_with.chassis_number, replace_with.production_week,
        )):
            raise InvalidInputError(
                ApiMessage.MISSING_INPUT,
                message="Chassis number and production week is mandatory",
            )
        vin = await self.repository.find_vin(
            session, replace_with.imei, replace_with.serial_number
        )
        if vin is None:
            raise SwmIntegrationError(
                ApiMessage.SWM_VEHICLE_UPDATE_FAILED,
                message="Cannot update device, VIN does not exist",
            )
        request = SwmUpdateVehicleRequest(
            chassis_number=replace_with.chassis_number,
            production_week=replace_with.production_week,
            plant=replace_with.plant,
            vin=replace_with.vin,
            domain_id=self._settings.swm_domain_id,
            specific_attributes={VEHICLE_MODEL_YEAR: replace_with.vehicle_model_year},
        )
        if not await self.swm_client.update_vehicle(request):
            raise SwmIntegrationError(ApiMessage.SWM_VEHICLE_UPDATE_FAILED)

    # ── Delete ──

    async def delete_device(
        self, session: AsyncSession, imei: str | None, serial_number: str | None
    ) -> None:
        logger.info(
            "Delete factory data imei=%s serial_number=%s",
            sanitize(imei), sanitize(serial_number),
        )
        if not imei and not serial_number:
            raise InvalidInputError(ApiMessage.DELETE_DEVICE_MISSING_INPUT)
        fields = {}
        if imei:
            fields["imei"] = validate_imei(imei, self._settings.imei_min_length)
        if serial_number:
            fields["serial_number"] = validate_serial_number(
                serial_number, self._settings.serial_number_min_length
            )

        record = await self.repository.find_matching(session, fields)
        if record is None:
            raise NotFoundError(ApiMessage.INVALID_CURRENT_FACTORY_DATA)

        vin = None
        if self.mirrors_to_swm:
            vin = await self.repository.find_vin_by_factory_id(session, record.id)
            if vin is None:
                raise SwmIntegrationError(
                    ApiMessage.SWM_VEHICLE_DELETE_FAILED,
                    message="Cannot delete device, VIN does not exist",
                )

        await self.repository.delete(session, record)

        if vin is not None:
            if not await self.swm_client.delete_vehicle(SwmVinRequest(vin=vin)):
                raise SwmIntegrationError(ApiMessage.SWM_VEHICLE_DELETE_FAILED)

    # ── State change ──

    async def _find_for_state_change(
        self, session: AsyncSession, request: StateChangeRequest
    ) -> DeviceFactoryDataModel:
        if request.factory_id is not None and request.imei:
            record = await self.repository.find_by_id_and_imei(
                session, request.factory_id, request.imei
            )
        elif request.factory_id is not None:
            record = await self.repository.find_by_id(session, request.factory_id)
        else:
            record = await self.repository.find_by_imei(session, request.imei)
        if record is None:
            raise NotFoundError(ApiMessage.FACTORY_DATA_NOT_FOUND)
        return record

    @staticmethod
    def existing_state(record: DeviceFactoryDataModel) -> DeviceState | None:
        if record.is_faulty:
            return DeviceState.FAULTY
        if record.is_stolen:
            return DeviceState.STOLEN
        return parse_state(record.state)

    async def change_state(
        self, session: AsyncSession, request: StateChangeRequest
    ) -> DeviceFactoryDataModel:
        if request.factory_id is None and not request.imei:
            raise InvalidInputError(ApiMessage.DEVICE_STATE_INVALID_INPUT)
        if request.state is None:
            raise InvalidInputError(ApiMessage.DEVICE_STATE_MANDATORY)

        record = await self._find_for_state_change(session, request)
        existing = self.existing_state(record)
        if existing is None or not can_transition(existing, request.state):
            logger.error(
                "State change not allowed from %s to %s for factory id %s",
                record.state, request.state.value, record.id,
            )
            raise InvalidInputError(
                ApiMessage.STATE_CHANGE_ERROR,
                message=(
                    f"Device state transition for factory id {record.id} from "
                    f"{existing.value if existing else record.state} to "
                    f"{request.state.value} is not allowed"
                ),
            )
        return await self.repository.change_state(session, record, request.state)

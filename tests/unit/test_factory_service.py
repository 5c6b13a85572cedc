"""Tests for factory data workflows: create modes, update, delete and state change."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from device_factory.common.config import DeviceFactorySettings
from device_factory.common.database import DatabaseManager
from device_factory.common.exceptions import (
    DuplicateDeviceError,
    InvalidInputError,
    NotFoundError,
    SwmIntegrationError,
    TechnicalError,
)
from device_factory.common.messages import ApiMessage
from device_factory.factory.models import DeviceFactoryDataHistoryModel
from device_factory.factory.schemas import (
    DeviceData,
    DeviceFactoryDataCreate,
    DeviceFactoryDataUpload,
    DeviceUpdateRequest,
    StateChangeRequest,
)
from device_factory.factory.service import FactoryDataService, default_production_week
from device_factory.factory.states import DeviceState

VIN = "1HGCM82633A004352"
VIN_2 = "2HGCM82633A004352"


def make_settings(**overrides) -> DeviceFactorySettings:
    defaults = {"db_url": "sqlite+aiosqlite://", "device_creation_type": "default"}
    defaults.update(overrides)
    return DeviceFactorySettings(**defaults)


def make_swm_client() -> MagicMock:
    swm = MagicMock()
    swm.create_vehicle = AsyncMock(return_value=True)
    swm.update_vehicle = AsyncMock(return_value=True)
    swm.delete_vehicle = AsyncMock(return_value=True)
    return swm


def make_device(**overrides) -> DeviceFactoryDataCreate:
    defaults = {
        "serial_number": "SN001",
        "imei": "356938035643809",
        "model": "DC-1",
        "manufacturing_date": "2024/01/05",
        "record_date": "2024/01/06",
        "device_type": "dashcam",
    }
    defaults.update(overrides)
    return DeviceFactoryDataCreate(**defaults)


def upload(*devices) -> DeviceFactoryDataUpload:
    return DeviceFactoryDataUpload(data=list(devices) or [make_device()])


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def svc():
    return FactoryDataService(make_settings())


@pytest.fixture
def swm():
    return make_swm_client()


@pytest.fixture
def swm_svc(swm):
    settings = make_settings(device_creation_type="swmIntegration", swm_integration_enabled=True)
    return FactoryDataService(settings, swm_client=swm)


@pytest.fixture
def guest_svc():
    return FactoryDataService(make_settings(device_creation_type="guestUser"))


class TestProductionWeek:
    def test_zero_padded_iso_week(self):
        assert default_production_week(date(2024, 2, 14)) == "202407"
        assert default_production_week(date(2024, 12, 20)) == "202451"


class TestCreateDefaultMode:
    async def test_dashcam_upload(self, db, svc):
        async with db.get_session() as session:
            result = await svc.create_devices(session, upload(), "admin")
        assert result.created == ["SN001"]
        assert result.failed == []
        async with db.get_session() as session:
            record = await svc.repository.find_by_serial_number(session, "SN001")
            assert record.state == "PROVISIONED"
            assert record.factory_admin == "admin"
            history = (await session.execute(select(DeviceFactoryDataHistoryModel))).scalars().all()
            assert [h.action for h in history] == ["PROVISIONED"]

    async def test_missing_user_id(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.create_devices(session, upload(), " ")
        assert exc_info.value.code == ApiMessage.MISSING_USERID.code

    async def test_missing_mandatory_field(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.create_devices(session, upload(make_device(model=None)), "admin")
        assert exc_info.value.code == ApiMessage.MISSING_MANDATORY_REQUEST_PARAMS.code

    async def test_invalid_region(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.create_devices(session, upload(make_device(region="MARS")), "admin")
        assert exc_info.value.code == ApiMessage.INVALID_REGION.code

    async def test_duplicate_serial_in_database(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
        async with db.get_session() as session:
            with pytest.raises(DuplicateDeviceError):
                await svc.create_devices(session, upload(), "admin")

    async def test_duplicate_serial_in_upload_rejects_all(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(DuplicateDeviceError):
                await svc.create_devices(session, upload(make_device(), make_device()), "admin")
        async with db.get_session() as session:
            assert await svc.repository.find_by_serial_number(session, "SN001") is None

    async def test_bad_date_is_technical_error(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(TechnicalError) as exc_info:
                await svc.create_devices(
                    session, upload(make_device(manufacturing_date="2024-01-05")), "admin"
                )
        assert exc_info.value.code == ApiMessage.INVALID_DATE_FORMAT.code

    async def test_default_mode_ignores_vin(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(make_device(vin="short")), "admin")
            assert not await svc.repository.vin_exists(session, "short")


class TestCreateGuestMode:
    async def test_vin_linked(self, db, guest_svc):
        async with db.get_session() as session:
            result = await guest_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        assert result.created == ["SN001"]
        async with db.get_session() as session:
            assert await guest_svc.repository.vin_exists(session, VIN)

    async def test_missing_vin_reported_as_failed(self, db, guest_svc):
        async with db.get_session() as session:
            result = await guest_svc.create_devices(session, upload(), "admin")
        assert result.failed == ["SN001"]

    async def test_duplicate_vin(self, db, guest_svc):
        async with db.get_session() as session:
            await guest_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        async with db.get_session() as session:
            with pytest.raises(DuplicateDeviceError) as exc_info:
                await guest_svc.create_devices(
                    session, upload(make_device(serial_number="SN002", vin=VIN)), "admin"
                )
        assert exc_info.value.code == ApiMessage.DEVICE_ALREADY_EXIST_BY_VIN.code


class TestCreateSwmMode:
    async def test_mirrors_then_creates(self, db, swm_svc, swm):
        device = make_device(vin=VIN, chassis_number="CH1", friendly_name="Fleet car 7")
        async with db.get_session() as session:
            result = await swm_svc.create_devices(session, upload(device), "admin")
        assert result.created == ["SN001"]
        request = swm.create_vehicle.await_args.args[0]
        vehicle = request.vehicles[0]
        assert vehicle.vin == VIN
        assert vehicle.chassis_number == "CH1"
        assert vehicle.friendly_name == "Fleet car 7"
        assert vehicle.plant == "Plant"
        assert vehicle.vehicle_model_id == "DC-1"
        assert vehicle.specific_attributes["vehicleModelYear"] == str(date.today().year)
        async with db.get_session() as session:
            assert await swm_svc.repository.vin_exists(session, VIN)

    async def test_swm_error_skips_device(self, db, swm_svc, swm):
        swm.create_vehicle.side_effect = SwmIntegrationError(
            ApiMessage.SWM_VEHICLE_CREATION_INTERNAL_ERROR
        )
        async with db.get_session() as session:
            result = await swm_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        assert result.created == []
        assert result.failed == ["SN001"]
        async with db.get_session() as session:
            assert await swm_svc.repository.find_by_serial_number(session, "SN001") is None

    async def test_swm_rejection_skips_device(self, db, swm_svc, swm):
        swm.create_vehicle.return_value = False
        second = make_device(serial_number="SN002", imei="111222333", vin=VIN_2)
        swm.create_vehicle.side_effect = [False, True]
        async with db.get_session() as session:
            result = await swm_svc.create_devices(
                session, upload(make_device(vin=VIN), second), "admin"
            )
        assert result.failed == ["SN001"]
        assert result.created == ["SN002"]

    async def test_no_vin_creates_locally(self, db, swm_svc, swm):
        async with db.get_session() as session:
            result = await swm_svc.create_devices(session, upload(), "admin")
        assert result.created == ["SN001"]
        swm.create_vehicle.assert_not_awaited()

    async def test_invalid_vin_rejected(self, db, swm_svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await swm_svc.create_devices(session, upload(make_device(vin="SHORT")), "admin")
        assert exc_info.value.code == ApiMessage.INVALID_VIN_LENGTH.code

    async def test_mirroring_disabled(self, db, swm):
        svc = FactoryDataService(
            make_settings(device_creation_type="swmIntegration", swm_integration_enabled=False),
            swm_client=swm,
        )
        assert svc.mirrors_to_swm is False
        async with db.get_session() as session:
            result = await svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        assert result.created == ["SN001"]
        swm.create_vehicle.assert_not_awaited()


def _update(current: dict, replace: dict) -> DeviceUpdateRequest:
    return DeviceUpdateRequest(
        current_value=DeviceData(**current), replace_with=DeviceData(**replace)
    )


class TestUpdate:
    async def test_update_fields(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
        async with db.get_session() as session:
            record = await svc.update_device(session, _update(
                {"serial_number": "SN001", "imei": "356938035643809"},
                {"serial_number": "SN001", "imei": "356938035643809", "model": "DC-2"},
            ))
            assert record.model == "DC-2"

    async def test_match_on_date(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
        async with db.get_session() as session:
            record = await svc.update_device(session, _update(
                {"serial_number": "SN001", "manufacturing_date": "2024/01/05"},
                {"record_date": "2024/03/01"},
            ))
            assert record.record_date.month == 3

    async def test_missing_input(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.update_device(session, _update({}, {"model": "X"}))
        assert exc_info.value.code == ApiMessage.MISSING_INPUT.code

    async def test_blank_value_is_missing_input(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError):
                await svc.update_device(session, _update({"serial_number": " "}, {"model": "X"}))

    async def test_no_match(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError) as exc_info:
                await svc.update_device(session, _update({"serial_number": "NOPE1"}, {"model": "X"}))
        assert exc_info.value.code == ApiMessage.FACTORY_DATA_DOES_NOT_EXIST.code

    async def test_only_provisioned(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
            await svc.change_state(session, StateChangeRequest(imei="356938035643809", state="STOLEN"))
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.update_device(session, _update({"serial_number": "SN001"}, {"model": "X"}))
        assert exc_info.value.code == ApiMessage.STATE_CHANGE_ERROR.code

    async def test_swm_update_replaces_vin_and_mirrors(self, db, swm_svc, swm):
        async with db.get_session() as session:
            await swm_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        async with db.get_session() as session:
            await swm_svc.update_device(session, _update(
                {"serial_number": "SN001", "vin": VIN, "chassis_number": "CH1", "production_week": "202401"},
                {"model": "DC-2", "vin": VIN_2, "chassis_number": "CH2", "production_week": "202402",
                 "serial_number": "SN001"},
            ))
        async with db.get_session() as session:
            assert await swm_svc.repository.vin_exists(session, VIN_2)
            assert not await swm_svc.repository.vin_exists(session, VIN)
        request = swm.update_vehicle.await_args.args[0]
        assert request.vin == VIN_2
        assert request.chassis_number == "CH2"

    async def test_swm_update_requires_chassis_and_week(self, db, swm_svc):
        async with db.get_session() as session:
            await swm_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await swm_svc.update_device(session, _update(
                    {"serial_number": "SN001", "vin": VIN},
                    {"model": "DC-2", "vin": VIN},
                ))
        assert exc_info.value.code == ApiMessage.MISSING_INPUT.code

    async def test_swm_update_failure_rolls_back(self, db, swm_svc, swm):
        swm.update_vehicle.return_value = False
        async with db.get_session() as session:
            await swm_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        with pytest.raises(SwmIntegrationError) as exc_info:
            async with db.get_session() as session:
                await swm_svc.update_device(session, _update(
                    {"serial_number": "SN001", "vin": VIN, "chassis_number": "C", "production_week": "202401"},
                    {"model": "DC-2", "vin": VIN, "chassis_number": "C", "production_week": "202401"},
                ))
        assert exc_info.value.code == ApiMessage.SWM_VEHICLE_UPDATE_FAILED.code
        async with db.get_session() as session:
            record = await swm_svc.repository.find_by_serial_number(session, "SN001")
            assert record.model == "DC-1"


class TestDelete:
    async def test_delete(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
        async with db.get_session() as session:
            await svc.delete_device(session, None, "SN001")
        async with db.get_session() as session:
            assert await svc.repository.find_by_serial_number(session, "SN001") is None

    async def test_missing_input(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.delete_device(session, None, None)
        assert exc_info.value.code == ApiMessage.DELETE_DEVICE_MISSING_INPUT.code

    async def test_not_found(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError):
                await svc.delete_device(session, "123456", None)

    async def test_swm_delete(self, db, swm_svc, swm):
        async with db.get_session() as session:
            await swm_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        async with db.get_session() as session:
            await swm_svc.delete_device(session, "356938035643809", "SN001")
        assert swm.delete_vehicle.await_args.args[0].vin == VIN

    async def test_swm_delete_uses_vin_of_matched_record(self, db, swm_svc, swm):
        async with db.get_session() as session:
            await swm_svc.create_devices(session, upload(make_device()), "admin")
            await swm_svc.create_devices(
                session, upload(make_device(serial_number="SN002", vin=VIN_2)), "admin"
            )
        with pytest.raises(SwmIntegrationError):
            async with db.get_session() as session:
                await swm_svc.delete_device(session, "356938035643809", "SN001")
        swm.delete_vehicle.assert_not_awaited()
        async with db.get_session() as session:
            assert await swm_svc.repository.find_by_serial_number(session, "SN001") is not None

    async def test_swm_delete_failure_keeps_record(self, db, swm_svc, swm):
        swm.delete_vehicle.return_value = False
        async with db.get_session() as session:
            await swm_svc.create_devices(session, upload(make_device(vin=VIN)), "admin")
        with pytest.raises(SwmIntegrationError):
            async with db.get_session() as session:
                await swm_svc.delete_device(session, None, "SN001")
        async with db.get_session() as session:
            assert await swm_svc.repository.find_by_serial_number(session, "SN001") is not None


class TestStateChange:
    async def test_provisioned_to_stolen(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
        async with db.get_session() as session:
            record = await svc.change_state(
                session, StateChangeRequest(imei="356938035643809", state="STOLEN")
            )
            assert record.state == "STOLEN"
            assert record.is_stolen is True

    async def test_by_factory_id(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
            record = await svc.repository.find_by_serial_number(session, "SN001")
        async with db.get_session() as session:
            changed = await svc.change_state(
                session, StateChangeRequest(factory_id=record.id, state=DeviceState.FAULTY)
            )
            assert changed.is_faulty is True

    async def test_transition_not_allowed(self, db, svc):
        async with db.get_session() as session:
            await svc.create_devices(session, upload(), "admin")
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.change_state(
                    session, StateChangeRequest(imei="356938035643809", state="ACTIVE")
                )
        assert exc_info.value.code == ApiMessage.STATE_CHANGE_ERROR.code

    async def test_missing_identifiers(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.change_state(session, StateChangeRequest(state="STOLEN"))
        assert exc_info.value.code == ApiMessage.DEVICE_STATE_INVALID_INPUT.code

    async def test_missing_state(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(InvalidInputError) as exc_info:
                await svc.change_state(session, StateChangeRequest(imei="356938035643809"))
        assert exc_info.value.code == ApiMessage.DEVICE_STATE_MANDATORY.code

    async def test_unknown_device(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError) as exc_info:
                await svc.change_state(session, StateChangeRequest(imei="999999", state="STOLEN"))
        assert exc_info.value.code == ApiMessage.FACTORY_DATA_NOT_FOUND.code

    def test_existing_state_prefers_flags(self):
        record = MagicMock(is_faulty=True, is_stolen=True, state="ACTIVE")
        assert FactoryDataService.existing_state(record) is DeviceState.FAULTY
        record = MagicMock(is_faulty=False, is_stolen=True, state="ACTIVE")
        assert FactoryDataService.existing_state(record) is DeviceState.STOLEN
        record = MagicMock(is_faulty=False, is_stolen=False, state="ACTIVE")
        assert FactoryDataService.existing_state(record) is DeviceState.ACTIVE

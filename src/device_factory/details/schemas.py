"""Response schemas for device searches and state history."""

from datetime import datetime

from pydantic import BaseModel

from device_factory.factory.schemas import DeviceFactoryDataResponse


class DeviceDetailsPage(BaseModel):
    records: list[DeviceFactoryDataResponse] = []
    total: int = 0
    page: int = 1
    size: int = 20
    state_counts: dict[str, int] = {}


class DeviceStateHistoryResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    factory_id: int
    imei: str | None = None
    serial_number: str | None = None
    model: str | None = None
    state: str | None = None
    action: str
    created_timestamp: datetime
    manufacturing_date: datetime | None = None
    record_date: datetime | None = None
    factory_admin: str | None = None
    package_serial_number: str | None = None
    device_type: str | None = None


class DeviceStateHistoryPage(BaseModel):
    records: list[DeviceStateHistoryResponse] = []
    total: int = 0
    page: int = 1
    size: int = 20

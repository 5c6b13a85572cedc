"""Pydantic schemas for factory data create / update / state change."""

from datetime import datetime

from pydantic import BaseModel, Field

from device_factory.factory.states import DeviceState


class DeviceFactoryDataCreate(BaseModel):
    """One device in a factory data upload. Dates use the ``yyyy/MM/dd`` format."""

    manufacturing_date: str | None = None
    model: str | None = None
    imei: str | None = None
    serial_number: str | None = None
    platform_version: str | None = None
    iccid: str | None = None
    ssid: str | None = None
    bssid: str | None = None
    msisdn: str | None = None
    imsi: str | None = None
    record_date: str | None = None
    package_serial_number: str | None = None
    device_type: str | None = None
    region: str | None = None
    vin: str | None = None
    chassis_number: str | None = None
    plant: str | None = None
    production_week: str | None = None
    vehicle_model_year: str | None = None
    friendly_name: str | None = None

    def mandatory_projection(self) -> dict[str, str | None]:
        """Field name -> value view used for device-type mandatory checks."""
        return {
            "manufacturing_date": self.manufacturing_date,
            "model": self.model,
            "imei": self.imei,
            "serial_number": self.serial_number,
            "platform_version": self.platform_version,
            "iccid": self.iccid,
            "ssid": self.ssid,
            "bssid": self.bssid,
            "msisdn": self.msisdn,
            "imsi": self.imsi,
            "record_date": self.record_date,
            "package_serial_number": self.package_serial_number,
            "device_type": self.device_type,
            "region": self.region,
            "vin": self.vin,
        }


class DeviceFactoryDataUpload(BaseModel):
    data: list[DeviceFactoryDataCreate] = Field(min_length=1)


class DeviceFactoryDataUploadResult(BaseModel):
    created: list[str] = []
    failed: list[str] = []


class DeviceData(BaseModel):
    """Identifying and replaceable fields of an existing device."""

    manufacturing_date: str | None = None
    model: str | None = None
    serial_number: str | None = None
    record_date: str | None = None
    factory_admin: str | None = None
    package_serial_number: str | None = None
    imei: str | None = None
    iccid: str | None = None
    ssid: str | None = None
    bssid: str | None = None
    msisdn: str | None = None
    imsi: str | None = None
    platform_version: str | None = None
    vin: str | None = None
    chassis_number: str | None = None
    plant: str | None = None
    production_week: str | None = None
    vehicle_model_year: str | None = None

    def column_values(self) -> dict[str, str]:
        """Ordered column -> raw value for the columns supplied in the request."""
        candidates = {
            "manufacturing_date": self.manufacturing_date,
            "model": self.model,
            "serial_number": self.serial_number,
            "record_date": self.record_date,
            "factory_admin": self.factory_admin,
            "package_serial_number": self.package_serial_number,
            "imei": self.imei,
            "iccid": self.iccid,
            "ssid": self.ssid,
            "bssid": self.bssid,
            "msisdn": self.msisdn,
            "imsi": self.imsi,
            "platform_version": self.platform_version,
        }
        return {k: v for k, v in candidates.items() if v is not None}


class DeviceUpdateRequest(BaseModel):
    current_value: DeviceData
    replace_with: DeviceData


class StateChangeRequest(BaseModel):
    factory_id: int | None = None
    imei: str | None = None
    state: DeviceState | None = None


class DeviceFactoryDataResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    manufacturing_date: datetime | None = None
    model: str | None = None
    imei: str | None = None
    serial_number: str
    platform_version: str | None = None
    iccid: str | None = None
    ssid: str | None = None
    bssid: str | None = None
    msisdn: str | None = None
    imsi: str | None = None
    record_date: datetime | None = None
    factory_admin: str | None = None
    created_date: datetime | None = None
    state: str
    package_serial_number: str | None = None
    device_type: str | None = None
    region: str | None = None
    is_stolen: bool = False
    is_faulty: bool = False

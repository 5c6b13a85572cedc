"""Request payloads exchanged with the SWM vehicle management API."""

from pydantic import BaseModel, ConfigDict, Field


class _SwmModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SwmVehicle(_SwmModel):
    chassis_number: str | None = Field(default=None, alias="chassisNumber")
    domain_id: str | None = Field(default=None, alias="domainId")
    plant: str | None = None
    production_week: str | None = Field(default=None, alias="productionWeek")
    specific_attributes: dict[str, str | None] = Field(
        default_factory=dict, alias="specificAttributes"
    )
    vehicle_model_id: str | None = Field(default=None, alias="vehicleModelId")
    friendly_name: str | None = Field(default=None, alias="friendlyName")
    vin: str


class SwmCreateVehicleRequest(_SwmModel):
    vehicles: list[SwmVehicle] = Field(default_factory=list, alias="vehiclePost")


class SwmUpdateVehicleRequest(_SwmModel):
    id: str | None = None
    chassis_number: str | None = Field(default=None, alias="chassisNumber")
    display_name: str | None = Field(default=None, alias="displayName")
    domain_id: str | None = Field(default=None, alias="domainId")
    msisdn: str | None = None
    plant: str | None = None
    production_week: str | None = Field(default=None, alias="productionWeek")
    specific_attributes: dict[str, str | None] = Field(
        default_factory=dict, alias="specificAttributes"
    )
    supplementary_id: str | None = Field(default=None, alias="supplementaryId")
    vehicle_status: str | None = Field(default=None, alias="vehicleStatus")
    vin: str


class SwmVinRequest(_SwmModel):
    vin: str

"""Request validation: identifiers, pagination, allow-lists and mandatory fields."""

import logging
from enum import Enum
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from device_factory.common.exceptions import (
    DuplicateDeviceError,
    InvalidInputError,
    TechnicalError,
)
from device_factory.common.logging import sanitize
from device_factory.common.messages import ApiMessage
from device_factory.factory.states import parse_state
from device_factory.querying.sql import split_list

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_SIZE = 20
MAX_SIZE = 5000
VIN_LENGTH = 17

ORDER_ASC = "asc"
ORDER_DESC = "desc"

# Request sort key -> column, for factory record searches.
DEVICE_DETAILS_SORT_FIELDS = {
    "imei": "imei",
    "serialNumber": "serial_number",
    "model": "model",
    "iccid": "iccid",
    "ssid": "ssid",
    "bssid": "bssid",
    "msisdn": "msisdn",
    "imsi": "imsi",
    "factoryAdmin": "factory_admin",
    "state": "state",
    "packageSerialNumber": "package_serial_number",
    "manufacturingDate": "manufacturing_date",
    "recordDate": "record_date",
    "createdDate": "created_date",
}

DEVICE_ID_SORT_FIELDS = {**DEVICE_DETAILS_SORT_FIELDS, "deviceId": "device_id"}

# Request sort key -> column, for state history rows.
DEVICE_STATE_SORT_FIELDS = {
    "state": "state",
    "stateTimestamp": "created_timestamp",
    "manufacturingDate": "manufacturing_date",
    "imei": "imei",
    "serialNumber": "serial_number",
    "iccid": "iccid",
    "ssid": "ssid",
    "bssid": "bssid",
    "msisdn": "msisdn",
    "imsi": "imsi",
    "factoryAdmin": "factory_admin",
    "packageSerialNumber": "package_serial_number",
    "recordDate": "record_date",
}

CONTAINS_LIKE_FIELDS = {
    "model": "model",
    "imei": "imei",
    "serial_number": "serial_number",
    "iccid": "iccid",
    "ssid": "ssid",
    "bssid": "bssid",
    "msisdn": "msisdn",
    "imsi": "imsi",
    "factory_admin": "factory_admin",
    "state": "state",
    "isstolen": "is_stolen",
    "isfaulty": "is_faulty",
    "package_serial_number": "package_serial_number",
}

RANGE_FIELDS = {
    "manufacturing_date": "manufacturing_date",
    "record_date": "record_date",
    "created_date": "created_date",
}


class InputType(str, Enum):
    """The one identifier a device search is keyed on."""

    IMEI = "imei"
    SERIAL_NUMBER = "serialnumber"
    DEVICE_ID = "deviceid"
    VIN = "vin"
    STATE = "state"


class MandatoryProjection(Protocol):
    device_type: str | None

    def mandatory_projection(self) -> dict[str, str | None]: ...


class SerialNumberLookup(Protocol):
    async def find_by_serial_number(self, session: AsyncSession, serial_number: str): ...


class VinLookup(Protocol):
    async def vin_exists(self, session: AsyncSession, vin: str) -> bool: ...


def _is_blank(raw: str | None) -> bool:
    return raw is None or not str(raw).strip()


def validate_page(raw: str | None, default: int = DEFAULT_PAGE) -> int:
    if _is_blank(raw):
        return default
    value = raw.strip()
    if not value.isdecimal():
        raise InvalidInputError(ApiMessage.WRONG_PAGE_VALUE_TYPE)
    page = int(value)
    if page == 0:
        raise InvalidInputError(ApiMessage.ZERO_PAGE_VALUE)
    return page


def validate_size(
    raw: str | None, max_size: int = MAX_SIZE, default: int = DEFAULT_SIZE
) -> int:
    if _is_blank(raw):
        return default
    value = raw.strip()
    if not value.isdecimal():
        raise InvalidInputError(ApiMessage.WRONG_PAGE_SIZE)
    size = int(value)
    if size < 1 or size > max_size:
        raise InvalidInputError(ApiMessage.WRONG_PAGE_SIZE)
    return size


def validate_imei(raw: str | None, min_length: int = 3) -> str:
    if _is_blank(raw):
        raise InvalidInputError(ApiMessage.INVALID_IMEI)
    value = raw.strip()
    if not value.isdecimal():
        raise InvalidInputError(ApiMessage.INVALID_IMEI_FORMAT)
    if len(value) < min_length:
        raise InvalidInputError(ApiMessage.INVALID_IMEI_LENGTH)
    return value


def validate_serial_number(raw: str | None, min_length: int = 3) -> str:
    if _is_blank(raw):
        raise InvalidInputError(ApiMessage.INVALID_SERIAL_NUMBER)
    value = raw.strip()
    if not value.isalnum():
        raise InvalidInputError(ApiMessage.INVALID_SERIAL_NUMBER_FORMAT)
    if len(value) < min_length:
        raise InvalidInputError(ApiMessage.INVALID_SERIAL_NUMBER_LENGTH)
    return value


def validate_device_id(raw: str | None, min_length: int = 3) -> str:
    if _is_blank(raw) or len(raw.strip()) < min_length:
        raise InvalidInputError(ApiMessage.INVALID_DEVICE_ID_LENGTH)
    value = raw.strip()
    if not value.isalnum():
        raise InvalidInputError(ApiMessage.INVALID_DEVICE_ID_FORMAT)
    return value


def validate_vin(raw: str | None) -> str:
    if _is_blank(raw) or len(raw.strip()) != VIN_LENGTH:
        raise InvalidInputError(ApiMessage.INVALID_VIN_LENGTH)
    return raw.strip()


def validate_allowed_type(value: str | None, allow_list: list[str]) -> bool:
    """Case-insensitive membership; blank values are never allowed."""
    if _is_blank(value):
        return False
    candidate = value.strip().lower()
    return any(candidate == allowed.lower() for allowed in allow_list)


def validate_device_type(device_type: str | None, allowed_types: list[str]) -> str:
    if not validate_allowed_type(device_type, allowed_types):
        logger.error("Invalid device type: %s", sanitize(device_type))
        raise InvalidInputError(ApiMessage.INVALID_DEVICE_TYPE)
    return device_type.strip()


def validate_region(region: str | None, allowed_regions: list[str]) -> str:
    if not validate_allowed_type(region, allowed_regions):
        logger.error("Invalid region: %s", sanitize(region))
        raise InvalidInputError(ApiMessage.INVALID_REGION)
    return region.strip()


def validate_mandatory_params_for_device_type(
    dto: MandatoryProjection,
    mandatory_params: dict[str, list[str]],
    allowed_types: list[str],
) -> None:
    """Check the fields configured as mandatory for the DTO's device type are filled in.

    A type missing from the table, or a table entry that shares no field
    with the request, is a server misconfiguration and raises
    TechnicalError.  Any blank configured field raises InvalidInputError
    without naming the field.
    """
    device_type = validate_device_type(dto.device_type, allowed_types)
    projection = dto.mandatory_projection()

    configured = mandatory_params.get(device_type.lower())
    if not configured:
        logger.error("No mandatory params configured for device type %s", sanitize(device_type))
        raise TechnicalError(ApiMessage.DEVICE_TYPE_MANDATORY_PARAMETERS_EMPTY)

    reduced = {}
    for name in configured:
        if name in projection:
            value = projection[name]
            reduced[name] = None if _is_blank(value) else value
    if not reduced:
        logger.error(
            "Mandatory params %s for device type %s match no request field",
            configured, sanitize(device_type),
        )
        raise TechnicalError(ApiMessage.GENERAL_ERROR)

    if any(value is None for value in reduced.values()):
        raise InvalidInputError(ApiMessage.MISSING_MANDATORY_REQUEST_PARAMS)


def validate_order(
    raw: str | None, api_message: ApiMessage = ApiMessage.ORDER_BY_FIELD
) -> str:
    """Normalize asc/desc, defaulting to asc when blank."""
    if _is_blank(raw):
        return ORDER_ASC
    value = raw.strip().lower()
    if value not in (ORDER_ASC, ORDER_DESC):
        raise InvalidInputError(api_message)
    return value


def validate_sort_by(
    raw: str | None,
    allowed: dict[str, str],
    api_message: ApiMessage = ApiMessage.DEVICE_DETAILS_SORT_BY_FIELD,
) -> str | None:
    """Map a request sort key to its column; None when no sort requested."""
    if _is_blank(raw):
        return None
    column = allowed.get(raw.strip())
    if column is None:
        raise InvalidInputError(api_message)
    return column


def validate_contains_like(
    fields_csv: str | None, values_csv: str | None
) -> tuple[list[str], list[str]]:
    fields = split_list(fields_csv)
    values = split_list(values_csv)
    if not fields and not values:
        return [], []
    if len(fields) != len(values):
        raise InvalidInputError(ApiMessage.INVALID_CONTAINS_LIKE_FIELD)
    columns = []
    for name in fields:
        column = CONTAINS_LIKE_FIELDS.get(name.lower())
        if column is None:
            raise InvalidInputError(ApiMessage.INVALID_CONTAINS_LIKE_FIELD)
        columns.append(column)
    return columns, values


def validate_range(
    fields_csv: str | None, values_csv: str | None
) -> tuple[list[str], list[str]]:
    fields = split_list(fields_csv)
    values = split_list(values_csv)
    if not fields and not values:
        return [], []
    if len(fields) != len(values):
        raise InvalidInputError(ApiMessage.INVALID_RANGE_FIELD)
    columns = []
    for name in fields:
        column = RANGE_FIELDS.get(name.lower())
        if column is None:
            raise InvalidInputError(ApiMessage.INVALID_RANGE_FIELD)
        columns.append(column)
    for value in values:
        bounds = value.split("_")
        if len(bounds) != 2 or not all(b.strip().isdecimal() for b in bounds):
            raise InvalidInputError(ApiMessage.INVALID_RANGE_VALUE)
    return columns, values


def validate_details_required(raw: str | None) -> bool:
    if _is_blank(raw) or raw.strip().lower() not in ("true", "false"):
        raise InvalidInputError(ApiMessage.WRONG_ISDETAILSREQUIRED_VALUE)
    return raw.strip().lower() == "true"


def resolve_input_type(
    imei: str | None = None,
    serial_number: str | None = None,
    device_id: str | None = None,
    vin: str | None = None,
    state: str | None = None,
    min_length: int = 3,
    serial_number_min_length: int = 3,
    device_id_min_length: int = 3,
) -> tuple[InputType, str]:
    """Pick the single search key from the request and validate its value.

    With no key given every record matches: ``(InputType.IMEI, "")``.
    """
    given = {
        InputType.IMEI: imei,
        InputType.SERIAL_NUMBER: serial_number,
        InputType.DEVICE_ID: device_id,
        InputType.VIN: vin,
        InputType.STATE: state,
    }
    present = {k: v for k, v in given.items() if not _is_blank(v)}
    if len(present) > 1:
        if InputType.VIN in present:
            raise InvalidInputError(ApiMessage.INVALID_NUMBER_OF_PARAMS_WITH_VIN)
        raise InvalidInputError(ApiMessage.INVALID_NUMBER_OF_PARAMS)
    if not present:
        return InputType.IMEI, ""

    input_type, raw = next(iter(present.items()))
    if input_type is InputType.IMEI:
        return input_type, validate_imei(raw, min_length)
    if input_type is InputType.SERIAL_NUMBER:
        return input_type, validate_serial_number(raw, serial_number_min_length)
    if input_type is InputType.DEVICE_ID:
        return input_type, validate_device_id(raw, device_id_min_length)
    if input_type is InputType.VIN:
        return input_type, validate_vin(raw)
    parsed = parse_state(raw)
    if parsed is None:
        raise InvalidInputError(ApiMessage.INVALID_NUMBER_OF_PARAMS)
    return input_type, parsed.value


async def check_duplicate_serial_number(
    session: AsyncSession, repository: SerialNumberLookup, serial_number: str
) -> None:
    existing = await repository.find_by_serial_number(session, serial_number)
    if existing is not None:
        logger.error("Device already exists for serial number %s", sanitize(serial_number))
        raise DuplicateDeviceError(ApiMessage.DEVICE_ALREADY_EXIST_BY_SERIAL_NUMBER)


async def check_duplicate_vin(
    session: AsyncSession, repository: VinLookup, vin: str
) -> None:
    if await repository.vin_exists(session, vin):
        logger.error("Device already exists for VIN %s", sanitize(vin))
        raise DuplicateDeviceError(ApiMessage.DEVICE_ALREADY_EXIST_BY_VIN)

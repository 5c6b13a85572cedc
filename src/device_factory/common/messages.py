"""Stable code / reason / message triples returned to API callers."""

from enum import Enum

_VALIDATION = "Validation failed"
_NOT_FOUND = "Resource not found"
_PRECONDITION = "PreCondition failed"
_INTERNAL = "Internal server error"
_SUCCESS = "Success"


class ApiMessage(Enum):
    GENERAL_ERROR = ("dfd-777", _INTERNAL, "Not successful. Something went wrong. Please contact admin.")
    SERIALNUMBER_IMEI_MANDATORY = ("dfd-001", _VALIDATION, "Either Serial number or IMEI is mandatory.")
    INVALID_CURRENT_FACTORY_DATA = (
        "dfd-002", _NOT_FOUND, "No data is found in inventory for the requested inputs.",
    )
    FIND_FACTORY_DATA_SUCCESS = ("dfd-003", _SUCCESS, "Device factory data retrieved successfully.")
    FACTORY_DATA_CREATE_SUCCESS = ("dfd-004", _SUCCESS, "Device factory data created successfully.")
    INVALID_IMEI_SERIAL_NUMBER_COMBINATION = (
        "dfd-005", _VALIDATION, "Invalid IMEI and serial number combination.",
    )
    INVALID_IMEI = ("dfd-006", _VALIDATION, "Invalid IMEI")
    INVALID_SERIAL_NUMBER = ("dfd-007", _VALIDATION, "Invalid serial number.")
    WRONG_ISDETAILSREQUIRED_VALUE = (
        "dfd-009", _VALIDATION, "isdetailsrequired field is mandatory and should have boolean type.",
    )
    INVALID_IMEI_LENGTH = ("dfd-010", _VALIDATION, "IMEI value have to be minimum 3 digits for search.")
    INVALID_IMEI_FORMAT = ("dfd-011", _VALIDATION, "IMEI must be numeric.")
    INVALID_SERIAL_NUMBER_LENGTH = (
        "dfd-012", _VALIDATION, "Serial number value must to be minimum 3 digits for search.",
    )
    INVALID_SERIAL_NUMBER_FORMAT = ("dfd-013", _VALIDATION, "Serial number must be alphanumeric.")
    ZERO_PAGE_VALUE = ("dfd-014", _VALIDATION, "Page should be greater than zero.")
    WRONG_PAGE_VALUE_TYPE = ("dfd-015", _VALIDATION, "Page should be unsigned number.")
    WRONG_PAGE_SIZE = ("dfd-016", _VALIDATION, "Page size must be between 1 and 5000")
    INVALID_NUMBER_OF_PARAMS_WITH_VIN = (
        "dfd-018", _VALIDATION,
        "Please provide any one of imei, SerialNumber, DeviceId or vin and perform the search again.",
    )
    INVALID_NUMBER_OF_PARAMS = (
        "dfd-019", _VALIDATION,
        "Please provide any one of imei, SerialNumber, DeviceId or State and perform the search again",
    )
    INVALID_VIN_LENGTH = ("dfd-020", _VALIDATION, "Invalid VIN, length must be of 17 characters")
    INVALID_SORTBY_FIELD = (
        "dfd-021", _VALIDATION, "sortby field and value should be of same length and allowed fields.",
    )
    INVALID_SORTING_ORDER_VALUE = (
        "dfd-022", _VALIDATION,
        "sorting order field is mandatory. If non empty then should have asc/desc type.",
    )
    INVALID_CONTAINS_LIKE_FIELD = (
        "dfd-023", _VALIDATION, "containslikefields is mandatory. If non empty then should be allowed one.",
    )
    INVALID_RANGE_FIELD = (
        "dfd-024", _VALIDATION, "rangefields and rangevalues should be of same length and allowed.",
    )
    INVALID_RANGE_VALUE = (
        "dfd-025", _VALIDATION,
        "range values is not in proper format. It should be separated by underscore(_)",
    )
    INVALID_DEVICE_ID_LENGTH = (
        "dfd-026", _VALIDATION, "Invalid device id, length must be at least of 3 characters",
    )
    INVALID_DEVICE_ID_FORMAT = ("dfd-027", _VALIDATION, "Device Id must be alphanumeric.")
    DEVICE_STATE_SORT_BY_FIELD = (
        "dfd-028", _VALIDATION,
        "Incorrect sortby field value. Use one of the following values: state|stateTimestamp|"
        "manufacturingDate|imei|serialNumber|iccid|ssid|bssid|msisdn|imsi|factoryAdmin|"
        "packageSerialNumber|recordDate",
    )
    DEVICE_DETAILS_SORT_BY_FIELD_BY_DEVICE_ID = (
        "dfd-029", _VALIDATION,
        "Incorrect sortby field value. Use one of the following values: imei|serialNumber|model|"
        "iccid|ssid|bssid|msisdn|imsi|factoryAdmin|state|packageSerialNumber|recordDate|"
        "createdDate|deviceId",
    )
    DEVICE_DETAILS_SORT_BY_FIELD = (
        "dfd-030", _VALIDATION,
        "Incorrect sortby field value. Use one of the following values: imei|serialNumber|model|"
        "iccid|ssid|bssid|msisdn|imsi|factoryAdmin|state|packageSerialNumber|recordDate|createdDate",
    )
    ORDER_BY_FIELD = ("dfd-031", _VALIDATION, "orderby field should have either asc or desc type")
    DEVICE_NOT_FOUND_FOR_IMEI = ("dfd-033", _NOT_FOUND, "Device not found for given imei")
    FIND_DEVICE_STATE = ("dfd-034", _SUCCESS, "Device states retrieved successfully.")
    DEVICE_STATE_CHANGE = ("dfd-035", _SUCCESS, "Device states changed successfully.")
    STATE_CHANGE_ERROR = ("dfd-036", _VALIDATION, "Unable to change device state")
    FACTORY_DATA_NOT_FOUND = ("dfd-037", _NOT_FOUND, "Factory data not found.")
    DEVICE_STATE_INVALID_INPUT = ("dfd-038", _VALIDATION, "Either of factory id or imei is mandatory.")
    DEVICE_STATE_MANDATORY = ("dfd-039", _VALIDATION, "State is mandatory.")
    DEVICE_UPDATE_SUCCESS = ("dfd-040", _SUCCESS, "Device updated successfully.")
    MISSING_INPUT = (
        "dfd-042", _VALIDATION,
        "One or more than one required attribute(s) value is missing either in currentValue "
        "or replaceWith input json.",
    )
    FACTORY_DATA_DOES_NOT_EXIST = ("dfd-043", _NOT_FOUND, "Factory data not found.")
    DELETE_DEVICE_MISSING_INPUT = (
        "dfd-045", _VALIDATION, "Either of imei or serial number must be present in the request.",
    )
    DEVICE_ALREADY_EXIST_BY_VIN = ("dfd-047", _PRECONDITION, "Device already exists for VIN.")
    DEVICE_DETAILS_NOT_FOUND = ("dfd-048", _NOT_FOUND, "No data found for the given input")
    DEVICE_ALREADY_EXIST_BY_SERIAL_NUMBER = (
        "dfd-049", _PRECONDITION, "Device already exists for serial number.",
    )
    DEVICE_STATE_SUCCESS = ("dfd-050", _SUCCESS, "Device states retrieved successfully.")
    SWM_SESSION_ID_NULL = ("dfd-051", _INTERNAL, "SWM session id is null")
    SWM_VEHICLE_CREATION_FAILED = (
        "dfd-052", _INTERNAL, "SWM vehicle creation failed. Possible cause: SessionId expired",
    )
    SWM_VEHICLE_CREATION_RESPONSE_JSON_PARSE_FAILED = (
        "dfd-053", _INTERNAL, "Unable to parse swm vehicle creation response json.",
    )
    SWM_VEHICLE_CREATION_INTERNAL_ERROR = (
        "dfd-054", _INTERNAL, "SWM vehicle creation failed due to SWM internal error.",
    )
    DEVICE_DELETE_SUCCESS = ("dfd-055", _SUCCESS, "Device deleted successfully.")
    SWM_VEHICLE_DELETE_RESPONSE_JSON_PARSE_FAILED = (
        "dfd-056", _INTERNAL, "Unable to parse swm vehicle delete response json.",
    )
    SWM_VEHICLE_DELETE_FAILED = (
        "dfd-057", _INTERNAL, "SWM vehicle deletion failed. Possible cause: SessionId expired",
    )
    SWM_VEHICLE_UPDATE_FAILED = (
        "dfd-058", _INTERNAL, "SWM vehicle update failed. Possible cause: SessionId expired",
    )
    MISSING_USERID = ("dfd-059", _VALIDATION, "Missing 'user-id' in http request header")
    INVALID_PAYLOAD = ("dfd-060", _VALIDATION, "Invalid payload data")
    INVALID_DATE_FORMAT = ("dfd-063", _VALIDATION, "Invalid date format passed. Valid format is yyyy/MM/dd")
    INVALID_DEVICE_TYPE = ("dfd-065", _VALIDATION, "Invalid Device Type.")
    DEVICE_TYPE_MANDATORY_PARAMETERS_EMPTY = (
        "dfd-071", _VALIDATION, "Device Type Mandatory Params retrieved from system parameters API are empty",
    )
    MISSING_MANDATORY_REQUEST_PARAMS = (
        "dfd-072", _VALIDATION, "One or more than one required attribute(s) value is missing in input json",
    )
    INVALID_REGION = ("dfd-073", _VALIDATION, "Invalid Region.")

    def __init__(self, code: str, reason: str, message: str):
        self.code = code
        self.reason = reason
        self.message = message

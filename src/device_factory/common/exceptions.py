"""Device factory exception hierarchy."""

from device_factory.common.messages import ApiMessage


class DeviceFactoryError(Exception):
    """Base exception for all device factory errors.

    Every error carries the stable ``code``, a short ``reason`` and a
    human readable ``message`` taken from an :class:`ApiMessage`.
    """

    status_code = 500
    default_message = ApiMessage.GENERAL_ERROR

    def __init__(self, api_message: ApiMessage | None = None, message: str = ""):
        self.api_message = api_message or self.default_message
        self.code = self.api_message.code
        self.reason = self.api_message.reason
        self.message = message or self.api_message.message
        super().__init__(self.message)


class InvalidInputError(DeviceFactoryError):
    """Raised when request input is malformed, missing or not allowed."""

    status_code = 400
    default_message = ApiMessage.INVALID_PAYLOAD


class DuplicateDeviceError(InvalidInputError):
    """Raised when a unique identifier is already registered."""

    default_message = ApiMessage.DEVICE_ALREADY_EXIST_BY_SERIAL_NUMBER


class NotFoundError(DeviceFactoryError):
    """Raised when no factory data matches the request."""

    status_code = 404
    default_message = ApiMessage.DEVICE_DETAILS_NOT_FOUND


class TechnicalError(DeviceFactoryError):
    """Raised for server side misconfiguration or contract violations."""

    default_message = ApiMessage.GENERAL_ERROR


class SwmIntegrationError(TechnicalError):
    """Raised when a call to the SWM vehicle management system fails."""

    default_message = ApiMessage.SWM_VEHICLE_CREATION_FAILED

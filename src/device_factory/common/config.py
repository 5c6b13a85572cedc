"""Device factory configuration via pydantic-settings."""

import json
import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "api_key": "insecure-admin-key-change-me",
    "swm_password": "insecure-swm-password-change-me",
}

CREATION_TYPE_DEFAULT = "default"
CREATION_TYPE_GUEST_USER = "guestUser"
CREATION_TYPE_SWM_INTEGRATION = "swmIntegration"
CREATION_TYPES = (
    CREATION_TYPE_DEFAULT,
    CREATION_TYPE_GUEST_USER,
    CREATION_TYPE_SWM_INTEGRATION,
)

_DEFAULT_MANDATORY_PARAMS = json.dumps({
    "dongle": ["imei", "serial_number", "manufacturing_date", "record_date", "model"],
    "dashcam": ["serial_number", "manufacturing_date", "record_date", "model"],
    "telematics": ["imei", "serial_number", "iccid", "msisdn", "imsi"],
})


class DeviceFactorySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DFM_")

    environment: str = "development"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/device_factory.db"

    # API
    api_title: str = "Device Factory Engine"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    log_level: str = "INFO"

    # Device creation
    device_creation_type: str = CREATION_TYPE_DEFAULT
    allowed_device_types: list[str] = ["dongle", "dashcam", "telematics"]
    allowed_regions: list[str] = ["EU", "NA", "APAC"]

    # JSON object mapping device type to the list of fields required for it.
    # e.g. '{"dashcam": ["serial_number", "model"]}'
    device_type_mandatory_params: str = _DEFAULT_MANDATORY_PARAMS

    # Identifier validation
    imei_min_length: int = 3
    serial_number_min_length: int = 3
    device_id_min_length: int = 3

    # Pagination
    default_page: int = 1
    default_page_size: int = 20
    max_page_size: int = 5000

    # SWM vehicle management mirror
    swm_integration_enabled: bool = False
    swm_base_url: str = "http://localhost:9090"
    swm_login_path: str = "/login"
    swm_update_path: str = "/vehicles/update"
    swm_delete_path: str = "/vehicles/delete"
    swm_vehicle_models_path: str = "/vehicle-models"
    swm_vehicles_path: str = "/vehicles"
    swm_username: str = "swm-user"
    swm_password: str = "insecure-swm-password-change-me"
    swm_domain: str = "default"
    swm_domain_id: str = "default"
    swm_vehicle_model_id: str = "default-model"
    swm_session_ttl: int = 1800  # seconds
    swm_timeout: float = 30.0
    swm_vehicle_exists_messages: list[str] = [
        "Vehicle with same identifier already exist",
        "Vehicle already exists",
    ]

    @property
    def mandatory_params(self) -> dict[str, list[str]]:
        """Return the device type -> mandatory field table, keys lower-cased."""
        try:
            raw = json.loads(self.device_type_mandatory_params)
        except (json.JSONDecodeError, TypeError) as exc:
            raise ValueError(
                "DFM_DEVICE_TYPE_MANDATORY_PARAMS must be valid JSON "
                f"(e.g. '{{\"dashcam\": [\"serial_number\"]}}'), got: {self.device_type_mandatory_params!r}"
            ) from exc
        return {str(k).lower(): list(v or []) for k, v in raw.items()}

    def validate_for_production(self) -> None:
        """Raise on insecure defaults or an unknown creation type outside development."""
        if self.device_creation_type not in CREATION_TYPES:
            raise RuntimeError(
                f"DFM_DEVICE_CREATION_TYPE must be one of {', '.join(CREATION_TYPES)}, "
                f"got: {self.device_creation_type!r}"
            )

        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"DFM_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}."
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default credentials; set DFM_API_KEY and "
                "DFM_SWM_PASSWORD for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> DeviceFactorySettings:
    settings = DeviceFactorySettings()
    settings.validate_for_production()
    return settings

"""Dependency injection singletons for the device factory service."""

from device_factory.common.config import get_settings
from device_factory.common.database import DatabaseManager
from device_factory.details.service import DeviceDetailsService
from device_factory.factory.service import FactoryDataService
from device_factory.swm.client import SwmClient

_db: DatabaseManager | None = None
_swm: SwmClient | None = None
_factory: FactoryDataService | None = None
_details: DeviceDetailsService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_swm_client() -> SwmClient | None:
    """The SWM client, or None when SWM mirroring is switched off."""
    global _swm
    settings = get_settings()
    if not settings.swm_integration_enabled:
        return None
    if _swm is None:
        _swm = SwmClient(settings)
    return _swm


def get_factory_service() -> FactoryDataService:
    global _factory
    if _factory is None:
        _factory = FactoryDataService(get_settings(), swm_client=get_swm_client())
    return _factory


def get_details_service() -> DeviceDetailsService:
    global _details
    if _details is None:
        _details = DeviceDetailsService(get_settings())
    return _details


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _swm, _factory, _details
    _db = None
    _swm = None
    _factory = None
    _details = None

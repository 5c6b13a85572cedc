"""HTTP client mirroring vehicle create / update / delete into SWM."""

import logging
from typing import Any

import httpx

from device_factory.common.config import DeviceFactorySettings
from device_factory.common.exceptions import SwmIntegrationError
from device_factory.common.logging import sanitize
from device_factory.common.messages import ApiMessage
from device_factory.swm.schemas import (
    SwmCreateVehicleRequest,
    SwmUpdateVehicleRequest,
    SwmVinRequest,
)
from device_factory.swm.session import SwmSessionCache

logger = logging.getLogger(__name__)

SESSION_HEADER = "sessionId"


class SwmClient:
    """Calls the SWM vehicle management REST API.

    Every call authenticates with the cached session id.  Failures are
    raised as SwmIntegrationError carrying the create / update / delete
    specific code; nothing is retried.
    """

    def __init__(
        self,
        settings: DeviceFactorySettings,
        session_cache: SwmSessionCache | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        self.base_url = settings.swm_base_url.rstrip("/")
        self._settings = settings
        self.session_cache = session_cache or SwmSessionCache(settings.swm_session_ttl)
        self._http = http or httpx.AsyncClient(
            base_url=self.base_url, timeout=settings.swm_timeout
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def login(self) -> str | None:
        """POST the configured credentials and return the issued session id."""
        resp = await self._http.post(
            self._settings.swm_login_path,
            json={
                "userName": self._settings.swm_username,
                "password": self._settings.swm_password,
                "domain": self._settings.swm_domain,
            },
        )
        resp.raise_for_status()
        return resp.json().get("sessionId")

    async def _headers(self) -> dict[str, str]:
        token = await self.session_cache.get_or_refresh(self.login)
        return {SESSION_HEADER: token}

    def _check_session(self, resp: httpx.Response) -> None:
        # An expired session is dropped so the next call logs in again.
        if resp.status_code == 401:
            self.session_cache.invalidate()

    async def find_vehicle_model_id(self, headers: dict[str, str], model_code: str | None) -> str:
        """Resolve a model code to its SWM id, falling back to the configured default."""
        default_id = self._settings.swm_vehicle_model_id
        try:
            resp = await self._http.get(self._settings.swm_vehicle_models_path, headers=headers)
            self._check_session(resp)
            resp.raise_for_status()
            for model in resp.json().get("representationObjects") or []:
                if model.get("modelCode") == model_code:
                    logger.debug("Matched model %s to SWM id %s", sanitize(model_code), model.get("id"))
                    return model.get("id")
        except Exception:
            logger.warning(
                "SWM vehicle model lookup failed, using default model id %s",
                default_id, exc_info=True,
            )
            return default_id
        logger.info("No SWM vehicle model for %s, using default model id", sanitize(model_code))
        return default_id

    async def find_vehicle_id(self, headers: dict[str, str], vin: str) -> str | None:
        resp = await self._http.get(
            self._settings.swm_vehicles_path, params={"vin": vin}, headers=headers
        )
        self._check_session(resp)
        resp.raise_for_status()
        vehicles = resp.json().get("representationObjects") or []
        if not vehicles:
            return None
        return vehicles[0].get("id")

    @staticmethod
    def _action_message(result: dict[str, Any]) -> str | None:
        message = result.get("reasonMessage") or result.get("resultMessage") or {}
        return message.get("localizedMessage")

    async def create_vehicle(self, request: SwmCreateVehicleRequest) -> bool:
        """Create vehicles in SWM; an "already exists" answer counts as success."""
        headers = await self._headers()
        for vehicle in request.vehicles:
            vehicle.vehicle_model_id = await self.find_vehicle_model_id(
                headers, vehicle.vehicle_model_id
            )

        try:
            resp = await self._http.post(
                self._settings.swm_update_path,
                json=request.model_dump(by_alias=True, exclude_none=True),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error("SWM vehicle creation call failed: %s", exc)
            raise SwmIntegrationError(ApiMessage.SWM_VEHICLE_CREATION_FAILED) from exc
        self._check_session(resp)
        if resp.status_code != 200:
            logger.error("SWM vehicle creation returned HTTP %s", resp.status_code)
            return False

        try:
            result = resp.json()["actionResult"][0]
            code = result.get("code")
            message = self._action_message(result) if code != 0 else None
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise SwmIntegrationError(
                ApiMessage.SWM_VEHICLE_CREATION_RESPONSE_JSON_PARSE_FAILED
            ) from exc

        if code == 0:
            logger.info("SWM vehicle created for %d vehicle(s)", len(request.vehicles))
            return True

        logger.error("SWM vehicle creation failed: %s", message)
        if message in self._settings.swm_vehicle_exists_messages:
            return True
        raise SwmIntegrationError(ApiMessage.SWM_VEHICLE_CREATION_INTERNAL_ERROR)

    async def update_vehicle(self, request: SwmUpdateVehicleRequest) -> bool:
        headers = await self._headers()
        try:
            request.id = await self.find_vehicle_id(headers, request.vin)
            resp = await self._http.put(
                self._settings.swm_update_path,
                json=request.model_dump(by_alias=True, exclude_none=True),
                headers=headers,
            )
            self._check_session(resp)
        except Exception as exc:
            logger.error("SWM vehicle update failed: %s", exc)
            raise SwmIntegrationError(ApiMessage.SWM_VEHICLE_UPDATE_FAILED) from exc
        logger.info("SWM vehicle update returned HTTP %s", resp.status_code)
        return resp.status_code == 200

    async def delete_vehicle(self, request: SwmVinRequest) -> bool:
        """Delete the vehicle with ``request.vin``; False when SWM does not know it."""
        headers = await self._headers()
        try:
            vehicle_id = await self.find_vehicle_id(headers, request.vin)
            if vehicle_id is None:
                logger.info("No SWM vehicle found for VIN %s", sanitize(request.vin))
                return False
            resp = await self._http.put(
                self._settings.swm_delete_path,
                json={"vehicleIds": [vehicle_id]},
                headers=headers,
            )
            self._check_session(resp)
        except ValueError as exc:
            raise SwmIntegrationError(
                ApiMessage.SWM_VEHICLE_DELETE_RESPONSE_JSON_PARSE_FAILED
            ) from exc
        except Exception as exc:
            logger.error("SWM vehicle delete failed: %s", exc)
            raise SwmIntegrationError(ApiMessage.SWM_VEHICLE_DELETE_FAILED) from exc
        if resp.status_code != 200:
            logger.info("Unable to delete vehicle from SWM, HTTP %s", resp.status_code)
            return False
        return True

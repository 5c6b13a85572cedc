"""Factory data API router: upload, update, delete and state change."""

from fastapi import APIRouter, Depends, Query

from device_factory.common.messages import ApiMessage
from device_factory.common.schemas import ApiResponse, ErrorEntry
from device_factory.common.security import require_api_key, require_user_id
from device_factory.factory.schemas import (
    DeviceFactoryDataResponse,
    DeviceFactoryDataUpload,
    DeviceFactoryDataUploadResult,
    DeviceUpdateRequest,
    StateChangeRequest,
)

router = APIRouter(tags=["factory-data"], dependencies=[Depends(require_api_key)])


def _get_service():
    from device_factory.deps import get_factory_service
    return get_factory_service()


def _get_db():
    from device_factory.deps import get_db
    return get_db()


@router.post("/v3/devices", response_model=ApiResponse[DeviceFactoryDataUploadResult])
async def create_devices(
    body: DeviceFactoryDataUpload, user_id: str = Depends(require_user_id)
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.create_devices(session, body, user_id)
    response = ApiResponse.of(ApiMessage.FACTORY_DATA_CREATE_SUCCESS, data=result)
    if result.failed:
        failure = ApiMessage.SWM_VEHICLE_CREATION_FAILED
        response.errors = [
            ErrorEntry(
                code=failure.code,
                reason=failure.reason,
                message=f"{failure.message} (serial number {serial})",
            )
            for serial in result.failed
        ]
    return response


@router.put("/devices", response_model=ApiResponse[DeviceFactoryDataResponse])
async def update_device(body: DeviceUpdateRequest):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.update_device(session, body)
        data = DeviceFactoryDataResponse.model_validate(record)
    return ApiResponse.of(ApiMessage.DEVICE_UPDATE_SUCCESS, data=data)


@router.delete("/devices", response_model=ApiResponse[None])
async def delete_device(
    imei: str | None = Query(None),
    serialnumber: str | None = Query(None),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_device(session, imei, serialnumber)
    return ApiResponse.of(ApiMessage.DEVICE_DELETE_SUCCESS)


@router.put("/devices/state", response_model=ApiResponse[DeviceFactoryDataResponse])
async def change_state(body: StateChangeRequest):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        record = await svc.change_state(session, body)
        data = DeviceFactoryDataResponse.model_validate(record)
    return ApiResponse.of(ApiMessage.DEVICE_STATE_CHANGE, data=data)

"""Device search API router."""

from fastapi import APIRouter, Depends, Query

from device_factory.common.messages import ApiMessage
from device_factory.common.schemas import ApiResponse, Pagination
from device_factory.common.security import require_api_key
from device_factory.details.schemas import DeviceDetailsPage, DeviceStateHistoryPage

router = APIRouter(tags=["device-details"], dependencies=[Depends(require_api_key)])


def _get_service():
    from device_factory.deps import get_details_service
    return get_details_service()


def _get_db():
    from device_factory.deps import get_db
    return get_db()


@router.get("/v5/devices/details", response_model=ApiResponse[DeviceDetailsPage])
async def search_devices(
    imei: str | None = Query(None),
    serialnumber: str | None = Query(None),
    deviceid: str | None = Query(None),
    vin: str | None = Query(None),
    state: str | None = Query(None),
    page: str | None = Query(None),
    size: str | None = Query(None),
    sortby: str | None = Query(None),
    orderby: str | None = Query(None),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.search_devices(
            session,
            imei=imei,
            serial_number=serialnumber,
            device_id=deviceid,
            vin=vin,
            state=state,
            page=page,
            size=size,
            sort_by=sortby,
            order=orderby,
        )
    return ApiResponse.of(
        ApiMessage.FIND_FACTORY_DATA_SUCCESS,
        data=result,
        pagination=Pagination.of(result.total, result.size),
    )


@router.get("/v3/devices", response_model=ApiResponse[DeviceDetailsPage])
async def list_factory_data(
    containslikefields: str | None = Query(None),
    containslikevalues: str | None = Query(None),
    rangefields: str | None = Query(None),
    rangevalues: str | None = Query(None),
    sortbyparam: str | None = Query(None),
    sortingorder: str | None = Query(None),
    isdetailsrequired: str | None = Query(None),
    page: str | None = Query(None),
    size: str | None = Query(None),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.list_factory_data(
            session,
            contains_like_fields=containslikefields,
            contains_like_values=containslikevalues,
            range_fields=rangefields,
            range_values=rangevalues,
            sort_by=sortbyparam,
            sorting_order=sortingorder,
            details_required=isdetailsrequired,
            page=page,
            size=size,
        )
    return ApiResponse.of(
        ApiMessage.FIND_FACTORY_DATA_SUCCESS,
        data=result,
        pagination=Pagination.of(result.total, result.size),
    )


@router.get("/v1/devices/{imei}/states", response_model=ApiResponse[DeviceStateHistoryPage])
async def state_history(
    imei: str,
    page: str | None = Query(None),
    size: str | None = Query(None),
    sortby: str | None = Query(None),
    orderby: str | None = Query(None),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        result = await svc.state_history(
            session, imei, page=page, size=size, sort_by=sortby, order=orderby
        )
    return ApiResponse.of(
        ApiMessage.DEVICE_STATE_SUCCESS,
        data=result,
        pagination=Pagination.of(result.total, result.size),
    )

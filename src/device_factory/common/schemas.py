"""Shared Pydantic schemas for the device factory service."""

import uuid
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from device_factory.common.messages import ApiMessage

T = TypeVar("T")


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "device-factory-engine"


class ErrorEntry(BaseModel):
    code: str
    reason: str
    message: str


class Pagination(BaseModel):
    first_page: int = 1
    last_page: int = 1
    count: int = 0

    @classmethod
    def of(cls, total: int, size: int) -> "Pagination":
        pages = max(1, -(-total // size)) if size else 1
        return cls(first_page=1, last_page=pages, count=total)


class ApiResponse(BaseModel, Generic[T]):
    """Uniform response envelope carrying a request id and a code/reason/message triple."""

    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    code: str
    reason: str
    message: str
    data: T | None = None
    pagination: Pagination | None = None
    errors: list[ErrorEntry] | None = None

    @classmethod
    def of(
        cls,
        api_message: ApiMessage,
        data: T | None = None,
        pagination: Pagination | None = None,
        request_id: str | None = None,
    ) -> "ApiResponse[T]":
        response = cls(
            code=api_message.code,
            reason=api_message.reason,
            message=api_message.message,
            data=data,
            pagination=pagination,
        )
        if request_id:
            response.request_id = request_id
        return response

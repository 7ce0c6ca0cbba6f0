"""Shared schema definitions.

This module defines the camelCase base model and the response envelope that
every endpoint returns.
"""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

import pytz
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(pytz.utc).isoformat()


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldError(CamelModel):
    """A single field-level validation failure."""

    field: str
    message: str


class ApiResponse(CamelModel, Generic[T]):
    """Envelope shared by every success and error response."""

    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now_iso)


def error_envelope(error: str, message: Optional[str] = None, data: Any = None) -> dict:
    """Build the JSON body for a failed request.

    Args:
        error: Short user-facing error description.
        message: Optional generic hint.
        data: Optional structured details, e.g. a list of FieldError.

    Returns:
        JSON-serializable envelope dictionary.
    """
    if isinstance(data, list) and data and isinstance(data[0], BaseModel):
        data = [item.model_dump(by_alias=True) for item in data]
    return ApiResponse[Any](
        success=False, data=data, error=error, message=message
    ).model_dump(by_alias=True)


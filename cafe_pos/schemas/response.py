from pydantic import BaseModel, Field
from typing import Any, Optional
import uuid


def new_request_id() -> str:
    """Unique id echoed in every response body for tracing."""
    return uuid.uuid4().hex


class SuccessResponse(BaseModel):
    """Envelope for successful calls: data, success flag and request_id."""
    success: Optional[bool] = Field(default=True)
    request_id: str = Field(default_factory=new_request_id)
    data: Optional[Any] = None


class ErrorDetail(BaseModel):
    code: str  # machine-readable, e.g. 'order_already_completed'
    message: Any
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Envelope for failed calls, built by the exception handlers."""
    success: bool = False
    request_id: str = Field(default_factory=new_request_id)
    error: ErrorDetail

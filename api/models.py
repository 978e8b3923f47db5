"""
Response envelopes for the FastAPI application.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Envelope of every successful response."""
    success: bool = Field(True, description="Always true")
    data: Optional[Any] = Field(None, description="Response payload")
    message: Optional[str] = Field(None, description="Human-readable message")


class FieldError(BaseModel):
    """One failed request field."""
    field: str = Field(..., description="Dotted path of the offending field")
    message: str = Field(..., description="Why it was rejected")


class ErrorResponse(BaseModel):
    """Envelope of every error response."""
    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Machine-readable error code")
    errors: Optional[List[FieldError]] = Field(None, description="Per-field validation errors")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Wrap a payload in the success envelope."""
    content: Dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def error_response(
    status_code: int,
    error: str,
    code: str,
    errors: Optional[List[FieldError]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Render the error envelope."""
    body = ErrorResponse(error=error, code=code, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body, exclude_none=True),
        headers=headers,
    )

"""Error bodies, declared on routes so they show up in the OpenAPI schema."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Body of a failed worksheet call: ``{"message": ..., "error": ...}``."""

    message: str = Field(..., examples=["Not found"])
    error: Optional[str] = Field(
        None,
        description="Underlying cause, present on server failures",
        examples=["403 POST https://storage.googleapis.com/...: Forbidden"],
    )


class ErrorResponse(BaseModel):
    code: str = Field(..., description="Machine-readable error code", examples=["VALIDATION_ERROR"])
    message: str = Field(..., examples=["Request validation failed"])
    request_id: Optional[str] = Field(
        None,
        description="Same value as the X-Request-ID response header",
        examples=["5f0c3d1e9a7b4c2d8e6f1a2b3c4d5e6f"],
    )
    details: Optional[Dict[str, Any]] = Field(
        None, description="Field-level validation errors or debug context"
    )
    path: Optional[str] = Field(None, examples=["/api/worksheets/upload"])


class APIErrorResponse(BaseModel):
    """Envelope for auth, validation and unexpected failures."""

    error: ErrorResponse


class UnauthorizedErrorResponse(BaseModel):
    error: ErrorResponse = Field(
        ...,
        examples=[
            {
                "code": "UNAUTHORIZED",
                "message": "Invalid or expired token",
                "request_id": "5f0c3d1e9a7b4c2d8e6f1a2b3c4d5e6f",
            }
        ],
    )

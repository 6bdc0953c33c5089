"""API Schemas for request/response validation."""

from latchkey.infrastructure.api.schemas.auth_schemas import (
    AuthResponse,
    EmailRequest,
    ErrorResponse,
    LogInRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignUpRequest,
    UserResponse,
)

__all__ = [
    "AuthResponse",
    "EmailRequest",
    "ErrorResponse",
    "LogInRequest",
    "MessageResponse",
    "ResetPasswordRequest",
    "SignUpRequest",
    "UserResponse",
]

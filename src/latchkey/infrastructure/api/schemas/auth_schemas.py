"""Pydantic schemas for authentication endpoints.

Request fields are all optional: missing values are reported by the auth
service with its own reason codes rather than rejected by request parsing.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SignUpRequest(BaseModel):
    """Request body for sign-up."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str | None = Field(None, alias="firstName", description="User's first name")
    email: str | None = Field(None, description="User's email address")
    password: str | None = Field(None, description="User's password")


class LogInRequest(BaseModel):
    """Request body for log-in."""

    email: str | None = Field(None, description="User's email address")
    password: str | None = Field(None, description="User's password")


class EmailRequest(BaseModel):
    """Request body carrying only an email (forgotten password, resend)."""

    email: str | None = Field(None, description="User's email address")


class ResetPasswordRequest(BaseModel):
    """Request body for completing a password reset."""

    model_config = ConfigDict(populate_by_name=True)

    new_password: str | None = Field(None, alias="newPassword", description="New password")
    new_password_confirmation: str | None = Field(
        None, alias="newPasswordConfirmation", description="New password, repeated"
    )


class UserResponse(BaseModel):
    """User information in auth responses."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="User's email address")
    first_name: str = Field(..., description="User's first name")
    email_verified: bool = Field(..., description="Whether the email is confirmed")

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Response for successful sign-up and log-in."""

    message: str = Field(..., description="Human-readable message")
    token: str = Field(..., description="JWT access token")
    expires_in: int = Field(..., description="Access token expiration time in seconds")
    user: UserResponse = Field(..., description="User information")


class MessageResponse(BaseModel):
    """Response for successful or soft outcomes."""

    message: str = Field(..., description="Human-readable message")
    reason: str | None = Field(None, description="Reason code for soft outcomes")


class ErrorResponse(BaseModel):
    """Response for rejected requests."""

    error: str = Field(..., description="Human-readable error message")
    reason: str = Field(..., description="Machine-readable reason code")
    details: list[dict[str, Any]] = Field(default_factory=list, description="Per-field errors")

"""Authentication API routes.

Provides endpoints for sign-up, log-in, email confirmation and password
recovery. Every route delegates to ``AuthService`` and only maps its result
onto an HTTP response.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import JSONResponse

from latchkey.domain.entities.auth_result import AuthReason, AuthResult
from latchkey.infrastructure.api.dependencies import AuthServiceDep
from latchkey.infrastructure.api.schemas import (
    AuthResponse,
    EmailRequest,
    ErrorResponse,
    LogInRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignUpRequest,
    UserResponse,
)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Request rejected"},
    503: {"model": ErrorResponse, "description": "User store or mail transport unavailable"},
}


def to_response(result: AuthResult) -> JSONResponse:
    """Map an auth result onto status code and body.

    Success is 200, soft outcomes 206, ``unauthorized`` 401 and every other
    rejection 400.
    """
    if result.soft:
        return JSONResponse(
            status_code=status.HTTP_206_PARTIAL_CONTENT,
            content=MessageResponse(
                message=result.message,
                reason=result.reason.value if result.reason else None,
            ).model_dump(),
        )

    if result.ok:
        if result.session_token and result.user:
            body = AuthResponse(
                message=result.message,
                token=result.session_token,
                expires_in=result.session_expires_in,
                user=UserResponse.model_validate(result.user),
            )
        else:
            body = MessageResponse(message=result.message)
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump())

    status_code = (
        status.HTTP_401_UNAUTHORIZED
        if result.reason is AuthReason.UNAUTHORIZED
        else status.HTTP_400_BAD_REQUEST
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=result.message,
            reason=result.reason.value,
            details=result.details,
        ).model_dump(),
    )


@router.post("/sign_up", response_model=AuthResponse, responses=ERROR_RESPONSES)
async def sign_up(request: SignUpRequest, auth: AuthServiceDep) -> JSONResponse:
    """Register a new user and send the email confirmation link."""
    result = await auth.sign_up(
        first_name=request.first_name,
        email=request.email,
        password=request.password,
    )
    return to_response(result)


@router.post(
    "/log_in",
    response_model=AuthResponse,
    responses={
        **ERROR_RESPONSES,
        206: {"model": MessageResponse, "description": "Email not confirmed yet"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def log_in(request: LogInRequest, auth: AuthServiceDep) -> JSONResponse:
    """Authenticate with email and password."""
    result = await auth.log_in(email=request.email, password=request.password)
    return to_response(result)


@router.get(
    "/email_check",
    response_model=MessageResponse,
    responses={**ERROR_RESPONSES, 206: {"model": MessageResponse}},
)
async def email_check(
    auth: AuthServiceDep,
    email: Annotated[str | None, Query()] = None,
    token: Annotated[str | None, Query()] = None,
) -> JSONResponse:
    """Confirm an email address from the emailed link."""
    return to_response(await auth.confirm_email(email=email, token=token))


@router.post(
    "/resend_email_check",
    response_model=MessageResponse,
    responses={**ERROR_RESPONSES, 206: {"model": MessageResponse}},
)
async def resend_email_check(request: EmailRequest, auth: AuthServiceDep) -> JSONResponse:
    """Send a new email confirmation link."""
    return to_response(await auth.resend_email_check(email=request.email))


@router.post("/forgotten_password", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def forgotten_password(request: EmailRequest, auth: AuthServiceDep) -> JSONResponse:
    """Send a password reset link."""
    return to_response(await auth.request_password_reset(email=request.email))


@router.get("/reset_password", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def check_reset_password_link(
    auth: AuthServiceDep,
    email: Annotated[str | None, Query()] = None,
    token: Annotated[str | None, Query()] = None,
) -> JSONResponse:
    """Check that a password reset link is usable, without consuming it."""
    return to_response(await auth.check_password_reset_link(email=email, token=token))


@router.post("/reset_password", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def reset_password(
    auth: AuthServiceDep,
    request: Annotated[ResetPasswordRequest | None, Body()] = None,
    email: Annotated[str | None, Query()] = None,
    token: Annotated[str | None, Query()] = None,
) -> JSONResponse:
    """Choose a new password using the emailed link."""
    request = request or ResetPasswordRequest()
    result = await auth.reset_password(
        email=email,
        token=token,
        new_password=request.new_password,
        new_password_confirmation=request.new_password_confirmation,
    )
    return to_response(result)

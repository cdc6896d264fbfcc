import asyncio
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError

from authguard.adapter.services.background_email_dispatcher import keep_running
from authguard.api.error import AuthError, ClientError, RateLimitError, ServerError, ValidationError
from authguard.api.utils.client_identity import get_client_identity
from authguard.api.utils.origin import require_trusted_origin
from authguard.api.utils.rate_limit import RateLimiters, enforce_rate_limit
from authguard.api.utils.request_size import json_body
from authguard.api.utils.session_cookie import (
    clear_session_cookie,
    read_session_token,
    set_session_cookie,
)
from authguard.app.services.email_service import EmailDispatcher
from authguard.app.services.session_manager import SessionClaims
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.app.use_cases.auth import (
    AvailabilityResponse,
    CheckAvailabilityUseCase,
    ConfirmPasswordResetUseCase,
    GenericMessageResponse,
    LoginUseCase,
    LogoutUseCase,
    RegisterCommand,
    RegisterUseCase,
    RequestPasswordResetUseCase,
    ResendVerificationUseCase,
    SuccessResponse,
    UserEnvelope,
    UserResponse,
    VerifyEmailUseCase,
)
from authguard.app.use_cases.auth.dtos import CamelModel
from authguard.depends import (
    get_current_session,
    get_email_dispatcher,
    get_rate_limiters,
    get_unit_of_work,
    get_unit_of_work_factory,
    UnitOfWorkFactory,
)
from authguard.domain.client_identity import ClientIdentity
from config import ApplicationConfig

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    dependencies=[Depends(require_trusted_origin)],
)


def _client_ip(identity: ClientIdentity) -> Optional[str]:
    return identity.ip if identity.is_known else None


class ForgotPasswordRequest(CamelModel):
    """Forgot password HTTP request payload"""

    email: Optional[str] = Field(None, description="Account email address")


@router.post(
    "/forgot-password", status_code=status.HTTP_200_OK, response_model=GenericMessageResponse
)
async def forgot_password(
    body: ForgotPasswordRequest = Depends(json_body(ForgotPasswordRequest)),
    identity: ClientIdentity = Depends(get_client_identity),
    limiters: RateLimiters = Depends(get_rate_limiters),
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    email_dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
):
    """
    Request Password Reset

    Always answers with the same message for well-formed input, whether or
    not the account exists. Issuance runs as its own task on its own unit of
    work: if the client disconnects, the token is still stored and emailed.

    Raises:
        - 400 Bad Request: Missing or malformed email
        - 429 Too Many Requests: 5 requests per 10 minutes per client
    """
    await enforce_rate_limit(
        limiters.forgot_password,
        identity.rate_limit_key("auth-forgot"),
        "Too many reset attempts. Please wait before trying again.",
    )

    async def issue():
        async with uow_factory() as uow:
            use_case = RequestPasswordResetUseCase(uow, email_dispatcher)
            return await use_case.execute(body.email, _client_ip(identity))

    issuance = asyncio.ensure_future(issue())
    try:
        result = await asyncio.shield(issuance)
    except asyncio.CancelledError:
        # No response will be sent, so BackgroundTasks never run
        email_dispatcher.detach()
        keep_running(issuance)
        logger.info("Client left during password reset issuance; finishing without it")
        raise

    if result.is_err():
        raise ValidationError(result.error)

    return result.value


class ResetPasswordRequest(CamelModel):
    """Reset password HTTP request payload"""

    token: Optional[str] = Field(None, description="Reset token from the email link")
    new_password: Optional[str] = Field(None, description="New password (min 8 chars)")


@router.post("/reset-password", status_code=status.HTTP_200_OK, response_model=SuccessResponse)
async def reset_password(
    response: Response,
    body: ResetPasswordRequest = Depends(json_body(ResetPasswordRequest)),
    identity: ClientIdentity = Depends(get_client_identity),
    limiters: RateLimiters = Depends(get_rate_limiters),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Confirm Password Reset

    Redeems the token once, sets the new password, revokes every session
    and clears the session cookie.

    Raises:
        - 400 Bad Request: Missing fields, weak password, or any token failure
        - 429 Too Many Requests: 6 requests per 10 minutes per client
    """
    await enforce_rate_limit(
        limiters.reset_password,
        identity.rate_limit_key("auth-reset"),
        "Too many reset attempts. Please wait before trying again.",
    )

    use_case = ConfirmPasswordResetUseCase(uow)
    result = await use_case.execute(body.token, body.new_password)

    if result.is_err():
        raise ValidationError(result.error)

    clear_session_cookie(response)
    return result.value


@router.post("/register", status_code=status.HTTP_200_OK, response_model=UserEnvelope)
async def register(
    response: Response,
    command: RegisterCommand = Depends(json_body(RegisterCommand)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    User Registration

    Creates the account and signs it in.

    Raises:
        - 400 Bad Request: Missing fields, terms not accepted, invalid or
          taken email/username, weak password, registration disabled
    """
    use_case = RegisterUseCase(uow)
    result = await use_case.execute(command)

    if result.is_err():
        raise ValidationError(result.error)

    set_session_cookie(response, result.value.session)
    return UserEnvelope(user=result.value.user)


class CheckAvailabilityRequest(CamelModel):
    """Availability check HTTP request payload"""

    type: Optional[str] = Field(None, description='"username" or "email"')
    value: Optional[str] = Field(None, description="Candidate value")
    exclude_user_id: Optional[str] = Field(None, description="Ignore this user's own value")


@router.post(
    "/check-availability",
    status_code=status.HTTP_200_OK,
    response_model=AvailabilityResponse,
    response_model_exclude_none=True,
)
async def check_availability(
    body: CheckAvailabilityRequest = Depends(json_body(CheckAvailabilityRequest)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Username / Email Availability

    Raises:
        - 400 Bad Request: Missing type or value, or unknown type
    """
    use_case = CheckAvailabilityUseCase(uow)
    result = await use_case.execute(body.type, body.value, body.exclude_user_id)

    if result.is_err():
        raise ValidationError(result.error)

    return result.value


class LoginRequest(CamelModel):
    """Login HTTP request payload"""

    email: Optional[str] = Field(None, description="Account email address")
    password: Optional[str] = Field(None, description="Account password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=UserEnvelope)
async def login(
    response: Response,
    body: LoginRequest = Depends(json_body(LoginRequest)),
    identity: ClientIdentity = Depends(get_client_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    User Login

    Raises:
        - 400 Bad Request: Missing email or password
        - 401 Unauthorized: Invalid credentials
        - 429 Too Many Requests: Too many failures for the email or the client
    """
    use_case = LoginUseCase(uow)
    result = await use_case.execute(body.email, body.password, _client_ip(identity))

    if result.is_err():
        error = result.error
        if error.code == "VALIDATION_ERROR":
            raise ValidationError(error)
        elif error.code == "TOO_MANY_ATTEMPTS":
            retry_after = int(error.details.get("retry_after", 60))
            raise RateLimitError(error, retry_after, headers={"Retry-After": str(retry_after)})
        elif error.code == "INVALID_CREDENTIALS":
            raise AuthError(error)
        raise ServerError(error)

    set_session_cookie(response, result.value.session)
    return UserEnvelope(user=result.value.user)


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Revoke the current session, if any, and clear the cookie"""
    use_case = LogoutUseCase(uow)
    result = await use_case.execute(read_session_token(request))

    clear_session_cookie(response)
    return result.value


@router.get("/session", status_code=status.HTTP_200_OK, response_model=UserEnvelope)
async def current_session(claims: SessionClaims = Depends(get_current_session)):
    """
    Current Session

    Raises:
        - 401 Unauthorized: No live session
    """
    return UserEnvelope(
        user=UserResponse(
            id=claims.user_id,
            email=claims.email,
            username=claims.username,
            is_admin=claims.is_admin,
            email_verified=claims.email_verified,
        )
    )


@router.post(
    "/resend-verification", status_code=status.HTTP_200_OK, response_model=GenericMessageResponse
)
async def resend_verification(
    claims: SessionClaims = Depends(get_current_session),
    limiters: RateLimiters = Depends(get_rate_limiters),
    uow: UnitOfWork = Depends(get_unit_of_work),
    email_dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
):
    """
    Resend Verification Email

    Raises:
        - 401 Unauthorized: No live session
        - 404 Not Found: Account no longer exists
        - 429 Too Many Requests: 3 requests per 10 minutes per user
    """
    await enforce_rate_limit(
        limiters.resend_verification,
        f"auth-resend:{claims.user_id}",
        "Too many verification requests. Please wait before trying again.",
    )

    use_case = ResendVerificationUseCase(uow, email_dispatcher)
    result = await use_case.execute(claims.user_id)

    if result.is_err():
        error = result.error
        if error.code == "USER_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value


def _verify_redirect(outcome: str) -> RedirectResponse:
    base_url = ApplicationConfig.APP_BASE_URL.rstrip("/")
    return RedirectResponse(f"{base_url}/?{urlencode({'verify': outcome})}")


@router.get("/verify-email")
async def verify_email(
    token: Optional[str] = Query(None),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Email Verification

    Always redirects to the app with ?verify=success|invalid|missing|error.
    """
    if not token:
        return _verify_redirect("missing")

    try:
        result = await VerifyEmailUseCase(uow).execute(token)
    except SQLAlchemyError:
        logger.exception("Email verification failed")
        return _verify_redirect("error")

    if result.is_err():
        return _verify_redirect("invalid")

    redirect = _verify_redirect("success")
    clear_session_cookie(redirect)
    return redirect


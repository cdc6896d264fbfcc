from fastapi import APIRouter, Depends, Response, status

from authguard.api.error import ValidationError
from authguard.api.utils.origin import require_trusted_origin
from authguard.api.utils.request_size import json_body
from authguard.api.utils.session_cookie import set_session_cookie
from authguard.app.services.session_manager import SessionClaims
from authguard.app.services.unit_of_work import UnitOfWork
from authguard.app.use_cases.account import (
    AccountUpdateResponse,
    UpdateAccountCommand,
    UpdateAccountUseCase,
)
from authguard.depends import get_current_session, get_unit_of_work

router = APIRouter(
    prefix="/auth",
    tags=["Account"],
    dependencies=[Depends(require_trusted_origin)],
)


@router.patch(
    "/account",
    status_code=status.HTTP_200_OK,
    response_model=AccountUpdateResponse,
    response_model_exclude_none=True,
)
async def update_account(
    response: Response,
    claims: SessionClaims = Depends(get_current_session),
    command: UpdateAccountCommand = Depends(json_body(UpdateAccountCommand)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Update Account

    Actions: updateEmail, updateUsername, updatePassword. A successful change
    revokes every session of the user and sets a new session cookie.

    Raises:
        - 401 Unauthorized: No live session
        - 400 Bad Request: Missing fields, unknown action, or rejected update
    """
    use_case = UpdateAccountUseCase(uow)
    result = await use_case.execute(claims.user_id, command)

    if result.is_err():
        raise ValidationError(result.error)

    set_session_cookie(response, result.value.session)
    return result.value.response

"""Login route."""

from typing import Annotated

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from itemkit.api.dependencies import AppSettings, get_auth_service
from itemkit.api.schemas.auth import LoginRequest, LoginResponse
from itemkit.api.schemas.errors import ErrorResponse
from itemkit.api.utils.responses import ORJSONResponse, success_response
from itemkit.api.validation import validate_body
from itemkit.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def login(
    body: Annotated[LoginRequest, Depends(validate_body(LoginRequest))],
    settings: AppSettings,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> ORJSONResponse:
    """Exchange the shared credential for a token.

    The token is returned in the body and set as an HttpOnly cookie.
    """
    # bcrypt is CPU bound; keep it off the event loop
    issued = await run_in_threadpool(auth_service.login, body.password)

    response = ORJSONResponse(content=success_response(token=issued.token))
    response.set_cookie(
        key=settings.auth_config.cookie_name,
        value=issued.token,
        max_age=issued.max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return response

"""FastAPI dependencies shared by the routers.

Everything is resolved from ``request.app.state``, where ``create_app``
stores the settings, the auth service and the database handle, so several
application instances can coexist (as they do in tests).
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from itemkit.core.config import Settings, get_settings
from itemkit.core.constants import BEARER_SCHEME
from itemkit.core.exceptions import TokenMissingError
from itemkit.domain.items import ItemRepository, ItemService, ItemStore
from itemkit.infrastructure.database.dependencies import DatabaseHandle
from itemkit.services.auth import AuthService


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Verified token content attached to an authenticated request."""

    authenticated: bool
    issued_at_millis: int


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was built with."""
    settings: Settings | None = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_auth_service(request: Request, settings: AppSettings) -> AuthService:
    """Return the application's auth service."""
    service: AuthService | None = getattr(request.app.state, "auth_service", None)
    return service if service is not None else AuthService(settings)


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Find the candidate token of a request.

    A non-empty ``Authorization: Bearer`` value wins over the cookie.
    """
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() == BEARER_SCHEME.lower() and credentials.strip():
        return credentials.strip()

    return request.cookies.get(cookie_name) or None


def require_auth(
    request: Request,
    settings: AppSettings,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthContext:
    """Reject the request unless it carries a valid, unexpired token.

    Raises:
        TokenMissingError: If neither header nor cookie carries a token.
        TokenInvalidError: If the token does not verify.
        TokenExpiredError: If the token verifies but has expired.
    """
    token = extract_token(request, settings.auth_config.cookie_name)
    if token is None:
        raise TokenMissingError(context={"path": request.url.path})

    claims = auth_service.verify(token)
    auth = AuthContext(
        authenticated=claims.authenticated,
        issued_at_millis=claims.issued_at_millis,
    )
    request.state.auth = auth
    return auth


def get_item_store(database: DatabaseHandle) -> ItemStore:
    """Return the item store bound to the application's pool."""
    return ItemRepository(database.session_factory)


def get_item_service(
    store: Annotated[ItemStore, Depends(get_item_store)],
    settings: AppSettings,
) -> ItemService:
    """Return an item service over the injected store."""
    return ItemService(store, settings.pagination_config)

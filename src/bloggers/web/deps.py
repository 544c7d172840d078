from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from bloggers.app import App
from bloggers.config import Config
from bloggers.core.modules.auth.models import SessionIdentity
from bloggers.errors import AuthenticationError

REFRESH_TOKEN_COOKIE = "refreshToken"

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)
refresh_cookie_scheme = APIKeyCookie(name=REFRESH_TOKEN_COOKIE, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_config(request: Request) -> Config:
    return cast(Config, request.app.state.config)


async def get_client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def get_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> str:
    """Get the access token from the Authorization Bearer header."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError
    return credentials.credentials


async def get_refresh_token(token_cookie: Annotated[str | None, Depends(refresh_cookie_scheme)] = None) -> str:
    """Get the refresh token from its HTTP-only cookie."""
    if not token_cookie:
        raise AuthenticationError
    return token_cookie


async def get_session_identity(
    app: Annotated[App, Depends(get_app)], refresh_token: Annotated[str, Depends(get_refresh_token)]
) -> SessionIdentity:
    """Resolve the refresh cookie to the live session it belongs to."""
    return await app.authenticate_refresh_token(refresh_token)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
ConfigDep = Annotated[Config, Depends(get_config)]
ClientIpDep = Annotated[str, Depends(get_client_ip)]
AccessTokenDep = Annotated[str, Depends(get_access_token)]
RefreshTokenDep = Annotated[str, Depends(get_refresh_token)]
SessionIdentityDep = Annotated[SessionIdentity, Depends(get_session_identity)]

"""Request Dependencies — session key extraction and optional shared-credential auth.

Invariants:
    - get_session_key returns the raw Authorization header, or "anonymous" when absent/empty
    - The session key is a partition key, not an identity: nothing here authenticates it
    - require_basic_auth is a no-op unless AUTH_USER and AUTH_PASSWORD are both configured
    - Credential comparison is constant-time

Design Decisions:
    - Settings read from app.state so each app built by create_app carries its own
    - With basic auth on, the Authorization header ("Basic ...") doubles as the session key:
      every client sharing the credential pair shares one partition
"""

import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from stocktake.config import Settings
from stocktake.core.domain_types import ANONYMOUS_SESSION_KEY, SessionKey

logger = logging.getLogger(__name__)

_basic = HTTPBasic(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with (see main.create_app)."""
    return request.app.state.settings


def get_session_key(
    authorization: str | None = Header(default=None),
) -> SessionKey:
    """Partition key for the request, taken verbatim from the Authorization header."""
    if not authorization:
        return ANONYMOUS_SESSION_KEY
    return SessionKey(authorization)


def _matches(provided: str, expected: str) -> bool:
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_basic_auth(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(_basic),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Gate every API route behind the single configured credential pair."""
    if not settings.auth_enabled:
        return
    if credentials is not None:
        user_ok = _matches(credentials.username, settings.auth_user)
        password_ok = _matches(credentials.password, settings.auth_password)
        if user_ok and password_ok:
            return
    logger.warning(
        "Rejected request without valid credentials",
        extra={"path": request.url.path, "error_code": "UNAUTHORIZED"},
    )
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Acceso no autorizado. Necesitas credenciales válidas.",
        headers={"WWW-Authenticate": "Basic"},
    )

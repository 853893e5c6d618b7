# =============================================================================
# API Dependencies - Authentication & Service Lookup
# =============================================================================
#
#   get_app_settings()   - Settings instance the app was built with
#   get_search_service() - the shared AgenticSearchService
#   get_current_caller() - validate the Bearer API key, resolve the caller's
#                          document scope (owner id)
#
# Auth is toggleable. With auth_enabled=False every request is anonymous and
# searches `anonymous_owner_id` (None = all documents). With auth enabled,
# the SHA-256 digest of the presented key must appear in `api_keys`.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from agentic_rag.config import Settings
from agentic_rag.services.auth import hash_api_key
from agentic_rag.services.search_service import AgenticSearchService

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI docs (shows "Authorize" button in Swagger UI)
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Caller:
    """The authenticated (or anonymous) caller of a request."""

    owner_id: str | None
    key_prefix: str | None = None


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_search_service(request: Request) -> AgenticSearchService:
    return request.app.state.search_service


async def get_current_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    config: Settings = Depends(get_app_settings),
) -> Caller:
    """
    FastAPI dependency that identifies the caller.

    Raises:
        HTTPException 401: Missing or unknown API key (auth enabled only).
    """
    if not config.auth_enabled:
        return Caller(owner_id=config.anonymous_owner_id)

    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Provide "
            "'Authorization: Bearer <key>' header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    raw_key = credentials.credentials
    owner_id = config.api_keys.get(hash_api_key(raw_key))
    if owner_id is None:
        logger.warning("Rejected unknown API key (prefix=%s)", raw_key[:8])
        raise HTTPException(
            status_code=401,
            detail="Invalid API key.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    caller = Caller(owner_id=owner_id, key_prefix=raw_key[:8])
    request.state.caller = caller
    return caller

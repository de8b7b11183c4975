"""FastAPI APIRouter exposing the glossary over JSON-RPC 2.0.

Reads are open to everyone. Writes need a Bearer token: with the Supabase
backend it is the user's access token and is forwarded to the store, where
row level security decides; with the local backend it must match
TRANSTERM_WRITE_TOKEN when that is set.

The dispatcher is a flat `_METHODS` registry mapping JSON-RPC method names to
`(handler, writes)` pairs so adding a new handler is a one-line change.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from transterm.errors import AuthorizationError
from transterm.persistence import GlossaryStore, get_store
from transterm.rpc import ErrorCode, RpcError, reply
from transterm.rpc_handlers.terms import (
    handle_terms_create,
    handle_terms_delete,
    handle_terms_get,
    handle_terms_list,
    handle_terms_lookup,
    handle_terms_search,
    handle_terms_update,
)
from transterm.rpc_handlers.translations import (
    handle_translations_promote,
    handle_translations_reorder,
)
from transterm.services import GlossaryService
from transterm.session import Session, SessionContext
from transterm.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------------------------------------------------------------------------
# Session dependency
# ---------------------------------------------------------------------------

_bearer_scheme = HTTPBearer(auto_error=False)


def session_from_token(token: str | None) -> SessionContext:
    """Session context for one request; signed out without a usable token."""
    if not token:
        return SessionContext()
    if settings.backend == "sqlite" and settings.write_token and token != settings.write_token:
        logger.info("Rejected write token for local backend")
        return SessionContext()
    return SessionContext(Session(access_token=token))


async def resolve_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),  # noqa: B008
) -> SessionContext:
    """FastAPI dependency: the caller's session, possibly signed out."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return SessionContext()
    return session_from_token(credentials.credentials)


def resolve_store() -> GlossaryStore:
    """FastAPI dependency: the configured store."""
    return get_store()


# ---------------------------------------------------------------------------
# Method registry
#
# Each entry is (handler_callable, writes). Handlers are called as
# handler(service, **params). Methods with writes=True are refused with
# an AuthorizationError before the handler runs when the caller is signed out.
# ---------------------------------------------------------------------------

_METHODS: dict[str, tuple[Callable[..., Any], bool]] = {
    # terms
    "terms/search": (handle_terms_search, False),
    "terms/lookup": (handle_terms_lookup, False),
    "terms/list": (handle_terms_list, False),
    "terms/get": (handle_terms_get, False),
    "terms/create": (handle_terms_create, True),
    "terms/update": (handle_terms_update, True),
    "terms/delete": (handle_terms_delete, True),
    # translations
    "translations/reorder": (handle_translations_reorder, True),
    "translations/promote": (handle_translations_promote, True),
}


# ---------------------------------------------------------------------------
# JSON-RPC 2.0 dispatcher
# ---------------------------------------------------------------------------


def _error(req_id: str | int | None, code: int, message: str, data: Any = None) -> dict[str, Any]:
    return reply(req_id, error=RpcError(code, message, data))


async def _dispatch(service: GlossaryService, body: dict[str, Any]) -> dict[str, Any]:
    """Core JSON-RPC 2.0 dispatcher for a single request object.

    Separated from the route handler so it can be tested without a full HTTP
    request cycle.
    """
    req_id: str | int | None = body.get("id")
    method: str | None = body.get("method")
    params: Any = body.get("params") or {}

    if not isinstance(method, str) or not method:
        return _error(req_id, ErrorCode.INVALID_REQUEST, "Invalid Request: method is required")

    if not isinstance(params, dict):
        return _error(req_id, ErrorCode.INVALID_REQUEST, "Invalid Request: params must be an object")

    entry = _METHODS.get(method)
    if entry is None:
        return _error(req_id, ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}")

    handler, writes = entry

    if writes and not service.session.can_write:
        return reply(req_id, error=RpcError.from_domain(AuthorizationError(operation=method)))

    try:
        result = await asyncio.to_thread(handler, service, **params)
        return reply(req_id, result=result)
    except RpcError as exc:
        return reply(req_id, error=exc)
    except TypeError as exc:
        # Wrong / missing parameters
        return _error(req_id, ErrorCode.INVALID_PARAMS, f"Invalid parameters: {exc}")
    except Exception as exc:
        logger.exception("Unexpected error in method=%s", method)
        return _error(
            req_id,
            ErrorCode.INTERNAL,
            f"Internal error in {method}",
            {"error_type": type(exc).__name__},
        )


@router.post("/rpc")
async def rpc_dispatch(
    request: Request,
    session: SessionContext = Depends(resolve_session),  # noqa: B008
    store: GlossaryStore = Depends(resolve_store),  # noqa: B008
) -> dict[str, Any]:
    """JSON-RPC 2.0 endpoint.

    Accepts a single JSON-RPC request object (batch not supported).
    """
    try:
        body = await request.json()
    except ValueError:
        return _error(None, ErrorCode.PARSE, "Parse error: invalid JSON")

    if not isinstance(body, dict):
        return _error(None, ErrorCode.INVALID_REQUEST, "Invalid Request: expected a JSON object")

    service = GlossaryService(store.for_session(session), session)
    return await _dispatch(service, body)

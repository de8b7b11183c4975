"""Terms RPC handlers - search, lookup and term CRUD.

Translations are sent in display order; the first one becomes the preferred
translation when the term is saved.
"""

from __future__ import annotations

import logging
from typing import Any

from transterm.rpc import ErrorCode, RpcError
from transterm.rpc.params import (
    aliases_param,
    list_param,
    optional_text_param,
    term_id_param,
    text_param,
    validated,
)
from transterm.search import find_exact, offer_create
from transterm.services import GlossaryService, TermDraft

from ._base import rpc_handler

logger = logging.getLogger(__name__)


def _translation_entry(value: Any, name: str) -> dict[str, str | None]:
    """A translation is either its text or ``{"text": ..., "usage": ...}``."""
    if isinstance(value, str):
        return {"text": value, "usage": None}
    if isinstance(value, dict):
        return {
            "text": text_param(value.get("text"), f"{name}.text", allow_empty=True),
            "usage": optional_text_param(value.get("usage"), f"{name}.usage"),
        }
    raise RpcError(ErrorCode.INVALID_PARAMS, f"{name} must be a string or an object")


def _translations(value: Any, name: str) -> list[dict[str, str | None]]:
    return list_param(value, name, max_length=200, each=_translation_entry)


def _draft(
    name: str,
    translations: list[dict[str, str | None]],
    aliases: list[str] | str,
    note: str | None,
) -> TermDraft:
    return TermDraft.build(
        name,
        [t["text"] or "" for t in translations],
        aliases=aliases,
        note=note,
        usages={i: t["usage"] for i, t in enumerate(translations) if t["usage"]},
    )


def _notices(service: GlossaryService) -> list[dict[str, Any]]:
    return [notice.to_dict() for notice in service.notices]


# =============================================================================
# Read Handlers
# =============================================================================


@rpc_handler("terms/search")
@validated(query=lambda v, n: text_param(v, n, max_length=200, allow_empty=True))
def handle_terms_search(service: GlossaryService, *, query: str) -> dict[str, Any]:
    """Search terms by name substring or exact alias.

    Returns:
        terms: matches ordered by name
        exact_id: id of the match to open on Enter, if any
        offer_create: whether to offer registering the query as a new term
    """
    terms = service.search(query)
    exact = find_exact(terms, query)
    return {
        "terms": [t.to_dict() for t in terms],
        "exact_id": exact.id if exact else None,
        "offer_create": offer_create(query, terms, service.session),
    }


@rpc_handler("terms/lookup")
@validated(name=lambda v, n: text_param(v, n, max_length=200))
def handle_terms_lookup(service: GlossaryService, *, name: str) -> dict[str, Any]:
    terms = service.lookup(name)
    return {"terms": [t.to_dict() for t in terms]}


@rpc_handler("terms/list")
def handle_terms_list(service: GlossaryService) -> dict[str, Any]:
    return {"terms": [t.to_dict() for t in service.list_terms()]}


@rpc_handler("terms/get")
@validated(term_id=term_id_param)
def handle_terms_get(service: GlossaryService, *, term_id: int) -> dict[str, Any]:
    return {"term": service.get_term(term_id).to_dict()}


# =============================================================================
# Write Handlers
# =============================================================================


@rpc_handler("terms/create")
@validated(
    name=lambda v, n: text_param(v, n, max_length=500, allow_empty=True),
    translations=_translations,
    aliases=aliases_param,
    note=optional_text_param,
)
def handle_terms_create(
    service: GlossaryService,
    *,
    name: str,
    translations: list[dict[str, str | None]],
    aliases: list[str] | str = "",
    note: str | None = None,
) -> dict[str, Any]:
    """Register a new term with its ranked translations."""
    term = service.create_term(_draft(name, translations, aliases, note))
    return {"term": term.to_dict(), "notices": _notices(service)}


@rpc_handler("terms/update")
@validated(
    term_id=term_id_param,
    name=lambda v, n: text_param(v, n, max_length=500, allow_empty=True),
    translations=_translations,
    aliases=aliases_param,
    note=optional_text_param,
)
def handle_terms_update(
    service: GlossaryService,
    *,
    term_id: int,
    name: str,
    translations: list[dict[str, str | None]],
    aliases: list[str] | str = "",
    note: str | None = None,
) -> dict[str, Any]:
    """Replace a term and its translations with the edit form contents."""
    term = service.update_term(term_id, _draft(name, translations, aliases, note))
    return {"term": term.to_dict(), "notices": _notices(service)}


@rpc_handler("terms/delete")
@validated(term_id=term_id_param)
def handle_terms_delete(service: GlossaryService, *, term_id: int) -> dict[str, Any]:
    service.delete_term(term_id)
    return {"ok": True, "notices": _notices(service)}

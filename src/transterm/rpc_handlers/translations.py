"""Translations RPC handlers - drag reorder and promote-to-preferred.

Both load the term's ranked list, apply the change through the synchronizer
and report the resulting order. A failed save is not an RPC error: the list
comes back in its previous order with state ``rolled_back`` and an error
notice, exactly as the card would show it.
"""

from __future__ import annotations

from typing import Any

from transterm.errors import AuthorizationError
from transterm.rpc.params import item_id_param, term_id_param, validated
from transterm.services import GlossaryService
from transterm.synchronizer import RankedListSynchronizer

from ._base import rpc_handler


def _result(sync: RankedListSynchronizer, applied: bool) -> dict[str, Any]:
    return {
        "applied": applied,
        "state": sync.state.value,
        "items": [item.to_dict() for item in sync.items],
        "notices": [notice.to_dict() for notice in sync.notices],
    }


def _load(service: GlossaryService, term_id: int, operation: str) -> RankedListSynchronizer:
    if not service.session.can_write:
        raise AuthorizationError(operation=operation)
    service.get_term(term_id)
    return service.synchronizer_for(term_id)


@rpc_handler("translations/reorder")
@validated(term_id=term_id_param, item_id=item_id_param, over_id=item_id_param)
def handle_translations_reorder(
    service: GlossaryService,
    *,
    term_id: int,
    item_id: int | str,
    over_id: int | str,
) -> dict[str, Any]:
    """Move ``item_id`` onto the slot of ``over_id``."""
    sync = _load(service, term_id, "translations/reorder")
    applied = sync.reorder(item_id, over_id)
    return _result(sync, applied)


@rpc_handler("translations/promote")
@validated(term_id=term_id_param, item_id=item_id_param)
def handle_translations_promote(
    service: GlossaryService,
    *,
    term_id: int,
    item_id: int | str,
) -> dict[str, Any]:
    """Make ``item_id`` the preferred translation."""
    sync = _load(service, term_id, "translations/promote")
    applied = sync.promote(item_id)
    return _result(sync, applied)

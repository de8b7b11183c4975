"""Persistence service protocol.

Both stores expose the same operations. Failures surface as
PersistenceFailure; per-item batch outcomes come back as WriteResult.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ..models import ItemId, NewItem, PositionWrite, RankedItem, Term, WriteResult
from ..session import SessionContext


@runtime_checkable
class RankedItemStore(Protocol):
    """Ranked translation rows keyed by parent term id."""

    def fetch_ranked_items(self, parent_id: ItemId) -> list[RankedItem]:
        """Rows of one parent in whatever order the store returns them."""
        ...

    def bulk_upsert_positions(
        self, parent_id: ItemId, writes: Sequence[PositionWrite]
    ) -> list[WriteResult]:
        """Persist a full re-ranking as one call."""
        ...

    def delete_item(self, item_id: ItemId) -> None:
        ...

    def delete_items_for_parent(self, parent_id: ItemId) -> None:
        ...

    def insert_items(self, parent_id: ItemId, items: Sequence[NewItem]) -> list[RankedItem]:
        ...


@runtime_checkable
class TermStore(Protocol):
    """Term rows with their translations embedded."""

    def search_terms(self, query: str) -> list[Term]:
        ...

    def lookup_terms(self, name: str) -> list[Term]:
        ...

    def list_terms(self) -> list[Term]:
        ...

    def get_term(self, term_id: int) -> Term | None:
        ...

    def insert_term(self, *, name: str, aliases: list[str], note: str | None) -> Term:
        ...

    def update_term(self, term_id: int, *, name: str, aliases: list[str], note: str | None) -> None:
        ...

    def delete_term(self, term_id: int) -> None:
        ...


class GlossaryStore(RankedItemStore, TermStore, Protocol):
    """Everything the glossary service needs from a backend."""

    def for_session(self, session: SessionContext) -> GlossaryStore:
        """The store as seen by the holder of ``session``."""
        ...

    def close(self) -> None:
        ...

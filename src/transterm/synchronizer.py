"""Ranked list synchronizer.

Keeps an in-memory ranked list consistent with the store. Reorder and
promote are applied locally first, then the whole re-ranking is written in
one batch; if any row fails the list snapshot taken before the change is put
back and an error notice is raised.

Lists without a store are drafts (the translation and alias fields of a
term form): every operation stays local and positions are only fixed by
``finalize()`` when the form is saved.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from enum import Enum

from .models import ItemId, Notice, NoticeLevel, PositionWrite, RankedItem
from .persistence.base import RankedItemStore
from .ranking import (
    Move,
    MutationIntent,
    Promote,
    apply_mutation,
    assign_positions,
    drifted,
    index_of,
    move_index,
    normalize_for_display,
    split_entries,
)
from .session import SessionContext

logger = logging.getLogger(__name__)

ItemsListener = Callable[[tuple[RankedItem, ...]], None]
NoticeSink = Callable[[Notice], None]

PROMOTED = "Set as preferred translation"
PROMOTE_FAILED = "Couldn't save changes"
REORDER_FAILED = "Couldn't save order"
LAST_ITEM_REQUIRED = "At least one entry is required"

# Local ids for draft entries; only unique within this process.
_draft_ids = itertools.count(1)


def new_draft_id() -> str:
    return f"draft-{next(_draft_ids)}"


class SyncState(str, Enum):
    """Lifecycle of one list instance."""

    LOADING = "loading"
    READY = "ready"
    MUTATING = "mutating"
    ROLLED_BACK = "rolled_back"


class RankedListSynchronizer:
    """Owns one parent's ranked list and keeps the store in step with it.

    Example:
        sync = RankedListSynchronizer.load(store, term_id, session=ctx)
        sync.promote(translation_id)
        sync.items[0].is_preferred  # True
    """

    def __init__(
        self,
        items: tuple[RankedItem, ...] = (),
        *,
        parent_id: ItemId | None = None,
        store: RankedItemStore | None = None,
        session: SessionContext | None = None,
        notify: NoticeSink | None = None,
        require_non_empty: bool = False,
    ) -> None:
        self.parent_id = parent_id
        self.require_non_empty = require_non_empty
        self.state = SyncState.READY
        self.notices: list[Notice] = []
        self._items = tuple(items)
        self._store = store
        self._session = session
        self._notify = notify
        self._listeners: list[ItemsListener] = []
        self._lock = threading.RLock()

    @classmethod
    def load(
        cls,
        store: RankedItemStore,
        parent_id: ItemId,
        *,
        session: SessionContext | None = None,
        notify: NoticeSink | None = None,
        require_non_empty: bool = False,
    ) -> RankedListSynchronizer:
        """Fetch a parent's items and order them for display.

        Positions and the preferred flag are derived from the sorted order;
        stale stored values are not written back here.
        """
        sync = cls(
            parent_id=parent_id,
            store=store,
            session=session,
            notify=notify,
            require_non_empty=require_non_empty,
        )
        sync.state = SyncState.LOADING
        fetched = store.fetch_ranked_items(parent_id)
        sync._items = normalize_for_display(fetched)
        stale = drifted(fetched, sync._items)
        if stale:
            logger.debug("Parent %s has %d rows with stale rank: %s", parent_id, len(stale), stale)
        sync.state = SyncState.READY
        return sync

    @property
    def items(self) -> tuple[RankedItem, ...]:
        return self._items

    @property
    def is_draft(self) -> bool:
        return self._store is None or self.parent_id is None

    def texts(self) -> list[str]:
        return [item.text for item in self._items]

    # =========================================================================
    # Listeners
    # =========================================================================

    def subscribe(self, listener: ItemsListener) -> Callable[[], None]:
        """Call ``listener`` with the items on every visible change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._items)
            except Exception:
                logger.exception("Items listener %r failed", listener)

    def _raise_notice(self, level: NoticeLevel, message: str) -> None:
        notice = Notice(level, message)
        self.notices.append(notice)
        if self._notify is not None:
            self._notify(notice)

    # =========================================================================
    # Reordering
    # =========================================================================

    def reorder(self, item_id: ItemId, over_id: ItemId) -> bool:
        """Drop ``item_id`` onto the slot held by ``over_id``.

        Returns True when the new order was applied (and saved, for a
        persisted list).
        """
        return self._commit(Move(item_id, over_id), success=None, failure=REORDER_FAILED)

    def promote(self, item_id: ItemId) -> bool:
        """Make ``item_id`` the preferred entry by moving it to the front."""
        return self._commit(Promote(item_id), success=PROMOTED, failure=PROMOTE_FAILED)

    def _commit(self, intent: MutationIntent, *, success: str | None, failure: str) -> bool:
        with self._lock:
            if self.is_draft:
                return self._apply_draft(intent)

            if self._session is None or not self._session.can_write:
                logger.debug("Ignoring %r without write access", intent)
                return False

            snapshot = self._items
            updated = apply_mutation(snapshot, intent)
            if updated is snapshot:
                return False

            self.state = SyncState.MUTATING
            self._items = updated
            self._emit()

            writes = [
                PositionWrite(
                    id=item.id,
                    position=item.position,
                    is_preferred=bool(item.is_preferred),
                    text=item.text,
                )
                for item in updated
            ]
            error = self._persist(writes)

            if error is not None:
                logger.warning("Rolling back %r on %s: %s", intent, self.parent_id, error)
                self._items = snapshot
                self.state = SyncState.ROLLED_BACK
                self._raise_notice(NoticeLevel.ERROR, failure)
                self._emit()
                return False

            self.state = SyncState.READY
            if success:
                self._raise_notice(NoticeLevel.SUCCESS, success)
            return True

    def _persist(self, writes: list[PositionWrite]) -> str | None:
        """Write the batch; return a description of the first failure, if any."""
        try:
            results = self._store.bulk_upsert_positions(self.parent_id, writes)
        except Exception as e:
            return str(e)

        failed = [r for r in results if not r.ok]
        if failed:
            return f"{len(failed)} of {len(writes)} rows failed ({failed[0].id}: {failed[0].error})"
        if len(results) != len(writes):
            return f"store confirmed {len(results)} of {len(writes)} rows"
        return None

    def _apply_draft(self, intent: MutationIntent) -> bool:
        # Drafts keep unsaved entries unranked; only the order changes.
        if isinstance(intent, Promote):
            old_index, new_index = index_of(self._items, intent.item_id), 0
        else:
            if intent.item_id == intent.over_id:
                return False
            old_index = index_of(self._items, intent.item_id)
            new_index = index_of(self._items, intent.over_id)
        if old_index == -1 or new_index == -1 or old_index == new_index:
            return False
        self._items = move_index(self._items, old_index, new_index)
        self._emit()
        return True

    # =========================================================================
    # Draft editing
    # =========================================================================

    def append(self, texts: str) -> tuple[RankedItem, ...]:
        """Append the comma separated entries of ``texts`` to the end.

        New entries get fresh local ids and stay unranked until saved.
        Returns the appended items.
        """
        with self._lock:
            added = tuple(
                RankedItem(id=new_draft_id(), text=text, parent_id=self.parent_id)
                for text in split_entries(texts)
            )
            if added:
                self._items = self._items + added
                self._emit()
            return added

    def remove(self, item_id: ItemId) -> bool:
        """Drop an entry from the local list."""
        with self._lock:
            index = index_of(self._items, item_id)
            if index == -1:
                return False
            if self.require_non_empty and len(self._items) == 1:
                self._raise_notice(NoticeLevel.ERROR, LAST_ITEM_REQUIRED)
                return False
            self._items = self._items[:index] + self._items[index + 1:]
            self._emit()
            return True

    def update_text(self, item_id: ItemId, text: str) -> bool:
        """Replace the text of one entry (edit form input)."""
        return self._edit(item_id, text=text)

    def set_usage(self, item_id: ItemId, usage: str | None) -> bool:
        return self._edit(item_id, usage=usage or None)

    def _edit(self, item_id: ItemId, **changes: object) -> bool:
        with self._lock:
            index = index_of(self._items, item_id)
            if index == -1:
                return False
            items = list(self._items)
            items[index] = replace(items[index], **changes)
            self._items = tuple(items)
            self._emit()
            return True

    def finalize(self) -> tuple[RankedItem, ...]:
        """The list as it will be saved: dense positions, preferred at 0."""
        with self._lock:
            return assign_positions(self._items)

"""Glossary Service - term and translation management.

Wraps a GlossaryStore with the rules the admin forms enforce: a term needs a
name and at least one translation, every translation needs text, and only a
signed-in user may change anything. Saving a form writes the translations
with positions fixed from the draft order, so the first entry is always the
preferred one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..errors import AuthorizationError, NotFoundError, PersistenceFailure, ValidationError
from ..models import NewItem, Notice, NoticeLevel, RankedItem, Term
from ..persistence.base import GlossaryStore
from ..ranking import assign_positions, split_entries
from ..session import SessionContext
from ..synchronizer import NoticeSink, RankedListSynchronizer, new_draft_id

logger = logging.getLogger(__name__)

TERM_CREATED = "Term registered"
TERM_UPDATED = "Term updated"
TERM_DELETED = "Term deleted"
TERM_UPDATE_FAILED = "Couldn't save changes"


def _draft_list(texts: Iterable[str], *, require_non_empty: bool = False) -> RankedListSynchronizer:
    items = tuple(RankedItem(id=new_draft_id(), text=text) for text in texts)
    return RankedListSynchronizer(items, require_non_empty=require_non_empty)


@dataclass
class TermDraft:
    """Unsaved state of the new/edit term form."""

    name: str = ""
    note: str | None = None
    translations: RankedListSynchronizer = field(
        default_factory=lambda: _draft_list([""], require_non_empty=True)
    )
    aliases: RankedListSynchronizer = field(default_factory=lambda: _draft_list([]))

    @classmethod
    def build(
        cls,
        name: str,
        translations: Iterable[str],
        *,
        aliases: Iterable[str] | str = (),
        note: str | None = None,
        usages: dict[int, str] | None = None,
    ) -> TermDraft:
        """Draft from plain values; ``aliases`` may be a comma separated string."""
        alias_list = split_entries(aliases) if isinstance(aliases, str) else list(aliases)
        draft = cls(
            name=name,
            note=note,
            translations=_draft_list(translations, require_non_empty=True),
            aliases=_draft_list(alias_list),
        )
        for index, usage in (usages or {}).items():
            item = draft.translations.items[index]
            draft.translations.set_usage(item.id, usage)
        return draft

    @classmethod
    def from_term(cls, term: Term) -> TermDraft:
        """Draft prefilled from a saved term (edit form)."""
        return cls(
            name=term.name,
            note=term.note,
            translations=RankedListSynchronizer(term.translations, require_non_empty=True),
            aliases=_draft_list(term.aliases),
        )

    def validate(self) -> None:
        """Raise ValidationError for the first problem in the form."""
        if not self.name.strip():
            raise ValidationError("Enter a term name", field="name")
        items = self.translations.items
        if not items:
            raise ValidationError("Add at least one translation", field="translations")
        for index, item in enumerate(items):
            if not item.text.strip():
                raise ValidationError(
                    "Fill in every translation", field="translations", index=index
                )

    def alias_values(self) -> list[str]:
        return [text.strip() for text in self.aliases.texts() if text.strip()]

    def new_items(self) -> list[NewItem]:
        return [
            NewItem(
                text=item.text.strip(),
                position=item.position,
                is_preferred=bool(item.is_preferred),
                usage=item.usage or None,
            )
            for item in self.translations.finalize()
        ]


class GlossaryService:
    """Unified interface for glossary reads and writes."""

    def __init__(
        self,
        store: GlossaryStore,
        session: SessionContext | None = None,
        *,
        notify: NoticeSink | None = None,
    ) -> None:
        self._store = store
        self.session = session or SessionContext()
        self._notify = notify
        self.notices: list[Notice] = []

    def _raise_notice(self, level: NoticeLevel, message: str) -> None:
        notice = Notice(level, message)
        self.notices.append(notice)
        if self._notify is not None:
            self._notify(notice)

    def _require_write(self, operation: str) -> None:
        if not self.session.can_write:
            raise AuthorizationError(operation=operation)

    # =========================================================================
    # Reads
    # =========================================================================

    def search(self, query: str) -> list[Term]:
        """Terms whose name contains ``query`` or that carry it as an alias."""
        return self._store.search_terms(query)

    def lookup(self, name: str) -> list[Term]:
        """Terms named ``name`` exactly, or aliased to it (term page by slug)."""
        return self._store.lookup_terms(name)

    def list_terms(self) -> list[Term]:
        """Every term, newest first (admin list)."""
        return self._store.list_terms()

    def get_term(self, term_id: int) -> Term:
        term = self._store.get_term(term_id)
        if term is None:
            raise NotFoundError(
                f"Term not found: {term_id}", resource_type="term", resource_id=term_id
            )
        return term

    def synchronizer_for(self, term_id: int) -> RankedListSynchronizer:
        """Live ranked list of a saved term's translations."""
        return RankedListSynchronizer.load(
            self._store,
            term_id,
            session=self.session,
            notify=self._notify,
            require_non_empty=True,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def create_term(self, draft: TermDraft) -> Term:
        self._require_write("terms/create")
        draft.validate()

        term = self._store.insert_term(
            name=draft.name.strip(),
            aliases=draft.alias_values(),
            note=draft.note or None,
        )
        try:
            translations = self._store.insert_items(term.id, draft.new_items())
        except PersistenceFailure:
            logger.warning("Translations for new term %s failed; removing the term", term.id)
            self._store.delete_term(term.id)
            raise

        logger.info("Created term %s (%s) with %d translations", term.id, term.name, len(translations))
        self._raise_notice(NoticeLevel.SUCCESS, TERM_CREATED)
        term.translations = tuple(translations)
        return term

    def update_term(self, term_id: int, draft: TermDraft) -> Term:
        """Save an edit form: the term row, then its translations from scratch."""
        self._require_write("terms/update")
        draft.validate()
        previous = self.get_term(term_id)

        self._store.update_term(
            term_id,
            name=draft.name.strip(),
            aliases=draft.alias_values(),
            note=draft.note or None,
        )
        self._store.delete_items_for_parent(term_id)
        try:
            self._store.insert_items(term_id, draft.new_items())
        except PersistenceFailure:
            logger.warning("Translations for term %s failed; restoring the previous version", term_id)
            try:
                self._restore(previous)
            except PersistenceFailure:
                logger.error("Could not restore term %s", term_id, exc_info=True)
            self._raise_notice(NoticeLevel.ERROR, TERM_UPDATE_FAILED)
            raise

        logger.info("Updated term %s", term_id)
        self._raise_notice(NoticeLevel.SUCCESS, TERM_UPDATED)
        return self.get_term(term_id)

    def _restore(self, term: Term) -> None:
        self._store.update_term(term.id, name=term.name, aliases=list(term.aliases), note=term.note)
        self._store.delete_items_for_parent(term.id)
        self._store.insert_items(
            term.id,
            [
                NewItem(text=item.text, position=item.position, is_preferred=item.is_preferred,
                        usage=item.usage)
                for item in assign_positions(term.translations)
            ],
        )

    def delete_term(self, term_id: int) -> None:
        self._require_write("terms/delete")
        self._store.delete_items_for_parent(term_id)
        self._store.delete_term(term_id)
        logger.info("Deleted term %s", term_id)
        self._raise_notice(NoticeLevel.SUCCESS, TERM_DELETED)

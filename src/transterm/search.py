"""Term search with debounce and stale-response suppression.

The search box calls ``SearchController.submit`` on every keystroke. The
fetch runs only after the input has been quiet for the debounce interval,
and each submit bumps a generation counter; a fetch that finishes after a
newer submit is thrown away, so the latest query always wins.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence

from .models import Term
from .session import SessionContext
from .settings import settings

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], list[Term]]
ResultsListener = Callable[[str, list[Term]], None]


def find_exact(results: Sequence[Term], query: str) -> Term | None:
    """The result whose name equals ``query`` ignoring case, if any."""
    wanted = query.strip().lower()
    if not wanted:
        return None
    for term in results:
        if term.name.lower() == wanted:
            return term
    return None


def offer_create(query: str, results: Sequence[Term], session: SessionContext | None) -> bool:
    """Whether to offer registering ``query`` as a new term.

    Only writers see the offer, and only when no result already has that
    exact name.
    """
    if session is None or not session.can_write:
        return False
    if not query.strip():
        return False
    return find_exact(results, query) is None


class SearchController:
    """Debounced search over a store's ``search_terms``."""

    def __init__(
        self,
        search: SearchFn,
        *,
        debounce_seconds: float | None = None,
        on_results: ResultsListener | None = None,
    ) -> None:
        self._search = search
        self.debounce_seconds = (
            settings.search_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self._on_results = on_results
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: threading.Timer | None = None
        self._pending: tuple[int, str] | None = None
        self.query = ""
        self.results: list[Term] = []

    @property
    def generation(self) -> int:
        return self._generation

    def submit(self, query: str) -> int:
        """Schedule a search for ``query``; returns its generation."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self.query = query
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

            if not query.strip():
                self._pending = None
                self.results = []
                return generation

            self._pending = (generation, query)
            if self.debounce_seconds > 0:
                self._timer = threading.Timer(self.debounce_seconds, self._fire, args=(generation,))
                self._timer.daemon = True
                self._timer.start()
                return generation

        self._run(generation, query)
        return generation

    def flush(self) -> list[Term]:
        """Run the pending search now instead of waiting for the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            pending = self._pending
        if pending is not None:
            self._run(*pending)
        return self.results

    def cancel(self) -> None:
        """Drop any pending search (view teardown)."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            pending = self._pending
        if pending is not None and pending[0] == generation:
            self._run(*pending)

    def _run(self, generation: int, query: str) -> None:
        with self._lock:
            if self._pending is not None and self._pending[0] == generation:
                self._pending = None

        try:
            results = self._search(query)
        except Exception as e:
            logger.warning("Search for %r failed: %s", query, e)
            return

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding stale results for %r", query)
                return
            self.results = results
        if self._on_results is not None:
            self._on_results(query, results)

    def exact_match(self) -> Term | None:
        """Result to open when the user presses Enter."""
        return find_exact(self.results, self.query)

"""Supabase REST client for the glossary.

Talks to the PostgREST endpoint of the hosted backend (``/rest/v1``).
Row level security on the backend decides what the caller may change; this
client only forwards the session's access token.

Reads are retried on transient network errors. Writes are never retried:
a failed write is reported to the caller, which rolls back its view.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import httpx
import tenacity

from ..errors import PersistenceFailure
from ..models import ItemId, NewItem, PositionWrite, RankedItem, Term, WriteResult
from ..ranking import normalize_for_display
from ..session import SessionContext

logger = logging.getLogger(__name__)

TERM_SELECT = "*,Translation(*)"


# =============================================================================
# Retry Configuration
# =============================================================================


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception should trigger a retry."""
    return isinstance(exc, (httpx.TimeoutException, httpx.ConnectError))


_retry_transient = tenacity.retry(
    stop=tenacity.stop_after_attempt(3),
    wait=tenacity.wait_exponential(multiplier=0.5, min=0.5, max=2),
    retry=tenacity.retry_if_exception(_is_retryable),
    before_sleep=lambda rs: logger.debug(
        "Retrying glossary read (attempt %d)", rs.attempt_number + 1
    ),
    reraise=True,
)


def _quote(value: str) -> str:
    """Quote a value for use inside a PostgREST ``or=(...)`` filter."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _like_literal(value: str) -> str:
    """Escape ILIKE wildcards so ``%`` and ``_`` match themselves."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _alias_filter(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'aliases.cs.{{"{escaped}"}}'


def _term_from_row(row: dict[str, Any]) -> Term:
    items = (RankedItem.from_row(t) for t in row.get("Translation") or [])
    return Term.from_row(row, normalize_for_display(list(items)))


class SupabaseRestStore:
    """HTTP client for the Supabase PostgREST API.

    Example:
        store = SupabaseRestStore(url="https://xyz.supabase.co", anon_key="...")
        terms = store.search_terms("context")
    """

    def __init__(
        self,
        *,
        url: str,
        anon_key: str,
        timeout: float = 10.0,
        token_provider: Callable[[], str | None] | None = None,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            anon_key: Public anon key sent as ``apikey``.
            timeout: Request timeout in seconds.
            token_provider: Returns the signed-in user's access token, if any.
            transport: Optional httpx transport (tests use MockTransport).
            client: Share an existing httpx client (see ``for_session``).
        """
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.anon_key = anon_key
        self.timeout = timeout
        self._token_provider = token_provider or (lambda: None)
        self._transport = transport
        self._client = client

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> SupabaseRestStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def for_session(self, session: SessionContext) -> SupabaseRestStore:
        """A view of this store that authenticates as ``session``."""
        return SupabaseRestStore(
            url=self.base_url.removesuffix("/rest/v1"),
            anon_key=self.anon_key,
            timeout=self.timeout,
            token_provider=lambda: session.access_token,
            client=self._get_client(),
        )

    # =========================================================================
    # Request plumbing
    # =========================================================================

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        token = self._token_provider() or self.anon_key
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        table: str,
        *,
        operation: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        try:
            response = self._get_client().request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=self._headers(prefer),
            )
        except httpx.HTTPError as e:
            raise PersistenceFailure(
                f"Failed to {operation}: {e}", operation=operation, table=table
            ) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            raise PersistenceFailure(
                f"Failed to {operation}: {detail}",
                operation=operation,
                table=table,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()

    @_retry_transient
    def _read(self, table: str, *, operation: str, params: dict[str, str]) -> list[dict[str, Any]]:
        try:
            response = self._get_client().get(
                f"/{table}", params=params, headers=self._headers()
            )
        except (httpx.TimeoutException, httpx.ConnectError):
            raise
        except httpx.HTTPError as e:
            raise PersistenceFailure(
                f"Failed to {operation}: {e}", operation=operation, table=table
            ) from e
        if response.status_code >= 400:
            raise PersistenceFailure(
                f"Failed to {operation}: {response.text}",
                operation=operation,
                table=table,
                status_code=response.status_code,
            )
        return response.json()

    def _read_terms(self, *, operation: str, params: dict[str, str]) -> list[Term]:
        try:
            rows = self._read("Term", operation=operation, params=params)
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            raise PersistenceFailure(
                f"Failed to {operation}: {e}", operation=operation, table="Term"
            ) from e
        return [_term_from_row(row) for row in rows]

    # =========================================================================
    # Term operations
    # =========================================================================

    def search_terms(self, query: str) -> list[Term]:
        query = query.strip()
        if not query:
            return []
        pattern = "*" + _like_literal(query) + "*"
        return self._read_terms(
            operation="search terms",
            params={
                "select": TERM_SELECT,
                "or": f"(name.ilike.{_quote(pattern)},{_alias_filter(query)})",
                "order": "name.asc",
            },
        )

    def lookup_terms(self, name: str) -> list[Term]:
        name = name.strip()
        if not name:
            return []
        return self._read_terms(
            operation="look up terms",
            params={
                "select": TERM_SELECT,
                "or": f"(name.ilike.{_quote(_like_literal(name))},{_alias_filter(name)})",
                "order": "name.asc",
            },
        )

    def list_terms(self) -> list[Term]:
        return self._read_terms(
            operation="list terms",
            params={"select": TERM_SELECT, "order": "created_at.desc"},
        )

    def get_term(self, term_id: int) -> Term | None:
        terms = self._read_terms(
            operation="get term",
            params={"select": TERM_SELECT, "id": f"eq.{term_id}"},
        )
        return terms[0] if terms else None

    def insert_term(self, *, name: str, aliases: list[str], note: str | None) -> Term:
        rows = self._request(
            "POST",
            "Term",
            operation="insert term",
            json={"name": name, "aliases": aliases, "note": note},
            prefer="return=representation",
        )
        if not rows:
            raise PersistenceFailure("Insert returned no term", operation="insert term", table="Term")
        return Term.from_row(rows[0])

    def update_term(self, term_id: int, *, name: str, aliases: list[str], note: str | None) -> None:
        rows = self._request(
            "PATCH",
            "Term",
            operation="update term",
            params={"id": f"eq.{term_id}"},
            json={"name": name, "aliases": aliases, "note": note},
            prefer="return=representation",
        )
        if not rows:
            raise PersistenceFailure(
                f"Term not found: {term_id}", operation="update term", table="Term"
            )

    def delete_term(self, term_id: int) -> None:
        self._request("DELETE", "Term", operation="delete term", params={"id": f"eq.{term_id}"})

    # =========================================================================
    # Ranked item operations
    # =========================================================================

    def fetch_ranked_items(self, parent_id: ItemId) -> list[RankedItem]:
        try:
            rows = self._read(
                "Translation",
                operation="fetch translations",
                params={"select": "*", "term_id": f"eq.{parent_id}"},
            )
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            raise PersistenceFailure(
                f"Failed to fetch translations: {e}", operation="fetch", table="Translation"
            ) from e
        return [RankedItem.from_row(row) for row in rows]

    def bulk_upsert_positions(
        self, parent_id: ItemId, writes: Sequence[PositionWrite]
    ) -> list[WriteResult]:
        """Send the whole re-ranking as a single upsert request.

        PostgREST runs one request in one transaction, so either every row
        gets its new position or none does.
        """
        if not writes:
            return []
        rows = self._request(
            "POST",
            "Translation",
            operation="save order",
            params={"on_conflict": "id"},
            json=[write.to_row(parent_id) for write in writes],
            prefer="resolution=merge-duplicates,return=representation",
        ) or []
        returned = {row.get("id") for row in rows}
        return [
            WriteResult(id=w.id, ok=w.id in returned, error=None if w.id in returned else "not returned")
            for w in writes
        ]

    def delete_item(self, item_id: ItemId) -> None:
        self._request(
            "DELETE", "Translation", operation="delete translation", params={"id": f"eq.{item_id}"}
        )

    def delete_items_for_parent(self, parent_id: ItemId) -> None:
        self._request(
            "DELETE",
            "Translation",
            operation="delete translations",
            params={"term_id": f"eq.{parent_id}"},
        )

    def insert_items(self, parent_id: ItemId, items: Sequence[NewItem]) -> list[RankedItem]:
        if not items:
            return []
        rows = self._request(
            "POST",
            "Translation",
            operation="insert translations",
            json=[item.to_row(parent_id) for item in items],
            prefer="return=representation",
        ) or []
        return [RankedItem.from_row(row) for row in rows]

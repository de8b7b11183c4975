"""Persistence backends for the glossary.

``get_store()`` returns the process-wide store for ``settings.backend``.
"""

from __future__ import annotations

import logging

from ..errors import ConfigurationError
from ..settings import Settings, settings
from .base import GlossaryStore, RankedItemStore, TermStore
from .rest_store import SupabaseRestStore
from .sqlite_store import SqliteGlossaryStore

logger = logging.getLogger(__name__)

__all__ = [
    "GlossaryStore",
    "RankedItemStore",
    "SqliteGlossaryStore",
    "SupabaseRestStore",
    "TermStore",
    "build_store",
    "get_store",
]


def build_store(config: Settings | None = None) -> GlossaryStore:
    """Build the store named by ``config.backend``."""
    config = config or settings

    if config.backend == "sqlite":
        logger.info("Using SQLite glossary at %s", config.sqlite_path)
        return SqliteGlossaryStore(config.sqlite_path)

    if config.backend == "supabase":
        if not config.supabase_url:
            raise ConfigurationError(
                "Supabase URL is not set",
                setting="TRANSTERM_SUPABASE_URL",
                suggestion="Set it to your project URL, e.g. https://xyz.supabase.co",
            )
        if not config.supabase_anon_key:
            raise ConfigurationError(
                "Supabase anon key is not set",
                setting="TRANSTERM_SUPABASE_ANON_KEY",
                suggestion="Copy the anon key from the project API settings",
            )
        logger.info("Using Supabase glossary at %s", config.supabase_url)
        return SupabaseRestStore(
            url=config.supabase_url,
            anon_key=config.supabase_anon_key,
            timeout=config.request_timeout_seconds,
        )

    raise ConfigurationError(
        f"Unknown backend: {config.backend}",
        setting="TRANSTERM_BACKEND",
        suggestion="Use 'sqlite' or 'supabase'",
    )


_store_instance: GlossaryStore | None = None


def get_store() -> GlossaryStore:
    """The process-wide store, built on first use."""
    global _store_instance
    if _store_instance is None:
        _store_instance = build_store()
    return _store_instance

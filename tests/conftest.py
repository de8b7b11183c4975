from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from transterm.persistence import SqliteGlossaryStore
from transterm.session import Session, SessionContext


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqliteGlossaryStore]:
    """Glossary store on a temp SQLite file."""
    glossary = SqliteGlossaryStore(tmp_path / "glossary-test.db")
    try:
        yield glossary
    finally:
        glossary.close()


@pytest.fixture
def signed_in() -> SessionContext:
    return SessionContext(Session(access_token="test-token", user_id="editor-1"))


@pytest.fixture
def signed_out() -> SessionContext:
    return SessionContext()

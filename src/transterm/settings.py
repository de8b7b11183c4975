from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.environ.get(name)
    return Path(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    """Static settings for the glossary service.

    Defaults target a local SQLite store; set TRANSTERM_BACKEND=supabase
    together with the URL and anon key to talk to the hosted backend.
    """

    root_dir: Path = Path(__file__).resolve().parents[2]
    data_dir: Path = _env_path("TRANSTERM_DATA_DIR", root_dir / ".transterm-data")
    log_path: Path = data_dir / "transterm.log"
    log_level: str = os.environ.get("TRANSTERM_LOG_LEVEL", "INFO")
    log_max_bytes: int = int(os.environ.get("TRANSTERM_LOG_MAX_BYTES", str(1_000_000)))
    log_backup_count: int = int(os.environ.get("TRANSTERM_LOG_BACKUP_COUNT", "3"))
    log_to_file: bool = _env_bool("TRANSTERM_LOG_TO_FILE", True)
    host: str = os.environ.get("TRANSTERM_HOST", "127.0.0.1")
    port: int = int(os.environ.get("TRANSTERM_PORT", "8020"))

    # =========================================================================
    # Persistence backend
    # =========================================================================
    # "sqlite" keeps everything in a local file (development, tests).
    # "supabase" talks to the hosted PostgREST endpoint over HTTPS; row level
    # security on the backend decides what an access token may write.
    # =========================================================================
    backend: str = os.environ.get("TRANSTERM_BACKEND", "sqlite").strip().lower()
    sqlite_path: Path = _env_path("TRANSTERM_SQLITE_PATH", data_dir / "glossary.db")
    supabase_url: str | None = os.environ.get("TRANSTERM_SUPABASE_URL")
    supabase_anon_key: str | None = os.environ.get("TRANSTERM_SUPABASE_ANON_KEY")
    # Local backend only: when set, writes require this exact bearer token.
    write_token: str | None = os.environ.get("TRANSTERM_WRITE_TOKEN")
    request_timeout_seconds: float = float(
        os.environ.get("TRANSTERM_REQUEST_TIMEOUT_SECONDS", "10")
    )

    # Search box debounce before a query is sent to the store.
    search_debounce_seconds: float = float(
        os.environ.get("TRANSTERM_SEARCH_DEBOUNCE_SECONDS", "0.3")
    )


settings = Settings()

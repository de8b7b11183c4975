"""TransTerm - English/Korean terminology glossary service.

Usage:
    transterm                Start the glossary server (default)
    transterm --help         Show this help message

Environment Variables:
    TRANSTERM_HOST               Server host (default: 127.0.0.1)
    TRANSTERM_PORT               Server port (default: 8020)
    TRANSTERM_BACKEND            sqlite or supabase (default: sqlite)
    TRANSTERM_SQLITE_PATH        Local glossary file
    TRANSTERM_SUPABASE_URL       Hosted project URL
    TRANSTERM_SUPABASE_ANON_KEY  Hosted project anon key
    TRANSTERM_WRITE_TOKEN        Bearer token for writes to the local backend
    TRANSTERM_LOG_LEVEL          Logging level (default: INFO)
"""

from __future__ import annotations

import argparse

import uvicorn

from .logging_setup import configure_logging
from .settings import settings


def main() -> None:
    """Main entry point for the TransTerm server."""
    parser = argparse.ArgumentParser(
        prog="transterm",
        description="TransTerm - English/Korean terminology glossary",
        epilog="""
Examples:
  transterm                     Start on the default port
  transterm --port 8030         Start on a custom port
  transterm --reload            Auto-reload on code changes (development)
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Server host (default: {settings.host})",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=settings.port,
        help=f"Server port (default: {settings.port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (for development)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.log_level.upper(),
        help=f"Logging level (default: {settings.log_level})",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0",
    )

    args = parser.parse_args()

    configure_logging(args.log_level)

    print(f"Starting TransTerm ({settings.backend}) on {args.host}:{args.port}")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(
        "transterm.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()

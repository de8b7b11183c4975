"""Services Layer - business logic behind the RPC handlers.

Services take their store and session through the constructor; RPC handlers
only translate between the service interface and JSON.
"""

from .glossary_service import GlossaryService, TermDraft

__all__ = [
    "GlossaryService",
    "TermDraft",
]

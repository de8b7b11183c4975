"""RPC handler modules for the HTTP dispatcher.

This package contains handler functions organized by domain:
- terms: search, lookup and term CRUD
- translations: reorder and promote a term's ranked translations
"""

from __future__ import annotations

from transterm.rpc import RpcError

__all__ = ["RpcError"]

"""JSON-RPC plumbing shared by the HTTP endpoint and the handlers."""

from __future__ import annotations

from .protocol import ErrorCode, RpcError, reply

__all__ = ["ErrorCode", "RpcError", "reply"]

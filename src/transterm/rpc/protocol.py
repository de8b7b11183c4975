"""JSON-RPC 2.0 envelope for the glossary endpoint.

Only the protocol-level codes live here. Domain failures carry the code
``errors.get_error_code`` assigns to them, so the two never drift apart.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from transterm.errors import TransTermError, get_error_code


class ErrorCode(IntEnum):
    PARSE = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL = -32603


class RpcError(Exception):
    """An error object ready to be sent back to the caller."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = int(code)
        self.message = message
        self.data = data

    @classmethod
    def from_domain(cls, exc: TransTermError) -> RpcError:
        return cls(get_error_code(exc), exc.message, exc.to_dict())

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            body["data"] = self.data
        return body


def reply(
    request_id: str | int | None,
    *,
    result: Any = None,
    error: RpcError | None = None,
) -> dict[str, Any]:
    """Response object for ``request_id``: ``error`` wins over ``result``."""
    envelope: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id}
    if error is not None:
        envelope["error"] = error.to_dict()
    else:
        envelope["result"] = result
    return envelope

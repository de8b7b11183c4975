"""Base utilities for RPC handlers.

Provides the decorator that gives every handler the same error contract.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable

from transterm.errors import TransTermError
from transterm.rpc import ErrorCode, RpcError

if TYPE_CHECKING:
    from transterm.services import GlossaryService

logger = logging.getLogger(__name__)


def rpc_handler(method_name: str) -> Callable:
    """Decorator that converts domain errors to RpcError.

    Standardizes error handling for RPC handlers by:
    1. Propagating RpcError unchanged
    2. Converting TransTermError to structured RpcError
    3. Converting ValueError to parameter error (-32602)
    4. Logging and converting unexpected exceptions to internal error (-32603)

    Args:
        method_name: The RPC method name (e.g., "terms/create")

    Usage:
        @rpc_handler("terms/get")
        def handle_terms_get(service: GlossaryService, *, term_id: int) -> dict:
            return {"term": service.get_term(term_id).to_dict()}
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(service: "GlossaryService", **kwargs: Any) -> Any:
            try:
                return func(service, **kwargs)
            except RpcError:
                raise
            except TransTermError as e:
                raise RpcError.from_domain(e) from e
            except ValueError as e:
                raise RpcError(
                    code=ErrorCode.INVALID_PARAMS,
                    message=str(e),
                ) from e
            except TypeError as e:
                raise RpcError(
                    code=ErrorCode.INVALID_PARAMS,
                    message=f"Invalid parameter: {e}",
                ) from e
            except Exception as e:
                logger.error(
                    "Internal error in RPC handler %s: %s",
                    method_name,
                    e,
                    exc_info=True,
                )
                raise RpcError(
                    code=ErrorCode.INTERNAL,
                    message=f"Internal error in {method_name}",
                    data={"error_type": type(e).__name__},
                ) from e

        return wrapper

    return decorator

"""Parameter checks for the RPC handlers.

A check takes the raw value and the parameter name, and returns the value
to pass on or raises RpcError(INVALID_PARAMS). Handlers attach checks with
``@validated(name=check)``; parameters the caller left out are skipped so
the handler's own defaults (or its TypeError) apply.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, NoReturn

from .protocol import ErrorCode, RpcError

Check = Callable[[Any, str], Any]


def _reject(name: str, problem: str) -> NoReturn:
    raise RpcError(ErrorCode.INVALID_PARAMS, f"{name} {problem}")


def text_param(value: Any, name: str, *, max_length: int = 10000, allow_empty: bool = False) -> str:
    if not isinstance(value, str):
        _reject(name, "must be a string")
    if not value and not allow_empty:
        _reject(name, "cannot be empty")
    if len(value) > max_length:
        _reject(name, f"must be at most {max_length} characters")
    return value


def optional_text_param(value: Any, name: str) -> str | None:
    return None if value is None else text_param(value, name, allow_empty=True)


def int_param(value: Any, name: str, *, min_value: int | None = None) -> int:
    # bool is an int subclass; true/false are never ids
    if not isinstance(value, int) or isinstance(value, bool):
        _reject(name, "must be an integer")
    if min_value is not None and value < min_value:
        _reject(name, f"must be at least {min_value}")
    return value


def term_id_param(value: Any, name: str) -> int:
    return int_param(value, name, min_value=1)


def item_id_param(value: Any, name: str) -> int | str:
    """Stored translations have integer ids, unsaved ones ``draft-N``."""
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    _reject(name, "must be an integer or a non-empty string")


def list_param(value: Any, name: str, *, max_length: int = 1000, each: Check | None = None) -> list:
    if not isinstance(value, list):
        _reject(name, "must be a list")
    if len(value) > max_length:
        _reject(name, f"cannot have more than {max_length} items")
    if each is None:
        return value
    return [each(item, f"{name}[{i}]") for i, item in enumerate(value)]


def aliases_param(value: Any, name: str) -> list[str] | str:
    """The alias field may arrive raw (comma separated) or already split."""
    if isinstance(value, str):
        return value
    return list_param(value, name, each=lambda v, n: text_param(v, n, allow_empty=True))


def validated(**checks: Check) -> Callable:
    """Run ``checks`` over the matching keyword arguments before the handler."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for param, check in checks.items():
                if param in kwargs:
                    kwargs[param] = check(kwargs[param], param)
            return func(*args, **kwargs)

        return wrapper

    return decorator

"""Tests for the rpc package - envelope, error codes and parameter checks."""

from __future__ import annotations

import pytest

from transterm.errors import ERROR_CODES, AuthorizationError, PersistenceFailure
from transterm.rpc import ErrorCode, RpcError, reply
from transterm.rpc.params import (
    aliases_param,
    int_param,
    item_id_param,
    list_param,
    optional_text_param,
    term_id_param,
    text_param,
    validated,
)


class TestEnvelope:
    def test_result(self) -> None:
        assert reply(7, result={"ok": True}) == {"jsonrpc": "2.0", "id": 7, "result": {"ok": True}}

    def test_error_without_data(self) -> None:
        body = reply(None, error=RpcError(ErrorCode.PARSE, "Parse error"))
        assert body == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}
        assert "result" not in body

    def test_code_is_plain_int(self) -> None:
        err = RpcError(ErrorCode.METHOD_NOT_FOUND, "nope")
        assert type(err.to_dict()["code"]) is int


class TestFromDomain:
    def test_uses_domain_code_table(self) -> None:
        err = RpcError.from_domain(AuthorizationError(operation="terms/create"))
        assert err.code == ERROR_CODES[AuthorizationError]
        assert err.data["operation"] == "terms/create"

    def test_carries_structured_data(self) -> None:
        err = RpcError.from_domain(PersistenceFailure("offline", status_code=503))
        assert err.code == ERROR_CODES[PersistenceFailure]
        assert err.message == "offline"
        assert err.data["recoverable"] is True


class TestTextParams:
    def test_valid(self) -> None:
        assert text_param("맥락", "text") == "맥락"

    def test_not_a_string(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            text_param(3, "name")
        assert exc_info.value.code == ErrorCode.INVALID_PARAMS
        assert exc_info.value.message == "name must be a string"

    def test_empty(self) -> None:
        with pytest.raises(RpcError):
            text_param("", "name")
        assert text_param("", "name", allow_empty=True) == ""

    def test_too_long(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            text_param("x" * 11, "name", max_length=10)
        assert "at most 10" in exc_info.value.message

    def test_optional(self) -> None:
        assert optional_text_param(None, "note") is None
        assert optional_text_param("", "note") == ""


class TestIdParams:
    def test_int(self) -> None:
        assert int_param(5, "count") == 5
        assert term_id_param(5, "term_id") == 5

    def test_bool_rejected(self) -> None:
        with pytest.raises(RpcError):
            int_param(True, "term_id")

    def test_term_id_positive(self) -> None:
        with pytest.raises(RpcError):
            term_id_param(0, "term_id")

    def test_item_id_accepts_draft_ids(self) -> None:
        assert item_id_param("draft-3", "item_id") == "draft-3"
        assert item_id_param(12, "item_id") == 12

    def test_item_id_rejects_empty(self) -> None:
        with pytest.raises(RpcError):
            item_id_param("", "item_id")


class TestListParams:
    def test_each_names_index(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            list_param(["a", 2], "translations", each=text_param)
        assert exc_info.value.message.startswith("translations[1]")

    def test_max_length(self) -> None:
        with pytest.raises(RpcError):
            list_param([1, 2, 3], "items", max_length=2)

    def test_aliases_string_or_list(self) -> None:
        assert aliases_param("Ctx, Contexts", "aliases") == "Ctx, Contexts"
        assert aliases_param(["Ctx"], "aliases") == ["Ctx"]
        with pytest.raises(RpcError):
            aliases_param({"a": 1}, "aliases")


class TestValidatedDecorator:
    def test_checks_present_params_only(self) -> None:
        @validated(term_id=term_id_param)
        def handler(service, *, term_id: int = 1, note: str = "") -> tuple:
            return term_id, note

        assert handler(None, note="x") == (1, "x")
        with pytest.raises(RpcError):
            handler(None, term_id="one")

"""Tests for errors.py - structured error hierarchy and RPC code mapping."""

from __future__ import annotations

import pytest

from transterm.errors import (
    AuthorizationError,
    ConfigurationError,
    NotFoundError,
    PersistenceFailure,
    TransTermError,
    ValidationError,
    get_error_code,
)
from transterm.rpc import RpcError
from transterm.rpc_handlers._base import rpc_handler


class TestTransTermError:
    """Tests for the base error class."""

    def test_basic_creation(self):
        err = TransTermError("Something went wrong")
        assert str(err) == "Something went wrong"
        assert err.message == "Something went wrong"
        assert err.recoverable is False
        assert err.context == {}

    def test_to_dict(self):
        err = TransTermError("Error message", recoverable=True, context={"field": "name"})
        result = err.to_dict()
        assert result["type"] == "transterm"
        assert result["message"] == "Error message"
        assert result["recoverable"] is True
        assert result["field"] == "name"

    def test_to_dict_drops_none_context(self):
        err = NotFoundError("missing", resource_type="term")
        assert "resource_id" not in err.to_dict()


class TestSubclasses:
    def test_validation_field_and_extra(self):
        err = ValidationError("Fill in every translation", field="translations", index=2)
        assert err.field == "translations"
        assert err.context == {"field": "translations", "index": 2}
        assert err.to_dict()["type"] == "validation"

    def test_validation_value_truncated(self):
        err = ValidationError("bad", value="x" * 500)
        assert err.context["value"].endswith("...")
        assert len(err.context["value"]) == 103

    def test_authorization_default_message(self):
        err = AuthorizationError(operation="terms/create")
        assert err.message == "Sign in to change the glossary"
        assert err.context["operation"] == "terms/create"

    def test_persistence_is_recoverable(self):
        err = PersistenceFailure("offline", operation="reorder", table="Translation", status_code=503)
        assert err.recoverable is True
        assert err.context == {"operation": "reorder", "table": "Translation", "status_code": 503}

    def test_configuration(self):
        err = ConfigurationError("missing", setting="TRANSTERM_SUPABASE_URL")
        assert err.to_dict()["setting"] == "TRANSTERM_SUPABASE_URL"


class TestErrorCodeMapping:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ValidationError("x"), -32000),
            (AuthorizationError(), -32002),
            (NotFoundError("x"), -32003),
            (PersistenceFailure("x"), -32020),
            (ConfigurationError("x"), -32030),
            (TransTermError("x"), -32603),
        ],
    )
    def test_codes(self, error, code):
        assert get_error_code(error) == code

    def test_subclass_inherits_code(self):
        class TermNameTaken(ValidationError):
            pass

        assert get_error_code(TermNameTaken("taken")) == -32000


class TestRpcHandlerDecorator:
    def _wrap(self, exc: Exception):
        @rpc_handler("test/method")
        def handler(service):
            raise exc

        return handler

    def test_domain_error(self):
        with pytest.raises(RpcError) as exc_info:
            self._wrap(NotFoundError("nope", resource_type="term", resource_id=3))(None)
        assert exc_info.value.code == -32003
        assert exc_info.value.data["resource_id"] == 3

    def test_value_error(self):
        with pytest.raises(RpcError) as exc_info:
            self._wrap(ValueError("bad"))(None)
        assert exc_info.value.code == -32602

    def test_unexpected_error(self):
        with pytest.raises(RpcError) as exc_info:
            self._wrap(RuntimeError("boom"))(None)
        assert exc_info.value.code == -32603
        assert exc_info.value.data == {"error_type": "RuntimeError"}

    def test_rpc_error_passes_through(self):
        original = RpcError(-32602, "name must be a string")
        with pytest.raises(RpcError) as exc_info:
            self._wrap(original)(None)
        assert exc_info.value is original

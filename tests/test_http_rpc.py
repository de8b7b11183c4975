"""Tests for http_rpc.py and app.py - JSON-RPC over HTTP.

Tests:
- Health endpoint
- Read methods are open, write methods need a Bearer token
- Domain errors map to their JSON-RPC codes
- Reorder/promote report items, state and notices
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from transterm.app import app
from transterm.http_rpc import resolve_store, session_from_token
from transterm.models import PositionWrite, WriteResult
from transterm.persistence import SqliteGlossaryStore

AUTH = {"Authorization": "Bearer editor-token"}


@pytest.fixture
def client(store: SqliteGlossaryStore) -> Iterator[TestClient]:
    app.dependency_overrides[resolve_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(resolve_store, None)


def _call(client: TestClient, method: str, params: dict | None = None, headers=None) -> dict:
    res = client.post(
        "/rpc",
        json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params or {}},
        headers=headers or {},
    )
    assert res.status_code == 200
    return res.json()


def _create(client: TestClient, name: str, translations: list, **extra) -> dict:
    body = _call(
        client,
        "terms/create",
        {"name": name, "translations": translations, **extra},
        headers=AUTH,
    )
    return body["result"]["term"]


def test_health_ok(client: TestClient) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert "timestamp" in body


class TestProtocol:
    def test_unknown_method(self, client):
        body = _call(client, "terms/nope")
        assert body["error"]["code"] == -32601

    def test_missing_method(self, client):
        res = client.post("/rpc", json={"jsonrpc": "2.0", "id": 3})
        assert res.json()["error"]["code"] == -32600

    def test_params_must_be_object(self, client):
        res = client.post("/rpc", json={"jsonrpc": "2.0", "id": 3, "method": "terms/list",
                                        "params": [1]})
        assert res.json()["error"]["code"] == -32600

    def test_invalid_json(self, client):
        res = client.post("/rpc", content=b"{not json", headers={"Content-Type": "application/json"})
        assert res.json()["error"]["code"] == -32700

    def test_missing_param(self, client):
        body = _call(client, "terms/get")
        assert body["error"]["code"] == -32602

    def test_wrong_param_type(self, client):
        body = _call(client, "terms/get", {"term_id": "one"})
        assert body["error"]["code"] == -32602

    def test_id_echoed(self, client):
        res = client.post("/rpc", json={"jsonrpc": "2.0", "id": "abc", "method": "terms/list"})
        assert res.json()["id"] == "abc"


class TestTermMethods:
    def test_create_requires_token(self, client):
        body = _call(client, "terms/create", {"name": "Context", "translations": ["맥락"]})
        assert body["error"]["code"] == -32002

    def test_create_and_get(self, client):
        term = _create(
            client,
            "Context",
            ["맥락", {"text": "문맥", "usage": "formal"}],
            aliases="Ctx, Contexts",
        )
        assert term["aliases"] == ["Ctx", "Contexts"]
        assert [t["text"] for t in term["translations"]] == ["맥락", "문맥"]
        assert term["translations"][0]["is_preferred"] is True

        body = _call(client, "terms/get", {"term_id": term["id"]})
        assert body["result"]["term"]["translations"][1]["usage"] == "formal"

    def test_create_reports_notice(self, client):
        body = _call(
            client, "terms/create", {"name": "Agent", "translations": ["에이전트"]}, headers=AUTH
        )
        assert body["result"]["notices"] == [{"level": "success", "message": "Term registered"}]

    def test_validation_error_code(self, client):
        body = _call(
            client, "terms/create", {"name": "Context", "translations": ["맥락", " "]}, headers=AUTH
        )
        assert body["error"]["code"] == -32000
        assert body["error"]["data"]["field"] == "translations"

    def test_get_missing(self, client):
        body = _call(client, "terms/get", {"term_id": 404})
        assert body["error"]["code"] == -32003

    def test_search_open_to_readers(self, client):
        _create(client, "Large language model", ["대규모 언어 모델"], aliases=["LLM"])
        body = _call(client, "terms/search", {"query": "llm"})
        result = body["result"]
        assert result["terms"] == []
        body = _call(client, "terms/search", {"query": "LLM"})
        result = body["result"]
        assert [t["name"] for t in result["terms"]] == ["Large language model"]
        assert result["exact_id"] is None
        assert result["offer_create"] is False

    def test_search_offers_create_to_writers(self, client):
        _create(client, "Token", ["토큰"])
        body = _call(client, "terms/search", {"query": "Tok"}, headers=AUTH)
        assert body["result"]["offer_create"] is True
        body = _call(client, "terms/search", {"query": "token"}, headers=AUTH)
        assert body["result"]["offer_create"] is False
        assert body["result"]["exact_id"] is not None

    def test_lookup_and_list(self, client):
        _create(client, "Embedding", ["임베딩"])
        body = _call(client, "terms/lookup", {"name": "embedding"})
        assert [t["name"] for t in body["result"]["terms"]] == ["Embedding"]
        body = _call(client, "terms/list")
        assert len(body["result"]["terms"]) == 1

    def test_update(self, client):
        term = _create(client, "Context", ["맥락"])
        body = _call(
            client,
            "terms/update",
            {"term_id": term["id"], "name": "Context", "translations": ["문맥", "맥락"],
             "note": "Prefer 문맥 in docs"},
            headers=AUTH,
        )
        updated = body["result"]["term"]
        assert [t["text"] for t in updated["translations"]] == ["문맥", "맥락"]
        assert updated["note"] == "Prefer 문맥 in docs"

    def test_delete(self, client):
        term = _create(client, "Context", ["맥락"])
        body = _call(client, "terms/delete", {"term_id": term["id"]}, headers=AUTH)
        assert body["result"]["ok"] is True
        body = _call(client, "terms/get", {"term_id": term["id"]})
        assert body["error"]["code"] == -32003


class TestTranslationMethods:
    def test_promote(self, client):
        term = _create(client, "Context", ["맥락", "문맥", "컨텍스트"])
        third = term["translations"][2]["id"]

        body = _call(
            client, "translations/promote", {"term_id": term["id"], "item_id": third}, headers=AUTH
        )
        result = body["result"]
        assert result["applied"] is True
        assert result["state"] == "ready"
        assert [i["text"] for i in result["items"]] == ["컨텍스트", "맥락", "문맥"]
        assert result["notices"][0]["level"] == "success"

    def test_reorder(self, client):
        term = _create(client, "Context", ["맥락", "문맥", "컨텍스트"])
        ids = [t["id"] for t in term["translations"]]

        body = _call(
            client,
            "translations/reorder",
            {"term_id": term["id"], "item_id": ids[0], "over_id": ids[2]},
            headers=AUTH,
        )
        assert [i["id"] for i in body["result"]["items"]] == [ids[1], ids[2], ids[0]]

        stored = _call(client, "terms/get", {"term_id": term["id"]})["result"]["term"]
        assert [t["id"] for t in stored["translations"]] == [ids[1], ids[2], ids[0]]

    def test_reorder_requires_token(self, client):
        term = _create(client, "Context", ["맥락", "문맥"])
        ids = [t["id"] for t in term["translations"]]
        body = _call(
            client,
            "translations/reorder",
            {"term_id": term["id"], "item_id": ids[1], "over_id": ids[0]},
        )
        assert body["error"]["code"] == -32002

    def test_failed_save_rolls_back(self, client, store, monkeypatch):
        term = _create(client, "Context", ["맥락", "문맥"])
        ids = [t["id"] for t in term["translations"]]

        def reject(parent_id, writes: list[PositionWrite]) -> list[WriteResult]:
            return [WriteResult(id=w.id, ok=False, error="rejected") for w in writes]

        monkeypatch.setattr(store, "bulk_upsert_positions", reject)
        body = _call(
            client, "translations/promote", {"term_id": term["id"], "item_id": ids[1]}, headers=AUTH
        )
        result = body["result"]
        assert result["applied"] is False
        assert result["state"] == "rolled_back"
        assert [i["id"] for i in result["items"]] == ids
        assert result["notices"] == [{"level": "error", "message": "Couldn't save changes"}]

    def test_promote_unknown_term(self, client):
        body = _call(client, "translations/promote", {"term_id": 99, "item_id": 1}, headers=AUTH)
        assert body["error"]["code"] == -32003


class TestSessionFromToken:
    def test_no_token(self):
        assert session_from_token(None).can_write is False

    def test_token(self):
        assert session_from_token("abc").access_token == "abc"

"""Tests for API functionality."""

import tempfile
from pathlib import Path

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from blockdoc.api.app import create_app, generate_token  # noqa: E402
from blockdoc.runtime import build_runtime  # noqa: E402

BLOCKS = [
    {"id": "1", "type": "paragraph", "content": "<p>hello</p>"},
    {"id": "2", "type": "paragraph", "content": "<p></p>"},
]


@pytest.fixture
def runtime():
    """Create a runtime over a temporary SQLite store."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        yield build_runtime(config_path=root / "none.toml", storage_root=root)


@pytest.fixture
def client(runtime):
    return TestClient(create_app(runtime))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_and_get(client):
    response = client.post("/api/documents", json={"title": "Plans", "content": BLOCKS, "userId": 3})
    assert response.status_code == 201
    created = response.json()
    assert created["id"] == 1
    assert created["title"] == "Plans"
    assert created["userId"] == 3

    response = client.get(f"/api/documents/{created['id']}")
    assert response.status_code == 200
    assert response.json()["content"] == BLOCKS


def test_create_defaults(client):
    created = client.post("/api/documents", json={}).json()
    assert created["title"] == "Untitled"
    assert created["content"] == []


def test_list_with_owner_filter(client):
    client.post("/api/documents", json={"title": "A", "userId": 1})
    client.post("/api/documents", json={"title": "B", "userId": 2})
    assert [d["title"] for d in client.get("/api/documents").json()] == ["A", "B"]
    assert [d["title"] for d in client.get("/api/documents?userId=2").json()] == ["B"]


def test_patch_updates_fields(client):
    doc_id = client.post("/api/documents", json={"title": "Old", "content": BLOCKS}).json()["id"]
    response = client.patch(f"/api/documents/{doc_id}", json={"title": "New"})
    assert response.status_code == 200
    assert response.json()["title"] == "New"
    assert response.json()["content"] == BLOCKS

    response = client.patch(f"/api/documents/{doc_id}", json={"content": BLOCKS[:1]})
    assert response.json()["content"] == BLOCKS[:1]


def test_delete(client):
    doc_id = client.post("/api/documents", json={}).json()["id"]
    assert client.delete(f"/api/documents/{doc_id}").status_code == 204
    assert client.get(f"/api/documents/{doc_id}").status_code == 404
    assert client.delete(f"/api/documents/{doc_id}").status_code == 404


def test_error_responses(client):
    """Bad ids, missing documents and invalid bodies."""
    response = client.get("/api/documents/abc")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid document ID"

    response = client.get("/api/documents/99")
    assert response.status_code == 404
    assert response.json()["detail"] == "Document not found"

    response = client.patch("/api/documents/99", json={"title": "x"})
    assert response.status_code == 404

    response = client.post("/api/documents", json={"content": [{"type": "paragraph"}]})
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Invalid document data"
    assert body["errors"]


def test_intents_endpoint(client, runtime):
    """Intents run through the editor and the result is saved."""
    doc_id = client.post("/api/documents", json={"title": "T", "content": BLOCKS}).json()["id"]
    response = client.post(
        f"/api/documents/{doc_id}/intents",
        json={
            "intents": [
                {"op": "delete_backward_merge", "block_id": "2"},
                {"op": "convert_format", "block_id": "1", "target_type": "heading1"},
                {"op": "delete_block", "block_id": "1"},
            ]
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert [r["changed"] for r in data["results"]] == [True, True, False]
    assert data["results"][0]["focusTarget"] == "1"
    assert data["document"]["content"] == [{"id": "1", "type": "heading1", "content": "<h1>hello</h1>"}]
    assert runtime.repository.get(doc_id).content == data["document"]["content"]


def test_intents_endpoint_errors(client):
    doc_id = client.post("/api/documents", json={}).json()["id"]
    response = client.post(f"/api/documents/{doc_id}/intents", json={"intents": [{"op": "explode"}]})
    assert response.status_code == 400
    response = client.post(
        f"/api/documents/{doc_id}/intents",
        json={"intents": [{"op": "reorder", "block_id": "1", "target_index": "last"}]},
    )
    assert response.status_code == 400
    assert "target_index" in response.json()["detail"]
    response = client.post("/api/documents/55/intents", json={"intents": []})
    assert response.status_code == 404


def test_intents_never_reuse_deleted_block_ids(runtime):
    """A block id freed in one request is not handed out by the next one."""
    runtime.config.editor.id_strategy = "sequential"
    client = TestClient(create_app(runtime))
    doc_id = client.post("/api/documents", json={"content": BLOCKS}).json()["id"]
    url = f"/api/documents/{doc_id}/intents"

    data = client.post(url, json={"intents": [{"op": "split_after", "block_id": "2"}]}).json()
    assert data["results"][0]["focusTarget"] == "3"
    client.post(url, json={"intents": [{"op": "delete_block", "block_id": "3"}]})

    data = client.post(url, json={"intents": [{"op": "split_after", "block_id": "2"}]}).json()
    assert data["results"][0]["focusTarget"] == "4"
    assert data["document"]["nextBlockId"] == 5


def test_token_auth(runtime):
    token = generate_token()
    client = TestClient(create_app(runtime, token=token))
    assert client.get("/health").status_code == 401
    assert client.get("/health", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/health", headers={"Authorization": f"Bearer {token}"}).status_code == 200


def test_cors_enabled(runtime):
    client = TestClient(create_app(runtime, enable_cors=True))
    response = client.get("/health", headers={"Origin": "http://example.com"})
    assert response.headers.get("access-control-allow-origin") in ("*", "http://example.com")

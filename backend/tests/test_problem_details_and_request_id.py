from __future__ import annotations


def _auth(sub: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {sub}"}


def test_request_id_is_generated_and_returned(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"
    assert r.headers.get("X-Request-Id")


def test_request_id_is_propagated_from_client(client):
    r = client.get("/", headers={"X-Request-Id": "abc-123"})
    assert r.status_code == 200
    assert r.headers.get("X-Request-Id") == "abc-123"


def test_oversized_request_id_is_truncated(client):
    r = client.get("/", headers={"X-Request-Id": "x" * 500})
    assert r.headers.get("X-Request-Id") == "x" * 128


def test_validation_errors_are_problem_json(client):
    # Missing required body fields => pydantic validation error
    r = client.post("/checklist", json={}, headers=_auth("u1"))
    assert r.status_code == 422
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["title"] == "Validation Failed"
    assert body["status"] == 422
    assert "errors" in body and isinstance(body["errors"], list)
    assert body["errors"][0]["path"] == "title"
    assert body.get("requestId")


def test_unknown_route_is_problem_json(client):
    r = client.get("/does-not-exist", headers=_auth("u1"))
    assert r.status_code == 404
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["detail"] == "Route not found"
    assert body["instance"] == "/does-not-exist"


def test_missing_authorization_is_problem_json(client):
    r = client.get("/checklists", headers={"X-Request-Id": "rid-1"})
    assert r.status_code == 401
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["title"] == "Unauthorized"
    assert body["requestId"] == "rid-1"
    assert r.headers.get("X-Request-Id") == "rid-1"


def test_non_bearer_authorization_is_rejected(client):
    r = client.get("/checklists", headers={"Authorization": "Basic dTE6cHc="})
    assert r.status_code == 401


def test_domain_errors_render_with_their_status(client):
    r = client.get("/checklist/missing", headers=_auth("u1"))
    assert r.status_code == 404
    body = r.json()
    assert body["title"] == "Not Found"
    assert body["detail"] == "Checklist not found"
    assert "extensions" not in body

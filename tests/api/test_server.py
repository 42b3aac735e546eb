"""Server Tests — app wiring, health probes, body limit and error envelope."""

import logging

import httpx
import pytest
from fastapi import File, Form, Request, UploadFile
from httpx import ASGITransport, AsyncClient

from mediaserve_common.api.server import Server, create_app
from mediaserve_common.config import Settings
from mediaserve_common.core.errors import InvalidArgumentError, QueryFailure
from mediaserve_common.infrastructure.database import DatabasePool
from mediaserve_common.service import Service


def _settings(**overrides):
    return Settings(server_secret="test-secret", body_limit_mb=1, **overrides)


@pytest.fixture
async def service():
    svc = Service(_settings())
    yield svc
    await svc.aclose()


@pytest.fixture
async def api_client(service):
    app = create_app(service)

    @app.get("/boom")
    async def boom():
        raise InvalidArgumentError("Invalid parameter: expected string", "method")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def test_health_returns_correlation_id(api_client):
    resp = await api_client.get("/health/", headers={"x-forwarded-for": "10.0.0.9"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["status"] == "healthy"
    assert payload["timers"] == 0
    assert payload["correlationId"]


async def test_health_ids_differ_per_request(api_client):
    first = (await api_client.get("/health/")).json()["correlationId"]
    second = (await api_client.get("/health/")).json()["correlationId"]
    assert first != second


async def test_ready_without_database(api_client):
    resp = await api_client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json()["checks"]["database"] == "not_configured"


async def test_oversized_body_rejected(api_client):
    resp = await api_client.post("/health/", content=b"x" * (1024 * 1024 + 1))
    assert resp.status_code == 413
    assert resp.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"


async def test_toolkit_errors_use_envelope(api_client):
    resp = await api_client.get("/boom")
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "INVALID_ARGUMENT"
    assert error["category"] == "validation"
    assert resp.json()["correlationId"] == error["context"]["correlation_id"]


async def test_ready_with_unreachable_database(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'db.sqlite'}"
    pool = DatabasePool(url, pool_size=None, max_overflow=None, pool_timeout=None)
    svc = Service(_settings(), database=pool)
    app = create_app(svc)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/health/ready")
    assert resp.status_code == 503
    assert resp.json()["reason"] == "database_unavailable"
    await svc.aclose()


async def test_ready_with_healthy_database():
    pool = DatabasePool(
        "sqlite+aiosqlite:///:memory:", pool_size=None, max_overflow=None, pool_timeout=None,
    )
    svc = Service(_settings(), database=pool)
    app = create_app(svc)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json()["checks"]["database"] == "healthy"
    await svc.aclose()


async def test_cors_enabled_adds_headers():
    svc = Service(_settings(cors_enabled=True, cors_origins=["http://studio.test"]))
    app = create_app(svc)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/health/", headers={"Origin": "http://studio.test"})
    assert resp.headers["access-control-allow-origin"] == "http://studio.test"
    await svc.aclose()


async def test_server_exposes_app_and_context(service):
    server = Server(service)
    assert server.app.state.service is service
    assert server.context is server.app.state.request_context
    assert isinstance(server.app.title, str)


async def test_handlers_can_call_upstream_through_service():
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"clips": 3})),
    )
    svc = Service(_settings(), http_client=http)
    app = create_app(svc)

    @app.get("/clips/count")
    async def count():
        return await svc.fetch("http://catalog.test/count", "GET")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/clips/count")
    assert resp.json() == {"clips": 3}
    assert len(svc.timers) == 0
    await svc.aclose()
    await http.aclose()


async def test_error_envelope_reuses_request_correlation_id(service, caplog):
    caplog.set_level(logging.DEBUG)
    app = create_app(service)

    @app.get("/clips/{clip_id}")
    async def clip(clip_id: int, request: Request):
        app.state.request_context.begin(request)
        raise QueryFailure("SELECT * FROM clips WHERE id = ?", RuntimeError("gone away"))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/clips/7")

    assert resp.status_code == 503
    body = resp.json()
    assert body["error"]["code"] == "QUERY_FAILED"
    assert body["error"]["context"]["statement"] == "SELECT * FROM clips WHERE id = ?"
    assert body["error"]["context"]["cause"] == "gone away"
    begun = [r for r in caplog.records if "new request from" in r.getMessage()]
    assert body["correlationId"] == begun[-1].correlation_id
    failed = [r for r in caplog.records if getattr(r, "error_code", None) == "QUERY_FAILED"]
    assert failed[-1].levelno == logging.ERROR
    assert failed[-1].correlation_id == body["correlationId"]


async def test_validation_errors_become_invalid_argument(service):
    app = create_app(service)

    @app.get("/clips/{clip_id}")
    async def clip(clip_id: int):
        return {"id": clip_id}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/clips/not-a-number")

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "INVALID_ARGUMENT"
    assert body["error"]["details"][0]["field"] == "path.clip_id"
    assert body["correlationId"]


async def test_unexpected_errors_hide_details(service):
    app = create_app(service)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("secret connection string")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.get("/crash")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert "secret" not in resp.text
    assert body["correlationId"]


async def test_form_and_file_uploads_are_accepted(service):
    app = create_app(service)

    @app.post("/media")
    async def upload(label: str = Form(...), file: UploadFile = File(...)):
        content = await file.read()
        return {"label": label, "filename": file.filename, "size": len(content)}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.post(
            "/media",
            data={"label": "trailer"},
            files={"file": ("trailer.mp4", b"\x00" * 2048, "video/mp4")},
        )

    assert resp.status_code == 200
    assert resp.json() == {"label": "trailer", "filename": "trailer.mp4", "size": 2048}

"""Unit tests for request routing."""

import json

import pytest

from pathguard.bootstrap.config import ServerConfig
from pathguard.domain.guard_types import TrustedRoot
from pathguard.domain.http_types import HttpRequest
from pathguard.lifecycle.state import ServerLifecycle
from pathguard.pipeline.router import route_request
from pathguard.transport.context import WorkerContext


def make_request(path: str, method: str = "GET", body: bytes = b"") -> HttpRequest:
    return HttpRequest(method, path, {"content-length": str(len(body))}, body)


@pytest.fixture(name="context")
def fixture_context(trusted_root: TrustedRoot) -> WorkerContext:
    return WorkerContext(
        root=trusted_root,
        config=ServerConfig(socket_timeout=1, shutdown_grace_seconds=1),
        lifecycle=ServerLifecycle(),
    )


def test_unknown_route_is_not_found(context: WorkerContext) -> None:
    response = route_request(make_request("/files/hello.txt"), context)
    assert response.status_line == "HTTP/1.1 404 Not Found"


def test_wrong_method_lists_allowed(context: WorkerContext) -> None:
    response = route_request(make_request("/read"), context)
    assert response.status_line == "HTTP/1.1 405 Method Not Allowed"
    assert response.headers["Allow"] == "POST"


def test_healthz_reports_draining(context: WorkerContext) -> None:
    assert route_request(make_request("/healthz"), context).status_line == (
        "HTTP/1.1 200 OK"
    )
    context.lifecycle.begin_draining()
    response = route_request(make_request("/healthz"), context)
    assert response.status_line == "HTTP/1.1 503 Service Unavailable"
    assert response.close_connection


def test_setup_sample_then_read(context: WorkerContext) -> None:
    setup = route_request(make_request("/setup-sample", "POST"), context)
    assert json.loads(setup.body) == {"ok": True}

    body = json.dumps({"filename": "hello.txt"}).encode()
    response = route_request(make_request("/read", "POST", body), context)
    assert json.loads(response.body) == {"content": "Hello from safe file!\n"}


def test_setup_sample_exposes_base_when_configured(context: WorkerContext) -> None:
    context.config.expose_paths = True
    setup = route_request(make_request("/setup-sample", "POST"), context)
    assert json.loads(setup.body) == {"ok": True, "base": str(context.root.path)}

"""Unit tests mapping guard outcomes onto /read responses."""

import json
import logging
import os
from pathlib import Path

import pytest

from pathguard.domain.guard_types import TrustedRoot
from pathguard.domain.http_types import HttpRequest
from pathguard.handlers.read_handler import read_response


def make_request(payload, raw: bytes | None = None) -> HttpRequest:
    body = raw if raw is not None else json.dumps(payload).encode()
    return HttpRequest("POST", "/read", {"content-length": str(len(body))}, body)


def status_of(response) -> int:
    return int(response.status_line.split(" ", 2)[1])


@pytest.fixture(name="root")
def fixture_root(trusted_root: TrustedRoot) -> TrustedRoot:
    (trusted_root.path / "notes").mkdir()
    (trusted_root.path / "notes" / "readme.md").write_text("hi", encoding="utf-8")
    return trusted_root


def test_allowed_file_returns_content(root: TrustedRoot) -> None:
    response = read_response(make_request({"filename": "notes/readme.md"}), root)
    assert response.status_line == "HTTP/1.1 200 OK"
    assert response.headers["Content-Type"].startswith("application/json")
    assert json.loads(response.body) == {"content": "hi"}


def test_resolved_path_only_exposed_on_request(root: TrustedRoot) -> None:
    response = read_response(
        make_request({"filename": "notes/readme.md"}), root, expose_paths=True
    )
    assert json.loads(response.body) == {
        "content": "hi",
        "path": str(root.path / "notes" / "readme.md"),
    }


@pytest.mark.parametrize(
    ("filename", "status", "message"),
    [
        ("../../etc/passwd", 403, "Path traversal detected"),
        ("..%2f..%2fetc%2fpasswd", 403, "Path traversal detected"),
        ("missing.txt", 404, "File not found"),
        ("\x00etc", 400, "Invalid filename"),
        ("%zz", 400, "Invalid filename"),
        ("   ", 400, "Invalid filename"),
        ("notes", 404, "File not found"),
    ],
)
def test_rejections_map_to_status(
    root: TrustedRoot, filename: str, status: int, message: str
) -> None:
    response = read_response(make_request({"filename": filename}), root)
    assert status_of(response) == status
    assert json.loads(response.body) == {"error": message}


@pytest.mark.parametrize(
    ("payload", "raw", "param", "message"),
    [
        ({}, None, "filename", "filename required"),
        ({"filename": None}, None, "filename", "filename required"),
        ({"filename": 7}, None, "filename", "filename must be a string"),
        (None, b"filename=hello.txt", "body", "body must be a JSON object"),
        (None, b"[\"hello.txt\"]", "body", "body must be a JSON object"),
        (None, b"\xff\xfe", "body", "body must be a JSON object"),
    ],
)
def test_invalid_bodies_list_field_errors(
    root: TrustedRoot, payload, raw, param: str, message: str
) -> None:
    response = read_response(make_request(payload, raw), root)
    assert status_of(response) == 400
    assert json.loads(response.body) == {"errors": [{"param": param, "msg": message}]}


def test_rejection_body_does_not_leak_paths(root: TrustedRoot) -> None:
    response = read_response(make_request({"filename": "missing.txt"}), root)
    assert str(root.path).encode() not in response.body


@pytest.mark.skipif(os.name == "nt", reason="POSIX symlink semantics")
def test_symlink_escape_is_forbidden(tmp_path: Path, root: TrustedRoot) -> None:
    secret = tmp_path / "secret.txt"
    secret.write_text("secret")
    (root.path / "shortcut").symlink_to(secret)
    response = read_response(make_request({"filename": "shortcut"}), root)
    assert status_of(response) == 403
    assert json.loads(response.body) == {"error": "Path traversal detected"}


def test_rejection_is_logged_with_reason(root: TrustedRoot, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="pathguard"):
        read_response(make_request({"filename": "../x"}), root)
    records = [r for r in caplog.records if getattr(r, "event", "") == "path_rejected"]
    assert len(records) == 1
    assert records[0].reason == "traversal"
    assert records[0].component == "handlers.read"


def test_undecodable_content_is_replaced(root: TrustedRoot) -> None:
    (root.path / "binary.dat").write_bytes(b"ok\xff")
    response = read_response(make_request({"filename": "binary.dat"}), root)
    assert json.loads(response.body) == {"content": "ok\ufffd"}


def test_deeply_nested_body_is_bad_request(root: TrustedRoot) -> None:
    """Nesting deep enough to exhaust the decoder is an invalid body."""
    nested = b"[" * 200_000 + b"]" * 200_000
    response = read_response(make_request(None, nested), root)
    assert status_of(response) == 400
    assert json.loads(response.body) == {
        "errors": [{"param": "body", "msg": "body must be a JSON object"}]
    }


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires named pipes")
def test_named_pipe_is_not_found(root: TrustedRoot) -> None:
    os.mkfifo(root.path / "pipe")
    response = read_response(make_request({"filename": "pipe"}), root)
    assert status_of(response) == 404
    assert json.loads(response.body) == {"error": "File not found"}

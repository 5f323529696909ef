from __future__ import annotations

import json
from pathlib import Path
from urllib.error import URLError

import pytest

from pulsarctl_cli import admin_client
from pulsarctl_cli.admin_client import PulsarAdmin, build_admin_client
from pulsarctl_cli.cli_shared import (
    GlobalOpts,
    RemoteError,
    RemoteNotFound,
    RemoteRejected,
    TransportFailure,
    UsageError,
)
from pulsarctl_cli.identifiers import NamespaceName, parse_topic_name


def _recorder(monkeypatch, *, status: int = 204, body: bytes = b""):
    calls: list[dict[str, object]] = []

    def _fake(*, method, url, headers, body=None, timeout_seconds=30):
        calls.append({"method": method, "url": url, "headers": headers, "body": body, "timeout": timeout_seconds})
        return status, {}, resp_body

    resp_body = body
    monkeypatch.setattr("pulsarctl_cli.admin_client._http_request", _fake)
    return calls


def test_start_function_posts_to_function_path(monkeypatch):
    calls = _recorder(monkeypatch)
    PulsarAdmin("http://broker:8080/").start_function("public", "default", "f1")

    assert calls[0]["method"] == "POST"
    assert calls[0]["url"] == "http://broker:8080/admin/v3/functions/public/default/f1/start"


def test_instance_action_includes_instance_id(monkeypatch):
    calls = _recorder(monkeypatch)
    PulsarAdmin("http://broker:8080").stop_function("public", "default", "f1", "2")

    assert calls[0]["url"] == "http://broker:8080/admin/v3/functions/public/default/f1/2/stop"


def test_auth_token_sent_as_bearer(monkeypatch):
    calls = _recorder(monkeypatch, status=200, body=b"[]")
    PulsarAdmin("http://broker:8080", auth_token="tok", timeout_seconds=5).list_namespaces("public")

    assert calls[0]["headers"]["Authorization"] == "Bearer tok"
    assert calls[0]["timeout"] == 5


def test_get_topic_auto_creation_decodes_json(monkeypatch):
    payload = {"allowAutoTopicCreation": True, "topicType": "partitioned", "defaultNumPartitions": 1}
    calls = _recorder(monkeypatch, status=200, body=json.dumps(payload).encode("utf-8"))

    got = PulsarAdmin("http://broker:8080").get_topic_auto_creation(NamespaceName("public", "default"))

    assert got == payload
    assert calls[0]["url"].endswith("/admin/v2/namespaces/public/default/autoTopicCreation")


def test_empty_body_means_no_config(monkeypatch):
    _recorder(monkeypatch, status=204)
    assert PulsarAdmin("http://broker:8080").get_topic_auto_creation(NamespaceName("public", "default")) == {}


def test_set_topic_auto_creation_sends_json(monkeypatch):
    calls = _recorder(monkeypatch)
    PulsarAdmin("http://broker:8080").set_topic_auto_creation(
        NamespaceName("public", "default"), {"allowAutoTopicCreation": False}
    )

    assert calls[0]["headers"]["Content-Type"] == "application/json"
    assert json.loads(calls[0]["body"]) == {"allowAutoTopicCreation": False}


def test_create_partitioned_topic_puts_partition_count(monkeypatch):
    calls = _recorder(monkeypatch)
    PulsarAdmin("http://broker:8080").create_topic(parse_topic_name("orders"), 4)

    assert calls[0]["method"] == "PUT"
    assert calls[0]["url"] == "http://broker:8080/admin/v2/persistent/public/default/orders/partitions"
    assert calls[0]["body"] == b"4"


def test_delete_topic_force_query(monkeypatch):
    calls = _recorder(monkeypatch)
    PulsarAdmin("http://broker:8080").delete_topic(parse_topic_name("t/ns/x"), force=True, partitioned=False)

    assert calls[0]["url"] == "http://broker:8080/admin/v2/persistent/t/ns/x?force=true"


@pytest.mark.parametrize(
    "status,cls",
    [(404, RemoteNotFound), (400, RemoteRejected), (409, RemoteRejected), (500, RemoteError)],
)
def test_error_status_maps_to_taxonomy(monkeypatch, status, cls):
    _recorder(monkeypatch, status=status, body=b'{"reason": "Operation not permitted"}')

    with pytest.raises(cls) as exc:
        PulsarAdmin("http://broker:8080").start_function("public", "default", "f1", "9")

    assert type(exc.value) is cls
    assert str(exc.value) == f"code: {status} reason: Operation not permitted"
    assert exc.value.status == status


def test_error_reason_falls_back_to_text_then_status_phrase():
    assert str(admin_client.remote_error(500, b"boom")) == "code: 500 reason: boom"
    assert str(admin_client.remote_error(404, b"")) == "code: 404 reason: Not Found"


def test_unreachable_service_is_transport_failure(monkeypatch):
    def _refuse(req, timeout):
        raise URLError("connection refused")

    monkeypatch.setattr("pulsarctl_cli.admin_client.urlopen", _refuse)

    with pytest.raises(TransportFailure, match="connection refused"):
        PulsarAdmin("http://broker:8080").list_namespaces("public")


def test_create_function_uploads_local_package_as_multipart(monkeypatch, tmp_path: Path):
    jar = tmp_path / "fn.jar"
    jar.write_bytes(b"JARBYTES")
    calls = _recorder(monkeypatch)

    config = {"tenant": "public", "namespace": "default", "name": "f1"}
    PulsarAdmin("http://broker:8080").create_function(config, str(jar))

    body = calls[0]["body"]
    assert calls[0]["method"] == "POST"
    assert calls[0]["headers"]["Content-Type"].startswith("multipart/form-data; boundary=")
    assert b'name="functionConfig"' in body
    assert b'name="data"; filename="fn.jar"' in body
    assert b"JARBYTES" in body


def test_create_function_with_package_url_sends_url_field(monkeypatch):
    calls = _recorder(monkeypatch)
    config = {"tenant": "public", "namespace": "default", "name": "f1"}
    PulsarAdmin("http://broker:8080").create_function(config, "function://public/default/pkg@1")

    assert b'name="url"' in calls[0]["body"]
    assert b"function://public/default/pkg@1" in calls[0]["body"]


def test_create_function_missing_local_package_is_usage_error(monkeypatch, tmp_path: Path):
    calls = _recorder(monkeypatch)
    config = {"tenant": "public", "namespace": "default", "name": "f1"}

    with pytest.raises(UsageError, match="function package not found"):
        PulsarAdmin("http://broker:8080").create_function(config, str(tmp_path / "nope.jar"))
    assert calls == []


def test_create_function_unreadable_local_package_is_usage_error(monkeypatch, tmp_path: Path):
    jar = tmp_path / "locked.jar"
    jar.write_bytes(b"JARBYTES")
    calls = _recorder(monkeypatch)

    def _denied(self):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "read_bytes", _denied)
    config = {"tenant": "public", "namespace": "default", "name": "f1"}

    with pytest.raises(UsageError, match="cannot read function package .*Permission denied"):
        PulsarAdmin("http://broker:8080").create_function(config, str(jar))
    assert calls == []


def test_build_admin_client_uses_global_opts(monkeypatch):
    monkeypatch.delenv("PULSARCTL_TRACE", raising=False)
    client = build_admin_client(GlobalOpts(admin_service_url="https://b:8443", auth_token="t", timeout_seconds=7))

    assert (client.base_url, client.auth_token, client.timeout_seconds, client.trace) == ("https://b:8443", "t", 7, False)


def test_trace_writes_request_line_unless_quiet(monkeypatch, capsys):
    _recorder(monkeypatch, status=200, body=b"[]")
    monkeypatch.setenv("PULSARCTL_TRACE", "1")

    build_admin_client(GlobalOpts()).list_namespaces("public")
    build_admin_client(GlobalOpts(quiet=True)).list_namespaces("public")

    err = capsys.readouterr().err
    assert err.count("[pulsarctl] GET http://localhost:8080/admin/v2/namespaces/public") == 1

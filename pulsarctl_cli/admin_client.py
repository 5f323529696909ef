from __future__ import annotations

import json
import os
import uuid
from http import HTTPStatus
from pathlib import Path
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from .cli_shared import (
    PULSARCTL_TRACE,
    GlobalOpts,
    RemoteError,
    RemoteNotFound,
    RemoteRejected,
    TransportFailure,
    UsageError,
    _eprint,
    _truthy,
)
from .identifiers import NamespaceName, TopicName

_REJECTED_STATUSES = {400, 403, 405, 409, 412}
_URL_PACKAGE_SCHEMES = ("http://", "https://", "file://", "function://")


def _http_request(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None = None,
    timeout_seconds: int = 30,
) -> tuple[int, dict[str, str], bytes]:
    req = Request(url, data=body, method=str(method).upper())
    for k, v in headers.items():
        req.add_header(k, v)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            status = getattr(resp, "status", 200)
            hdrs = {k.lower(): v for k, v in dict(resp.headers).items()}
            data = resp.read()
            return int(status), hdrs, data
    except HTTPError as e:
        hdrs = {k.lower(): v for k, v in dict(e.headers or {}).items()}
        data = e.read() if hasattr(e, "read") else b""
        return int(getattr(e, "code", 0) or 0), hdrs, data
    except (URLError, OSError) as e:
        raise TransportFailure(f"admin service unreachable at {url}: {e}") from e


def _reason_from_body(status: int, raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace").strip()
    if text:
        try:
            parsed = json.loads(text)
        except ValueError:
            return text
        if isinstance(parsed, dict) and str(parsed.get("reason") or "").strip():
            return str(parsed["reason"]).strip()
        return text
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "unknown error"


def remote_error(status: int, raw: bytes) -> RemoteError:
    reason = _reason_from_body(status, raw)
    if status == 404:
        return RemoteNotFound(status, reason)
    if status in _REJECTED_STATUSES:
        return RemoteRejected(status, reason)
    return RemoteError(status, reason)


def _multipart(fields: list[tuple[str, str, bytes, str | None]]) -> tuple[bytes, str]:
    """Encode (name, filename, payload, content_type) parts as multipart/form-data."""
    boundary = f"pulsarctl-{uuid.uuid4().hex}"
    chunks: list[bytes] = []
    for name, filename, payload, content_type in fields:
        disposition = f'form-data; name="{name}"'
        if filename:
            disposition += f'; filename="{filename}"'
        head = f"--{boundary}\r\nContent-Disposition: {disposition}\r\n"
        if content_type:
            head += f"Content-Type: {content_type}\r\n"
        chunks.append(head.encode("utf-8") + b"\r\n" + payload + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


def _seg(*parts: str) -> str:
    return "/".join(quote(str(p), safe="") for p in parts)


class PulsarAdmin:
    """Thin client for the Pulsar admin REST API.

    Every method performs exactly one HTTP call. Error responses are raised as
    RemoteNotFound / RemoteRejected / RemoteError with the service's reason text.
    """

    def __init__(self, base_url: str, *, auth_token: str = "", timeout_seconds: int = 30, trace: bool = False):
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout_seconds = timeout_seconds
        self.trace = trace

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        headers.update(extra or {})
        return headers

    def _call(
        self,
        method: str,
        path: str,
        *,
        body: bytes | None = None,
        content_type: str | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        if params:
            url += "?" + urlencode(params)
        extra = {"Content-Type": content_type} if content_type else None
        if self.trace:
            _eprint(f"[pulsarctl] {method} {url}")
        status, _hdrs, raw = _http_request(
            method=method,
            url=url,
            headers=self._headers(extra),
            body=body,
            timeout_seconds=self.timeout_seconds,
        )
        if status < 200 or status >= 300:
            raise remote_error(status, raw)
        text = raw.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    def _json(self, method: str, path: str, obj: Any, **kw: Any) -> Any:
        body = json.dumps(obj, separators=(",", ":")).encode("utf-8")
        return self._call(method, path, body=body, content_type="application/json", **kw)

    # functions (admin v3)

    def _function_path(self, tenant: str, namespace: str, name: str, *tail: str) -> str:
        return "/admin/v3/functions/" + _seg(tenant, namespace, name, *tail)

    def _function_instance_action(
        self, tenant: str, namespace: str, name: str, action: str, instance_id: str | None
    ) -> None:
        tail = (instance_id, action) if instance_id else (action,)
        self._call("POST", self._function_path(tenant, namespace, name, *tail))

    def _function_upload(self, method: str, config: dict[str, Any], package: str | None) -> None:
        path = self._function_path(config["tenant"], config["namespace"], config["name"])
        fields: list[tuple[str, str, bytes, str | None]] = [
            ("functionConfig", "", json.dumps(config).encode("utf-8"), "application/json"),
        ]
        if package:
            if package.startswith(_URL_PACKAGE_SCHEMES):
                fields.append(("url", "", package.encode("utf-8"), None))
            else:
                p = Path(package).expanduser()
                if not p.is_file():
                    raise UsageError(f"function package not found: {package}")
                try:
                    data = p.read_bytes()
                except OSError as e:
                    raise UsageError(f"cannot read function package {package}: {e}") from e
                fields.append(("data", p.name, data, "application/octet-stream"))
        body, content_type = _multipart(fields)
        self._call(method, path, body=body, content_type=content_type)

    def create_function(self, config: dict[str, Any], package: str | None) -> None:
        self._function_upload("POST", config, package)

    def update_function(self, config: dict[str, Any], package: str | None) -> None:
        self._function_upload("PUT", config, package)

    def get_function(self, tenant: str, namespace: str, name: str) -> dict[str, Any]:
        return self._call("GET", self._function_path(tenant, namespace, name)) or {}

    def list_functions(self, tenant: str, namespace: str) -> list[str]:
        return self._call("GET", "/admin/v3/functions/" + _seg(tenant, namespace)) or []

    def delete_function(self, tenant: str, namespace: str, name: str) -> None:
        self._call("DELETE", self._function_path(tenant, namespace, name))

    def start_function(self, tenant: str, namespace: str, name: str, instance_id: str | None = None) -> None:
        self._function_instance_action(tenant, namespace, name, "start", instance_id)

    def stop_function(self, tenant: str, namespace: str, name: str, instance_id: str | None = None) -> None:
        self._function_instance_action(tenant, namespace, name, "stop", instance_id)

    def restart_function(self, tenant: str, namespace: str, name: str, instance_id: str | None = None) -> None:
        self._function_instance_action(tenant, namespace, name, "restart", instance_id)

    def get_function_status(
        self, tenant: str, namespace: str, name: str, instance_id: str | None = None
    ) -> dict[str, Any]:
        tail = (instance_id, "status") if instance_id else ("status",)
        return self._call("GET", self._function_path(tenant, namespace, name, *tail)) or {}

    # namespaces (admin v2)

    def list_namespaces(self, tenant: str) -> list[str]:
        return self._call("GET", "/admin/v2/namespaces/" + _seg(tenant)) or []

    def create_namespace(self, ns: NamespaceName) -> None:
        self._call("PUT", "/admin/v2/namespaces/" + _seg(ns.tenant, ns.namespace))

    def delete_namespace(self, ns: NamespaceName) -> None:
        self._call("DELETE", "/admin/v2/namespaces/" + _seg(ns.tenant, ns.namespace))

    def get_topic_auto_creation(self, ns: NamespaceName) -> dict[str, Any]:
        return self._call("GET", "/admin/v2/namespaces/" + _seg(ns.tenant, ns.namespace, "autoTopicCreation")) or {}

    def set_topic_auto_creation(self, ns: NamespaceName, config: dict[str, Any]) -> None:
        self._json("POST", "/admin/v2/namespaces/" + _seg(ns.tenant, ns.namespace, "autoTopicCreation"), config)

    def remove_topic_auto_creation(self, ns: NamespaceName) -> None:
        self._call("DELETE", "/admin/v2/namespaces/" + _seg(ns.tenant, ns.namespace, "autoTopicCreation"))

    # topics (admin v2)

    def _topic_path(self, topic: TopicName, *tail: str) -> str:
        return f"/admin/v2/{topic.domain}/" + _seg(topic.tenant, topic.namespace, topic.local_name, *tail)

    def create_topic(self, topic: TopicName, partitions: int) -> None:
        if partitions > 0:
            self._json("PUT", self._topic_path(topic, "partitions"), partitions)
        else:
            self._call("PUT", self._topic_path(topic))

    def delete_topic(self, topic: TopicName, *, force: bool = False, partitioned: bool = True) -> None:
        params = {"force": "true"} if force else None
        path = self._topic_path(topic, "partitions") if partitioned else self._topic_path(topic)
        self._call("DELETE", path, params=params)

    def list_topics(self, ns: NamespaceName) -> list[str]:
        return self._call("GET", "/admin/v2/persistent/" + _seg(ns.tenant, ns.namespace)) or []

    def get_partitioned_metadata(self, topic: TopicName) -> dict[str, Any]:
        return self._call("GET", self._topic_path(topic, "partitions")) or {}


def build_admin_client(g: GlobalOpts) -> PulsarAdmin:
    trace = _truthy(os.environ.get(PULSARCTL_TRACE)) and not g.quiet
    return PulsarAdmin(
        g.admin_service_url,
        auth_token=g.auth_token,
        timeout_seconds=g.timeout_seconds,
        trace=trace,
    )

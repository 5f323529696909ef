from __future__ import annotations

import enum
import json
import os
import sys
from dataclasses import dataclass
from typing import Any, TextIO
from urllib.parse import urlparse


class ErrorKind(enum.Enum):
    INVALID_ARGUMENT = "InvalidArgument"
    MISSING_IDENTIFIER = "MissingIdentifier"
    REMOTE_NOT_FOUND = "RemoteNotFound"
    REMOTE_REJECTED = "RemoteRejected"
    REMOTE_ERROR = "RemoteError"
    TRANSPORT_FAILURE = "TransportFailure"


class PulsarctlError(Exception):
    kind: ErrorKind | None = None


class UsageError(PulsarctlError):
    pass


class InvalidArgument(UsageError):
    kind = ErrorKind.INVALID_ARGUMENT


class MissingIdentifier(UsageError):
    kind = ErrorKind.MISSING_IDENTIFIER


class OpError(PulsarctlError):
    pass


class RemoteError(OpError):
    """An error response from the admin service, rendered as ``code: N reason: R``."""

    kind = ErrorKind.REMOTE_ERROR

    def __init__(self, status: int, reason: str, *, prefix: str = "") -> None:
        self.status = int(status)
        self.reason = str(reason or "").strip()
        self.prefix = prefix
        msg = f"code: {self.status} reason: {self.reason}"
        super().__init__(f"{prefix}: {msg}" if prefix else msg)

    def prefixed(self, prefix: str) -> "RemoteError":
        return type(self)(self.status, self.reason, prefix=prefix)


class RemoteNotFound(RemoteError):
    kind = ErrorKind.REMOTE_NOT_FOUND


class RemoteRejected(RemoteError):
    kind = ErrorKind.REMOTE_REJECTED


class TransportFailure(OpError):
    kind = ErrorKind.TRANSPORT_FAILURE


PULSAR_ADMIN_SERVICE_URL = "PULSAR_ADMIN_SERVICE_URL"
PULSAR_AUTH_TOKEN = "PULSAR_AUTH_TOKEN"
PULSARCTL_TIMEOUT_SECONDS = "PULSARCTL_TIMEOUT_SECONDS"
PULSARCTL_TRACE = "PULSARCTL_TRACE"

DEFAULT_ADMIN_SERVICE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_TENANT = "public"
DEFAULT_NAMESPACE = "default"


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass(frozen=True)
class GlobalOpts:
    admin_service_url: str = DEFAULT_ADMIN_SERVICE_URL
    auth_token: str = ""
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    pretty: bool = True
    quiet: bool = False


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _truthy(raw: str | None) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


def _parse_timeout(raw: str | int | None) -> int:
    if raw is None or str(raw).strip() == "":
        return DEFAULT_TIMEOUT_SECONDS
    try:
        val = int(str(raw).strip())
    except ValueError as e:
        raise UsageError(f"invalid timeout {raw!r}: expected whole seconds") from e
    if val <= 0:
        raise UsageError(f"invalid timeout {raw!r}: must be positive")
    return val


def _validate_service_url(raw: str) -> str:
    url = raw.strip().rstrip("/")
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise UsageError(
            f"invalid admin service url {raw!r} (expected http(s)://host:port, "
            f"set --admin-service-url or env {PULSAR_ADMIN_SERVICE_URL})"
        )
    return url


def global_opts_from_env(
    *,
    admin_service_url: str | None = None,
    auth_token: str | None = None,
    timeout: str | None = None,
    plain_json: bool = False,
    quiet: bool = False,
) -> GlobalOpts:
    url = admin_service_url or _env_or_none(PULSAR_ADMIN_SERVICE_URL) or DEFAULT_ADMIN_SERVICE_URL
    token = auth_token or _env_or_none(PULSAR_AUTH_TOKEN) or ""
    return GlobalOpts(
        admin_service_url=_validate_service_url(url),
        auth_token=token.strip(),
        timeout_seconds=_parse_timeout(timeout or _env_or_none(PULSARCTL_TIMEOUT_SECONDS)),
        pretty=not plain_json,
        quiet=bool(quiet),
    )


def _print_json(obj: Any, *, pretty: bool, stream: TextIO | None = None) -> None:
    out = stream if stream is not None else sys.stdout
    if pretty:
        out.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")
    else:
        out.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")


def _load_json_object(*, raw: str, label: str) -> dict[str, Any]:
    try:
        val = json.loads(raw)
    except Exception as e:
        raise UsageError(f"invalid {label}: {e}") from e
    if not isinstance(val, dict):
        raise UsageError(f"invalid {label}: expected JSON object")
    return val


def _parse_csv(raw: str | None) -> list[str]:
    if not raw:
        return []
    seen: set[str] = set()
    out: list[str] = []
    for part in raw.split(","):
        v = part.strip()
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out

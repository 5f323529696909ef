from __future__ import annotations

from typing import Any

import pytest

from pulsarctl_cli.cli_shared import RemoteNotFound, RemoteRejected
from pulsarctl_cli.commands import build_registry


class FakeAdmin:
    """In-memory stand-in for PulsarAdmin with the service's error semantics."""

    def __init__(self) -> None:
        self.tenants = {"public"}
        self.namespaces = {"public/default"}
        self.functions: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.running: dict[tuple[str, str, str], list[bool]] = {}
        self.auto_creation: dict[str, dict[str, Any]] = {}
        self.topics: dict[str, int] = {}
        self.calls: list[tuple[Any, ...]] = []

    def _require_ns(self, tenant: str, namespace: str) -> None:
        if tenant not in self.tenants:
            raise RemoteNotFound(404, "Tenant does not exist")
        if f"{tenant}/{namespace}" not in self.namespaces:
            raise RemoteNotFound(404, f"Namespace ({tenant}/{namespace}) does not exist")

    def _function(self, tenant: str, namespace: str, name: str) -> tuple[str, str, str]:
        key = (tenant, namespace, name)
        if key not in self.functions:
            raise RemoteNotFound(404, f"Function {name} doesn't exist")
        return key

    def _set_running(self, key: tuple[str, str, str], instance_id: str | None, value: bool) -> None:
        instances = self.running[key]
        if instance_id is None:
            self.running[key] = [value] * len(instances)
            return
        if not instance_id.isdigit() or int(instance_id) >= len(instances):
            raise RemoteRejected(400, "Operation not permitted")
        instances[int(instance_id)] = value

    def create_function(self, config: dict[str, Any], package: str | None) -> None:
        self.calls.append(("create_function", config, package))
        self._require_ns(config["tenant"], config["namespace"])
        key = (config["tenant"], config["namespace"], config["name"])
        if key in self.functions:
            raise RemoteRejected(400, f"Function {config['name']} already exists")
        self.functions[key] = dict(config)
        self.running[key] = [True] * int(config.get("parallelism") or 1)

    def update_function(self, config: dict[str, Any], package: str | None) -> None:
        self.calls.append(("update_function", config, package))
        key = self._function(config["tenant"], config["namespace"], config["name"])
        self.functions[key].update(config)

    def get_function(self, tenant: str, namespace: str, name: str) -> dict[str, Any]:
        self.calls.append(("get_function", tenant, namespace, name))
        return dict(self.functions[self._function(tenant, namespace, name)])

    def list_functions(self, tenant: str, namespace: str) -> list[str]:
        self.calls.append(("list_functions", tenant, namespace))
        self._require_ns(tenant, namespace)
        return sorted(n for (t, ns, n) in self.functions if (t, ns) == (tenant, namespace))

    def delete_function(self, tenant: str, namespace: str, name: str) -> None:
        self.calls.append(("delete_function", tenant, namespace, name))
        key = self._function(tenant, namespace, name)
        del self.functions[key]
        del self.running[key]

    def start_function(self, tenant: str, namespace: str, name: str, instance_id: str | None = None) -> None:
        self.calls.append(("start_function", tenant, namespace, name, instance_id))
        self._set_running(self._function(tenant, namespace, name), instance_id, True)

    def stop_function(self, tenant: str, namespace: str, name: str, instance_id: str | None = None) -> None:
        self.calls.append(("stop_function", tenant, namespace, name, instance_id))
        self._set_running(self._function(tenant, namespace, name), instance_id, False)

    def restart_function(self, tenant: str, namespace: str, name: str, instance_id: str | None = None) -> None:
        self.calls.append(("restart_function", tenant, namespace, name, instance_id))
        self._set_running(self._function(tenant, namespace, name), instance_id, True)

    def get_function_status(
        self, tenant: str, namespace: str, name: str, instance_id: str | None = None
    ) -> dict[str, Any]:
        self.calls.append(("get_function_status", tenant, namespace, name, instance_id))
        instances = self.running[self._function(tenant, namespace, name)]
        return {"numInstances": len(instances), "numRunning": sum(instances)}

    def list_namespaces(self, tenant: str) -> list[str]:
        self.calls.append(("list_namespaces", tenant))
        if tenant not in self.tenants:
            raise RemoteNotFound(404, "Tenant does not exist")
        return sorted(ns for ns in self.namespaces if ns.startswith(f"{tenant}/"))

    def create_namespace(self, ns) -> None:
        self.calls.append(("create_namespace", str(ns)))
        if ns.tenant not in self.tenants:
            raise RemoteNotFound(404, "Tenant does not exist")
        if str(ns) in self.namespaces:
            raise RemoteRejected(409, "Namespace already exists")
        self.namespaces.add(str(ns))

    def delete_namespace(self, ns) -> None:
        self.calls.append(("delete_namespace", str(ns)))
        self._require_ns(ns.tenant, ns.namespace)
        self.namespaces.discard(str(ns))

    def get_topic_auto_creation(self, ns) -> dict[str, Any]:
        self.calls.append(("get_topic_auto_creation", str(ns)))
        self._require_ns(ns.tenant, ns.namespace)
        return dict(self.auto_creation.get(str(ns), {}))

    def set_topic_auto_creation(self, ns, config: dict[str, Any]) -> None:
        self.calls.append(("set_topic_auto_creation", str(ns), config))
        self._require_ns(ns.tenant, ns.namespace)
        self.auto_creation[str(ns)] = dict(config)

    def remove_topic_auto_creation(self, ns) -> None:
        self.calls.append(("remove_topic_auto_creation", str(ns)))
        self._require_ns(ns.tenant, ns.namespace)
        self.auto_creation.pop(str(ns), None)

    def create_topic(self, topic, partitions: int) -> None:
        self.calls.append(("create_topic", str(topic), partitions))
        self._require_ns(topic.tenant, topic.namespace)
        if str(topic) in self.topics:
            raise RemoteRejected(409, "This topic already exists")
        self.topics[str(topic)] = partitions

    def delete_topic(self, topic, *, force: bool = False, partitioned: bool = True) -> None:
        self.calls.append(("delete_topic", str(topic), force, partitioned))
        if str(topic) not in self.topics:
            raise RemoteNotFound(404, "Topic not found")
        del self.topics[str(topic)]

    def list_topics(self, ns) -> list[str]:
        self.calls.append(("list_topics", str(ns)))
        self._require_ns(ns.tenant, ns.namespace)
        return sorted(t for t in self.topics if t.split("://", 1)[1].startswith(f"{ns}/"))

    def get_partitioned_metadata(self, topic) -> dict[str, Any]:
        self.calls.append(("get_partitioned_metadata", str(topic)))
        if str(topic) not in self.topics:
            raise RemoteNotFound(404, "Topic not found")
        return {"partitions": self.topics[str(topic)]}


@pytest.fixture
def admin() -> FakeAdmin:
    return FakeAdmin()


@pytest.fixture
def registry():
    return build_registry()

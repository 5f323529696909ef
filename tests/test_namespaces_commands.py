from __future__ import annotations

import json

import pytest

from pulsarctl_cli.cli_shared import ErrorKind, RemoteNotFound
from pulsarctl_cli.harness import invoke

_NS_MSG = "the namespace name is not specified or the namespace name is specified more than one"


def test_get_topic_auto_creation_without_config_prints_info_line(registry, admin):
    result = invoke(
        registry.verb("namespaces", "get-topic-auto-creation"),
        ["get-topic-auto-creation", "public/default"],
        admin=admin,
    )

    assert result.ok
    assert result.stdout == "Namespace [public/default] has no topic auto-creation config\n"


def test_get_topic_auto_creation_prints_config_json(registry, admin):
    admin.auto_creation["public/default"] = {
        "allowAutoTopicCreation": True,
        "topicType": "partitioned",
        "defaultNumPartitions": 1,
    }

    result = invoke(
        registry.verb("namespaces", "get-topic-auto-creation"),
        ["get-topic-auto-creation", "public/default"],
        admin=admin,
    )

    assert json.loads(result.stdout) == admin.auto_creation["public/default"]


def test_get_topic_auto_creation_propagates_service_error_untouched(registry, admin):
    result = invoke(
        registry.verb("namespaces", "get-topic-auto-creation"),
        ["get-topic-auto-creation", "public/missing"],
        admin=admin,
    )

    assert isinstance(result.err, RemoteNotFound)
    assert str(result.err) == "code: 404 reason: Namespace (public/missing) does not exist"
    assert result.stdout == ""


@pytest.mark.parametrize(
    "args,kind",
    [
        (["get-topic-auto-creation"], ErrorKind.MISSING_IDENTIFIER),
        (["get-topic-auto-creation", "public/default", "public/other"], ErrorKind.INVALID_ARGUMENT),
    ],
)
def test_get_topic_auto_creation_requires_exactly_one_namespace(registry, admin, args, kind):
    result = invoke(registry.verb("namespaces", "get-topic-auto-creation"), args, admin=admin)

    assert str(result.err) == _NS_MSG
    assert result.err.kind is kind
    assert admin.calls == []


def test_malformed_namespace_name_is_invalid_argument(registry, admin):
    result = invoke(registry.verb("namespaces", "create"), ["create", "public"], admin=admin)

    assert result.err.kind is ErrorKind.INVALID_ARGUMENT
    assert "tenant/namespace" in str(result.err)


def test_set_then_remove_topic_auto_creation(registry, admin):
    set_result = invoke(
        registry.verb("namespaces", "set-topic-auto-creation"),
        ["set-topic-auto-creation", "public/default", "--type", "partitioned", "--partitions", "2"],
        admin=admin,
    )
    assert set_result.ok
    assert admin.auto_creation["public/default"] == {
        "allowAutoTopicCreation": True,
        "topicType": "partitioned",
        "defaultNumPartitions": 2,
    }

    removed = invoke(
        registry.verb("namespaces", "remove-topic-auto-creation"),
        ["remove-topic-auto-creation", "public/default"],
        admin=admin,
    )
    assert removed.stdout == "Removed topic auto-creation config successfully for [public/default]\n"
    assert "public/default" not in admin.auto_creation


def test_set_topic_auto_creation_disable(registry, admin):
    invoke(
        registry.verb("namespaces", "set-topic-auto-creation"),
        ["set-topic-auto-creation", "public/default", "--disable"],
        admin=admin,
    )

    assert admin.auto_creation["public/default"] == {"allowAutoTopicCreation": False}


def test_set_topic_auto_creation_partitioned_needs_partitions(registry, admin):
    result = invoke(
        registry.verb("namespaces", "set-topic-auto-creation"),
        ["set-topic-auto-creation", "public/default", "--type", "partitioned"],
        admin=admin,
    )

    assert result.err.kind is ErrorKind.INVALID_ARGUMENT
    assert admin.calls == []


def test_create_list_delete_namespace(registry, admin):
    created = invoke(registry.verb("namespaces", "create"), ["create", "public/ns1"], admin=admin)
    listed = invoke(registry.verb("namespaces", "list"), ["list", "public"], admin=admin)
    deleted = invoke(registry.verb("namespaces", "delete"), ["delete", "public/ns1"], admin=admin)

    assert created.stdout == "Created public/ns1 successfully\n"
    assert listed.stdout.splitlines() == ["public/default", "public/ns1"]
    assert deleted.stdout == "Deleted public/ns1 successfully\n"


def test_create_existing_namespace_is_rejected(registry, admin):
    result = invoke(registry.verb("namespaces", "create"), ["create", "public/default"], admin=admin)

    assert result.err.kind is ErrorKind.REMOTE_REJECTED
    assert str(result.err) == "code: 409 reason: Namespace already exists"


def test_list_requires_tenant(registry, admin):
    result = invoke(registry.verb("namespaces", "list"), ["list"], admin=admin)

    assert "the tenant name is not specified" in str(result.err)


@pytest.mark.parametrize(
    "extra",
    [["--type", "partitioned", "--partitions", "3"], ["--type", "non-partitioned"], ["--partitions", "3"]],
)
def test_set_topic_auto_creation_disable_rejects_topic_settings(registry, admin, extra):
    result = invoke(
        registry.verb("namespaces", "set-topic-auto-creation"),
        ["set-topic-auto-creation", "public/default", "--disable", *extra],
        admin=admin,
    )

    assert result.err.kind is ErrorKind.INVALID_ARGUMENT
    assert "cannot be combined with --disable" in str(result.err)
    assert admin.calls == []

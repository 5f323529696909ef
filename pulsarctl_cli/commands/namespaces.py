from __future__ import annotations

import click

from ..cli_shared import InvalidArgument
from ..cmdutils import Invocation, LongDescription, NameBinding, ResourceGroup, VerbCommand, show_config
from ..identifiers import parse_namespace_name

_TENANT_ADMIN = "This command requires tenant admin permissions."
_NS_NAME_ERROR = "the namespace name is not specified or the namespace name is specified more than one"
_TENANT_NAME_ERROR = "the tenant name is not specified or the tenant name is specified more than one"

_AUTO_CREATION_TYPES = ("partitioned", "non-partitioned")


def _ns_not_exist_outputs(desc: LongDescription) -> LongDescription:
    return (
        desc.output(
            "you must specify a tenant/namespace name, please check if the tenant/namespace name is provided",
            f"[✖]  {_NS_NAME_ERROR}",
        )
        .output("the tenant does not exist", "[✖]  code: 404 reason: Tenant does not exist")
        .output("the namespace does not exist", "[✖]  code: 404 reason: Namespace (tenant/namespace) does not exist")
    )


def _ns_verb(name: str, short_help: str, desc: LongDescription, run, options=()) -> VerbCommand:
    return VerbCommand(
        name=name,
        short_help=short_help,
        desc=desc,
        run=run,
        binding=NameBinding.REQUIRES_NAME,
        resource="namespace",
        name_error=_NS_NAME_ERROR,
        metavar="TENANT/NAMESPACE",
        options=options,
    )


def _run_list(inv: Invocation) -> None:
    for ns in inv.admin().list_namespaces(inv.name_arg):
        inv.echo(str(ns))


def _run_create(inv: Invocation) -> None:
    ns = parse_namespace_name(inv.name_arg)
    inv.admin().create_namespace(ns)
    inv.echo(f"Created {ns} successfully")


def _run_delete(inv: Invocation) -> None:
    ns = parse_namespace_name(inv.name_arg)
    inv.admin().delete_namespace(ns)
    inv.echo(f"Deleted {ns} successfully")


def _run_get_topic_auto_creation(inv: Invocation) -> None:
    ns = parse_namespace_name(inv.name_arg)
    admin = inv.admin()
    show_config(
        inv,
        lambda: admin.get_topic_auto_creation(ns),
        marker="topicType",
        empty_message=f"Namespace [{ns}] has no topic auto-creation config",
    )


def _run_set_topic_auto_creation(inv: Invocation) -> None:
    ns = parse_namespace_name(inv.name_arg)
    opts = inv.options
    enable = not opts.get("disable")
    if not enable and (opts.get("type") or opts.get("partitions") is not None):
        raise InvalidArgument("--type and --partitions cannot be combined with --disable")
    config: dict[str, object] = {"allowAutoTopicCreation": enable}
    if enable:
        topic_type = opts.get("type") or "non-partitioned"
        config["topicType"] = topic_type
        partitions = opts.get("partitions")
        if topic_type == "partitioned":
            if partitions is None or partitions <= 0:
                raise InvalidArgument("--partitions must be a positive number for partitioned topics")
            config["defaultNumPartitions"] = partitions
        elif partitions is not None:
            raise InvalidArgument("--partitions is only valid with --type partitioned")
    inv.admin().set_topic_auto_creation(ns, config)
    inv.echo(f"Set topic auto-creation config successfully for [{ns}]")


def _run_remove_topic_auto_creation(inv: Invocation) -> None:
    ns = parse_namespace_name(inv.name_arg)
    inv.admin().remove_topic_auto_creation(ns)
    inv.echo(f"Removed topic auto-creation config successfully for [{ns}]")


def list_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="Get the list of namespaces of a tenant",
        permission="This command does not need any permission.",
    )
    desc.example("Get the list of namespaces of a tenant", "pulsarctl namespaces list (tenant name)")
    desc.output("normal output", "public/default\npublic/functions")
    desc.output(
        "you must specify a tenant name, please check if the tenant name is provided",
        f"[✖]  {_TENANT_NAME_ERROR}",
    )
    desc.output("the tenant does not exist", "[✖]  code: 404 reason: Tenant does not exist")
    return VerbCommand(
        name="list",
        short_help="Get the list of namespaces of a tenant",
        desc=desc,
        run=_run_list,
        binding=NameBinding.REQUIRES_NAME,
        resource="tenant",
        name_error=_TENANT_NAME_ERROR,
        metavar="TENANT",
    )


def create_verb() -> VerbCommand:
    desc = LongDescription(used_for="Create a new namespace", permission=_TENANT_ADMIN)
    desc.example("Create a new namespace", "pulsarctl namespaces create tenant/namespace")
    desc.output("normal output", "Created tenant/namespace successfully")
    desc.output("the namespace already exists", "[✖]  code: 409 reason: Namespace already exists")
    _ns_not_exist_outputs(desc)
    return _ns_verb("create", "Create a new namespace", desc, _run_create)


def delete_verb() -> VerbCommand:
    desc = LongDescription(used_for="Delete a namespace. The namespace needs to be empty", permission=_TENANT_ADMIN)
    desc.example("Delete a namespace", "pulsarctl namespaces delete tenant/namespace")
    desc.output("normal output", "Deleted tenant/namespace successfully")
    desc.output("the namespace is not empty", "[✖]  code: 409 reason: Cannot delete non empty namespace")
    _ns_not_exist_outputs(desc)
    return _ns_verb("delete", "Delete a namespace", desc, _run_delete)


def get_topic_auto_creation_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="Get topic auto-creation config for a namespace",
        permission=_TENANT_ADMIN,
    )
    desc.example(
        "Get topic auto-creation config for a namespace",
        "pulsarctl namespaces get-topic-auto-creation tenant/namespace",
    )
    desc.output(
        "normal output",
        '{\n  "allowAutoTopicCreation": true,\n  "defaultNumPartitions": 1,\n  "topicType": "partitioned"\n}',
    )
    desc.output("no config set", "Namespace [tenant/namespace] has no topic auto-creation config")
    _ns_not_exist_outputs(desc)
    return _ns_verb(
        "get-topic-auto-creation",
        "Get topic auto-creation for a namespace",
        desc,
        _run_get_topic_auto_creation,
    )


def set_topic_auto_creation_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="Set topic auto-creation config for a namespace, overriding broker settings",
        permission=_TENANT_ADMIN,
    )
    desc.example(
        "Enable auto-creation of partitioned topics with 2 partitions",
        "pulsarctl namespaces set-topic-auto-creation tenant/namespace --type partitioned --partitions 2",
    )
    desc.example(
        "Disable topic auto-creation for a namespace",
        "pulsarctl namespaces set-topic-auto-creation tenant/namespace --disable",
    )
    desc.output("normal output", "Set topic auto-creation config successfully for [tenant/namespace]")
    _ns_not_exist_outputs(desc)
    return _ns_verb(
        "set-topic-auto-creation",
        "Set topic auto-creation for a namespace",
        desc,
        _run_set_topic_auto_creation,
        options=(
            click.Option(["--disable"], is_flag=True, default=False, help="Disable topic auto-creation"),
            click.Option(
                ["--type"],
                default=None,
                type=click.Choice(_AUTO_CREATION_TYPES),
                help="Type of topics to auto-create (default: non-partitioned)",
            ),
            click.Option(["--partitions"], default=None, type=int, help="Number of partitions for partitioned topics"),
        ),
    )


def remove_topic_auto_creation_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="Remove topic auto-creation config for a namespace, falling back to broker settings",
        permission=_TENANT_ADMIN,
    )
    desc.example(
        "Remove topic auto-creation config for a namespace",
        "pulsarctl namespaces remove-topic-auto-creation tenant/namespace",
    )
    desc.output("normal output", "Removed topic auto-creation config successfully for [tenant/namespace]")
    _ns_not_exist_outputs(desc)
    return _ns_verb(
        "remove-topic-auto-creation",
        "Remove topic auto-creation config for a namespace",
        desc,
        _run_remove_topic_auto_creation,
    )


def group() -> ResourceGroup:
    return ResourceGroup(
        name="namespaces",
        help="Operations about namespaces",
        verbs=(
            list_verb(),
            create_verb(),
            delete_verb(),
            get_topic_auto_creation_verb(),
            set_topic_auto_creation_verb(),
            remove_topic_auto_creation_verb(),
        ),
    )

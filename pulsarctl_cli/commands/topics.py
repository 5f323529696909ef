from __future__ import annotations

import click

from ..cli_shared import InvalidArgument
from ..cmdutils import Invocation, LongDescription, NameBinding, ResourceGroup, VerbCommand, show_config
from ..identifiers import parse_namespace_name, parse_topic_name

_TOPIC_PERMISSION = "This command requires tenant admin permissions."
_TOPIC_NAME_ERROR = "the topic name is not specified or the topic name is specified more than one"
_TOPIC_NOT_EXIST = "[✖]  code: 404 reason: Topic not found"


def _parse_partitions(raw: str) -> int:
    try:
        partitions = int(raw)
    except ValueError as e:
        raise InvalidArgument(f"invalid partition number {raw!r}") from e
    if partitions < 0:
        raise InvalidArgument(f"invalid partition number {raw!r}")
    return partitions


def _run_create(inv: Invocation) -> None:
    topic = parse_topic_name(inv.name_args[0])
    partitions = _parse_partitions(inv.name_args[1])
    inv.admin().create_topic(topic, partitions)
    inv.echo(f"Create topic {topic} with {partitions} partitions successfully")


def _run_delete(inv: Invocation) -> None:
    topic = parse_topic_name(inv.name_arg)
    inv.admin().delete_topic(
        topic,
        force=bool(inv.options.get("force")),
        partitioned=not inv.options.get("non_partitioned"),
    )
    inv.echo(f"Delete topic {topic} successfully")


def _run_list(inv: Invocation) -> None:
    ns = parse_namespace_name(inv.name_arg)
    for topic in inv.admin().list_topics(ns):
        inv.echo(str(topic))


def _run_get(inv: Invocation) -> None:
    topic = parse_topic_name(inv.name_arg)
    admin = inv.admin()
    show_config(inv, lambda: admin.get_partitioned_metadata(topic))


def create_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for creating topic.",
        permission=_TOPIC_PERMISSION,
    )
    desc.example("Create a non-partitioned topic <topic-name>", "pulsarctl topics create <topic-name> 0")
    desc.example(
        "Create a partitioned topic <topic-name> with <partitions-num> partitions",
        "pulsarctl topics create <topic-name> <partition-num>",
    )
    desc.output("normal output", "Create topic <topic-name> with <partition-num> partitions successfully")
    desc.output(
        "the topic name and(or) the partitions is not specified",
        "[✖]  need to specified the topic name and the partitions",
    )
    desc.output("the topic already exists", "[✖]  code: 409 reason: This topic already exists")
    desc.output("the partitions number is invalid", "[✖]  invalid partition number '<number>'")
    return VerbCommand(
        name="create",
        short_help="Create a topic with n partitions",
        desc=desc,
        run=_run_create,
        binding=NameBinding.REQUIRES_NAME,
        resource="topic",
        name_error="need to specified the topic name and the partitions",
        arity=2,
        metavar="TOPIC PARTITIONS",
        # a negative partition count must reach the partition check, not the option parser
        context_settings={"ignore_unknown_options": True},
    )


def delete_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for deleting an existing topic.",
        permission=_TOPIC_PERMISSION,
    )
    desc.example("Delete a partitioned topic <topic-name>", "pulsarctl topics delete <topic-name>")
    desc.example("Delete a non-partitioned topic <topic-name>", "pulsarctl topics delete --non-partitioned <topic-name>")
    desc.output("normal output", "Delete topic <topic-name> successfully")
    desc.output("the topic name is not specified", f"[✖]  {_TOPIC_NAME_ERROR}")
    desc.output("the topic does not exist", _TOPIC_NOT_EXIST)
    return VerbCommand(
        name="delete",
        short_help="Delete a topic",
        desc=desc,
        run=_run_delete,
        binding=NameBinding.REQUIRES_NAME,
        resource="topic",
        name_error=_TOPIC_NAME_ERROR,
        metavar="TOPIC",
        options=(
            click.Option(["--force", "-f"], is_flag=True, default=False, help="Close all producers/consumers/replicators and delete topic forcefully"),
            click.Option(["--non-partitioned", "-n"], is_flag=True, default=False, help="Delete a non-partitioned topic"),
        ),
    )


def list_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for listing all exist topics under the specified namespace.",
        permission=_TOPIC_PERMISSION,
    )
    desc.example("List all exist topics under the namespace <tenant/namespace>", "pulsarctl topics list <tenant/namespace>")
    desc.output("normal output", "persistent://public/default/topic-1\npersistent://public/default/topic-2")
    desc.output(
        "the namespace name is not specified",
        "[✖]  the namespace name is not specified or the namespace name is specified more than one",
    )
    desc.output("the namespace does not exist", "[✖]  code: 404 reason: Namespace does not exist")
    return VerbCommand(
        name="list",
        short_help="List all exist topics under the specified namespace",
        desc=desc,
        run=_run_list,
        binding=NameBinding.REQUIRES_NAME,
        resource="namespace",
        name_error="the namespace name is not specified or the namespace name is specified more than one",
        metavar="TENANT/NAMESPACE",
    )


def get_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for getting the metadata of an exist topic.",
        permission=_TOPIC_PERMISSION,
    )
    desc.example("Get the metadata of an exist topic <topic-name>", "pulsarctl topics get <topic-name>")
    desc.output("normal output", '{\n  "partitions": 1\n}')
    desc.output("the topic name is not specified", f"[✖]  {_TOPIC_NAME_ERROR}")
    desc.output("the topic does not exist", _TOPIC_NOT_EXIST)
    return VerbCommand(
        name="get",
        short_help="Get the metadata of a topic",
        desc=desc,
        run=_run_get,
        binding=NameBinding.REQUIRES_NAME,
        resource="topic",
        name_error=_TOPIC_NAME_ERROR,
        metavar="TOPIC",
    )


def group() -> ResourceGroup:
    return ResourceGroup(
        name="topics",
        help="Operations about topics",
        verbs=(create_verb(), delete_verb(), list_verb(), get_verb()),
    )

from __future__ import annotations

from typing import Any, Callable

import click

from ..cli_shared import (
    DEFAULT_NAMESPACE,
    DEFAULT_TENANT,
    InvalidArgument,
    MissingIdentifier,
    RemoteNotFound,
    _load_json_object,
    _parse_csv,
)
from ..cmdutils import Invocation, LongDescription, NameBinding, ResourceGroup, VerbCommand, show_config
from ..identifiers import ResourceIdentifier, missing_identifier_message

_FUNCTIONS_PERMISSION = "This command requires super-user permissions."
_MISSING_NAME_OUTPUT = missing_identifier_message("function")


def _not_found_prefix(ident: ResourceIdentifier) -> str:
    return f"Function {ident.name} doesn't exist"


def _identifier(inv: Invocation) -> ResourceIdentifier:
    if inv.identifier is None:
        raise MissingIdentifier(_MISSING_NAME_OUTPUT)
    return inv.identifier


def _call(inv: Invocation, action: Callable[[ResourceIdentifier], Any]) -> Any:
    ident = _identifier(inv)
    try:
        return action(ident)
    except RemoteNotFound as e:
        prefix = _not_found_prefix(ident)
        if prefix in str(e):
            raise
        raise e.prefixed(prefix) from e


def _with_common_outputs(desc: LongDescription) -> LongDescription:
    return (
        desc.output(
            "You must specify a name for the function or a Fully Qualified Function Name (FQFN)",
            f"[✖]  {_MISSING_NAME_OUTPUT}",
        )
        .output(
            "The name of the function does not exist",
            "[✖]  Function <name> doesn't exist: code: 404 reason: Function <name> doesn't exist",
        )
    )


_CONFIG_OPTIONS: tuple[click.Parameter, ...] = (
    click.Option(["--classname"], default=None, help="The class name of the function"),
    click.Option(["--jar"], default=None, help="Path or URL of the Java function package"),
    click.Option(["--py"], default=None, help="Path or URL of the Python function package"),
    click.Option(["--go"], default=None, help="Path or URL of the Go function package"),
    click.Option(["--inputs"], default=None, help="Comma-separated input topics"),
    click.Option(["--topics-pattern"], default=None, help="Input topic pattern"),
    click.Option(["--output"], default=None, help="The output topic"),
    click.Option(["--log-topic"], default=None, help="The topic function logs are produced to"),
    click.Option(["--subs-name"], default=None, help="Subscription name for the input topics"),
    click.Option(
        ["--processing-guarantees"],
        default=None,
        type=click.Choice(["ATLEAST_ONCE", "ATMOST_ONCE", "EFFECTIVELY_ONCE"]),
        help="Delivery semantics for processed messages",
    ),
    click.Option(["--parallelism"], default=None, type=int, help="Number of function instances"),
    click.Option(["--cpu"], default=None, type=float, help="CPU cores per instance"),
    click.Option(["--ram"], default=None, type=int, help="RAM bytes per instance"),
    click.Option(["--disk"], default=None, type=int, help="Disk bytes per instance"),
    click.Option(["--user-config"], default=None, help="User-defined config as a JSON object"),
)


def _package(opts: dict[str, Any], *, required: bool) -> tuple[str | None, str | None]:
    given = [(runtime, opts.get(key)) for key, runtime in (("jar", "JAVA"), ("py", "PYTHON"), ("go", "GO")) if opts.get(key)]
    if len(given) > 1:
        raise InvalidArgument("specify only one of --jar, --py or --go")
    if not given:
        if required:
            raise InvalidArgument("you must specify a function package with --jar, --py or --go")
        return None, None
    runtime, path = given[0]
    return runtime, str(path).strip()


def function_config(inv: Invocation, *, creating: bool) -> tuple[dict[str, Any], str | None]:
    ident = _identifier(inv)
    opts = inv.options
    runtime, package = _package(opts, required=creating)

    config: dict[str, Any] = {"tenant": ident.tenant, "namespace": ident.namespace, "name": ident.name}
    if runtime:
        config["runtime"] = runtime
    if opts.get("classname"):
        config["className"] = opts["classname"]
    elif creating and runtime != "GO":
        raise InvalidArgument("you must specify the function class name with --classname")

    inputs = _parse_csv(opts.get("inputs"))
    if inputs:
        config["inputs"] = inputs
    if opts.get("topics_pattern"):
        config["topicsPattern"] = opts["topics_pattern"]
    if creating and not inputs and not opts.get("topics_pattern"):
        raise InvalidArgument("you must specify input topics with --inputs or --topics-pattern")

    for key, field in (
        ("output", "output"),
        ("log_topic", "logTopic"),
        ("subs_name", "subName"),
        ("processing_guarantees", "processingGuarantees"),
        ("parallelism", "parallelism"),
    ):
        if opts.get(key) is not None:
            config[field] = opts[key]
    if config.get("parallelism") is not None and config["parallelism"] <= 0:
        raise InvalidArgument("--parallelism must be positive")

    resources = {k: opts[k] for k in ("cpu", "ram", "disk") if opts.get(k) is not None}
    if resources:
        config["resources"] = resources
    if opts.get("user_config"):
        config["userConfig"] = _load_json_object(raw=opts["user_config"], label="--user-config")
    return config, package


def _run_create(inv: Invocation) -> None:
    config, package = function_config(inv, creating=True)
    inv.admin().create_function(config, package)
    inv.echo(f"Created {inv.identifier.name} successfully")


def _run_update(inv: Invocation) -> None:
    config, package = function_config(inv, creating=False)
    _call(inv, lambda _ident: inv.admin().update_function(config, package))
    inv.echo(f"Updated {inv.identifier.name} successfully")


def _run_get(inv: Invocation) -> None:
    admin = inv.admin()
    show_config(inv, lambda: _call(inv, lambda i: admin.get_function(i.tenant, i.namespace, i.name)))


def _run_list(inv: Invocation) -> None:
    tenant = inv.options.get("tenant") or DEFAULT_TENANT
    namespace = inv.options.get("namespace") or DEFAULT_NAMESPACE
    for name in inv.admin().list_functions(tenant, namespace):
        inv.echo(str(name))


def _run_delete(inv: Invocation) -> None:
    admin = inv.admin()
    _call(inv, lambda i: admin.delete_function(i.tenant, i.namespace, i.name))
    inv.echo(f"Deleted {inv.identifier.name} successfully")


def _lifecycle(action: str, done: str) -> Callable[[Invocation], None]:
    def run(inv: Invocation) -> None:
        admin = inv.admin()
        method = getattr(admin, f"{action}_function")
        _call(inv, lambda i: method(i.tenant, i.namespace, i.name, inv.instance_id))
        inv.echo(f"{done} successfully")

    return run


def _run_status(inv: Invocation) -> None:
    admin = inv.admin()
    show_config(
        inv,
        lambda: _call(inv, lambda i: admin.get_function_status(i.tenant, i.namespace, i.name, inv.instance_id)),
    )


def create_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for creating a new Pulsar Function in cluster mode.",
        permission=_FUNCTIONS_PERMISSION,
    )
    desc.example(
        "Create a Pulsar Function in cluster mode with jar file",
        "pulsarctl functions create \\\n"
        "    --tenant public \\\n"
        "    --namespace default \\\n"
        "    --name (the name of Pulsar Function) \\\n"
        "    --inputs test-input-topic \\\n"
        "    --output persistent://public/default/test-output-topic \\\n"
        "    --classname org.apache.pulsar.functions.api.examples.ExclamationFunction \\\n"
        "    --jar /examples/api-examples.jar",
    )
    desc.output("normal output", "Created (the name of a Pulsar Function) successfully")
    desc.output("no input topics", "[✖]  you must specify input topics with --inputs or --topics-pattern")
    return VerbCommand(
        name="create",
        short_help="Create a Pulsar Function in cluster mode",
        desc=desc,
        run=_run_create,
        binding=NameBinding.REQUIRES_NAME_OR_FQFN,
        options=_CONFIG_OPTIONS,
    )


def update_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for updating a Pulsar Function that is running in cluster mode.",
        permission=_FUNCTIONS_PERMISSION,
    )
    desc.example(
        "Change the output topic of a Pulsar Function",
        "pulsarctl functions update \\\n"
        "    --tenant public \\\n"
        "    --namespace default \\\n"
        "    --name (the name of Pulsar Function) \\\n"
        "    --output persistent://public/default/update-output-topic",
    )
    desc.output("normal output", "Updated (the name of a Pulsar Function) successfully")
    _with_common_outputs(desc)
    return VerbCommand(
        name="update",
        short_help="Update a Pulsar Function that has been deployed in cluster mode",
        desc=desc,
        run=_run_update,
        binding=NameBinding.REQUIRES_NAME_OR_FQFN,
        options=_CONFIG_OPTIONS,
    )


def get_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for fetching information about a Pulsar Function.",
        permission=_FUNCTIONS_PERMISSION,
    )
    desc.example("Get information about a Pulsar Function", "pulsarctl functions get public/default/(the name of Pulsar Function)")
    desc.output(
        "normal output",
        '{\n  "className": "org.apache.pulsar.functions.api.examples.ExclamationFunction",\n'
        '  "inputs": ["test-input-topic"],\n  "name": "(the name of Pulsar Function)",\n'
        '  "namespace": "default",\n  "tenant": "public"\n}',
    )
    _with_common_outputs(desc)
    return VerbCommand(
        name="get",
        short_help="Fetch information about a Pulsar Function",
        desc=desc,
        run=_run_get,
        binding=NameBinding.REQUIRES_NAME_OR_FQFN,
    )


def list_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for listing all Pulsar Functions running under a specific tenant and namespace.",
        permission=_FUNCTIONS_PERMISSION,
    )
    desc.example("List all Pulsar Functions", "pulsarctl functions list --tenant public --namespace default")
    desc.output("normal output", "(the name of Pulsar Function 1)\n(the name of Pulsar Function 2)")
    desc.output("the namespace does not exist", "[✖]  code: 404 reason: Namespace does not exist")
    return VerbCommand(
        name="list",
        short_help="List all Pulsar Functions running under a specific tenant and namespace",
        desc=desc,
        run=_run_list,
        options=(
            click.Option(["--tenant"], default=None, help=f"The tenant of the functions (default: {DEFAULT_TENANT})"),
            click.Option(["--namespace"], default=None, help=f"The namespace of the functions (default: {DEFAULT_NAMESPACE})"),
        ),
    )


def delete_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for deleting a Pulsar Function that is running on a Pulsar cluster.",
        permission=_FUNCTIONS_PERMISSION,
    )
    desc.example(
        "Delete a Pulsar Function that is running on a Pulsar cluster",
        "pulsarctl functions delete --tenant public --namespace default --name (the name of Pulsar Function)",
    )
    desc.example(
        "Delete a Pulsar Function that is running on a Pulsar cluster with FQFN",
        "pulsarctl functions delete --fqfn tenant/namespace/name",
    )
    desc.output("normal output", "Deleted (the name of a Pulsar Function) successfully")
    _with_common_outputs(desc)
    return VerbCommand(
        name="delete",
        short_help="Delete a Pulsar Function that is running on a Pulsar cluster",
        desc=desc,
        run=_run_delete,
        binding=NameBinding.REQUIRES_NAME_OR_FQFN,
    )


def _lifecycle_verb(verb: str, action: str, gerund: str, done: str) -> VerbCommand:
    desc = LongDescription(
        used_for=f"This command is used for {gerund} function instance.",
        permission=_FUNCTIONS_PERMISSION,
    )
    desc.example(
        f"{action.capitalize()} function instance",
        f"pulsarctl functions {verb} --tenant public --namespace default --name (the name of Pulsar Function)",
    )
    desc.example(
        f"{action.capitalize()} function instance with FQFN",
        f"pulsarctl functions {verb} --fqfn tenant/namespace/name",
    )
    desc.example(
        f"{action.capitalize()} function instance with instance ID",
        f"pulsarctl functions {verb} --tenant public --namespace default "
        f"--name (the name of Pulsar Function) --instance-id 1",
    )
    desc.output("normal output", f"{done} successfully")
    _with_common_outputs(desc)
    desc.output("The instance id does not exist", "[✖]  code: 400 reason: Operation not permitted")
    return VerbCommand(
        name=verb,
        short_help=f"{action.capitalize()} function instance",
        desc=desc,
        run=_lifecycle(action, done),
        binding=NameBinding.REQUIRES_OPTIONAL_INSTANCE_ID,
    )


def start_verb() -> VerbCommand:
    return _lifecycle_verb("start", "start", "starting", "Started")


def stop_verb() -> VerbCommand:
    return _lifecycle_verb("stop", "stop", "stopping", "Stopped")


def restart_verb() -> VerbCommand:
    return _lifecycle_verb("restart", "restart", "restarting", "Restarted")


def status_verb() -> VerbCommand:
    desc = LongDescription(
        used_for="This command is used for getting the current status of a Pulsar Function.",
        permission=_FUNCTIONS_PERMISSION,
    )
    desc.example(
        "Get the current status of a Pulsar Function",
        "pulsarctl functions status --tenant public --namespace default --name (the name of Pulsar Function)",
    )
    desc.output(
        "normal output",
        '{\n  "numInstances": 1,\n  "numRunning": 1,\n  "instances": [...]\n}',
    )
    _with_common_outputs(desc)
    return VerbCommand(
        name="status",
        short_help="Check the current status of a Pulsar Function",
        desc=desc,
        run=_run_status,
        binding=NameBinding.REQUIRES_OPTIONAL_INSTANCE_ID,
    )


def group() -> ResourceGroup:
    return ResourceGroup(
        name="functions",
        help="Interface for managing Pulsar Functions (lightweight, Lambda-style compute processes)",
        verbs=(
            create_verb(),
            update_verb(),
            get_verb(),
            list_verb(),
            delete_verb(),
            start_verb(),
            stop_verb(),
            restart_verb(),
            status_verb(),
        ),
    )

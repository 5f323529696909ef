"""Verb framework shared by every pulsarctl command.

A verb is a ``VerbCommand``: static help metadata (``LongDescription``), one of a
small set of argument-binding shapes (``NameBinding``), and a run function that
receives a bound ``Invocation``. Binding happens before the run function is
called; a binding failure means no admin call is ever attempted.
"""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, TextIO

import click

from .admin_client import build_admin_client
from .cli_shared import (
    DEFAULT_NAMESPACE,
    DEFAULT_TENANT,
    GlobalOpts,
    InvalidArgument,
    MissingIdentifier,
    UsageError,
    _print_json,
)
from .identifiers import ResourceIdentifier, resolve_identifier

_INDENT = "    "


def _indent(text: str) -> str:
    return "\n".join(_INDENT + line if line else line for line in str(text).splitlines())


def _verbatim(text: str) -> str:
    # click rewraps help paragraphs unless they open with \b
    paras = [p for p in str(text).split("\n\n") if p.strip()]
    return "\n\n".join("\b\n" + p for p in paras)


@dataclass(frozen=True)
class Example:
    desc: str
    command: str


@dataclass(frozen=True)
class Output:
    desc: str
    out: str


@dataclass
class LongDescription:
    used_for: str = ""
    permission: str = ""
    examples: list[Example] = field(default_factory=list)
    outputs: list[Output] = field(default_factory=list)

    def example(self, desc: str, command: str) -> "LongDescription":
        self.examples.append(Example(desc, command))
        return self

    def output(self, desc: str, out: str) -> "LongDescription":
        self.outputs.append(Output(desc, out))
        return self

    def render(self) -> str:
        blocks = [
            "USED FOR:\n" + _indent(self.used_for),
            "REQUIRED PERMISSION:\n" + _indent(self.permission),
        ]
        if self.outputs:
            body = "\n".join(_indent(f"#{o.desc}\n{o.out}") for o in self.outputs)
            blocks.append("OUTPUT:\n" + body)
        return "\n\n".join(blocks) + "\n"

    def render_examples(self) -> str:
        return "\n".join(_indent(f"#{e.desc}\n{e.command}") for e in self.examples)


class NameBinding(enum.Enum):
    NONE = "none"
    REQUIRES_NAME = "requires-name"
    REQUIRES_NAME_OR_FQFN = "requires-name-or-fqfn"
    REQUIRES_OPTIONAL_INSTANCE_ID = "requires-optional-instance-id"


def _binding_params(binding: NameBinding, *, resource: str, metavar: str) -> list[click.Parameter]:
    if binding is NameBinding.NONE:
        return []
    if binding is NameBinding.REQUIRES_NAME:
        return [click.Argument(["name_args"], nargs=-1, metavar=metavar)]
    params: list[click.Parameter] = [
        click.Argument(["name_args"], nargs=-1, metavar="[FQFN]"),
        click.Option(["--fqfn"], default=None, help=f"The Fully Qualified Name (tenant/namespace/name) of the {resource}"),
        click.Option(["--tenant"], default=None, help=f"The tenant of the {resource} (default: {DEFAULT_TENANT})"),
        click.Option(["--namespace"], default=None, help=f"The namespace of the {resource} (default: {DEFAULT_NAMESPACE})"),
        click.Option(["--name"], default=None, help=f"The name of the {resource}"),
    ]
    if binding is NameBinding.REQUIRES_OPTIONAL_INSTANCE_ID:
        params.append(
            click.Option(["--instance-id"], default=None, help=f"The instance id of the {resource} (default: all instances)")
        )
    return params


AdminFactory = Callable[[GlobalOpts], Any]


@dataclass(frozen=True)
class Invocation:
    """Arguments of one verb execution, after binding succeeded."""

    verb: "VerbCommand"
    g: GlobalOpts
    options: dict[str, Any]
    name_args: tuple[str, ...] = ()
    identifier: ResourceIdentifier | None = None
    instance_id: str | None = None
    admin_factory: AdminFactory = build_admin_client

    @property
    def name_arg(self) -> str:
        return self.name_args[0] if self.name_args else ""

    @property
    def out(self) -> TextIO:
        return self.verb.out if self.verb.out is not None else sys.stdout

    def admin(self) -> Any:
        return self.admin_factory(self.g)

    def echo(self, msg: str) -> None:
        self.out.write(msg + "\n")

    def print_json(self, obj: Any) -> None:
        _print_json(obj, pretty=self.g.pretty, stream=self.out)


RunFunc = Callable[[Invocation], None]


@dataclass
class VerbCommand:
    name: str
    short_help: str
    desc: LongDescription
    run: RunFunc
    binding: NameBinding = NameBinding.NONE
    resource: str = "function"
    name_error: str = ""
    arity: int = 1
    metavar: str = "NAME"
    options: Sequence[click.Parameter] = ()
    context_settings: dict[str, Any] = field(default_factory=dict)
    # output stream; None means the current sys.stdout
    out: TextIO | None = None

    def params(self) -> list[click.Parameter]:
        return [*_binding_params(self.binding, resource=self.resource, metavar=self.metavar), *self.options]

    def command(self) -> click.Command:
        verb = self

        @click.pass_context
        def callback(ctx: click.Context, **params: Any) -> None:
            obj = ctx.obj if isinstance(ctx.obj, dict) else {}
            try:
                verb.dispatch(obj, params)
            except UsageError as e:
                # lets the top level print this verb's help
                e.ctx = ctx
                raise

        epilog = self.desc.render_examples()
        return click.Command(
            name=self.name,
            callback=callback,
            params=self.params(),
            help=_verbatim(self.desc.render()),
            epilog=_verbatim("EXAMPLES:\n" + epilog) if epilog else None,
            short_help=self.short_help,
            context_settings=dict(self.context_settings),
        )

    def bind(self, params: dict[str, Any], *, g: GlobalOpts, admin_factory: AdminFactory = build_admin_client) -> Invocation:
        opts = dict(params)
        positional = tuple(str(v).strip() for v in (opts.pop("name_args", None) or ()))
        base = {"verb": self, "g": g, "admin_factory": admin_factory}

        if self.binding is NameBinding.NONE:
            return Invocation(options=opts, **base)

        if self.binding is NameBinding.REQUIRES_NAME:
            message = self.name_error or f"you must specify exactly {self.arity} argument(s) for {self.name}"
            if len(positional) < self.arity or not all(positional):
                raise MissingIdentifier(message)
            if len(positional) > self.arity:
                raise InvalidArgument(message)
            return Invocation(options=opts, name_args=positional, **base)

        if len(positional) > 1:
            raise InvalidArgument(
                f"only one fully qualified {self.resource} name may be given, got {len(positional)}"
            )
        fqn = positional[0] if positional else ""
        fqfn_opt = str(opts.pop("fqfn", None) or "").strip()
        if fqn and fqfn_opt and fqn != fqfn_opt:
            raise InvalidArgument(f"conflicting fully qualified names {fqn!r} and --fqfn {fqfn_opt!r}")
        fqn = fqn or fqfn_opt
        tenant = opts.pop("tenant", None)
        namespace = opts.pop("namespace", None)
        name = opts.pop("name", None)
        if not fqn:
            tenant = tenant or DEFAULT_TENANT
            namespace = namespace or DEFAULT_NAMESPACE
        identifier = resolve_identifier(fqn, tenant, namespace, name, resource=self.resource)

        instance_id = None
        if self.binding is NameBinding.REQUIRES_OPTIONAL_INSTANCE_ID:
            instance_id = str(opts.pop("instance_id", None) or "").strip() or None
        return Invocation(options=opts, identifier=identifier, instance_id=instance_id, **base)

    def dispatch(self, obj: dict[str, Any], params: dict[str, Any]) -> None:
        g = obj.get("g") if isinstance(obj.get("g"), GlobalOpts) else GlobalOpts()
        factory = obj.get("admin_factory") or build_admin_client
        inv = self.bind(params, g=g, admin_factory=factory)
        self.run(inv)

    def execute(
        self,
        args: Sequence[str],
        *,
        g: GlobalOpts | None = None,
        admin_factory: AdminFactory | None = None,
    ) -> None:
        """Parse ``args`` (tokens after the verb name) and run the verb once."""
        obj: dict[str, Any] = {"g": g or GlobalOpts()}
        if admin_factory is not None:
            obj["admin_factory"] = admin_factory
        self.command().main(args=list(args), prog_name=self.name, obj=obj, standalone_mode=False)


def show_config(
    inv: Invocation,
    fetch: Callable[[], Any],
    *,
    marker: str | None = None,
    empty_message: str = "",
) -> None:
    """Fetch a config object and print it, or print ``empty_message`` when unset.

    Errors from ``fetch`` propagate untouched. With ``marker`` set, a missing or
    empty value at that key means nothing is configured.
    """
    config = fetch()
    if marker is not None and (not isinstance(config, dict) or not config.get(marker)):
        inv.echo(empty_message)
        return
    inv.print_json(config)


@dataclass(frozen=True)
class ResourceGroup:
    name: str
    help: str
    verbs: tuple[VerbCommand, ...]

    def verb(self, name: str) -> VerbCommand:
        for v in self.verbs:
            if v.name == name:
                return v
        raise KeyError(f"{self.name} has no verb {name!r}")

    def command(self) -> click.Group:
        grp = click.Group(name=self.name, help=self.help, no_args_is_help=True)
        for v in self.verbs:
            grp.add_command(v.command())
        return grp

from __future__ import annotations

import sys
from typing import Any

import click
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from . import __version__
from .admin_client import build_admin_client
from .cli_shared import (
    PULSAR_ADMIN_SERVICE_URL,
    PULSAR_AUTH_TOKEN,
    PULSARCTL_TIMEOUT_SECONDS,
    OpError,
    UsageError,
    _eprint,
    global_opts_from_env,
)
from .commands import Registry, build_registry

_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red][✖][/bold red]  {escape(msg)}")


def _render_usage_error_with_help(*, message: str, ctx: click.Context | None = None) -> None:
    _rich_error(message)
    help_text = ""
    if isinstance(ctx, click.Context):
        try:
            help_text = str(ctx.get_help() or "").strip()
        except Exception:
            help_text = ""
    if help_text:
        _eprint("")
        _eprint(help_text)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pulsarctl {__version__}")
        raise typer.Exit(code=0)


app = typer.Typer(
    name="pulsarctl",
    help="A CLI tool for Apache Pulsar administration.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def app_callback(
    ctx: typer.Context,
    admin_service_url: str | None = typer.Option(
        None,
        "--admin-service-url",
        "-s",
        help=f"The admin web service url (env override: {PULSAR_ADMIN_SERVICE_URL})",
    ),
    auth_token: str | None = typer.Option(
        None,
        "--auth-token",
        help=f"Bearer token for the admin service (env override: {PULSAR_AUTH_TOKEN})",
    ),
    timeout: str | None = typer.Option(
        None,
        "--timeout",
        help=f"Request timeout in seconds (default 30; env override: {PULSARCTL_TIMEOUT_SECONDS})",
    ),
    plain_json: bool = typer.Option(False, "--plain-json", help="Emit compact JSON output"),
    quiet: bool = typer.Option(False, "--quiet", help="Reduce stderr logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    try:
        g = global_opts_from_env(
            admin_service_url=admin_service_url,
            auth_token=auth_token,
            timeout=timeout,
            plain_json=plain_json,
            quiet=quiet,
        )
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=ctx)
        raise typer.Exit(code=2)
    if not isinstance(ctx.obj, dict):
        ctx.obj = {}
    ctx.obj["g"] = g


def build_cli(registry: Registry | None = None) -> click.Group:
    root = typer.main.get_command(app)
    if not isinstance(root, click.Group):
        raise TypeError(f"typer root command is {type(root).__name__}, expected a click.Group")
    return (registry or build_registry()).attach(root)


def _run_cli(*, root: click.Group, prog_name: str, argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # python-dotenv defaults: discover .env without overriding exported values
    load_dotenv()
    obj: dict[str, Any] = {"admin_factory": build_admin_client}
    try:
        result = root.main(args=argv, prog_name=prog_name, obj=obj, standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.ClickException as e:
        if isinstance(e, click.UsageError):
            _render_usage_error_with_help(message=e.format_message(), ctx=getattr(e, "ctx", None))
            return int(e.exit_code)
        _rich_error(e.format_message())
        return int(e.exit_code)
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=getattr(e, "ctx", None))
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    return _run_cli(root=build_cli(), prog_name="pulsarctl", argv=argv)


if __name__ == "__main__":
    raise SystemExit(main())

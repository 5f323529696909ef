"""In-process driver for verb commands.

``invoke`` runs one verb the way the production CLI would, but without a
process boundary: output goes to in-memory buffers and errors come back as
values instead of exit codes.

Not thread-safe. ``invoke`` swaps the verb's output stream and the process-wide
stdout/stderr for the duration of the call, so calls sharing one
``VerbCommand`` must be serialized.
"""

from __future__ import annotations

import contextlib
import io
from dataclasses import dataclass
from typing import Any, Sequence

import click

from .cli_shared import GlobalOpts, PulsarctlError
from .cmdutils import VerbCommand


@dataclass(frozen=True)
class ExecutionResult:
    stdout: str
    stderr: str
    err: PulsarctlError | None
    setup_err: Exception | None

    @property
    def ok(self) -> bool:
        return self.err is None and self.setup_err is None


def invoke(
    verb: VerbCommand,
    args: Sequence[str],
    *,
    admin: Any = None,
    g: GlobalOpts | None = None,
) -> ExecutionResult:
    """Run ``verb`` with ``args``, whose first token is the verb name.

    ``err`` carries the verb's own failure. ``setup_err`` carries failures of the
    invocation itself (unknown verb, malformed flags); check it first.
    """
    root = click.Group(name="pulsarctl")
    root.add_command(verb.command())
    obj: dict[str, Any] = {"g": g or GlobalOpts()}
    if admin is not None:
        obj["admin_factory"] = lambda _g: admin

    out_buf = io.StringIO()
    err_buf = io.StringIO()
    err: PulsarctlError | None = None
    setup_err: Exception | None = None

    previous = verb.out
    verb.out = out_buf
    try:
        with contextlib.redirect_stdout(out_buf), contextlib.redirect_stderr(err_buf):
            root.main(args=list(args), prog_name="pulsarctl", obj=obj, standalone_mode=False)
    except PulsarctlError as e:
        err = e
    except click.ClickException as e:
        setup_err = e
    finally:
        verb.out = previous

    return ExecutionResult(
        stdout=out_buf.getvalue(),
        stderr=err_buf.getvalue(),
        err=err,
        setup_err=setup_err,
    )

from __future__ import annotations

from dataclasses import dataclass

import click

from ..cmdutils import ResourceGroup, VerbCommand
from . import functions, namespaces, topics


@dataclass(frozen=True)
class Registry:
    """The command tree, built once at startup and read-only afterwards."""

    groups: tuple[ResourceGroup, ...]

    def group(self, name: str) -> ResourceGroup:
        for grp in self.groups:
            if grp.name == name:
                return grp
        raise KeyError(f"no command group {name!r}")

    def verb(self, group: str, name: str) -> VerbCommand:
        return self.group(group).verb(name)

    def attach(self, root: click.Group) -> click.Group:
        for grp in self.groups:
            root.add_command(grp.command())
        return root


def build_registry() -> Registry:
    return Registry(groups=(functions.group(), namespaces.group(), topics.group()))


__all__ = ["Registry", "build_registry"]

"""Administration CLI for Apache Pulsar clusters.

The command surface is a Typer root app with click verb groups, errors are
rendered with Rich, and command payload outputs remain machine-friendly.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"

"""Output utilities for shell commands.

Usage:
    from kubeshell.cli.output import Table

    table = Table(title="Results")
    table.add_column("Name", style="cyan")
    table.add_row("foo")
    console.print(table)
"""

from kubeshell.cli.output.resources import build_resource_table
from kubeshell.cli.output.table import Table

__all__ = ["Table", "build_resource_table"]

"""Table output for shell commands.

Wraps Rich's Table with the compact styling used for every listing in the
shell. Columns wrap long text instead of truncating it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from rich import box
from rich.table import Table as RichTable

if TYPE_CHECKING:
    from rich.console import ConsoleRenderable, RichCast

OverflowMethod = Literal["fold", "crop", "ellipsis", "ignore"]


class Table(RichTable):
    """Rich Table with shell defaults.

    Usage:
        from kubeshell.cli.output import Table

        table = Table(title="Pods")
        table.add_index_column()
        table.add_column("Name")
        table.add_row("0", "web-1")
    """

    def __init__(self, *headers: Any, **kwargs: Any) -> None:
        kwargs.setdefault("box", box.SIMPLE_HEAD)
        kwargs.setdefault("show_edge", False)
        kwargs.setdefault("header_style", "bold")
        kwargs.setdefault("title_justify", "left")
        super().__init__(*headers, **kwargs)

    def add_column(
        self,
        header: ConsoleRenderable | RichCast | str = "",
        footer: ConsoleRenderable | RichCast | str = "",
        *,
        overflow: OverflowMethod = "fold",
        **kwargs: Any,
    ) -> None:
        """Add a column with overflow="fold" by default."""
        super().add_column(header, footer, overflow=overflow, **kwargs)

    def add_index_column(self, header: str = "####") -> None:
        """Add the right-aligned row number column used for selection."""
        super().add_column(header, justify="right", style="dim", no_wrap=True)

# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Styled terminal output shared by the CLI and the provisioner."""

from __future__ import annotations

from rich.console import Console


class Output:
    """Thin wrapper around a rich console with one method per message kind."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None):
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def info(self, msg: str) -> None:
        self.console.print(msg)

    def dim(self, msg: str) -> None:
        self.console.print(f"[dim]{msg}[/dim]")

    def success(self, msg: str) -> None:
        self.console.print(f"[green]✓[/green] {msg}")

    def warning(self, msg: str) -> None:
        self.err_console.print(f"[yellow]Warning:[/yellow] {msg}")

    def error(self, msg: str) -> None:
        self.err_console.print(f"[bold red]Error:[/bold red] {msg}")

    def hint(self, msg: str) -> None:
        self.err_console.print(f"[cyan]Hint:[/cyan] {msg}")


out = Output()

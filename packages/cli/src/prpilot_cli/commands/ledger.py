"""ledger command: show the event keys recorded in the dedup ledger."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()

_STATUS_STYLE = {"fulfilled": "green", "admitted": "yellow"}


@click.command("ledger")
@click.option("--limit", default=20, show_default=True, help="Maximum number of keys to show.")
@click.pass_context
def ledger_cmd(ctx, limit: int):
    """List admitted event keys, most recent first.

    A key stuck in "admitted" belongs to a run that is still in flight or
    whose process died before publishing.
    """
    ledger = ctx.obj["ledger"]
    entries = ledger.list_entries(limit=limit)
    if not entries:
        console.print("[yellow]The ledger is empty.[/yellow]")
        return

    table = Table(title="Dedup ledger", show_header=True, header_style="bold cyan")
    table.add_column("Key")
    table.add_column("Status", width=10)
    table.add_column("Admitted At", width=20)
    table.add_column("Fulfilled At", width=20)

    for e in entries:
        style = _STATUS_STYLE.get(e.status, "white")
        table.add_row(
            e.key,
            f"[{style}]{e.status}[/{style}]",
            e.admitted_at[:19].replace("T", " "),
            e.fulfilled_at[:19].replace("T", " "),
        )

    console.print(table)

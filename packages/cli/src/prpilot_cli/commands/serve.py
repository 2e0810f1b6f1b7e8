"""serve command: run the webhook server."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

console = Console()


@click.command("serve")
@click.option("--host", default=None, help="Interface to bind. Overrides config file.")
@click.option("--port", type=int, default=None, help="Port to listen on. Overrides config file.")
@click.option("--debug", is_flag=True, help="Verbose logging.")
@click.pass_context
def serve_cmd(ctx, host: str | None, port: int | None, debug: bool):
    """Listen for GitHub and Asana webhooks.

    \b
    Environment variables:
      WEBHOOK_SECRET                GitHub webhook secret (required for /webhook/github)
      ASANA_PERSONAL_ACCESS_TOKEN   Enables /webhook/asana processing
    """
    from prpilot_cli.auth import require_credentials
    from prpilot_cli.server import create_app
    from prpilot_core.reviewer import build_services

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    config = ctx.obj["config"]
    require_credentials(config)
    if not config.get("actor_login"):
        console.print("[yellow]actor_login is not set; GitHub review requests will all be rejected.[/yellow]")
    if not config.get("webhook_secret"):
        console.print("[yellow]WEBHOOK_SECRET is not set; every GitHub delivery will be rejected.[/yellow]")
    if not config.get("asana_token"):
        console.print("[yellow]ASANA_PERSONAL_ACCESS_TOKEN is not set; Asana events will be ignored.[/yellow]")

    services = build_services(config, ctx.obj["ledger"])
    app = create_app(services)
    host = host or config.get("host", "0.0.0.0")
    port = port or config.get("port", 3000)
    console.print(f"[bold]prpilot[/bold] listening on {host}:{port}")
    app.run(host=host, port=port, threaded=True)

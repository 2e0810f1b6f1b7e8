"""CLI entry point for prpilot.

Commands:
  review   run the review pipeline for one pull request (direct invocation)
  serve    start the webhook server for GitHub and Asana deliveries
  ledger   list the event keys recorded in the dedup ledger
"""

from __future__ import annotations

import importlib.metadata

import click

from prpilot_cli.commands.ledger import ledger_cmd
from prpilot_cli.commands.review import review_cmd
from prpilot_cli.commands.serve import serve_cmd


def _build_ledger(config: dict):
    """Instantiate the configured ledger from .prpilot.yml settings.

    Ledger selection:
      ledger: sqlite  → SQLiteLedger (ledger_path, default .prpilot.db)
      ledger: redis   → RedisLedger  (REDIS_URL and redis_key)
      ledger: memory  → MemoryLedger (nothing survives the process)
    """
    ledger_type = config.get("ledger", "sqlite")

    if ledger_type == "redis":
        from prpilot_store.redis_ledger import RedisLedger

        if not config.get("redis_url"):
            raise click.UsageError("ledger: redis requires the REDIS_URL environment variable.")
        return RedisLedger(url=config["redis_url"], set_name=config.get("redis_key", "processedEvents"))

    if ledger_type == "memory":
        from prpilot_store.memory import MemoryLedger

        return MemoryLedger()

    if ledger_type == "sqlite":
        from prpilot_store.sqlite import SQLiteLedger

        return SQLiteLedger(db_path=config.get("ledger_path", ".prpilot.db"))

    raise click.UsageError(f"Unknown ledger {ledger_type!r}. Choose 'sqlite', 'redis' or 'memory'.")


@click.group()
@click.version_option(
    version=importlib.metadata.version("prpilot"),
    prog_name="prpilot",
)
@click.option(
    "--config",
    "config_path",
    default=".prpilot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRPILOT_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """Post AI review comments on GitHub pull requests, at most once per trigger."""
    from prpilot_core.config import load_config
    from prpilot_cli.auth import resolve_github_token

    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    ledger = _build_ledger(config)
    ctx.obj["ledger"] = ledger
    ctx.obj["config"] = config
    ctx.call_on_close(ledger.close)


main.add_command(review_cmd)
main.add_command(serve_cmd)
main.add_command(ledger_cmd)

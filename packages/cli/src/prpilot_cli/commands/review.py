"""review command: run the pipeline for one pull request without a webhook hop."""

from __future__ import annotations

import click

from prpilot_core.ingest import handle_direct
from prpilot_core.models import OutcomeStatus
from prpilot_core.reviewer import build_services, print_outcome


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--comment-id",
    type=int,
    default=None,
    help="PR comment that mentions the bot; the text after the mention becomes the instruction.",
)
@click.option("--instruction", default=None, help="Answer only this question instead of a full review.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the response without posting, tagging or touching the ledger.",
)
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int,
    comment_id: int | None,
    instruction: str | None,
    model: str | None,
    shadow: bool,
):
    """Review a pull request, or answer one instruction about it.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      OPENAI_API_KEY       Required when using --model openai (default)
      ANTHROPIC_API_KEY    Required when using --model anthropic
    """
    from prpilot_cli.auth import require_credentials

    config = dict(ctx.obj["config"])
    if model is not None:
        config["model"] = model
    require_credentials(config)

    services = build_services(config, ctx.obj["ledger"])
    outcome = handle_direct(
        repo, pr_number, services, comment_id=comment_id, instruction=instruction, shadow=shadow
    )
    print_outcome(outcome)

    if outcome.status in (OutcomeStatus.INVOCATION_FAILED, OutcomeStatus.WRITE_FAILED):
        ctx.exit(1)

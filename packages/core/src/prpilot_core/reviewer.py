"""Core review pipeline.

Every trigger channel ends up here through the same path:

    ledger.admit → guard.is_fulfilled → compose_context → reviewer.review
                 → guard.is_fulfilled → publisher.publish (comment, witness, ledger.commit)

The channel only decides how the target was resolved, which key it was
admitted under and which completion witness applies; those arrive already
bundled in a Trigger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console

from prpilot_core.errors import ReasoningError, WriteError
from prpilot_core.gh.client import GitHubClient
from prpilot_core.guard import CompletionGuard
from prpilot_core.models import OutcomeStatus, PullRequestTarget, ReviewOutcome
from prpilot_core.providers.anthropic import AnthropicReviewer
from prpilot_core.providers.base import BaseReviewer
from prpilot_core.providers.openai import OpenAIReviewer
from prpilot_core.publisher import Publisher
from prpilot_core.tasks.asana import AsanaClient
from prpilot_core.utils.context import DEFAULT_MAX_COMMENT_CHARS, DEFAULT_MAX_DIFF_CHARS, compose_context
from prpilot_store.base import BaseLedger

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Collaborators for one pipeline run, built once per process and passed in explicitly."""

    github: GitHubClient
    reviewer: BaseReviewer
    ledger: BaseLedger
    config: dict
    asana: AsanaClient | None = None

    @property
    def publisher(self) -> Publisher:
        return Publisher(self.github, self.ledger, introduction=self.config.get("introduction") or "")


@dataclass
class Trigger:
    """A resolved unit of work, ready for the pipeline."""

    key: str
    target: PullRequestTarget
    witness: CompletionGuard
    instruction: str | None = None
    reply_to: str | None = None


def _get_reviewer(config: dict) -> BaseReviewer:
    model = config["model"]
    kwargs = {"model": config.get("reasoning_model"), "timeout": config.get("reasoning_timeout", 600.0)}
    if model == "anthropic":
        return AnthropicReviewer(api_key=config["anthropic_api_key"], **kwargs)
    if model == "openai":
        return OpenAIReviewer(api_key=config["openai_api_key"], **kwargs)
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def build_services(config: dict, ledger: BaseLedger) -> Services:
    asana = AsanaClient(config["asana_token"]) if config.get("asana_token") else None
    return Services(
        github=GitHubClient(config["github_token"]),
        reviewer=_get_reviewer(config),
        ledger=ledger,
        config=config,
        asana=asana,
    )


def run_pipeline(trigger: Trigger, services: Services, shadow: bool = False) -> ReviewOutcome:
    """Run one admitted-at-most-once review for a resolved trigger.

    In shadow mode the ledger and the witnesses are neither consulted nor
    written, and nothing is posted; the response is returned for display.
    """
    key, target = trigger.key, trigger.target
    ledger = services.ledger

    if not shadow:
        admission = ledger.admit(key)
        if not admission.admitted:
            return ReviewOutcome(OutcomeStatus.ALREADY_SEEN, key, target, reason=admission.reason)

    try:
        if not shadow and trigger.witness.is_fulfilled(target):
            ledger.commit(key)
            return ReviewOutcome(OutcomeStatus.ALREADY_FULFILLED, key, target, reason="AlreadyFulfilled")

        snapshot = services.github.fetch_snapshot(target)
        context = compose_context(
            snapshot,
            services.github.acting_login,
            trigger.instruction,
            max_diff_chars=services.config.get("max_diff_chars", DEFAULT_MAX_DIFF_CHARS),
            max_comment_chars=services.config.get("max_comment_chars", DEFAULT_MAX_COMMENT_CHARS),
        )

        try:
            response = services.reviewer.review(context)
        except ReasoningError as e:
            if not shadow:
                ledger.release(key)
            return ReviewOutcome(
                OutcomeStatus.INVOCATION_FAILED, key, target, reason=type(e).__name__, detail=str(e)
            )

        if shadow:
            return ReviewOutcome(OutcomeStatus.SHADOW, key, target, response=response)

        # Re-check right before the write: a run admitted under another key for
        # the same target may have published while this one was reasoning.
        if trigger.witness.is_fulfilled(target):
            ledger.commit(key)
            return ReviewOutcome(OutcomeStatus.ALREADY_FULFILLED, key, target, reason="AlreadyFulfilled")

        try:
            publication = services.publisher.publish(target, response, trigger.witness, key, trigger.reply_to)
        except WriteError as e:
            ledger.release(key)
            return ReviewOutcome(OutcomeStatus.WRITE_FAILED, key, target, reason="WriteError", detail=str(e))
    except Exception:
        if not shadow:
            ledger.release(key)
        raise

    return ReviewOutcome(
        OutcomeStatus.PUBLISHED, key, target, detail=f"comment {publication.comment_id}", response=response
    )


_STATUS_STYLE = {
    OutcomeStatus.PUBLISHED: "green",
    OutcomeStatus.SHADOW: "cyan",
    OutcomeStatus.INVOCATION_FAILED: "red",
    OutcomeStatus.WRITE_FAILED: "red",
}


def log_outcome(outcome: ReviewOutcome) -> None:
    target = outcome.target or "-"
    reason = f" ({outcome.reason})" if outcome.reason else ""
    if outcome.status in (OutcomeStatus.INVOCATION_FAILED, OutcomeStatus.WRITE_FAILED):
        logger.error("%s %s%s: %s %s", outcome.status.value, target, reason, outcome.key, outcome.detail)
    else:
        logger.info("%s %s%s: %s", outcome.status.value, target, reason, outcome.key)


def print_outcome(outcome: ReviewOutcome) -> None:
    """Print an outcome to the terminal for direct invocations."""
    style = _STATUS_STYLE.get(outcome.status, "yellow")
    reason = f": {outcome.reason}" if outcome.reason else ""
    console.print(f"[{style}]{outcome.status.value}[/{style}] {outcome.target or ''}{reason}")
    if outcome.detail:
        console.print(f"  [dim]{outcome.detail}[/dim]")
    if outcome.status == OutcomeStatus.SHADOW and outcome.response:
        console.print("\n[bold]Shadow review (not posted)[/bold]\n")
        console.print(outcome.response)

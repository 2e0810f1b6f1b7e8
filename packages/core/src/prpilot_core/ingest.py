"""Event ingestion: from a GitHub delivery, an Asana event or a direct call to a pipeline run.

Each entry point hydrates whatever the resolver needs (reading an Asana
task or story, or a GitHub comment), resolves the target, derives the
idempotency key, picks the completion witness for its channel and hands the
resulting Trigger to run_pipeline. Nothing here retries: an outcome is logged
and the delivering platform is always acknowledged.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from prpilot_core.errors import SignatureInvalid
from prpilot_core.guard import AnyWitness, IdentityWitness, TagWitness
from prpilot_core.models import Channel, OutcomeStatus, Rejected, RejectionReason, ReviewOutcome
from prpilot_core.resolver import (
    extract_instruction,
    resolve_code_host_event,
    resolve_direct,
    resolve_task_description,
    story_key,
    target_key,
    task_key,
)
from prpilot_core.reviewer import Services, Trigger, log_outcome, run_pipeline

logger = logging.getLogger(__name__)


def verify_signature(body: bytes, signature_header: str | None, secret: str | None) -> None:
    """Check a GitHub ``X-Hub-Signature-256`` header against the raw body.

    Raises SignatureInvalid on any mismatch, including a missing secret.
    """
    if not secret:
        raise SignatureInvalid("no webhook secret configured")
    if not signature_header or not signature_header.startswith("sha256="):
        raise SignatureInvalid("missing or malformed signature header")
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, signature_header):
        raise SignatureInvalid("signature does not match body")


def _rejected(rejection: Rejected, key: str | None = None) -> ReviewOutcome:
    return ReviewOutcome(OutcomeStatus.REJECTED, key, reason=rejection.reason.value, detail=rejection.detail)


def _instruction_token(instruction: str) -> str:
    return hashlib.sha256(instruction.encode("utf-8")).hexdigest()[:12]


# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------


def handle_github_delivery(event_type: str | None, payload: dict, services: Services) -> ReviewOutcome:
    resolved = resolve_code_host_event(event_type, payload, services.config.get("actor_login"))
    if isinstance(resolved, Rejected):
        outcome = _rejected(resolved)
    else:
        trigger = Trigger(key=target_key(resolved), target=resolved, witness=IdentityWitness(services.github))
        outcome = run_pipeline(trigger, services)
    log_outcome(outcome)
    return outcome


# ---------------------------------------------------------------------------
# Asana
# ---------------------------------------------------------------------------


def handle_asana_events(events: list[dict], services: Services) -> list[ReviewOutcome]:
    """Process each Asana event record independently, in order of appearance.

    A failure in one event is logged and does not stop the others.
    """
    outcomes = []
    for event in events:
        try:
            outcome = handle_asana_event(event, services)
        except Exception:
            logger.exception("Failed to process Asana event %s", event)
            continue
        log_outcome(outcome)
        outcomes.append(outcome)
    return outcomes


def handle_asana_event(event: dict, services: Services) -> ReviewOutcome:
    resource = event.get("resource") or {}
    gid = resource.get("gid")
    resource_type = resource.get("resource_type")
    action = event.get("action")

    if services.asana is None:
        return _rejected(Rejected(RejectionReason.IGNORED_EVENT, "Asana is not configured"))
    if not gid:
        return _rejected(Rejected(RejectionReason.IGNORED_EVENT, "event has no resource gid"))

    if resource_type == "task" and action == "added":
        return _process_task(str(gid), services)
    if resource_type == "story" and action == "added" and resource.get("resource_subtype") == "comment_added":
        return _process_story(str(gid), services)
    return _rejected(Rejected(RejectionReason.IGNORED_EVENT, f"{resource_type}/{action}"))


def _process_task(task_gid: str, services: Services) -> ReviewOutcome:
    key = task_key(task_gid)
    # Fast path for redeliveries: skip the Asana round trip. Admission itself
    # happens atomically inside run_pipeline.
    if services.ledger.is_seen(key):
        return ReviewOutcome(OutcomeStatus.ALREADY_SEEN, key, reason="AlreadySeen")

    task = services.asana.get_task(task_gid)
    resolved = resolve_task_description(task.notes, Channel.TASK_CREATED)
    if isinstance(resolved, Rejected):
        return _rejected(resolved, key)

    witness = AnyWitness(
        [
            TagWitness(services.asana, task, services.config["processed_tag"]),
            IdentityWitness(services.github),
        ]
    )
    return run_pipeline(Trigger(key=key, target=resolved, witness=witness), services)


def _process_story(story_gid: str, services: Services) -> ReviewOutcome:
    key = story_key(story_gid)
    if services.ledger.is_seen(key):
        return ReviewOutcome(OutcomeStatus.ALREADY_SEEN, key, reason="AlreadySeen")

    story = services.asana.get_story(story_gid)
    if story.type != "comment":
        return _rejected(Rejected(RejectionReason.IGNORED_EVENT, f"story type {story.type!r}"), key)
    instruction = extract_instruction(story.text, services.config["mention"])
    if instruction is None:
        return _rejected(Rejected(RejectionReason.NO_MENTION, "comment does not mention the bot"), key)
    if not story.task_gid:
        return _rejected(Rejected(RejectionReason.NO_TARGET_FOUND, "story is not attached to a task"), key)

    task = services.asana.get_task(story.task_gid)
    resolved = resolve_task_description(task.notes, Channel.TASK_COMMENT)
    if isinstance(resolved, Rejected):
        return _rejected(resolved, key)

    reply_to = f"asana-story-{story_gid}"
    trigger = Trigger(
        key=key,
        target=resolved,
        witness=IdentityWitness(services.github, reply_to=reply_to),
        instruction=instruction,
        reply_to=reply_to,
    )
    return run_pipeline(trigger, services)


# ---------------------------------------------------------------------------
# Direct invocation
# ---------------------------------------------------------------------------


def handle_direct(
    repo_ref: str,
    number: int,
    services: Services,
    comment_id: int | None = None,
    instruction: str | None = None,
    shadow: bool = False,
) -> ReviewOutcome:
    """Review a PR named explicitly, optionally answering one comment or instruction.

    With ``comment_id`` the instruction is read from that PR comment and must
    mention the bot. Without one, an explicit ``instruction`` is keyed by its
    content so the same question is answered once.
    """
    resolved = resolve_direct(repo_ref, number)
    if isinstance(resolved, Rejected):
        return _rejected(resolved)

    reply_to = None
    if comment_id is not None:
        body = services.github.get_comment_body(resolved, comment_id)
        instruction = extract_instruction(body, services.config["mention"])
        if instruction is None:
            return _rejected(Rejected(RejectionReason.NO_MENTION, f"comment {comment_id} does not mention the bot"))
        reply_to = f"github-comment-{comment_id}"
        key = target_key(resolved, comment_id)
    elif instruction:
        reply_to = f"instruction-{_instruction_token(instruction)}"
        key = f"{target_key(resolved)}:{reply_to}"
    else:
        key = target_key(resolved)

    trigger = Trigger(
        key=key,
        target=resolved,
        witness=IdentityWitness(services.github, reply_to=reply_to),
        instruction=instruction,
        reply_to=reply_to,
    )
    outcome = run_pipeline(trigger, services, shadow=shadow)
    log_outcome(outcome)
    return outcome

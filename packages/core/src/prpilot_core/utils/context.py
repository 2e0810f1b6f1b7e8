"""Assemble the bounded textual context handed to the reasoning engine.

compose_context is pure: it only reshapes a PullRequestSnapshot that was
already fetched, so the same snapshot and instruction always produce the
same ReviewContext. Nothing here is cached across targets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from prpilot_core.models import PriorComment, PullRequestSnapshot

logger = logging.getLogger(__name__)

# Default per-section limits. The diff dominates prompt size on large PRs, so
# it is the section that gets truncated first; comments are capped one by one.
DEFAULT_MAX_DIFF_CHARS = 60_000
DEFAULT_MAX_COMMENT_CHARS = 2_000


@dataclass
class ReviewContext:
    """All PR information for a single reasoning call."""

    number: int
    title: str
    description: str
    diff: str
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    reviewers: list[str] = field(default_factory=list)
    prior_comments: list[PriorComment] = field(default_factory=list)

    # Free text following the bot mention in a triggering comment. When set,
    # the reasoning call answers only this instruction.
    instruction: str | None = None


def _truncate(text: str, limit: int, label: str) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"\n... [{label} truncated]"


def is_human_comment(comment: PriorComment, actor_login: str) -> bool:
    return comment.author != actor_login and comment.author_type != "Bot"


def compose_context(
    snapshot: PullRequestSnapshot,
    actor_login: str,
    instruction: str | None = None,
    max_diff_chars: int = DEFAULT_MAX_DIFF_CHARS,
    max_comment_chars: int = DEFAULT_MAX_COMMENT_CHARS,
) -> ReviewContext:
    """Build the ReviewContext for one target.

    Comments written by the acting account (its own earlier reviews) and by
    other bots are left out so the model only reacts to human discussion.
    """
    comments = [
        PriorComment(author=c.author, body=_truncate(c.body, max_comment_chars, "comment"), author_type=c.author_type)
        for c in snapshot.comments
        if is_human_comment(c, actor_login)
    ]
    return ReviewContext(
        number=snapshot.number,
        title=snapshot.title,
        description=snapshot.body,
        diff=_truncate(snapshot.diff, max_diff_chars, "diff"),
        labels=list(snapshot.labels),
        assignees=list(snapshot.assignees),
        reviewers=list(snapshot.reviewers),
        prior_comments=comments,
        instruction=instruction or None,
    )


def render_context(ctx: ReviewContext) -> str:
    """Render the PR information section of the prompt, in fixed order."""
    sections = [
        f"### Pull Request #{ctx.number}: {ctx.title}\n\n**Description:**\n{ctx.description or 'No description provided.'}",
        f"**Diff:**\n```diff\n{ctx.diff}\n```",
        f"**Labels:** {', '.join(ctx.labels) or 'None'}\n"
        f"**Assignees:** {', '.join(ctx.assignees) or 'None'}\n"
        f"**Reviewers:** {', '.join(ctx.reviewers) or 'None'}",
    ]
    if ctx.prior_comments:
        lines = "\n".join(f"- **{c.author}:** {c.body}" for c in ctx.prior_comments)
        sections.append(f"**Comments:**\n{lines}")
    if ctx.instruction:
        sections.append(f"**Additional Context:**\n{ctx.instruction}")
    return "\n\n".join(sections) + "\n\n---\n"

"""Value types shared by every stage of the pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class Channel(str, enum.Enum):
    CODE_HOST_REVIEW = "github"
    TASK_COMMENT = "asana-story"
    TASK_CREATED = "asana-task"
    DIRECT_INVOCATION = "direct"


class RejectionReason(str, enum.Enum):
    IGNORED_EVENT = "IgnoredEvent"
    REVIEWER_MISMATCH = "ReviewerMismatch"
    NO_TARGET_FOUND = "NoTargetFound"
    MALFORMED_TARGET = "MalformedTarget"
    NO_MENTION = "NoMention"


class OutcomeStatus(str, enum.Enum):
    PUBLISHED = "published"
    REJECTED = "rejected"
    ALREADY_SEEN = "already_seen"
    ALREADY_FULFILLED = "already_fulfilled"
    INVOCATION_FAILED = "invocation_failed"
    WRITE_FAILED = "write_failed"
    SHADOW = "shadow"


@dataclass
class InboundEvent:
    """One delivery from a trigger channel. Never persisted."""

    channel: Channel
    payload: Any
    received_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass(frozen=True)
class PullRequestTarget:
    owner: str
    repo: str
    number: int
    source_channel: Channel

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    detail: str = ""


@dataclass
class PriorComment:
    author: str
    body: str
    author_type: str = "User"


@dataclass
class PullRequestSnapshot:
    """Everything read from GitHub about a pull request for one pipeline run."""

    number: int
    title: str
    body: str
    diff: str
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    reviewers: list[str] = field(default_factory=list)
    comments: list[PriorComment] = field(default_factory=list)


@dataclass
class ReviewOutcome:
    """Result of one pipeline run, logged by the ingestor and shown by the CLI."""

    status: OutcomeStatus
    key: str | None = None
    target: PullRequestTarget | None = None
    reason: str | None = None
    detail: str = ""
    response: str | None = None

"""Completion witnesses: has the review already happened on the target itself?

The ledger only knows which event keys were admitted. Two different events
can describe the same pull request, so before spending a reasoning call the
pipeline also asks the target. The witnesses read durable, externally visible
state: the bot's own comments on the PR, or a tag on the Asana task.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from prpilot_core.gh.pull_request import get_reply_markers

if TYPE_CHECKING:
    from prpilot_core.gh.client import GitHubClient
    from prpilot_core.models import PullRequestTarget
    from prpilot_core.tasks.asana import AsanaClient, AsanaTask

logger = logging.getLogger(__name__)


class CompletionGuard(ABC):
    @abstractmethod
    def is_fulfilled(self, target: PullRequestTarget) -> bool:
        """Return True if the target already shows the action happened."""

    def mark(self, target: PullRequestTarget) -> None:
        """Write the witness after a successful publish. No-op by default."""


class IdentityWitness(CompletionGuard):
    """Fulfilled once the acting account has commented on the PR.

    With ``reply_to`` set, only comments answering that specific trigger count,
    so a follow-up instruction is not blocked by an earlier general review.
    The comment is written by the publisher, so ``mark`` has nothing to do.
    """

    def __init__(self, github: GitHubClient, reply_to: str | None = None):
        self._github = github
        self.reply_to = reply_to

    def is_fulfilled(self, target: PullRequestTarget) -> bool:
        login = self._github.acting_login
        for comment in self._github.list_comments(target):
            if comment.author != login:
                continue
            if self.reply_to is None or self.reply_to in get_reply_markers(comment.body):
                logger.debug("%s already has a comment from %s", target, login)
                return True
        return False


class TagWitness(CompletionGuard):
    """Fulfilled once the originating Asana task carries the processed tag."""

    def __init__(self, asana: AsanaClient, task: AsanaTask, tag_name: str):
        self._asana = asana
        self._task = task
        self._tag_name = tag_name

    def is_fulfilled(self, target: PullRequestTarget) -> bool:
        # Re-read rather than trusting the task fetched at ingestion; a
        # concurrent run may have tagged it since.
        tags = self._asana.get_task(self._task.gid).tags
        return self._tag_name in tags

    def mark(self, target: PullRequestTarget) -> None:
        workspace = self._task.workspace_gid
        if workspace is None:
            workspace = self._asana.get_task(self._task.gid).workspace_gid
        tag_gid = self._asana.find_tag(workspace, self._tag_name)
        if tag_gid is None:
            tag_gid = self._asana.create_tag(workspace, self._tag_name)
        self._asana.add_tag(self._task.gid, tag_gid)
        logger.info("Tagged Asana task %s with %r", self._task.gid, self._tag_name)


class AnyWitness(CompletionGuard):
    """Fulfilled if any member witness is; marks every member."""

    def __init__(self, witnesses: list[CompletionGuard]):
        self.witnesses = witnesses

    def is_fulfilled(self, target: PullRequestTarget) -> bool:
        return any(w.is_fulfilled(target) for w in self.witnesses)

    def mark(self, target: PullRequestTarget) -> None:
        for w in self.witnesses:
            w.mark(target)

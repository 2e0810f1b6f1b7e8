"""Commit a review response back onto the pull request."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from prpilot_core.errors import TaskTrackerError
from prpilot_core.gh.pull_request import reply_marker

if TYPE_CHECKING:
    from prpilot_core.gh.client import GitHubClient
    from prpilot_core.guard import CompletionGuard
    from prpilot_core.models import PullRequestTarget
    from prpilot_store.base import BaseLedger

logger = logging.getLogger(__name__)


@dataclass
class Publication:
    comment_id: int
    body: str


class Publisher:
    def __init__(self, github: GitHubClient, ledger: BaseLedger, introduction: str = ""):
        self._github = github
        self._ledger = ledger
        self._introduction = introduction

    def build_body(self, text: str, reply_to: str | None = None) -> str:
        parts = [self._introduction, text] if self._introduction else [text]
        body = "\n\n".join(parts)
        if reply_to is not None:
            body += "\n" + reply_marker(reply_to)
        return body

    def publish(
        self,
        target: PullRequestTarget,
        text: str,
        witness: CompletionGuard,
        key: str,
        reply_to: str | None = None,
    ) -> Publication:
        """Post the comment, then record the witness and commit the ledger key.

        Raises WriteError if the comment could not be created; in that case
        neither the witness nor the ledger is touched.
        """
        body = self.build_body(text, reply_to)
        comment_id = self._github.create_comment(target, body)
        logger.info("Comment %s posted to %s", comment_id, target)

        try:
            witness.mark(target)
        except TaskTrackerError as e:
            # The comment exists and is itself a witness; only the tag is missing.
            logger.error("Posted to %s but could not record the task tag: %s", target, e)

        self._ledger.commit(key)
        return Publication(comment_id=comment_id, body=body)

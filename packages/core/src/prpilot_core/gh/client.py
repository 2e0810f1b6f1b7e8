"""GitHub access for the pipeline.

One GitHubClient is built per process and passed explicitly into every
pipeline run. It is the only object holding the GitHub credential, and it
caches the login that credential acts as.
"""

from __future__ import annotations

import logging
from functools import cached_property

import requests
from github import Github, GithubException

from prpilot_core.errors import WriteError
from prpilot_core.gh.pull_request import get_diff, get_issue_comments, get_pull
from prpilot_core.models import PriorComment, PullRequestSnapshot, PullRequestTarget

logger = logging.getLogger(__name__)


class GitHubClient:
    def __init__(self, token: str, github: Github | None = None):
        self._token = token
        self._gh = github if github is not None else Github(token)

    @cached_property
    def acting_login(self) -> str:
        """Login of the account behind the token, looked up once per process."""
        login = self._gh.get_user().login
        logger.info("Acting as GitHub user %s", login)
        return login

    def _pull(self, target: PullRequestTarget):
        return get_pull(self._gh.get_repo(target.full_name), target.number)

    def list_comments(self, target: PullRequestTarget) -> list[PriorComment]:
        return get_issue_comments(self._pull(target))

    def get_comment_body(self, target: PullRequestTarget, comment_id: int) -> str:
        return self._pull(target).get_issue_comment(comment_id).body or ""

    def fetch_snapshot(self, target: PullRequestTarget) -> PullRequestSnapshot:
        pr = self._pull(target)
        return PullRequestSnapshot(
            number=pr.number,
            title=pr.title or "",
            body=pr.body or "",
            diff=get_diff(pr, self._token),
            labels=[label.name for label in pr.labels],
            assignees=[user.login for user in pr.assignees],
            reviewers=[user.login for user in pr.requested_reviewers],
            comments=get_issue_comments(pr),
        )

    def create_comment(self, target: PullRequestTarget, body: str) -> int:
        """Post a conversation comment and return its id."""
        try:
            comment = self._pull(target).create_issue_comment(body)
        except (GithubException, requests.RequestException) as e:
            raise WriteError(f"could not comment on {target}: {e}") from e
        return comment.id

from __future__ import annotations

import re

import requests

from prpilot_core.models import PriorComment

_DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
_DIFF_TIMEOUT_SECONDS = 30
_REPLY_MARKER_RE = re.compile(r"<!-- prpilot-reply-to: (\S+) -->")


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_issue_comments(pr) -> list[PriorComment]:
    """Conversation comments on the PR, oldest first."""
    return [
        PriorComment(author=c.user.login, body=c.body or "", author_type=getattr(c.user, "type", None) or "User")
        for c in pr.get_issue_comments()
    ]


def get_diff(pr, token: str) -> str:
    """Fetch the unified diff of a PR.

    PyGithub only exposes per-file patches, so the whole-PR diff is requested
    directly from the pull request endpoint with the diff media type.
    """
    response = requests.get(
        pr.url,
        headers={"Accept": _DIFF_MEDIA_TYPE, "Authorization": f"Bearer {token}"},
        timeout=_DIFF_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.text


def reply_marker(comment_id) -> str:
    return f"<!-- prpilot-reply-to: {comment_id} -->"


def get_reply_markers(body: str | None) -> set[str]:
    """Return every triggering-comment id a published comment answers."""
    return set(_REPLY_MARKER_RE.findall(body or ""))

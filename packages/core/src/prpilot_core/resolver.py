"""Turn raw trigger payloads into a canonical PullRequestTarget.

Every function here is pure: the same payload always resolves to the same
target or the same rejection. Fetching a task or a story from Asana happens
in the ingestor, before resolution, so nothing in this module touches the
network.
"""

from __future__ import annotations

import re

from prpilot_core.models import Channel, PullRequestTarget, Rejected, RejectionReason

# Anything shaped like a PR link. A link with this shape whose parts do not
# parse is reported as MalformedTarget, not skipped.
_PR_URL_SHAPE_RE = re.compile(r"https?://(?:www\.)?github\.com/\S*?/pull/\S*", re.IGNORECASE)
_PR_URL_RE = re.compile(r"https?://(?:www\.)?github\.com/([^/\s]+)/([^/\s]+)/pull/(\d+)", re.IGNORECASE)


def resolve_code_host_event(event_type: str | None, payload: dict, actor_login: str | None) -> PullRequestTarget | Rejected:
    """Resolve a GitHub ``pull_request`` webhook.

    Only ``review_requested`` deliveries naming the configured actor qualify.
    """
    if event_type != "pull_request" or payload.get("action") != "review_requested":
        return Rejected(RejectionReason.IGNORED_EVENT, f"{event_type}/{payload.get('action')}")

    requested = (payload.get("requested_reviewer") or {}).get("login")
    if not actor_login or requested != actor_login:
        return Rejected(RejectionReason.REVIEWER_MISMATCH, f"requested reviewer is {requested!r}")

    pull = payload.get("pull_request") or {}
    repository = payload.get("repository") or {}
    owner = (repository.get("owner") or {}).get("login")
    name = repository.get("name")
    number = pull.get("number")
    if not owner or not name or not isinstance(number, int):
        return Rejected(RejectionReason.MALFORMED_TARGET, "payload lacks repository or pull request number")

    return PullRequestTarget(owner=owner, repo=name, number=number, source_channel=Channel.CODE_HOST_REVIEW)


def find_pull_request_url(text: str | None) -> str | None:
    """Return the first substring of text shaped like a GitHub PR URL, or None."""
    match = _PR_URL_SHAPE_RE.search(text or "")
    return match.group(0) if match else None


def parse_pull_request_url(url: str, channel: Channel) -> PullRequestTarget | Rejected:
    match = _PR_URL_RE.match(url)
    if not match:
        return Rejected(RejectionReason.MALFORMED_TARGET, url)
    owner, repo, number = match.groups()
    return PullRequestTarget(owner=owner, repo=repo, number=int(number), source_channel=channel)


def resolve_task_description(description: str | None, channel: Channel = Channel.TASK_CREATED) -> PullRequestTarget | Rejected:
    """Resolve the PR an Asana task points at through the link in its notes."""
    url = find_pull_request_url(description)
    if url is None:
        return Rejected(RejectionReason.NO_TARGET_FOUND, "no pull request link in task description")
    return parse_pull_request_url(url, channel)


def resolve_direct(repo_ref: str, number: int) -> PullRequestTarget | Rejected:
    """Resolve an explicit ``owner/name`` + number reference."""
    owner, _, name = repo_ref.strip().partition("/")
    if not owner or not name or "/" in name or number <= 0:
        return Rejected(RejectionReason.MALFORMED_TARGET, f"{repo_ref}#{number}")
    return PullRequestTarget(owner=owner, repo=name, number=number, source_channel=Channel.DIRECT_INVOCATION)


def extract_instruction(text: str | None, mention: str) -> str | None:
    """Return the text following the mention marker, or None when it is absent.

    A bare mention yields an empty string, which callers treat as a request
    for an unconstrained review.
    """
    match = re.search(re.escape(mention) + r"\s*(.*)", text or "", re.IGNORECASE | re.DOTALL)
    if match is None:
        return None
    return match.group(1).strip()


# ---------------------------------------------------------------------------
# Idempotency keys
# ---------------------------------------------------------------------------


def target_key(target: PullRequestTarget, comment_id: int | str | None = None) -> str:
    """Key for events that carry the PR reference themselves."""
    key = f"{target.source_channel.value}:{target.owner}/{target.repo}#{target.number}"
    if comment_id is not None:
        key += f":comment:{comment_id}"
    return key


def task_key(task_gid: str) -> str:
    return f"asana:task:{task_gid}"


def story_key(story_gid: str) -> str:
    return f"asana:story:{story_gid}"

"""Shared fakes for pipeline and ingestion tests."""

import threading
import time

import pytest

from prpilot_core.errors import WriteError
from prpilot_core.models import PriorComment, PullRequestSnapshot
from prpilot_core.providers.base import BaseReviewer
from prpilot_core.reviewer import Services
from prpilot_core.tasks.asana import AsanaStory, AsanaTask
from prpilot_store.memory import MemoryLedger

ACTOR = "prpilot-bot"


class FakeGitHub:
    """In-memory stand-in for GitHubClient: comments per PR, no network."""

    def __init__(self, acting_login=ACTOR):
        self.acting_login = acting_login
        self.comments = {}
        self.comment_bodies = {}
        self.created = []
        self.fail_writes = False
        self._lock = threading.Lock()

    def list_comments(self, target):
        with self._lock:
            return list(self.comments.get(str(target), []))

    def get_comment_body(self, target, comment_id):
        return self.comment_bodies[comment_id]

    def fetch_snapshot(self, target):
        return PullRequestSnapshot(
            number=target.number,
            title="Add widget cache",
            body="Caches widgets.",
            diff="+cache = {}",
            comments=self.list_comments(target),
        )

    def create_comment(self, target, body):
        if self.fail_writes:
            raise WriteError("502 Bad Gateway")
        with self._lock:
            self.comments.setdefault(str(target), []).append(PriorComment(self.acting_login, body))
            self.created.append((str(target), body))
            return len(self.created)


class FakeAsana:
    def __init__(self):
        self.tasks = {}
        self.stories = {}
        self.tags = {}
        self.created_tags = []

    def get_task(self, gid):
        task = self.tasks[gid]
        return AsanaTask(gid=task.gid, notes=task.notes, workspace_gid=task.workspace_gid, tags=list(task.tags))

    def get_story(self, gid):
        return self.stories[gid]

    def find_tag(self, workspace_gid, name):
        return self.tags.get((workspace_gid, name))

    def create_tag(self, workspace_gid, name):
        gid = f"tag-{len(self.tags) + 1}"
        self.tags[(workspace_gid, name)] = gid
        self.created_tags.append(name)
        return gid

    def add_tag(self, task_gid, tag_gid):
        name = next(n for (_, n), g in self.tags.items() if g == tag_gid)
        self.tasks[task_gid].tags.append(name)

    def add_task(self, gid, notes, workspace_gid="ws"):
        self.tasks[gid] = AsanaTask(gid=gid, notes=notes, workspace_gid=workspace_gid)

    def add_story(self, gid, text, task_gid, story_type="comment"):
        self.stories[gid] = AsanaStory(gid=gid, type=story_type, text=text, task_gid=task_gid)


class StubReviewer(BaseReviewer):
    """Records every context it is asked about; optionally slow or failing."""

    def __init__(self, response="Looks good to merge.", delay=0.0, error=None):
        self.response = response
        self.delay = delay
        self.error = error
        self.contexts = []
        self._lock = threading.Lock()

    def review(self, context):
        with self._lock:
            self.contexts.append(context)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response

    def _call_api(self, system_prompt, user_prompt):
        return self.response


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def asana():
    return FakeAsana()


@pytest.fixture
def reviewer():
    return StubReviewer()


@pytest.fixture
def services(github, asana, reviewer):
    config = {
        "actor_login": ACTOR,
        "mention": "@AsanaPRBot",
        "processed_tag": "AsanaAI Processed",
        "introduction": "👋 Hi, I'm **AsanaPRBot**, your assistant for concise PR reviews.",
    }
    return Services(github=github, reviewer=reviewer, ledger=MemoryLedger(), config=config, asana=asana)

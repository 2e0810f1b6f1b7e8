"""Minimal Asana REST client: the task, story and tag calls the pipeline needs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import requests

from prpilot_core.errors import TaskTrackerError

logger = logging.getLogger(__name__)

ASANA_API = "https://app.asana.com/api/1.0"
_TIMEOUT_SECONDS = 30


@dataclass
class AsanaTask:
    gid: str
    notes: str = ""
    workspace_gid: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class AsanaStory:
    gid: str
    type: str
    text: str
    task_gid: str | None


class AsanaClient:
    def __init__(self, token: str, session: requests.Session | None = None):
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {token}"})

    def _request(self, method: str, path: str, **kwargs) -> dict | list:
        try:
            response = self._session.request(method, f"{ASANA_API}{path}", timeout=_TIMEOUT_SECONDS, **kwargs)
            response.raise_for_status()
            return response.json().get("data") or {}
        except (requests.RequestException, ValueError) as e:
            raise TaskTrackerError(f"Asana {method} {path} failed: {e}") from e

    def get_task(self, task_gid: str) -> AsanaTask:
        data = self._request("GET", f"/tasks/{task_gid}", params={"opt_fields": "tags.name,workspace,notes"})
        return AsanaTask(
            gid=data.get("gid", task_gid),
            notes=data.get("notes") or "",
            workspace_gid=(data.get("workspace") or {}).get("gid"),
            tags=[t.get("name", "") for t in data.get("tags") or []],
        )

    def get_story(self, story_gid: str) -> AsanaStory:
        data = self._request("GET", f"/stories/{story_gid}")
        return AsanaStory(
            gid=data.get("gid", story_gid),
            type=data.get("type", ""),
            text=data.get("text") or "",
            task_gid=(data.get("target") or {}).get("gid"),
        )

    def find_tag(self, workspace_gid: str, name: str) -> str | None:
        tags = self._request("GET", f"/workspaces/{workspace_gid}/tags", params={"opt_fields": "name"})
        for tag in tags or []:
            if tag.get("name") == name:
                return tag.get("gid")
        return None

    def create_tag(self, workspace_gid: str, name: str) -> str:
        data = self._request("POST", "/tags", json={"data": {"name": name, "workspace": workspace_gid}})
        logger.info("Created Asana tag %r in workspace %s", name, workspace_gid)
        return data["gid"]

    def add_tag(self, task_gid: str, tag_gid: str) -> None:
        self._request("POST", f"/tasks/{task_gid}/addTag", json={"data": {"tag": tag_gid}})

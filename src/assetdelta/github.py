"""GitHub integration — pull request lookup and PR comments over the REST API.

Reads the Actions environment (GITHUB_REPOSITORY, GITHUB_EVENT_PATH,
GITHUB_SHA) and talks to the API with stdlib urllib.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import AssetDeltaError, PublishFailure, PullRequestNotFound

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
REQUEST_TIMEOUT_SEC = 30

FORK_HINT = """Could not create a comment automatically. This could be because GitHub does not allow writing from actions on a fork.

See https://docs.github.com/en/actions/security-guides/automatic-token-authentication#permissions-for-the-github_token for more information."""


@dataclass(frozen=True)
class PullRequest:
    number: int
    base_sha: str
    head_sha: str = ""

    @classmethod
    def from_payload(cls, data: dict) -> "PullRequest":
        return cls(
            number=int(data["number"]),
            base_sha=data["base"]["sha"],
            head_sha=(data.get("head") or {}).get("sha", ""),
        )


@dataclass
class ActionContext:
    """The slice of the GitHub Actions environment this tool needs."""

    owner: str
    repo: str
    sha: str
    event: dict = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ActionContext":
        env = os.environ if environ is None else environ
        repository = env.get("GITHUB_REPOSITORY", "")
        if "/" not in repository:
            raise AssetDeltaError("GITHUB_REPOSITORY is not set; expected 'owner/repo'")
        owner, repo = repository.split("/", 1)

        event: dict = {}
        event_path = env.get("GITHUB_EVENT_PATH")
        if event_path and Path(event_path).exists():
            try:
                event = json.loads(Path(event_path).read_text())
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Could not read event payload %s: %s", event_path, e)

        return cls(owner=owner, repo=repo, sha=env.get("GITHUB_SHA", ""), event=event)


class GitHubClient:
    def __init__(self, token: str, owner: str, repo: str, api_url: str = DEFAULT_API_URL):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")

    def _request(self, method: str, path: str, data: Optional[dict] = None) -> Any:
        url = f"{self.api_url}{path}"
        payload = json.dumps(data).encode("utf-8") if data is not None else None
        req = Request(
            url,
            data=payload,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
                "User-Agent": "assetdelta",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            method=method,
        )
        with urlopen(req, timeout=REQUEST_TIMEOUT_SEC) as response:
            body = response.read()
        return json.loads(body) if body else None

    def pulls_for_commit(self, sha: str) -> list[dict]:
        return self._request("GET", f"/repos/{self.owner}/{self.repo}/commits/{sha}/pulls") or []

    def create_comment(self, number: int, body: str) -> None:
        """Post `body` on issue/PR `number`. Raises PublishFailure."""
        path = f"/repos/{self.owner}/{self.repo}/issues/{number}/comments"
        try:
            self._request("POST", path, {"body": body})
        except HTTPError as e:
            detail = e.read().decode(errors="replace") if e.fp else ""
            raise PublishFailure(f"GitHub API error {e.code}: {detail}".strip()) from e
        except (URLError, OSError) as e:
            raise PublishFailure(f"Network error: {e}") from e
        logger.info("Commented on #%d", number)


def get_pull_request(context: ActionContext, client: Optional[GitHubClient]) -> PullRequest:
    """PR from the event payload, else the first PR associated with the commit."""
    payload = context.event.get("pull_request")
    if payload:
        return PullRequest.from_payload(payload)

    if client is None or not context.sha:
        raise PullRequestNotFound(context.sha or "<unknown>")

    try:
        pulls = client.pulls_for_commit(context.sha)
    except (HTTPError, URLError, OSError) as e:
        raise AssetDeltaError(f"Could not look up pull requests for {context.sha}: {e}") from e
    if not pulls:
        raise PullRequestNotFound(context.sha)
    return PullRequest.from_payload(pulls[0])


__all__ = [
    "ActionContext",
    "FORK_HINT",
    "GitHubClient",
    "PullRequest",
    "get_pull_request",
]

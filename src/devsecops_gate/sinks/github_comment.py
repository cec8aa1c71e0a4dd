"""Publish gate reports as pull request comments through the GitHub REST API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import httpx

from ..render import REPORT_MARKER
from .base import CommentHandle, ReportSink, ReportSinkError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class GitHubContext:
    """Repository and pull request the report belongs to."""

    repository: str
    pull_number: int | None
    token: str
    api_url: str = DEFAULT_API_URL
    event_name: str = ""

    @property
    def is_pull_request(self) -> bool:
        return self.pull_number is not None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> GitHubContext:
        """Build the context from a GitHub Actions style environment mapping."""

        event_name = environ.get("GITHUB_EVENT_NAME", "")
        pull_number: int | None = None
        event_path = environ.get("GITHUB_EVENT_PATH")
        if event_path and event_name.startswith("pull_request"):
            pull_number = _read_pull_number(Path(event_path))

        return cls(
            repository=environ.get("GITHUB_REPOSITORY", ""),
            pull_number=pull_number,
            token=environ.get("GITHUB_TOKEN", ""),
            api_url=(environ.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
            event_name=event_name,
        )


def _read_pull_number(path: Path) -> int | None:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to read GitHub event payload %s: %s", path, exc)
        return None

    pull_request = payload.get("pull_request") if isinstance(payload, Mapping) else None
    if not isinstance(pull_request, Mapping):
        return None
    number = pull_request.get("number")
    return number if isinstance(number, int) else None


class GitHubCommentSink(ReportSink):
    """Create or update the gate comment on a pull request."""

    def __init__(
        self,
        context: GitHubContext,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not context.is_pull_request:
            raise ReportSinkError("GitHub comment sink requires a pull request context")
        if not context.repository:
            raise ReportSinkError("GITHUB_REPOSITORY is not set")

        self.context = context
        self._client = client or httpx.Client(
            base_url=context.api_url,
            timeout=timeout,
            headers=self._headers(context.token),
        )

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    # ------------------------------------------------------------------
    def find_existing(self, title: str) -> CommentHandle | None:
        path = f"/repos/{self.context.repository}/issues/{self.context.pull_number}/comments"
        page = 1
        try:
            while True:
                response = self._client.get(path, params={"per_page": PAGE_SIZE, "page": page})
                response.raise_for_status()
                comments = response.json() or []
                if not isinstance(comments, list):
                    raise ReportSinkError(f"Unexpected comment listing: {type(comments).__name__}")
                for comment in comments:
                    if not isinstance(comment, Mapping):
                        continue
                    body = str(comment.get("body") or "")
                    if REPORT_MARKER in body and title in body:
                        return CommentHandle(id=int(comment["id"]), url=str(comment.get("html_url", "")))
                if len(comments) < PAGE_SIZE:
                    return None
                page += 1
        except (httpx.HTTPError, ValueError, TypeError, KeyError, ReportSinkError) as exc:
            logger.warning("Failed to find existing comment: %s", exc)
            return None

    def create_or_update(self, handle: CommentHandle | None, body: str) -> str:
        repository = self.context.repository
        try:
            if handle is not None:
                response = self._client.patch(
                    f"/repos/{repository}/issues/comments/{handle.id}", json={"body": body}
                )
                response.raise_for_status()
                logger.info("Updated existing DevSecOps PR Gate comment")
                return str(_comment_payload(response).get("html_url") or handle.url)

            response = self._client.post(
                f"/repos/{repository}/issues/{self.context.pull_number}/comments",
                json={"body": body},
            )
            response.raise_for_status()
            logger.info("Created new DevSecOps PR Gate comment")
            return str(_comment_payload(response).get("html_url", ""))
        except (httpx.HTTPError, ValueError) as exc:
            raise ReportSinkError(f"Failed to create/update comment: {exc}") from exc

    def close(self) -> None:
        self._client.close()


def _comment_payload(response: httpx.Response) -> Mapping[str, Any]:
    payload = response.json()
    if not isinstance(payload, Mapping):
        raise ReportSinkError(f"Unexpected comment response: {type(payload).__name__}")
    return payload


__all__ = ["GitHubCommentSink", "GitHubContext"]

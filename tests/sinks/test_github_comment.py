"""Tests for the pull request comment sink."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx

from devsecops_gate.render import REPORT_MARKER
from devsecops_gate.sinks import CommentHandle, GitHubCommentSink, GitHubContext, ReportSinkError

TITLE = "DevSecOps PR Gate"
COMMENTS_PATH = "/repos/acme/shop/issues/42/comments"


@pytest.fixture
def context() -> GitHubContext:
    return GitHubContext(repository="acme/shop", pull_number=42, token="secret-token")


def _comment(comment_id: int, body: str) -> dict[str, object]:
    return {
        "id": comment_id,
        "body": body,
        "html_url": f"https://github.com/acme/shop/pull/42#issuecomment-{comment_id}",
    }


@respx.mock
def test_updates_existing_report_comment(context: GitHubContext) -> None:
    respx.route(method="GET", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(
            200,
            json=[
                _comment(1, "LGTM"),
                _comment(2, f"{REPORT_MARKER}\n\n### {TITLE}\n\nold report"),
            ],
        )
    )
    update = respx.route(
        method="PATCH", host="api.github.com", path="/repos/acme/shop/issues/comments/2"
    ).mock(return_value=httpx.Response(200, json=_comment(2, "new report")))

    sink = GitHubCommentSink(context)
    locator = sink.publish(TITLE, "new report")

    assert locator == "https://github.com/acme/shop/pull/42#issuecomment-2"
    request = update.calls.last.request
    assert json.loads(request.content) == {"body": "new report"}
    assert request.headers["Authorization"] == "Bearer secret-token"


@respx.mock
def test_creates_comment_when_none_matches(context: GitHubContext) -> None:
    respx.route(method="GET", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(200, json=[_comment(1, f"### {TITLE} mentioned without marker")])
    )
    create = respx.route(method="POST", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(201, json=_comment(9, "report"))
    )

    locator = GitHubCommentSink(context).publish(TITLE, "report")

    assert create.called
    assert locator.endswith("issuecomment-9")


@respx.mock
def test_find_existing_follows_pagination(context: GitHubContext) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["page"] == "1":
            return httpx.Response(200, json=[_comment(i, "noise") for i in range(100)])
        return httpx.Response(200, json=[_comment(500, f"{REPORT_MARKER}\n### {TITLE}")])

    route = respx.route(method="GET", host="api.github.com", path=COMMENTS_PATH).mock(side_effect=handler)

    handle = GitHubCommentSink(context).find_existing(TITLE)

    assert handle == CommentHandle(id=500, url="https://github.com/acme/shop/pull/42#issuecomment-500")
    assert route.call_count == 2


@respx.mock
def test_lookup_failure_is_treated_as_missing(context: GitHubContext) -> None:
    respx.route(method="GET", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(500, json={"message": "boom"})
    )

    assert GitHubCommentSink(context).find_existing(TITLE) is None


@respx.mock
def test_create_failure_raises_sink_error(context: GitHubContext) -> None:
    respx.route(method="POST", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(403, json={"message": "Resource not accessible by integration"})
    )

    with pytest.raises(ReportSinkError):
        GitHubCommentSink(context).create_or_update(None, "report")

@respx.mock
def test_non_object_comment_response_raises_sink_error(context: GitHubContext) -> None:
    respx.route(method="GET", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(200, json=[])
    )
    respx.route(method="POST", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(201, json=["unexpected"])
    )

    with pytest.raises(ReportSinkError, match="Unexpected comment response: list"):
        GitHubCommentSink(context).publish(TITLE, "report")


@respx.mock
def test_malformed_comment_listing_is_treated_as_missing(context: GitHubContext) -> None:
    respx.route(method="GET", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(200, json={"message": "not a list"})
    )

    assert GitHubCommentSink(context).find_existing(TITLE) is None


@respx.mock
def test_non_mapping_comments_are_skipped(context: GitHubContext) -> None:
    respx.route(method="GET", host="api.github.com", path=COMMENTS_PATH).mock(
        return_value=httpx.Response(
            200, json=["stray", None, _comment(5, f"{REPORT_MARKER}\n\n### {TITLE}")]
        )
    )

    handle = GitHubCommentSink(context).find_existing(TITLE)

    assert handle is not None and handle.id == 5


def test_sink_requires_pull_request() -> None:
    with pytest.raises(ReportSinkError):
        GitHubCommentSink(GitHubContext(repository="acme/shop", pull_number=None, token=""))


def test_context_from_pull_request_event(tmp_path: Path) -> None:
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"pull_request": {"number": 42}}), encoding="utf-8")

    context = GitHubContext.from_environ(
        {
            "GITHUB_EVENT_NAME": "pull_request",
            "GITHUB_EVENT_PATH": str(event),
            "GITHUB_REPOSITORY": "acme/shop",
            "GITHUB_TOKEN": "t",
            "GITHUB_API_URL": "https://ghe.example.com/api/v3/",
        }
    )

    assert context.is_pull_request
    assert context.pull_number == 42
    assert context.api_url == "https://ghe.example.com/api/v3"


def test_context_outside_pull_request(tmp_path: Path) -> None:
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"ref": "refs/heads/main"}), encoding="utf-8")

    context = GitHubContext.from_environ(
        {"GITHUB_EVENT_NAME": "push", "GITHUB_EVENT_PATH": str(event), "GITHUB_REPOSITORY": "acme/shop"}
    )

    assert not context.is_pull_request

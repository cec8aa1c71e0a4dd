"""Destinations for rendered gate reports and run outputs."""

from .base import PLACEHOLDER_LOCATOR, CommentHandle, ReportSink, ReportSinkError
from .github_comment import GitHubCommentSink, GitHubContext
from .outputs import ActionOutputs, write_step_summary

__all__ = [
    "ActionOutputs",
    "CommentHandle",
    "GitHubCommentSink",
    "GitHubContext",
    "PLACEHOLDER_LOCATOR",
    "ReportSink",
    "ReportSinkError",
    "write_step_summary",
]

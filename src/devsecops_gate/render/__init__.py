"""Markdown rendering for gate reports."""

from .summary import DEFAULT_TITLE, REPORT_MARKER, render_summary

__all__ = ["DEFAULT_TITLE", "REPORT_MARKER", "render_summary"]

"""Command-line interface package for the merge gate."""

from .app import build_parser, create_service, create_sink, main, run

__all__ = [
    "build_parser",
    "create_service",
    "create_sink",
    "main",
    "run",
]

"""Logging setup for local runs and GitHub Actions workflow commands."""

from __future__ import annotations

import logging
import sys
from typing import Mapping, TextIO

_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def escape_command_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Format records as ``::warning::``/``::error::`` commands the runner understands.

    INFO records are printed as plain lines.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_command_data(message)}"


def running_in_actions(environ: Mapping[str, str]) -> bool:
    return environ.get("GITHUB_ACTIONS", "").lower() == "true"


def configure_logging(
    level: int = logging.INFO,
    *,
    workflow_commands: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Attach a single stream handler to the package logger and return it."""

    handler = logging.StreamHandler(stream or sys.stdout)
    if workflow_commands:
        handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    package_logger = logging.getLogger("devsecops_gate")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler


__all__ = [
    "WorkflowCommandFormatter",
    "configure_logging",
    "escape_command_data",
    "running_in_actions",
]

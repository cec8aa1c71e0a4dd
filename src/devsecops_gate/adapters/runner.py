"""Thin wrapper around :mod:`subprocess` used by every scanner adapter."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class ScannerError(RuntimeError):
    """Raised when a scanner cannot be executed or its output cannot be used."""


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit code and captured output of a finished command."""

    args: List[str]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Run an external command and capture stdout, stderr and the exit code.

    Non-zero exit codes are returned, not raised: each scanner decides which
    codes mean success.
    """

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Optional[dict[str, str]] = None,
    ) -> CommandResult:
        command = [str(arg) for arg in args]
        logger.info("Executing: %s", " ".join(command))
        try:
            completed = subprocess.run(  # noqa: S603 - deliberate invocation of external command
                command,
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise ScannerError(f"Executable not found: {command[0]}") from exc
        except OSError as exc:
            raise ScannerError(f"Failed to execute '{command[0]}': {exc}") from exc

        return CommandResult(
            args=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


__all__ = ["CommandResult", "CommandRunner", "ScannerError"]

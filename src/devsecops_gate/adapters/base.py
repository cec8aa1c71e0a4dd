"""Scanner adapter contract shared by the Trivy, Checkov and Conftest adapters."""

from __future__ import annotations

import json
import logging
import re
import shlex
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Union

from ..models import PolicyScanOutcome, ScanOutcome, Severity, ToolName
from ..rules import SeverityTable
from .runner import CommandRunner, ScannerError

logger = logging.getLogger(__name__)

Outcome = Union[ScanOutcome, PolicyScanOutcome]

_VERSION_TOKEN = re.compile(r"\d+(?:\.\d+)*")


class ScannerAdapter(ABC):
    """Invoke one external scanner and normalize its report.

    :meth:`scan` never raises: every failure is logged and replaced by the
    adapter's zero-result outcome so a broken scanner cannot abort the gate.
    """

    tool: ToolName
    executable: str

    def __init__(
        self,
        *,
        runner: CommandRunner | None = None,
        severity_table: SeverityTable | None = None,
        executable: str | None = None,
    ) -> None:
        self.runner = runner or CommandRunner()
        self.severity_table = severity_table or SeverityTable.load()
        if executable is not None:
            self.executable = executable

    # ------------------------------------------------------------------
    def scan(
        self,
        target_path: str | Path,
        tool_version: str | None = None,
        extra_args: str | None = None,
    ) -> Outcome:
        """Scan ``target_path`` and return the normalized outcome."""

        name = self.tool.display_name
        try:
            target = Path(target_path)
            if not target.exists():
                logger.warning("%s target path not found: %s", name, target)
                return self.empty_outcome()

            if tool_version:
                self._check_version(tool_version)

            logger.info("Running %s scan on: %s", name, target)
            outcome = self._scan(target, _split_args(extra_args))
        except Exception as exc:  # noqa: BLE001 - every scanner failure degrades to no findings
            logger.warning("%s scan failed: %s", name, exc)
            return self.empty_outcome()

        logger.info("%s scan completed: %s", name, _describe(outcome))
        return outcome

    @abstractmethod
    def empty_outcome(self) -> Outcome:
        """Return the zero-result outcome substituted on failure."""

    @abstractmethod
    def _scan(self, target: Path, extra_args: List[str]) -> Outcome:
        """Run the scanner against an existing ``target``; may raise."""

    # ------------------------------------------------------------------
    def _resolve_severity(self, raw: object, identifier: str | None = None) -> Severity:
        severity = Severity.parse(raw)
        if severity is not None:
            return severity
        return self.severity_table.resolve(self.tool.value, identifier, raw)

    def _check_version(self, requested: str) -> None:
        try:
            result = self.runner.run([self.executable, "--version"])
        except ScannerError as exc:
            logger.warning("Could not determine %s version: %s", self.tool.display_name, exc)
            return

        wanted = requested.strip().lstrip("v")
        installed = (result.stdout or result.stderr).strip()
        if wanted and not _version_matches(wanted, installed):
            logger.warning(
                "%s version %s requested but '%s' is installed",
                self.tool.display_name,
                requested,
                installed.splitlines()[0] if installed else "unknown",
            )

    @staticmethod
    def _load_json(path: Path) -> Any:
        if not path.exists():
            raise ScannerError(f"Scanner report not found: {path}")

        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ScannerError(f"Invalid JSON in scanner report {path}: {exc.msg}") from exc


def _version_matches(wanted: str, installed: str) -> bool:
    """Compare ``wanted`` with the first version number in ``installed``, part by part.

    A shorter request such as ``0.48`` matches ``0.48.2``; ``0.4`` does not.
    """

    match = _VERSION_TOKEN.search(installed)
    if match is None:
        return False
    wanted_parts = wanted.split(".")
    return match.group(0).split(".")[: len(wanted_parts)] == wanted_parts


def _split_args(extra_args: str | None) -> List[str]:
    if not extra_args or not extra_args.strip():
        return []
    return shlex.split(extra_args)


def _describe(outcome: Outcome) -> str:
    if isinstance(outcome, PolicyScanOutcome):
        return f"{outcome.deny_count} denies"
    return (
        f"{outcome.critical} critical, {outcome.high} high, "
        f"{outcome.medium} medium, {outcome.low} low"
    )


__all__ = ["Outcome", "ScannerAdapter"]

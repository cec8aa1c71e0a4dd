"""Adapter for Conftest (OPA) policy evaluation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping

from ..models import PolicyFinding, PolicyScanOutcome, ToolName
from ..rules import SeverityTable
from .base import ScannerAdapter
from .runner import CommandRunner, ScannerError

logger = logging.getLogger(__name__)

DEFAULT_POLICY_PATH = "policies/conftest"
DEFAULT_RULE = "OPA Policy"


class ConftestAdapter(ScannerAdapter):
    """Shell out to ``conftest test`` and count policy denies.

    Exit code 1 means the policies ran and denied something; anything above 1
    is an execution error.
    """

    tool = ToolName.OPA
    executable = "conftest"

    def __init__(
        self,
        *,
        policy_path: str | Path = DEFAULT_POLICY_PATH,
        runner: CommandRunner | None = None,
        severity_table: SeverityTable | None = None,
        executable: str | None = None,
    ) -> None:
        super().__init__(runner=runner, severity_table=severity_table, executable=executable)
        self.policy_path = Path(policy_path)

    def empty_outcome(self) -> PolicyScanOutcome:
        return PolicyScanOutcome.empty()

    def _scan(self, target: Path, extra_args: List[str]) -> PolicyScanOutcome:
        if target.is_file() and target.suffix == ".json":
            parser_args = ["--parser", "json"]
        else:
            parser_args = ["--parser", "hcl2"]

        command = [
            self.executable,
            "test",
            str(target),
            "--policy",
            str(self.policy_path),
            *parser_args,
            "--output",
            "json",
            *extra_args,
        ]
        result = self.runner.run(command)
        if result.returncode > 1:
            raise ScannerError(
                f"conftest execution error (exit {result.returncode}): {result.stderr.strip() or '(no stderr)'}"
            )

        if not result.stdout.strip():
            logger.info("Conftest produced no output; assuming 0 denies.")
            return PolicyScanOutcome.empty()

        try:
            report = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise ScannerError(f"Failed to parse Conftest JSON: {exc.msg}") from exc

        return self.parse_report(report)

    # ------------------------------------------------------------------
    def parse_report(self, report: Any) -> PolicyScanOutcome:
        """Count every entry of each file's ``failures`` array as one deny."""

        outcome = PolicyScanOutcome.empty()
        file_results: Iterable[Any] = report if isinstance(report, list) else []
        for file_result in file_results:
            if not isinstance(file_result, Mapping):
                continue
            filename = str(file_result.get("filename") or "Unknown")
            namespace = file_result.get("namespace")
            for failure in file_result.get("failures") or []:
                outcome.record(
                    PolicyFinding(
                        identifier=_rule_identifier(failure, namespace),
                        description=_failure_message(failure),
                        subject=filename,
                    )
                )
        return outcome


def _rule_identifier(failure: Any, namespace: Any) -> str:
    if isinstance(failure, Mapping):
        metadata = failure.get("metadata")
        if isinstance(metadata, Mapping) and metadata.get("query"):
            return str(metadata["query"])
    if namespace:
        return str(namespace)
    return DEFAULT_RULE


def _failure_message(failure: Any) -> str:
    if isinstance(failure, Mapping) and failure.get("msg"):
        return str(failure["msg"]).strip()
    return json.dumps(failure, sort_keys=True)


__all__ = ["ConftestAdapter", "DEFAULT_POLICY_PATH"]

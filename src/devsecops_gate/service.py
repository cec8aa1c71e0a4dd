"""Orchestration layer that runs the scanners and drives the merge gate."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping

from .adapters import CheckovAdapter, ConftestAdapter, Outcome, ScannerAdapter, TrivyAdapter
from .artifacts import ARTIFACTS_DIRNAME, write_summary_artifact
from .config import GateConfig, ToolOptions
from .gate import evaluate
from .models import GateResult, ScanResults, ThresholdPolicy, ToolName
from .render import render_summary
from .rules import SeverityTable, SeverityTableError
from .sinks import PLACEHOLDER_LOCATOR, ActionOutputs, ReportSink, ReportSinkError, write_step_summary

logger = logging.getLogger(__name__)

ScannerFactory = Callable[[GateConfig, Path], Mapping[ToolName, ScannerAdapter]]


@dataclass(slots=True)
class GateRun:
    """Everything produced by one :meth:`GateService.run` call."""

    results: ScanResults
    gate: GateResult
    policy: ThresholdPolicy
    report: str
    locator: str
    artifact_path: Path | None = None

    @property
    def blocking(self) -> bool:
        return self.gate.blocking


def load_severity_table(config: GateConfig, working_dir: Path) -> SeverityTable:
    """Load the packaged severity defaults merged with the configured manifest."""

    if not config.severity_table:
        return SeverityTable.load()

    manifest = _resolve(working_dir, config.severity_table)
    try:
        return SeverityTable.load([manifest])
    except SeverityTableError as exc:
        logger.warning("Ignoring severity table %s: %s", manifest, exc)
        return SeverityTable.load()


def create_scanners(config: GateConfig, working_dir: Path) -> Mapping[ToolName, ScannerAdapter]:
    """Create the Trivy, Checkov and Conftest adapters for ``config``."""

    table = load_severity_table(config, working_dir)
    return {
        ToolName.TRIVY: TrivyAdapter(severity_table=table),
        ToolName.CHECKOV: CheckovAdapter(severity_table=table),
        ToolName.OPA: ConftestAdapter(
            policy_path=_resolve(working_dir, config.opa_policy_path),
            severity_table=table,
        ),
    }


class GateService:
    """Run all scanners concurrently, evaluate the gate and publish the report."""

    def __init__(
        self,
        *,
        working_dir: Path | None = None,
        scanner_factory: ScannerFactory | None = None,
        sink: ReportSink | None = None,
        outputs: ActionOutputs | None = None,
        step_summary_path: Path | None = None,
        artifacts_dir: Path | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.working_dir = (working_dir or Path.cwd()).resolve()
        self._scanner_factory = scanner_factory or create_scanners
        self._sink = sink
        self._outputs = outputs or ActionOutputs()
        self._step_summary_path = step_summary_path
        self._artifacts_dir = artifacts_dir or self.working_dir / ARTIFACTS_DIRNAME
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    async def scan_all(self, config: GateConfig) -> ScanResults:
        """Run every scanner concurrently and wait for all of them to finish."""

        scanners = self._scanner_factory(config, self.working_dir)
        app_path = _resolve(self.working_dir, config.paths_app)
        iac_path = _resolve(self.working_dir, config.paths_iac)

        logger.info("Starting DevSecOps PR Gate scan...")
        trivy, checkov, opa = await asyncio.gather(
            self._scan_isolated(scanners[ToolName.TRIVY], app_path, config.trivy),
            self._scan_isolated(scanners[ToolName.CHECKOV], iac_path, config.checkov),
            self._scan_isolated(scanners[ToolName.OPA], iac_path, config.conftest),
        )
        return ScanResults(trivy=trivy, checkov=checkov, opa=opa)

    async def _scan_isolated(
        self,
        scanner: ScannerAdapter,
        target: Path,
        options: ToolOptions,
    ) -> Outcome:
        try:
            return await asyncio.to_thread(
                scanner.scan,
                target,
                options.version or None,
                options.args or None,
            )
        except Exception as exc:  # noqa: BLE001 - one scanner must never abort the others
            logger.warning("%s scan failed: %s", scanner.tool.display_name, exc)
            return scanner.empty_outcome()

    # ------------------------------------------------------------------
    def run(self, config: GateConfig) -> GateRun:
        """Execute a full gate run and return its results."""

        results = asyncio.run(self.scan_all(config))
        policy = config.fail_on

        logger.info(
            "Trivy results - Critical: %s, High: %s", results.trivy.critical, results.trivy.high
        )
        logger.info(
            "Checkov results - Critical: %s, High: %s",
            results.checkov.critical,
            results.checkov.high,
        )
        logger.info("OPA results - Deny count: %s", results.opa.deny_count)

        gate = evaluate(results, policy)
        logger.info("Has blockers: %s, Fail on: %s", gate.blocking, policy.value)

        report = render_summary(results, config.comment_title, policy)
        artifact_path = self._persist(results)
        locator = self._publish(config.comment_title, report)
        write_step_summary(report, self._step_summary_path)

        self._set_outputs(results, gate, locator)

        return GateRun(
            results=results,
            gate=gate,
            policy=policy,
            report=report,
            locator=locator,
            artifact_path=artifact_path,
        )

    # ------------------------------------------------------------------
    def _publish(self, title: str, report: str) -> str:
        if self._sink is None:
            logger.warning("Not running on a pull request - skipping comment creation")
            return PLACEHOLDER_LOCATOR

        try:
            return self._sink.publish(title, report) or PLACEHOLDER_LOCATOR
        except ReportSinkError as exc:
            logger.warning("Failed to create PR comment: %s", exc)
            return PLACEHOLDER_LOCATOR
        except Exception as exc:  # noqa: BLE001 - a broken sink never changes the verdict
            logger.warning("Unexpected error while creating PR comment: %s", exc)
            return PLACEHOLDER_LOCATOR

    def _persist(self, results: ScanResults) -> Path | None:
        try:
            path = write_summary_artifact(results, self._artifacts_dir, now=self._clock())
        except OSError as exc:
            logger.warning("Failed to upload scan reports: %s", exc)
            return None

        logger.info("Scan reports written to %s", path.parent)
        return path

    def _set_outputs(self, results: ScanResults, gate: GateResult, locator: str) -> None:
        self._outputs.set("trivy-high", results.trivy.high)
        self._outputs.set("trivy-critical", results.trivy.critical)
        self._outputs.set("checkov-high", results.checkov.high)
        self._outputs.set("checkov-critical", results.checkov.critical)
        self._outputs.set("opa-deny-count", results.opa.deny_count)
        self._outputs.set("has-blockers", gate.blocking)
        self._outputs.set("comment-url", locator)
        self._outputs.flush()


def _resolve(base_dir: Path, value: str | Path) -> Path:
    candidate = Path(value)
    return candidate if candidate.is_absolute() else base_dir / candidate


__all__ = ["GateRun", "GateService", "create_scanners", "load_severity_table"]

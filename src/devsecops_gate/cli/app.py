"""Command-line interface implementation for the DevSecOps merge gate."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..artifacts import load_summary_artifact
from ..config import ConfigSource, GateConfig, action_inputs, load_config, load_config_file
from ..gate import blocking_message, evaluate
from ..logging_config import configure_logging, running_in_actions
from ..models import ThresholdPolicy
from ..render import DEFAULT_TITLE, render_summary
from ..service import GateService
from ..sinks import ActionOutputs, GitHubCommentSink, GitHubContext, ReportSink, ReportSinkError

logger = logging.getLogger(__name__)

_CLI_OPTIONS = (
    ("paths-app", "Directory scanned for vulnerable dependencies (default: app/)."),
    ("paths-iac", "Directory with infrastructure-as-code files (default: infra/)."),
    ("fail-on", "Blocking threshold: critical, high or off (default: high)."),
    ("opa-policy-path", "Directory with Conftest policies (default: policies/conftest)."),
    ("trivy-version", "Expected Trivy version; a mismatch is reported as a warning."),
    ("checkov-version", "Expected Checkov version; a mismatch is reported as a warning."),
    ("conftest-version", "Expected Conftest version; a mismatch is reported as a warning."),
    ("trivy-args", "Additional arguments passed to `trivy fs`."),
    ("checkov-args", "Additional arguments passed to `checkov`."),
    ("conftest-args", "Additional arguments passed to `conftest test`."),
    ("comment-title", "Title of the pull request comment (default: DevSecOps PR Gate)."),
    ("severity-table", "YAML manifest overriding the fallback severity table."),
)


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="devsecops-gate",
        description="Run Trivy, Checkov and Conftest and gate the merge on their findings.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Scan the repository and evaluate the merge gate.")
    run_parser.add_argument(
        "--working-dir",
        type=Path,
        default=None,
        help="Repository root the configured paths are relative to (default: current directory).",
    )
    run_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with option values; command-line flags take precedence.",
    )
    for option, help_text in _CLI_OPTIONS:
        run_parser.add_argument(f"--{option}", dest=option.replace("-", "_"), default=None, help=help_text)

    render_parser = subparsers.add_parser(
        "render", help="Render the pull request report from a saved summary artifact."
    )
    render_parser.add_argument("summary", type=Path, help="Path to devsecops-summary.json.")
    render_parser.add_argument("--title", default=DEFAULT_TITLE, help="Report title.")
    render_parser.add_argument(
        "--fail-on",
        default=ThresholdPolicy.HIGH.value,
        help="Blocking threshold used for the status columns (default: high).",
    )
    render_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of standard output.",
    )

    return parser


def create_service(**kwargs: Any) -> GateService:
    """Create the gate service; tests replace this factory."""

    return GateService(**kwargs)


def create_sink(environ: Mapping[str, str]) -> ReportSink | None:
    """Return the pull request comment sink, or ``None`` outside pull requests."""

    context = GitHubContext.from_environ(environ)
    if not context.is_pull_request:
        return None
    try:
        return GitHubCommentSink(context)
    except ReportSinkError as exc:
        logger.warning("PR comments disabled: %s", exc)
        return None


def _resolve_config(args: argparse.Namespace, environ: Mapping[str, str]) -> GateConfig:
    cli_values = {option: getattr(args, option.replace("-", "_")) for option, _ in _CLI_OPTIONS}
    sources = [ConfigSource("cli", cli_values)]
    if args.config is not None:
        sources.append(load_config_file(args.config))
    sources.append(action_inputs(environ))
    return load_config(sources)


def _handle_run(args: argparse.Namespace, environ: Mapping[str, str]) -> int:
    config = _resolve_config(args, environ)
    working_dir = args.working_dir or Path(environ.get("GITHUB_WORKSPACE") or Path.cwd())

    summary_env = environ.get("GITHUB_STEP_SUMMARY")
    sink = create_sink(environ)
    try:
        service = create_service(
            working_dir=working_dir,
            sink=sink,
            outputs=ActionOutputs.from_environ(environ),
            step_summary_path=Path(summary_env) if summary_env else None,
        )
        gate_run = service.run(config)
    finally:
        if isinstance(sink, GitHubCommentSink):
            sink.close()

    print(gate_run.report)

    if gate_run.blocking:
        logger.error(blocking_message(gate_run.policy))
        return 1

    logger.info("DevSecOps PR Gate: No blocking security issues found.")
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    try:
        results = load_summary_artifact(args.summary)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}")
        return 2

    policy = ThresholdPolicy.parse(args.fail_on)
    report = render_summary(results, args.title, policy)
    if args.output is None:
        print(report)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(report, encoding="utf-8")

    logger.info("Rendered report; blocking=%s", evaluate(results, policy).blocking)
    return 0


def main(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    """Entry point used by tests and the console script."""

    environ = os.environ if environ is None else environ
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        logging.DEBUG if args.verbose else logging.INFO,
        workflow_commands=running_in_actions(environ),
    )

    try:
        if args.command == "run":
            return _handle_run(args, environ)
        if args.command == "render":
            return _handle_render(args)
    except Exception as exc:  # noqa: BLE001 - last-resort guard for unexpected failures
        logger.error("DevSecOps PR Gate failed: %s", exc)
        return 2

    parser.print_help()
    return 0


def run() -> None:  # pragma: no cover - thin wrapper for console entry point
    """Execute the CLI and exit with the produced status code."""

    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()

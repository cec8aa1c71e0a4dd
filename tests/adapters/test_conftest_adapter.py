import json
import logging
from pathlib import Path

import pytest

from devsecops_gate.adapters import CommandResult, ConftestAdapter
from devsecops_gate.models import PolicyScanOutcome


def completed(args, returncode: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(args=list(args), returncode=returncode, stdout=stdout, stderr=stderr)


def conftest_handler(stdout: str, returncode: int = 1, stderr: str = ""):
    def handler(command):
        return completed(command, returncode=returncode, stdout=stdout, stderr=stderr)

    return handler


def file_result(filename: str, messages: list[str], namespace: str = "main") -> dict:
    return {
        "filename": filename,
        "namespace": namespace,
        "successes": 3,
        "failures": [{"msg": message} for message in messages],
    }


@pytest.fixture
def infra_dir(tmp_path: Path) -> Path:
    path = tmp_path / "infra"
    path.mkdir()
    (path / "main.tf").write_text('resource "aws_s3_bucket" "logs" {}', encoding="utf-8")
    return path


def test_every_failure_is_one_deny(make_runner, infra_dir):
    report = [
        file_result("infra/main.tf", [f"main deny {i}" for i in range(8)]),
        file_result("infra/network.tf", [f"network deny {i}" for i in range(4)]),
        {"filename": "infra/empty.tf", "namespace": "main", "successes": 2},
    ]
    runner = make_runner(conftest_handler(json.dumps(report)))

    outcome = ConftestAdapter(runner=runner, policy_path="policies/conftest").scan(infra_dir)

    assert outcome.deny_count == 12
    assert len(outcome.findings) == 10
    assert outcome.findings[0].description == "main deny 0"
    assert outcome.findings[0].subject == "infra/main.tf"
    assert outcome.findings[0].identifier == "main"
    assert outcome.findings[8].subject == "infra/network.tf"


def test_directory_targets_use_hcl2_parser(make_runner, infra_dir):
    runner = make_runner(conftest_handler("[]", returncode=0))

    ConftestAdapter(runner=runner, policy_path="policies/opa").scan(infra_dir, extra_args="--all-namespaces")

    assert runner.calls[0] == [
        "conftest",
        "test",
        str(infra_dir),
        "--policy",
        "policies/opa",
        "--parser",
        "hcl2",
        "--output",
        "json",
        "--all-namespaces",
    ]


def test_json_plan_targets_use_json_parser(make_runner, tmp_path):
    plan = tmp_path / "plan.json"
    plan.write_text("{}", encoding="utf-8")
    runner = make_runner(conftest_handler("[]", returncode=0))

    ConftestAdapter(runner=runner).scan(plan)

    command = runner.calls[0]
    assert command[command.index("--parser") + 1] == "json"


def test_query_metadata_names_the_rule(make_runner, infra_dir):
    report = [
        {
            "filename": "infra/main.tf",
            "namespace": "main",
            "failures": [{"msg": "bucket must be encrypted", "metadata": {"query": "data.main.deny"}}],
        }
    ]
    outcome = ConftestAdapter(runner=make_runner(conftest_handler(json.dumps(report)))).scan(infra_dir)

    assert outcome.findings[0].identifier == "data.main.deny"


def test_execution_error_returns_empty_outcome(make_runner, infra_dir, caplog):
    runner = make_runner(conftest_handler("", returncode=2, stderr="rego_parse_error"))

    with caplog.at_level(logging.WARNING):
        outcome = ConftestAdapter(runner=runner).scan(infra_dir)

    assert outcome == PolicyScanOutcome.empty()
    assert "rego_parse_error" in caplog.text


def test_no_output_means_no_denies(make_runner, infra_dir):
    outcome = ConftestAdapter(runner=make_runner(conftest_handler("  \n", returncode=0))).scan(infra_dir)

    assert outcome == PolicyScanOutcome.empty()


def test_invalid_json_returns_empty_outcome(make_runner, infra_dir):
    outcome = ConftestAdapter(runner=make_runner(conftest_handler("FAIL - main.tf"))).scan(infra_dir)

    assert outcome == PolicyScanOutcome.empty()


def test_missing_target_never_runs_conftest(make_runner, tmp_path):
    runner = make_runner(conftest_handler("[]"))

    outcome = ConftestAdapter(runner=runner).scan(tmp_path / "does-not-exist")

    assert outcome == PolicyScanOutcome.empty()
    assert runner.calls == []

"""Resolve gate options from an ordered list of explicit configuration sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

from .models import ThresholdPolicy
from .yaml_files import read_yaml_mapping

logger = logging.getLogger(__name__)

OPTION_DEFAULTS: Dict[str, str] = {
    "paths-app": "app/",
    "paths-iac": "infra/",
    "fail-on": "high",
    "opa-policy-path": "policies/conftest",
    "trivy-version": "",
    "checkov-version": "",
    "conftest-version": "",
    "trivy-args": "",
    "checkov-args": "",
    "conftest-args": "",
    "comment-title": "DevSecOps PR Gate",
    "severity-table": "",
}


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be loaded."""


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """A named mapping of option values, e.g. CLI flags or action inputs."""

    name: str
    values: Mapping[str, Any]


def resolve_option(name: str, sources: Sequence[ConfigSource]) -> str:
    """Return the first non-empty value for ``name`` across ``sources``."""

    for source in sources:
        value = source.values.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def action_inputs(environ: Mapping[str, str]) -> ConfigSource:
    """Collect ``INPUT_<NAME>`` values the Actions runner exposes for each option."""

    values: Dict[str, str] = {}
    for option in OPTION_DEFAULTS:
        upper = option.upper()
        for key in (f"INPUT_{upper}", f"INPUT_{upper.replace('-', '_')}"):
            if environ.get(key):
                values[option] = environ[key]
                break
    return ConfigSource("action-inputs", values)


def load_config_file(path: Path) -> ConfigSource:
    """Load option values from a YAML (or JSON) configuration file."""

    data = read_yaml_mapping(path, ConfigError, "Configuration file")

    unknown = sorted(str(key) for key in data if key not in OPTION_DEFAULTS)
    if unknown:
        logger.warning("Ignoring unknown options in %s: %s", path, ", ".join(unknown))

    values = {key: _coerce_scalar(value) for key, value in data.items() if key in OPTION_DEFAULTS}
    return ConfigSource(f"file:{path}", values)


def _coerce_scalar(value: Any) -> Any:
    # YAML 1.1 reads a bare ``off`` as ``False``.
    if value is False:
        return "off"
    if value is True:
        return "true"
    return value


@dataclass(frozen=True, slots=True)
class ToolOptions:
    version: str = ""
    args: str = ""


@dataclass(frozen=True, slots=True)
class GateConfig:
    """Options for one gate run; resolved once and never mutated."""

    paths_app: str = OPTION_DEFAULTS["paths-app"]
    paths_iac: str = OPTION_DEFAULTS["paths-iac"]
    fail_on: ThresholdPolicy = ThresholdPolicy.HIGH
    opa_policy_path: str = OPTION_DEFAULTS["opa-policy-path"]
    trivy: ToolOptions = field(default_factory=ToolOptions)
    checkov: ToolOptions = field(default_factory=ToolOptions)
    conftest: ToolOptions = field(default_factory=ToolOptions)
    comment_title: str = OPTION_DEFAULTS["comment-title"]
    severity_table: str = ""


def load_config(sources: Sequence[ConfigSource]) -> GateConfig:
    """Resolve every option from ``sources`` (highest precedence first) and defaults."""

    ordered = [*sources, ConfigSource("defaults", OPTION_DEFAULTS)]

    def option(name: str) -> str:
        return resolve_option(name, ordered)

    raw_fail_on = option("fail-on")
    fail_on = ThresholdPolicy.parse(raw_fail_on)
    if fail_on.value != raw_fail_on.lower():
        logger.warning("Unrecognized fail-on value '%s'; using '%s'", raw_fail_on, fail_on.value)

    return GateConfig(
        paths_app=option("paths-app"),
        paths_iac=option("paths-iac"),
        fail_on=fail_on,
        opa_policy_path=option("opa-policy-path"),
        trivy=ToolOptions(version=option("trivy-version"), args=option("trivy-args")),
        checkov=ToolOptions(version=option("checkov-version"), args=option("checkov-args")),
        conftest=ToolOptions(version=option("conftest-version"), args=option("conftest-args")),
        comment_title=option("comment-title"),
        severity_table=option("severity-table"),
    )


__all__ = [
    "ConfigError",
    "ConfigSource",
    "GateConfig",
    "OPTION_DEFAULTS",
    "ToolOptions",
    "action_inputs",
    "load_config",
    "load_config_file",
    "resolve_option",
]

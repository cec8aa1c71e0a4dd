"""Utilities for loading and merging severity default manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Sequence

from ..models import Severity
from ..yaml_files import read_yaml_mapping


class SeverityTableError(RuntimeError):
    """Raised when severity manifests cannot be loaded or parsed."""


@dataclass(slots=True)
class ToolSeverityDefaults:
    """Severity applied to one tool's findings that carry no usable severity."""

    tool: str
    default: Severity = Severity.MEDIUM
    checks: Dict[str, Severity] = field(default_factory=dict)
    aliases: Dict[str, Severity] = field(default_factory=dict)


DEFAULT_MANIFEST = Path(__file__).resolve().parent / "severity-defaults.yaml"


class SeverityTable:
    """Resolve fallback severities for findings whose tool left them unset."""

    def __init__(self, tools: Mapping[str, ToolSeverityDefaults] | None = None) -> None:
        self._tools: Dict[str, ToolSeverityDefaults] = dict(tools or {})

    # ------------------------------------------------------------------
    @classmethod
    def load(
        cls,
        manifests: Sequence[Path | str] | None = None,
        *,
        include_defaults: bool = True,
    ) -> SeverityTable:
        """Merge the packaged defaults with ``manifests``, later files winning."""

        manifest_paths: List[Path] = []
        if include_defaults:
            manifest_paths.append(DEFAULT_MANIFEST)
        if manifests:
            manifest_paths.extend(Path(path) for path in manifests)

        tools: MutableMapping[str, ToolSeverityDefaults] = {}
        for manifest_path in manifest_paths:
            data = _load_manifest(manifest_path)
            tool_configs = data.get("tools") or {}
            if not isinstance(tool_configs, Mapping):
                raise SeverityTableError(f"'tools' must be a mapping in {manifest_path}")

            for tool_name, tool_config in tool_configs.items():
                if not isinstance(tool_config, Mapping):
                    continue

                name = str(tool_name).strip().lower()
                defaults = tools.get(name, ToolSeverityDefaults(tool=name))
                if "default" in tool_config:
                    defaults.default = _parse_level(tool_config["default"], manifest_path)

                checks = tool_config.get("checks")
                if isinstance(checks, Mapping):
                    for identifier, level in checks.items():
                        if not isinstance(identifier, str):
                            continue
                        defaults.checks[identifier.strip()] = _parse_level(level, manifest_path)

                aliases = tool_config.get("aliases")
                if isinstance(aliases, Mapping):
                    for raw_level, level in aliases.items():
                        defaults.aliases[str(raw_level).strip().lower()] = _parse_level(
                            level, manifest_path
                        )

                tools[name] = defaults

        return cls(tools)

    # ------------------------------------------------------------------
    def resolve(
        self,
        tool: str,
        identifier: str | None = None,
        raw_severity: object = None,
    ) -> Severity:
        """Return the fallback severity for ``identifier`` reported by ``tool``.

        A tool-specific alias for ``raw_severity`` wins over the per-check
        override, which wins over the tool default.
        """

        defaults = self._tools.get(tool)
        if defaults is None:
            return Severity.MEDIUM
        if isinstance(raw_severity, str):
            alias = defaults.aliases.get(raw_severity.strip().lower())
            if alias is not None:
                return alias
        if identifier and identifier in defaults.checks:
            return defaults.checks[identifier]
        return defaults.default

    def defaults_for(self, tool: str) -> ToolSeverityDefaults | None:
        return self._tools.get(tool)


def _parse_level(level: Any, path: Path) -> Severity:
    severity = Severity.parse(level)
    if severity is None:
        raise SeverityTableError(f"Unknown severity '{level}' in severity manifest {path}")
    return severity


def _load_manifest(path: Path) -> Dict[str, Any]:
    return read_yaml_mapping(path, SeverityTableError, "Severity manifest")

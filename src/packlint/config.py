"""Configuration file loading: which rules run and with which settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml

from packlint.rules import RULES_BY_NAME

if TYPE_CHECKING:
    from pathlib import Path

SUPPORTED_CONFIG_VERSIONS: frozenset[int] = frozenset({1})
DEFAULT_CONFIG_NAMES: tuple[str, ...] = ("packlint.yml", "packlint.yaml")


class ConfigError(Exception):
    """Raised when the configuration file itself is unusable."""


@dataclass
class CheckConfig:
    """Enabled rules, in file order, mapped to their raw (unparsed) configuration.

    A rule mapped to ``None`` is enabled without configuration.
    """

    rules: dict[str, Any] = field(default_factory=dict)


def parse_config(data: Any, *, source: str = "packlint.yml") -> CheckConfig:
    """Validate the file-level structure of a loaded configuration document.

    Rule bodies are left untouched: each rule validates its own section when
    it runs, so one broken section does not stop the others.
    """
    if data is None:
        return CheckConfig()
    if not isinstance(data, dict):
        msg = f"{source} must be a YAML mapping"
        raise ConfigError(msg)

    version = data.get("version")
    if version is None:
        msg = f"{source}: missing required 'version' field"
        raise ConfigError(msg)
    if version not in SUPPORTED_CONFIG_VERSIONS:
        expected = sorted(SUPPORTED_CONFIG_VERSIONS)
        msg = f"{source}: unsupported version {version}, expected one of {expected}"
        raise ConfigError(msg)

    rules_data = data.get("rules", {})
    if rules_data is None:
        rules_data = {}
    if not isinstance(rules_data, dict):
        msg = f"{source}: 'rules' must be a mapping of rule name to configuration"
        raise ConfigError(msg)

    unknown = sorted(str(name) for name in rules_data if name not in RULES_BY_NAME)
    if unknown:
        msg = f"{source}: unknown rule(s) {unknown}, expected some of {sorted(RULES_BY_NAME)}"
        raise ConfigError(msg)

    return CheckConfig(rules={str(name): body for name, body in rules_data.items()})


def load_config(path: Path) -> CheckConfig:
    """Read and validate a ``packlint.yml`` file (JSON documents are accepted too)."""
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        msg = f"Cannot read configuration {path}: {exc}"
        raise ConfigError(msg) from exc
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise ConfigError(msg) from exc
    return parse_config(data, source=path.name)


def find_config(pack_root: Path) -> Path | None:
    """Return the first default configuration file found in *pack_root*."""
    for name in DEFAULT_CONFIG_NAMES:
        candidate = pack_root / name
        if candidate.is_file():
            return candidate
    return None

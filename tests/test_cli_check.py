"""Tests for the `packlint` CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner
from conftest import write_pack

from packlint import __version__
from packlint.cli import main

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _clean_pack(tmp_path: Path) -> Path:
    """A pack satisfying its own configuration."""
    root = write_pack(
        tmp_path / "pack",
        {"data/abc/functions/abc/load.mcfunction": "# As/At: server\nsay loaded\n"},
        pack_format=10,
    )
    (root / "packlint.yml").write_text(
        "version: 1\n"
        "rules:\n"
        "  style.as-at-comments:\n"
        "  compatibility.version-id:\n"
        "    version: 10\n"
    )
    return root


def _dirty_pack(tmp_path: Path) -> Path:
    """A pack with one blacklisted command."""
    root = write_pack(
        tmp_path / "pack",
        {"data/abc/functions/abc/admin.mcfunction": "say hi\nban @a\n"},
    )
    (root / "packlint.yml").write_text(
        "version: 1\n"
        "rules:\n"
        "  blacklist.commands:\n"
        "    filters:\n"
        "      - resources: ['-.*']\n"
        "        commands: ['-ban .*']\n"
    )
    return root


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestCheckCommand:
    """Tests for `packlint check`."""

    def test_clean_pack(self, tmp_path: Path) -> None:
        root = _clean_pack(tmp_path)
        result = CliRunner().invoke(main, ["check", str(root), "--format", "porcelain"])
        assert result.exit_code == 0, result.output
        assert result.output == ""

    def test_violations_without_strict(self, tmp_path: Path) -> None:
        root = _dirty_pack(tmp_path)
        result = CliRunner().invoke(main, ["check", str(root), "--format", "porcelain"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == (
            "blacklist.commands:abc:abc:abc/admin:2:1:"
            "This command is blacklisted by filter 1 when referenced by function 'abc:abc/admin'"
        )

    def test_violations_with_strict(self, tmp_path: Path) -> None:
        root = _dirty_pack(tmp_path)
        result = CliRunner().invoke(
            main, ["check", str(root), "--format", "porcelain", "--strict"]
        )
        assert result.exit_code == 1

    def test_invalid_rule_config_with_strict(self, tmp_path: Path) -> None:
        root = _clean_pack(tmp_path)
        (root / "packlint.yml").write_text(
            "version: 1\nrules:\n  compatibility.version-id:\n    version: ten\n"
        )
        result = CliRunner().invoke(
            main, ["check", str(root), "--format", "porcelain", "--strict"]
        )
        assert result.exit_code == 1
        assert "compatibility.version-id:invalid-config::::" in result.output

    def test_json_format(self, tmp_path: Path) -> None:
        root = _dirty_pack(tmp_path)
        result = CliRunner().invoke(main, ["check", str(root), "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["summary"]["violations_count"] == 1
        assert data["violations"][0]["line_number"] == 2

    def test_rich_format(self, tmp_path: Path) -> None:
        root = _dirty_pack(tmp_path)
        result = CliRunner().invoke(main, ["check", str(root), "--format", "rich"])
        assert result.exit_code == 0, result.output
        assert "blacklist.commands" in result.output
        assert "1 violations found" in result.output

    def test_explicit_config(self, tmp_path: Path) -> None:
        root = _dirty_pack(tmp_path)
        other = tmp_path / "relaxed.yml"
        other.write_text("version: 1\nrules: {}\n")
        result = CliRunner().invoke(
            main, ["check", str(root), "--config", str(other), "--strict", "--format", "json"]
        )
        assert result.exit_code == 0, result.output

    def test_broken_config_file_exits_2(self, tmp_path: Path) -> None:
        root = _clean_pack(tmp_path)
        (root / "packlint.yml").write_text("version: 1\nrules:\n  no.such-rule:\n")
        result = CliRunner().invoke(main, ["check", str(root)])
        assert result.exit_code == 2
        assert "unknown rule" in result.output

    def test_invalid_mcmeta_exits_2(self, tmp_path: Path) -> None:
        root = _clean_pack(tmp_path)
        (root / "pack.mcmeta").write_text("{broken")
        result = CliRunner().invoke(main, ["check", str(root)])
        assert result.exit_code == 2
        assert "pack.mcmeta" in result.output

    def test_jobs(self, tmp_path: Path) -> None:
        root = _dirty_pack(tmp_path)
        result = CliRunner().invoke(
            main, ["check", str(root), "--jobs", "4", "--format", "porcelain"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.count("\n") == 1


class TestRulesAndExplain:
    def test_rules_lists_catalogue(self) -> None:
        result = CliRunner().invoke(main, ["rules"])
        assert result.exit_code == 0, result.output
        for name in ("blacklist.commands", "uniqueness.identifier", "compatibility.version-id"):
            assert name in result.output

    def test_explain_with_config_example(self) -> None:
        result = CliRunner().invoke(main, ["explain", "blacklist.resource-location"])
        assert result.exit_code == 0, result.output
        assert "defaultAllow" in result.output
        assert "Configuration:" in result.output

    def test_explain_without_config(self) -> None:
        result = CliRunner().invoke(main, ["explain", "style.as-at-comments"])
        assert result.exit_code == 0, result.output
        assert "This rule takes no configuration." in result.output

    def test_explain_unknown_rule(self) -> None:
        result = CliRunner().invoke(main, ["explain", "nope"])
        assert result.exit_code == 2
        assert "unknown rule 'nope'" in result.output

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

"""Tests for packlint.model.loader: tokenizer, function parsing, directory loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from conftest import tag_json, write_pack

from packlint.model.loader import (
    PackLoadError,
    load_pack,
    parse_command,
    parse_function_text,
    parse_tag_members,
    tokenize,
)
from packlint.model.resources import (
    ContentKind,
    Function,
    FunctionTag,
    Resource,
    normalize_identifier,
)

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


class TestTokenize:
    def test_splits_on_whitespace(self) -> None:
        assert tokenize("scoreboard  objectives add abc.x dummy") == [
            "scoreboard",
            "objectives",
            "add",
            "abc.x",
            "dummy",
        ]

    def test_keeps_brackets_together(self) -> None:
        tokens = tokenize('data modify storage abc:s path set value {a: [1, 2], b: "x y"}')
        assert tokens[-1] == '{a: [1, 2], b: "x y"}'

    def test_keeps_selector_arguments_together(self) -> None:
        assert tokenize("tag @a[tag=x, limit=1] add abc.y") == [
            "tag",
            "@a[tag=x, limit=1]",
            "add",
            "abc.y",
        ]

    def test_quoted_string_with_escape(self) -> None:
        assert tokenize(r'say "a \" b" c') == ["say", r'"a \" b"', "c"]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestParseCommand:
    def test_plain_command(self) -> None:
        cmd = parse_command("say hello world", 3)
        assert cmd.kind is ContentKind.COMMAND
        assert cmd.command_key == "say"
        assert cmd.arguments == ("hello", "world")
        assert cmd.line == 3
        assert cmd.inner is None

    def test_execute_run_nests_inner_command(self) -> None:
        cmd = parse_command("execute as @a at @s run function abc:tick", 1)
        assert cmd.command_key == "execute"
        assert cmd.arguments[-1] == "run"
        assert cmd.inner is not None
        assert cmd.inner.raw == "function abc:tick"
        assert cmd.inner.command_key == "function"
        assert cmd.inner.line == 1

    def test_nested_execute_chain(self) -> None:
        cmd = parse_command("execute as @a run execute at @s run kill @s", 1)
        raws = [c.raw for c in cmd.flatten()]
        assert raws == [
            "execute as @a run execute at @s run kill @s",
            "execute at @s run kill @s",
            "kill @s",
        ]

    def test_macro_line_is_other(self) -> None:
        cmd = parse_command("$say $(value)", 2)
        assert cmd.kind is ContentKind.OTHER
        assert cmd.command_key == ""


class TestParseFunctionText:
    def test_comments_commands_and_blank_lines(self) -> None:
        text = "# As: @a\n\n#At: @s\nsay hi\n   \nkill @s\n"
        commands = parse_function_text(text)
        assert [c.kind for c in commands] == [
            ContentKind.COMMENT,
            ContentKind.COMMENT,
            ContentKind.COMMAND,
            ContentKind.COMMAND,
        ]
        assert [c.raw for c in commands] == ["As: @a", "At: @s", "say hi", "kill @s"]
        assert [c.line for c in commands] == [1, 3, 4, 6]

    def test_identical_lines_are_distinct_items(self) -> None:
        first, second = parse_function_text("say hi\nsay hi\n")
        assert first != second
        assert len({first, second}) == 2


class TestTagMembers:
    def test_strings_and_objects(self) -> None:
        members = parse_tag_members(
            {"values": ["abc:load", {"id": "#abc:group", "required": False}, "tick"]}
        )
        assert members == ("abc:load", "#abc:group", "minecraft:tick")

    def test_missing_values(self) -> None:
        assert parse_tag_members({}) == ()

    @pytest.mark.parametrize("values", [5, "abc", {"id": "abc:f"}])
    def test_non_list_values(self, values: object) -> None:
        assert parse_tag_members({"values": values}) == ()

    def test_normalize_identifier(self) -> None:
        assert normalize_identifier("load") == "minecraft:load"
        assert normalize_identifier("#load") == "#minecraft:load"
        assert normalize_identifier("#abc:x/y") == "#abc:x/y"


# ---------------------------------------------------------------------------
# Directory loading
# ---------------------------------------------------------------------------


class TestLoadPack:
    def test_loads_namespaces_in_sorted_order(self, tmp_path: Path) -> None:
        root = write_pack(
            tmp_path / "pack",
            {
                "data/zzz/functions/main/a.mcfunction": "say a\n",
                "data/abc/functions/main/b.mcfunction": "say b\n",
            },
        )
        pack = load_pack(root)
        assert [ns.name for ns in pack.namespaces] == ["abc", "zzz"]
        assert pack.meta["pack"]["pack_format"] == 10

    def test_resource_kinds(self, tmp_path: Path) -> None:
        root = write_pack(
            tmp_path / "pack",
            {
                "data/abc/functions/main/load.mcfunction": "say a\n",
                "data/abc/tags/functions/main/all.json": tag_json("abc:main/load"),
                "data/abc/predicates/main/is_day.json": "{}",
                "data/abc/tags/blocks/main/soft.json": tag_json("dirt", replace=True),
            },
        )
        (ns,) = load_pack(root).namespaces

        (function,) = ns.functions
        assert isinstance(function, Function)
        assert function.identifier == "abc:main/load"
        assert function.file_path == "data/abc/functions/main/load.mcfunction"
        assert function.directory == "main"

        (tag,) = ns.function_tags
        assert isinstance(tag, FunctionTag)
        assert tag.identifier == "#abc:main/all"
        assert tag.members == ("abc:main/load",)

        paths = sorted(r.file_path for r in ns.resources)
        assert paths == [
            "data/abc/predicates/main/is_day.json",
            "data/abc/tags/blocks/main/soft.json",
        ]
        block_tag = next(r for r in ns.resources if r.folder == "tags/blocks")
        assert isinstance(block_tag, Resource)
        assert block_tag.is_tag
        assert block_tag.content == {"values": ["dirt"], "replace": True}
        assert ns.all_tags[0] is tag

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(PackLoadError, match="not found"):
            load_pack(tmp_path / "nope")

    def test_invalid_mcmeta(self, tmp_path: Path) -> None:
        root = tmp_path / "pack"
        root.mkdir()
        (root / "pack.mcmeta").write_text("{not json")
        with pytest.raises(PackLoadError, match="pack.mcmeta"):
            load_pack(root)

    def test_broken_json_resource_is_kept_without_content(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = write_pack(tmp_path / "pack", {"data/abc/predicates/x/p.json": "{oops"})
        (ns,) = load_pack(root).namespaces
        (resource,) = ns.resources
        assert resource.content is None
        assert "Cannot parse JSON" in caplog.text

    def test_files_at_namespace_root_are_skipped(self, tmp_path: Path) -> None:
        root = write_pack(tmp_path / "pack", {"data/abc/readme.txt": "hi"})
        (ns,) = load_pack(root).namespaces
        assert ns.all_resources == ()

    def test_pack_without_data_dir(self, tmp_path: Path) -> None:
        root = write_pack(tmp_path / "pack", {})
        assert load_pack(root).namespaces == ()

    def test_undecodable_function_is_kept_without_commands(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = write_pack(tmp_path / "pack", {"data/abc/functions/ok.mcfunction": "say ok\n"})
        (root / "data/abc/functions/bad.mcfunction").write_bytes(b"say \xff\xfe\n")
        (ns,) = load_pack(root).namespaces
        assert [f.identifier for f in ns.functions] == ["abc:bad", "abc:ok"]
        assert ns.functions[0].commands == ()
        assert len(ns.functions[1].commands) == 1
        assert "Cannot read function file" in caplog.text

    def test_tag_with_non_list_values_has_no_members(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = write_pack(
            tmp_path / "pack",
            {
                "data/abc/tags/functions/num.json": '{"values": 5}',
                "data/abc/tags/functions/text.json": '{"values": "abc"}',
            },
        )
        (ns,) = load_pack(root).namespaces
        assert [t.members for t in ns.function_tags] == [(), ()]
        assert "must be a list" in caplog.text

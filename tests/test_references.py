"""Tests for packlint.references: reach sets over the call and tag graph."""

from __future__ import annotations

from typing import TYPE_CHECKING

from conftest import tag_json

from packlint.model.resources import Command, ContentKind
from packlint.references import build_reference_sets, build_unit_reach

if TYPE_CHECKING:
    from collections.abc import Callable

    from packlint.model.resources import DataPack


def _by_raw(references: dict[Command, frozenset[str]]) -> dict[str, frozenset[str]]:
    return {command.raw: reaching for command, reaching in references.items()}


class TestUnitReach:
    def test_function_reaches_itself(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack({"data/abc/functions/a.mcfunction": "say a\n"})
        assert build_unit_reach(pack) == {"abc:a": frozenset({"abc:a"})}

    def test_calls_and_tags(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack(
            {
                "data/minecraft/tags/functions/load.json": tag_json("#abc:init"),
                "data/abc/tags/functions/init.json": tag_json("abc:setup"),
                "data/abc/functions/setup.mcfunction": "function abc:helper\n",
                "data/abc/functions/helper.mcfunction": "say hi\n",
            }
        )
        reach = build_unit_reach(pack)
        assert reach["abc:helper"] == frozenset(
            {"abc:helper", "abc:setup", "#abc:init", "#minecraft:load"}
        )
        assert reach["#abc:init"] == frozenset({"#abc:init", "#minecraft:load"})
        assert reach["#minecraft:load"] == frozenset({"#minecraft:load"})

    def test_call_cycle_terminates(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack(
            {
                "data/abc/functions/a.mcfunction": "function abc:b\n",
                "data/abc/functions/b.mcfunction": "function abc:c\n",
                "data/abc/functions/c.mcfunction": "function abc:a\n",
            }
        )
        reach = build_unit_reach(pack)
        everything = frozenset({"abc:a", "abc:b", "abc:c"})
        assert reach == {"abc:a": everything, "abc:b": everything, "abc:c": everything}

    def test_self_referential_tag(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack(
            {
                "data/abc/tags/functions/loop.json": tag_json("#abc:loop", "abc:f"),
                "data/abc/functions/f.mcfunction": "say f\n",
            }
        )
        reach = build_unit_reach(pack)
        assert reach["#abc:loop"] == frozenset({"#abc:loop"})
        assert reach["abc:f"] == frozenset({"abc:f", "#abc:loop"})

    def test_dangling_references_are_ignored(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack(
            {
                "data/abc/tags/functions/t.json": tag_json("abc:missing"),
                "data/abc/functions/f.mcfunction": "function abc:also_missing\n",
            }
        )
        reach = build_unit_reach(pack)
        assert set(reach) == {"abc:f", "#abc:t"}
        assert reach["abc:f"] == frozenset({"abc:f"})

    def test_reach_sets_bounded_by_unit_count(self, make_pack: Callable[..., DataPack]) -> None:
        files = {
            f"data/abc/functions/f{i}.mcfunction": f"function abc:f{(i + 1) % 20}\n"
            for i in range(20)
        }
        pack = make_pack(files)
        reach = build_unit_reach(pack)
        assert all(len(units) == 20 for units in reach.values())


class TestReferenceSets:
    def test_nested_commands_inherit_function_reach(
        self, make_pack: Callable[..., DataPack]
    ) -> None:
        pack = make_pack(
            {
                "data/abc/functions/main.mcfunction": "execute as @a run function abc:sub\n",
                "data/abc/functions/sub.mcfunction": "# As: players\nsay hi\n",
            }
        )
        by_raw = _by_raw(build_reference_sets(pack))
        assert by_raw["function abc:sub"] == frozenset({"abc:main"})
        assert by_raw["execute as @a run function abc:sub"] == frozenset({"abc:main"})
        assert by_raw["say hi"] == frozenset({"abc:sub", "abc:main"})
        assert "As: players" not in by_raw

    def test_kinds_selects_comments(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack({"data/abc/functions/f.mcfunction": "# note\nsay hi\n"})
        references = build_reference_sets(pack, kinds=(ContentKind.COMMENT,))
        assert [c.raw for c in references] == ["note"]

    def test_duplicate_lines_get_own_entries(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack({"data/abc/functions/f.mcfunction": "say hi\nsay hi\n"})
        references = build_reference_sets(pack)
        assert [c.line for c in references] == [1, 2]

    def test_custom_call_lookup(self, make_pack: Callable[..., DataPack]) -> None:
        pack = make_pack(
            {
                "data/abc/functions/a.mcfunction": "invoke abc:b\n",
                "data/abc/functions/b.mcfunction": "say b\n",
            }
        )

        def _invoke(command: Command) -> str | None:
            if command.command_key == "invoke":
                return command.arguments[0]
            return None

        reach = build_unit_reach(pack, call_target=_invoke)
        assert reach["abc:b"] == frozenset({"abc:a", "abc:b"})

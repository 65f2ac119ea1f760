"""Shared test fixtures for packlint."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from packlint.model.loader import load_pack

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from packlint.model.resources import DataPack


def write_pack(root: Path, files: dict[str, str], *, pack_format: int | None = 10) -> Path:
    """Write a data pack below *root*.

    *files* maps paths relative to the pack root (``data/ns/functions/a.mcfunction``)
    to their text.  A ``pack.mcmeta`` is written unless *pack_format* is None.
    """
    root.mkdir(parents=True, exist_ok=True)
    if pack_format is not None:
        meta = {"pack": {"pack_format": pack_format, "description": "test pack"}}
        (root / "pack.mcmeta").write_text(json.dumps(meta))
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


def tag_json(*values: str, replace: bool | None = None) -> str:
    body: dict[str, object] = {"values": list(values)}
    if replace is not None:
        body["replace"] = replace
    return json.dumps(body)


@pytest.fixture()
def make_pack(tmp_path: Path) -> Callable[..., DataPack]:
    """Return a factory writing a pack into ``tmp_path / "pack"`` and loading it."""

    def _make(files: dict[str, str], *, pack_format: int | None = 10) -> DataPack:
        root = write_pack(tmp_path / "pack", files, pack_format=pack_format)
        return load_pack(root)

    return _make

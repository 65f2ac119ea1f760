"""Data pack loader.

Reads ``pack.mcmeta`` and every file under ``data/<namespace>/`` into the
immutable resource model.  Function files are split into lines and
tokenized just enough for the rules: a command key, whitespace separated
arguments (brackets and quotes kept together), and the command nested
after ``execute ... run``.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from packlint.model.resources import (
    Command,
    ContentKind,
    DataPack,
    Function,
    FunctionTag,
    Namespace,
    Resource,
    normalize_identifier,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_OPENING = frozenset({"{", "["})
_CLOSING = frozenset({"}", "]"})
_QUOTES = frozenset({'"', "'"})


class PackLoadError(Exception):
    """Raised when a directory cannot be read as a data pack."""


# ---------------------------------------------------------------------------
# Function text
# ---------------------------------------------------------------------------


def tokenize(text: str) -> list[str]:
    """Split a command on spaces, keeping ``{...}``, ``[...]`` and quoted strings intact."""
    tokens: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False

    for char in text:
        if quote is not None:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in _QUOTES:
            quote = char
        elif char in _OPENING:
            depth += 1
        elif char in _CLOSING and depth > 0:
            depth -= 1
        elif char.isspace() and depth == 0:
            if current:
                tokens.append("".join(current))
                current = []
            continue
        current.append(char)

    if current:
        tokens.append("".join(current))
    return tokens


def parse_command(raw: str, line: int) -> Command:
    """Build a command item from one stripped, non-comment line."""
    if raw.startswith("$"):
        # Macro lines are only resolved at run time.
        return Command(raw=raw, kind=ContentKind.OTHER, line=line)

    tokens = tokenize(raw)
    key, arguments = tokens[0], tuple(tokens[1:])
    inner: Command | None = None
    if key == "execute" and "run" in arguments:
        run_at = arguments.index("run")
        rest = " ".join(arguments[run_at + 1 :])
        if rest:
            inner = parse_command(rest, line)
        arguments = arguments[: run_at + 1]
    return Command(
        raw=raw,
        kind=ContentKind.COMMAND,
        line=line,
        command_key=key,
        arguments=arguments,
        inner=inner,
    )


def parse_function_text(text: str) -> tuple[Command, ...]:
    """Parse the content of an ``.mcfunction`` file.  Blank lines are dropped."""
    commands: list[Command] = []
    for number, source_line in enumerate(text.splitlines(), start=1):
        stripped = source_line.strip()
        if not stripped:
            continue
        if stripped.startswith("#"):
            commands.append(
                Command(raw=stripped[1:].strip(), kind=ContentKind.COMMENT, line=number)
            )
        else:
            commands.append(parse_command(stripped, number))
    return tuple(commands)


def parse_tag_members(content: dict[str, Any]) -> tuple[str, ...]:
    """Extract member identifiers from a tag JSON body.

    Entries are either plain strings or ``{"id": ..., "required": ...}`` objects.
    """
    values = content.get("values")
    if values is None:
        return ()
    if not isinstance(values, list):
        logger.warning("Tag 'values' must be a list, got %s", type(values).__name__)
        return ()
    members: list[str] = []
    for value in values:
        if isinstance(value, str):
            members.append(normalize_identifier(value))
        elif isinstance(value, dict) and isinstance(value.get("id"), str):
            members.append(normalize_identifier(value["id"]))
    return tuple(members)


# ---------------------------------------------------------------------------
# Directory loading
# ---------------------------------------------------------------------------


def _read_json(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Cannot parse JSON file: %s", path)
        return None
    return data if isinstance(data, dict) else None


def _read_function(path: Path) -> tuple[Command, ...]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.warning("Cannot read function file: %s", path)
        return ()
    return parse_function_text(text)


def _split_type_folder(relative: Path) -> tuple[str, str] | None:
    """Return ``(folder, path_with_extension)`` for a file below ``data/<ns>/``."""
    parts = relative.parts
    width = 2 if parts[0] == "tags" else 1
    if len(parts) <= width:
        return None
    return "/".join(parts[:width]), "/".join(parts[width:])


def load_namespace(ns_dir: Path) -> Namespace:
    """Load every resource below one ``data/<namespace>/`` directory."""
    name = ns_dir.name
    functions: list[Function] = []
    tags: list[FunctionTag] = []
    resources: list[Resource] = []

    for file_path in sorted(p for p in ns_dir.rglob("*") if p.is_file()):
        split = _split_type_folder(file_path.relative_to(ns_dir))
        if split is None:
            logger.debug("Skipping file outside a resource folder: %s", file_path)
            continue
        folder, location = split
        suffix = file_path.suffix
        path = location[: -len(suffix)] if suffix else location

        if folder == "functions" and suffix == ".mcfunction":
            functions.append(
                Function(namespace=name, path=path, commands=_read_function(file_path))
            )
        elif folder == "tags/functions" and suffix == ".json":
            content = _read_json(file_path) or {}
            tags.append(
                FunctionTag(
                    namespace=name,
                    path=path,
                    content=content,
                    members=parse_tag_members(content),
                )
            )
        else:
            content = _read_json(file_path) if suffix == ".json" else None
            resources.append(
                Resource(
                    namespace=name,
                    path=path,
                    folder=folder,
                    extension=suffix,
                    content=content,
                )
            )

    return Namespace(
        name=name,
        functions=tuple(functions),
        function_tags=tuple(tags),
        resources=tuple(resources),
    )


def load_pack(root: Path) -> DataPack:
    """Load a data pack directory.

    Raises :class:`PackLoadError` when *root* is not a directory or its
    ``pack.mcmeta`` exists but is not a JSON object.
    """
    if not root.is_dir():
        msg = f"Data pack directory not found: {root}"
        raise PackLoadError(msg)

    meta: dict[str, Any] = {}
    meta_path = root / "pack.mcmeta"
    if meta_path.is_file():
        parsed = _read_json(meta_path)
        if parsed is None:
            msg = f"Invalid pack.mcmeta: {meta_path}"
            raise PackLoadError(msg)
        meta = parsed

    data_dir = root / "data"
    namespaces: list[Namespace] = []
    if data_dir.is_dir():
        for ns_dir in sorted(p for p in data_dir.iterdir() if p.is_dir()):
            namespaces.append(load_namespace(ns_dir))

    logger.info(
        "Loaded %d namespaces, %d functions from %s",
        len(namespaces),
        sum(len(ns.functions) for ns in namespaces),
        root,
    )
    return DataPack(namespaces=tuple(namespaces), meta=meta)

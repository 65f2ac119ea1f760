"""In-memory resource model of a data pack: namespaces, functions, tags, commands."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

DEFAULT_NAMESPACE = "minecraft"
TAG_MARKER = "#"


class ContentKind(enum.Enum):
    """Structural kind of a single function line."""

    COMMENT = "comment"
    COMMAND = "command"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


def normalize_identifier(raw: str) -> str:
    """Return *raw* as a fully namespaced identifier.

    ``foo/bar`` becomes ``minecraft:foo/bar``; a leading ``#`` is kept.
    """
    is_tag = raw.startswith(TAG_MARKER)
    body = raw[1:] if is_tag else raw
    if ":" not in body:
        body = f"{DEFAULT_NAMESPACE}:{body}"
    return f"{TAG_MARKER}{body}" if is_tag else body


def is_tag_identifier(identifier: str) -> bool:
    return identifier.startswith(TAG_MARKER)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Command:
    """One line of a function, or a command nested inside ``execute ... run``.

    Commands compare by identity: two identical lines are two distinct items.
    For comments, ``raw`` holds the text after the ``#`` marker.
    """

    raw: str
    kind: ContentKind
    line: int
    command_key: str = ""
    arguments: tuple[str, ...] = ()
    inner: Command | None = None

    def flatten(self) -> Iterator[Command]:
        """Yield this command followed by every nested command."""
        current: Command | None = self
        while current is not None:
            yield current
            current = current.inner


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resource:
    """A file under ``data/<namespace>/<folder>/``.

    *folder* is the resource type folder (``functions``, ``predicates``,
    ``tags/functions`` ...), *path* the slash separated location inside it
    without extension.
    """

    namespace: str
    path: str
    folder: str
    extension: str = ""
    content: Mapping[str, Any] | None = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def identifier(self) -> str:
        return f"{self.namespace}:{self.path}"

    @property
    def file_path(self) -> str:
        """Location of the file relative to the pack root."""
        return f"data/{self.namespace}/{self.folder}/{self.path}{self.extension}"

    @property
    def directory(self) -> str:
        """Folder part of *path*; empty when the file sits at the type folder root."""
        return self.path.rsplit("/", 1)[0] if "/" in self.path else ""

    @property
    def is_tag(self) -> bool:
        return self.folder.startswith("tags/")


@dataclass(frozen=True)
class Function(Resource):
    """An ``.mcfunction`` file."""

    folder: str = "functions"
    extension: str = ".mcfunction"
    commands: tuple[Command, ...] = ()

    @property
    def commands_flat(self) -> Iterator[Command]:
        for command in self.commands:
            yield from command.flatten()


@dataclass(frozen=True)
class FunctionTag(Resource):
    """A function tag: an ordered group of functions and other function tags."""

    folder: str = "tags/functions"
    extension: str = ".json"
    members: tuple[str, ...] = ()

    @property
    def identifier(self) -> str:
        return f"{TAG_MARKER}{self.namespace}:{self.path}"


@dataclass(frozen=True)
class Namespace:
    """All resources sharing one ``data/<name>/`` folder, in declaration order."""

    name: str
    functions: tuple[Function, ...] = ()
    function_tags: tuple[FunctionTag, ...] = ()
    resources: tuple[Resource, ...] = ()

    @property
    def all_resources(self) -> tuple[Resource, ...]:
        return (*self.functions, *self.function_tags, *self.resources)

    @property
    def all_tags(self) -> tuple[Resource, ...]:
        return (*self.function_tags, *(r for r in self.resources if r.is_tag))


@dataclass(frozen=True)
class DataPack:
    """A loaded data pack: its metadata and namespaces."""

    namespaces: tuple[Namespace, ...] = ()
    meta: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def functions(self) -> Iterator[Function]:
        for ns in self.namespaces:
            yield from ns.functions

    @property
    def function_tags(self) -> Iterator[FunctionTag]:
        for ns in self.namespaces:
            yield from ns.function_tags

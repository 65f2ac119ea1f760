"""Resource model domain: data pack dataclasses and the directory loader."""

from packlint.model.loader import (
    PackLoadError,
    load_namespace,
    load_pack,
    parse_command,
    parse_function_text,
    parse_tag_members,
    tokenize,
)
from packlint.model.resources import (
    Command,
    ContentKind,
    DataPack,
    Function,
    FunctionTag,
    Namespace,
    Resource,
    is_tag_identifier,
    normalize_identifier,
)

__all__ = [
    "Command",
    "ContentKind",
    "DataPack",
    "Function",
    "FunctionTag",
    "Namespace",
    "PackLoadError",
    "Resource",
    "is_tag_identifier",
    "load_namespace",
    "load_pack",
    "normalize_identifier",
    "parse_command",
    "parse_function_text",
    "parse_tag_members",
    "tokenize",
]

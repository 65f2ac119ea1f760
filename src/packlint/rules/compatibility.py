"""Compatibility rules: tag replacement and the pack format version."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from packlint.rules.base import (
    ConfigurationError,
    RuleDefinition,
    ViolationBuilder,
    no_config,
    require_mapping,
)

if TYPE_CHECKING:
    from packlint.model.resources import DataPack
    from packlint.rules.base import Violation

NO_TAG_REPLACE = "compatibility.no-tag-replace"
VERSION_ID = "compatibility.version-id"


def evaluate_no_tag_replace(pack: DataPack, _config: None) -> list[Violation]:
    out = ViolationBuilder(NO_TAG_REPLACE)
    for ns in pack.namespaces:
        for tag in ns.all_tags:
            if tag.content is not None and tag.content.get("replace") is True:
                out.resource(
                    tag,
                    "Tag cannot replace contents of lower priority data packs, "
                    "remove 'replace: true'.",
                )
    return out.violations


def evaluate_version_id(pack: DataPack, version: int) -> list[Violation]:
    """``pack.mcmeta`` must declare the configured ``pack_format``."""
    out = ViolationBuilder(VERSION_ID)
    section = pack.meta.get("pack")
    pack_format = section.get("pack_format") if isinstance(section, dict) else None
    if pack_format is None:
        out.pack("pack.mcmeta does not declare pack.pack_format.")
    elif pack_format != version:
        out.pack(f"The data pack version is {pack_format}, expected {version}.")
    return out.violations


def _parse_version_id(data: Any) -> int:
    config = require_mapping(data, VERSION_ID)
    version = config.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        msg = f"{VERSION_ID}: 'version' must be an integer"
        raise ConfigurationError(msg)
    return version


no_tag_replace_rule: RuleDefinition[None] = RuleDefinition(
    name=NO_TAG_REPLACE,
    title="Tags must not overwrite entries defined in lower priority data packs.",
    description="Setting 'replace' to true in a tag can prevent other data packs from working.",
    parse_config=no_config(NO_TAG_REPLACE),
    evaluate=evaluate_no_tag_replace,
)

version_id_rule: RuleDefinition[int] = RuleDefinition(
    name=VERSION_ID,
    title="The version identifier must be correct.",
    description="'pack_format' in pack.mcmeta has to match the number set in the configuration.",
    parse_config=_parse_version_id,
    evaluate=evaluate_version_id,
    config_example="version: 7\n",
)

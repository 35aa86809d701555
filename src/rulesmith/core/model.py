from dataclasses import dataclass, field
from typing import Any

from rulesmith.core._types import Constraint, RulesetLang, RulesetType


@dataclass(frozen=True, slots=True)
class AssetDescriptor:
    """Catalog entry identifying one kind of asset."""

    name: str
    icon: str = ""
    colour: str = ""
    descriptor_type: str = "asset"


@dataclass(frozen=True, slots=True)
class AttributeDescriptor:
    """Metadata for one named attribute of an asset type."""

    name: str
    type: str = ""
    format: dict[str, Any] | None = None
    units: tuple[str, ...] = ()
    constraints: tuple[Constraint, ...] = ()


@dataclass(frozen=True, slots=True)
class MetaItemDescriptor:
    name: str
    type: str = ""


@dataclass(frozen=True, slots=True)
class ValueDescriptor:
    """A value type known to the asset model, e.g. ``positiveInteger`` (JSON type ``number``)."""

    name: str
    json_type: str = ""


@dataclass(frozen=True, slots=True)
class AssetTypeInfo:
    """Resolved view of one asset type for a particular editing context.

    Instances are never patched in place: config overrides produce a new
    ``AssetTypeInfo`` via :func:`dataclasses.replace`, so the canonical catalog
    entry stays untouched and repeated resolutions are independent.
    """

    asset_descriptor: AssetDescriptor
    attribute_descriptors: tuple[AttributeDescriptor, ...] = ()
    meta_item_descriptors: tuple[MetaItemDescriptor, ...] = ()
    value_descriptors: tuple[ValueDescriptor, ...] = ()

    @property
    def name(self) -> str:
        return self.asset_descriptor.name

    def attribute(self, name: str) -> AttributeDescriptor | None:
        """Return the attribute descriptor called *name*, if present."""
        for descriptor in self.attribute_descriptors:
            if descriptor.name == name:
                return descriptor
        return None


@dataclass(frozen=True, slots=True)
class AssetQuery:
    types: tuple[str, ...] | None = None
    ids: tuple[str, ...] | None = None


@dataclass
class Ruleset:
    """A persisted (or about to be persisted) rule definition.

    Mutable because the viewer edits it; hand out copies with
    :func:`dataclasses.replace` where a fresh instance is required.
    """

    id: int | None = None
    name: str = ""
    type: RulesetType = RulesetType.GLOBAL
    lang: RulesetLang = RulesetLang.JSON
    rules: str = ""
    enabled: bool = True
    realm: str | None = None
    asset_id: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class RulesetNode:
    """A ruleset as shown in the rule list."""

    ruleset: Ruleset
    selected: bool = False


def get_asset_type_from_query(query: AssetQuery | None) -> str | None:
    """Return the first asset type targeted by *query*, or ``None``."""
    if query is None or not query.types or not query.types[0]:
        return None
    return query.types[0]


def get_asset_ids_from_query(query: AssetQuery | None) -> list[str] | None:
    if query is None or query.ids is None:
        return None
    return list(query.ids)

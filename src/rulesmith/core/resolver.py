"""Layered resolution of the asset types offered to rule authors.

The ``all`` descriptor section supplies context independent defaults, the
``when``/``action`` section supplies overrides for one editing side. The
catalog is treated as read-only: overridden entries are rebuilt with
:func:`dataclasses.replace`, untouched entries are passed through as-is.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from rulesmith.core._types import UNKNOWN_ASSET, Side

if TYPE_CHECKING:
    from rulesmith.core.catalog import AssetCatalog
    from rulesmith.core.config import (
        RulesConfig,
        RulesConfigAsset,
        RulesConfigAttribute,
        RulesDescriptors,
        RulesDescriptorSection,
    )
    from rulesmith.core.model import AssetTypeInfo, AttributeDescriptor

logger = logging.getLogger("rulesmith")


async def get_asset_types(catalog: AssetCatalog) -> list[str]:
    """Return every runtime asset type name except the unknown-asset sentinel."""
    names = await catalog.get_asset_type_names()
    return [name for name in names if name != UNKNOWN_ASSET]


async def resolve_asset_infos(
    catalog: AssetCatalog,
    config: RulesConfig | None,
    side: Side | str,
) -> list[AssetTypeInfo]:
    """Return the asset type infos available on *side* of a rule.

    Steps:
    1. Allowlist: the runtime type names, replaced by ``include_assets`` when the
       side section or the ``all`` section defines it. When both do, the ``all``
       section's list wins.
    2. Denylist: union of both sections' ``exclude_assets``.
    3. Filter the catalog descriptors, keeping catalog order.
    4. Apply the asset override found for each survivor (side section first,
       then ``all``; each falls back to its ``"*"`` entry).

    A missing ``config`` or ``config.descriptors`` returns the unfiltered catalog.
    """
    side = Side(side)
    descriptors = catalog.get_asset_descriptors()
    available = await get_asset_types(catalog)

    if config is None or config.descriptors is None:
        return [catalog.get_asset_type_info(d) for d in descriptors]

    section = config.descriptors.section(side)
    all_section = config.descriptors.all

    allowed: list[str] = list(available)
    section_include = section.include_assets if section is not None else None
    all_include = all_section.include_assets if all_section is not None else None
    if section_include is not None or all_include is not None:
        allowed = []
        if section_include is not None:
            allowed = list(section_include)
        # Unconditional reassignment: the ``all`` list replaces the side list.
        if all_include is not None:
            allowed = list(all_include)

    excluded: set[str] = set()
    if section is not None and section.exclude_assets is not None:
        excluded.update(section.exclude_assets)
    if all_section is not None and all_section.exclude_assets is not None:
        excluded.update(all_section.exclude_assets)

    allowed_set = frozenset(allowed)
    infos: list[AssetTypeInfo] = []
    for descriptor in descriptors:
        if allowed_set and descriptor.name not in allowed_set:
            continue
        if descriptor.name in excluded:
            continue

        info = catalog.get_asset_type_info(descriptor)
        override = _asset_override(descriptor.name, config.descriptors, side)
        if override is None:
            infos.append(info)
        else:
            infos.append(_apply_asset_override(info, override, section, all_section))

    logger.debug(
        "Resolved %d of %d asset types for %s side", len(infos), len(descriptors), side
    )
    return infos


def _asset_override(
    asset_type: str,
    descriptors: RulesDescriptors,
    side: Side,
) -> RulesConfigAsset | None:
    section = descriptors.section(side)
    if section is not None and (override := section.asset(asset_type)) is not None:
        return override
    if descriptors.all is not None:
        return descriptors.all.asset(asset_type)
    return None


def _apply_asset_override(
    info: AssetTypeInfo,
    override: RulesConfigAsset,
    section: RulesDescriptorSection | None,
    all_section: RulesDescriptorSection | None,
) -> AssetTypeInfo:
    descriptor = info.asset_descriptor
    if override.icon:
        descriptor = dataclasses.replace(descriptor, icon=override.icon)
    if override.color:
        descriptor = dataclasses.replace(descriptor, colour=override.color)

    attributes = info.attribute_descriptors
    if override.filters_attributes:
        attributes = tuple(a for a in attributes if override.allows_attribute(a.name))

    # Shared section dictionaries are only consulted once the asset entry
    # itself declares attribute descriptors.
    if override.attribute_descriptors is not None:
        attributes = tuple(
            _apply_attribute_override(
                attribute, _attribute_override(attribute.name, override, section, all_section)
            )
            for attribute in attributes
        )

    return dataclasses.replace(
        info, asset_descriptor=descriptor, attribute_descriptors=attributes
    )


def _attribute_override(
    name: str,
    override: RulesConfigAsset,
    section: RulesDescriptorSection | None,
    all_section: RulesDescriptorSection | None,
) -> RulesConfigAttribute | None:
    if override.attribute_descriptors and (found := override.attribute_descriptors.get(name)):
        return found
    if section is not None and (found := section.attribute(name)) is not None:
        return found
    if all_section is not None:
        return all_section.attribute(name)
    return None


def _apply_attribute_override(
    attribute: AttributeDescriptor,
    override: RulesConfigAttribute | None,
) -> AttributeDescriptor:
    if override is None:
        return attribute

    changes: dict[str, object] = {}
    if override.type:
        changes["type"] = override.type
    if override.format is not None:
        changes["format"] = override.format
    if override.units is not None:
        changes["units"] = override.units
    if override.constraints is not None:
        # Config constraints come first; the catalog's own are kept after them.
        changes["constraints"] = (*override.constraints, *attribute.constraints)

    if not changes:
        return attribute
    return dataclasses.replace(attribute, **changes)  # type: ignore[arg-type]

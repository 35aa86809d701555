"""Asset type catalog capability.

The resolver depends on :class:`AssetCatalog` rather than a process-wide asset
model, so hosts inject whatever backs their catalog (a REST client, a cache,
or the in-memory :class:`StaticAssetCatalog`).
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Protocol

from rulesmith.core.model import (
    AssetDescriptor,
    AssetTypeInfo,
    AttributeDescriptor,
    MetaItemDescriptor,
    ValueDescriptor,
)


class CatalogError(Exception):
    """Raised when a catalog file cannot be read or parsed."""


class AssetCatalog(Protocol):
    async def get_asset_type_names(self) -> Sequence[str]:
        """Return every asset type name known to the runtime asset model."""
        ...

    def get_asset_descriptors(self) -> Sequence[AssetDescriptor]: ...

    def get_asset_type_info(self, descriptor: AssetDescriptor) -> AssetTypeInfo: ...


class StaticAssetCatalog:
    """In-memory catalog built from a fixed list of :class:`AssetTypeInfo`."""

    def __init__(
        self,
        infos: Iterable[AssetTypeInfo],
        type_names: Iterable[str] | None = None,
    ) -> None:
        self._infos: dict[str, AssetTypeInfo] = {info.name: info for info in infos}
        self._type_names = tuple(type_names) if type_names is not None else tuple(self._infos)

    async def get_asset_type_names(self) -> Sequence[str]:
        return self._type_names

    def get_asset_descriptors(self) -> Sequence[AssetDescriptor]:
        return [info.asset_descriptor for info in self._infos.values()]

    def get_asset_type_info(self, descriptor: AssetDescriptor) -> AssetTypeInfo:
        info = self._infos.get(descriptor.name)
        if info is None:
            return AssetTypeInfo(asset_descriptor=descriptor)
        return info


def load_catalog(path: Path | str) -> StaticAssetCatalog:
    """Load a :class:`StaticAssetCatalog` from a JSON file.

    The file holds a list of asset type objects::

        [
          {
            "name": "ThingAsset",
            "icon": "cube-outline",
            "colour": "C2C2C2",
            "attributes": [
              {"name": "temperature", "type": "number", "units": ["celsius"],
               "constraints": [{"type": "min", "min": -50}]}
            ],
            "meta_items": [{"name": "readOnly", "type": "boolean"}],
            "values": [{"name": "number", "json_type": "number"}]
          }
        ]

    An optional top-level ``{"types": [...], "type_names": [...]}`` object form
    restricts the runtime type names separately from the descriptors.
    """
    resolved = Path(path)
    try:
        raw = json.loads(resolved.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CatalogError(f"Could not read catalog {resolved}: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CatalogError(f"Invalid JSON in {resolved}: {exc}") from exc

    type_names: list[str] | None = None
    if isinstance(raw, dict):
        type_names = raw.get("type_names")
        if type_names is not None and (
            not isinstance(type_names, list) or not all(isinstance(n, str) for n in type_names)
        ):
            raise CatalogError(f"{resolved}: 'type_names' must be a list of strings")
        raw = raw.get("types", [])

    if not isinstance(raw, list):
        raise CatalogError(f"{resolved}: expected a list of asset types")

    try:
        infos = [_parse_info(item) for item in raw]
    except (KeyError, TypeError, AttributeError) as exc:
        raise CatalogError(f"{resolved}: malformed asset type entry: {exc!r}") from exc

    return StaticAssetCatalog(infos, type_names=type_names)


def _parse_info(item: dict[str, Any]) -> AssetTypeInfo:
    return AssetTypeInfo(
        asset_descriptor=AssetDescriptor(
            name=item["name"],
            icon=item.get("icon", ""),
            colour=item.get("colour", ""),
            descriptor_type=item.get("descriptor_type", "asset"),
        ),
        attribute_descriptors=tuple(
            AttributeDescriptor(
                name=attr["name"],
                type=attr.get("type", ""),
                format=attr.get("format"),
                units=tuple(attr.get("units", ())),
                constraints=tuple(attr.get("constraints", ())),
            )
            for attr in item.get("attributes", ())
        ),
        meta_item_descriptors=tuple(
            MetaItemDescriptor(name=meta["name"], type=meta.get("type", ""))
            for meta in item.get("meta_items", ())
        ),
        value_descriptors=tuple(
            ValueDescriptor(name=value["name"], json_type=value.get("json_type", ""))
            for value in item.get("values", ())
        ),
    )

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from rulesmith.core.catalog import CatalogError, StaticAssetCatalog, load_catalog
from rulesmith.core.model import (
    AssetDescriptor,
    AssetQuery,
    AssetTypeInfo,
    get_asset_ids_from_query,
    get_asset_type_from_query,
)
from tests.conftest import make_info

_CATALOG = [
    {
        "name": "ThingAsset",
        "icon": "cube-outline",
        "colour": "C2C2C2",
        "attributes": [
            {
                "name": "temperature",
                "type": "number",
                "units": ["celsius"],
                "constraints": [{"type": "min", "min": -50}],
            },
            {"name": "notes"},
        ],
        "meta_items": [{"name": "readOnly", "type": "boolean"}],
        "values": [{"name": "number", "json_type": "number"}],
    },
    {"name": "BuildingAsset"},
]


class TestStaticAssetCatalog:
    async def test_type_names_default_to_infos(self) -> None:
        catalog = StaticAssetCatalog([make_info("A"), make_info("B")])
        assert list(await catalog.get_asset_type_names()) == ["A", "B"]

    async def test_explicit_type_names(self) -> None:
        catalog = StaticAssetCatalog([make_info("A")], type_names=["A", "Z"])
        assert list(await catalog.get_asset_type_names()) == ["A", "Z"]

    def test_descriptors_in_order(self) -> None:
        catalog = StaticAssetCatalog([make_info("B"), make_info("A")])
        assert [d.name for d in catalog.get_asset_descriptors()] == ["B", "A"]

    def test_type_info_lookup(self) -> None:
        info = make_info("A", "x")
        catalog = StaticAssetCatalog([info])
        assert catalog.get_asset_type_info(info.asset_descriptor) is info

    def test_type_info_for_unknown_descriptor(self) -> None:
        catalog = StaticAssetCatalog([])
        descriptor = AssetDescriptor(name="Other")
        assert catalog.get_asset_type_info(descriptor) == AssetTypeInfo(asset_descriptor=descriptor)


class TestLoadCatalog:
    async def test_load_list(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(_CATALOG))
        catalog = load_catalog(path)

        assert list(await catalog.get_asset_type_names()) == ["ThingAsset", "BuildingAsset"]
        thing = catalog.get_asset_type_info(catalog.get_asset_descriptors()[0])
        assert thing.asset_descriptor.icon == "cube-outline"
        assert thing.asset_descriptor.colour == "C2C2C2"
        temperature = thing.attribute("temperature")
        assert temperature is not None
        assert temperature.units == ("celsius",)
        assert temperature.constraints == ({"type": "min", "min": -50},)
        assert thing.attribute("notes").type == ""  # type: ignore[union-attr]
        assert thing.meta_item_descriptors[0].name == "readOnly"
        assert thing.value_descriptors[0].json_type == "number"

    async def test_load_object_form(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"types": _CATALOG, "type_names": ["BuildingAsset"]}))
        catalog = load_catalog(path)
        assert list(await catalog.get_asset_type_names()) == ["BuildingAsset"]
        assert len(catalog.get_asset_descriptors()) == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogError, match="Could not read"):
            load_catalog(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text("[{")
        with pytest.raises(CatalogError, match="Invalid JSON"):
            load_catalog(path)

    def test_non_utf8_file(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_bytes(b"\xff\xfe[\x00]\x00")
        with pytest.raises(CatalogError, match="Invalid JSON"):
            load_catalog(path)

    @pytest.mark.parametrize("type_names", ["ThingAsset", ["ThingAsset", 3], {"a": 1}])
    def test_type_names_must_be_string_list(self, tmp_path: Path, type_names: object) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"types": _CATALOG, "type_names": type_names}))
        with pytest.raises(CatalogError, match="'type_names' must be a list of strings"):
            load_catalog(path)

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text('"ThingAsset"')
        with pytest.raises(CatalogError, match="expected a list"):
            load_catalog(path)

    def test_entry_without_name(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text('[{"icon": "x"}]')
        with pytest.raises(CatalogError, match="malformed"):
            load_catalog(path)


class TestQueryHelpers:
    def test_type_from_query(self) -> None:
        assert get_asset_type_from_query(AssetQuery(types=("ThingAsset", "Other"))) == "ThingAsset"

    @pytest.mark.parametrize(
        "query",
        [None, AssetQuery(), AssetQuery(types=()), AssetQuery(types=("",))],
    )
    def test_type_from_query_missing(self, query: AssetQuery | None) -> None:
        assert get_asset_type_from_query(query) is None

    def test_ids_from_query_copies(self) -> None:
        ids = get_asset_ids_from_query(AssetQuery(ids=("a", "b")))
        assert ids == ["a", "b"]
        assert isinstance(ids, list)

    def test_ids_from_query_missing(self) -> None:
        assert get_asset_ids_from_query(None) is None
        assert get_asset_ids_from_query(AssetQuery()) is None

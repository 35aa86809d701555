from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from rulesmith.core.catalog import StaticAssetCatalog
from rulesmith.core.model import (
    AssetDescriptor,
    AssetTypeInfo,
    AttributeDescriptor,
    Ruleset,
    RulesetNode,
)


def make_info(
    name: str,
    *attributes: str | AttributeDescriptor,
    icon: str = "",
    colour: str = "",
) -> AssetTypeInfo:
    return AssetTypeInfo(
        asset_descriptor=AssetDescriptor(name=name, icon=icon, colour=colour),
        attribute_descriptors=tuple(
            a if isinstance(a, AttributeDescriptor) else AttributeDescriptor(name=a, type="text")
            for a in attributes
        ),
    )


def make_catalog(
    *infos: AssetTypeInfo,
    type_names: list[str] | None = None,
) -> StaticAssetCatalog:
    """Catalog with Building/Thing/Console assets plus the unknown-asset sentinel."""
    if not infos:
        infos = (
            make_info("BuildingAsset", "area", "notes", icon="office-building"),
            make_info(
                "ThingAsset",
                AttributeDescriptor(
                    name="temperature",
                    type="number",
                    units=("celsius",),
                    constraints=({"type": "min", "min": -50},),
                ),
                "humidity",
                "notes",
            ),
            make_info("ConsoleAsset", "platform", "providers"),
            make_info("UnknownAsset"),
        )
    return StaticAssetCatalog(infos, type_names=type_names)


def make_node(ruleset_id: int | None, name: str = "", *, selected: bool = False) -> RulesetNode:
    return RulesetNode(Ruleset(id=ruleset_id, name=name or f"rule-{ruleset_id}"), selected)


@dataclass
class FakeViewer:
    modified: bool = False
    ruleset: Ruleset | None = None


@dataclass
class FakeRuleList:
    refreshes: int = 0

    async def refresh(self) -> None:
        self.refreshes += 1


@dataclass
class FakeConfirm:
    """Confirmation prompt answering ``answer``; blocks on ``gate`` when one is set."""

    answer: bool | None = True
    calls: list[tuple[str, str]] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def __call__(self, title: str, message: str) -> bool | None:
        self.calls.append((title, message))
        if self.gate is not None:
            await self.gate.wait()
        return self.answer


def names(infos: list[Any]) -> list[str]:
    return [info.name for info in infos]

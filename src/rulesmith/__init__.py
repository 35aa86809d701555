from importlib.metadata import version

from rulesmith.core._types import Side
from rulesmith.core.catalog import AssetCatalog, CatalogError, StaticAssetCatalog, load_catalog
from rulesmith.core.config import ConfigError, RulesConfig, load_config, parse_config
from rulesmith.core.editor import RulesEditor
from rulesmith.core.events import ALLOW, Allow, Deny, RulesChannel
from rulesmith.core.guard import EditGuard
from rulesmith.core.model import AssetTypeInfo, Ruleset, RulesetNode
from rulesmith.core.resolver import resolve_asset_infos

__version__ = version("rulesmith")


__all__ = [
    "ALLOW",
    "Allow",
    "AssetCatalog",
    "AssetTypeInfo",
    "CatalogError",
    "ConfigError",
    "Deny",
    "EditGuard",
    "RulesChannel",
    "RulesConfig",
    "RulesEditor",
    "Ruleset",
    "RulesetNode",
    "Side",
    "StaticAssetCatalog",
    "__version__",
    "load_catalog",
    "load_config",
    "parse_config",
    "resolve_asset_infos",
]

from __future__ import annotations

import fnmatch
import re
import tomllib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from rulesmith.core._types import (
    WILDCARD,
    ActionTargetType,
    ActionType,
    AssetQueryOperator,
    ConditionType,
    Constraint,
    RecurrenceOption,
    RulesetLang,
    Side,
)
from rulesmith.core.model import Ruleset

type RulesetHandler = Callable[[Ruleset], bool]


class ConfigError(ValueError):
    """Raised when a config file contains an invalid value."""


def _is_glob(pattern: str) -> bool:
    return any(c in pattern for c in "*?[")


def _compile(patterns: Iterable[str]) -> tuple[frozenset[str], tuple[re.Pattern[str], ...]]:
    patterns = tuple(patterns)
    exact = frozenset(p for p in patterns if not _is_glob(p))
    globs = tuple(re.compile(fnmatch.translate(p)) for p in patterns if _is_glob(p))
    return exact, globs


def _matches(name: str, exact: frozenset[str], globs: tuple[re.Pattern[str], ...]) -> bool:
    return name in exact or any(p.match(name) for p in globs)


@dataclass(frozen=True)
class RulesConfigAttribute:
    """Field overrides applied to a matching attribute descriptor.

    ``type``, ``format`` and ``units`` replace the catalog value when set.
    ``constraints`` are prepended to the catalog constraints, never replacing them.
    """

    type: str | None = None
    format: dict[str, Any] | None = None
    units: tuple[str, ...] | None = None
    constraints: tuple[Constraint, ...] | None = None


@dataclass(frozen=True)
class RulesConfigAsset:
    """Per asset type overrides (or the ``"*"`` fallback entry of a section).

    Example ``.rulesmith.toml``::

        [descriptors.when.assets.ThingAsset]
        icon = "thermometer"
        include_attributes = ["temp*", "humidity"]

    """

    include_attributes: tuple[str, ...] | None = None
    """Allowlist of attribute names or glob patterns. ``None`` means no restriction,
    an empty tuple filters out every attribute."""

    exclude_attributes: tuple[str, ...] | None = None
    """Denylist of attribute names or glob patterns, applied after the allowlist."""

    name: str | None = None
    icon: str | None = None
    color: str | None = None
    attribute_descriptors: dict[str, RulesConfigAttribute] | None = None

    _exact_include: frozenset[str] = field(
        default_factory=frozenset, init=False, compare=False, repr=False
    )
    _glob_include: tuple[re.Pattern[str], ...] = field(
        default=(), init=False, compare=False, repr=False
    )
    _exact_exclude: frozenset[str] = field(
        default_factory=frozenset, init=False, compare=False, repr=False
    )
    _glob_exclude: tuple[re.Pattern[str], ...] = field(
        default=(), init=False, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        exact_inc, glob_inc = _compile(self.include_attributes or ())
        exact_exc, glob_exc = _compile(self.exclude_attributes or ())
        object.__setattr__(self, "_exact_include", exact_inc)
        object.__setattr__(self, "_glob_include", glob_inc)
        object.__setattr__(self, "_exact_exclude", exact_exc)
        object.__setattr__(self, "_glob_exclude", glob_exc)

    @property
    def filters_attributes(self) -> bool:
        return self.include_attributes is not None or self.exclude_attributes is not None

    def allows_attribute(self, name: str) -> bool:
        """Return ``True`` if the attribute called *name* survives include/exclude filtering."""
        if self.include_attributes is not None and not _matches(
            name, self._exact_include, self._glob_include
        ):
            return False
        if self.exclude_attributes is not None:
            return not _matches(name, self._exact_exclude, self._glob_exclude)
        return True


@dataclass(frozen=True)
class RulesDescriptorSection:
    """One layer of descriptor configuration (``all``, ``when`` or ``action``)."""

    include_assets: tuple[str, ...] | None = None
    exclude_assets: tuple[str, ...] | None = None
    attribute_descriptors: dict[str, RulesConfigAttribute] | None = None
    assets: dict[str, RulesConfigAsset] | None = None
    """Asset type specific config; the ``"*"`` key is the fallback when no
    asset type specific entry exists."""

    def asset(self, asset_type: str) -> RulesConfigAsset | None:
        if not self.assets:
            return None
        return self.assets.get(asset_type) or self.assets.get(WILDCARD)

    def attribute(self, name: str) -> RulesConfigAttribute | None:
        if not self.attribute_descriptors:
            return None
        return self.attribute_descriptors.get(name)


@dataclass(frozen=True)
class RulesDescriptors:
    all: RulesDescriptorSection | None = None
    when: RulesDescriptorSection | None = None
    action: RulesDescriptorSection | None = None

    def section(self, side: Side) -> RulesDescriptorSection | None:
        """Return the side specific section (not the ``all`` section)."""
        return self.action if side == Side.ACTION else self.when


@dataclass(frozen=True)
class AllowedActionTargetTypes:
    default: tuple[ActionTargetType, ...] | None = None
    actions: dict[ActionType, tuple[ActionTargetType, ...]] | None = None


@dataclass(frozen=True)
class RulesControls:
    """UI toggles handed verbatim to the rendering layer.

    Only :mod:`rulesmith.core.operators` reads the ``allowed_*`` lists; the
    ``hide_*`` flags are never interpreted here.
    """

    allowed_languages: tuple[RulesetLang, ...] | None = None
    allowed_condition_types: tuple[ConditionType, ...] | None = None
    allowed_action_types: tuple[ActionType, ...] | None = None
    allowed_asset_query_operators: dict[str, tuple[AssetQueryOperator, ...]] | None = None
    """Keyed by value descriptor name or value descriptor JSON type."""
    allowed_recurrence_options: tuple[RecurrenceOption, ...] | None = None
    allowed_action_target_types: AllowedActionTargetTypes | None = None
    hide_action_type_options: bool = False
    hide_action_target_options: bool = False
    hide_action_update_options: bool = False
    hide_condition_type_options: bool = False
    hide_then_add_action: bool = False
    hide_when_add_condition: bool = False
    hide_when_add_attribute: bool = False
    hide_when_add_group: bool = False
    multi_select: bool = False


@dataclass(frozen=True)
class RulesConfig:
    """Configuration for a rules editor instance.

    Can be loaded from ``.rulesmith.toml`` or ``pyproject.toml [tool.rulesmith]``
    via :func:`load_config`. Ruleset handlers are code, not config: attach
    them with :func:`dataclasses.replace`.

    Example ``pyproject.toml``::

        [tool.rulesmith.controls]
        allowed_action_types = ["attribute", "email"]
        hide_when_add_group = true

        [tool.rulesmith.descriptors.all]
        exclude_assets = ["ConsoleAsset"]

        [tool.rulesmith.descriptors.when.assets."*"]
        exclude_attributes = ["notes"]

    """

    controls: RulesControls = field(default_factory=RulesControls)
    descriptors: RulesDescriptors | None = None

    # Host handlers return False to stop the default handling of the ruleset.
    ruleset_add_handler: RulesetHandler | None = field(default=None, repr=False)
    ruleset_delete_handler: RulesetHandler | None = field(default=None, repr=False)
    ruleset_copy_handler: RulesetHandler | None = field(default=None, repr=False)
    ruleset_save_handler: RulesetHandler | None = field(default=None, repr=False)


def load_config(path: Path | str | None = None) -> RulesConfig:
    """Load :class:`RulesConfig` from a TOML file.

    When ``path`` is ``None``, walks up from the current directory looking for
    ``.rulesmith.toml`` first, then ``pyproject.toml [tool.rulesmith]``. A
    ``pyproject.toml`` without a ``[tool.rulesmith]`` section acts as a project
    root marker and stops the search.

    Raises:
        :class:`ConfigError`: If the file is not valid TOML or contains an
            unrecognised value.

    """
    if path is not None:
        resolved = Path(path)
        data = _read_file(resolved) if resolved.exists() else {}
    else:
        data = _find_config()

    return parse_config(data)


def _find_config() -> dict[str, Any]:
    """Walk up from CWD looking for a config file."""
    current = Path.cwd()
    while True:
        rulesmith_toml = current / ".rulesmith.toml"
        if rulesmith_toml.exists():
            return _read_file(rulesmith_toml)

        pyproject = current / "pyproject.toml"
        if pyproject.exists():
            # pyproject.toml marks the project root: stop here even without a
            # [tool.rulesmith] section so a parent project's config is not used.
            return _read_file(pyproject)

        parent = current.parent
        if parent == current:  # reached filesystem root
            break
        current = parent

    return {}


def _read_file(path: Path) -> dict[str, Any]:
    """Read a TOML file and return the rulesmith-relevant section."""
    try:
        with path.open("rb") as f:
            raw: dict[str, Any] = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    if path.name == "pyproject.toml":
        tool: dict[str, Any] = raw.get("tool", {})
        section: dict[str, Any] = tool.get("rulesmith", {})
        return section
    return raw


def parse_config(data: dict[str, Any]) -> RulesConfig:
    """Parse a raw key/value dict into :class:`RulesConfig`.

    Raises:
        :class:`ConfigError`: On unknown sections, unrecognised enum values or
            values of the wrong shape.

    """
    controls = _parse_controls(_table(data, "controls"))

    descriptors: RulesDescriptors | None = None
    if (raw := data.get("descriptors")) is not None:
        if not isinstance(raw, dict):
            raise ConfigError("'descriptors' must be a table")
        unknown = set(raw) - {"all", *Side}
        if unknown:
            known = ", ".join(f'"{s}"' for s in ("all", *Side))
            raise ConfigError(f"Unknown descriptor section(s) {sorted(unknown)}. Known: {known}")
        descriptors = RulesDescriptors(
            all=_parse_section(raw.get("all"), "all"),
            when=_parse_section(raw.get("when"), "when"),
            action=_parse_section(raw.get("action"), "action"),
        )

    return RulesConfig(controls=controls, descriptors=descriptors)


def _table(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{key!r} must be a table")
    return value


def _strings(value: Any, key: str) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigError(f"{key!r} must be a list of strings")
    return tuple(str(v) for v in value)


def _enums[E: StrEnum](value: Any, enum: type[E], key: str) -> tuple[E, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigError(f"{key!r} must be a list")
    try:
        return tuple(enum(v) for v in value)
    except ValueError as exc:
        raise ConfigError(f"{key}: {exc}") from exc


def _parse_controls(data: dict[str, Any]) -> RulesControls:
    kwargs: dict[str, Any] = {}

    enum_lists: dict[str, type[StrEnum]] = {
        "allowed_languages": RulesetLang,
        "allowed_condition_types": ConditionType,
        "allowed_action_types": ActionType,
        "allowed_recurrence_options": RecurrenceOption,
    }
    for key, enum in enum_lists.items():
        if (v := data.get(key)) is not None:
            kwargs[key] = _enums(v, enum, key)

    if (ops := data.get("allowed_asset_query_operators")) is not None:
        if not isinstance(ops, dict):
            raise ConfigError("'allowed_asset_query_operators' must be a table")
        kwargs["allowed_asset_query_operators"] = {
            str(name): _enums(v, AssetQueryOperator, f"allowed_asset_query_operators.{name}")
            for name, v in ops.items()
        }

    if (targets := data.get("allowed_action_target_types")) is not None:
        if not isinstance(targets, dict):
            raise ConfigError("'allowed_action_target_types' must be a table")
        actions: dict[ActionType, tuple[ActionTargetType, ...]] | None = None
        if (raw_actions := targets.get("actions")) is not None:
            try:
                actions = {
                    ActionType(action): _enums(v, ActionTargetType, f"actions.{action}") or ()
                    for action, v in raw_actions.items()
                }
            except (ValueError, AttributeError) as exc:
                raise ConfigError(f"allowed_action_target_types: {exc}") from exc
        kwargs["allowed_action_target_types"] = AllowedActionTargetTypes(
            default=_enums(targets.get("default"), ActionTargetType, "default"),
            actions=actions,
        )

    for key in (
        "hide_action_type_options",
        "hide_action_target_options",
        "hide_action_update_options",
        "hide_condition_type_options",
        "hide_then_add_action",
        "hide_when_add_condition",
        "hide_when_add_attribute",
        "hide_when_add_group",
        "multi_select",
    ):
        if (v := data.get(key)) is not None:
            if not isinstance(v, bool):
                raise ConfigError(f"'{key}' must be true or false, got {v!r}")
            kwargs[key] = v

    return RulesControls(**kwargs)


def _parse_section(data: Any, name: str) -> RulesDescriptorSection | None:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigError(f"descriptors.{name} must be a table")

    assets: dict[str, RulesConfigAsset] | None = None
    if (raw_assets := data.get("assets")) is not None:
        if not isinstance(raw_assets, dict):
            raise ConfigError(f"descriptors.{name}.assets must be a table")
        assets = {
            str(asset_type): _parse_asset(v, f"descriptors.{name}.assets.{asset_type}")
            for asset_type, v in raw_assets.items()
        }

    return RulesDescriptorSection(
        include_assets=_strings(data.get("include_assets"), "include_assets"),
        exclude_assets=_strings(data.get("exclude_assets"), "exclude_assets"),
        attribute_descriptors=_parse_attributes(
            data.get("attribute_descriptors"), f"descriptors.{name}"
        ),
        assets=assets,
    )


def _parse_asset(data: Any, where: str) -> RulesConfigAsset:
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a table")
    return RulesConfigAsset(
        include_attributes=_strings(data.get("include_attributes"), "include_attributes"),
        exclude_attributes=_strings(data.get("exclude_attributes"), "exclude_attributes"),
        name=data.get("name"),
        icon=data.get("icon"),
        color=data.get("color"),
        attribute_descriptors=_parse_attributes(data.get("attribute_descriptors"), where),
    )


def _parse_attributes(data: Any, where: str) -> dict[str, RulesConfigAttribute] | None:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigError(f"{where}.attribute_descriptors must be a table")

    attributes: dict[str, RulesConfigAttribute] = {}
    for attr_name, raw in data.items():
        if not isinstance(raw, dict):
            raise ConfigError(f"{where}.attribute_descriptors.{attr_name} must be a table")
        constraints = raw.get("constraints")
        if constraints is not None and not (
            isinstance(constraints, list) and all(isinstance(c, dict) for c in constraints)
        ):
            raise ConfigError(
                f"{where}.attribute_descriptors.{attr_name}.constraints must be a list of tables"
            )
        attributes[str(attr_name)] = RulesConfigAttribute(
            type=raw.get("type"),
            format=raw.get("format"),
            units=_strings(raw.get("units"), "units"),
            constraints=tuple(constraints) if constraints is not None else None,
        )
    return attributes

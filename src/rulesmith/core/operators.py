from __future__ import annotations

from typing import TYPE_CHECKING

from rulesmith.core._types import (
    ActionTargetType,
    ActionType,
    AssetQueryOperator,
    RecurrenceOption,
)

if TYPE_CHECKING:
    from rulesmith.core.config import RulesControls
    from rulesmith.core.model import ValueDescriptor

ALL_OPERATORS: tuple[AssetQueryOperator, ...] = tuple(AssetQueryOperator)
ALL_TARGET_TYPES: tuple[ActionTargetType, ...] = tuple(ActionTargetType)
ALL_RECURRENCE_OPTIONS: tuple[RecurrenceOption, ...] = tuple(RecurrenceOption)


def allowed_operators(
    controls: RulesControls | None,
    value_descriptor: ValueDescriptor,
) -> tuple[AssetQueryOperator, ...]:
    """Return the query operators offered for values of *value_descriptor*.

    ``allowed_asset_query_operators`` is looked up by descriptor name first,
    then by JSON type. Without a match every operator is offered.
    """
    if controls is None or not controls.allowed_asset_query_operators:
        return ALL_OPERATORS
    by_name = controls.allowed_asset_query_operators
    if (ops := by_name.get(value_descriptor.name)) is not None:
        return ops
    if value_descriptor.json_type and (ops := by_name.get(value_descriptor.json_type)) is not None:
        return ops
    return ALL_OPERATORS


def allowed_action_target_types(
    controls: RulesControls | None,
    action_type: ActionType,
) -> tuple[ActionTargetType, ...]:
    """Return the notification targets offered for *action_type*."""
    targets = controls.allowed_action_target_types if controls is not None else None
    if targets is None:
        return ALL_TARGET_TYPES
    if targets.actions and (per_action := targets.actions.get(action_type)) is not None:
        return per_action
    if targets.default is not None:
        return targets.default
    return ALL_TARGET_TYPES


def allowed_recurrence_options(controls: RulesControls | None) -> tuple[RecurrenceOption, ...]:
    if controls is None or controls.allowed_recurrence_options is None:
        return ALL_RECURRENCE_OPTIONS
    return controls.allowed_recurrence_options

from rulesmith.core._types import (
    ActionTargetType,
    ActionType,
    AssetQueryOperator,
    RecurrenceOption,
)
from rulesmith.core.config import AllowedActionTargetTypes, RulesControls
from rulesmith.core.model import ValueDescriptor
from rulesmith.core.operators import (
    ALL_OPERATORS,
    ALL_RECURRENCE_OPTIONS,
    ALL_TARGET_TYPES,
    allowed_action_target_types,
    allowed_operators,
    allowed_recurrence_options,
)

_NUMBER = ValueDescriptor(name="positiveInteger", json_type="number")
_EQ = (AssetQueryOperator.EQUALS, AssetQueryOperator.NOT_EQUALS)
_GT = (AssetQueryOperator.GREATER_THAN,)


def test_operators_without_controls() -> None:
    assert allowed_operators(None, _NUMBER) == ALL_OPERATORS
    assert allowed_operators(RulesControls(), _NUMBER) == ALL_OPERATORS
    assert len(ALL_OPERATORS) == 30


def test_operators_by_descriptor_name() -> None:
    controls = RulesControls(
        allowed_asset_query_operators={"positiveInteger": _EQ, "number": _GT}
    )
    assert allowed_operators(controls, _NUMBER) == _EQ


def test_operators_fall_back_to_json_type() -> None:
    controls = RulesControls(allowed_asset_query_operators={"number": _GT})
    assert allowed_operators(controls, _NUMBER) == _GT


def test_operators_no_match() -> None:
    controls = RulesControls(allowed_asset_query_operators={"text": _EQ})
    assert allowed_operators(controls, _NUMBER) == ALL_OPERATORS
    assert allowed_operators(controls, ValueDescriptor(name="boolean")) == ALL_OPERATORS


def test_operators_empty_list_offers_nothing() -> None:
    controls = RulesControls(allowed_asset_query_operators={"number": ()})
    assert allowed_operators(controls, _NUMBER) == ()


def test_target_types_default() -> None:
    assert allowed_action_target_types(None, ActionType.EMAIL) == ALL_TARGET_TYPES
    assert allowed_action_target_types(RulesControls(), ActionType.EMAIL) == ALL_TARGET_TYPES


def test_target_types_per_action_then_default() -> None:
    controls = RulesControls(
        allowed_action_target_types=AllowedActionTargetTypes(
            default=(ActionTargetType.USER,),
            actions={ActionType.PUSH_NOTIFICATION: (ActionTargetType.ASSET,)},
        )
    )
    assert allowed_action_target_types(controls, ActionType.PUSH_NOTIFICATION) == (
        ActionTargetType.ASSET,
    )
    assert allowed_action_target_types(controls, ActionType.EMAIL) == (ActionTargetType.USER,)


def test_target_types_actions_only() -> None:
    controls = RulesControls(
        allowed_action_target_types=AllowedActionTargetTypes(
            actions={ActionType.EMAIL: (ActionTargetType.TENANT,)}
        )
    )
    assert allowed_action_target_types(controls, ActionType.WAIT) == ALL_TARGET_TYPES


def test_recurrence_options() -> None:
    assert allowed_recurrence_options(None) == ALL_RECURRENCE_OPTIONS
    controls = RulesControls(allowed_recurrence_options=(RecurrenceOption.ONCE,))
    assert allowed_recurrence_options(controls) == (RecurrenceOption.ONCE,)

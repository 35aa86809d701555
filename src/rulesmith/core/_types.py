from enum import StrEnum
from typing import Any

type Constraint = dict[str, Any]

UNKNOWN_ASSET = "UnknownAsset"
"""Sentinel asset type that is never offered to rule authors."""

WILDCARD = "*"


class Side(StrEnum):
    """Rule editing context."""

    WHEN = "when"
    ACTION = "action"


class RulesetLang(StrEnum):
    JSON = "JSON"
    GROOVY = "GROOVY"
    JAVASCRIPT = "JAVASCRIPT"
    FLOW = "FLOW"


class RulesetType(StrEnum):
    """Scope a ruleset is persisted under."""

    GLOBAL = "global"
    TENANT = "tenant"
    ASSET = "asset"


class ConditionType(StrEnum):
    ASSET_QUERY = "assetQuery"
    TIMER = "timer"


class ActionType(StrEnum):
    WAIT = "wait"
    EMAIL = "email"
    PUSH_NOTIFICATION = "push"
    ATTRIBUTE = "attribute"


class ActionTargetType(StrEnum):
    """Recipients of a notification action."""

    TENANT = "TENANT"
    USER = "USER"
    ASSET = "ASSET"


class RecurrenceOption(StrEnum):
    ALWAYS = "always"
    ONCE = "once"
    ONCE_PER_HOUR = "oncePerHour"
    ONCE_PER_DAY = "oncePerDay"
    ONCE_PER_WEEK = "oncePerWeek"


class AssetQueryOperator(StrEnum):
    """Comparison operators available when building an asset query condition."""

    VALUE_EMPTY = "empty"
    VALUE_NOT_EMPTY = "notEmpty"
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    GREATER_EQUALS = "greaterEquals"
    LESS_THAN = "lessThan"
    LESS_EQUALS = "lessEquals"
    BETWEEN = "between"
    NOT_BETWEEN = "notBetween"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    STARTS_WITH = "startsWith"
    NOT_STARTS_WITH = "notStartsWith"
    ENDS_WITH = "endsWith"
    NOT_ENDS_WITH = "notEndsWith"
    CONTAINS_KEY = "containsKey"
    NOT_CONTAINS_KEY = "notContainsKey"
    INDEX_CONTAINS = "indexContains"
    NOT_INDEX_CONTAINS = "notIndexContains"
    LENGTH_EQUALS = "lengthEquals"
    NOT_LENGTH_EQUALS = "notLengthEquals"
    LENGTH_GREATER_THAN = "lengthGreaterThan"
    LENGTH_LESS_THAN = "lengthLessThan"
    IS_TRUE = "true"
    IS_FALSE = "false"
    WITHIN_RADIUS = "withinRadius"
    OUTSIDE_RADIUS = "outsideRadius"
    WITHIN_RECTANGLE = "withinRectangle"
    OUTSIDE_RECTANGLE = "outsideRectangle"

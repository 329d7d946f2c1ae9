"""
Typed preconditions for conditional writes.

Every mutation in courtcheck carries one of these. A condition can be checked
against a row directly (in-memory backend) or rendered to a boto3 condition
expression (DynamoDB backend), so callers branch on a closed set of types
instead of expression strings.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import reduce
from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase

from ..constants import ATTR_PK


class Condition(ABC):
    """Precondition evaluated atomically by the storage backend."""

    @abstractmethod
    def evaluate(self, item: dict[str, Any] | None) -> bool:
        """Return True if the condition holds for the current row (None if absent)."""

    @abstractmethod
    def to_expression(self) -> ConditionBase:
        """Render as a boto3 condition expression."""


@dataclass(frozen=True)
class ItemExists(Condition):
    """Row must already exist."""

    def evaluate(self, item: dict[str, Any] | None) -> bool:
        return item is not None

    def to_expression(self) -> ConditionBase:
        return Attr(ATTR_PK).exists()


@dataclass(frozen=True)
class ItemNotExists(Condition):
    """Row must not exist yet."""

    def evaluate(self, item: dict[str, Any] | None) -> bool:
        return item is None

    def to_expression(self) -> ConditionBase:
        return Attr(ATTR_PK).not_exists()


@dataclass(frozen=True)
class AttributeMissing(Condition):
    """Attribute is absent (also true when the row itself is absent)."""

    name: str

    def evaluate(self, item: dict[str, Any] | None) -> bool:
        return item is None or self.name not in item

    def to_expression(self) -> ConditionBase:
        return Attr(self.name).not_exists()


@dataclass(frozen=True)
class AttributeAtMost(Condition):
    """Attribute exists and is <= value. Mismatched types never match."""

    name: str
    value: Any

    def evaluate(self, item: dict[str, Any] | None) -> bool:
        if item is None or self.name not in item:
            return False
        try:
            return bool(item[self.name] <= self.value)
        except TypeError:
            return False

    def to_expression(self) -> ConditionBase:
        return Attr(self.name).lte(self.value)


class AnyOf(Condition):
    """Disjunction of conditions."""

    def __init__(self, *conditions: Condition):
        if not conditions:
            raise ValueError("AnyOf requires at least one condition")
        self.conditions = conditions

    def evaluate(self, item: dict[str, Any] | None) -> bool:
        return any(c.evaluate(item) for c in self.conditions)

    def to_expression(self) -> ConditionBase:
        return reduce(lambda a, b: a | b, (c.to_expression() for c in self.conditions))

    def __repr__(self) -> str:
        return f"AnyOf{self.conditions!r}"

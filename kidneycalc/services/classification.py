"""Ordered threshold classification.

A ``RangeTable`` is an ordered tuple of ``RangeRule`` entries. Rules are
evaluated top to bottom and the first rule whose predicate holds decides the
label. Boundaries are inclusive on one side only and vary per formula, so
tables must be written in the order they are meant to be checked.
"""

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Classification:
    """Categorical label assigned to a numeric output."""

    label: str
    detail: str | None = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.label} ({self.detail})"
        return self.label


@dataclass(frozen=True)
class RangeRule:
    """A (predicate, label) pair with a printable predicate description."""

    predicate: Callable[[float], bool]
    description: str
    label: str
    detail: str | None = None

    def matches(self, value: float) -> bool:
        return self.predicate(value)

    def to_classification(self) -> Classification:
        return Classification(label=self.label, detail=self.detail)


def below(threshold: float, label: str, detail: str | None = None) -> RangeRule:
    return RangeRule(lambda v: v < threshold, f"< {threshold:g}", label, detail)


def at_most(threshold: float, label: str, detail: str | None = None) -> RangeRule:
    return RangeRule(lambda v: v <= threshold, f"≤ {threshold:g}", label, detail)


def above(threshold: float, label: str, detail: str | None = None) -> RangeRule:
    return RangeRule(lambda v: v > threshold, f"> {threshold:g}", label, detail)


def at_least(threshold: float, label: str, detail: str | None = None) -> RangeRule:
    return RangeRule(lambda v: v >= threshold, f"≥ {threshold:g}", label, detail)


def otherwise(label: str, detail: str | None = None) -> RangeRule:
    return RangeRule(lambda v: True, "any", label, detail)


@dataclass(frozen=True)
class RangeTable:
    """Ordered first-match classification table."""

    name: str
    rules: tuple[RangeRule, ...]

    def classify(self, value: float) -> Classification | None:
        """Return the classification of the first matching rule.

        Args:
            value: Numeric output to classify.

        Returns:
            Classification of the first rule whose predicate holds, or None
            when no rule matches.
        """
        for rule in self.rules:
            if rule.matches(value):
                return rule.to_classification()
        return None

    def describe(self) -> list[dict[str, str | None]]:
        """Describe the rules in evaluation order."""
        return [
            {"when": rule.description, "label": rule.label, "detail": rule.detail}
            for rule in self.rules
        ]

"""Formula descriptors, evaluation results and evaluation errors.

Everything here is immutable: catalog entries are built once at import time
and results are plain values handed back to the caller.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from kidneycalc.schemas.base import EvalErrorKind, FormulaCategory, InputDomain
from kidneycalc.services.classification import Classification, RangeTable


class DomainViolationError(ValueError):
    """Raised by a formula body when parsed inputs fail a precondition."""

    def __init__(self, reason: str, field: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.field = field


class UnknownFormulaError(KeyError):
    """Raised when a formula identifier is not registered."""

    def __init__(self, formula_id: str) -> None:
        super().__init__(formula_id)
        self.formula_id = formula_id

    def __str__(self) -> str:
        return f"Unknown formula: {self.formula_id}"


@dataclass(frozen=True)
class EvalError:
    """Recoverable evaluation failure ("no result yet")."""

    kind: EvalErrorKind
    reason: str
    field: str | None = None

    @classmethod
    def missing_or_invalid(cls, field: str, reason: str) -> "EvalError":
        return cls(kind=EvalErrorKind.MISSING_OR_INVALID_INPUT, reason=reason, field=field)

    @classmethod
    def domain_violation(cls, reason: str, field: str | None = None) -> "EvalError":
        return cls(kind=EvalErrorKind.DOMAIN_VIOLATION, reason=reason, field=field)

    def __str__(self) -> str:
        if self.field:
            return f"{self.kind.value}: {self.field}: {self.reason}"
        return f"{self.kind.value}: {self.reason}"


@dataclass(frozen=True)
class UnitOption:
    """An accepted input unit and its factor to the canonical unit."""

    label: str
    factor: float


@dataclass(frozen=True)
class InputField:
    """A numeric input of a formula."""

    name: str
    label: str
    unit: str = ""
    domain: InputDomain = InputDomain.ANY
    default: float | None = None
    required: bool = True
    unit_options: tuple[UnitOption, ...] = ()

    @property
    def unit_field(self) -> str:
        """Name of the raw input that selects one of ``unit_options``."""
        return f"{self.name}_unit"

    def domain_violation(self, value: float) -> str | None:
        """Return a reason if ``value`` is outside the declared domain."""
        if not math.isfinite(value):
            return "must be a finite number"
        if self.domain == InputDomain.POSITIVE and value <= 0:
            return "must be greater than 0"
        if self.domain == InputDomain.NON_NEGATIVE and value < 0:
            return "must not be negative"
        return None


@dataclass(frozen=True)
class ChoiceField:
    """A categorical input; keys are matched case-insensitively."""

    name: str
    label: str
    options: tuple[tuple[str, Any], ...]
    default: str | None = None

    def resolve(self, raw: str) -> Any | None:
        key = raw.strip().lower()
        for option_key, value in self.options:
            if option_key.lower() == key:
                return value
        return None

    @property
    def choices(self) -> list[str]:
        return [key for key, _ in self.options]


@dataclass(frozen=True)
class FormulaSpec:
    """Static descriptor of a catalog formula."""

    id: str
    name: str
    category: FormulaCategory
    description: str
    equation: str
    variables: tuple[str, ...] = ()
    references: tuple[str, ...] = ()
    inputs: tuple[InputField | ChoiceField, ...] = ()
    tables: tuple[RangeTable, ...] = ()


@dataclass(frozen=True)
class OutputValue:
    """One named numeric output with its optional classification."""

    name: str
    label: str
    value: float
    unit: str = ""
    classification: Classification | None = None


def output(
    name: str,
    label: str,
    value: float,
    unit: str = "",
    table: RangeTable | None = None,
) -> OutputValue:
    """Build an output, classifying it against ``table`` when given."""
    classification = table.classify(value) if table is not None else None
    return OutputValue(name=name, label=label, value=value, unit=unit, classification=classification)


@dataclass(frozen=True)
class EvaluationResult:
    """Outputs of one evaluation."""

    formula_id: str
    outputs: tuple[OutputValue, ...]
    findings: dict[str, str] = field(default_factory=dict)
    notes: tuple[str, ...] = ()
    violations: tuple[EvalError, ...] = ()
    inputs_used: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> OutputValue | None:
        for out in self.outputs:
            if out.name == name:
                return out
        return None

    def __getitem__(self, name: str) -> OutputValue:
        out = self.get(name)
        if out is None:
            raise KeyError(name)
        return out

    def value(self, name: str) -> float:
        return self[name].value

    def label(self, name: str) -> str | None:
        classification = self[name].classification
        return classification.label if classification else None

    def has_output(self, name: str) -> bool:
        return self.get(name) is not None

"""Formula Evaluator Service.

Turns raw user-entered text into an interpreted result:

1. parse every declared input (missing or unparseable text is an error,
   except for fields with a pre-filled clinical default or optional fields)
2. apply the selected unit conversion
3. check the declared numeric domain of each input
4. run the formula body, which may raise ``DomainViolationError`` for
   cross-field preconditions

Business-rule failures come back as ``EvalError`` values. Only an unknown
formula identifier raises.
"""

import dataclasses
import logging
import math
import re
from collections.abc import Callable, Mapping
from threading import Lock
from typing import Any

from kidneycalc.schemas.base import FormulaCategory
from kidneycalc.services import formulas
from kidneycalc.services.acid_base import interpret_acid_base
from kidneycalc.services.catalog import FORMULA_CATALOG
from kidneycalc.services.models import (
    ChoiceField,
    DomainViolationError,
    EvalError,
    EvaluationResult,
    FormulaSpec,
    InputField,
    UnknownFormulaError,
)

logger = logging.getLogger(__name__)

FormulaBody = Callable[..., EvaluationResult]

# Plain ASCII decimal with an optional exponent.
NUMBER_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def normalize_formula_id(formula_id: str) -> str:
    return formula_id.strip().lower().replace("-", "_")


def _raw_text(raw: Mapping[str, str], name: str) -> str:
    value = raw.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


def _parse_number(field: InputField, raw: Mapping[str, str]) -> float | None | EvalError:
    text = _raw_text(raw, field.name)

    if not text:
        if field.default is not None:
            return float(field.default)
        if not field.required:
            return None
        return EvalError.missing_or_invalid(field.name, "is required")

    if not NUMBER_PATTERN.fullmatch(text):
        return EvalError.missing_or_invalid(field.name, f"is not a number: {text!r}")
    value = float(text)
    if not math.isfinite(value):
        return EvalError.missing_or_invalid(field.name, f"is not a finite number: {text!r}")

    if field.unit_options:
        unit_text = _raw_text(raw, field.unit_field).lower()
        factor = field.unit_options[0].factor
        if unit_text:
            for option in field.unit_options:
                if option.label.lower() == unit_text:
                    factor = option.factor
                    break
            else:
                accepted = ", ".join(option.label for option in field.unit_options)
                return EvalError.missing_or_invalid(field.unit_field, f"must be one of: {accepted}")
        value *= factor

    return value


def _parse_choice(field: ChoiceField, raw: Mapping[str, str]) -> Any:
    text = _raw_text(raw, field.name)
    if not text:
        if field.default is None:
            return EvalError.missing_or_invalid(field.name, "is required")
        text = field.default

    value = field.resolve(text)
    if value is None:
        return EvalError.missing_or_invalid(field.name, f"must be one of: {', '.join(field.choices)}")
    return value


def parse_inputs(spec: FormulaSpec, raw: Mapping[str, str]) -> dict[str, Any] | EvalError:
    """Parse and convert raw text for every declared input of ``spec``.

    Args:
        spec: Formula descriptor whose inputs drive parsing.
        raw: Mapping of field name to user-entered text.

    Returns:
        Mapping of field name to parsed value, or the first EvalError in
        declared field order. Missing or invalid fields are reported before
        any domain violation.
    """
    parsed: dict[str, Any] = {}
    for field in spec.inputs:
        if isinstance(field, ChoiceField):
            value = _parse_choice(field, raw)
        else:
            value = _parse_number(field, raw)
        if isinstance(value, EvalError):
            return value
        parsed[field.name] = value

    for field in spec.inputs:
        if isinstance(field, InputField) and parsed[field.name] is not None:
            reason = field.domain_violation(parsed[field.name])
            if reason:
                return EvalError.domain_violation(reason, field=field.name)

    return parsed


class FormulaEvaluator:
    """Service for evaluating nephrology formulas.

    Usage:
        evaluator = FormulaEvaluator()

        result = evaluator.evaluate("corrected_calcium", {"calcium": "7.6", "albumin": "2.0"})
        if isinstance(result, EvalError):
            ...
        result.value("corrected_calcium")  # 9.2
    """

    FORMULAS: dict[str, FormulaBody] = {
        "ckd_epi_creatinine": formulas.calculate_ckd_epi_creatinine,
        "ckd_epi_cystatin": formulas.calculate_ckd_epi_cystatin,
        "ckd_epi_combined": formulas.calculate_ckd_epi_combined,
        "glucose_correction": formulas.calculate_glucose_correction,
        "adrogue_madias": formulas.calculate_adrogue_madias,
        "free_water_deficit": formulas.calculate_free_water_deficit,
        "corrected_calcium": formulas.calculate_corrected_calcium,
        "anion_gap": formulas.calculate_anion_gap,
        "acid_base": interpret_acid_base,
        "bicarbonate_deficit": formulas.calculate_bicarbonate_deficit,
        "efwc": formulas.calculate_efwc,
        "serum_osmolality": formulas.calculate_serum_osmolality,
        "urine_anion_gap": formulas.calculate_urine_anion_gap,
        "urine_osmolal_gap": formulas.calculate_urine_osmolal_gap,
    }

    def __init__(self, catalog: tuple[FormulaSpec, ...] = FORMULA_CATALOG) -> None:
        self._specs = {spec.id: spec for spec in catalog}
        missing = set(self._specs) - set(self.FORMULAS)
        if missing:
            raise ValueError(f"No formula body registered for: {', '.join(sorted(missing))}")

    def list_formulas(self, category: FormulaCategory | None = None) -> list[FormulaSpec]:
        """List catalog formulas in display order, optionally by category."""
        return [
            spec for spec in self._specs.values()
            if category is None or spec.category == category
        ]

    def categories(self) -> list[FormulaCategory]:
        seen: list[FormulaCategory] = []
        for spec in self._specs.values():
            if spec.category not in seen:
                seen.append(spec.category)
        return seen

    def has_formula(self, formula_id: str) -> bool:
        return normalize_formula_id(formula_id) in self._specs

    def get_formula(self, formula_id: str) -> FormulaSpec:
        """Get a formula descriptor.

        Raises:
            UnknownFormulaError: If the identifier is not in the catalog.
        """
        key = normalize_formula_id(formula_id)
        if key not in self._specs:
            raise UnknownFormulaError(formula_id)
        return self._specs[key]

    def evaluate(
        self,
        formula_id: str,
        raw_inputs: Mapping[str, str],
    ) -> EvaluationResult | EvalError:
        """Evaluate a formula from raw text inputs.

        Args:
            formula_id: Catalog identifier, e.g. ``"anion_gap"``.
            raw_inputs: Mapping of field name to user-entered text.

        Returns:
            EvaluationResult, or EvalError when an input is missing, invalid
            or outside the formula's domain.

        Raises:
            UnknownFormulaError: If the identifier is not in the catalog.
        """
        spec = self.get_formula(formula_id)

        parsed = parse_inputs(spec, raw_inputs)
        if isinstance(parsed, EvalError):
            logger.debug(f"Evaluation of {spec.id} stopped at input parsing: {parsed}")
            return parsed

        body = self.FORMULAS[spec.id]
        try:
            result = body(**parsed)
        except DomainViolationError as e:
            error = EvalError.domain_violation(e.reason, field=e.field)
            logger.debug(f"Evaluation of {spec.id} violated a precondition: {error}")
            return error

        logger.debug(f"Evaluated {spec.id}: {len(result.outputs)} outputs")
        return dataclasses.replace(result, inputs_used=parsed)

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about available formulas.

        Returns:
            Dictionary with formula statistics.
        """
        by_category: dict[str, int] = {}
        for spec in self._specs.values():
            by_category[spec.category.value] = by_category.get(spec.category.value, 0) + 1
        return {
            "total_formulas": len(self._specs),
            "formula_list": list(self._specs),
            "by_category": by_category,
        }


# Singleton instance and lock
_formula_evaluator: FormulaEvaluator | None = None
_formula_evaluator_lock = Lock()


def get_formula_evaluator() -> FormulaEvaluator:
    """Get the singleton FormulaEvaluator instance.

    Returns:
        The singleton FormulaEvaluator instance.
    """
    global _formula_evaluator

    if _formula_evaluator is None:
        with _formula_evaluator_lock:
            if _formula_evaluator is None:
                logger.info("Creating singleton FormulaEvaluator instance")
                _formula_evaluator = FormulaEvaluator()

    return _formula_evaluator


def reset_formula_evaluator() -> None:
    """Reset the singleton instance (for testing)."""
    global _formula_evaluator
    with _formula_evaluator_lock:
        _formula_evaluator = None

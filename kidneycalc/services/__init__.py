"""Services for KidneyCalc."""

from kidneycalc.services.evaluator import (
    FormulaEvaluator,
    get_formula_evaluator,
    reset_formula_evaluator,
)
from kidneycalc.services.favorites import FavoritesStore
from kidneycalc.services.models import (
    DomainViolationError,
    EvalError,
    EvaluationResult,
    FormulaSpec,
    UnknownFormulaError,
)

__all__ = [
    "DomainViolationError",
    "EvalError",
    "EvaluationResult",
    "FavoritesStore",
    "FormulaEvaluator",
    "FormulaSpec",
    "UnknownFormulaError",
    "get_formula_evaluator",
    "reset_formula_evaluator",
]

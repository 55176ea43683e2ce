"""Pydantic schemas and enums for KidneyCalc.

API models live in ``kidneycalc.schemas.formula``; only the enums are
re-exported here because the service layer imports them.
"""

from kidneycalc.schemas.base import (
    AgeGroup,
    Chronicity,
    EvalErrorKind,
    FormulaCategory,
    InputDomain,
    Sex,
)

__all__ = [
    "AgeGroup",
    "Chronicity",
    "EvalErrorKind",
    "FormulaCategory",
    "InputDomain",
    "Sex",
]

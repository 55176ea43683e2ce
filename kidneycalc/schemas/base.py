"""Base schemas and enums for KidneyCalc."""

from enum import Enum


class FormulaCategory(str, Enum):
    """Catalog grouping for formulas."""

    GFR = "GFR"
    ELECTROLYTES = "Electrolytes"
    ACID_BASE = "Acid-Base"
    BONE_MINERAL = "Bone & Mineral"


class Sex(str, Enum):
    """Biological sex used by sex-specific coefficients."""

    MALE = "male"
    FEMALE = "female"


class AgeGroup(str, Enum):
    """Age group used by total body water estimates."""

    ADULT = "adult"
    ELDERLY = "elderly"  # > 65 years


class Chronicity(str, Enum):
    """Time course of a respiratory acid-base process."""

    ACUTE = "acute"
    CHRONIC = "chronic"


class InputDomain(str, Enum):
    """Numeric domain an input value must fall in."""

    ANY = "any"
    POSITIVE = "positive"  # > 0
    NON_NEGATIVE = "non_negative"  # >= 0


class EvalErrorKind(str, Enum):
    """Recoverable evaluation failures."""

    MISSING_OR_INVALID_INPUT = "missing_or_invalid_input"
    DOMAIN_VIOLATION = "domain_violation"

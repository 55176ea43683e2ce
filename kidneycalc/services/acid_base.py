"""Arterial blood gas interpretation.

A flat decision procedure: the pH selects acidemia, alkalemia or normal; the
direction of HCO3 (vs 24) and PCO2 (vs 40) selects the primary disorder; and,
for a single primary disorder, the matching compensation rule decides whether
a secondary disorder is present. A normal pH with both values abnormal is
reported as a concurrent disorder without a compensation check.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from kidneycalc.schemas.base import Chronicity
from kidneycalc.services.classification import RangeTable, at_most, below, otherwise
from kidneycalc.services.models import EvaluationResult, OutputValue, output

logger = logging.getLogger(__name__)

NORMAL_HCO3 = 24.0
NORMAL_PCO2 = 40.0

PH_STATUS = RangeTable(
    "ph_status",
    (
        below(7.35, "Acidemia"),
        at_most(7.45, "Normal"),
        otherwise("Alkalemia"),
    ),
)

HCO3_STATUS = RangeTable(
    "hco3_status",
    (
        below(NORMAL_HCO3, "Low"),
        at_most(NORMAL_HCO3, "Normal"),
        otherwise("High"),
    ),
)

PCO2_STATUS = RangeTable(
    "pco2_status",
    (
        below(NORMAL_PCO2, "Low"),
        at_most(NORMAL_PCO2, "Normal"),
        otherwise("High"),
    ),
)

RESPIRATORY_ACIDOSIS_SECONDARY = "Secondary Respiratory Acidosis (inadequate respiratory compensation)"
RESPIRATORY_ALKALOSIS_SECONDARY = "Secondary Respiratory Alkalosis (excessive respiratory compensation)"
METABOLIC_ALKALOSIS_SECONDARY = "Secondary Metabolic Alkalosis"
METABOLIC_ACIDOSIS_SECONDARY = "Secondary Metabolic Acidosis"


@dataclass(frozen=True)
class CompensationRule:
    """Expected compensation for a primary disorder.

    ``expected`` maps (hco3, pco2, chronicity) to the expected value of the
    compensating variable; observations outside ``expected ± tolerance``
    name a secondary disorder.
    """

    name: str
    compensating: str  # "pco2" or "bicarbonate"
    expected: Callable[[float, float, Chronicity], float]
    tolerance: float
    above_band: str
    below_band: str

    def check(self, hco3: float, pco2: float, chronicity: Chronicity) -> tuple[float, str | None]:
        """Return the expected value and the secondary disorder, if any."""
        expected = self.expected(hco3, pco2, chronicity)
        observed = pco2 if self.compensating == "pco2" else hco3
        if observed > expected + self.tolerance:
            return expected, self.above_band
        if observed < expected - self.tolerance:
            return expected, self.below_band
        return expected, None


def _respiratory_acidosis_hco3(hco3: float, pco2: float, chronicity: Chronicity) -> float:
    delta = pco2 - NORMAL_PCO2
    per_10 = 1 if chronicity == Chronicity.ACUTE else 4
    return NORMAL_HCO3 + delta / 10 * per_10


def _respiratory_alkalosis_hco3(hco3: float, pco2: float, chronicity: Chronicity) -> float:
    delta = NORMAL_PCO2 - pco2
    per_10 = 2 if chronicity == Chronicity.ACUTE else 5
    return NORMAL_HCO3 - delta / 10 * per_10


WINTERS_FORMULA = CompensationRule(
    name="Winter's formula",
    compensating="pco2",
    expected=lambda hco3, pco2, chronicity: 1.5 * hco3 + 8,
    tolerance=2,
    above_band=RESPIRATORY_ACIDOSIS_SECONDARY,
    below_band=RESPIRATORY_ALKALOSIS_SECONDARY,
)

METABOLIC_ALKALOSIS_RULE = CompensationRule(
    name="Metabolic alkalosis compensation",
    compensating="pco2",
    expected=lambda hco3, pco2, chronicity: 0.7 * hco3 + 20,
    tolerance=5,
    above_band=RESPIRATORY_ACIDOSIS_SECONDARY,
    below_band=RESPIRATORY_ALKALOSIS_SECONDARY,
)

RESPIRATORY_ACIDOSIS_RULE = CompensationRule(
    name="Respiratory acidosis compensation",
    compensating="bicarbonate",
    expected=_respiratory_acidosis_hco3,
    tolerance=2,
    above_band=METABOLIC_ALKALOSIS_SECONDARY,
    below_band=METABOLIC_ACIDOSIS_SECONDARY,
)

RESPIRATORY_ALKALOSIS_RULE = CompensationRule(
    name="Respiratory alkalosis compensation",
    compensating="bicarbonate",
    expected=_respiratory_alkalosis_hco3,
    tolerance=2,
    above_band=METABOLIC_ALKALOSIS_SECONDARY,
    below_band=METABOLIC_ACIDOSIS_SECONDARY,
)


def _primary_disorder(
    ph: float, hco3: float, pco2: float
) -> tuple[str, CompensationRule | None]:
    acidemia = ph < 7.35
    alkalemia = ph > 7.45
    hco3_low, hco3_high = hco3 < NORMAL_HCO3, hco3 > NORMAL_HCO3
    pco2_low, pco2_high = pco2 < NORMAL_PCO2, pco2 > NORMAL_PCO2

    if acidemia:
        if hco3_low:
            label = "Metabolic Acidosis (primary)" if pco2_high else "Metabolic Acidosis"
            return label, WINTERS_FORMULA
        if pco2_high:
            return "Respiratory Acidosis", RESPIRATORY_ACIDOSIS_RULE
        return "Acidemia", None

    if alkalemia:
        if hco3_high:
            label = "Metabolic Alkalosis (primary)" if pco2_low else "Metabolic Alkalosis"
            return label, METABOLIC_ALKALOSIS_RULE
        if pco2_low:
            return "Respiratory Alkalosis", RESPIRATORY_ALKALOSIS_RULE
        return "Alkalemia", None

    # Normal pH: mixed disorders are reported without a compensation check
    if hco3_low and pco2_high:
        return "Concurrent Metabolic Acidosis & Respiratory Acidosis", None
    if hco3_high and pco2_low:
        return "Concurrent Metabolic Alkalosis & Respiratory Alkalosis", None
    if hco3_low and pco2_low:
        return "Concurrent Metabolic Acidosis & Respiratory Alkalosis", None
    if hco3_high and pco2_high:
        return "Concurrent Metabolic Alkalosis & Respiratory Acidosis", None
    return "Normal acid-base status", None


def interpret_acid_base(
    ph: float,
    bicarbonate: float,
    pco2: float,
    chronicity: Chronicity = Chronicity.ACUTE,
) -> EvaluationResult:
    """Interpret an arterial blood gas.

    Args:
        ph: Arterial pH.
        bicarbonate: Serum bicarbonate in mEq/L.
        pco2: Arterial PCO2 in mmHg.
        chronicity: Acute or chronic; only used by the respiratory rules.

    Returns:
        EvaluationResult with ``primary_disorder`` (and ``secondary_disorder``
        when compensation is outside the expected band) in ``findings``.
    """
    primary, rule = _primary_disorder(ph, bicarbonate, pco2)
    findings = {"primary_disorder": primary}

    outputs: list[OutputValue] = [
        output("ph", "pH", ph, "", PH_STATUS),
        output("bicarbonate", "HCO3", bicarbonate, "mEq/L", HCO3_STATUS),
        output("pco2", "PCO2", pco2, "mmHg", PCO2_STATUS),
    ]

    if rule is not None:
        expected, secondary = rule.check(bicarbonate, pco2, chronicity)
        if rule.compensating == "pco2":
            name, label, unit = "expected_pco2", "Expected PCO2", "mmHg"
        else:
            name, label, unit = "expected_bicarbonate", "Expected HCO3", "mEq/L"
        outputs.append(output(name, f"{label} ({rule.name}, ±{rule.tolerance:g})", expected, unit))
        if secondary is not None:
            findings["secondary_disorder"] = secondary

    logger.debug(f"Acid-base interpretation: {findings}")

    ph_label = PH_STATUS.classify(ph).label
    hco3_label = HCO3_STATUS.classify(bicarbonate).label
    pco2_label = PCO2_STATUS.classify(pco2).label
    notes = (
        f"pH: {ph:.2f} ({ph_label})",
        f"HCO3: {bicarbonate:.1f} mEq/L ({hco3_label})",
        f"PCO2: {pco2:.1f} mmHg ({pco2_label})",
    )

    return EvaluationResult(
        formula_id="acid_base",
        outputs=tuple(outputs),
        findings=findings,
        notes=notes,
    )

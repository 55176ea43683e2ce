"""Nephrology formula bodies.

Each ``calculate_*`` function takes already parsed and unit-converted values
and returns an ``EvaluationResult``. Functions raise ``DomainViolationError``
when a formula-specific precondition does not hold; they never perform I/O.
"""

from kidneycalc.schemas.base import AgeGroup, Sex
from kidneycalc.services.classification import (
    RangeTable,
    above,
    at_least,
    at_most,
    below,
    otherwise,
)
from kidneycalc.services.models import (
    DomainViolationError,
    EvalError,
    EvaluationResult,
    output,
)

EGFR_UNIT = "mL/min/1.73m²"
MEQ_L = "mEq/L"
MG_DL = "mg/dL"
MOSM_KG = "mOsm/kg"

# ============================================================================
# Classification tables
# ============================================================================

CKD_STAGE = RangeTable(
    "ckd_stage",
    (
        at_least(90, "Stage 1", "Normal or high"),
        at_least(60, "Stage 2", "Mildly decreased"),
        at_least(45, "Stage 3a", "Mild to moderate"),
        at_least(30, "Stage 3b", "Moderate to severe"),
        at_least(15, "Stage 4", "Severely decreased"),
        otherwise("Stage 5", "Kidney failure"),
    ),
)

SODIUM_STATUS = RangeTable(
    "sodium_status",
    (
        below(135, "Hyponatremia"),
        at_most(145, "Normal"),
        otherwise("Hypernatremia"),
    ),
)

CORRECTED_SODIUM_SEVERITY = RangeTable(
    "corrected_sodium_severity",
    (
        below(120, "Hyponatremia", "Severe"),
        below(130, "Hyponatremia", "Moderate"),
        below(135, "Hyponatremia", "Mild"),
        at_most(145, "Normal"),
        otherwise("Hypernatremia"),
    ),
)

HYPERNATREMIA_SEVERITY = RangeTable(
    "hypernatremia_severity",
    (
        below(135, "Hyponatremia"),
        at_most(145, "Normal"),
        at_most(155, "Hypernatremia", "Mild"),
        at_most(160, "Hypernatremia", "Moderate"),
        otherwise("Hypernatremia", "Severe"),
    ),
)

CALCIUM_STATUS = RangeTable(
    "calcium_status",
    (
        below(7.0, "Hypocalcemia", "Severe"),
        below(8.0, "Hypocalcemia", "Moderate"),
        below(8.5, "Hypocalcemia", "Mild"),
        at_most(10.5, "Normal"),
        at_most(12.0, "Hypercalcemia", "Mild"),
        at_most(13.0, "Hypercalcemia", "Moderate"),
        otherwise("Hypercalcemia", "Severe"),
    ),
)

ANION_GAP_STATUS = RangeTable(
    "anion_gap_status",
    (
        below(8, "Low"),
        at_most(12, "Normal"),
        otherwise("Elevated"),
    ),
)

DELTA_DELTA_STATUS = RangeTable(
    "delta_delta_status",
    (
        below(1, "HAGMA and NAGMA", "Concurrent normal anion gap acidosis"),
        at_most(2, "Pure HAGMA", "Uncomplicated high anion gap acidosis"),
        otherwise("HAGMA and metabolic alkalosis", "Concurrent metabolic alkalosis"),
    ),
)

BICARBONATE_STATUS = RangeTable(
    "bicarbonate_status",
    (
        below(15, "Low (Acidosis)", "Severe"),
        below(18, "Low (Acidosis)", "Moderate"),
        below(22, "Low (Acidosis)", "Mild"),
        at_most(26, "Normal"),
        otherwise("High (Alkalosis)"),
    ),
)

EFWC_STATUS = RangeTable(
    "efwc_status",
    (
        above(0, "Positive", "Urine raises serum sodium"),
        below(0, "Negative", "Urine lowers serum sodium"),
        otherwise("Zero", "No effect on serum sodium"),
    ),
)

SERUM_OSMOLALITY_STATUS = RangeTable(
    "serum_osmolality_status",
    (
        below(275, "Low"),
        at_most(295, "Normal"),
        otherwise("High"),
    ),
)

OSMOLAL_GAP_STATUS = RangeTable(
    "osmolal_gap_status",
    (
        below(10, "Normal"),
        below(15, "Borderline"),
        otherwise("Elevated", "Unmeasured osmoles likely"),
    ),
)

URINE_ANION_GAP_STATUS = RangeTable(
    "urine_anion_gap_status",
    (
        below(0, "Negative", "GI bicarbonate loss likely"),
        at_most(10, "Borderline"),
        otherwise("Positive", "Renal tubular acidosis likely"),
    ),
)

URINE_OSMOLAL_GAP_STATUS = RangeTable(
    "urine_osmolal_gap_status",
    (
        above(150, "Adequate", "Appropriate renal ammonium excretion"),
        at_least(100, "Borderline"),
        otherwise("Low", "Impaired renal ammonium excretion"),
    ),
)

AMMONIUM_STATUS = RangeTable(
    "ammonium_status",
    (
        above(75, "Adequate"),
        at_least(50, "Borderline"),
        otherwise("Low"),
    ),
)

# Sodium bicarbonate preparations: (output suffix, label, mEq per 50 mL ampule)
BICARBONATE_AMPULES = (
    ("8_4", "8.4% (1 mEq/mL)", 50.0),
    ("7_5", "7.5% (0.892 mEq/mL)", 44.6),
)
AMPULE_VOLUME_ML = 50.0

TBW_FRACTIONS = {
    (Sex.MALE, AgeGroup.ADULT): 0.6,
    (Sex.FEMALE, AgeGroup.ADULT): 0.5,
    (Sex.MALE, AgeGroup.ELDERLY): 0.5,
    (Sex.FEMALE, AgeGroup.ELDERLY): 0.45,
}


def total_body_water(weight_kg: float, sex: Sex, age_group: AgeGroup) -> float:
    """Estimate total body water in litres from weight and demographics."""
    return TBW_FRACTIONS[(sex, age_group)] * weight_kg


# ============================================================================
# GFR
# ============================================================================

def _egfr_creatinine(creatinine: float, age: float, sex: Sex) -> float:
    kappa = 0.7 if sex == Sex.FEMALE else 0.9
    alpha = -0.241 if creatinine <= kappa else -1.200
    sex_term = 1.012 if sex == Sex.FEMALE else 1.0
    return 142 * (creatinine / kappa) ** alpha * 0.9938 ** age * sex_term


def _egfr_cystatin(cystatin_c: float, age: float, sex: Sex) -> float:
    alpha = -0.499 if cystatin_c <= 0.8 else -1.328
    sex_term = 0.932 if sex == Sex.FEMALE else 1.0
    return 133 * (cystatin_c / 0.8) ** alpha * 0.996 ** age * sex_term


def calculate_ckd_epi_creatinine(creatinine: float, age: float, sex: Sex) -> EvaluationResult:
    """Calculate eGFR using the 2021 race-free CKD-EPI creatinine equation.

    Args:
        creatinine: Serum creatinine in mg/dL.
        age: Patient age in years.
        sex: Biological sex.

    Returns:
        EvaluationResult with eGFR classified by CKD stage.
    """
    egfr = _egfr_creatinine(creatinine, age, sex)
    return EvaluationResult(
        formula_id="ckd_epi_creatinine",
        outputs=(output("egfr", "eGFR", egfr, EGFR_UNIT, CKD_STAGE),),
    )


def calculate_ckd_epi_cystatin(cystatin_c: float, age: float, sex: Sex) -> EvaluationResult:
    """Calculate eGFR using the 2021 CKD-EPI cystatin C equation."""
    egfr = _egfr_cystatin(cystatin_c, age, sex)
    return EvaluationResult(
        formula_id="ckd_epi_cystatin",
        outputs=(output("egfr", "eGFR", egfr, EGFR_UNIT, CKD_STAGE),),
    )


def calculate_ckd_epi_combined(
    creatinine: float,
    cystatin_c: float,
    age: float,
    sex: Sex,
) -> EvaluationResult:
    """Calculate eGFR using the 2021 CKD-EPI creatinine-cystatin C equation.

    The single-marker estimates are reported alongside for comparison.
    """
    kappa = 0.7 if sex == Sex.FEMALE else 0.9
    alpha_cr = -0.219 if creatinine <= kappa else -0.544
    alpha_cys = -0.323 if cystatin_c <= 0.8 else -0.778
    sex_term = 0.963 if sex == Sex.FEMALE else 1.0

    egfr = (
        135
        * (creatinine / kappa) ** alpha_cr
        * (cystatin_c / 0.8) ** alpha_cys
        * 0.9961 ** age
        * sex_term
    )

    return EvaluationResult(
        formula_id="ckd_epi_combined",
        outputs=(
            output("egfr", "eGFR (combined)", egfr, EGFR_UNIT, CKD_STAGE),
            output(
                "egfr_creatinine",
                "eGFR (creatinine only)",
                _egfr_creatinine(creatinine, age, sex),
                EGFR_UNIT,
                CKD_STAGE,
            ),
            output(
                "egfr_cystatin",
                "eGFR (cystatin C only)",
                _egfr_cystatin(cystatin_c, age, sex),
                EGFR_UNIT,
                CKD_STAGE,
            ),
        ),
        notes=("Combined equation is preferred when creatinine-based eGFR is less accurate",),
    )


# ============================================================================
# Electrolytes
# ============================================================================

def calculate_glucose_correction(
    sodium: float,
    glucose: float,
    correction_factor: float = 0.016,
) -> EvaluationResult:
    """Correct serum sodium for hyperglycemia.

    Args:
        sodium: Measured serum sodium in mEq/L.
        glucose: Serum glucose in mg/dL.
        correction_factor: 0.016 (Katz) or 0.024 (Hillier) per mg/dL above 100.

    Returns:
        EvaluationResult with measured and corrected sodium.
    """
    excess = glucose - 100
    corrected = sodium + correction_factor * excess

    outputs = [
        output("measured_sodium", "Measured sodium", sodium, MEQ_L, SODIUM_STATUS),
        output("corrected_sodium", "Corrected sodium", corrected, MEQ_L, CORRECTED_SODIUM_SEVERITY),
    ]
    notes: list[str] = []
    if glucose > 100:
        outputs.append(
            output("corrected_sodium_1_6", "Corrected sodium (1.6 factor)", sodium + 0.016 * excess, MEQ_L)
        )
        outputs.append(
            output("corrected_sodium_2_4", "Corrected sodium (2.4 factor)", sodium + 0.024 * excess, MEQ_L)
        )
        notes.append(
            f"Glucose is {excess:.0f} mg/dL above 100: sodium falls about 1.6 mEq/L (Katz) "
            "or 2.4 mEq/L (Hillier) per 100 mg/dL as water shifts out of cells"
        )

    return EvaluationResult(
        formula_id="glucose_correction",
        outputs=tuple(outputs),
        notes=tuple(notes),
    )


def calculate_adrogue_madias(
    serum_sodium: float,
    infusate_sodium: float,
    weight: float,
    volume: float,
    sex: Sex,
    age_group: AgeGroup,
) -> EvaluationResult:
    """Predict the change in serum sodium from an infusate.

    Args:
        serum_sodium: Current serum sodium in mEq/L.
        infusate_sodium: Infusate sodium concentration in mEq/L.
        weight: Body weight in kg.
        volume: Infused volume in litres.
        sex: Biological sex.
        age_group: Adult or elderly.

    Returns:
        EvaluationResult with predicted change and resulting sodium.
    """
    if volume <= 0:
        raise DomainViolationError("must be greater than 0", field="volume")

    tbw = total_body_water(weight, sex, age_group)
    change = (infusate_sodium - serum_sodium) * volume / (tbw + 1)
    predicted = serum_sodium + change

    if change > 0:
        direction = f"Serum sodium expected to rise by {change:.1f} mEq/L"
    elif change < 0:
        direction = f"Serum sodium expected to fall by {abs(change):.1f} mEq/L"
    else:
        direction = "No change in serum sodium expected"

    notes = [direction]
    if abs(change) > 8:
        notes.append("Caution: correction exceeds 8 mEq/L per day; risk of osmotic demyelination")

    return EvaluationResult(
        formula_id="adrogue_madias",
        outputs=(
            output("total_body_water", "Total body water", tbw, "L"),
            output("sodium_change", "Change in serum sodium", change, MEQ_L),
            output("predicted_sodium", "Predicted serum sodium", predicted, MEQ_L, SODIUM_STATUS),
        ),
        notes=tuple(notes),
    )


def calculate_free_water_deficit(
    current_sodium: float,
    weight: float,
    sex: Sex,
    age_group: AgeGroup,
    desired_sodium: float = 140,
) -> EvaluationResult:
    """Calculate the free water deficit in hypernatremia.

    Raises:
        DomainViolationError: If current sodium does not exceed desired sodium.
    """
    if current_sodium <= desired_sodium:
        raise DomainViolationError("current sodium must exceed desired sodium")

    tbw = total_body_water(weight, sex, age_group)
    deficit = tbw * (current_sodium - desired_sodium) / desired_sodium
    replace_24h = deficit * 0.5

    return EvaluationResult(
        formula_id="free_water_deficit",
        outputs=(
            output("free_water_deficit", "Free water deficit", deficit, "L"),
            output("total_body_water", "Total body water", tbw, "L"),
            output("current_sodium", "Current sodium", current_sodium, MEQ_L, HYPERNATREMIA_SEVERITY),
            output("deficit_percent", "Deficit as % of TBW", deficit / tbw * 100, "%"),
            output("replace_24h", "Replace in first 24 h (50%)", replace_24h, "L"),
            output("rate_24h", "Rate over first 24 h", replace_24h * 1000 / 24, "mL/hr"),
            output("replace_48h", "Replace over 48 h (100%)", deficit, "L"),
            output("rate_48h", "Rate over 48 h", deficit * 1000 / 48, "mL/hr"),
        ),
        notes=(
            "Do not lower serum sodium by more than 10 mEq/L in 24 hours",
            "Account for ongoing free water losses",
        ),
    )


def calculate_efwc(
    urine_sodium: float,
    urine_potassium: float,
    serum_sodium: float,
    urine_volume: float,
) -> EvaluationResult:
    """Calculate electrolyte-free water clearance.

    Args:
        urine_sodium: Urine sodium in mEq/L.
        urine_potassium: Urine potassium in mEq/L.
        serum_sodium: Serum sodium in mEq/L.
        urine_volume: Urine volume in L/day.

    Returns:
        EvaluationResult with EFWC per day and per hour.
    """
    if serum_sodium <= 0:
        raise DomainViolationError("must be greater than 0", field="serum_sodium")

    ratio = (urine_sodium + urine_potassium) / serum_sodium
    efwc = urine_volume * (1 - ratio)

    if ratio < 1:
        note = "Ratio < 1: dilute urine, free water is excreted and serum sodium rises"
    elif ratio > 1:
        note = "Ratio > 1: concentrated urine, free water is retained and serum sodium falls"
    else:
        note = "Ratio = 1: urine output does not change serum sodium"

    return EvaluationResult(
        formula_id="efwc",
        outputs=(
            output("efwc", "Electrolyte-free water clearance", efwc, "L/day", EFWC_STATUS),
            output("efwc_per_hour", "EFWC (per hour)", efwc * 1000 / 24, "mL/hr"),
            output("electrolyte_ratio", "(U_Na + U_K) / S_Na", ratio),
        ),
        notes=(note,),
    )


def calculate_serum_osmolality(
    sodium: float,
    glucose: float,
    bun: float,
    measured_osmolality: float | None = None,
) -> EvaluationResult:
    """Calculate serum osmolality and, when measured is given, the osmolal gap."""
    sodium_part = 2 * sodium
    glucose_part = glucose / 18
    bun_part = bun / 2.8
    calculated = sodium_part + glucose_part + bun_part

    outputs = [
        output("calculated_osmolality", "Calculated osmolality", calculated, MOSM_KG, SERUM_OSMOLALITY_STATUS),
        output("sodium_component", "2 × Na", sodium_part, MOSM_KG),
        output("glucose_component", "Glucose / 18", glucose_part, MOSM_KG),
        output("bun_component", "BUN / 2.8", bun_part, MOSM_KG),
    ]
    notes: list[str] = []
    if measured_osmolality is not None:
        gap = measured_osmolality - calculated
        outputs.append(output("osmolal_gap", "Osmolal gap", gap, MOSM_KG, OSMOLAL_GAP_STATUS))
        if gap >= 10:
            notes.append("Elevated gap suggests unmeasured osmoles (toxic alcohols, ethanol, mannitol)")
        else:
            notes.append("Normal osmolal gap is below 10 mOsm/kg")

    return EvaluationResult(
        formula_id="serum_osmolality",
        outputs=tuple(outputs),
        notes=tuple(notes),
    )


# ============================================================================
# Bone & Mineral
# ============================================================================

def calculate_corrected_calcium(calcium: float, albumin: float) -> EvaluationResult:
    """Correct total serum calcium for hypoalbuminemia (Payne)."""
    correction = 0.8 * (4.0 - albumin)
    corrected = calcium + correction

    return EvaluationResult(
        formula_id="corrected_calcium",
        outputs=(
            output("total_calcium", "Total calcium", calcium, MG_DL),
            output("corrected_calcium", "Corrected calcium", corrected, MG_DL, CALCIUM_STATUS),
            output("correction", "Correction", correction, MG_DL),
        ),
        notes=("Ionized calcium is preferred when accurate assessment is needed",),
    )


# ============================================================================
# Acid-Base
# ============================================================================

def calculate_anion_gap(
    sodium: float,
    chloride: float,
    bicarbonate: float,
    albumin: float | None = None,
) -> EvaluationResult:
    """Calculate the serum anion gap with optional albumin correction.

    The delta-delta ratio uses the albumin-corrected gap when available. It is
    reported as a violation, not an error, when the gap is not elevated or
    bicarbonate equals 24.
    """
    anion_gap = sodium - (chloride + bicarbonate)
    outputs = [output("anion_gap", "Anion gap", anion_gap, MEQ_L, ANION_GAP_STATUS)]

    effective_gap = anion_gap
    if albumin is not None:
        effective_gap = anion_gap + 2.5 * (4.0 - albumin)
        outputs.append(
            output("corrected_anion_gap", "Albumin-corrected anion gap", effective_gap, MEQ_L, ANION_GAP_STATUS)
        )

    violations: list[EvalError] = []
    if effective_gap <= 12:
        violations.append(
            EvalError.domain_violation("anion gap must exceed 12 for delta-delta", field="delta_delta")
        )
    elif bicarbonate == 24:
        violations.append(
            EvalError.domain_violation("bicarbonate equals 24, delta-delta denominator is zero", field="delta_delta")
        )
    else:
        delta_delta = (effective_gap - 12) / (24 - bicarbonate)
        outputs.append(output("delta_delta", "Delta-delta ratio", delta_delta, "", DELTA_DELTA_STATUS))

    return EvaluationResult(
        formula_id="anion_gap",
        outputs=tuple(outputs),
        violations=tuple(violations),
    )


def calculate_bicarbonate_deficit(
    current_bicarbonate: float,
    weight: float,
    desired_bicarbonate: float = 24,
) -> EvaluationResult:
    """Calculate the bicarbonate deficit and ampule requirement.

    Raises:
        DomainViolationError: If current bicarbonate is not below desired.
    """
    if current_bicarbonate >= desired_bicarbonate:
        raise DomainViolationError("current bicarbonate must be less than desired bicarbonate")

    distribution_volume = 0.5 * weight
    change_needed = desired_bicarbonate - current_bicarbonate
    deficit = change_needed * distribution_volume

    outputs = [
        output("bicarbonate_deficit", "Bicarbonate deficit", deficit, "mEq"),
        output("distribution_volume", "Distribution volume", distribution_volume, "L"),
        output("change_needed", "Change needed", change_needed, MEQ_L),
        output("current_bicarbonate", "Current bicarbonate", current_bicarbonate, MEQ_L, BICARBONATE_STATUS),
    ]
    notes: list[str] = []
    for suffix, label, meq_per_ampule in BICARBONATE_AMPULES:
        ampules = deficit / meq_per_ampule
        outputs.append(output(f"ampules_{suffix}", f"{label} ampules", ampules))
        outputs.append(output(f"volume_{suffix}", f"{label} total volume", ampules * AMPULE_VOLUME_ML, "mL"))
        if ampules > 1:
            notes.append(f"{label}: consider administering in divided doses")
    notes.append("Give half of the deficit initially and reassess with repeat blood gas")

    return EvaluationResult(
        formula_id="bicarbonate_deficit",
        outputs=tuple(outputs),
        notes=tuple(notes),
    )


def calculate_urine_anion_gap(
    urine_sodium: float,
    urine_potassium: float,
    urine_chloride: float,
) -> EvaluationResult:
    """Calculate the urine anion gap for normal anion gap acidosis."""
    gap = urine_sodium + urine_potassium - urine_chloride
    return EvaluationResult(
        formula_id="urine_anion_gap",
        outputs=(output("urine_anion_gap", "Urine anion gap", gap, MEQ_L, URINE_ANION_GAP_STATUS),),
        notes=("Unreliable when urine contains unmeasured anions (ketoacids, hippurate, D-lactate)",),
    )


def calculate_urine_osmolal_gap(
    urine_sodium: float,
    urine_potassium: float,
    urine_urea_nitrogen: float,
    urine_glucose: float,
    measured_urine_osmolality: float,
) -> EvaluationResult:
    """Calculate the urine osmolal gap and estimate urine ammonium."""
    calculated = 2 * (urine_sodium + urine_potassium) + urine_urea_nitrogen / 2.8 + urine_glucose / 18
    gap = measured_urine_osmolality - calculated
    ammonium = gap / 2

    return EvaluationResult(
        formula_id="urine_osmolal_gap",
        outputs=(
            output("calculated_urine_osmolality", "Calculated urine osmolality", calculated, MOSM_KG),
            output("urine_osmolal_gap", "Urine osmolal gap", gap, MOSM_KG, URINE_OSMOLAL_GAP_STATUS),
            output("estimated_ammonium", "Estimated urine NH₄⁺", ammonium, MEQ_L, AMMONIUM_STATUS),
        ),
        notes=("Estimated ammonium is about half the urine osmolal gap",),
    )

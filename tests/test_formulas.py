"""Tests for nephrology formula bodies.

Formula functions take parsed values and raise DomainViolationError for
violated preconditions.
"""

import pytest

from kidneycalc.schemas.base import AgeGroup, EvalErrorKind, Sex
from kidneycalc.services.formulas import (
    calculate_adrogue_madias,
    calculate_anion_gap,
    calculate_bicarbonate_deficit,
    calculate_ckd_epi_combined,
    calculate_ckd_epi_creatinine,
    calculate_ckd_epi_cystatin,
    calculate_corrected_calcium,
    calculate_efwc,
    calculate_free_water_deficit,
    calculate_glucose_correction,
    calculate_serum_osmolality,
    calculate_urine_anion_gap,
    calculate_urine_osmolal_gap,
    total_body_water,
)
from kidneycalc.services.models import DomainViolationError


# ============================================================================
# GFR
# ============================================================================


class TestCkdEpi:
    """Test CKD-EPI 2021 equations."""

    def test_creatinine_male_above_kappa(self):
        # Scr 1.0 > κ 0.9, so α = -1.200
        result = calculate_ckd_epi_creatinine(1.0, 50, Sex.MALE)
        assert result.value("egfr") == pytest.approx(91.7, abs=0.1)
        assert result.label("egfr") == "Stage 1"

    def test_creatinine_female_at_kappa(self):
        result = calculate_ckd_epi_creatinine(0.7, 50, Sex.FEMALE)
        assert result.value("egfr") == pytest.approx(142 * 0.9938 ** 50 * 1.012)

    def test_creatinine_below_kappa_uses_shallow_exponent(self):
        result = calculate_ckd_epi_creatinine(0.6, 40, Sex.MALE)
        expected = 142 * (0.6 / 0.9) ** -0.241 * 0.9938 ** 40
        assert result.value("egfr") == pytest.approx(expected)

    def test_creatinine_high_value_stage_4(self):
        result = calculate_ckd_epi_creatinine(3.0, 70, Sex.MALE)
        assert result.label("egfr") == "Stage 4"
        assert result["egfr"].classification.detail == "Severely decreased"

    def test_cystatin(self):
        result = calculate_ckd_epi_cystatin(0.8, 50, Sex.MALE)
        assert result.value("egfr") == pytest.approx(133 * 0.996 ** 50)

    def test_cystatin_female_factor(self):
        male = calculate_ckd_epi_cystatin(1.2, 60, Sex.MALE).value("egfr")
        female = calculate_ckd_epi_cystatin(1.2, 60, Sex.FEMALE).value("egfr")
        assert female == pytest.approx(male * 0.932)

    def test_combined_reports_single_marker_estimates(self):
        result = calculate_ckd_epi_combined(1.0, 1.0, 50, Sex.FEMALE)
        assert result.value("egfr_creatinine") == pytest.approx(
            calculate_ckd_epi_creatinine(1.0, 50, Sex.FEMALE).value("egfr")
        )
        assert result.value("egfr_cystatin") == pytest.approx(
            calculate_ckd_epi_cystatin(1.0, 50, Sex.FEMALE).value("egfr")
        )

    def test_combined_value(self):
        result = calculate_ckd_epi_combined(1.0, 1.0, 50, Sex.MALE)
        expected = 135 * (1.0 / 0.9) ** -0.544 * (1.0 / 0.8) ** -0.778 * 0.9961 ** 50
        assert result.value("egfr") == pytest.approx(expected)


# ============================================================================
# Electrolytes
# ============================================================================


class TestGlucoseCorrection:
    """Test sodium correction for hyperglycemia."""

    def test_katz_factor(self):
        result = calculate_glucose_correction(130, 300, 0.016)
        assert result.value("corrected_sodium") == pytest.approx(133.2)

    def test_hillier_factor(self):
        result = calculate_glucose_correction(130, 300, 0.024)
        assert result.value("corrected_sodium") == pytest.approx(134.8)

    def test_factors_give_different_results(self):
        katz = calculate_glucose_correction(130, 300, 0.016).value("corrected_sodium")
        hillier = calculate_glucose_correction(130, 300, 0.024).value("corrected_sodium")
        assert katz != hillier

    def test_severity_label(self):
        result = calculate_glucose_correction(118, 150, 0.016)
        assert str(result["corrected_sodium"].classification) == "Hyponatremia (Severe)"

    def test_alternatives_reported_when_hyperglycemic(self):
        result = calculate_glucose_correction(130, 300)
        assert result.value("corrected_sodium_1_6") == pytest.approx(133.2)
        assert result.value("corrected_sodium_2_4") == pytest.approx(134.8)
        assert len(result.notes) == 1

    def test_no_alternatives_when_glucose_normal(self):
        result = calculate_glucose_correction(130, 90)
        assert not result.has_output("corrected_sodium_1_6")
        assert result.value("corrected_sodium") == pytest.approx(129.84)
        assert result.notes == ()


class TestTotalBodyWater:
    """Test TBW fractions."""

    @pytest.mark.parametrize(
        "sex,age_group,fraction",
        [
            (Sex.MALE, AgeGroup.ADULT, 0.6),
            (Sex.FEMALE, AgeGroup.ADULT, 0.5),
            (Sex.MALE, AgeGroup.ELDERLY, 0.5),
            (Sex.FEMALE, AgeGroup.ELDERLY, 0.45),
        ],
    )
    def test_fractions(self, sex, age_group, fraction):
        assert total_body_water(80, sex, age_group) == pytest.approx(80 * fraction)


class TestAdrogueMadias:
    """Test infusate sodium prediction."""

    def test_hypertonic_saline(self):
        result = calculate_adrogue_madias(120, 513, 70, 1.0, Sex.MALE, AgeGroup.ADULT)
        assert result.value("total_body_water") == pytest.approx(42)
        assert result.value("sodium_change") == pytest.approx(393 / 43)
        assert result.value("predicted_sodium") == pytest.approx(120 + 393 / 43)
        assert result.label("predicted_sodium") == "Hyponatremia"

    def test_rapid_correction_caution(self):
        result = calculate_adrogue_madias(120, 513, 70, 1.0, Sex.MALE, AgeGroup.ADULT)
        assert any("8 mEq/L" in note for note in result.notes)

    def test_d5w_lowers_sodium(self):
        result = calculate_adrogue_madias(150, 0, 60, 1.0, Sex.FEMALE, AgeGroup.ELDERLY)
        assert result.value("sodium_change") < 0
        assert "fall" in result.notes[0]

    def test_zero_volume_is_domain_violation(self):
        with pytest.raises(DomainViolationError) as exc_info:
            calculate_adrogue_madias(140, 154, 70, 0, Sex.MALE, AgeGroup.ADULT)
        assert exc_info.value.field == "volume"


class TestFreeWaterDeficit:
    """Test free water deficit."""

    def test_deficit(self):
        result = calculate_free_water_deficit(160, 70, Sex.MALE, AgeGroup.ADULT)
        assert result.value("free_water_deficit") == pytest.approx(6.0)
        assert result.value("deficit_percent") == pytest.approx(20 / 140 * 100)

    def test_correction_schedule(self):
        result = calculate_free_water_deficit(160, 70, Sex.MALE, AgeGroup.ADULT)
        assert result.value("replace_24h") == pytest.approx(3.0)
        assert result.value("rate_24h") == pytest.approx(125.0)
        assert result.value("replace_48h") == pytest.approx(6.0)
        assert result.value("rate_48h") == pytest.approx(125.0)

    def test_severity(self):
        result = calculate_free_water_deficit(160, 70, Sex.MALE, AgeGroup.ADULT)
        assert str(result["current_sodium"].classification) == "Hypernatremia (Moderate)"

    def test_custom_desired_sodium(self):
        result = calculate_free_water_deficit(160, 70, Sex.MALE, AgeGroup.ADULT, desired_sodium=150)
        assert result.value("free_water_deficit") == pytest.approx(42 * 10 / 150)

    def test_current_below_desired_is_domain_violation(self):
        with pytest.raises(DomainViolationError, match="current sodium must exceed desired sodium"):
            calculate_free_water_deficit(135, 70, Sex.MALE, AgeGroup.ADULT)

    def test_current_equal_desired_is_domain_violation(self):
        with pytest.raises(DomainViolationError):
            calculate_free_water_deficit(140, 70, Sex.MALE, AgeGroup.ADULT)


class TestEfwc:
    """Test electrolyte-free water clearance."""

    def test_positive(self):
        result = calculate_efwc(50, 20, 140, 2.0)
        assert result.value("electrolyte_ratio") == pytest.approx(0.5)
        assert result.value("efwc") == pytest.approx(1.0)
        assert result.value("efwc_per_hour") == pytest.approx(1000 / 24)
        assert result.label("efwc") == "Positive"

    def test_negative(self):
        result = calculate_efwc(120, 40, 130, 1.5)
        assert result.value("efwc") < 0
        assert result.label("efwc") == "Negative"

    def test_zero(self):
        result = calculate_efwc(100, 40, 140, 2.0)
        assert result.label("efwc") == "Zero"

    def test_zero_serum_sodium_is_domain_violation(self):
        with pytest.raises(DomainViolationError):
            calculate_efwc(50, 20, 0, 2.0)


class TestSerumOsmolality:
    """Test serum osmolality and osmolal gap."""

    def test_calculated(self):
        result = calculate_serum_osmolality(140, 90, 14)
        assert result.value("calculated_osmolality") == pytest.approx(290)
        assert result.label("calculated_osmolality") == "Normal"
        assert result.value("glucose_component") == pytest.approx(5)
        assert not result.has_output("osmolal_gap")

    def test_gap(self):
        result = calculate_serum_osmolality(140, 90, 14, measured_osmolality=310)
        assert result.value("osmolal_gap") == pytest.approx(20)
        assert result.label("osmolal_gap") == "Elevated"

    def test_borderline_gap(self):
        result = calculate_serum_osmolality(140, 90, 14, measured_osmolality=302)
        assert result.label("osmolal_gap") == "Borderline"


# ============================================================================
# Bone & Mineral
# ============================================================================


class TestCorrectedCalcium:
    """Test albumin-corrected calcium."""

    def test_correction(self):
        result = calculate_corrected_calcium(7.6, 2.0)
        assert result.value("corrected_calcium") == pytest.approx(9.2)
        assert result.value("correction") == pytest.approx(1.6)
        assert result.label("corrected_calcium") == "Normal"

    def test_normal_albumin_no_correction(self):
        result = calculate_corrected_calcium(9.0, 4.0)
        assert result.value("corrected_calcium") == pytest.approx(9.0)

    @pytest.mark.parametrize(
        "calcium,expected",
        [
            (6.5, "Hypocalcemia (Severe)"),
            (7.5, "Hypocalcemia (Moderate)"),
            (8.2, "Hypocalcemia (Mild)"),
            (10.5, "Normal"),
            (11.5, "Hypercalcemia (Mild)"),
            (12.5, "Hypercalcemia (Moderate)"),
            (14.0, "Hypercalcemia (Severe)"),
        ],
    )
    def test_severity(self, calcium, expected):
        result = calculate_corrected_calcium(calcium, 4.0)
        assert str(result["corrected_calcium"].classification) == expected


# ============================================================================
# Acid-Base
# ============================================================================


class TestAnionGap:
    """Test anion gap and delta-delta."""

    def test_elevated_gap_with_zero_denominator(self):
        result = calculate_anion_gap(140, 100, 24)
        assert result.value("anion_gap") == pytest.approx(16)
        assert result.label("anion_gap") == "Elevated"
        assert not result.has_output("delta_delta")
        assert len(result.violations) == 1
        violation = result.violations[0]
        assert violation.kind == EvalErrorKind.DOMAIN_VIOLATION
        assert violation.field == "delta_delta"
        assert "denominator" in violation.reason

    def test_normal_gap_suppresses_delta_delta(self):
        result = calculate_anion_gap(140, 110, 20)
        assert result.label("anion_gap") == "Normal"
        assert result.violations[0].field == "delta_delta"
        assert "exceed 12" in result.violations[0].reason

    def test_low_gap(self):
        result = calculate_anion_gap(135, 110, 20)
        assert result.label("anion_gap") == "Low"

    def test_pure_hagma(self):
        result = calculate_anion_gap(140, 100, 14)
        assert result.value("delta_delta") == pytest.approx(1.4)
        assert result.label("delta_delta") == "Pure HAGMA"
        assert result.violations == ()

    def test_albumin_corrected_gap_feeds_delta_delta(self):
        result = calculate_anion_gap(140, 104, 20, albumin=2.0)
        assert result.value("corrected_anion_gap") == pytest.approx(21)
        assert result.value("delta_delta") == pytest.approx(2.25)
        assert result.label("delta_delta") == "HAGMA and metabolic alkalosis"

    def test_concurrent_nagma(self):
        result = calculate_anion_gap(140, 110, 10)
        assert result.value("delta_delta") == pytest.approx(8 / 14)
        assert result.label("delta_delta") == "HAGMA and NAGMA"


class TestBicarbonateDeficit:
    """Test bicarbonate deficit."""

    def test_deficit(self):
        result = calculate_bicarbonate_deficit(12, 70)
        assert result.value("distribution_volume") == pytest.approx(35)
        assert result.value("change_needed") == pytest.approx(12)
        assert result.value("bicarbonate_deficit") == pytest.approx(420)
        assert str(result["current_bicarbonate"].classification) == "Low (Acidosis) (Severe)"

    def test_ampules(self):
        result = calculate_bicarbonate_deficit(12, 70)
        assert result.value("ampules_8_4") == pytest.approx(8.4)
        assert result.value("volume_8_4") == pytest.approx(420)
        assert result.value("ampules_7_5") == pytest.approx(420 / 44.6)
        assert any("divided doses" in note for note in result.notes)

    def test_single_ampule_no_divided_dose_note(self):
        result = calculate_bicarbonate_deficit(22, 40)
        assert result.value("bicarbonate_deficit") == pytest.approx(40)
        assert not any("divided doses" in note for note in result.notes)

    def test_current_not_below_desired_is_domain_violation(self):
        with pytest.raises(DomainViolationError):
            calculate_bicarbonate_deficit(24, 70)


class TestUrineAnionGap:
    """Test urine anion gap."""

    def test_negative(self):
        result = calculate_urine_anion_gap(40, 30, 90)
        assert result.value("urine_anion_gap") == pytest.approx(-20)
        assert str(result["urine_anion_gap"].classification) == "Negative (GI bicarbonate loss likely)"

    def test_borderline(self):
        assert calculate_urine_anion_gap(50, 30, 75).label("urine_anion_gap") == "Borderline"

    def test_positive(self):
        assert calculate_urine_anion_gap(50, 30, 60).label("urine_anion_gap") == "Positive"


class TestUrineOsmolalGap:
    """Test urine osmolal gap."""

    def test_gap_and_ammonium(self):
        result = calculate_urine_osmolal_gap(50, 30, 280, 18, 500)
        assert result.value("calculated_urine_osmolality") == pytest.approx(261)
        assert result.value("urine_osmolal_gap") == pytest.approx(239)
        assert result.value("estimated_ammonium") == pytest.approx(119.5)
        assert result.label("urine_osmolal_gap") == "Adequate"

    def test_low_gap(self):
        result = calculate_urine_osmolal_gap(50, 30, 280, 18, 300)
        assert result.label("urine_osmolal_gap") == "Low"
        assert result.label("estimated_ammonium") == "Low"

"""Tests for ordered threshold classification."""

from kidneycalc.services.classification import (
    Classification,
    RangeTable,
    above,
    at_least,
    at_most,
    below,
    otherwise,
)
from kidneycalc.services.formulas import CKD_STAGE, DELTA_DELTA_STATUS, SODIUM_STATUS


class TestRangeRules:
    """Test individual rule helpers."""

    def test_below_is_exclusive(self):
        rule = below(135, "Low")
        assert rule.matches(134.9)
        assert not rule.matches(135)

    def test_at_most_is_inclusive(self):
        rule = at_most(145, "Normal")
        assert rule.matches(145)
        assert not rule.matches(145.1)

    def test_above_and_at_least(self):
        assert above(0, "Positive").matches(0.1)
        assert not above(0, "Positive").matches(0)
        assert at_least(90, "Stage 1").matches(90)

    def test_otherwise_matches_everything(self):
        assert otherwise("Any").matches(-1e9)

    def test_descriptions(self):
        assert below(135, "x").description == "< 135"
        assert at_most(10.5, "x").description == "≤ 10.5"
        assert above(0, "x").description == "> 0"
        assert at_least(90, "x").description == "≥ 90"
        assert otherwise("x").description == "any"


class TestRangeTable:
    """Test first-match classification."""

    def test_first_match_wins(self):
        # Overlapping rules: order decides
        table = RangeTable("t", (below(10, "A"), below(20, "B"), otherwise("C")))
        assert table.classify(5).label == "A"
        assert table.classify(15).label == "B"
        assert table.classify(25).label == "C"

    def test_order_matters(self):
        table = RangeTable("t", (below(20, "B"), below(10, "A")))
        assert table.classify(5).label == "B"

    def test_no_match_returns_none(self):
        table = RangeTable("t", (below(0, "Negative"),))
        assert table.classify(1) is None

    def test_sodium_boundaries(self):
        assert SODIUM_STATUS.classify(134.99).label == "Hyponatremia"
        assert SODIUM_STATUS.classify(135).label == "Normal"
        assert SODIUM_STATUS.classify(145).label == "Normal"
        assert SODIUM_STATUS.classify(145.01).label == "Hypernatremia"

    def test_ckd_stage_boundaries(self):
        assert CKD_STAGE.classify(90).label == "Stage 1"
        assert CKD_STAGE.classify(89.9).label == "Stage 2"
        assert CKD_STAGE.classify(45).label == "Stage 3a"
        assert CKD_STAGE.classify(44.9).label == "Stage 3b"
        assert CKD_STAGE.classify(15).label == "Stage 4"
        assert CKD_STAGE.classify(14.9) == Classification("Stage 5", "Kidney failure")

    def test_delta_delta_boundaries(self):
        assert DELTA_DELTA_STATUS.classify(0.99).label == "HAGMA and NAGMA"
        assert DELTA_DELTA_STATUS.classify(1).label == "Pure HAGMA"
        assert DELTA_DELTA_STATUS.classify(2).label == "Pure HAGMA"
        assert DELTA_DELTA_STATUS.classify(2.01).label == "HAGMA and metabolic alkalosis"

    def test_describe(self):
        rules = SODIUM_STATUS.describe()
        assert [r["when"] for r in rules] == ["< 135", "≤ 145", "any"]
        assert rules[0]["label"] == "Hyponatremia"


class TestClassification:
    """Test classification rendering."""

    def test_str_with_detail(self):
        assert str(Classification("Hypocalcemia", "Severe")) == "Hypocalcemia (Severe)"

    def test_str_without_detail(self):
        assert str(Classification("Normal")) == "Normal"

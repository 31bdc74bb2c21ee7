"""Tests for the weight reading parser."""

import pytest

from nutrilabel.models import BoundingBox, DetectedWeight, WeightUnit
from nutrilabel.parsers import WeightReadingParser, correct_decimal_point, is_point_between, is_valid_weight


@pytest.mark.parametrize("raw, expected", [
    (99, 9.9),
    (354, 35.4),
    (3099, 309.9),
    (12345, 1234.5),
    (0, 0.0),
    (0.5, 0.5),
    (700, 70.0),
    (5, 5),
    (354.2, 354.2),
])
def test_decimal_correction_table(raw, expected):
    assert correct_decimal_point(raw) == pytest.approx(expected)


def test_weight_validation_bounds():
    assert not is_valid_weight(0.05)
    assert not is_valid_weight(0.1)
    assert not is_valid_weight(50000)
    assert is_valid_weight(50000 - 1e-6)
    assert is_valid_weight(0.2)


def test_point_between():
    assert is_point_between((0.5, 0.5), (0.1, 0.5), (0.9, 0.5), 0.3)
    assert not is_point_between((0.5, 0.95), (0.1, 0.1), (0.2, 0.1), 0.3)


def test_contextual_scale_reading(scale_fragments):
    """A number between M and PCS is read as a grams weight with a boosted confidence."""
    result = WeightReadingParser().detect(scale_fragments)

    assert len(result.detected_weights) == 1
    weight = result.detected_weights[0]
    assert weight.value == pytest.approx(35.4)
    assert weight.unit == WeightUnit.GRAMS
    assert weight.is_contextual
    assert weight.confidence == pytest.approx(0.8 * 1.2)
    assert "PCS context" in weight.original_text
    assert result.best_weight == weight


def test_contextual_unit_comes_from_nearby_fragment(scale_fragments, fragment):
    fragments = scale_fragments + [fragment("oz", 0.9, cx=0.6, cy=0.55)]

    weight = WeightReadingParser().detect(fragments).best_weight

    assert weight.unit == WeightUnit.OUNCES


@pytest.mark.parametrize("text, value, unit", [
    ("354.2 g", 354.2, WeightUnit.GRAMS),
    ("354:2 g", 354.2, WeightUnit.GRAMS),
    ("3 5 4 2 g", 354.2, WeightUnit.GRAMS),
    ("2.5 kg", 2.5, WeightUnit.KILOGRAMS),
    ("12.5 oz", 12.5, WeightUnit.OUNCES),
])
def test_direct_patterns(fragment, text, value, unit):
    weight = WeightReadingParser().parse_fragment(fragment(text, 0.9))

    assert weight is not None
    assert weight.value == pytest.approx(value)
    assert weight.unit == unit
    assert not weight.is_contextual


def test_direct_confidence_uses_pattern_table(fragment):
    weight = WeightReadingParser().parse_fragment(fragment("354.2 g", 0.9))

    # short decimal text (0.9) plus both range bonuses, clamped at 1.0
    assert weight.confidence == pytest.approx(0.9)


def test_bare_numbers_and_out_of_range_weights_are_ignored(fragment):
    parser = WeightReadingParser()

    assert parser.parse_fragment(fragment("42", 0.9)) is None
    assert parser.parse_fragment(fragment("500 kg", 0.9)) is None
    assert parser.parse_fragment(fragment("Calories", 0.9)) is None


def _weight(value, confidence, contextual=False):
    return DetectedWeight(
        value=value,
        confidence=confidence,
        bounding_box=BoundingBox(x=0.4, y=0.4, width=0.2, height=0.1),
        original_text=str(value),
        is_contextual=contextual,
    )


def test_near_duplicates_collapse():
    ranked = WeightReadingParser().filter_and_rank([_weight(100, 0.9), _weight(103, 0.8)])

    assert len(ranked) == 1
    assert ranked[0].value == 100


def test_contextual_beats_direct_with_lower_confidence():
    ranked = WeightReadingParser().filter_and_rank([_weight(100, 0.9), _weight(100, 0.5, contextual=True)])

    assert len(ranked) == 1
    assert ranked[0].is_contextual


def test_ranking_puts_contextual_first_then_confidence():
    ranked = WeightReadingParser().filter_and_rank([
        _weight(500, 0.95),
        _weight(50, 0.6, contextual=True),
        _weight(900, 0.2),
        _weight(200, 0.7),
    ])

    assert [w.value for w in ranked] == [50, 500, 200]


def test_detect_is_deterministic(scale_fragments, fragment):
    fragments = scale_fragments + [fragment("Net Wt. 454 g", 0.85, cy=0.9)]
    parser = WeightReadingParser()

    assert parser.detect(fragments).detected_weights == parser.detect(fragments).detected_weights


def test_no_fragments():
    result = WeightReadingParser().detect([])

    assert result.detected_weights == []
    assert result.confidence == 0
    assert not result.has_valid_weight

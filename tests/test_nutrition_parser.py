"""Tests for the nutrition fact parser."""

import pytest

from nutrilabel.config import NutritionParserConfig
from nutrilabel.models import NutrientType
from nutrilabel.parsers import NutritionFactParser


def test_label_scenario(label_fragments):
    """Calories, protein and fat resolve with default units and high confidence."""
    parsed = NutritionFactParser().parse(label_fragments)

    assert parsed.calories.value == 250
    assert parsed.calories.unit == "kcal"
    assert parsed.macronutrients.protein.value == 12
    assert parsed.macronutrients.protein.unit == "g"
    assert parsed.macronutrients.fat.value == 5
    assert parsed.macronutrients.fat.unit == "g"
    assert parsed.has_basic_nutrition
    assert parsed.confidence.overall_score > 0.7


def test_empty_input():
    parsed = NutritionFactParser().parse([])

    assert parsed.calories is None
    assert parsed.serving_info is None
    assert parsed.macronutrients.all_values == {}
    assert parsed.micronutrients.all_values == {}
    assert parsed.confidence.overall_score == 0
    assert not parsed.has_basic_nutrition
    assert parsed.summary == "No nutrition data found"


def test_parse_is_deterministic(label_fragments):
    parser = NutritionFactParser()
    assert parser.parse(label_fragments) == parser.parse(label_fragments)


def test_first_match_wins_over_higher_confidence():
    """The earliest calories match is used even though the later one scores higher."""
    text = "Nutrition 120 cal per pack\nCalories: 250 kcal"
    parser = NutritionFactParser()

    calorie_matches = [m for m in parser.find_matches(text) if m.nutrient_type == NutrientType.CALORIES]
    parsed = parser.parse_text(text)

    assert max(calorie_matches, key=lambda m: m.confidence).value == 250
    assert parsed.calories.value == 120


def test_label_and_value_on_different_lines_do_not_pair():
    parsed = NutritionFactParser().parse_text("Protein\n12g")

    assert parsed.macronutrients.protein is None


def test_match_confidence_components():
    parser = NutritionFactParser()

    assert parser._calculate_match_confidence("Protein 12g", NutrientType.PROTEIN) == pytest.approx(1.0)
    assert parser._calculate_match_confidence("Calories 250", NutrientType.CALORIES) == pytest.approx(0.9)
    assert parser._calculate_match_confidence("250 kcal", NutrientType.CALORIES) == pytest.approx(0.8)
    assert parser._calculate_match_confidence("Sodium: 160mg", NutrientType.SODIUM) == pytest.approx(1.0)


def test_micronutrient_units():
    parsed = NutritionFactParser().parse_text("Sodium 160mg\nCholesterol 0mg\nIron 2mg")

    micros = parsed.micronutrients
    assert micros.sodium.value == 160 and micros.sodium.unit == "mg"
    assert micros.cholesterol.value == 0
    assert micros.iron.unit == "mg"
    assert not parsed.has_basic_nutrition


def test_unit_comes_from_token_after_value():
    """Letters inside the nutrient name never count as a unit."""
    parser = NutritionFactParser()

    assert parser.parse_text("Sodium 0.5g").micronutrients.sodium.unit == "g"
    assert parser.parse_text("0.5 g sodium").micronutrients.sodium.unit == "g"
    assert parser.parse_text("Vitamin D 10 µg").micronutrients.vitamin_d.unit == "mcg"


def test_serving_info():
    text = "Nutrition Facts\nServing Size 1 cup (228g)\nServings Per Container 2\nCalories 250"

    parsed = NutritionFactParser().parse_text(text)

    serving = parsed.serving_info
    assert serving.size == 1
    assert serving.unit == "cup"
    assert serving.description == "228g"
    assert serving.servings_per_container == 2
    assert parsed.confidence.format_recognition_score == pytest.approx(0.9)


def test_vitamin_iu_kept_without_normalization():
    parsed = NutritionFactParser().parse_text("Vitamin D 400 IU")

    vitamin_d = parsed.micronutrients.vitamin_d
    assert vitamin_d.value == 400
    assert vitamin_d.unit == "IU"
    assert not vitamin_d.is_estimated


def test_vitamin_iu_normalized_to_mcg():
    parser = NutritionFactParser(NutritionParserConfig(normalize_units=True))

    parsed = parser.parse_text("Vitamin D 400 IU\nVitamin A 1000 IU")

    assert parsed.micronutrients.vitamin_d.value == pytest.approx(10.0)
    assert parsed.micronutrients.vitamin_d.unit == "mcg"
    assert parsed.micronutrients.vitamin_d.is_estimated
    assert parsed.micronutrients.vitamin_a.value == pytest.approx(300.0)


def test_fuzzy_matching_accepts_ocr_confusions():
    parsed = NutritionFactParser().parse_text("Pr0tein 5g")

    assert parsed.macronutrients.protein.value == 5
    assert parsed.macronutrients.protein.confidence == pytest.approx(0.7)


def test_strict_parsing_disables_fuzzy_matching():
    parsed = NutritionFactParser(NutritionParserConfig.strict()).parse_text("Pr0tein 5g")

    assert parsed.macronutrients.protein is None


def test_matches_below_minimum_confidence_are_dropped():
    parser = NutritionFactParser(NutritionParserConfig(minimum_match_confidence=0.95))

    parsed = parser.parse_text("Calories 250\nProtein 12g")

    assert parsed.calories is None
    assert parsed.macronutrients.protein.value == 12


def test_summary_lists_found_nutrients(label_fragments):
    summary = NutritionFactParser().parse(label_fragments).summary

    assert summary.startswith("Found: calories")
    assert "protein" in summary
    assert "fat" in summary

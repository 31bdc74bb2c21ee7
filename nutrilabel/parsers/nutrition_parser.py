"""
Nutrition fact parser for linearized label text.

Patterns are applied to the reading-order text of a label. Whitespace in a
pattern matches spaces and tabs only, so a label and a value on different
rows never pair up.
"""

import re
import time
import logging
from typing import Dict, List, Optional, Tuple

from ..config import NutritionParserConfig
from ..document_analyzers import ReadingOrderAnalyzer
from ..models import (
    TextFragment, NutrientType, NutrientCategory, NutrientMatch, NutrientValue, ServingInfo,
    MacronutrientValues, MicronutrientValues, ConfidenceProfile, ParsedNutritionData,
    MACRONUTRIENTS, MICRONUTRIENTS
)

logger = logging.getLogger(__name__)

NUTRITION_PATTERNS: Dict[NutrientType, List[str]] = {
    NutrientType.CALORIES: [
        r"(?:calories?|kcal|cal)\s*:?\s*(\d+(?:\.\d+)?)",
        r"(\d+(?:\.\d+)?)\s*(?:calories?|kcal|cal)",
        r"energy\s*:?\s*(\d+(?:\.\d+)?)\s*(?:kcal|cal)",
    ],
    NutrientType.PROTEIN: [
        r"(?:protein|prot)\s*:?\s*(\d+(?:\.\d+)?)\s*g",
        r"(\d+(?:\.\d+)?)\s*g\s*protein",
    ],
    NutrientType.CARBOHYDRATES: [
        r"(?:total\s+)?(?:carbohydrat\w*|carbs?)\s*:?\s*(\d+(?:\.\d+)?)\s*g",
        r"(\d+(?:\.\d+)?)\s*g\s*(?:carbohydrat\w*|carbs?)",
    ],
    NutrientType.FAT: [
        r"(?:total\s+)?fat\s*:?\s*(\d+(?:\.\d+)?)\s*g",
        r"(\d+(?:\.\d+)?)\s*g\s*(?:total\s+)?fat",
    ],
    NutrientType.FIBER: [
        r"(?:dietary\s+)?fiber?\s*:?\s*(\d+(?:\.\d+)?)\s*g",
        r"(\d+(?:\.\d+)?)\s*g\s*(?:dietary\s+)?fiber?",
    ],
    NutrientType.SUGAR: [
        r"(?:total\s+)?sugars?\s*:?\s*(\d+(?:\.\d+)?)\s*g",
        r"(\d+(?:\.\d+)?)\s*g\s*(?:total\s+)?sugars?",
    ],
    NutrientType.SATURATED_FAT: [
        r"saturated\s+fat\s*:?\s*(\d+(?:\.\d+)?)\s*g",
        r"(\d+(?:\.\d+)?)\s*g\s*saturated\s+fat",
    ],
    NutrientType.TRANS_FAT: [
        r"trans\s+fat\s*:?\s*(\d+(?:\.\d+)?)\s*g",
        r"(\d+(?:\.\d+)?)\s*g\s*trans\s+fat",
    ],
    NutrientType.SODIUM: [
        r"sodium\s*:?\s*(\d+(?:\.\d+)?)\s*(?:mg|g)",
        r"(\d+(?:\.\d+)?)\s*(?:mg|g)\s*sodium",
    ],
    NutrientType.CHOLESTEROL: [
        r"cholesterol\s*:?\s*(\d+(?:\.\d+)?)\s*mg",
        r"(\d+(?:\.\d+)?)\s*mg\s*cholesterol",
    ],
    NutrientType.POTASSIUM: [
        r"potassium\s*:?\s*(\d+(?:\.\d+)?)\s*mg",
        r"(\d+(?:\.\d+)?)\s*mg\s*potassium",
    ],
    NutrientType.CALCIUM: [
        r"calcium\s*:?\s*(\d+(?:\.\d+)?)\s*mg",
        r"(\d+(?:\.\d+)?)\s*mg\s*calcium",
    ],
    NutrientType.IRON: [
        r"iron\s*:?\s*(\d+(?:\.\d+)?)\s*mg",
        r"(\d+(?:\.\d+)?)\s*mg\s*iron",
    ],
    NutrientType.VITAMIN_A: [
        r"vitamin\s*a\s*:?\s*(\d+(?:\.\d+)?)\s*(?:mcg|µg|iu)",
        r"(\d+(?:\.\d+)?)\s*(?:mcg|µg|iu)\s*vitamin\s*a",
    ],
    NutrientType.VITAMIN_C: [
        r"vitamin\s*c\s*:?\s*(\d+(?:\.\d+)?)\s*mg",
        r"(\d+(?:\.\d+)?)\s*mg\s*vitamin\s*c",
    ],
    NutrientType.VITAMIN_D: [
        r"vitamin\s*d\s*:?\s*(\d+(?:\.\d+)?)\s*(?:mcg|µg|iu)",
        r"(\d+(?:\.\d+)?)\s*(?:mcg|µg|iu)\s*vitamin\s*d",
    ],
    NutrientType.SERVING_SIZE: [
        r"serving\s+size\s*:?\s*(\d+(?:\.\d+)?)\s*([^\W\d]\w*)",
        r"(\d+(?:\.\d+)?)\s*([^\W\d]\w*)\s*per\s+serving",
    ],
    NutrientType.SERVINGS_PER_CONTAINER: [
        r"servings?\s+per\s+container\s*:?\s*(?:about\s+)?(\d+(?:\.\d+)?)",
        r"about\s+(\d+(?:\.\d+)?)\s+servings?",
    ],
}

# Common recognizer confusions: 0/o, 1/l/i, 5/s, 3/e.
FUZZY_PATTERNS: Dict[NutrientType, List[str]] = {
    NutrientType.CALORIES: [
        r"ca[l1i]or[i1l]es?\s*:?\s*(\d+(?:\.\d+)?)",
    ],
    NutrientType.PROTEIN: [
        r"pr[o0]t[e3][i1l]n\s*:?\s*(\d+(?:\.\d+)?)\s*g",
    ],
    NutrientType.CARBOHYDRATES: [
        r"(?:t[o0]ta[l1]\s+)?carb[o0]hydrat\w*\s*:?\s*(\d+(?:\.\d+)?)\s*g",
    ],
    NutrientType.FAT: [
        r"t[o0]ta[l1i]\s+fat\s*:?\s*(\d+(?:\.\d+)?)\s*g",
    ],
    NutrientType.SUGAR: [
        r"(?:t[o0]ta[l1]\s+)?[s5]ugar[s5]?\s*:?\s*(\d+(?:\.\d+)?)\s*g",
    ],
    NutrientType.SODIUM: [
        r"[s5][o0]d[i1l]um\s*:?\s*(\d+(?:\.\d+)?)\s*(?:mg|g)",
    ],
    NutrientType.CHOLESTEROL: [
        r"ch[o0][l1]e[s5]ter[o0][l1]\s*:?\s*(\d+(?:\.\d+)?)\s*mg",
    ],
}

FUZZY_MATCH_PENALTY = 0.1

# Vitamin IU to mcg factors (vitamin A as retinol, vitamin D).
IU_TO_MCG = {
    NutrientType.VITAMIN_A: 0.3,
    NutrientType.VITAMIN_D: 0.025,
}

CATEGORY_WEIGHTS = {
    NutrientCategory.SERVING: 0.2,
    NutrientCategory.CALORIES: 0.3,
    NutrientCategory.MACRO: 0.3,
    NutrientCategory.MICRO: 0.1,
}
FORMAT_WEIGHT = 0.1

DEFAULT_UNITS = {
    NutrientType.CALORIES: "kcal",
    NutrientType.SODIUM: "mg",
    NutrientType.CHOLESTEROL: "mg",
    NutrientType.POTASSIUM: "mg",
    NutrientType.CALCIUM: "mg",
    NutrientType.IRON: "mg",
    NutrientType.VITAMIN_C: "mg",
    NutrientType.VITAMIN_A: "mcg",
    NutrientType.VITAMIN_D: "mcg",
    NutrientType.SERVING_SIZE: "serving",
    NutrientType.SERVINGS_PER_CONTAINER: "",
}

_UNIT_TOKEN = re.compile(r"(?<![a-zµ])(?:mg|mcg|µg|g|iu|kcal|cal)(?![a-z])")
_UNIT_NAMES = {"mg": "mg", "mcg": "mcg", "µg": "mcg", "g": "g", "iu": "IU", "kcal": "kcal", "cal": "kcal"}
_FORMAT_MARKERS = ("nutrition facts", "nutrition information")


def _horizontal(pattern: str) -> str:
    """Restrict ``\\s`` in a pattern to spaces and tabs."""
    return pattern.replace(r"\s", r"[^\S\n]")


def _compile(table: Dict[NutrientType, List[str]]) -> Dict[NutrientType, List[re.Pattern]]:
    compiled = {}
    for nutrient_type, patterns in table.items():
        compiled[nutrient_type] = []
        for pattern in patterns:
            try:
                compiled[nutrient_type].append(re.compile(_horizontal(pattern), re.IGNORECASE))
            except re.error as e:
                logger.warning(f"Skipping invalid pattern for {nutrient_type.value}: {e}")
    return compiled


class NutritionFactParser:
    """
    Extracts structured nutrition facts from recognized label text.

    Parsing is pure and deterministic. For every nutrient the earliest
    match in the label text wins, mirroring the top-to-bottom layout of
    nutrition labels, even when a later match scores higher.
    """

    def __init__(self, config: Optional[NutritionParserConfig] = None):
        self.config = config or NutritionParserConfig()
        self.reading_order = ReadingOrderAnalyzer()
        self._patterns = _compile(NUTRITION_PATTERNS)
        self._fuzzy_patterns = _compile(FUZZY_PATTERNS) if self.config.enable_fuzzy_matching else {}

    def parse(self, fragments: List[TextFragment]) -> ParsedNutritionData:
        """
        Parse nutrition data from recognized fragments.

        Args:
            fragments: Recognizer output in any order

        Returns:
            Parsed nutrition data; missing nutrients are None
        """
        start_time = time.perf_counter()

        text = self.reading_order.linearize(fragments)
        result = self.parse_text(text)

        parse_time = time.perf_counter() - start_time
        logger.info(f"Nutrition parsing completed in {parse_time:.3f}s: {result.summary}")
        return result

    def parse_text(self, text: str) -> ParsedNutritionData:
        """Parse an already linearized label text."""
        if not text.strip():
            return ParsedNutritionData()

        matches = self.find_matches(text)

        first_matches: Dict[NutrientType, NutrientMatch] = {}
        for match in matches:
            first_matches.setdefault(match.nutrient_type, match)

        serving_info = self._parse_serving_info(first_matches, text)
        calories = self._to_value(first_matches.get(NutrientType.CALORIES))
        macronutrients = MacronutrientValues(**{
            nutrient.value: self._to_value(first_matches.get(nutrient)) for nutrient in MACRONUTRIENTS
        })
        micronutrients = MicronutrientValues(**{
            nutrient.value: self._to_value(first_matches.get(nutrient)) for nutrient in MICRONUTRIENTS
        })

        confidence = self._calculate_confidence(serving_info, calories, macronutrients, micronutrients, text)

        return ParsedNutritionData(
            serving_info=serving_info,
            calories=calories,
            macronutrients=macronutrients,
            micronutrients=micronutrients,
            confidence=confidence,
            raw_matches=matches,
        )

    def find_matches(self, text: str) -> List[NutrientMatch]:
        """
        Find every pattern hit in ``text``.

        Returns:
            Matches sorted by position, ties broken by higher confidence
        """
        matches = []
        seen_spans = set()

        for nutrient_type in NutrientType:
            for pattern in self._patterns.get(nutrient_type, []):
                for regex_match in pattern.finditer(text):
                    match = self._process_match(regex_match, nutrient_type)
                    if match is not None:
                        seen_spans.add((nutrient_type, match.start))
                        matches.append(match)

            for pattern in self._fuzzy_patterns.get(nutrient_type, []):
                for regex_match in pattern.finditer(text):
                    if (nutrient_type, regex_match.start()) in seen_spans:
                        continue
                    match = self._process_match(regex_match, nutrient_type, penalty=FUZZY_MATCH_PENALTY)
                    if match is not None:
                        seen_spans.add((nutrient_type, match.start))
                        matches.append(match)

        matches = [m for m in matches if m.confidence >= self.config.minimum_match_confidence]
        matches.sort(key=lambda m: (m.start, -m.confidence))
        return matches

    def _process_match(self, regex_match: re.Match, nutrient_type: NutrientType,
                       penalty: float = 0.0) -> Optional[NutrientMatch]:
        original_text = regex_match.group(0)
        try:
            value = float(regex_match.group(1))
        except (IndexError, TypeError, ValueError):
            return None

        if nutrient_type == NutrientType.SERVING_SIZE and regex_match.lastindex and regex_match.lastindex >= 2:
            unit = regex_match.group(2).lower()
        else:
            value_end = regex_match.end(1) - regex_match.start()
            unit = self._extract_unit(original_text[value_end:], nutrient_type)

        confidence = max(0.0, self._calculate_match_confidence(original_text, nutrient_type) - penalty)

        return NutrientMatch(
            nutrient_type=nutrient_type,
            value=value,
            unit=unit,
            original_text=original_text,
            source_range=regex_match.span(),
            confidence=confidence,
        )

    def _extract_unit(self, tail: str, nutrient_type: NutrientType) -> str:
        """First standalone unit token after the captured value, else the nutrient default."""
        token = _UNIT_TOKEN.search(tail.lower())
        if token is None:
            return DEFAULT_UNITS.get(nutrient_type, "g")
        return _UNIT_NAMES[token.group(0)]

    def _calculate_match_confidence(self, text: str, nutrient_type: NutrientType) -> float:
        confidence = 0.7
        lowercased = text.lower()

        if nutrient_type.value in lowercased:
            confidence += 0.2
        if ":" in text:
            confidence += 0.1
        if _UNIT_TOKEN.search(lowercased):
            confidence += 0.1

        return min(1.0, confidence)

    def _to_value(self, match: Optional[NutrientMatch]) -> Optional[NutrientValue]:
        if match is None:
            return None

        value, unit, is_estimated = match.value, match.unit, False
        if self.config.normalize_units and unit.lower() == "iu" and match.nutrient_type in IU_TO_MCG:
            value = value * IU_TO_MCG[match.nutrient_type]
            unit = "mcg"
            is_estimated = True

        return NutrientValue(
            value=value,
            unit=unit,
            original_text=match.original_text,
            confidence=match.confidence,
            is_estimated=is_estimated,
        )

    def _parse_serving_info(self, first_matches: Dict[NutrientType, NutrientMatch],
                            text: str) -> Optional[ServingInfo]:
        serving_size = first_matches.get(NutrientType.SERVING_SIZE)
        if serving_size is None:
            return None

        per_container = first_matches.get(NutrientType.SERVINGS_PER_CONTAINER)
        description = None
        trailing = re.match(r"[^\S\n]*\(([^)\n]+)\)", text[serving_size.source_range[1]:])
        if trailing:
            description = trailing.group(1).strip()

        return ServingInfo(
            size=serving_size.value,
            unit=serving_size.unit,
            description=description,
            servings_per_container=per_container.value if per_container else None,
            confidence=serving_size.confidence,
        )

    def _calculate_confidence(self,
                              serving_info: Optional[ServingInfo],
                              calories: Optional[NutrientValue],
                              macronutrients: MacronutrientValues,
                              micronutrients: MicronutrientValues,
                              text: str) -> ConfidenceProfile:
        """
        Score each category and combine them.

        The overall score is the fixed-weight average over the categories
        that resolved at least one value, plus format recognition; it is 0
        when nothing resolved.
        """
        serving_score = serving_info.confidence if serving_info else 0.0
        calories_score = calories.confidence if calories else 0.0
        macro_score = _mean([v.confidence for v in macronutrients.all_values.values()])
        micro_score = _mean([v.confidence for v in micronutrients.all_values.values()])

        lowered = text.lower()
        format_score = 0.9 if any(marker in lowered for marker in _FORMAT_MARKERS) else 0.5

        weighted: List[Tuple[float, float]] = []
        if serving_info:
            weighted.append((CATEGORY_WEIGHTS[NutrientCategory.SERVING], serving_score))
        if calories:
            weighted.append((CATEGORY_WEIGHTS[NutrientCategory.CALORIES], calories_score))
        if macronutrients.all_values:
            weighted.append((CATEGORY_WEIGHTS[NutrientCategory.MACRO], macro_score))
        if micronutrients.all_values:
            weighted.append((CATEGORY_WEIGHTS[NutrientCategory.MICRO], micro_score))

        overall = 0.0
        if weighted:
            weighted.append((FORMAT_WEIGHT, format_score))
            total_weight = sum(weight for weight, _ in weighted)
            overall = sum(weight * score for weight, score in weighted) / total_weight

        return ConfidenceProfile(
            serving_info_score=serving_score,
            calories_score=calories_score,
            macronutrients_score=macro_score,
            micronutrients_score=micro_score,
            format_recognition_score=format_score,
            overall_score=min(1.0, max(0.0, overall)),
        )


def _mean(values: List[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)

"""
Weight reading parser for kitchen-scale displays and package labels.

Two passes run over the recognized fragments. The contextual pass looks for
a number sitting between a scale's M (mode/memory) and PCS (piece count)
buttons. The direct pass matches weight patterns inside each fragment.
Candidates from both passes are decimal-corrected, validated, deduplicated
and ranked.
"""

import math
import re
import time
import logging
from typing import List, Optional, Tuple

from ..config import WeightDetectionConfig
from ..models import BoundingBox, TextFragment, WeightUnit, DetectedWeight, WeightDetectionResult

logger = logging.getLogger(__name__)

MIN_VALID_GRAMS = 0.1
MAX_VALID_GRAMS = 50000.0

CONTEXTUAL_MARKER = "PCS context"

_UNIT = r"(g(?:ram)?s?|gr|kg|oz|lbs?|ml|l)"

# Ordered; the first pattern that yields a valid weight wins.
DIRECT_PATTERNS = [
    # "354.2 g", "1.2 kg", "12.5 oz"
    ("value_unit", re.compile(r"(?<![\d:.])(?<!\d\s)(\d+(?:\.\d+)?)\s*" + _UNIT + r"\b", re.IGNORECASE)),
    # "354:2 g" for displays that render the decimal point as a colon
    ("colon", re.compile(r"(\d+):(\d+)\s*" + _UNIT + r"\b", re.IGNORECASE)),
    # "3 5 4 2 g" when segments are read as separate digits
    ("spaced_digits", re.compile(r"(\d(?:\s+\d)+)\s*" + _UNIT + r"\b", re.IGNORECASE)),
    # "Net Wt. 16 oz", "Weight: 500g"
    ("labeled", re.compile(r"(?:weight|wt\.?|net)\s*:?\s*(\d+(?:\.\d+)?)\s*" + _UNIT, re.IGNORECASE)),
    # "354g" glued to trailing text
    ("short_value_unit", re.compile(r"(\d{1,4}(?:\.\d{0,2})?)\s*" + _UNIT, re.IGNORECASE)),
    # Bare number; the unit has to come from elsewhere
    ("bare_number", re.compile(r"^(\d{1,4}(?:\.\d{0,3})?)$")),
]

_NUMBER = re.compile(r"\d+\.?\d*")
_SPACED_DIGITS = re.compile(r"\d\s+\d")
_CLEAN_VALUE_UNIT = re.compile(r"^\d+\.?\d*\s*[a-zA-Z]+$")

_M_BUTTON_WORDS = ("mode", "mem")
_PCS_BUTTON_WORDS = ("pcs", "pc", "piece", "count")
_UNIT_WORDS = ("g", "kg", "oz", "lb", "ml", "l", "grams", "gram")


def correct_decimal_point(value: float) -> float:
    """
    Restore a decimal point a scale display dropped.

    Displays usually show one decimal place, so integers are divided by 10
    by digit count (10-99, 100-999, 1000-9999, 10000-99999). Anything left
    over is kept when it is 0 or within 0.1-50, and divided by 10 when it is
    an integer within 500-50000. Genuine integer readings are divided too.
    """
    if value != math.floor(value):
        return value

    int_value = int(value)
    digit_count = len(str(abs(int_value)))

    if digit_count == 2 and 10 <= int_value <= 99:
        corrected = int_value / 10.0
    elif digit_count == 3 and 100 <= int_value <= 999:
        corrected = int_value / 10.0
    elif digit_count == 4 and 1000 <= int_value <= 9999:
        corrected = int_value / 10.0
    elif digit_count == 5 and 10000 <= int_value <= 99999:
        corrected = int_value / 10.0
    else:
        corrected = None

    if corrected is not None:
        logger.debug(f"Decimal correction: {int_value} -> {corrected} ({digit_count}-digit correction)")
        return corrected

    if int_value == 0:
        return 0.0

    if 0.1 <= value <= 50.0:
        return value

    if 500 <= int_value <= 50000:
        corrected = int_value / 10.0
        logger.debug(f"Large value decimal correction: {int_value} -> {corrected} (suspected missing decimal)")
        return corrected

    return value


def is_valid_weight(grams: float) -> bool:
    """Weights are plausible strictly between 0.1 g and 50 kg."""
    return MIN_VALID_GRAMS < grams < MAX_VALID_GRAMS


def is_point_between(point: Tuple[float, float], first: Tuple[float, float],
                     second: Tuple[float, float], tolerance: float) -> bool:
    """Whether ``point`` lies on the segment between two points, within ``tolerance``."""
    span = math.dist(first, second)
    detour = math.dist(point, first) + math.dist(point, second)
    return abs(detour - span) < tolerance


def pattern_confidence(text: str) -> float:
    """Score how much a fragment looks like a weight reading."""
    lower_text = text.lower()
    confidence = 0.5

    if "scale" in lower_text or "weight" in lower_text:
        confidence = 1.0
    elif ":" in text and len(text) < 12:
        confidence = 0.95
    elif "." in text and len(text) < 10:
        confidence = 0.9
    elif _SPACED_DIGITS.search(text):
        confidence = 0.85
    elif _CLEAN_VALUE_UNIT.match(text):
        confidence = 0.8
    elif any(unit in lower_text for unit in ("g", "kg", "oz", "lb")):
        confidence = 0.7

    number = _NUMBER.search(text)
    if number:
        value = float(number.group(0))
        if 1 <= value <= 5000:
            confidence += 0.1
        if 50 <= value <= 2000:
            confidence += 0.1

    return min(confidence, 1.0)


class WeightReadingParser:
    """
    Detects weight readings in recognized fragments.

    Detection is pure: the same fragments always produce the same ranked
    candidates.
    """

    def __init__(self, config: Optional[WeightDetectionConfig] = None):
        self.config = config or WeightDetectionConfig()

    def detect(self, fragments: List[TextFragment]) -> WeightDetectionResult:
        """
        Detect weights in a set of fragments.

        Args:
            fragments: Recognizer output, possibly pooled from several image variants

        Returns:
            Ranked candidates with contextual detections first
        """
        start_time = time.perf_counter()

        candidates = self.find_contextual_weights(fragments)
        for fragment in fragments:
            weight = self.parse_fragment(fragment)
            if weight is not None:
                candidates.append(weight)

        detected = self.filter_and_rank(candidates)
        confidence = max((w.confidence for w in detected), default=0.0)
        processing_time = time.perf_counter() - start_time

        logger.info(f"Weight detection completed in {processing_time:.3f}s, "
                    f"found {len(detected)} weights from {len(fragments)} fragments")

        return WeightDetectionResult(
            detected_weights=detected,
            processing_time=processing_time,
            confidence=confidence,
        )

    def find_contextual_weights(self, fragments: List[TextFragment]) -> List[DetectedWeight]:
        """Find numbers positioned between M and PCS buttons."""
        m_buttons, pcs_buttons, numbers, units = [], [], [], []

        for fragment in fragments:
            text = fragment.text.lower()
            if ("m" in text and len(text) <= 4) or any(word in text for word in _M_BUTTON_WORDS):
                m_buttons.append(fragment)
            elif any(word in text for word in _PCS_BUTTON_WORDS):
                pcs_buttons.append(fragment)
            elif _NUMBER.search(text):
                numbers.append(fragment)
            elif any(word in text for word in _UNIT_WORDS):
                units.append(fragment)

        logger.debug(f"Scale button analysis: M={len(m_buttons)}, PCS={len(pcs_buttons)}, "
                     f"numbers={len(numbers)}, units={len(units)}")

        weights = []
        for m_button in m_buttons:
            for pcs_button in pcs_buttons:
                for number in numbers:
                    if not is_point_between(number.bounding_box.center,
                                            m_button.bounding_box.center,
                                            pcs_button.bounding_box.center,
                                            self.config.collinearity_tolerance):
                        continue

                    value = self._extract_numeric_value(number.text)
                    if value is None:
                        continue

                    unit = self._nearest_unit(number.bounding_box, units)
                    if not is_valid_weight(unit.convert_to_grams(value)):
                        continue

                    weight = DetectedWeight(
                        value=value,
                        unit=unit,
                        confidence=number.confidence * self.config.contextual_boost,
                        bounding_box=number.bounding_box,
                        original_text=f"M[{number.text}]{CONTEXTUAL_MARKER}",
                        is_contextual=True,
                    )
                    logger.debug(f"Found contextual weight between M and PCS: {weight.display_string} "
                                 f"(from raw text: '{number.text}')")
                    weights.append(weight)

        return weights

    def parse_fragment(self, fragment: TextFragment) -> Optional[DetectedWeight]:
        """Match a single fragment against the direct weight patterns."""
        text = fragment.text.strip()

        for name, pattern in DIRECT_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue

            reading = self._extract_number_and_unit(name, match)
            if reading is None:
                continue

            value, unit = reading
            return DetectedWeight(
                value=value,
                unit=unit,
                confidence=fragment.confidence * pattern_confidence(text),
                bounding_box=fragment.bounding_box,
                original_text=fragment.text,
            )

        return None

    def filter_and_rank(self, weights: List[DetectedWeight]) -> List[DetectedWeight]:
        """
        Drop weak candidates and collapse near-duplicates.

        Two candidates are duplicates when their gram values differ by less
        than 5 g or 5% of the incoming candidate. A contextual candidate
        replaces a direct one; otherwise the higher confidence is kept.
        """
        filtered = [w for w in weights if w.confidence > self.config.minimum_candidate_confidence]

        grouped: List[DetectedWeight] = []
        for weight in filtered:
            grams = weight.value_in_grams
            tolerance = max(5.0, grams * 0.05)
            index = next(
                (i for i, existing in enumerate(grouped) if abs(grams - existing.value_in_grams) < tolerance),
                None
            )

            if index is None:
                grouped.append(weight)
                continue

            existing = grouped[index]
            if weight.is_contextual != existing.is_contextual:
                if weight.is_contextual:
                    grouped[index] = weight
            elif weight.confidence > existing.confidence:
                grouped[index] = weight

        return sorted(grouped, key=lambda w: (not w.is_contextual, -w.confidence))

    def _extract_numeric_value(self, text: str) -> Optional[float]:
        clean_text = text.replace(" ", "").replace(":", ".").strip()
        try:
            value = float(clean_text)
        except ValueError:
            return None
        return correct_decimal_point(value)

    def _nearest_unit(self, box: BoundingBox, units: List[TextFragment]) -> WeightUnit:
        nearest = None
        nearest_distance = self.config.unit_search_radius
        for unit_fragment in units:
            distance = box.distance_to(unit_fragment.bounding_box)
            if distance < nearest_distance:
                parsed = _parse_unit_text(unit_fragment.text)
                if parsed is not None:
                    nearest, nearest_distance = parsed, distance
        return nearest or WeightUnit.GRAMS

    def _extract_number_and_unit(self, pattern_name: str,
                                 match: re.Match) -> Optional[Tuple[float, WeightUnit]]:
        if pattern_name == "bare_number":
            return None

        if pattern_name == "colon":
            decimals = match.group(2)
            raw_value = int(match.group(1)) + int(decimals) / (10 ** len(decimals))
            unit_token = match.group(3)
        elif pattern_name == "spaced_digits":
            raw_value = float(re.sub(r"\s+", "", match.group(1)))
            unit_token = match.group(2)
        else:
            raw_value = float(match.group(1))
            unit_token = match.group(2)

        unit = WeightUnit.from_token(unit_token)
        if unit is None:
            return None

        value = correct_decimal_point(raw_value)
        if not is_valid_weight(unit.convert_to_grams(value)):
            return None

        return value, unit


def _parse_unit_text(text: str) -> Optional[WeightUnit]:
    for word in re.findall(r"[a-z]+", text.lower()):
        unit = WeightUnit.from_token(word)
        if unit is not None:
            return unit
    return None

"""
Parsers that turn recognized fragments into nutrition facts and weights.
"""

from .nutrition_parser import NutritionFactParser, NUTRITION_PATTERNS
from .weight_parser import WeightReadingParser, correct_decimal_point, is_valid_weight, is_point_between

__all__ = [
    "NutritionFactParser",
    "NUTRITION_PATTERNS",
    "WeightReadingParser",
    "correct_decimal_point",
    "is_valid_weight",
    "is_point_between",
]

"""
Weight models for readings detected on kitchen-scale displays.
"""

from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .text_fragment import BoundingBox


class WeightUnit(str, Enum):
    """Units a scale display can show."""
    GRAMS = "g"
    KILOGRAMS = "kg"
    OUNCES = "oz"
    POUNDS = "lb"
    MILLILITERS = "ml"
    LITERS = "l"

    @property
    def display_name(self) -> str:
        return _UNIT_DISPLAY_NAMES[self]

    def convert_to_grams(self, value: float) -> float:
        """Convert ``value`` in this unit to grams (1 ml counts as 1 g)."""
        return value * _GRAMS_PER_UNIT[self]

    @classmethod
    def from_token(cls, token: Optional[str]) -> Optional["WeightUnit"]:
        """Parse a unit spelling such as ``g``, ``grams``, ``KG`` or ``lbs``."""
        if not token:
            return None
        return _UNIT_TOKENS.get(token.strip().lower().rstrip('.'))


_GRAMS_PER_UNIT = {
    WeightUnit.GRAMS: 1.0,
    WeightUnit.KILOGRAMS: 1000.0,
    WeightUnit.OUNCES: 28.3495,
    WeightUnit.POUNDS: 453.592,
    WeightUnit.MILLILITERS: 1.0,
    WeightUnit.LITERS: 1000.0,
}

_UNIT_DISPLAY_NAMES = {
    WeightUnit.GRAMS: "grams",
    WeightUnit.KILOGRAMS: "kilograms",
    WeightUnit.OUNCES: "ounces",
    WeightUnit.POUNDS: "pounds",
    WeightUnit.MILLILITERS: "milliliters",
    WeightUnit.LITERS: "liters",
}

_UNIT_TOKENS = {
    "g": WeightUnit.GRAMS,
    "gr": WeightUnit.GRAMS,
    "gram": WeightUnit.GRAMS,
    "grams": WeightUnit.GRAMS,
    "kg": WeightUnit.KILOGRAMS,
    "kgs": WeightUnit.KILOGRAMS,
    "kilo": WeightUnit.KILOGRAMS,
    "kilos": WeightUnit.KILOGRAMS,
    "kilogram": WeightUnit.KILOGRAMS,
    "kilograms": WeightUnit.KILOGRAMS,
    "oz": WeightUnit.OUNCES,
    "ounce": WeightUnit.OUNCES,
    "ounces": WeightUnit.OUNCES,
    "lb": WeightUnit.POUNDS,
    "lbs": WeightUnit.POUNDS,
    "pound": WeightUnit.POUNDS,
    "pounds": WeightUnit.POUNDS,
    "ml": WeightUnit.MILLILITERS,
    "l": WeightUnit.LITERS,
    "liter": WeightUnit.LITERS,
    "liters": WeightUnit.LITERS,
    "litre": WeightUnit.LITERS,
    "litres": WeightUnit.LITERS,
}


class DetectedWeight(BaseModel):
    """A weight candidate read from the display."""
    model_config = ConfigDict(frozen=True)

    value: float = Field(..., description="Reading after decimal correction")
    unit: WeightUnit = Field(default=WeightUnit.GRAMS, description="Display unit")
    confidence: float = Field(..., description="Candidate confidence; contextual boosts may exceed 1.0")
    bounding_box: BoundingBox = Field(..., description="Location of the number on the display")
    original_text: str = Field(..., description="Source text or contextual marker")
    is_contextual: bool = Field(default=False, description="Found between M and PCS anchors")

    @property
    def value_in_grams(self) -> float:
        return self.unit.convert_to_grams(self.value)

    @property
    def display_string(self) -> str:
        return f"{self.value:.1f} {self.unit.value}"


class WeightDetectionResult(BaseModel):
    """Ranked weight candidates for one display image."""
    model_config = ConfigDict(frozen=True)

    detected_weights: List[DetectedWeight] = Field(default_factory=list)
    processing_time: float = Field(default=0.0, description="Detection time in seconds")
    confidence: float = Field(default=0.0, description="Highest candidate confidence")

    @property
    def best_weight(self) -> Optional[DetectedWeight]:
        if not self.detected_weights:
            return None
        return max(self.detected_weights, key=lambda w: w.confidence)

    @property
    def has_valid_weight(self) -> bool:
        best = self.best_weight
        return best is not None and best.confidence > 0.5

"""
Nutrition models for representing parsed label data and its confidence.
"""

from typing import Dict, List, Optional, Tuple
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NutrientCategory(str, Enum):
    """Scoring categories used by the confidence profile."""
    SERVING = "serving"
    CALORIES = "calories"
    MACRO = "macro"
    MICRO = "micro"


class NutrientType(str, Enum):
    """Nutrients recognized on a label."""
    CALORIES = "calories"
    PROTEIN = "protein"
    CARBOHYDRATES = "carbohydrates"
    FAT = "fat"
    FIBER = "fiber"
    SUGAR = "sugar"
    SATURATED_FAT = "saturated_fat"
    TRANS_FAT = "trans_fat"
    SODIUM = "sodium"
    CHOLESTEROL = "cholesterol"
    POTASSIUM = "potassium"
    CALCIUM = "calcium"
    IRON = "iron"
    VITAMIN_A = "vitamin_a"
    VITAMIN_C = "vitamin_c"
    VITAMIN_D = "vitamin_d"
    SERVING_SIZE = "serving_size"
    SERVINGS_PER_CONTAINER = "servings_per_container"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def category(self) -> NutrientCategory:
        if self == NutrientType.CALORIES:
            return NutrientCategory.CALORIES
        if self in MACRONUTRIENTS:
            return NutrientCategory.MACRO
        if self in MICRONUTRIENTS:
            return NutrientCategory.MICRO
        return NutrientCategory.SERVING


_DISPLAY_NAMES = {
    NutrientType.CALORIES: "Calories",
    NutrientType.PROTEIN: "Protein",
    NutrientType.CARBOHYDRATES: "Carbohydrates",
    NutrientType.FAT: "Total Fat",
    NutrientType.FIBER: "Dietary Fiber",
    NutrientType.SUGAR: "Total Sugars",
    NutrientType.SATURATED_FAT: "Saturated Fat",
    NutrientType.TRANS_FAT: "Trans Fat",
    NutrientType.SODIUM: "Sodium",
    NutrientType.CHOLESTEROL: "Cholesterol",
    NutrientType.POTASSIUM: "Potassium",
    NutrientType.CALCIUM: "Calcium",
    NutrientType.IRON: "Iron",
    NutrientType.VITAMIN_A: "Vitamin A",
    NutrientType.VITAMIN_C: "Vitamin C",
    NutrientType.VITAMIN_D: "Vitamin D",
    NutrientType.SERVING_SIZE: "Serving Size",
    NutrientType.SERVINGS_PER_CONTAINER: "Servings Per Container",
}

MACRONUTRIENTS = (
    NutrientType.PROTEIN,
    NutrientType.CARBOHYDRATES,
    NutrientType.FAT,
    NutrientType.FIBER,
    NutrientType.SUGAR,
    NutrientType.SATURATED_FAT,
    NutrientType.TRANS_FAT,
)

MICRONUTRIENTS = (
    NutrientType.SODIUM,
    NutrientType.CHOLESTEROL,
    NutrientType.POTASSIUM,
    NutrientType.CALCIUM,
    NutrientType.IRON,
    NutrientType.VITAMIN_A,
    NutrientType.VITAMIN_C,
    NutrientType.VITAMIN_D,
)


_SUMMARY_LABELS = {
    "carbohydrates": "carbs",
    "vitamin_a": "vitamin A",
    "vitamin_c": "vitamin C",
    "vitamin_d": "vitamin D",
}


class NutrientMatch(BaseModel):
    """A single pattern hit in the linearized label text."""
    model_config = ConfigDict(frozen=True)

    nutrient_type: NutrientType = Field(..., description="Nutrient the pattern belongs to")
    value: float = Field(..., description="Numeric value captured by the pattern")
    unit: str = Field(..., description="Explicit or default unit")
    original_text: str = Field(..., description="Full matched text")
    source_range: Tuple[int, int] = Field(..., description="Start and end offsets in the linearized text")
    confidence: float = Field(..., description="Match confidence (0-1)")

    @property
    def start(self) -> int:
        return self.source_range[0]


class NutrientValue(BaseModel):
    """Resolved value chosen for one nutrient."""
    model_config = ConfigDict(frozen=True)

    value: float
    unit: str
    original_text: str
    confidence: float
    is_estimated: bool = False

    @property
    def display_value(self) -> str:
        if self.value < 10:
            return f"{self.value:.1f}".rstrip('0').rstrip('.')
        return f"{self.value:.0f}"

    @property
    def display_text(self) -> str:
        return f"{self.display_value}{self.unit}"


class ServingInfo(BaseModel):
    """Serving size information."""
    model_config = ConfigDict(frozen=True)

    size: float
    unit: str
    description: Optional[str] = None
    servings_per_container: Optional[float] = None
    confidence: float

    @property
    def display_text(self) -> str:
        size_text = self.unit if self.size == 1.0 else f"{self.size:g} {self.unit}"
        if self.description:
            return f"{size_text} ({self.description})"
        return size_text


class MacronutrientValues(BaseModel):
    """Macronutrient values found on the label."""
    model_config = ConfigDict(frozen=True)

    protein: Optional[NutrientValue] = None
    carbohydrates: Optional[NutrientValue] = None
    fat: Optional[NutrientValue] = None
    fiber: Optional[NutrientValue] = None
    sugar: Optional[NutrientValue] = None
    saturated_fat: Optional[NutrientValue] = None
    trans_fat: Optional[NutrientValue] = None

    @property
    def is_empty(self) -> bool:
        """True when none of protein, carbohydrates and fat were found."""
        return self.protein is None and self.carbohydrates is None and self.fat is None

    @property
    def all_values(self) -> Dict[str, NutrientValue]:
        return _collect_values(self, MACRONUTRIENTS)


class MicronutrientValues(BaseModel):
    """Micronutrient values found on the label."""
    model_config = ConfigDict(frozen=True)

    sodium: Optional[NutrientValue] = None
    cholesterol: Optional[NutrientValue] = None
    potassium: Optional[NutrientValue] = None
    calcium: Optional[NutrientValue] = None
    iron: Optional[NutrientValue] = None
    vitamin_a: Optional[NutrientValue] = None
    vitamin_c: Optional[NutrientValue] = None
    vitamin_d: Optional[NutrientValue] = None

    @property
    def is_empty(self) -> bool:
        return not self.all_values

    @property
    def all_values(self) -> Dict[str, NutrientValue]:
        return _collect_values(self, MICRONUTRIENTS)


class ConfidenceProfile(BaseModel):
    """Per-category confidence scores plus the weighted overall score."""
    model_config = ConfigDict(frozen=True)

    serving_info_score: float = 0.0
    calories_score: float = 0.0
    macronutrients_score: float = 0.0
    micronutrients_score: float = 0.0
    format_recognition_score: float = 0.0
    overall_score: float = 0.0

    @field_validator('overall_score')
    @classmethod
    def validate_overall_score(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('Overall score must be between 0.0 and 1.0')
        return v

    @classmethod
    def none(cls) -> "ConfidenceProfile":
        return cls()


class ParsedNutritionData(BaseModel):
    """
    Structured nutrition facts parsed from one label.

    Absent nutrients are ``None``, never zero.
    """
    model_config = ConfigDict(frozen=True)

    serving_info: Optional[ServingInfo] = None
    calories: Optional[NutrientValue] = None
    macronutrients: MacronutrientValues = Field(default_factory=MacronutrientValues)
    micronutrients: MicronutrientValues = Field(default_factory=MicronutrientValues)
    confidence: ConfidenceProfile = Field(default_factory=ConfidenceProfile)
    raw_matches: List[NutrientMatch] = Field(default_factory=list)

    @property
    def has_basic_nutrition(self) -> bool:
        """Calories or any of protein, carbohydrates and fat was found."""
        return self.calories is not None or not self.macronutrients.is_empty

    @property
    def summary(self) -> str:
        items = []
        if self.calories is not None:
            items.append("calories")
        for name in list(self.macronutrients.all_values) + list(self.micronutrients.all_values):
            items.append(_SUMMARY_LABELS.get(name, name.replace("_", " ")))
        if self.serving_info is not None:
            items.append("serving")

        if not items:
            return "No nutrition data found"
        return f"Found: {', '.join(items)}"


def _collect_values(values: BaseModel, nutrients) -> Dict[str, NutrientValue]:
    """Map present nutrient fields of ``values`` by nutrient name."""
    found = {}
    for nutrient in nutrients:
        value = getattr(values, nutrient.value)
        if value is not None:
            found[nutrient.value] = value
    return found

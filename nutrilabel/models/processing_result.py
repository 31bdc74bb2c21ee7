"""
Processing result models for tracking extraction pipeline execution.
"""

from typing import Any, Dict, List, Literal, Optional, Union
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .nutrition import ParsedNutritionData
from .quality_assessment import QualityAssessment, QualityCheck
from .text_fragment import TextFragment


class ExtractionState(str, Enum):
    """Stage of the extraction orchestrator."""
    IDLE = "idle"
    QUALITY_CHECK = "quality_check"
    OCR = "ocr"
    PARSING = "parsing"
    RECOMMENDING = "recommending"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def description(self) -> str:
        return _STATE_DESCRIPTIONS[self]


_STATE_DESCRIPTIONS = {
    ExtractionState.IDLE: "Ready",
    ExtractionState.QUALITY_CHECK: "Checking image quality...",
    ExtractionState.OCR: "Extracting text...",
    ExtractionState.PARSING: "Parsing nutrition data...",
    ExtractionState.RECOMMENDING: "Generating recommendations...",
    ExtractionState.COMPLETED: "Extraction complete",
    ExtractionState.ERROR: "Extraction failed",
}


class OCRProcessingMetrics(BaseModel):
    """Per-stage timings and recognition statistics for one OCR pass."""
    model_config = ConfigDict(frozen=True)

    image_validation_time: float = Field(default=0.0, description="Image validation time in seconds")
    quality_assessment_time: float = Field(default=0.0, description="Quality assessment time in seconds")
    preprocessing_time: float = Field(default=0.0, description="Image preprocessing time in seconds")
    ocr_processing_time: float = Field(default=0.0, description="Text recognition time in seconds")
    total_processing_time: float = Field(default=0.0, description="Total processing time in seconds")
    image_quality_checks: List[QualityCheck] = Field(default_factory=list)
    text_confidence_distribution: List[float] = Field(default_factory=list)

    @property
    def average_confidence(self) -> float:
        """Mean fragment confidence, 0 when nothing was recognized."""
        if not self.text_confidence_distribution:
            return 0.0
        return sum(self.text_confidence_distribution) / len(self.text_confidence_distribution)

    @property
    def summary(self) -> str:
        return (
            f"{len(self.text_confidence_distribution)} fragments, "
            f"avg confidence {self.average_confidence:.2f}, "
            f"total {self.total_processing_time:.2f}s "
            f"(ocr {self.ocr_processing_time:.2f}s, preprocessing {self.preprocessing_time:.2f}s)"
        )


class OCRExtractionResult(BaseModel):
    """Recognized text for one image, in reading order."""
    model_config = ConfigDict(frozen=True)

    fragments: List[TextFragment] = Field(default_factory=list)
    image_quality_score: float = Field(..., description="Overall quality score used for gating")
    quality_assessment: Optional[QualityAssessment] = None
    preprocessing_applied: bool = False
    processing_metrics: OCRProcessingMetrics
    extraction_timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def has_text(self) -> bool:
        return bool(self.fragments)

    @property
    def full_text(self) -> str:
        return "\n".join(fragment.text for fragment in self.fragments)


class ExtractionEfficiency(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"


class ExtractionSuccessRating(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def description(self) -> str:
        return {
            ExtractionSuccessRating.EXCELLENT: "Excellent extraction quality",
            ExtractionSuccessRating.GOOD: "Good extraction quality",
            ExtractionSuccessRating.FAIR: "Fair extraction quality",
            ExtractionSuccessRating.POOR: "Poor extraction quality - consider retaking photo",
        }[self]


class ExtractionMetrics(BaseModel):
    """Performance and accuracy metrics for a nutrition extraction."""
    model_config = ConfigDict(frozen=True)

    total_processing_time: float = Field(..., description="Total processing time in seconds")
    ocr_processing_time: float = Field(default=0.0, description="OCR coordinator time")
    parsing_time: float = Field(default=0.0, description="Nutrition parsing time")
    image_quality_score: float = Field(default=0.0, description="Quality score of the image")
    text_recognition_accuracy: float = Field(default=0.0, description="Average fragment confidence")
    nutrition_parsing_accuracy: float = Field(default=0.0, description="Overall nutrition confidence")

    @property
    def efficiency(self) -> ExtractionEfficiency:
        if self.total_processing_time < 3.0 and self.nutrition_parsing_accuracy > 0.8:
            return ExtractionEfficiency.EXCELLENT
        elif self.total_processing_time < 5.0 and self.nutrition_parsing_accuracy > 0.6:
            return ExtractionEfficiency.GOOD
        elif self.total_processing_time < 8.0 and self.nutrition_parsing_accuracy > 0.4:
            return ExtractionEfficiency.ACCEPTABLE
        else:
            return ExtractionEfficiency.POOR


class RecommendationType(str, Enum):
    IMAGE_QUALITY = "image_quality"
    LIGHTING = "lighting"
    FRAMING = "framing"
    RETAKE = "retake"
    MANUAL_ENTRY = "manual_entry"


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Recommendation(BaseModel):
    """User-facing advice derived from an extraction."""
    model_config = ConfigDict(frozen=True)

    type: RecommendationType
    message: str
    priority: RecommendationPriority


class NutritionExtractionResult(BaseModel):
    """
    Complete result of a nutrition label extraction.

    Bundles the OCR pass, the parsed nutrition facts, timing metrics and
    recommendations for the caller.
    """
    model_config = ConfigDict(frozen=True)

    ocr_result: OCRExtractionResult
    parsed_nutrition: ParsedNutritionData
    extraction_metrics: ExtractionMetrics
    recommendations: List[Recommendation] = Field(default_factory=list)

    @property
    def success_rating(self) -> ExtractionSuccessRating:
        confidence = self.parsed_nutrition.confidence.overall_score
        if confidence >= 0.8:
            return ExtractionSuccessRating.EXCELLENT
        elif confidence >= 0.6:
            return ExtractionSuccessRating.GOOD
        elif confidence >= 0.4:
            return ExtractionSuccessRating.FAIR
        else:
            return ExtractionSuccessRating.POOR

    @property
    def has_usable_data(self) -> bool:
        return (self.parsed_nutrition.has_basic_nutrition and
                self.parsed_nutrition.confidence.overall_score >= 0.4)

    @property
    def high_priority_recommendations(self) -> List[Recommendation]:
        return [r for r in self.recommendations if r.priority == RecommendationPriority.HIGH]

    @property
    def summary(self) -> str:
        confidence = self.parsed_nutrition.confidence.overall_score * 100
        return (f"Found {len(self.ocr_result.fragments)} text items, "
                f"{self.parsed_nutrition.summary} (confidence: {confidence:.1f}%)")

    def to_food_entry(self) -> Optional[Dict[str, Any]]:
        """
        Flatten usable results into the fields of a food log entry.

        Returns:
            Serving, calorie and key nutrient values, or None when the
            extraction has no usable data
        """
        if not self.has_usable_data:
            return None

        nutrition = self.parsed_nutrition
        macros = nutrition.macronutrients
        micros = nutrition.micronutrients

        def value_of(nutrient):
            return nutrient.value if nutrient is not None else None

        return {
            "serving_size": nutrition.serving_info.size if nutrition.serving_info else 1.0,
            "serving_unit": nutrition.serving_info.unit if nutrition.serving_info else "serving",
            "calories": value_of(nutrition.calories) or 0.0,
            "protein": value_of(macros.protein) or 0.0,
            "carbohydrates": value_of(macros.carbohydrates) or 0.0,
            "fat": value_of(macros.fat) or 0.0,
            "sodium": value_of(micros.sodium),
            "calcium": value_of(micros.calcium),
            "iron": value_of(micros.iron),
        }


class Success(BaseModel):
    kind: Literal["success"] = "success"
    result: NutritionExtractionResult


class LowConfidence(BaseModel):
    kind: Literal["low_confidence"] = "low_confidence"
    result: NutritionExtractionResult


class ManualFallback(BaseModel):
    kind: Literal["manual_fallback"] = "manual_fallback"
    result: Optional[NutritionExtractionResult] = None
    reason: str


class Failed(BaseModel):
    kind: Literal["failed"] = "failed"
    error_type: str
    message: str
    is_recoverable: bool = True


class Cancelled(BaseModel):
    kind: Literal["cancelled"] = "cancelled"


ExtractionOutcome = Union[Success, LowConfidence, ManualFallback, Failed, Cancelled]

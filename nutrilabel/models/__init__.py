"""
Data models for nutrition label and scale display extraction.
"""

from .text_fragment import BoundingBox, TextFragment
from .nutrition import (
    NutrientCategory, NutrientType, NutrientMatch, NutrientValue, ServingInfo,
    MacronutrientValues, MicronutrientValues, ConfidenceProfile, ParsedNutritionData,
    MACRONUTRIENTS, MICRONUTRIENTS
)
from .weight import WeightUnit, DetectedWeight, WeightDetectionResult
from .quality_assessment import (
    QualityCheckType, QualityCheck, QualityRecommendation, QualityAssessment
)
from .processing_result import (
    ExtractionState, OCRProcessingMetrics, OCRExtractionResult, ExtractionMetrics,
    ExtractionEfficiency, ExtractionSuccessRating, RecommendationType,
    RecommendationPriority, Recommendation, NutritionExtractionResult,
    ExtractionOutcome, Success, LowConfidence, ManualFallback, Failed, Cancelled
)

__all__ = [
    "BoundingBox",
    "TextFragment",
    "NutrientCategory",
    "NutrientType",
    "NutrientMatch",
    "NutrientValue",
    "ServingInfo",
    "MacronutrientValues",
    "MicronutrientValues",
    "ConfidenceProfile",
    "ParsedNutritionData",
    "MACRONUTRIENTS",
    "MICRONUTRIENTS",
    "WeightUnit",
    "DetectedWeight",
    "WeightDetectionResult",
    "QualityCheckType",
    "QualityCheck",
    "QualityRecommendation",
    "QualityAssessment",
    "ExtractionState",
    "OCRProcessingMetrics",
    "OCRExtractionResult",
    "ExtractionMetrics",
    "ExtractionEfficiency",
    "ExtractionSuccessRating",
    "RecommendationType",
    "RecommendationPriority",
    "Recommendation",
    "NutritionExtractionResult",
    "ExtractionOutcome",
    "Success",
    "LowConfidence",
    "ManualFallback",
    "Failed",
    "Cancelled",
]

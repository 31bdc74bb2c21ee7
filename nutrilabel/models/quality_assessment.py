"""
Quality assessment models for evaluating photos before text recognition.
"""

from typing import Any, Dict, List
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QualityCheckType(str, Enum):
    """Individual image checks."""
    RESOLUTION = "resolution"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    SHARPNESS = "sharpness"
    TEXT_AREA = "text_area"


class QualityRecommendation(str, Enum):
    """Quality buckets for an assessed image."""
    EXCELLENT = "excellent"    # >= 0.9
    GOOD = "good"              # >= 0.7
    ACCEPTABLE = "acceptable"  # >= 0.5
    POOR = "poor"              # >= 0.3
    UNUSABLE = "unusable"      # < 0.3

    @classmethod
    def from_score(cls, score: float) -> "QualityRecommendation":
        if score >= 0.9:
            return cls.EXCELLENT
        elif score >= 0.7:
            return cls.GOOD
        elif score >= 0.5:
            return cls.ACCEPTABLE
        elif score >= 0.3:
            return cls.POOR
        else:
            return cls.UNUSABLE

    @property
    def description(self) -> str:
        return _RECOMMENDATION_DESCRIPTIONS[self]


_RECOMMENDATION_DESCRIPTIONS = {
    QualityRecommendation.EXCELLENT: "Excellent quality - optimal for text recognition",
    QualityRecommendation.GOOD: "Good quality - should work well",
    QualityRecommendation.ACCEPTABLE: "Acceptable quality - may have some recognition issues",
    QualityRecommendation.POOR: "Poor quality - consider retaking the photo",
    QualityRecommendation.UNUSABLE: "Unusable quality - please retake the photo",
}


class QualityCheck(BaseModel):
    """Result of a single image check."""
    model_config = ConfigDict(frozen=True)

    check_type: QualityCheckType = Field(..., description="Which check produced this result")
    score: float = Field(..., description="Check score (0-1)")
    passed: bool = Field(..., description="Whether the per-check threshold was met")
    details: str = Field(default="", description="Human-readable measurement")

    @field_validator('score')
    @classmethod
    def validate_score(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('Check score must be between 0.0 and 1.0')
        return v


class QualityAssessment(BaseModel):
    """
    Aggregated quality verdict for one image.

    ``overall_score`` is a weighted average over the checks that ran.
    """
    model_config = ConfigDict(frozen=True)

    overall_score: float = Field(..., description="Weighted quality score (0-1)")
    checks: List[QualityCheck] = Field(default_factory=list)
    recommendation: QualityRecommendation = Field(..., description="Quality bucket")
    estimated_ocr_success: float = Field(..., description="Predicted chance of a useful recognition pass")
    assessment_timestamp: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('overall_score')
    @classmethod
    def validate_overall_score(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('Overall quality score must be between 0.0 and 1.0')
        return v

    @property
    def passed_checks(self) -> List[QualityCheck]:
        return [check for check in self.checks if check.passed]

    @property
    def failed_checks(self) -> List[QualityCheck]:
        return [check for check in self.checks if not check.passed]

    @property
    def quality_summary(self) -> Dict[str, Any]:
        """Get concise quality summary."""
        return {
            "overall_score": round(self.overall_score, 2),
            "recommendation": self.recommendation.value,
            "estimated_ocr_success": round(self.estimated_ocr_success, 2),
            "passed_checks": [check.check_type.value for check in self.passed_checks],
            "failed_checks": [check.check_type.value for check in self.failed_checks],
        }

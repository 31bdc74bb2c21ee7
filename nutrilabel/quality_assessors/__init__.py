"""
Image quality assessment performed before text recognition.
"""

from .image_quality_assessor import ImageQualityAssessor, DEFAULT_CHECKS, CHECK_WEIGHTS

__all__ = [
    "ImageQualityAssessor",
    "DEFAULT_CHECKS",
    "CHECK_WEIGHTS"
]

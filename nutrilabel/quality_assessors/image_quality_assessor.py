"""
Image quality assessor for deciding whether a photo is worth recognizing.

Each check measures one property of the image with OpenCV and returns a
``QualityCheck``. Checks are plain callables keyed by ``QualityCheckType``
so callers can swap or drop them.
"""

from typing import Callable, Dict, List, Optional
import logging

import cv2
import numpy as np

from ..models import QualityAssessment, QualityCheck, QualityCheckType, QualityRecommendation
from ..ocr_processors.base import ImageInput, convert_to_numpy, to_grayscale

logger = logging.getLogger(__name__)

QualityCheckFn = Callable[[np.ndarray], Optional[QualityCheck]]

CHECK_WEIGHTS = {
    QualityCheckType.RESOLUTION: 0.25,
    QualityCheckType.BRIGHTNESS: 0.15,
    QualityCheckType.CONTRAST: 0.20,
    QualityCheckType.SHARPNESS: 0.25,
    QualityCheckType.TEXT_AREA: 0.15,
}

TARGET_PIXELS = 800 * 600
MIN_PIXELS = 300 * 400
MIN_BRIGHTNESS = 0.2
MAX_BRIGHTNESS = 0.8
RMS_CONTRAST_TARGET = 0.25
MIN_CONTRAST_SCORE = 0.3
LAPLACIAN_TARGET = 500.0
MIN_SHARPNESS_SCORE = 0.4
TEXT_COVERAGE_TARGET = 0.6
MIN_TEXT_AREA_SCORE = 0.3

DEFAULT_SCORE_WITHOUT_CHECKS = 0.8


def check_resolution(image: np.ndarray) -> QualityCheck:
    height, width = image.shape[:2]
    pixels = width * height
    return QualityCheck(
        check_type=QualityCheckType.RESOLUTION,
        score=min(1.0, pixels / TARGET_PIXELS),
        passed=pixels >= MIN_PIXELS,
        details=f"{width}x{height}"
    )


def check_brightness(image: np.ndarray) -> QualityCheck:
    luma = float(np.mean(to_grayscale(image))) / 255.0
    return QualityCheck(
        check_type=QualityCheckType.BRIGHTNESS,
        score=max(0.0, 1.0 - abs(luma - 0.5) * 2),
        passed=MIN_BRIGHTNESS <= luma <= MAX_BRIGHTNESS,
        details=f"mean luma {luma:.2f}"
    )


def check_contrast(image: np.ndarray) -> QualityCheck:
    rms = float(np.std(to_grayscale(image))) / 255.0
    score = min(1.0, rms / RMS_CONTRAST_TARGET)
    return QualityCheck(
        check_type=QualityCheckType.CONTRAST,
        score=score,
        passed=score >= MIN_CONTRAST_SCORE,
        details=f"rms contrast {rms:.3f}"
    )


def check_sharpness(image: np.ndarray) -> QualityCheck:
    variance = float(cv2.Laplacian(to_grayscale(image), cv2.CV_64F).var())
    score = min(1.0, variance / LAPLACIAN_TARGET)
    return QualityCheck(
        check_type=QualityCheckType.SHARPNESS,
        score=score,
        passed=score >= MIN_SHARPNESS_SCORE,
        details=f"laplacian variance {variance:.1f}"
    )


def check_text_area(image: np.ndarray) -> QualityCheck:
    """Estimate how much of the frame is covered by text-like edge blobs."""
    gray = to_grayscale(image)
    edges = cv2.Canny(gray, 50, 150)
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (9, 3))
    blobs = cv2.dilate(edges, kernel, iterations=2)
    coverage = float(np.count_nonzero(blobs)) / blobs.size
    score = min(1.0, coverage / TEXT_COVERAGE_TARGET)
    return QualityCheck(
        check_type=QualityCheckType.TEXT_AREA,
        score=score,
        passed=score >= MIN_TEXT_AREA_SCORE,
        details=f"text coverage {coverage:.2f}"
    )


DEFAULT_CHECKS: Dict[QualityCheckType, QualityCheckFn] = {
    QualityCheckType.RESOLUTION: check_resolution,
    QualityCheckType.BRIGHTNESS: check_brightness,
    QualityCheckType.CONTRAST: check_contrast,
    QualityCheckType.SHARPNESS: check_sharpness,
    QualityCheckType.TEXT_AREA: check_text_area,
}


class ImageQualityAssessor:
    """
    Scores an image on resolution, brightness, contrast, sharpness and text coverage.

    ``assess`` never raises. A check that fails to compute is logged and
    left out of the weighted score.
    """

    def __init__(self, checks: Optional[Dict[QualityCheckType, QualityCheckFn]] = None):
        self.checks = dict(DEFAULT_CHECKS if checks is None else checks)
        logger.debug(f"Image quality assessor initialized with checks: {[c.value for c in self.checks]}")

    def assess(self, image: ImageInput) -> QualityAssessment:
        """
        Assess image quality before text recognition.

        Args:
            image: Image as numpy array, PIL Image, bytes or path

        Returns:
            Quality assessment; undecodable images are rated unusable
        """
        try:
            array = convert_to_numpy(image)
        except ValueError as e:
            logger.warning(f"Quality assessment could not decode image: {e}")
            return QualityAssessment(
                overall_score=0.0,
                recommendation=QualityRecommendation.UNUSABLE,
                estimated_ocr_success=0.1
            )

        if array.size == 0:
            logger.warning("Quality assessment received an empty image")
            return QualityAssessment(
                overall_score=0.0,
                recommendation=QualityRecommendation.UNUSABLE,
                estimated_ocr_success=0.1
            )

        results = self._run_checks(array)
        overall_score = self._calculate_overall_score(results)
        failed = sum(1 for check in results if not check.passed)
        estimated_success = min(max(overall_score * 0.9 - 0.1 * failed, 0.1), 0.95)

        assessment = QualityAssessment(
            overall_score=overall_score,
            checks=results,
            recommendation=QualityRecommendation.from_score(overall_score),
            estimated_ocr_success=estimated_success
        )

        logger.info(f"Quality assessment: score={overall_score:.2f}, "
                    f"recommendation={assessment.recommendation.value}, failed checks={failed}")
        return assessment

    @staticmethod
    def basic_assessment() -> QualityAssessment:
        """Assessment used when quality analysis is turned off."""
        return QualityAssessment(
            overall_score=0.8,
            recommendation=QualityRecommendation.GOOD,
            estimated_ocr_success=0.85
        )

    def _run_checks(self, image: np.ndarray) -> List[QualityCheck]:
        results = []
        for check_type, check in self.checks.items():
            try:
                result = check(image)
            except Exception as e:
                logger.warning(f"Quality check {check_type.value} failed: {e}")
                continue
            if result is None:
                logger.debug(f"Quality check {check_type.value} produced no result")
                continue
            results.append(result)
        return results

    def _calculate_overall_score(self, results: List[QualityCheck]) -> float:
        if not results:
            return DEFAULT_SCORE_WITHOUT_CHECKS

        total_weight = sum(CHECK_WEIGHTS.get(check.check_type, 0.0) for check in results)
        if total_weight == 0:
            return DEFAULT_SCORE_WITHOUT_CHECKS

        weighted = sum(check.score * CHECK_WEIGHTS.get(check.check_type, 0.0) for check in results)
        return min(max(weighted / total_weight, 0.0), 1.0)

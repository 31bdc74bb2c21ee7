"""
Extraction orchestrator that coordinates recognition, parsing and recommendations.
"""

import asyncio
import threading
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from .config import PipelineConfig
from .exceptions import (
    ExtractionCancelledError, InvalidImageFormatError, OCRServiceError, ServiceBusyError
)
from .models import (
    Cancelled, ExtractionMetrics, ExtractionOutcome, ExtractionState, Failed, LowConfidence,
    ManualFallback, NutritionExtractionResult, OCRExtractionResult, ParsedNutritionData,
    QualityAssessment, Recommendation, RecommendationPriority, RecommendationType, Success,
    WeightDetectionResult
)
from .ocr_coordinator import OCRCoordinator
from .ocr_processors import BaseTextRecognizer, ImagePreprocessor, convert_to_numpy, create_from_config
from .ocr_processors.base import ImageInput
from .parsers import NutritionFactParser, WeightReadingParser
from .quality_assessors import ImageQualityAssessor

logger = logging.getLogger(__name__)

LOW_IMAGE_QUALITY = 0.6
LOW_TEXT_CONFIDENCE = 0.7
LOW_NUTRITION_CONFIDENCE = 0.6
MANUAL_ENTRY_CONFIDENCE = 0.3

StateCallback = Callable[[ExtractionState], None]


class NutritionExtractionOrchestrator:
    """
    Main entry point for nutrition label and scale display extraction.

    Coordinates the OCR coordinator, nutrition parser and weight parser,
    tracks the extraction state and turns results into recommendations.
    Only one extraction runs at a time per instance.
    """

    def __init__(self,
                 recognizer: BaseTextRecognizer,
                 config: Optional[PipelineConfig] = None,
                 quality_assessor: Optional[ImageQualityAssessor] = None,
                 state_callback: Optional[StateCallback] = None):
        """
        Initialize the orchestrator.

        Args:
            recognizer: Text recognizer used for every image
            config: Pipeline configuration, defaults to ``PipelineConfig()``
            quality_assessor: Assessor override, e.g. with custom checks
            state_callback: Called with each new ``ExtractionState``
        """
        self.config = config or PipelineConfig()
        self.quality_assessor = quality_assessor or ImageQualityAssessor()
        self.preprocessor = ImagePreprocessor()
        self.coordinator = OCRCoordinator(
            recognizer,
            config=self.config.ocr,
            quality_assessor=self.quality_assessor,
            preprocessor=self.preprocessor,
            progress_callback=self._on_ocr_progress
        )
        self.nutrition_parser = NutritionFactParser(self.config.parser)
        self.weight_parser = WeightReadingParser(self.config.weight)
        self.state_callback = state_callback

        self.state = ExtractionState.IDLE
        self.last_result: Optional[NutritionExtractionResult] = None
        self.last_error: Optional[OCRServiceError] = None

        self._lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cancel_requested = False

        logger.info(f"Extraction orchestrator initialized with {recognizer.engine_name} recognizer")

    @classmethod
    def from_config(cls, config: PipelineConfig, **kwargs) -> "NutritionExtractionOrchestrator":
        """Build an orchestrator with the recognizer named in ``config``."""
        return cls(create_from_config(config.ocr.recognizer), config=config, **kwargs)

    @property
    def progress(self) -> float:
        return self.coordinator.progress

    @property
    def is_processing(self) -> bool:
        return self._lock.locked()

    async def extract_nutrition(self, image: ImageInput) -> NutritionExtractionResult:
        """
        Extract nutrition facts from a label photo.

        Args:
            image: Image as numpy array, PIL Image, bytes or path

        Returns:
            OCR result, parsed nutrition, metrics and recommendations

        Raises:
            OCRServiceError: Any coordinator failure, including cancellation
        """
        return await self._run_exclusive("Nutrition extraction", lambda: self._extract_nutrition(image))

    async def detect_weight(self, image: ImageInput) -> WeightDetectionResult:
        """
        Read a weight from a kitchen-scale display or package label.

        Recognition runs on the original image plus LED-oriented variants
        when enabled, and the pooled fragments go to the weight parser.

        Raises:
            OCRServiceError: Invalid image, timeout, engine failure or cancellation
        """
        return await self._run_exclusive("Weight detection", lambda: self._detect_weight(image))

    def assess_quality(self, image: ImageInput) -> QualityAssessment:
        """Assess image quality without running recognition."""
        return self.quality_assessor.assess(image)

    def cancel(self) -> None:
        """
        Cancel the in-flight extraction, if any.

        The state goes back to idle immediately and the awaiting caller
        gets ``ExtractionCancelledError``, whichever stage was running.
        """
        task = self._task
        if task is None or task.done():
            return

        logger.info("Cancelling in-flight extraction")
        self._cancel_requested = True
        self.coordinator.cancel()
        self._set_state(ExtractionState.IDLE)

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if self._loop is not None and running_loop is not self._loop:
            self._loop.call_soon_threadsafe(task.cancel)
        else:
            task.cancel()

    async def run(self, image: ImageInput) -> ExtractionOutcome:
        """
        Extract nutrition facts and classify the outcome.

        Never raises for pipeline errors; they are reported as ``Failed``.
        """
        try:
            result = await self.extract_nutrition(image)
        except ExtractionCancelledError:
            return Cancelled()
        except OCRServiceError as e:
            return Failed(
                error_type=type(e).__name__,
                message=e.message,
                is_recoverable=e.is_recoverable
            )

        if not result.parsed_nutrition.has_basic_nutrition:
            return ManualFallback(
                result=result,
                reason="No calories or macronutrients could be extracted"
            )
        if result.parsed_nutrition.confidence.overall_score < self.config.confidence_threshold:
            return LowConfidence(result=result)
        return Success(result=result)

    def generate_recommendations(self, ocr_result: OCRExtractionResult,
                                 parsed: ParsedNutritionData) -> List[Recommendation]:
        """Build user-facing advice from the OCR pass and the parsed nutrition."""
        recommendations = []

        if ocr_result.image_quality_score < LOW_IMAGE_QUALITY:
            recommendations.append(Recommendation(
                type=RecommendationType.IMAGE_QUALITY,
                message="Image quality is low. Try taking a clearer photo with better lighting.",
                priority=RecommendationPriority.HIGH
            ))

        if ocr_result.processing_metrics.average_confidence < LOW_TEXT_CONFIDENCE:
            recommendations.append(Recommendation(
                type=RecommendationType.LIGHTING,
                message="Text recognition confidence is low. Ensure good lighting and clear text visibility.",
                priority=RecommendationPriority.MEDIUM
            ))

        confidence = parsed.confidence.overall_score
        if confidence < LOW_NUTRITION_CONFIDENCE:
            if parsed.has_basic_nutrition:
                recommendations.append(Recommendation(
                    type=RecommendationType.FRAMING,
                    message=("Some nutrition information was found but confidence is low. "
                             "Try centering the nutrition label in the frame."),
                    priority=RecommendationPriority.MEDIUM
                ))
            else:
                recommendations.append(Recommendation(
                    type=RecommendationType.RETAKE,
                    message=("No nutrition information could be reliably extracted. "
                             "Consider retaking the photo or entering data manually."),
                    priority=RecommendationPriority.HIGH
                ))

        if confidence < MANUAL_ENTRY_CONFIDENCE and not parsed.has_basic_nutrition:
            recommendations.append(Recommendation(
                type=RecommendationType.MANUAL_ENTRY,
                message="Automatic extraction failed. Manual entry may be more reliable for this label.",
                priority=RecommendationPriority.HIGH
            ))

        return recommendations

    def get_status(self) -> Dict[str, Any]:
        """Current state, progress and the last error, for status displays."""
        return {
            "state": self.state.value,
            "description": self.state.description,
            "progress": self.progress,
            "is_processing": self.is_processing,
            "last_error": str(self.last_error) if self.last_error else None,
        }

    async def _run_exclusive(self, operation: str, work: Callable[[], Awaitable]):
        if not self._lock.acquire(blocking=False):
            raise ServiceBusyError()

        self._cancel_requested = False
        self._loop = asyncio.get_running_loop()
        try:
            self._task = asyncio.ensure_future(work())
            try:
                return await self._task
            except asyncio.CancelledError:
                if not self._cancel_requested:
                    raise
                logger.info(f"{operation} cancelled")
                self._set_state(ExtractionState.IDLE)
                raise ExtractionCancelledError() from None
            except ExtractionCancelledError:
                logger.info(f"{operation} cancelled")
                self._set_state(ExtractionState.IDLE)
                raise
            except OCRServiceError as e:
                logger.error(f"{operation} failed: {e}")
                self.last_error = e
                self._set_state(ExtractionState.ERROR)
                raise
        finally:
            self._task = None
            self._lock.release()

    async def _extract_nutrition(self, image: ImageInput) -> NutritionExtractionResult:
        start_time = time.perf_counter()
        self._set_state(ExtractionState.QUALITY_CHECK)
        ocr_result = await self.coordinator.extract(image)
        ocr_time = time.perf_counter() - start_time

        self._set_state(ExtractionState.PARSING)
        parsing_start = time.perf_counter()
        parsed = self.nutrition_parser.parse(ocr_result.fragments)
        parsing_time = time.perf_counter() - parsing_start

        self._set_state(ExtractionState.RECOMMENDING)
        recommendations = self.generate_recommendations(ocr_result, parsed)

        metrics = ExtractionMetrics(
            total_processing_time=time.perf_counter() - start_time,
            ocr_processing_time=ocr_time,
            parsing_time=parsing_time,
            image_quality_score=ocr_result.image_quality_score,
            text_recognition_accuracy=ocr_result.processing_metrics.average_confidence,
            nutrition_parsing_accuracy=parsed.confidence.overall_score
        )

        result = NutritionExtractionResult(
            ocr_result=ocr_result,
            parsed_nutrition=parsed,
            extraction_metrics=metrics,
            recommendations=recommendations
        )

        self.last_result = result
        self.last_error = None
        self._set_state(ExtractionState.COMPLETED)

        logger.info(f"Nutrition extraction completed in {metrics.total_processing_time:.2f}s: "
                    f"{result.summary}, efficiency {metrics.efficiency.value}")
        return result

    async def _detect_weight(self, image: ImageInput) -> WeightDetectionResult:
        try:
            array = convert_to_numpy(image)
        except ValueError as e:
            raise InvalidImageFormatError() from e

        self._set_state(ExtractionState.OCR)
        variants = []
        if self.config.weight.enable_led_variants:
            variants = await asyncio.to_thread(self.preprocessor.led_variants, array)

        fragments = await self.coordinator.recognize_variants(array, variants)

        self._set_state(ExtractionState.PARSING)
        result = self.weight_parser.detect(fragments)

        self.last_error = None
        self._set_state(ExtractionState.COMPLETED)
        if result.best_weight is not None:
            logger.info(f"Detected weight {result.best_weight.display_string} "
                        f"(confidence {result.confidence:.2f})")
        else:
            logger.info("No weight detected")
        return result

    def _on_ocr_progress(self, progress: float) -> None:
        if progress >= 0.3 and self.state == ExtractionState.QUALITY_CHECK:
            self._set_state(ExtractionState.OCR)

    def _set_state(self, state: ExtractionState) -> None:
        if state == self.state:
            return
        logger.debug(f"Extraction state: {self.state.value} -> {state.value}")
        self.state = state
        if self.state_callback is not None:
            try:
                self.state_callback(state)
            except Exception as e:
                logger.warning(f"State callback failed: {e}")

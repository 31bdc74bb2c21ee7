"""
OCR coordinator: validation, quality gating, preprocessing and recognition.

One coordinator runs at most one extraction at a time. Recognition runs in
a worker thread and races a deadline; ``cancel()`` aborts the in-flight
extraction from another task.
"""

import asyncio
import threading
import time
from typing import Awaitable, Callable, List, Optional, Sequence
import logging

import numpy as np

from .config import OCRServiceConfig
from .document_analyzers import ReadingOrderAnalyzer
from .exceptions import (
    EngineError, ExtractionCancelledError, ImageQualityTooLowError, InvalidImageFormatError,
    NoTextFoundError, ProcessingTimeoutError, ServiceBusyError
)
from .models import OCRExtractionResult, OCRProcessingMetrics, QualityAssessment, TextFragment
from .ocr_processors import BaseTextRecognizer, ImagePreprocessor, convert_to_numpy
from .ocr_processors.base import ImageInput
from .quality_assessors import ImageQualityAssessor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class OCRCoordinator:
    """
    Runs one image through validation, quality gating, preprocessing and recognition.

    Progress moves through 0.1 (validated), 0.3 (quality checked),
    0.5 (preprocessed), 0.9 (recognized) and 1.0 (done).
    """

    def __init__(self,
                 recognizer: BaseTextRecognizer,
                 config: Optional[OCRServiceConfig] = None,
                 quality_assessor: Optional[ImageQualityAssessor] = None,
                 preprocessor: Optional[ImagePreprocessor] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        self.recognizer = recognizer
        self.config = config or OCRServiceConfig.default()
        self.quality_assessor = quality_assessor or ImageQualityAssessor()
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.reading_order = ReadingOrderAnalyzer()
        self.progress_callback = progress_callback

        self.progress = 0.0
        self.last_metrics: Optional[OCRProcessingMetrics] = None

        self._lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cancel_requested = False

        logger.info(f"OCR coordinator initialized with {recognizer.engine_name} recognizer")

    @property
    def is_processing(self) -> bool:
        return self._lock.locked()

    async def extract(self, image: ImageInput) -> OCRExtractionResult:
        """
        Extract text fragments from an image.

        Args:
            image: Image as numpy array, PIL Image, bytes or path

        Returns:
            Fragments in reading order with quality and timing metrics

        Raises:
            ServiceBusyError: Another extraction is running on this coordinator
            InvalidImageFormatError: Image cannot be decoded or is empty
            ImageQualityTooLowError: Quality score below ``minimum_quality_score``
            ProcessingTimeoutError: Recognition exceeded ``max_processing_time``
            EngineError: The recognizer raised
            NoTextFoundError: The recognizer returned no fragments
            ExtractionCancelledError: ``cancel()`` was called
        """
        return await self._run_exclusive(lambda: self._extract(image))

    async def recognize_variants(self, image: ImageInput,
                                 variants: Sequence[np.ndarray] = ()) -> List[TextFragment]:
        """
        Recognize the image and each variant, pooling all fragments.

        The whole batch shares one ``max_processing_time`` deadline. A variant
        that fails is skipped; a failure on the original image is an error.
        """
        return await self._run_exclusive(lambda: self._recognize_variants(image, variants))

    def cancel(self) -> None:
        """Cancel the in-flight extraction, if any."""
        task = self._task
        if task is None or task.done():
            return

        logger.info("Cancelling in-flight extraction")
        self._cancel_requested = True
        self._set_progress(0.0)

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if self._loop is not None and running_loop is not self._loop:
            self._loop.call_soon_threadsafe(task.cancel)
        else:
            task.cancel()

    async def _run_exclusive(self, work: Callable[[], Awaitable]):
        if not self._lock.acquire(blocking=False):
            raise ServiceBusyError()

        self._cancel_requested = False
        self._loop = asyncio.get_running_loop()
        try:
            self._set_progress(0.0)
            self._task = asyncio.ensure_future(work())
            try:
                return await self._task
            except asyncio.CancelledError:
                if self._cancel_requested:
                    raise ExtractionCancelledError() from None
                raise
        finally:
            self._task = None
            self._lock.release()

    async def _extract(self, image: ImageInput) -> OCRExtractionResult:
        start_time = time.perf_counter()

        array = self._validate(image)
        validation_time = time.perf_counter() - start_time
        self._set_progress(0.1)

        quality_start = time.perf_counter()
        if self.config.enable_quality_analysis:
            assessment = self.quality_assessor.assess(array)
        else:
            assessment = ImageQualityAssessor.basic_assessment()
        quality_time = time.perf_counter() - quality_start

        if assessment.overall_score < self.config.minimum_quality_score:
            logger.warning(f"Image rejected: quality {assessment.overall_score:.2f} "
                           f"below {self.config.minimum_quality_score:.2f}")
            raise ImageQualityTooLowError(assessment.overall_score)
        self._set_progress(0.3)

        preprocessing_start = time.perf_counter()
        processed, preprocessing_applied = await self._preprocess(array)
        preprocessing_time = time.perf_counter() - preprocessing_start
        self._set_progress(0.5)

        ocr_start = time.perf_counter()
        fragments = await self._recognize_with_deadline(lambda: self._recognize(processed))
        ocr_time = time.perf_counter() - ocr_start
        self._set_progress(0.9)

        if not fragments:
            raise NoTextFoundError()

        ordered = self.reading_order.order(fragments)
        metrics = OCRProcessingMetrics(
            image_validation_time=validation_time,
            quality_assessment_time=quality_time,
            preprocessing_time=preprocessing_time,
            ocr_processing_time=ocr_time,
            total_processing_time=time.perf_counter() - start_time,
            image_quality_checks=assessment.checks,
            text_confidence_distribution=[fragment.confidence for fragment in ordered]
        )
        self.last_metrics = metrics

        logger.info(f"OCR extraction completed: {metrics.summary}")
        self._set_progress(1.0)

        return OCRExtractionResult(
            fragments=ordered,
            image_quality_score=assessment.overall_score,
            quality_assessment=assessment if self.config.enable_quality_analysis else None,
            preprocessing_applied=preprocessing_applied,
            processing_metrics=metrics
        )

    async def _recognize_variants(self, image: ImageInput,
                                  variants: Sequence[np.ndarray]) -> List[TextFragment]:
        start_time = time.perf_counter()
        array = self._validate(image)
        self._set_progress(0.1)

        def recognize_all() -> List[TextFragment]:
            pooled = list(self._recognize(array))
            for index, variant in enumerate(variants):
                try:
                    pooled.extend(self._recognize(variant))
                except Exception as e:
                    logger.warning(f"Recognition failed on variant {index}: {e}")
            return pooled

        fragments = await self._recognize_with_deadline(recognize_all)
        self._set_progress(0.9)

        self.last_metrics = OCRProcessingMetrics(
            ocr_processing_time=time.perf_counter() - start_time,
            total_processing_time=time.perf_counter() - start_time,
            text_confidence_distribution=[fragment.confidence for fragment in fragments]
        )
        logger.info(f"Recognized {len(fragments)} fragments from {len(variants) + 1} images")
        self._set_progress(1.0)
        return fragments

    def _validate(self, image: ImageInput) -> np.ndarray:
        try:
            array = convert_to_numpy(image)
        except ValueError as e:
            logger.error(f"Image validation failed: {e}")
            raise InvalidImageFormatError() from e

        if array.ndim < 2 or array.shape[0] == 0 or array.shape[1] == 0:
            logger.error(f"Image validation failed: empty image with shape {array.shape}")
            raise InvalidImageFormatError()
        return array

    async def _preprocess(self, image: np.ndarray):
        if not self.config.enable_preprocessing:
            return image, False
        try:
            return await asyncio.to_thread(self.preprocessor.enhance, image), True
        except Exception as e:
            logger.warning(f"Preprocessing failed, using original image: {e}")
            return image, False

    def _recognize(self, image: np.ndarray) -> List[TextFragment]:
        recognizer_config = self.config.recognizer
        return self.recognizer.recognize(
            image,
            languages=recognizer_config.languages,
            custom_vocabulary=recognizer_config.custom_vocabulary,
            min_confidence=recognizer_config.min_confidence
        )

    async def _recognize_with_deadline(self, work: Callable[[], List[TextFragment]]) -> List[TextFragment]:
        deadline = self.config.max_processing_time
        ocr_task = asyncio.ensure_future(asyncio.to_thread(work))
        timer = asyncio.ensure_future(asyncio.sleep(deadline))

        try:
            done, _ = await asyncio.wait({ocr_task, timer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (ocr_task, timer):
                if not task.done():
                    task.cancel()

        if ocr_task not in done:
            logger.error(f"Text recognition exceeded {deadline:.1f}s deadline")
            raise ProcessingTimeoutError(deadline)

        try:
            return ocr_task.result()
        except Exception as e:
            logger.error(f"{self.recognizer.engine_name} recognizer failed: {e}")
            raise EngineError(e) from e

    def _set_progress(self, value: float) -> None:
        self.progress = value
        if self.progress_callback is not None:
            try:
                self.progress_callback(value)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

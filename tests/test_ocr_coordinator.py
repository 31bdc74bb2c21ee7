"""Tests for the OCR coordinator."""

import asyncio

import numpy as np
import pytest

from nutrilabel.config import OCRServiceConfig
from nutrilabel.exceptions import (
    EngineError, ExtractionCancelledError, ImageQualityTooLowError, InvalidImageFormatError,
    NoTextFoundError, ProcessingTimeoutError, ServiceBusyError
)
from nutrilabel.models import QualityCheck, QualityCheckType
from nutrilabel.ocr_coordinator import OCRCoordinator
from nutrilabel.ocr_processors import StaticTextRecognizer
from nutrilabel.quality_assessors import ImageQualityAssessor


def quick_config(**overrides):
    settings = dict(enable_quality_analysis=False, enable_preprocessing=False, max_processing_time=5.0)
    settings.update(overrides)
    return OCRServiceConfig(**settings)


def assessor_scoring(score):
    """Assessor whose only check returns ``score``."""
    return ImageQualityAssessor(checks={
        QualityCheckType.SHARPNESS: lambda image: QualityCheck(
            check_type=QualityCheckType.SHARPNESS, score=score, passed=True
        )
    })


@pytest.mark.asyncio
async def test_extract_returns_fragments_in_reading_order(gray_image, label_fragments):
    progress = []
    recognizer = StaticTextRecognizer(list(reversed(label_fragments)))
    coordinator = OCRCoordinator(recognizer, quick_config(), progress_callback=progress.append)

    result = await coordinator.extract(gray_image)

    assert [f.text for f in result.fragments] == ["Calories 250", "Protein 12g", "Total Fat 5g"]
    assert result.image_quality_score == pytest.approx(0.8)
    assert progress == [0.0, 0.1, 0.3, 0.5, 0.9, 1.0]
    assert coordinator.progress == 1.0
    assert coordinator.last_metrics == result.processing_metrics
    assert result.processing_metrics.text_confidence_distribution == [0.95, 0.90, 0.85]


@pytest.mark.asyncio
async def test_recognizer_min_confidence_is_applied(gray_image, fragment):
    recognizer = StaticTextRecognizer([fragment("Calories 250", 0.95), fragment("noise", 0.4, cy=0.9)])
    coordinator = OCRCoordinator(recognizer, quick_config())

    result = await coordinator.extract(gray_image)

    assert [f.text for f in result.fragments] == ["Calories 250"]


@pytest.mark.asyncio
async def test_preprocessing_runs_when_enabled(label_image, label_fragments):
    coordinator = OCRCoordinator(StaticTextRecognizer(label_fragments), quick_config(enable_preprocessing=True))

    result = await coordinator.extract(label_image)

    assert result.preprocessing_applied


@pytest.mark.asyncio
async def test_quality_gate_boundary_passes_at_threshold(gray_image, label_fragments):
    coordinator = OCRCoordinator(
        StaticTextRecognizer(label_fragments),
        quick_config(enable_quality_analysis=True, minimum_quality_score=0.6),
        quality_assessor=assessor_scoring(0.6),
    )

    result = await coordinator.extract(gray_image)

    assert result.image_quality_score == pytest.approx(0.6)
    assert result.quality_assessment is not None


@pytest.mark.asyncio
async def test_quality_gate_rejects_below_threshold(gray_image, label_fragments):
    recognizer = StaticTextRecognizer(label_fragments)
    coordinator = OCRCoordinator(
        recognizer,
        quick_config(enable_quality_analysis=True, minimum_quality_score=0.6),
        quality_assessor=assessor_scoring(0.6 - 1e-9),
    )

    with pytest.raises(ImageQualityTooLowError) as excinfo:
        await coordinator.extract(gray_image)

    assert excinfo.value.score == pytest.approx(0.6)
    assert recognizer.calls == 0


@pytest.mark.asyncio
async def test_invalid_images_are_rejected():
    coordinator = OCRCoordinator(StaticTextRecognizer(), quick_config())

    with pytest.raises(InvalidImageFormatError):
        await coordinator.extract(b"not an image")
    with pytest.raises(InvalidImageFormatError):
        await coordinator.extract(np.zeros((0, 0, 3), dtype=np.uint8))


@pytest.mark.asyncio
async def test_no_text_found(gray_image):
    coordinator = OCRCoordinator(StaticTextRecognizer([]), quick_config())

    with pytest.raises(NoTextFoundError):
        await coordinator.extract(gray_image)


@pytest.mark.asyncio
async def test_engine_failure_is_wrapped(gray_image):
    failure = RuntimeError("engine crashed")
    coordinator = OCRCoordinator(StaticTextRecognizer(error=failure), quick_config())

    with pytest.raises(EngineError) as excinfo:
        await coordinator.extract(gray_image)

    assert excinfo.value.inner is failure


@pytest.mark.asyncio
async def test_timeout(gray_image, label_fragments):
    recognizer = StaticTextRecognizer(label_fragments, delay=0.5)
    coordinator = OCRCoordinator(recognizer, quick_config(max_processing_time=0.05))

    with pytest.raises(ProcessingTimeoutError):
        await coordinator.extract(gray_image)

    assert not coordinator.is_processing


@pytest.mark.asyncio
async def test_second_extraction_is_rejected_while_busy(gray_image, label_fragments):
    coordinator = OCRCoordinator(StaticTextRecognizer(label_fragments, delay=0.2), quick_config())

    first = asyncio.create_task(coordinator.extract(gray_image))
    await asyncio.sleep(0.05)

    with pytest.raises(ServiceBusyError):
        await coordinator.extract(gray_image)

    result = await first
    assert result.has_text


@pytest.mark.asyncio
async def test_cancel_surfaces_cancelled_error(gray_image, label_fragments):
    coordinator = OCRCoordinator(StaticTextRecognizer(label_fragments, delay=0.3), quick_config())

    task = asyncio.create_task(coordinator.extract(gray_image))
    await asyncio.sleep(0.05)
    coordinator.cancel()

    with pytest.raises(ExtractionCancelledError):
        await task

    assert coordinator.progress == 0.0
    assert not coordinator.is_processing


@pytest.mark.asyncio
async def test_recognize_variants_pools_fragments(gray_image, scale_fragments):
    recognizer = StaticTextRecognizer(scale_fragments)
    coordinator = OCRCoordinator(recognizer, quick_config())

    fragments = await coordinator.recognize_variants(gray_image, [gray_image, gray_image])

    assert recognizer.calls == 3
    assert len(fragments) == 3 * len(scale_fragments)

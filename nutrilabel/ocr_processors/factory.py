"""
Factory for creating text recognizers.
"""

import logging

from ..config import RecognizerConfig
from .base import BaseTextRecognizer
from .easyocr_processor import EasyOCRRecognizer
from .static_processor import StaticTextRecognizer
from .tesseract_processor import TesseractRecognizer

logger = logging.getLogger(__name__)

SUPPORTED_ENGINES = ('easyocr', 'tesseract', 'static')


def create_text_recognizer(engine: str, **kwargs) -> BaseTextRecognizer:
    """
    Create a text recognizer instance.

    Args:
        engine: Engine name ('easyocr', 'tesseract', 'static')
        **kwargs: Engine-specific configuration parameters

    Returns:
        Text recognizer instance

    Raises:
        ValueError: If engine is not supported
        RuntimeError: If engine is not available
    """
    engine = engine.lower().strip()

    if engine == 'easyocr':
        recognizer = EasyOCRRecognizer(
            languages=kwargs.get('languages', ['en']),
            use_gpu=kwargs.get('use_gpu', False),
            recognition_level=kwargs.get('recognition_level', 'accurate'),
            engine_timeout=kwargs.get('engine_timeout')
        )

    elif engine == 'tesseract':
        recognizer = TesseractRecognizer(
            languages=kwargs.get('languages', ['en']),
            page_segmentation_mode=kwargs.get('psm', 11),
            ocr_engine_mode=kwargs.get('oem', 3),
            engine_timeout=kwargs.get('engine_timeout')
        )

    elif engine == 'static':
        recognizer = StaticTextRecognizer(fragments=kwargs.get('fragments'))

    else:
        raise ValueError(f"Unsupported OCR engine: {engine}")

    if not recognizer.is_available():
        raise RuntimeError(f"OCR engine {engine} is not available")

    logger.info(f"Created {engine} text recognizer")
    return recognizer


def create_from_config(config: RecognizerConfig) -> BaseTextRecognizer:
    """Create the recognizer a ``RecognizerConfig`` names."""
    return create_text_recognizer(
        config.engine,
        languages=config.languages,
        use_gpu=config.use_gpu,
        recognition_level=config.recognition_level,
        engine_timeout=config.engine_timeout
    )

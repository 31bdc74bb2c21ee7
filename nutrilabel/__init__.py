"""
nutrilabel: nutrition label and kitchen-scale reading from photos.

Text is recognized with a pluggable OCR engine, ordered into lines, then
parsed into nutrition facts or weight readings with confidence scores.
"""

from .config import (
    PipelineConfig, OCRServiceConfig, RecognizerConfig, NutritionParserConfig,
    WeightDetectionConfig, load_config
)
from .exceptions import (
    OCRServiceError, InvalidImageFormatError, ImageQualityTooLowError, NoTextFoundError,
    ProcessingTimeoutError, ServiceBusyError, EngineError, ExtractionCancelledError
)
from .ocr_coordinator import OCRCoordinator
from .orchestrator import NutritionExtractionOrchestrator
from .parsers import NutritionFactParser, WeightReadingParser
from .quality_assessors import ImageQualityAssessor
from .ocr_processors import create_text_recognizer

__version__ = "0.1.0"

__all__ = [
    "PipelineConfig",
    "OCRServiceConfig",
    "RecognizerConfig",
    "NutritionParserConfig",
    "WeightDetectionConfig",
    "load_config",
    "OCRServiceError",
    "InvalidImageFormatError",
    "ImageQualityTooLowError",
    "NoTextFoundError",
    "ProcessingTimeoutError",
    "ServiceBusyError",
    "EngineError",
    "ExtractionCancelledError",
    "OCRCoordinator",
    "NutritionExtractionOrchestrator",
    "NutritionFactParser",
    "WeightReadingParser",
    "ImageQualityAssessor",
    "create_text_recognizer",
]

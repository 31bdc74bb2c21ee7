"""
Text recognizers and image preprocessing.
"""

from .base import BaseTextRecognizer, ImagePreprocessor, convert_to_numpy, to_grayscale
from .easyocr_processor import EasyOCRRecognizer
from .tesseract_processor import TesseractRecognizer
from .static_processor import StaticTextRecognizer
from .factory import create_text_recognizer, create_from_config, SUPPORTED_ENGINES

__all__ = [
    "BaseTextRecognizer",
    "ImagePreprocessor",
    "convert_to_numpy",
    "to_grayscale",
    "EasyOCRRecognizer",
    "TesseractRecognizer",
    "StaticTextRecognizer",
    "create_text_recognizer",
    "create_from_config",
    "SUPPORTED_ENGINES",
]

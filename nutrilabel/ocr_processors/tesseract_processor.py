"""
Tesseract text recognizer.
"""

import os
import tempfile

import numpy as np
from typing import List, Optional
import logging

from .base import BaseTextRecognizer
from ..models import TextFragment

logger = logging.getLogger(__name__)

# EasyOCR-style codes to Tesseract language packs
LANGUAGE_CODES = {
    'en': 'eng',
    'fr': 'fra',
    'de': 'deu',
    'es': 'spa',
    'it': 'ita',
    'pt': 'por',
    'nl': 'nld',
}


class TesseractRecognizer(BaseTextRecognizer):
    """Tesseract recognizer with word-level output."""

    def __init__(self,
                 languages: Optional[List[str]] = None,
                 page_segmentation_mode: int = 11,
                 ocr_engine_mode: int = 3,
                 engine_timeout: Optional[float] = None):
        """
        Initialize Tesseract recognizer.

        Args:
            languages: Language codes, either 'en' or 'eng' style
            page_segmentation_mode: PSM mode (1-13); 11 finds sparse text
            ocr_engine_mode: OEM mode (0-3)
            engine_timeout: Seconds before pytesseract kills the process
        """
        super().__init__(engine_name='tesseract', engine_timeout=engine_timeout)

        self.languages = languages or ['en']
        self.psm = page_segmentation_mode
        self.oem = ocr_engine_mode
        self.pytesseract = None
        self.is_initialized = False

        self._initialize_tesseract()

    def _initialize_tesseract(self):
        """Initialize and validate Tesseract installation."""
        try:
            import pytesseract
            self.pytesseract = pytesseract

            version = pytesseract.get_tesseract_version()
            self.logger.info(f"Tesseract version: {version}")

            self.is_initialized = True

        except ImportError:
            self.logger.error("pytesseract not installed. Install with: pip install nutrilabel[tesseract]")
            self.is_initialized = False
        except Exception as e:
            self.logger.error(f"Failed to initialize Tesseract: {e}")
            self.is_initialized = False

    def is_available(self) -> bool:
        """Check if Tesseract is available."""
        return self.is_initialized

    def recognize(self,
                  image: np.ndarray,
                  languages: Optional[List[str]] = None,
                  custom_vocabulary: Optional[List[str]] = None,
                  min_confidence: float = 0.0) -> List[TextFragment]:
        """
        Recognize words with pytesseract.

        ``custom_vocabulary`` is handed to Tesseract as a user-words file so
        label terms are preferred during decoding.
        """
        if not self.is_available():
            raise RuntimeError("Tesseract OCR is not available")

        lang = "+".join(LANGUAGE_CODES.get(code, code) for code in (languages or self.languages))
        config = f'--oem {self.oem} --psm {self.psm} -l {lang}'

        words_path = self._write_user_words(custom_vocabulary) if custom_vocabulary else None
        if words_path:
            config += f' --user-words {words_path}'

        try:
            ocr_data = self.pytesseract.image_to_data(
                image,
                config=config,
                output_type=self.pytesseract.Output.DICT,
                timeout=self.engine_timeout or 0
            )
        finally:
            if words_path:
                os.unlink(words_path)

        height, width = image.shape[:2]
        fragments = []
        for i, text in enumerate(ocr_data['text']):
            text = text.strip()
            confidence = float(ocr_data['conf'][i])
            if not text or confidence < 0:
                continue

            left = ocr_data['left'][i]
            top = ocr_data['top'][i]
            fragments.append(TextFragment(
                text=text,
                confidence=min(confidence / 100.0, 1.0),
                bounding_box=self._normalized_box(
                    left, top, left + ocr_data['width'][i], top + ocr_data['height'][i], width, height
                )
            ))

        self.logger.debug(f"Tesseract returned {len(fragments)} fragments")
        return self._filter_low_confidence(fragments, min_confidence)

    @staticmethod
    def _write_user_words(words: List[str]) -> str:
        with tempfile.NamedTemporaryFile('w', suffix='.user-words', delete=False, encoding='utf-8') as handle:
            handle.write("\n".join(words) + "\n")
            return handle.name

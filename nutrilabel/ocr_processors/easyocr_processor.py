"""
EasyOCR text recognizer.
"""

import numpy as np
from typing import List, Optional
import logging

from .base import BaseTextRecognizer
from ..models import TextFragment

logger = logging.getLogger(__name__)


class EasyOCRRecognizer(BaseTextRecognizer):
    """
    EasyOCR recognizer for label photos and scale displays.

    EasyOCR copes well with rotated, curved and low resolution text, which
    makes it the default engine for hand-held photos of packaging.
    """

    def __init__(self,
                 languages: Optional[List[str]] = None,
                 use_gpu: bool = False,
                 recognition_level: str = 'accurate',
                 engine_timeout: Optional[float] = None):
        """
        Initialize EasyOCR recognizer.

        Args:
            languages: List of language codes (['en', 'fr', etc.])
            use_gpu: Use GPU acceleration if available
            recognition_level: 'accurate' uses beam search decoding, 'fast' greedy
            engine_timeout: Advisory timeout; EasyOCR cannot be interrupted
        """
        super().__init__(engine_name='easyocr', engine_timeout=engine_timeout)

        self.languages = languages or ['en']
        self.use_gpu = use_gpu
        self.recognition_level = recognition_level
        self.reader = None
        self.is_initialized = False

        self._initialize_easyocr()

    def _initialize_easyocr(self):
        """Initialize EasyOCR engine."""
        try:
            import easyocr

            self.reader = easyocr.Reader(
                lang_list=self.languages,
                gpu=self.use_gpu,
                verbose=False
            )

            self.is_initialized = True
            self.logger.info(f"EasyOCR initialized with languages: {self.languages}")
        except ImportError:
            self.logger.error("EasyOCR not installed. Install with: pip install nutrilabel[easyocr]")
            self.is_initialized = False
        except Exception as e:
            self.logger.error(f"Failed to initialize EasyOCR: {e}")
            self.is_initialized = False

    def is_available(self) -> bool:
        """Check if EasyOCR is available."""
        return self.is_initialized

    def recognize(self,
                  image: np.ndarray,
                  languages: Optional[List[str]] = None,
                  custom_vocabulary: Optional[List[str]] = None,
                  min_confidence: float = 0.0) -> List[TextFragment]:
        """
        Recognize text with the EasyOCR reader.

        EasyOCR has no word-list hook, so ``custom_vocabulary`` is ignored. A ``languages`` list
        other than the one the reader was built with is ignored too.
        """
        if not self.is_available():
            raise RuntimeError("EasyOCR is not available")

        if languages and set(languages) != set(self.languages):
            self.logger.debug(f"Reader was built for {self.languages}, ignoring request for {languages}")

        decoder = 'beamsearch' if self.recognition_level == 'accurate' else 'greedy'
        results = self.reader.readtext(
            image,
            detail=1,
            paragraph=False,
            decoder=decoder
        )

        height, width = image.shape[:2]
        fragments = []
        for bbox_points, text, confidence in results:
            text = text.strip()
            if not text:
                continue

            xs = [float(point[0]) for point in bbox_points]
            ys = [float(point[1]) for point in bbox_points]
            fragments.append(TextFragment(
                text=text,
                confidence=min(max(float(confidence), 0.0), 1.0),
                bounding_box=self._normalized_box(min(xs), min(ys), max(xs), max(ys), width, height)
            ))

        self.logger.debug(f"EasyOCR returned {len(fragments)} fragments")
        return self._filter_low_confidence(fragments, min_confidence)

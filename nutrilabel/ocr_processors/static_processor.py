"""
Recognizer that returns a fixed set of fragments.

Used to replay recognizer output captured elsewhere and in tests.
"""

import json
import time
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from .base import BaseTextRecognizer
from ..models import TextFragment


class StaticTextRecognizer(BaseTextRecognizer):
    """Returns the same fragments for every image."""

    def __init__(self,
                 fragments: Optional[List[TextFragment]] = None,
                 delay: float = 0.0,
                 error: Optional[Exception] = None):
        super().__init__(engine_name='static')
        self.fragments = list(fragments or [])
        self.delay = delay
        self.error = error
        self.calls = 0

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "StaticTextRecognizer":
        """Load fragments from a JSON list of ``TextFragment`` objects."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return cls([TextFragment.model_validate(item) for item in data])

    def is_available(self) -> bool:
        return True

    def recognize(self,
                  image: np.ndarray,
                  languages: Optional[List[str]] = None,
                  custom_vocabulary: Optional[List[str]] = None,
                  min_confidence: float = 0.0) -> List[TextFragment]:
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self._filter_low_confidence(self.fragments, min_confidence)

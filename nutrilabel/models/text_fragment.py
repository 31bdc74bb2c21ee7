"""
Text fragment models for representing recognizer output.
"""

import math
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BoundingBox(BaseModel):
    """Normalized bounding box (0..1, origin top-left)."""
    model_config = ConfigDict(frozen=True)

    x: float = Field(..., description="Left coordinate")
    y: float = Field(..., description="Top coordinate")
    width: float = Field(..., description="Box width")
    height: float = Field(..., description="Box height")

    @field_validator('width', 'height')
    @classmethod
    def validate_size(cls, v):
        if v < 0.0:
            raise ValueError('Bounding box width and height must not be negative')
        return v

    @property
    def mid_x(self) -> float:
        """Horizontal centre of the box."""
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        """Vertical centre of the box."""
        return self.y + self.height / 2

    @property
    def center(self) -> Tuple[float, float]:
        return (self.mid_x, self.mid_y)

    @property
    def area(self) -> float:
        return self.width * self.height

    def distance_to(self, other: "BoundingBox") -> float:
        """Euclidean distance between box centres."""
        return math.hypot(self.mid_x - other.mid_x, self.mid_y - other.mid_y)


class TextFragment(BaseModel):
    """A piece of recognized text with its confidence and location."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Recognized text")
    confidence: float = Field(..., description="Recognizer confidence score (0-1)")
    bounding_box: BoundingBox = Field(..., description="Normalized location of the text")

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('Confidence must be between 0.0 and 1.0')
        return v

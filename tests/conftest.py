"""Shared fixtures for nutrilabel tests."""

import cv2
import numpy as np
import pytest

from nutrilabel.models import BoundingBox, TextFragment


def make_fragment(text, confidence=0.9, cx=0.5, cy=0.5, width=0.1, height=0.03):
    """Build a fragment whose box is centred on (cx, cy)."""
    return TextFragment(
        text=text,
        confidence=confidence,
        bounding_box=BoundingBox(x=cx - width / 2, y=cy - height / 2, width=width, height=height),
    )


@pytest.fixture
def fragment():
    return make_fragment


@pytest.fixture
def label_fragments():
    """Three label rows, top to bottom."""
    return [
        make_fragment("Calories 250", 0.95, cx=0.5, cy=0.1, width=0.4),
        make_fragment("Protein 12g", 0.90, cx=0.5, cy=0.2, width=0.4),
        make_fragment("Total Fat 5g", 0.85, cx=0.5, cy=0.3, width=0.4),
    ]


@pytest.fixture
def scale_fragments():
    """An M button, a reading and a PCS button on one line."""
    return [
        make_fragment("M", 0.9, cx=0.1, cy=0.5),
        make_fragment("354", 0.8, cx=0.5, cy=0.5),
        make_fragment("PCS", 0.9, cx=0.9, cy=0.5),
    ]


@pytest.fixture
def gray_image():
    return np.full((600, 800, 3), 128, dtype=np.uint8)


@pytest.fixture
def label_image():
    """Synthetic nutrition label: dark text rows on a mid-gray card."""
    image = np.full((600, 800, 3), 150, dtype=np.uint8)
    lines = ["Nutrition Facts", "Calories 250", "Total Fat 5g", "Sodium 160mg",
             "Total Carbohydrate 37g", "Protein 12g"]
    for i, line in enumerate(lines):
        cv2.putText(image, line, (40, 80 + i * 85), cv2.FONT_HERSHEY_SIMPLEX, 1.6, (20, 20, 20), 4)
    return image

"""
Document analysis module for reading order detection.
"""

from .reading_order import ReadingOrderAnalyzer, ROW_THRESHOLD

__all__ = [
    "ReadingOrderAnalyzer",
    "ROW_THRESHOLD"
]

"""
Error types raised by the OCR coordinator and extraction orchestrator.

Parsers and the image quality assessor never raise; every failure that
reaches a caller is one of the types below.
"""

from typing import Optional


class OCRServiceError(Exception):
    """Base class for all extraction pipeline errors."""

    is_recoverable: bool = True
    recovery_suggestion: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidImageFormatError(OCRServiceError):
    """The image could not be decoded or has zero dimensions."""

    is_recoverable = False
    recovery_suggestion = "Use a JPEG or PNG photo taken with the camera."

    def __init__(self, message: str = "Invalid image format. Please try again with a different photo."):
        super().__init__(message)


class ImageQualityTooLowError(OCRServiceError):
    """Quality gate rejected the image."""

    recovery_suggestion = "Improve lighting, hold the camera steady and fill the frame with the label."

    def __init__(self, score: float):
        self.score = score
        super().__init__(
            f"Image quality too low ({int(score * 100)}%). "
            f"Please take a clearer photo with better lighting."
        )


class NoTextFoundError(OCRServiceError):
    """Recognizer returned zero text fragments."""

    recovery_suggestion = "Make sure the nutrition label or scale display is in view."

    def __init__(self, message: str = "No text found in image. Please ensure the nutrition label is clearly visible."):
        super().__init__(message)


class ProcessingTimeoutError(OCRServiceError):
    """Recognition exceeded the configured deadline."""

    recovery_suggestion = "Try again, or use a faster processing preset."

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        detail = f" after {timeout:.1f}s" if timeout is not None else ""
        super().__init__(f"Processing timed out{detail}. Please try again.")


class ServiceBusyError(OCRServiceError):
    """Another extraction is already running on this instance."""

    recovery_suggestion = "Wait for the current extraction to finish."

    def __init__(self, message: str = "OCR service is busy processing another image. Please wait."):
        super().__init__(message)


class EngineError(OCRServiceError):
    """The underlying text recognizer failed."""

    def __init__(self, inner: BaseException):
        self.inner = inner
        super().__init__(f"Text recognition failed: {inner}")


class ExtractionCancelledError(OCRServiceError):
    """The in-flight extraction was cancelled through ``cancel()``."""

    def __init__(self, message: str = "Extraction was cancelled."):
        super().__init__(message)

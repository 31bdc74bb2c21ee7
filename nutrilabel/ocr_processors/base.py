"""
Base text recognizer interface and image preprocessing utilities.
"""

import cv2
import numpy as np
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Union
from PIL import Image, ImageOps
import logging

from ..models import BoundingBox, TextFragment

logger = logging.getLogger(__name__)

ImageInput = Union[np.ndarray, Image.Image, bytes, str, Path]


def convert_to_numpy(image: ImageInput) -> np.ndarray:
    """
    Convert supported image inputs to a BGR (or grayscale) numpy array.

    Raises:
        ValueError: If the input cannot be decoded
    """
    if isinstance(image, np.ndarray):
        return image
    elif isinstance(image, Image.Image):
        return _pil_to_bgr(image)
    elif isinstance(image, (bytes, bytearray)):
        try:
            pil_image = Image.open(BytesIO(image))
            pil_image.load()
        except Exception as e:
            raise ValueError(f"Could not decode image bytes: {e}") from e
        return _pil_to_bgr(pil_image)
    elif isinstance(image, (str, Path)):
        array = cv2.imread(str(image))
        if array is None:
            raise ValueError(f"Could not read image file: {image}")
        return array
    else:
        raise ValueError(f"Unsupported image type: {type(image)}")


def _pil_to_bgr(pil_image: Image.Image) -> np.ndarray:
    pil_image = ImageOps.exif_transpose(pil_image)
    if pil_image.mode not in ("RGB", "L"):
        pil_image = pil_image.convert("RGB")
    array = np.array(pil_image)
    if array.ndim == 3:
        return cv2.cvtColor(array, cv2.COLOR_RGB2BGR)
    return array


def to_grayscale(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3:
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def _to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


class ImagePreprocessor:
    """Image enhancement for label photos and scale displays."""

    def __init__(self):
        self.preprocessing_steps = {
            'noise_reduction': self._apply_noise_reduction,
            'contrast_enhancement': self._apply_contrast_enhancement,
            'sharpening': self._apply_sharpening,
            'scaling': self._apply_scaling,
        }
        self.default_steps = ['contrast_enhancement', 'sharpening']

    def enhance(self, image: ImageInput, steps: Optional[List[str]] = None) -> np.ndarray:
        """
        Apply preprocessing steps to improve recognition accuracy.

        Orientation is normalized when the input carries EXIF data. A step
        that fails is skipped.

        Args:
            image: Input image as numpy array, PIL Image, bytes or path
            steps: Preprocessing steps to apply, defaults to contrast and sharpening

        Returns:
            Enhanced image as numpy array
        """
        if steps is None:
            steps = self.default_steps

        img_array = convert_to_numpy(image)

        logger.debug(f"Starting image preprocessing with steps: {steps}")

        for step in steps:
            if step in self.preprocessing_steps:
                try:
                    img_array = self.preprocessing_steps[step](img_array)
                    logger.debug(f"Applied preprocessing step: {step}")
                except Exception as e:
                    logger.warning(f"Failed to apply preprocessing step {step}: {e}")
                    continue
            else:
                logger.warning(f"Unknown preprocessing step: {step}")

        return img_array

    def led_variants(self, image: ImageInput) -> List[np.ndarray]:
        """
        Build variants that make LED and LCD digits easier to read.

        Returns:
            High contrast, inverted, thresholded, sharpened and red/green
            boosted versions of the image
        """
        bgr = _to_bgr(convert_to_numpy(image))
        variants = []

        builders = [
            ('high_contrast', self._led_high_contrast),
            ('inverted', self._led_inverted),
            ('threshold', self._led_threshold),
            ('unsharp_mask', self._led_unsharp_mask),
            ('red_green_boost', self._led_red_green_boost),
        ]
        for name, builder in builders:
            try:
                variants.append(builder(bgr))
            except Exception as e:
                logger.warning(f"Failed to build {name} variant: {e}")

        logger.debug(f"Generated {len(variants)} preprocessed image variants for LED detection")
        return variants

    def _apply_noise_reduction(self, image: np.ndarray) -> np.ndarray:
        """Apply noise reduction using bilateral filter."""
        return cv2.bilateralFilter(image, 9, 75, 75)

    def _apply_contrast_enhancement(self, image: np.ndarray) -> np.ndarray:
        """Enhance contrast using CLAHE (Contrast Limited Adaptive Histogram Equalization)."""
        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        if image.ndim == 3:
            lab = cv2.cvtColor(_to_bgr(image), cv2.COLOR_BGR2LAB)
            lab[:, :, 0] = clahe.apply(lab[:, :, 0])
            return cv2.cvtColor(lab, cv2.COLOR_LAB2BGR)
        return clahe.apply(image)

    def _apply_sharpening(self, image: np.ndarray) -> np.ndarray:
        """Apply sharpening filter to enhance text clarity."""
        kernel = np.array([[-1, -1, -1],
                           [-1,  9, -1],
                           [-1, -1, -1]])
        return cv2.filter2D(image, -1, kernel)

    def _apply_scaling(self, image: np.ndarray) -> np.ndarray:
        """Scale image so its height is in a range recognizers handle well."""
        height, width = image.shape[:2]
        target_height = 1500

        if height < target_height * 0.5:
            scale_factor = target_height / height
            interpolation = cv2.INTER_CUBIC
        elif height > target_height * 2:
            scale_factor = target_height / height
            interpolation = cv2.INTER_AREA
        else:
            return image

        new_size = (int(width * scale_factor), int(height * scale_factor))
        return cv2.resize(image, new_size, interpolation=interpolation)

    def _led_high_contrast(self, image: np.ndarray) -> np.ndarray:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY).astype(np.float32)
        stretched = (gray - 128.0) * 2.0 + 128.0
        return np.clip(stretched, 0, 255).astype(np.uint8)

    def _led_inverted(self, image: np.ndarray) -> np.ndarray:
        return cv2.bitwise_not(image)

    def _led_threshold(self, image: np.ndarray) -> np.ndarray:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        brightened = cv2.convertScaleAbs(gray, alpha=3.0, beta=0.2 * 255 - 3.0 * 128)
        _, binary = cv2.threshold(brightened, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary

    def _led_unsharp_mask(self, image: np.ndarray) -> np.ndarray:
        blurred = cv2.GaussianBlur(image, (0, 0), sigmaX=2.5)
        return cv2.addWeighted(image, 1.0 + 2.5, blurred, -2.5, 0)

    def _led_red_green_boost(self, image: np.ndarray) -> np.ndarray:
        # Channel order is BGR
        weights = np.array([0.5, 1.5, 1.5], dtype=np.float32)
        boosted = image.astype(np.float32) * weights
        return np.clip(boosted, 0, 255).astype(np.uint8)


class BaseTextRecognizer(ABC):
    """
    Base class for all text recognizers.

    ``recognize`` is blocking; callers run it in a worker thread.
    """

    def __init__(self, engine_name: str, engine_timeout: Optional[float] = None):
        self.engine_name = engine_name
        self.engine_timeout = engine_timeout
        self.logger = logging.getLogger(f"{__name__}.{engine_name}")

    @abstractmethod
    def recognize(self,
                  image: np.ndarray,
                  languages: Optional[List[str]] = None,
                  custom_vocabulary: Optional[List[str]] = None,
                  min_confidence: float = 0.0) -> List[TextFragment]:
        """
        Recognize text in an image.

        Args:
            image: Image as numpy array
            languages: Recognition language codes
            custom_vocabulary: Domain words to favour
            min_confidence: Fragments below this confidence are dropped

        Returns:
            Fragments with normalized bounding boxes
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the recognition engine is available and properly configured."""
        pass

    def _normalized_box(self, x1: float, y1: float, x2: float, y2: float,
                        image_width: int, image_height: int) -> BoundingBox:
        """Convert pixel corners to a normalized, clamped bounding box."""
        left = min(max(x1 / image_width, 0.0), 1.0)
        top = min(max(y1 / image_height, 0.0), 1.0)
        right = min(max(x2 / image_width, 0.0), 1.0)
        bottom = min(max(y2 / image_height, 0.0), 1.0)
        return BoundingBox(x=left, y=top, width=max(right - left, 0.0), height=max(bottom - top, 0.0))

    def _filter_low_confidence(self, fragments: List[TextFragment], min_confidence: float) -> List[TextFragment]:
        """Filter out fragments below the confidence threshold."""
        kept = [fragment for fragment in fragments if fragment.confidence >= min_confidence]
        if len(kept) < len(fragments):
            self.logger.debug(f"Dropped {len(fragments) - len(kept)} fragments below {min_confidence:.2f}")
        return kept

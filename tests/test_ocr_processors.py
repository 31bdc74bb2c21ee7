"""Tests for image conversion, preprocessing and the recognizer factory."""

import json
import os
from types import SimpleNamespace

import cv2
import numpy as np
import pytest
from PIL import Image

from nutrilabel.ocr_processors import (
    ImagePreprocessor, StaticTextRecognizer, TesseractRecognizer, convert_to_numpy, create_text_recognizer
)


def test_convert_pil_image_to_bgr():
    pil_image = Image.new("RGB", (4, 3), color=(255, 0, 0))

    array = convert_to_numpy(pil_image)

    assert array.shape == (3, 4, 3)
    assert array[0, 0].tolist() == [0, 0, 255]


def test_convert_encoded_bytes(gray_image):
    ok, encoded = cv2.imencode(".png", gray_image)
    assert ok

    array = convert_to_numpy(encoded.tobytes())

    assert array.shape == gray_image.shape


def test_convert_rejects_garbage(tmp_path):
    with pytest.raises(ValueError):
        convert_to_numpy(b"garbage")
    with pytest.raises(ValueError):
        convert_to_numpy(tmp_path / "missing.png")
    with pytest.raises(ValueError):
        convert_to_numpy(42)


def test_enhance_keeps_image_shape(label_image):
    enhanced = ImagePreprocessor().enhance(label_image)

    assert enhanced.shape == label_image.shape
    assert enhanced.dtype == np.uint8


def test_unknown_steps_are_skipped(label_image):
    enhanced = ImagePreprocessor().enhance(label_image, steps=["levitate"])

    assert np.array_equal(enhanced, label_image)


def test_led_variants(label_image):
    variants = ImagePreprocessor().led_variants(label_image)

    assert len(variants) == 5
    assert all(v.shape[:2] == label_image.shape[:2] for v in variants)
    # red/green boost halves the blue channel
    assert variants[4][0, 0, 0] == label_image[0, 0, 0] // 2


def test_static_recognizer_from_json(tmp_path, label_fragments):
    path = tmp_path / "fragments.json"
    path.write_text(json.dumps([f.model_dump() for f in label_fragments]))

    recognizer = StaticTextRecognizer.from_json(path)

    assert recognizer.recognize(np.zeros((1, 1), dtype=np.uint8)) == label_fragments


def test_factory_rejects_unknown_engine():
    with pytest.raises(ValueError):
        create_text_recognizer("papyrus")


def test_factory_creates_static_recognizer(label_fragments):
    recognizer = create_text_recognizer("static", fragments=label_fragments)

    assert isinstance(recognizer, StaticTextRecognizer)
    assert recognizer.is_available()


def test_tesseract_passes_vocabulary_as_user_words():
    seen = {}

    def image_to_data(image, config, output_type, timeout):
        path = config.split("--user-words ")[1]
        with open(path, encoding="utf-8") as handle:
            seen["words"] = handle.read().split()
        seen["path"] = path
        return {"text": ["Protein", ""], "conf": ["91", "-1"],
                "left": [10, 0], "top": [20, 0], "width": [100, 0], "height": [30, 0]}

    recognizer = TesseractRecognizer(engine_timeout=5.0)
    recognizer.pytesseract = SimpleNamespace(image_to_data=image_to_data, Output=SimpleNamespace(DICT="dict"))
    recognizer.is_initialized = True

    fragments = recognizer.recognize(np.zeros((100, 200), dtype=np.uint8), custom_vocabulary=["Protein", "Sodium"])

    assert seen["words"] == ["Protein", "Sodium"]
    assert not os.path.exists(seen["path"])
    assert [f.text for f in fragments] == ["Protein"]
    assert fragments[0].confidence == pytest.approx(0.91)

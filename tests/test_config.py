"""Tests for configuration presets and environment loading."""

import logging

import pytest
from pydantic import ValidationError

from nutrilabel.config import (
    NUTRITION_VOCABULARY, NutritionParserConfig, OCRServiceConfig, RecognizerConfig, load_config
)


def test_service_presets():
    default = OCRServiceConfig.default()
    fast = OCRServiceConfig.fast()
    high_quality = OCRServiceConfig.high_quality()

    assert (default.minimum_quality_score, default.max_processing_time) == (0.6, 30.0)
    assert default.enable_quality_analysis and default.enable_preprocessing
    assert (fast.minimum_quality_score, fast.max_processing_time) == (0.4, 15.0)
    assert not fast.enable_quality_analysis
    assert (high_quality.minimum_quality_score, high_quality.max_processing_time) == (0.8, 45.0)


def test_recognizer_defaults():
    config = RecognizerConfig.nutrition_label()

    assert config.languages == ["en"]
    assert config.custom_vocabulary == NUTRITION_VOCABULARY
    assert config.min_confidence == 0.8
    assert config.engine_timeout == 25.0


def test_parser_presets():
    strict = NutritionParserConfig.strict()

    assert strict.minimum_match_confidence == 0.8
    assert not strict.enable_fuzzy_matching
    assert NutritionParserConfig.default().enable_fuzzy_matching


@pytest.mark.parametrize("kwargs", [
    {"minimum_quality_score": 1.5},
    {"max_processing_time": 0},
])
def test_service_config_validation(kwargs):
    with pytest.raises(ValidationError):
        OCRServiceConfig(**kwargs)


def test_recognizer_config_validation():
    with pytest.raises(ValidationError):
        RecognizerConfig(min_confidence=-0.1)
    with pytest.raises(ValidationError):
        RecognizerConfig(recognition_level="sloppy")


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.setenv("NUTRILABEL_OCR_ENGINE", "tesseract")
    monkeypatch.setenv("NUTRILABEL_LANGUAGES", "en, fr")
    monkeypatch.setenv("NUTRILABEL_OCR_PRESET", "high_quality")
    monkeypatch.setenv("NUTRILABEL_MAX_PROCESSING_TIME", "12.5")
    monkeypatch.setenv("NUTRILABEL_ENABLE_PREPROCESSING", "false")
    monkeypatch.setenv("NUTRILABEL_STRICT_PARSING", "1")
    monkeypatch.setenv("NUTRILABEL_LOG_LEVEL", "debug")

    config = load_config(env_file=None)

    assert config.ocr.recognizer.engine == "tesseract"
    assert config.ocr.recognizer.languages == ["en", "fr"]
    assert config.ocr.minimum_quality_score == 0.8
    assert config.ocr.max_processing_time == 12.5
    assert not config.ocr.enable_preprocessing
    assert not config.parser.enable_fuzzy_matching
    assert config.log_level == logging.DEBUG


def test_load_config_rejects_unknown_preset(monkeypatch):
    monkeypatch.setenv("NUTRILABEL_OCR_PRESET", "turbo")

    with pytest.raises(ValueError):
        load_config(env_file=None)

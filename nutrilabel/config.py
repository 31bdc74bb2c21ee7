"""
Configuration for the extraction pipeline.

Every component takes its config object at construction; there is no
global engine configuration. ``load_config`` builds a pipeline config
from ``NUTRILABEL_*`` environment variables (and an optional ``.env``).
"""

import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "NUTRILABEL_"
DEFAULT_LOG_LEVEL = logging.INFO

NUTRITION_VOCABULARY = [
    "calories", "protein", "carbohydrates", "fat", "fiber", "sugar",
    "sodium", "potassium", "calcium", "iron", "vitamin", "serving",
    "per", "container", "total", "saturated", "trans", "cholesterol",
    "dietary", "added", "includes", "daily", "value", "percent", "%"
]


class RecognizerConfig(BaseModel):
    """Settings passed to the text recognizer on every call."""
    engine: str = Field(default="easyocr", description="Recognizer engine name")
    recognition_level: str = Field(default="accurate", description="'accurate' or 'fast'")
    languages: List[str] = Field(default_factory=lambda: ["en"], description="Recognition languages")
    custom_vocabulary: List[str] = Field(default_factory=lambda: list(NUTRITION_VOCABULARY))
    min_confidence: float = Field(default=0.8, description="Fragments below this are dropped")
    engine_timeout: float = Field(default=25.0, description="Engine-level timeout in seconds")
    use_gpu: bool = False

    @field_validator('min_confidence')
    @classmethod
    def validate_min_confidence(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('min_confidence must be between 0.0 and 1.0')
        return v

    @field_validator('recognition_level')
    @classmethod
    def validate_level(cls, v):
        if v not in ("accurate", "fast"):
            raise ValueError("recognition_level must be 'accurate' or 'fast'")
        return v

    @classmethod
    def nutrition_label(cls) -> "RecognizerConfig":
        return cls()

    @classmethod
    def fast(cls) -> "RecognizerConfig":
        return cls(recognition_level="fast", min_confidence=0.6, custom_vocabulary=[])


class OCRServiceConfig(BaseModel):
    """OCR coordinator settings."""
    minimum_quality_score: float = Field(default=0.6, description="Quality gate threshold")
    max_processing_time: float = Field(default=30.0, description="Hard recognition deadline in seconds")
    enable_quality_analysis: bool = True
    enable_preprocessing: bool = True
    recognizer: RecognizerConfig = Field(default_factory=RecognizerConfig)

    @field_validator('minimum_quality_score')
    @classmethod
    def validate_quality_score(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('minimum_quality_score must be between 0.0 and 1.0')
        return v

    @field_validator('max_processing_time')
    @classmethod
    def validate_deadline(cls, v):
        if v <= 0:
            raise ValueError('max_processing_time must be positive')
        return v

    @classmethod
    def default(cls) -> "OCRServiceConfig":
        return cls()

    @classmethod
    def fast(cls) -> "OCRServiceConfig":
        return cls(
            minimum_quality_score=0.4,
            max_processing_time=15.0,
            enable_quality_analysis=False,
            recognizer=RecognizerConfig.fast(),
        )

    @classmethod
    def high_quality(cls) -> "OCRServiceConfig":
        return cls(minimum_quality_score=0.8, max_processing_time=45.0)


class NutritionParserConfig(BaseModel):
    """Nutrition fact parser settings."""
    minimum_match_confidence: float = 0.6
    enable_fuzzy_matching: bool = True
    normalize_units: bool = False

    @field_validator('minimum_match_confidence')
    @classmethod
    def validate_match_confidence(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('minimum_match_confidence must be between 0.0 and 1.0')
        return v

    @classmethod
    def default(cls) -> "NutritionParserConfig":
        return cls()

    @classmethod
    def strict(cls) -> "NutritionParserConfig":
        return cls(minimum_match_confidence=0.8, enable_fuzzy_matching=False)


class WeightDetectionConfig(BaseModel):
    """Weight reading parser settings."""
    collinearity_tolerance: float = 0.3
    unit_search_radius: float = 0.2
    contextual_boost: float = 1.2
    minimum_candidate_confidence: float = 0.3
    enable_led_variants: bool = True


class PipelineConfig(BaseModel):
    """Aggregate configuration for the orchestrator and CLI."""
    ocr: OCRServiceConfig = Field(default_factory=OCRServiceConfig)
    parser: NutritionParserConfig = Field(default_factory=NutritionParserConfig)
    weight: WeightDetectionConfig = Field(default_factory=WeightDetectionConfig)
    confidence_threshold: float = Field(default=0.6, description="Below this a result is low confidence")
    log_level: int = DEFAULT_LOG_LEVEL


def load_config(env_file: Optional[str] = ".env") -> PipelineConfig:
    """
    Load pipeline configuration from the environment.

    Args:
        env_file: Optional dotenv file read before the environment

    Returns:
        PipelineConfig with environment overrides applied
    """
    if env_file:
        load_dotenv(env_file)

    recognizer_overrides = {}
    engine = _env("OCR_ENGINE")
    if engine:
        recognizer_overrides["engine"] = engine
    languages = _env("LANGUAGES")
    if languages:
        recognizer_overrides["languages"] = [lang.strip() for lang in languages.split(",") if lang.strip()]
    min_text_confidence = _env("MIN_TEXT_CONFIDENCE")
    if min_text_confidence:
        recognizer_overrides["min_confidence"] = float(min_text_confidence)
    if _env("USE_GPU"):
        recognizer_overrides["use_gpu"] = _env_flag("USE_GPU", False)

    preset = (_env("OCR_PRESET") or "default").lower()
    presets = {
        "default": OCRServiceConfig.default,
        "fast": OCRServiceConfig.fast,
        "high_quality": OCRServiceConfig.high_quality,
    }
    if preset not in presets:
        raise ValueError(f"Unknown OCR preset: {preset}")
    ocr = presets[preset]()

    ocr_overrides = {}
    min_quality = _env("MIN_QUALITY_SCORE")
    if min_quality:
        ocr_overrides["minimum_quality_score"] = float(min_quality)
    max_time = _env("MAX_PROCESSING_TIME")
    if max_time:
        ocr_overrides["max_processing_time"] = float(max_time)
    ocr_overrides["enable_quality_analysis"] = _env_flag("ENABLE_QUALITY_ANALYSIS", ocr.enable_quality_analysis)
    ocr_overrides["enable_preprocessing"] = _env_flag("ENABLE_PREPROCESSING", ocr.enable_preprocessing)
    ocr_overrides["recognizer"] = RecognizerConfig(**{**ocr.recognizer.model_dump(), **recognizer_overrides})

    parser = NutritionParserConfig.strict() if _env_flag("STRICT_PARSING", False) else NutritionParserConfig()

    level_name = (_env("LOG_LEVEL") or "INFO").upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = DEFAULT_LOG_LEVEL

    return PipelineConfig(
        ocr=OCRServiceConfig(**{**ocr.model_dump(exclude={"recognizer"}), **ocr_overrides}),
        parser=parser,
        log_level=log_level,
    )


def configure_logging(level: int = DEFAULT_LOG_LEVEL) -> None:
    """Configure the root logger for the application."""
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")

"""
Command-line interface for nutrition label and scale display extraction.

    nutrilabel label photo.jpg --engine easyocr
    nutrilabel weight scale.jpg --engine tesseract
    nutrilabel quality photo.jpg
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import OCRServiceConfig, PipelineConfig, RecognizerConfig, configure_logging, load_config
from .exceptions import OCRServiceError
from .ocr_processors import SUPPORTED_ENGINES, StaticTextRecognizer
from .orchestrator import NutritionExtractionOrchestrator
from .quality_assessors import ImageQualityAssessor

logger = logging.getLogger(__name__)

PRESETS = {
    "default": OCRServiceConfig.default,
    "fast": OCRServiceConfig.fast,
    "high_quality": OCRServiceConfig.high_quality,
}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="nutrilabel",
        description="Extract nutrition facts and scale weights from photos"
    )
    parser.add_argument("command", choices=["label", "weight", "quality"], help="What to extract")
    parser.add_argument("image", help="Path to the image file")
    parser.add_argument("--engine", choices=SUPPORTED_ENGINES, default=None,
                        help="Text recognizer to use (defaults to NUTRILABEL_OCR_ENGINE or easyocr)")
    parser.add_argument("--preset", choices=sorted(PRESETS), default=None, help="OCR service preset")
    parser.add_argument("--min-confidence", type=float, default=None,
                        help="Minimum confidence for recognized text fragments")
    parser.add_argument("--replay", default=None,
                        help="JSON file of recorded text fragments, used with --engine static")
    parser.add_argument("--env-file", default=".env", help="dotenv file with NUTRILABEL_* settings")
    parser.add_argument("--output", default=None, help="Also write the JSON result to this file")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Apply command-line overrides on top of the environment configuration."""
    config = load_config(args.env_file)

    ocr = PRESETS[args.preset]() if args.preset else config.ocr
    recognizer_overrides = {}
    if args.engine:
        recognizer_overrides["engine"] = args.engine
    if args.min_confidence is not None:
        recognizer_overrides["min_confidence"] = args.min_confidence
    if args.preset:
        # Keep environment recognizer settings the preset does not decide
        recognizer_overrides.setdefault("engine", config.ocr.recognizer.engine)
        recognizer_overrides.setdefault("languages", config.ocr.recognizer.languages)

    recognizer = RecognizerConfig(**{**ocr.recognizer.model_dump(), **recognizer_overrides})

    ocr = OCRServiceConfig(**{**ocr.model_dump(exclude={"recognizer"}), "recognizer": recognizer})

    log_level = config.log_level
    if args.log_level:
        level = logging.getLevelName(args.log_level.upper())
        if isinstance(level, int):
            log_level = level

    return PipelineConfig(
        ocr=ocr,
        parser=config.parser,
        weight=config.weight,
        confidence_threshold=config.confidence_threshold,
        log_level=log_level
    )


def create_orchestrator(args: argparse.Namespace, config: PipelineConfig) -> NutritionExtractionOrchestrator:
    if config.ocr.recognizer.engine != "static":
        return NutritionExtractionOrchestrator.from_config(config)
    if not args.replay:
        raise ValueError("--engine static requires --replay with recorded fragments")
    return NutritionExtractionOrchestrator(StaticTextRecognizer.from_json(args.replay), config=config)


async def run(args: argparse.Namespace, config: PipelineConfig) -> Dict[str, Any]:
    """Execute the requested command and return its JSON payload."""
    if args.command == "quality":
        assessment = ImageQualityAssessor().assess(Path(args.image))
        return {"command": "quality", **assessment.model_dump(mode="json")}

    orchestrator = create_orchestrator(args, config)

    if args.command == "label":
        outcome = await orchestrator.run(Path(args.image))
        payload = outcome.model_dump(mode="json")
        result = getattr(outcome, "result", None)
        if result is not None:
            payload["summary"] = result.summary
            payload["food_entry"] = result.to_food_entry()
        return {"command": "label", **payload}

    try:
        result = await orchestrator.detect_weight(Path(args.image))
    except OCRServiceError as e:
        return {
            "command": "weight",
            "kind": "failed",
            "error_type": type(e).__name__,
            "message": e.message,
            "is_recoverable": e.is_recoverable,
        }

    best = result.best_weight
    return {
        "command": "weight",
        "kind": "success" if best is not None else "no_weight",
        "best_weight": best.display_string if best is not None else None,
        "best_weight_grams": best.value_in_grams if best is not None else None,
        **result.model_dump(mode="json"),
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``nutrilabel`` console script."""
    args = parse_arguments(argv)
    try:
        config = build_config(args)
        configure_logging(config.log_level)
        payload = asyncio.run(run(args, config))
    except Exception as e:
        logging.exception(f"nutrilabel {args.command} failed: {e}")
        return 1

    output = json.dumps(payload, ensure_ascii=False, indent=2)
    print(output)
    if args.output:
        Path(args.output).expanduser().write_text(output, encoding="utf-8")
        logger.info(f"Saved result to {args.output}")

    return 1 if payload.get("kind") == "failed" else 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Tests for the command-line interface."""

import json

import cv2

from nutrilabel import orchestrator as orchestrator_module
from nutrilabel.cli import build_config, create_orchestrator, main, parse_arguments
from nutrilabel.ocr_processors import StaticTextRecognizer


def test_cli_parser():
    args = parse_arguments([
        "weight", "scale.jpg",
        "--engine", "tesseract",
        "--preset", "fast",
        "--min-confidence", "0.5",
    ])

    assert args.command == "weight"
    assert args.image == "scale.jpg"
    assert args.engine == "tesseract"
    assert args.preset == "fast"
    assert args.min_confidence == 0.5


def test_build_config_applies_overrides(tmp_path):
    args = parse_arguments([
        "label", "photo.jpg", "--engine", "static", "--preset", "fast",
        "--min-confidence", "0.5", "--env-file", str(tmp_path / "missing.env"),
    ])

    config = build_config(args)

    assert config.ocr.recognizer.engine == "static"
    assert config.ocr.recognizer.min_confidence == 0.5
    assert config.ocr.max_processing_time == 15.0


def test_quality_command(tmp_path, gray_image, capsys):
    image_path = tmp_path / "gray.png"
    cv2.imwrite(str(image_path), gray_image)

    exit_code = main(["quality", str(image_path), "--env-file", str(tmp_path / "missing.env")])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["command"] == "quality"
    assert payload["recommendation"] == "poor"


def test_label_command_with_replayed_fragments(tmp_path, gray_image, label_fragments, capsys):
    image_path = tmp_path / "label.png"
    cv2.imwrite(str(image_path), gray_image)
    replay_path = tmp_path / "fragments.json"
    replay_path.write_text(json.dumps([f.model_dump() for f in label_fragments]))
    output_path = tmp_path / "result.json"

    exit_code = main([
        "label", str(image_path), "--engine", "static", "--replay", str(replay_path),
        "--preset", "fast", "--env-file", str(tmp_path / "missing.env"), "--output", str(output_path),
    ])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["kind"] == "success"
    assert payload["food_entry"]["calories"] == 250
    assert json.loads(output_path.read_text()) == payload


def test_static_engine_requires_replay(tmp_path, gray_image):
    image_path = tmp_path / "label.png"
    cv2.imwrite(str(image_path), gray_image)

    assert main(["label", str(image_path), "--engine", "static",
                 "--env-file", str(tmp_path / "missing.env")]) == 1


def test_non_static_engine_built_from_config(tmp_path, monkeypatch):
    requested = []

    def fake_create_from_config(recognizer_config):
        requested.append(recognizer_config)
        return StaticTextRecognizer()

    monkeypatch.setattr(orchestrator_module, "create_from_config", fake_create_from_config)
    args = parse_arguments(["label", "photo.jpg", "--engine", "tesseract",
                            "--env-file", str(tmp_path / "missing.env")])
    config = build_config(args)

    orchestrator = create_orchestrator(args, config)

    assert requested == [config.ocr.recognizer]
    assert requested[0].engine == "tesseract"
    assert orchestrator.config is config

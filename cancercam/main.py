# cancercam/main.py

import argparse
import dataclasses
import json
import sys
from pathlib import Path

from cancercam.logging.logger import logging
from cancercam.exception.exception import CustomException
from cancercam.entity.config_entity import load_settings
from cancercam.backend.services.model_registry import ModelRegistry, ModelState
from cancercam.pipeline.classification_pipeline import ClassificationPipeline
from cancercam.utils.artifact_builder import build_directory_skeleton


def _settings_from_args(args):
    settings = load_settings(args.config)
    overrides = {}
    if getattr(args, "model", None):
        overrides["model_path"] = args.model
    if getattr(args, "output", None):
        overrides["artifacts_dir"] = args.output
    if getattr(args, "device", None):
        overrides["device"] = args.device
    return dataclasses.replace(settings, **overrides) if overrides else settings


def cmd_serve(args) -> int:
    import uvicorn
    from cancercam.backend.app import create_app

    app = create_app(_settings_from_args(args))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def cmd_init_dirs(args) -> int:
    settings = _settings_from_args(args)
    for d in build_directory_skeleton(settings):
        print(f" - {d}")
    return 0


def cmd_classify(args) -> int:
    settings = _settings_from_args(args)
    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Input path does not exist: {input_path}", file=sys.stderr)
        return 1

    registry = ModelRegistry.from_settings(settings)
    if registry.ensure_loaded() is not ModelState.READY:
        print(f"Error loading model: {registry.error}", file=sys.stderr)
        return 1

    pipeline = ClassificationPipeline(settings, registry.get_handle)
    try:
        result = pipeline.run(input_path.read_bytes())
    except CustomException as e:
        print(f"{e.public_message}: {e}", file=sys.stderr)
        return 1

    payload = {
        "predictedName": result.predicted_name,
        "confidenceScore": result.confidence_score,
        "predictedImagePath": result.predicted_image_path,
        "gradcamImagePath": result.gradcam_image_path,
    }
    print(json.dumps(payload, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cancercam", description="Benign/malignant image classification with Grad-CAM")
    parser.add_argument("--config", type=str, default=None, help="Optional YAML settings file")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    classify = sub.add_parser("classify", help="Classify one local image")
    classify.add_argument("--input", type=str, required=True, help="Path to input image")
    classify.add_argument("--output", type=str, default=None, help="Artifacts directory")
    classify.add_argument("--model", type=str, default=None, help="Path to TorchScript model")
    classify.add_argument("--device", type=str, default=None, help="Torch device (default: cpu)")
    classify.set_defaults(func=cmd_classify)

    init_dirs = sub.add_parser("init-dirs", help="Create artifacts/models/logs directories")
    init_dirs.set_defaults(func=cmd_init_dirs)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.info(f"> cancercam {args.command}")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

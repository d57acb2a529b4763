"""Command line entry point: fetch (or load) a model and write its types.

Examples:
    # Fetch the latest model of a store, settings from openfga-types.config.json
    fga-typegen

    # Explicit config file, Python output
    fga-typegen -c config/fga.yaml --target python

    # Local model file, printed instead of written
    fga-typegen --model-file model.fga --stdout
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from fga_typegen.backends import Target
from fga_typegen.client import AuthorizationModelClient
from fga_typegen.exceptions import TypegenError
from fga_typegen.generator import GeneratedModule, generate_module
from fga_typegen.logging import configure_logging
from fga_typegen.parser import parse_model
from fga_typegen.serialization import load_model_file
from fga_typegen.settings import DEFAULT_CONFIG_FILE, load_settings


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fga-typegen",
        description="Generate type-safe constants and tuple helpers from an OpenFGA authorization model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Settings are read from the config file, then FGA_* environment variables.
Command line flags override both.

Config file keys:
  storeId, apiUrl, authorizationModelId, outputPath, outputFileName,
  apiToken, target
""",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"Config file, JSON or YAML (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--model-file",
        type=Path,
        default=None,
        help="Generate from a local .json, .yaml/.yml or .fga file instead of fetching",
    )
    parser.add_argument(
        "--target",
        choices=[t.value for t in Target],
        default=None,
        help="Output language (default: typescript)",
    )
    parser.add_argument("--output-path", default=None, help="Output directory")
    parser.add_argument("--output-file", default=None, help="Output file name")
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the generated module instead of writing it",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log pipeline details",
    )
    return parser


def write_module(generated: GeneratedModule, output_path: str) -> Path:
    """Write a generated module below output_path, creating directories."""
    directory = Path(output_path)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / generated.file_name
    path.write_text(generated.text, encoding="utf-8")
    return path


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    logger = structlog.get_logger(__name__)

    try:
        settings = load_settings(
            args.config,
            overrides={
                "target": args.target,
                "output_path": args.output_path,
                "output_file_name": args.output_file,
            },
        )

        if args.model_file is not None:
            model = load_model_file(args.model_file)
        else:
            missing = settings.missing_remote_fields()
            if missing:
                logger.error(
                    "missing_configuration",
                    missing=missing,
                    hint=f"set them in {args.config} or via FGA_STORE_ID / FGA_API_URL",
                )
                return 1
            token = settings.api_token.get_secret_value() if settings.api_token else None
            with AuthorizationModelClient(settings.api_url, settings.store_id, api_token=token) as client:
                model = parse_model(client.fetch(settings.authorization_model_id))

        generated = generate_module(model, settings.target, file_name=settings.file_name)
        logger.info(
            "module_generated",
            model_id=model.id,
            target=generated.target.value,
            object_types=len(model.type_definitions),
        )

        if args.stdout:
            sys.stdout.write(generated.text)
        else:
            path = write_module(generated, settings.output_path)
            logger.info("module_written", path=str(path))
    except (TypegenError, OSError) as e:
        logger.error("generation_failed", error=str(e), error_type=type(e).__name__)
        return 1

    return 0


__all__ = ["build_parser", "write_module", "main"]

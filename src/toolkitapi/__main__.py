"""
=============================================================================
TOOLKIT API CLI ENTRY POINT
=============================================================================

    # Run with defaults (127.0.0.1:54321, tesseract recognizer)
    python -m toolkitapi

    # Custom port, English by default
    python -m toolkitapi --port 60000 --language en-US

    # Tesseract installed somewhere unusual
    toolkit-api --tesseract-cmd /opt/homebrew/bin/tesseract

    # JSON access logs
    toolkit-api --log-format json

Values not given on the command line come from the TOOLKIT_* environment
variables (see ServerConfig.from_env), then from the built-in defaults.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .server import APIServer
from .services import TesseractRecognizer, TextRecognizer, UnavailableRecognizer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolkit-api",
        description="Local HTTP API for text recognition",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  toolkit-api                                  # Run with defaults
  toolkit-api --port 60000                     # Custom port
  toolkit-api --language en-US                 # Default OCR language
  toolkit-api --recognizer none                # Serve /health only; /ocr answers 500
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 54321)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # RECOGNITION ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--language",
        default=None,
        help="Language used when a request names none (default: zh-Hans)",
    )
    parser.add_argument(
        "--recognizer",
        choices=["tesseract", "none"],
        default="tesseract",
        help="Text-recognition backend (default: tesseract)",
    )
    parser.add_argument(
        "--tesseract-cmd",
        default="tesseract",
        help="Path to the tesseract executable",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )
    parser.add_argument(
        "--no-access-log",
        action="store_true",
        help="Disable per-request access logging",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"toolkit-api {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment-derived config with command-line overrides applied."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.language is not None:
        config.default_language = args.language
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format
    if args.no_access_log:
        config.access_log = False

    return config


def recognizer_from_args(args: argparse.Namespace) -> TextRecognizer:
    if args.recognizer == "none":
        return UnavailableRecognizer()
    return TesseractRecognizer(command=args.tesseract_cmd)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = APIServer(config, recognizer_from_args(args))
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

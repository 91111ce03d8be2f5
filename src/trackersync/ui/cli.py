from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from trackersync.app import classify_document, reconcile_tracker, seed_tracker
from trackersync.config import ConfigurationError, configure_logging
from trackersync.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keep the accountability tracker current")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Root log level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("reconcile", help="Run one reconciliation cycle")

    classify = subparsers.add_parser("classify", help="Classify an article against a schema")
    classify.add_argument(
        "--type",
        dest="schema_name",
        type=str,
        required=True,
        help="Registered schema name, e.g. brokenPromise or iceIncident",
    )
    classify.add_argument(
        "--file",
        type=str,
        default="-",
        help="Path to a text file containing the article, or - for stdin (default: %(default)s)",
    )

    seed = subparsers.add_parser("seed", help="Create the canonical record if it does not exist")
    seed.add_argument("path", type=Path, help="JSON file holding the seed record")

    serve = subparsers.add_parser("serve", help="Serve the HTTP triggers with uvicorn")
    serve.add_argument("--host", type=str, default=DEFAULT_HOST, help="Bind address")
    serve.add_argument("--port", type=int, default=DEFAULT_PORT, help="Bind port")

    return parser.parse_args(list(argv))


def _read_article(args: argparse.Namespace) -> str:
    if args.file == "-":
        return sys.stdin.read()
    try:
        return Path(args.file).read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read article file {args.file}: {exc}") from exc


def _load_seed(path: Path) -> dict[str, Any]:
    try:
        decoded = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot load seed file {path}: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ValueError(f"Seed file {path} must contain a JSON object")
    return decoded


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))  # noqa: T201


def _serve(host: str, port: int) -> None:
    import uvicorn  # noqa: PLC0415

    from trackersync.service import create_app  # noqa: PLC0415

    uvicorn.run(create_app(), host=host, port=port, log_config=None)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=getattr(logging, parsed_args.log_level))

    try:
        if parsed_args.command == "reconcile":
            result = reconcile_tracker()
            _emit(result.to_dict())
        elif parsed_args.command == "classify":
            article = _read_article(parsed_args)
            _emit(classify_document(parsed_args.schema_name, article))
        elif parsed_args.command == "seed":
            created = seed_tracker(_load_seed(parsed_args.path))
            _emit({"created": created})
        elif parsed_args.command == "serve":
            _serve(parsed_args.host, parsed_args.port)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ConfigurationError, ValidationError, ValueError):
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception(f"Fatal error during {parsed_args.command}")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

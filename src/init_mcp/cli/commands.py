from __future__ import annotations
import argparse
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from init_mcp.config import ServerConfig, load_config
from init_mcp.errors import MaterializeError
from init_mcp.materializer import materialize
from init_mcp.mcp.server import encode_json
from init_mcp.templates import TemplateSet

EXIT_SUCCESS = 0
EXIT_ERROR = 1

logger = logging.getLogger(__name__)


def configure_logging(config: ServerConfig) -> None:
    """Send logs to stderr; stdout is reserved for protocol output."""
    logging.basicConfig(
        level=getattr(logging, config.logging.level),
        format=config.logging.format,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="init-mcp",
        description="Write template files into a directory, as an MCP stdio server or one-shot command"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML configuration file (default: $INIT_MCP_CONFIG or built-in defaults)"
    )
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("serve", help="Run the MCP server on stdio (default)")

    init = sub.add_parser("init", help="Write the templates into a directory and print the result")
    init.add_argument("--directory", required=True, help="Path to the target directory")

    sub.add_parser("templates", help="List the active templates")

    return parser


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    # Load environment variables first
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        configure_logging(config)
        templates = config.load_templates()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)

    if args.cmd == "init":
        sys.exit(init_directory(args.directory, templates))
    elif args.cmd == "templates":
        list_templates(templates)
    else:
        from init_mcp.mcp.server import main as serve
        try:
            serve(config, templates)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        except Exception as e:
            logger.error(f"Fatal server error: {e}", exc_info=True)
            sys.exit(EXIT_ERROR)


def init_directory(directory: str, templates: TemplateSet) -> int:
    """Materialize ``templates`` into ``directory`` and print the JSON result.

    Returns:
        Process exit status
    """
    if not directory:
        print("Error: --directory is required", file=sys.stderr)
        return EXIT_ERROR

    try:
        result = materialize(directory, templates)
    except MaterializeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        output = encode_json(result.to_dict())
    except (TypeError, ValueError) as e:
        print(f"Error marshaling result: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(output)
    return EXIT_SUCCESS


def list_templates(templates: TemplateSet) -> None:
    """Print destination names and sizes, in write order."""
    for entry in templates:
        print(f"{entry.destination}\t{len(entry.content)} bytes")

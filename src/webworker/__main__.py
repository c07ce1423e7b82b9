"""
=============================================================================
WEBWORKER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on localhost:8080
    python -m webworker

    # Serve ./public on all interfaces
    python -m webworker --root ./public --host 0.0.0.0

    # Installed console script, same flags
    webworker --port 3000 --workers 32

=============================================================================
CONFIGURATION PRECEDENCE
=============================================================================

    defaults  <  WEBWORKER_* environment variables  <  command-line flags

ServerConfig.from_env() supplies the first two layers; any flag given on
the command line overrides the matching field.

=============================================================================
"""

import argparse
import sys
from dataclasses import replace

from . import __version__
from .config import ServerConfig
from .server import WebServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webworker",
        description="Templated static-file HTTP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webworker                          # Serve . on 127.0.0.1:8080
  python -m webworker --root ./public          # Serve another directory
  python -m webworker --host 0.0.0.0           # Listen on all interfaces
  python -m webworker --workers 32             # Up to 32 worker threads
  python -m webworker --server-name "Lab/2.0"  # Value for <cs371server>
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, 0 picks a free port)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-connection read/write deadline in seconds (default: 30)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Document root to serve files from (default: current directory)"
    )

    parser.add_argument(
        "--server-name",
        default=None,
        help="Server identity for the Server header and <cs371server> tag"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum number of worker threads (default: 16)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"webworker {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Layer command-line flags over the environment-derived config."""
    config = ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "timeout": args.timeout,
        "document_root": args.root,
        "server_name": args.server_name,
        "log_level": args.log_level,
    }
    if args.workers is not None:
        overrides["max_workers"] = args.workers
        overrides["min_workers"] = min(config.min_workers, args.workers)

    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = WebServer(config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

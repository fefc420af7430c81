# =============================================================================
# app/cli.py - Command Line Entry Point
# =============================================================================
# Subcommands:
#   hello-echo serve  [--config-dir DIR]
#       Run the HTTP server until SIGINT/SIGTERM.
#   hello-echo health [--config-dir DIR] [--timeout SECONDS]
#       GET /healthz on the configured address; exit 0 only on 200.
#
# The health subcommand lets container health checks reuse the service image
# without installing curl or wget.
# =============================================================================

import argparse
import asyncio
import sys

import httpx

from app.application import Application
from app.config import load_settings
from app.exceptions import HelloEchoError, ShutdownError, StartupError

HEALTH_CHECK_TIMEOUT_SECONDS = 10.0


def run_serve(args: argparse.Namespace) -> int:
    """Start the server and block until it is signaled to stop."""
    try:
        settings = load_settings(args.config_dir)
        application = Application.initialize(settings)
    except StartupError as e:
        print(f"Failed to initialize application: {e}", file=sys.stderr)
        return 1

    try:
        asyncio.run(application.run())
    except ShutdownError as e:
        application.logger.error("Shutdown error", extra={"error": e.message})
        return 1
    except HelloEchoError as e:
        application.logger.error("Server error", extra={"error": e.message, "code": e.code})
        return 1

    return 0


def run_health(args: argparse.Namespace) -> int:
    """One-shot health check against the running server."""
    try:
        settings = load_settings(args.config_dir)
    except StartupError as e:
        print(f"Failed to load config: {e}", file=sys.stderr)
        return 1

    health_url = f"{settings.server.url}/healthz"

    try:
        response = httpx.get(health_url, timeout=args.timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        print(f"Health check failed: {e}", file=sys.stderr)
        return 1

    if response.status_code != 200:
        print(
            f"Health check failed: server returned status {response.status_code}",
            file=sys.stderr,
        )
        return 1

    print("Health check passed")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hello-echo",
        description="A simple echo HTTP server",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Start the HTTP server")
    serve.add_argument("--config-dir", default=None, help="Directory holding default/local/private YAML")
    serve.set_defaults(func=run_serve)

    health = sub.add_parser("health", help="Check the health of the running server")
    health.add_argument("--config-dir", default=None, help="Directory holding default/local/private YAML")
    health.add_argument(
        "--timeout",
        type=float,
        default=HEALTH_CHECK_TIMEOUT_SECONDS,
        help="Request timeout in seconds",
    )
    health.set_defaults(func=run_health)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

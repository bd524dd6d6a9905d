"""
MatchLens Web Server Entry Point

Provides the `matchlens-web` command to start the FastAPI server.

Usage:
    matchlens-web                    # Start on the configured port (9090)
    matchlens-web --port 8000        # Start on custom port
    matchlens-web --host 127.0.0.1   # Bind to localhost only
"""

import argparse
import logging

import uvicorn

from matchlens.config import configure_logging, get_config

logger = logging.getLogger(__name__)


def main() -> None:
    """Start the MatchLens web server."""
    config = get_config()

    parser = argparse.ArgumentParser(
        description="MatchLens - Demo Parse Service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default=config.service.host,
        help=f"Host to bind to (default: {config.service.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.service.port,
        help=f"Port to bind to (default: {config.service.port})",
    )
    parser.add_argument(
        "--log-level",
        default=config.logging.level.lower(),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level",
    )
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format=config.logging.format)
    configure_logging(config.logging)

    logger.info("Starting MatchLens web server on http://%s:%s", args.host, args.port)
    logger.info("Press Ctrl+C to stop")

    # Demo parsing is CPU-heavy and runs are independent: one worker process
    uvicorn.run(
        "matchlens.api:app",
        host=args.host,
        port=args.port,
        workers=1,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()

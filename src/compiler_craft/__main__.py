"""Entry point for running the Compiler Craft server.

This module handles:
- Configuration loading
- Logging setup with secret sanitization
- Application construction
- Serving with uvicorn
"""

import argparse
import sys
from pathlib import Path

import structlog

from compiler_craft._version import __version__

log = structlog.get_logger()


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure structured logging before the config file is read.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from compiler_craft.utils.logging import LogLevel, configure_logging

    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel.INFO,
        log_format=log_format,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="compiler-craft",
        description="Compiler Craft - LLM-narrated walkthroughs of a compiler pipeline",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file (default: config/config.yaml)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse config and validate without starting the server",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    parser.add_argument("--host", help="Override server.host from the config file")
    parser.add_argument("--port", type=int, help="Override server.port from the config file")

    return parser.parse_args(argv)


def run_server(
    config_path: Path,
    dry_run: bool = False,
    host: str | None = None,
    port: int | None = None,
    debug: bool = False,
) -> int:
    """Load configuration and serve the API.

    Args:
        config_path: Path to configuration file
        dry_run: If True, only validate config without starting
        host: Bind address overriding the config file
        port: Port overriding the config file
        debug: Keep DEBUG level even if the config file says otherwise

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    log.info("starting_compiler_craft", version=__version__, config_path=str(config_path))

    try:
        from compiler_craft.config.loader import load_config

        config = load_config(config_path)
        log.info("configuration_loaded")

        from compiler_craft.utils.logging import configure_logging

        configure_logging(
            level="DEBUG" if debug else config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

        if dry_run:
            log.info("dry_run_mode_config_valid")
            return 0

        import uvicorn

        from compiler_craft.api.app import create_app

        app = create_app(config)
        bind_host = host or config.server.host
        bind_port = port or config.server.port

        log.info("server_listening", url=f"http://{bind_host}:{bind_port}")
        uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)
        return 0

    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(config_path), error=str(e))
        return 1
    except ValueError as e:
        log.error("configuration_invalid", error=str(e))
        return 1
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.format)

    return run_server(
        args.config,
        dry_run=args.dry_run,
        host=args.host,
        port=args.port,
        debug=args.debug,
    )


if __name__ == "__main__":
    sys.exit(main())

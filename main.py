#!/usr/bin/env python3
"""
CraftPing - Minecraft server status queries
Main entry point with CLI interface
"""

import asyncio
import argparse
import logging
import sys
import os
from pathlib import Path
from typing import List, Optional

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.config import ConfigManager
from core.exceptions import CraftPingError
from core.query import query_many
from modules.targets import load_targets
from modules.webhook import WebhookReporter
from ui.console import StatusConsole
from utils.network import ServerAddress

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_OFFLINE = 1
EXIT_USAGE = 2

def setup_logging(verbose: bool = False, level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Setup logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="craftping",
        description="CraftPing - Minecraft server status queries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  craftping play.example.net
  craftping 10.0.0.5:25566 [::1]:25565 --timeout 3
  craftping --file servers.txt --json
  craftping mc.example.org --srv --webhook https://discord.com/api/webhooks/...
        """
    )

    parser.add_argument(
        "addresses",
        nargs="*",
        help="Servers to query as host[:port]"
    )

    parser.add_argument(
        "--file", "-f",
        help="File containing one host[:port] per line"
    )

    # Utility commands
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit"
    )

    parser.add_argument(
        "--create-config",
        action="store_true",
        help="Create default configuration file and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="CraftPing v0.3.0"
    )

    parser.add_argument(
        "--config", "-c",
        default="config.yaml",
        help="Configuration file path (default: config.yaml)"
    )

    # Query options
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Overall per-server timeout in seconds"
    )

    parser.add_argument(
        "--protocol-version",
        type=int,
        help="Protocol version announced in the handshake"
    )

    parser.add_argument(
        "--srv",
        action="store_true",
        help="Resolve _minecraft._tcp SRV records before connecting"
    )

    parser.add_argument(
        "--max-concurrent",
        type=int,
        help="Maximum queries in flight at once (default: unlimited)"
    )

    # Output options
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )

    parser.add_argument(
        "--webhook",
        help="Post results to this Discord webhook URL"
    )

    # Logging options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all logging except errors"
    )

    return parser

def apply_overrides(config: ConfigManager, args: argparse.Namespace) -> None:
    """Override configuration with command line arguments"""
    if args.timeout is not None:
        config.query.timeout = args.timeout
    if args.protocol_version is not None:
        config.query.protocol_version = args.protocol_version
    if args.srv:
        config.query.srv_lookup = True
    if args.max_concurrent is not None:
        config.query.max_concurrent = args.max_concurrent
    if args.webhook:
        config.webhook.enabled = True
        config.webhook.url = args.webhook
    config.validate()

async def run(args: argparse.Namespace, config: ConfigManager) -> int:
    targets = [ServerAddress.parse(a, config.query.default_port) for a in args.addresses]
    if args.file:
        targets.extend(await load_targets(args.file, config.query.default_port))
    if not targets:
        raise CraftPingError("No servers to query")

    results = await query_many(targets, config=config.query)

    ui = StatusConsole(config=config.ui)
    if args.json:
        ui.render_json(results)
    else:
        ui.render(results)

    if config.webhook.enabled:
        await WebhookReporter(config.webhook).send_results(results)

    return EXIT_OK if all(r.success for r in results) else EXIT_OFFLINE

def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.create_config:
            config_path = Path(args.config)
            if config_path.exists():
                print(f"Config file {config_path} already exists")
                return EXIT_USAGE
            ConfigManager(args.config)
            print(f"Default configuration created: {args.config}")
            return EXIT_OK

        if args.validate_config:
            if not Path(args.config).exists():
                print(f"Config file {args.config} not found", file=sys.stderr)
                return EXIT_USAGE
            ConfigManager(args.config, create_missing=False)
            print(f"Configuration file {args.config} is valid")
            return EXIT_OK

        if not args.addresses and not args.file:
            parser.error("at least one address or --file is required")

        config = ConfigManager(args.config, create_missing=False)
        if args.quiet:
            setup_logging(level="ERROR", log_file=config.logging.file)
        else:
            setup_logging(args.verbose, config.logging.level, config.logging.file)
        apply_overrides(config, args)

        return asyncio.run(run(args, config))

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_OFFLINE
    except (CraftPingError, ValueError) as e:
        logger.debug("Fatal error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

if __name__ == "__main__":
    sys.exit(main())

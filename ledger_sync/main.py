"""
Synchronizer Entry Point.

Loads the settings, connects to the configured ledger node and keeps the
registry mirror running until interrupted.

Usage:
    python -m ledger_sync --config config/config.yaml --env development
    python -m ledger_sync --resolver mypackage.bindings:resolve_registry
"""

import argparse
import asyncio
import importlib
import os
import signal
import sys
from typing import Any, Dict, List, Optional

from ledger_sync.config import AppConfig, ConfigError, SyncConfig, load_config
from ledger_sync.core import ContractNotDeployedError, get_logger, set_log_level
from ledger_sync.ledger import (
    ContractResolver,
    LedgerStateSynchronizer,
    UpdateKind,
    close_connection,
    create_connection,
)

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"


async def unavailable_registry(network_id: Any, provider: Any) -> Any:
    """Resolver used when no registry binding is configured."""
    raise ContractNotDeployedError(
        "No registry binding configured",
        details={"network_id": network_id},
    )


def load_resolver(reference: Optional[str]) -> ContractResolver:
    """
    Import a registry resolver from a "module:attribute" reference.

    Args:
        reference: Import reference, None for no binding

    Raises:
        ValueError: If the reference is malformed or not an async callable
    """
    if reference is None:
        return unavailable_registry

    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Resolver must look like module:attribute, got {reference!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import resolver module {module_name!r}: {e}") from e

    resolver = getattr(module, attribute, None)
    if resolver is None or not callable(resolver):
        raise ValueError(f"{reference!r} is not a callable resolver")
    return resolver


def sync_settings(config: AppConfig) -> SyncConfig:
    """Synchronizer settings, with demo seeding refused in production."""
    settings = config.sync
    if config.is_production and settings.demo_request_count > 0:
        logger.warning(
            f"Ignoring demo_request_count={settings.demo_request_count} in production"
        )
        settings = settings.model_copy(update={"demo_request_count": 0})
    return settings


async def run_sync(
    config: AppConfig,
    resolver: ContractResolver,
    once: bool = False,
) -> Dict[str, Any]:
    """
    Run the synchronizer.

    Args:
        config: Application settings
        resolver: Resolves the registry binding for a network
        once: Stop after the first boot attempt instead of waiting for a signal

    Returns:
        Synchronizer statistics taken at shutdown
    """
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: List[signal.Signals] = []

    def signal_handler(sig):
        logger.info(f"Received signal {sig}, initiating shutdown")
        shutdown_event.set()

    if not once:
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
                installed.append(sig)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: signal_handler(s))

    connection = create_connection(config.provider)
    if connection is None:
        logger.warning("No rpc_url configured, the mirror cannot connect")

    synchronizer = LedgerStateSynchronizer(
        connection,
        resolver,
        config=sync_settings(config),
    )

    def log_status(kind: UpdateKind) -> None:
        if kind is not UpdateKind.STATUS:
            return
        if synchronizer.has_error():
            logger.info(f"Status {synchronizer.status.value} ({synchronizer.get_error().value})")
        else:
            logger.info(f"Status {synchronizer.status.value}")

    synchronizer.add_listener(log_status)

    try:
        logger.info(f"Starting {config.app_name} ({config.environment})")
        synchronizer.start()
        await synchronizer.wait_loaded()

        stats = synchronizer.get_statistics()
        logger.info(
            f"Mirror loaded: network={stats['network_id']}, "
            f"requests={stats['request_count']}"
        )

        if not once:
            logger.info("Synchronizer running. Press Ctrl+C to stop.")
            await shutdown_event.wait()

        return synchronizer.get_statistics()

    finally:
        logger.info("Shutting down synchronizer")

        for sig in installed:
            loop.remove_signal_handler(sig)

        try:
            await synchronizer.stop()
        except Exception as e:
            logger.error(f"Error stopping synchronizer: {e}")

        try:
            await close_connection(connection)
        except Exception as e:
            logger.error(f"Error closing ledger connection: {e}")

        logger.info("Shutdown complete")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Mirror a ledger-hosted valentine registry"
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Settings file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--env",
        default=os.getenv("APP_ENV"),
        help="Environment overlay to apply (default: APP_ENV)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Explicit .env file to export before loading settings",
    )
    parser.add_argument(
        "--resolver",
        default=None,
        help="Registry resolver as module:attribute",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Exit after the first load attempt",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config, env=args.env, env_file=args.env_file)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    set_log_level("DEBUG" if args.debug else config.log_level)

    try:
        resolver = load_resolver(args.resolver)
    except ValueError as e:
        parser.error(str(e))

    try:
        stats = asyncio.run(run_sync(config, resolver, once=args.once))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    if args.once and stats["error"] is not None:
        logger.error(f"Load failed: {stats['error']}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

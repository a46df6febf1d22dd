#!/usr/bin/env python3
"""
Adyen Notifications Service.

Main entry point that wires the notification service together:
- Database connection and schema
- Notification store and merchant account resolver
- HTTP API receiving Adyen notifications

Usage:
    python main.py

Environment variables:
    See config.py for all configuration options.
"""

import asyncio
import logging
import os
import signal
import sys
from typing import Optional

from aiohttp import web

from config import config
from database import Database, NotificationRepository, StoreRepository
from services import AccountResolver, NotificationStore
from api import create_app


# Configure logging
def setup_logging():
    """Configure logging based on config."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    if config.logging.file:
        # Ensure log directory exists
        log_dir = os.path.dirname(config.logging.file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(config.logging.file))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )

    # Reduce noise from third-party libraries
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


class AdyenNotificationService:
    """
    Main service orchestrator.

    Owns the database connection and the HTTP server for the
    notification store and account resolver.
    """

    def __init__(self):
        self.db: Optional[Database] = None
        self.notification_store: Optional[NotificationStore] = None
        self.account_resolver: Optional[AccountResolver] = None
        self.api_app: Optional[web.Application] = None
        self.api_runner: Optional[web.AppRunner] = None
        self._shutdown_event = asyncio.Event()
        self._stop_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start all services."""
        logger.info(f"Starting {config.service.name}")

        # Validate configuration
        errors = config.validate()
        if errors:
            for error in errors:
                logger.error(f"Configuration error: {error}")
            raise ValueError("Invalid configuration")

        # Initialize database
        logger.info("Initializing database...")
        self.db = Database()
        await self.db.connect()
        await self.db.init_schema()

        # Initialize services
        logger.info("Initializing services...")
        stores = StoreRepository(self.db)

        self.notification_store = NotificationStore(NotificationRepository(self.db))

        self.account_resolver = AccountResolver(
            store_account_map=config.adyen.store_account_map,
            default_account=config.adyen.default_account,
            stores=stores
        )
        logger.info(f"Merchant accounts: {self.account_resolver!r}")

        # Start API server
        logger.info("Starting API server...")
        self.api_app = create_app(
            notification_store=self.notification_store,
            account_resolver=self.account_resolver,
            stores=stores
        )

        self.api_runner = web.AppRunner(self.api_app)
        await self.api_runner.setup()

        site = web.TCPSite(
            self.api_runner,
            config.api.host,
            config.api.port
        )
        await site.start()

        logger.info(f"API server running at http://{config.api.host}:{config.api.port}")

    async def stop(self) -> None:
        """Stop all services gracefully."""
        logger.info("Initiating graceful shutdown...")

        # Stop accepting new requests, giving in-flight ones a bounded time
        if self.api_runner:
            try:
                await asyncio.wait_for(
                    self.api_runner.cleanup(),
                    timeout=config.service.shutdown_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"API server did not stop within {config.service.shutdown_timeout}s"
                )
            self.api_runner = None

        # Close database
        if self.db:
            await self.db.disconnect()
            self.db = None

        logger.info("Shutdown complete")
        self._shutdown_event.set()

    async def run(self) -> None:
        """Run the service until shutdown signal."""
        await self.start()

        # Wait for shutdown signal
        await self._shutdown_event.wait()

    def request_shutdown(self) -> None:
        """Request service shutdown; repeated requests share one stop."""
        if self._stop_task is None:
            self._stop_task = asyncio.create_task(self.stop())


def handle_signal(service: AdyenNotificationService, sig: signal.Signals) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received signal {sig.name}, initiating shutdown...")
    service.request_shutdown()


async def main() -> None:
    """Main entry point."""
    setup_logging()

    service = AdyenNotificationService()

    # Set up signal handlers
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: handle_signal(service, s)
        )

    try:
        await service.run()
    except Exception as e:
        logger.error(f"Service error: {e}", exc_info=True)
        await service.stop()
        sys.exit(1)


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == '__main__':
    run()

#!/usr/bin/env python3
"""
BlitzProof Score Engine - HTTP service entry point

Wires the data collectors, scoring engine, PostgreSQL store and Redis cache
behind the /api/blitzproof routes and runs until SIGINT/SIGTERM.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from aiohttp import web
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from analysis.scoring_engine import BlitzProofScoringEngine
from config.settings import Settings
from core.score_service import BlitzProofScoreService
from data.collectors import DataCollectionService
from data.storage.cache import CacheManager
from data.storage.database import DatabaseManager
from monitoring.blitzproof_routes import BlitzProofRoutes
from monitoring.logger import StructuredLogger

logger = logging.getLogger("BlitzProof")


class BlitzProofApplication:
    """Owns the shared resources and the HTTP server"""

    def __init__(self, host: str, port: int, log_level: Optional[str] = None):
        self.host = host
        self.port = port
        self.config = Settings.to_config()

        log_config = Settings.get_logging_config()
        if log_level:
            log_config['log_level'] = log_level.upper()
        self.structured_logger = StructuredLogger("BlitzProof", log_config)

        self.shutdown_event = asyncio.Event()
        self.db_manager: Optional[DatabaseManager] = None
        self.cache_manager: Optional[CacheManager] = None
        self.collection_service: Optional[DataCollectionService] = None
        self.runner: Optional[web.AppRunner] = None

    def _signal_handler(self, signum):
        """Handle shutdown signals gracefully"""
        logger.warning(f"Received signal {signum}, initiating graceful shutdown...")
        self.shutdown_event.set()

    async def initialize(self) -> web.Application:
        """Connect store and cache, build the service graph and routes"""
        logger.info(f"Starting {Settings.APP_NAME} v{Settings.APP_VERSION}")
        logger.info(f"Environment: {Settings.get_environment_info()}")

        self.db_manager = DatabaseManager(self.config)
        await self.db_manager.connect()

        # Degrades to no-cache mode if Redis is unreachable
        self.cache_manager = CacheManager(self.config)
        await self.cache_manager.connect()

        self.collection_service = DataCollectionService(self.config)
        await self.collection_service.initialize()

        engine = BlitzProofScoringEngine(self.collection_service)
        service = BlitzProofScoreService(
            engine,
            self.db_manager,
            self.cache_manager,
            structured_logger=self.structured_logger
        )

        app = web.Application()
        BlitzProofRoutes(
            service,
            prefix=Settings.API_PREFIX,
            structured_logger=self.structured_logger
        ).setup_routes(app)
        app.router.add_get('/health', self.health)
        return app

    async def health(self, request: web.Request) -> web.Response:
        database = await self.db_manager.health_check()
        cache = await self.cache_manager.health_check()
        status = 200 if database['connected'] else 503
        return web.json_response({
            'success': database['connected'],
            'data': {'database': database, 'cache': cache}
        }, status=status)

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._signal_handler, sig)

        try:
            app = await self.initialize()

            self.runner = web.AppRunner(app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()
            logger.info(f"Listening on http://{self.host}:{self.port}{Settings.API_PREFIX}")

            await self.shutdown_event.wait()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Release every shared resource"""
        logger.info("Shutting down...")
        if self.runner:
            await self.runner.cleanup()
        if self.collection_service:
            await self.collection_service.cleanup()
        if self.cache_manager:
            await self.cache_manager.disconnect()
        if self.db_manager:
            await self.db_manager.disconnect()
        logger.info("Shutdown complete")


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="BlitzProof Score Engine - token security rating service"
    )

    parser.add_argument(
        '--host',
        default=Settings.API_HOST,
        help='Interface to bind the HTTP server to'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=Settings.API_PORT,
        help='Port for the HTTP server'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        type=str.upper,
        default=None,
        help='Override LOG_LEVEL'
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)
    app = BlitzProofApplication(args.host, args.port, args.log_level)

    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

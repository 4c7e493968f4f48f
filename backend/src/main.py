#!/usr/bin/env python3
"""
Sports Sync Service - Main Entry Point

This service keeps the current game for each tracked team in sync with the
ESPN site API, polling faster while games are live, and serves the latest
state over a small status API.
"""

import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

# Load .env from backend directory before Config() is used
from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import uvicorn

from api.main import app, attach_orchestrator
from config import Config
from refresh.orchestrator import SyncOrchestrator
from utils.logger import setup_logging

logger = logging.getLogger(__name__)


class _APIServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the service."""

    def install_signal_handlers(self):
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class SportsSyncService:
    """Main service class: sync loop plus status API."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.orchestrator: Optional[SyncOrchestrator] = None
        self.api_server: Optional[_APIServer] = None
        self.running = False
        self._shutdown_task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the sync service."""
        logger.info("Starting Sports Sync Service", extra={
            "version": "2.0.0",
            "environment": self.config.environment,
            "leagues": [key for key, _ in self.config.enabled_leagues()]
        })

        try:
            self.orchestrator = SyncOrchestrator(self.config)
            await self.orchestrator.initialize()
            attach_orchestrator(self.orchestrator)

            # Set up signal handlers for graceful shutdown
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, self._handle_shutdown, sig)

            self.running = True

            tasks = [self.orchestrator.run()]
            if self.config.api_enabled:
                self.api_server = _APIServer(uvicorn.Config(
                    app,
                    host=self.config.api_host,
                    port=self.config.api_port,
                    log_config=None,
                ))
                tasks.append(self.api_server.serve())
                logger.info("Status API enabled", extra={
                    "host": self.config.api_host,
                    "port": self.config.api_port
                })

            await asyncio.gather(*tasks)

            if self._shutdown_task is not None:
                await self._shutdown_task

        except Exception as e:
            logger.error("Fatal error in sync service", extra={
                "error": str(e),
                "error_type": type(e).__name__
            }, exc_info=True)
            raise
        finally:
            attach_orchestrator(None)

    def _handle_shutdown(self, signum):
        """Handle shutdown signals gracefully."""
        logger.info("Received shutdown signal", extra={"signal": signum})
        if not self.running:
            return
        self.running = False
        if self.api_server:
            self.api_server.should_exit = True
        if self.orchestrator:
            self._shutdown_task = asyncio.create_task(self.orchestrator.shutdown())


async def main():
    """Main entry point."""
    config = Config()
    setup_logging(config)

    service = SportsSyncService(config)
    try:
        await service.start()
    except KeyboardInterrupt:
        logger.info("Service interrupted by user")
    except Exception as e:
        logger.error("Service crashed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())

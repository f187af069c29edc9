"""Main entry point - runs the API server."""

import asyncio
import logging
import signal

import uvicorn

from confidential_swap.api.app import create_app
from confidential_swap.config import LiquidityCheckMode, Settings, get_settings
from confidential_swap.ledger.database import close_db, init_db
from confidential_swap.services.factory import create_orchestrator

logger = logging.getLogger(__name__)


class Application:
    """Main application: database, orchestrator and API server."""

    def __init__(self):
        self.settings = get_settings()
        self._shutdown_event = asyncio.Event()

    async def start(self):
        """Start all services."""
        # Configure logging
        log_level = logging.DEBUG if self.settings.debug else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        logger.info("Starting confidential swap service...")
        logger.info(f"Environment: {self.settings.environment}")
        self._check_settings()

        # Initialize database
        await init_db()
        logger.info("Database initialized")

        orchestrator = create_orchestrator(self.settings)
        await orchestrator.initialize()
        logger.info(
            f"Oracle {orchestrator.oracle.name} at {await orchestrator.get_oracle_address()}, "
            f"reserve {orchestrator.reserve.name} at {await orchestrator.get_reserve_address()}"
        )

        api_task = asyncio.create_task(self._run_api(orchestrator))

        # Wait for shutdown signal
        await self._shutdown_event.wait()

        api_task.cancel()
        await asyncio.gather(api_task, return_exceptions=True)

        await close_db()
        logger.info("Cleanup complete")

    def _check_settings(self):
        """Warn about development defaults that must not reach production."""
        if not self.settings.is_production:
            return
        if self.settings.input_proof_secret == Settings.model_fields["input_proof_secret"].default:
            logger.warning("INPUT_PROOF_SECRET is the development default")
        if not self.settings.admin_token:
            logger.warning("ADMIN_TOKEN not set - admin endpoints are open")
        if self.settings.liquidity_check == LiquidityCheckMode.REFERENCE:
            logger.warning(
                "LIQUIDITY_CHECK=reference: a swap that fails the liquidity check keeps its debit"
            )

    async def _run_api(self, orchestrator):
        """Run the FastAPI server."""
        try:
            app = create_app(orchestrator)
            config = uvicorn.Config(
                app,
                host=self.settings.api_host,
                port=self.settings.api_port,
                log_level="debug" if self.settings.debug else "info",
            )
            server = uvicorn.Server(config)
            logger.info(f"Starting API server on {self.settings.api_host}:{self.settings.api_port}")
            await server.serve()
        except asyncio.CancelledError:
            logger.info("API server cancelled")
        except Exception as e:
            logger.error(f"API error: {e}")
            raise
        finally:
            self._shutdown_event.set()

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()


def main():
    """Main entry point."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    app = Application()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()

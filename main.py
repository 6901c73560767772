"""
MARKET PULSE — Main Entry Point
Serves the dashboard API.
"""
import uvicorn
from market_pulse.config.settings import get_settings
from market_pulse.utils.logger import setup_logging, get_logger

logger = get_logger("main")


def run_api():
    """Run the FastAPI application."""
    settings = get_settings()
    setup_logging()
    logger.info("starting_market_pulse", version=settings.version, port=settings.port)
    uvicorn.run(
        "market_pulse.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run_api()

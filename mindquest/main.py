"""Main entry point for the MindQuest API server"""
import logging

import uvicorn

from mindquest.api.server import create_api_application
from mindquest.config import API_HOST, API_PORT, LOG_LEVEL, validate_config
from mindquest.observability import init_sentry, shutdown_sentry

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point"""
    try:
        logger.info("Validating configuration...")
        validate_config()

        init_sentry()

        app = create_api_application()
        logger.info(f"Serving on {API_HOST}:{API_PORT}")
        uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())

    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        shutdown_sentry()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Startup script for the Dynamic Form API Server.

This script starts the FastAPI server with proper configuration and logging.
"""

import logging
import sys

import uvicorn

from dynamic_form.config.settings import get_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Start the API server."""
    try:
        config = get_config()

        logger.info("Starting Dynamic Form API Server...")
        logger.info(f"Environment: {config.api.environment}")
        logger.info(f"Host: {config.api.host}")
        logger.info(f"Port: {config.api.port}")
        logger.info(f"Debug: {config.api.debug}")
        logger.info(f"CORS Origins: {config.api.cors_origins}")
        logger.info(f"Form source: {config.form_api.descriptor_file or config.form_api.base_url}")

        uvicorn.run(
            "dynamic_form.api:app",
            host=config.api.host,
            port=config.api.port,
            reload=config.api.debug,
            log_level="info",
            access_log=True,
            use_colors=True
        )

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

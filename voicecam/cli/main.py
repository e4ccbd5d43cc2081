"""
Main entry point for the voice operated camera.
"""

import sys
import asyncio
import logging

from voicecam.core.controller import VoiceCameraApp
from voicecam.utils.config import config

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    """Main entry point for the voice camera application."""
    logger.info("🚀 Starting Voice Operated Camera...")

    try:
        app = VoiceCameraApp(config)
        asyncio.run(app.run())

    except KeyboardInterrupt:
        logger.info("👋 Shutting down...")
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
Main application entry point
"""

import uvicorn
from tracker.config.settings import settings
from tracker.utils.logger import logger


def main():
    """Run the web API under uvicorn"""
    logger.info(f"Starting project tracker on port {settings.WEB_PORT}")
    uvicorn.run("tracker.web.main:app", host="0.0.0.0", port=settings.WEB_PORT)


if __name__ == "__main__":
    main()

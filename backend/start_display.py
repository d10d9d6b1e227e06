"""Start a display client that follows the content server at DISPLAY_SERVER_URL."""
import asyncio
import logging

from wallify.config import settings
from wallify.display.session import run_display

if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run_display(settings))
    except KeyboardInterrupt:
        pass

import logging
import sys

from config import LOG_LEVEL
from main import run

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    try:
        run()
    except Exception as e:
        logger.error(f"Report failed: {e}")
        sys.exit(1)

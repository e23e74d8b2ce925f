# logger.py
import logging

from app.config import LOG_LEVEL, LOG_FILE

handlers = [logging.StreamHandler()]
if LOG_FILE:
    handlers.append(logging.FileHandler(LOG_FILE))

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    handlers=handlers,
)

logger = logging.getLogger("scraper")

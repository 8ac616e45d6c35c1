"""
Logging setup.

Imported once by the application entry point; every module then logs through
``logging.getLogger(__name__)``.
"""

import logging

from geonear.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)

# httpx logs every request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)

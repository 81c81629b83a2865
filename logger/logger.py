import logging
import os
import sys

# Configure a single application logger
# LOG_LEVEL is read straight from the environment so the logger can be
# imported before config.py has validated anything.
log_format = '%(asctime)s - %(levelname)s - %(message)s'
log_level = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format=log_format,
    handlers=[logging.StreamHandler(sys.stdout)]
)

# Get a single logger for the entire application
logger = logging.getLogger("marketplace.chat")

# Export only the logger instance
__all__ = ["logger"]

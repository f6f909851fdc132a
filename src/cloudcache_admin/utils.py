"""Utility functions for cloudcache-admin: logging setup."""

import os
import sys
import logging
import logging.handlers

from .config import LOG_PATH, LOG_FILE_MAX_BYTES, LOG_FILE_BACKUP_COUNT


# Initialize logging
def logging_main(debug: bool = False, log_path: str = LOG_PATH):
    """Initialize logging configuration."""
    log = logging.getLogger()

    # Already configured: only adjust the console level
    if hasattr(logging_main, '_configured'):
        for handler in log.handlers:
            if isinstance(handler, logging.StreamHandler) and getattr(handler, 'stream', None) is sys.stderr:
                handler.setLevel(logging.DEBUG if debug else logging.INFO)
        return

    while log.handlers:
        handler = log.handlers[0]
        handler.close()
        log.removeHandler(handler)

    log.setLevel(logging.DEBUG)

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    formatterdebug = logging.Formatter('%(asctime)s - %(levelname)s - %(funcName)s - %(message)s')

    # console output goes to stderr so stdout only carries command results
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.DEBUG if debug else logging.INFO)
    ch.setFormatter(formatter)
    log.addHandler(ch)

    # file handler logs even debug messages
    try:
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(log_path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUP_COUNT)
    except OSError as e:
        logging.warning(f"Cannot write log file {log_path}: {e}")
    else:
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatterdebug)
        log.addHandler(fh)

    logging_main._configured = True

    logging.debug("starting " + os.path.basename(sys.argv[0]))

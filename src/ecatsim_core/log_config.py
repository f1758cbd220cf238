# --- src/ecatsim_core/log_config.py ---
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] [%(name)s] %(message)s"


def setup_logging(level=logging.INFO, stream=None):
    """ Configures the root logger with a single console handler. """
    log_formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()

    # Calling this twice must not duplicate output.
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setFormatter(log_formatter)
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    logging.getLogger(__name__).debug(f"Logging configured at level {logging.getLevelName(level)}.")

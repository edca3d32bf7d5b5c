import io
import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_file: Optional[str] = "beta_trial.log", level: int = logging.INFO):
    """
    Set up the root logger with a file handler and a UTF-8 console handler.
    Existing handlers are removed first so repeated calls do not duplicate output.
    """
    logger = logging.getLogger()
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if logger.hasHandlers():
        logger.handlers.clear()

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Wrap non-UTF-8 stdout so Windows consoles do not raise UnicodeEncodeError
    encoding = (getattr(sys.stdout, "encoding", None) or "").lower().replace("-", "")
    if encoding != "utf8" and hasattr(sys.stdout, "buffer"):
        stream = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace', line_buffering=True)
    else:
        stream = sys.stdout
    stream_handler = logging.StreamHandler(stream)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    logging.info("Logging has been set up.")
    return logger

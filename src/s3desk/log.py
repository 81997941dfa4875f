import logging
import sys

_INITIALISED = False

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_default_logging():
    """Set up default logging configuration if none exists."""
    global _INITIALISED
    if _INITIALISED:
        return
    _INITIALISED = True
    if not logging.root.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format=_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout)],
        )
    # botocore is chatty at DEBUG and leaks request signing details.
    logging.getLogger("botocore").setLevel(logging.WARNING)


def configure_logging(level=logging.INFO, log_file=None):
    """Configure logging for the s3desk package.

    Args:
        level: The logging level (default: logging.INFO)
        log_file: Optional path to a log file
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=_FORMAT,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )


setup_default_logging()

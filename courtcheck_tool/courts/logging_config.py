"""
Logging setup for courtcheck commands.

Verbosity follows the -v count: none is WARNING, -v is INFO, -vv is DEBUG and
-vvv additionally turns on boto3/botocore/httpx wire logging.
"""

import logging
import sys

_LIBRARY_LOGGERS = ("boto3", "botocore", "urllib3", "httpx", "httpcore")

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(verbose: int = 0) -> None:
    """
    Configure root logging for the requested verbosity.

    Args:
        verbose: Number of -v flags given on the command line
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format=_FORMAT, stream=sys.stderr, force=True)

    library_level = logging.DEBUG if verbose >= 3 else logging.WARNING
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)

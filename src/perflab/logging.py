"""Logging for perflab.

Every perflab module logs under the ``perflab`` namespace, either on the
package logger itself or on a child from :func:`get_logger` (for example
``perflab.runner``).  The library never configures handlers on import;
:func:`setup_logging` is called by the command-line entry point, or by an
application that wants perflab's console format.

Console output goes to stderr so that exported data written to stdout
stays clean.  A log file, when requested, always receives DEBUG records,
including the per-trial progress lines.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "perflab"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Console level for the -v/-q flags.  *verbose* wins over *quiet*."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the ``perflab`` logger.

    Calling this again replaces the handlers installed by the previous
    call.  Records do not propagate to the root logger, so a host
    application with its own root handler does not print them twice.

    Args:
        verbose: Show DEBUG records (trial progress) on the console, with
            the emitting module's logger name.
        quiet: Only show warnings and errors on the console.
        log_file: Also write every record to this file, creating parent
            directories as needed.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level(verbose=verbose, quiet=quiet))
    console.setFormatter(logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger ``perflab.<name>``; records reach the perflab handlers."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")

"""Logging setup for registrygc.

Two kinds of output share the console. Operational messages carry a
timestamp and logger name. The collector trace written by LoggingDiagnostics
under ``registrygc.gc`` is printed bare, one decision per line, so it can be
grepped or diffed between runs. Everything goes to stderr; stdout is kept
for the JSON result.
"""

import logging
import sys
from typing import List, Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
TRACE_FORMAT = '%(message)s'
TRACE_LOGGER = 'registrygc.gc'

# Libraries that log every S3 request at INFO/DEBUG
NOISY_LOGGERS = ('boto3', 'botocore', 's3transfer', 'urllib3')


def _handlers(log_file: Optional[str], fmt: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(logging.Formatter(fmt))
    return handlers


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, trace: bool = True):
    """Configure root logging and the collector trace.

    With trace disabled the per-manifest and per-blob lines are dropped while
    warnings and errors still get through.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, handlers=_handlers(log_file, LOG_FORMAT), force=True)

    trace_logger = logging.getLogger(TRACE_LOGGER)
    for handler in list(trace_logger.handlers):
        trace_logger.removeHandler(handler)
        handler.close()
    for handler in _handlers(log_file, TRACE_FORMAT):
        trace_logger.addHandler(handler)
    trace_logger.propagate = False
    trace_logger.setLevel(log_level if trace else max(log_level, logging.WARNING))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

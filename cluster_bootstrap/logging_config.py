"""Logging for k3s-bootstrap.

Node progress is printed on the rich console, so the stderr log only carries
warnings and errors unless ``--verbose`` is given. A log file, when
requested, always receives the full debug stream of a bootstrap run.
"""

import logging
import sys
from pathlib import Path

from cluster_bootstrap.exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# SSH, HTTP and Kubernetes client libraries log every request at INFO/DEBUG
NOISY_LOGGERS = ("paramiko", "paramiko.transport", "urllib3", "kubernetes")


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(
            f"Unknown log level: {level}",
            "Use one of DEBUG, INFO, WARNING, ERROR or CRITICAL",
        )
    return resolved


def _stderr_handler(verbose: bool, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handler.setFormatter(formatter)
    return handler


def _run_log_handler(log_file: Path, formatter: logging.Formatter) -> logging.Handler | None:
    """File handler for a run log, or None if the file cannot be opened."""
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file)
    except OSError as e:
        logging.getLogger(__name__).warning(f"Cannot write log file {log_file}: {e}")
        return None

    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level: str = "INFO", log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure the root logger for a CLI invocation.

    Args:
        level: Root level name, ignored when ``verbose`` is set
        log_file: Optional run log receiving debug output
        verbose: Log everything, including debug output on stderr

    Raises:
        ConfigurationError: If ``level`` is not a logging level name
    """
    root_level = logging.DEBUG if verbose or log_file else _resolve_level(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(root_level)
    root_logger.addHandler(_stderr_handler(verbose, formatter))

    if log_file:
        handler = _run_log_handler(Path(log_file), formatter)
        if handler is not None:
            root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; ``name`` is normally ``__name__``."""
    return logging.getLogger(name)

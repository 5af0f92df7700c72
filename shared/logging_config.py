"""
Logging configuration for Sadaya Sanctuary services.

Every process logs through the root logger with a component tag:

    API     - the FastAPI business hub (sanctuary.service)
    PORTAL  - the Flask staff/client portal (portal.service, scripts/run_portal.py)

Level and optional log file come from SADAYA_LOG_LEVEL / SADAYA_LOG_FILE
(see sanctuary/config.py). Request-level chatter from the HTTP stack is
held at WARNING so the hub's own audit lines stay readable.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# uvicorn/werkzeug access logs and the portal's requests client
NOISY_LOGGERS = ("uvicorn.access", "werkzeug", "urllib3")


def resolve_level(level: Union[int, str]) -> int:
    """Map a level name such as 'debug' to its logging constant (INFO when unknown)."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _has_file_handler(root: logging.Logger, log_path: Path) -> bool:
    target = str(log_path.resolve())
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == target
        for handler in root.handlers
    )


def setup_logging(
    component_name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
):
    """
    Configure logging for a Sanctuary process.

    Called once at startup by the API ("API") and the portal ("PORTAL").
    Calling it again with the same log file does not attach a second
    file handler.

    Args:
        component_name: Tag shown in every line, e.g. 'API' or 'PORTAL'
        level: Logging level constant or its name ('debug', 'INFO', ...)
        log_file: Optional file path; parent directories are created
        format_string: Custom format string (default tags the component)
        quiet: Third-party loggers held at WARNING unless level is DEBUG

    Returns:
        The logger named after the component
    """
    level = resolve_level(level)
    tag = component_name.upper()
    if format_string is None:
        format_string = f'[%(asctime)s] [{tag}] %(levelname)s - %(message)s'

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    root = logging.getLogger()
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if not _has_file_handler(root, log_path):
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(logging.Formatter(format_string, datefmt=DATE_FORMAT))
            root.addHandler(file_handler)

    if level > logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(component_name)
    logger.info(f"{tag} logging initialized (level={logging.getLevelName(level)})")

    return logger

"""
Central logging configuration for the segment weather service.

Entrypoints (the API server, maintenance scripts) call `setup_logging` once:

    from utils.logging_utils import setup_logging

    setup_logging(level="INFO", job_name="segment_weather_api")

Modules grab a tagged logger at import time:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="weather_cache")
    logger.info("Cache miss", extra={"key": key})

Every record carries `job_name` and `tag` fields, INFO and below go to
stdout, WARNING and above go to stderr.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


# Logs emitted before setup_logging() still get timestamps and levels.
BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Query parameters whose values never belong in a log line.
SENSITIVE_PARAM_TOKENS = ("pass", "pwd", "secret", "token", "key", "appid")

_CONFIGURED: bool = False


class MaxLevelFilter(logging.Filter):
    """Pass only records at or below `max_level`."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Guarantee a `tag` attribute on every record.

    Records from a tagged LoggerAdapter already carry one; anything else
    (third-party libraries, the root logger) gets the last dotted component
    of its logger name, e.g. "httpx._client" -> "_client".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Stamp every record with the process-wide `job_name` ("-" when unset)."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


def build_logging_config(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
) -> Mapping[str, Any]:
    """
    Build a dictConfig mapping with split stdout/stderr handlers.

    Parameters
    ----------
    level:
        Root logger level, name or number.
    log_format, date_format:
        Formatter patterns.
    job_name:
        Logical process name surfaced as `%(job_name)s`.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": log_format,
                "datefmt": date_format,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """
    Apply the logging configuration once per process.

    Repeated calls are no-ops unless `override_existing` is True.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(
        build_logging_config(
            level=level,
            log_format=log_format,
            date_format=date_format,
            job_name=job_name,
        )
    )
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter whose records always carry `tag`.

    `tag` defaults to the last segment of `name`.
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


def mask_url(url: str) -> str:
    """Return `url` with user credentials and sensitive query values masked.

    Examples
    --------
    - redis://:secret@cache:6379/0 -> redis://:***@cache:6379/0
    - https://proxy.example/weather?appid=abc&lat=1 -> https://proxy.example/weather?appid=%2A%2A%2A&lat=1
    - redis://localhost:6379/0 -> unchanged
    """
    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError:
        return url

    query_pairs = []
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        if any(token in key.lower() for token in SENSITIVE_PARAM_TOKENS):
            query_pairs.append((key, "***"))
        else:
            query_pairs.append((key, value))
    masked_query = urlencode(query_pairs)

    netloc = ""
    if parsed.username or parsed.password is not None:
        netloc += "***" if parsed.username else ""
        if parsed.password is not None:
            netloc += ":***"
        netloc += "@"
    if parsed.hostname:
        netloc += parsed.hostname
    if port:
        netloc += f":{port}"

    if not netloc:
        return url if not parsed.query else urlunparse(parsed._replace(query=masked_query))

    return urlunparse(parsed._replace(netloc=netloc, query=masked_query))

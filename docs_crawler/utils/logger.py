"""
Logging setup for the documentation crawler.

One console stream for the crawl tally, a rotating debug log and a separate
rotating error log. Per-page records carry ``url``, ``index`` and
``namespace`` attributes when logged through :func:`get_crawler_logger`.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PAGE_CONTEXT_FIELDS = ('url', 'index', 'namespace')

MAIN_LOG_BYTES = 50 * 1024 * 1024
MAIN_LOG_BACKUPS = 5
ERROR_LOG_BYTES = 10 * 1024 * 1024
ERROR_LOG_BACKUPS = 3

NOISY_LOGGERS = (
    'aiohttp.access',
    'asyncio',
    'playwright',
    'trafilatura.htmlprocessing',
)


class JSONFormatter(logging.Formatter):
    """Renders each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for key in PAGE_CONTEXT_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False)


class CrawlerLogAdapter(logging.LoggerAdapter):
    """Attaches page context to every record logged through it."""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **kwargs.get('extra', {})}
        return msg, kwargs


class PerformanceFilter(logging.Filter):
    """Drops sub-WARNING records from chatty third-party loggers."""

    def __init__(self, suppress_modules: Optional[Iterable[str]] = None):
        super().__init__()
        self.suppress_modules = tuple(suppress_modules or NOISY_LOGGERS)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True
        return not record.name.startswith(self.suppress_modules)


def _rotating_handler(path: Path, level: int, max_bytes: int, backups: int,
                      formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backups, encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Dict[str, Any],
                  enable_json: bool = False,
                  enable_performance_filtering: bool = True) -> logging.Logger:
    """
    Configure the root logger for a crawl run.

    Args:
        config: ``level``, ``file`` and ``format`` of the logging section
        enable_json: emit JSON lines instead of the text format
        enable_performance_filtering: hide third-party debug chatter

    Returns:
        The configured root logger
    """
    log_file = Path(config.get('file', 'logs/crawler.log'))
    log_file.parent.mkdir(parents=True, exist_ok=True)
    error_log_file = log_file.parent / 'errors.log'

    formatter = JSONFormatter() if enable_json else logging.Formatter(
        config.get('format', DEFAULT_FORMAT)
    )
    console_level = getattr(logging, str(config.get('level', 'INFO')).upper(), logging.INFO)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(formatter)

    main_log = _rotating_handler(log_file, logging.DEBUG, MAIN_LOG_BYTES,
                                 MAIN_LOG_BACKUPS, formatter)
    error_log = _rotating_handler(error_log_file, logging.ERROR, ERROR_LOG_BYTES,
                                  ERROR_LOG_BACKUPS, formatter)

    if enable_performance_filtering:
        console.addFilter(PerformanceFilter())
        main_log.addFilter(PerformanceFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    for handler in (console, main_log, error_log):
        root_logger.addHandler(handler)

    for name in ('aiohttp', 'asyncio', 'trafilatura', 'playwright'):
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.debug(f"Logging to {log_file} (errors: {error_log_file}, json={enable_json})")
    return root_logger


def get_crawler_logger(name: str, **extra_context) -> CrawlerLogAdapter:
    """Logger for ``name`` that stamps ``extra_context`` onto every record."""
    return CrawlerLogAdapter(logging.getLogger(name), extra_context)

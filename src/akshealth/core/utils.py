"""Utility functions and decorators."""

import asyncio
import logging.config
import sys
import structlog
import yaml
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union
from tenacity import retry, stop_after_attempt, wait_exponential


def retry_with_backoff(
    max_retries: int = 3,
    backoff_factor: float = 1.5,
    max_wait: float = 60.0
):
    """Decorator for retry with exponential backoff."""
    return retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=backoff_factor, max=max_wait),
        reraise=True
    )


def setup_logging(config_path: Optional[Union[str, Path]] = None, log_level: str = "INFO") -> None:
    """Setup structured logging configuration.
    
    Logs are written to stderr so they never interleave with the findings report.
    """
    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(
            level=getattr(logging, log_level.upper()),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr
        )
    
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if config_path else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def safe_get(dictionary: Optional[Dict[str, Any]], key: str, default: Any = None) -> Any:
    """Safely get a value from a nested dictionary using dot notation."""
    keys = key.split('.')
    value = dictionary
    
    try:
        for k in keys:
            value = value[k]
        return default if value is None else value
    except (KeyError, TypeError):
        return default


def equals_ignore_case(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive string comparison that tolerates None."""
    if left is None or right is None:
        return left is right
    return left.casefold() == right.casefold()


def split_csv(value: Optional[str]) -> FrozenSet[str]:
    """Parse a comma-separated option value into a set, dropping blanks."""
    if not value:
        return frozenset()
    return frozenset(item.strip() for item in value.split(',') if item.strip())


def summarize_names(names: Iterable[str], limit: int = 10) -> str:
    """Join names for a finding message, truncating long lists."""
    names = list(names)
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        shown += f" (+{len(names) - limit} more)"
    return shown


async def gather_with_concurrency(
    coros: list,
    max_concurrency: int = 10,
    return_exceptions: bool = True
) -> list:
    """Execute coroutines with limited concurrency, preserving input order."""
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    
    async def limited_coro(coro):
        async with semaphore:
            return await coro
    
    limited_coros = [limited_coro(coro) for coro in coros]
    return await asyncio.gather(*limited_coros, return_exceptions=return_exceptions)

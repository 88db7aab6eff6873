# catalog_import/scripts/_cli.py
# Shared wrapper for the console scripts: logging, asyncio, exit codes.
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable

from catalog_import.errors import ImportSetupError
from catalog_import.logging_filters import configure_logging

logger = logging.getLogger("catalog_import.cli")

# bulky lists stay out of the console summary
_LONG_KEYS = ("review", "error_list", "names")


def run_cli(job: Callable[[], Awaitable[Any]]) -> int:
    """Run one job; 1 on setup errors (missing file / credentials), 0 otherwise."""
    configure_logging()
    try:
        result = asyncio.run(job())
    except ImportSetupError as e:
        logger.error(f"Error: {e}")
        return 1
    summary = result
    if isinstance(result, dict):
        summary = {k: v for k, v in result.items() if k not in _LONG_KEYS}
    print(json.dumps(summary, indent=2, ensure_ascii=False, default=str))
    return 0


def main_exit(job: Callable[[], Awaitable[Any]]) -> None:
    sys.exit(run_cli(job))

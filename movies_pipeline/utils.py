"""
Utility functions for the Movies Pipeline.

Logger setup, the row progress bar, timing and console display helpers
shared by the services and the CLI.
"""

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Sequence, TypeVar

from tqdm import tqdm

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def daily_log_file(log_dir: Optional[Path], name: str) -> Path:
    """Path of today's log file for a logger, creating the directory."""
    log_dir = Path(log_dir) if log_dir else Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"


def setup_logger(
    name: str,
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    console_level: Optional[int] = logging.WARNING,
) -> logging.Logger:
    """
    Get a logger writing to a daily file and, optionally, the console.

    Handlers are attached on the first call only; later calls for the same
    name return the configured logger unchanged.

    Args:
        name: Logger name, also the log file prefix
        log_dir: Directory for log files (defaults to ./logs)
        level: Level for the logger and its file handler
        console_level: Level for stdout output, or None for file only

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = logging.FileHandler(daily_log_file(log_dir, name))
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console_level is not None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def progress_bar(
    rows: Iterable[T],
    total: Optional[int] = None,
    desc: str = "Reconciling",
    disable: bool = False,
) -> Iterator[T]:
    """Wrap rows in a tqdm progress bar counting rows."""
    return tqdm(
        rows,
        total=total,
        desc=desc,
        unit="rows",
        disable=disable,
        ncols=100,
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
    )


def format_number(n: int) -> str:
    """Format number with commas for readability."""
    return f"{n:,}"


def format_bytes(size: int) -> str:
    """Human-readable file size."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"


def print_header(text: str, char: str = "=", width: int = 60) -> None:
    print(char * width)
    print(text.center(width))
    print(char * width)


def print_status_table(data: Mapping, title: str = "Status") -> None:
    """Print key/value pairs as an aligned two-column table."""
    print(f"\n{title}")
    print("-" * 40)
    width = max((len(str(key)) for key in data), default=10) + 2
    for key, value in data.items():
        print(f"  {str(key):<{width}}: {value}")
    print()


def print_list(items: Sequence[str], title: str) -> None:
    """Print a titled bullet list; nothing when empty."""
    if not items:
        return
    print(f"\n{title}:")
    for item in items:
        print(f"  - {item}")


class Timer:
    """
    Context manager measuring wall-clock time.

    With a logger, the elapsed time is logged at INFO on exit.
    """

    def __init__(self, description: str = "Operation", logger: Optional[logging.Logger] = None):
        self.description = description
        self.logger = logger
        self.start_time: float = 0
        self.elapsed: float = 0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        if self.logger:
            self.logger.info(str(self))

    def __str__(self) -> str:
        return f"{self.description}: {format_duration(self.elapsed)}"

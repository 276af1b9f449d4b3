"""Logging and progress reporting for pkggraph.

Everything diagnostic goes to stderr; stdout is reserved for graph output
(DOT, JSON reports). Building a graph from a full registry dump takes a
while, so the long phases report progress with tqdm when stderr is a
terminal and fall back to plain log lines otherwise.
"""

import logging
import os
import sys
import time
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from tqdm import tqdm

# Set PKGGRAPH_DISABLE_PROGRESS=1 to silence bars even on a terminal
PROGRESS_ENABLED = (
    os.getenv("PKGGRAPH_DISABLE_PROGRESS", "").lower() not in ("1", "true", "yes")
    and sys.stderr.isatty()
)

# Totals below this are not worth a "processing N items" log line
_QUIET_TOTAL = 100

logger = logging.getLogger("pkggraph")
logger.setLevel(logging.INFO)

if not logger.handlers:
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(
        logging.Formatter("[pkggraph] %(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(_handler)


def set_log_level(level: int | str) -> None:
    """Set the pkggraph logger level from a number or a name like "debug"."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logger.setLevel(level)


@dataclass
class TimingContext:
    """Elapsed time of a ``log_operation`` block, filled in when it exits."""

    started: float = 0.0
    elapsed: float = 0.0

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def stop(self) -> None:
        self.elapsed = time.perf_counter() - self.started


@contextmanager
def log_operation(
    operation: str,
    details: dict[str, Any] | None = None,
) -> Generator[TimingContext, None, None]:
    """Log the start and end of an operation with its duration.

    Failures are logged with their elapsed time and re-raised.

    Example:
        with log_operation("build_graph", {"packages": 1200}) as timing:
            ...
        report.elapsed_ms = timing.elapsed_ms
    """
    suffix = "".join(f" {key}={value}" for key, value in (details or {}).items())
    logger.info("Starting %s%s", operation, suffix)

    timing = TimingContext(started=time.perf_counter())
    try:
        yield timing
    except Exception as e:
        timing.stop()
        logger.error("%s failed after %.2fs: %s", operation, timing.elapsed, e)
        raise
    timing.stop()
    logger.info("Completed %s in %.2fs", operation, timing.elapsed)


def _bar(total: int | None, desc: str | None, unit: str, iterable: Iterable | None = None) -> tqdm:
    return tqdm(
        iterable,
        total=total,
        desc=f"  {desc}" if desc else None,
        unit=unit,
        file=sys.stderr,
        ncols=80,
        leave=False,
    )


T = TypeVar("T")


def progress_bar(
    iterable: Iterable[T],
    desc: str | None = None,
    total: int | None = None,
    unit: str = "it",
    disable: bool = False,
) -> Iterable[T]:
    """Wrap an iterable with a stderr progress bar.

    Without a terminal the iterable is returned as is, and large totals get
    a single log line instead.
    """
    if disable:
        return iterable
    if not PROGRESS_ENABLED:
        if total is not None and total > _QUIET_TOTAL:
            logger.info("  %s: processing %d %s...", desc or "Progress", total, unit)
        return iterable
    return _bar(total, desc, unit, iterable)


class ProgressBar:
    """Manually advanced progress bar, e.g. for ``as_completed`` loops.

    Example:
        with ProgressBar(total=len(futures), desc="Resolving") as pbar:
            for future in as_completed(futures):
                pbar.update()
    """

    def __init__(self, total: int, desc: str | None = None, unit: str = "it", disable: bool = False):
        self.total = total
        self.desc = desc
        self.unit = unit
        self.disable = disable
        self.count = 0
        self._bar: tqdm | None = None
        self._started = 0.0

    def __enter__(self) -> "ProgressBar":
        self._started = time.perf_counter()
        if self.disable:
            return self
        if PROGRESS_ENABLED:
            self._bar = _bar(self.total, self.desc, self.unit)
        elif self.total > _QUIET_TOTAL:
            logger.info("  %s: processing %d %s...", self.desc or "Progress", self.total, self.unit)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._bar is not None:
            self._bar.close()
            return
        if self.disable or self.total <= _QUIET_TOTAL:
            return
        elapsed = time.perf_counter() - self._started
        logger.info(
            "  %s: %d %s in %.2fs (%.1f/s)",
            self.desc or "Progress",
            self.count,
            self.unit,
            elapsed,
            self.count / elapsed if elapsed > 0 else 0.0,
        )

    def update(self, n: int = 1) -> None:
        self.count += n
        if self._bar is not None:
            self._bar.update(n)

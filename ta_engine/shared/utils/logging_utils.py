"""
Logging utilities for indicator runs.

Provides consistent logging helpers for timing indicator computations and
summarising their results.
"""

import time
from typing import Optional

from loguru import logger

from ta_engine.shared.models.result import Result


def log_timing(
    operation_name: str,
    duration_ms: float,
    symbol: Optional[str] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log timing information for performance monitoring.

    Args:
        operation_name: Name of the operation being timed
        duration_ms: Duration in milliseconds
        symbol: Optional symbol context
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)
    symbol_str = f" [{symbol}]" if symbol else ""
    log_func(f"{operation_name}{symbol_str}: {duration_ms:.1f}ms")


def log_result(name: str, result: Result, level: str = "DEBUG") -> None:
    """
    Log a one-line summary of an indicator Result.

    Args:
        name: Indicator name
        result: Result to summarise
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)
    if not result.ok:
        log_func(f"{name}: {result.ret_code.name} ({result.reason or 'no reason'})")
        return
    if result.element_count == 0:
        log_func(f"{name}: no output (warm-up exceeds requested range)")
        return

    extras = f" +{','.join(result.extras)}" if result.extras else ""
    log_func(
        f"{name}: {result.element_count} values from index {result.begin_index}, "
        f"last={result.values[-1]:.4f}{extras}"
    )


class TimingContext:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, symbol: Optional[str] = None, enabled: bool = True):
        self.operation_name = operation_name
        self.symbol = symbol
        self.enabled = enabled
        self.start_time = None
        self.duration_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        if self.enabled:
            log_timing(self.operation_name, self.duration_ms, self.symbol)
        return False  # Don't suppress exceptions


def time_operation(operation_name: str, symbol: Optional[str] = None, enabled: bool = True) -> TimingContext:
    """
    Context manager for timing operations.

    Usage:
        with time_operation("compute_indicators", "BTC/USDT"):
            # ... operation ...
    """
    return TimingContext(operation_name, symbol, enabled)

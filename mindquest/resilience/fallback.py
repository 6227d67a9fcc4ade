"""Fallback strategies for generation failures

Provides orchestration for trying multiple strategies in sequence until one
succeeds. Daily content uses it to try the generation endpoint first and the
static pools second.
"""

import inspect
import logging
from typing import Any, Callable, List, Optional, TypeVar
from dataclasses import dataclass

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class FallbackStrategy:
    """
    Defines a fallback strategy with priority ordering.

    Attributes:
        name: Human-readable name for logging
        handler: Callable (sync or async) that implements the strategy
        priority: Priority level (lower = higher priority, 1 = primary)
    """
    name: str
    handler: Callable[..., T]
    priority: int


@dataclass
class FallbackOutcome:
    """Result of execute_with_fallbacks plus which strategy produced it"""
    value: Any
    strategy: str
    used_fallback: bool
    primary_error: Optional[Exception] = None


async def execute_with_fallbacks(
    strategies: List[FallbackStrategy],
    *args: Any,
    **kwargs: Any
) -> FallbackOutcome:
    """
    Execute strategies in priority order until one succeeds.

    Tries each strategy in turn. If one succeeds, returns immediately.
    If all fail, raises the last exception encountered.

    Args:
        strategies: List of FallbackStrategy to try
        *args, **kwargs: Arguments to pass to each strategy handler

    Returns:
        FallbackOutcome with the first successful result

    Raises:
        Last exception if all strategies fail

    Example:
        strategies = [
            FallbackStrategy("generation", generate_tasks, priority=1),
            FallbackStrategy("static_pool", pick_fallback_tasks, priority=2),
        ]
        outcome = await execute_with_fallbacks(strategies, snapshot)
    """
    # Sort strategies by priority (lower priority number = try first)
    sorted_strategies = sorted(strategies, key=lambda s: s.priority)
    if not sorted_strategies:
        raise ValueError("At least one fallback strategy is required")

    last_exception: Optional[Exception] = None
    primary_error: Optional[Exception] = None

    for index, strategy in enumerate(sorted_strategies):
        try:
            logger.info(f"[FALLBACK] Trying strategy: {strategy.name}")

            result = strategy.handler(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result

            logger.info(f"[FALLBACK] Strategy '{strategy.name}' succeeded")
            return FallbackOutcome(
                value=result,
                strategy=strategy.name,
                used_fallback=index > 0,
                primary_error=primary_error,
            )

        except Exception as e:
            logger.warning(
                f"[FALLBACK] Strategy '{strategy.name}' failed: "
                f"{type(e).__name__}: {e}"
            )
            last_exception = e
            if index == 0:
                primary_error = e

            # Continue to next strategy
            continue

    # All strategies failed
    logger.error(
        f"[FALLBACK] All {len(sorted_strategies)} fallback strategies exhausted"
    )
    raise last_exception

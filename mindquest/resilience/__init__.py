"""Resilience patterns for external generation calls

Generation is attempted once per trigger; on failure the caller falls back
to deterministic local content instead of retrying.
"""

from mindquest.resilience.fallback import execute_with_fallbacks, FallbackOutcome, FallbackStrategy

__all__ = [
    "execute_with_fallbacks",
    "FallbackOutcome",
    "FallbackStrategy",
]

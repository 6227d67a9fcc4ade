"""Unit tests for fallback orchestration (mindquest/resilience/fallback.py)"""
import pytest

from mindquest.resilience.fallback import FallbackStrategy, execute_with_fallbacks


@pytest.mark.asyncio
async def test_primary_strategy_success():
    async def primary(value):
        return value * 2

    outcome = await execute_with_fallbacks([
        FallbackStrategy("primary", primary, priority=1),
        FallbackStrategy("backup", lambda value: -1, priority=2),
    ], 21)

    assert outcome.value == 42
    assert outcome.strategy == "primary"
    assert outcome.used_fallback is False
    assert outcome.primary_error is None


@pytest.mark.asyncio
async def test_falls_back_on_failure():
    async def primary():
        raise RuntimeError("endpoint down")

    outcome = await execute_with_fallbacks([
        FallbackStrategy("backup", lambda: "static", priority=2),
        FallbackStrategy("primary", primary, priority=1),
    ])

    assert outcome.value == "static"
    assert outcome.strategy == "backup"
    assert outcome.used_fallback is True
    assert isinstance(outcome.primary_error, RuntimeError)


@pytest.mark.asyncio
async def test_all_strategies_fail_raises_last_error():
    def first():
        raise RuntimeError("first")

    def second():
        raise KeyError("second")

    with pytest.raises(KeyError):
        await execute_with_fallbacks([
            FallbackStrategy("first", first, priority=1),
            FallbackStrategy("second", second, priority=2),
        ])


@pytest.mark.asyncio
async def test_empty_strategy_list_rejected():
    with pytest.raises(ValueError):
        await execute_with_fallbacks([])

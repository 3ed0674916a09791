import time

import pytest
from unittest.mock import AsyncMock, patch

from bizpulse.errors import TransientError
from bizpulse.retry import RetryPolicy, retry


@pytest.mark.asyncio
async def test_always_failing_operation_is_attempted_max_times_with_doubling_delays():
    operation = AsyncMock(side_effect=TransientError("unreachable"))

    with patch("bizpulse.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(TransientError, match="unreachable"):
            await retry(operation, max_attempts=3, initial_delay=1.0)

    assert operation.await_count == 3
    # No sleep after the final attempt
    assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_last_error_is_reraised_unmodified():
    errors = [RuntimeError("first"), RuntimeError("second"), RuntimeError("third")]
    operation = AsyncMock(side_effect=errors)

    with patch("bizpulse.retry.asyncio.sleep", new_callable=AsyncMock):
        with pytest.raises(RuntimeError) as exc_info:
            await retry(operation, max_attempts=3, initial_delay=0.5)

    assert exc_info.value is errors[-1]


@pytest.mark.asyncio
async def test_success_after_a_failure_returns_result():
    operation = AsyncMock(side_effect=[TransientError("blip"), {"ok": True}])

    with patch("bizpulse.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await retry(operation, max_attempts=3, initial_delay=1.0)

    assert result == {"ok": True}
    assert operation.await_count == 2
    mock_sleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_invocations_are_spaced_by_backoff():
    calls = []

    async def always_fails():
        calls.append(time.monotonic())
        raise TransientError("down")

    with pytest.raises(TransientError):
        await retry(always_fails, max_attempts=3, initial_delay=0.05)

    assert len(calls) == 3
    assert calls[1] - calls[0] >= 0.045
    assert calls[2] - calls[0] >= 0.145


@pytest.mark.asyncio
async def test_invalid_attempt_count():
    with pytest.raises(ValueError):
        await retry(AsyncMock(), max_attempts=0)


@pytest.mark.asyncio
async def test_policy_runs_with_its_own_parameters():
    policy = RetryPolicy(max_attempts=2, initial_delay=0.25)
    operation = AsyncMock(side_effect=TransientError("down"))

    with patch("bizpulse.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(TransientError):
            await policy.run(operation)

    assert operation.await_count == 2
    mock_sleep.assert_awaited_once_with(0.25)

"""Tests for the async retry helpers."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from tagsmith.lib.retry import retry_on_failure_async, retry_once_async


class TestRetryOnceAsync:
    """Tests for the fixed-delay single retry."""

    @pytest.mark.asyncio
    async def test_success_no_retry(self):
        """Operation succeeds on first try - no sleep."""
        operation = AsyncMock(return_value="ok")

        with patch("tagsmith.lib.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await retry_once_async(operation, delay=0.6)

        assert result == "ok"
        assert operation.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        """First attempt fails, second succeeds after the fixed delay."""
        operation = AsyncMock(side_effect=[ConnectionError("reset"), "ok"])

        with patch("tagsmith.lib.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await retry_once_async(operation, delay=0.6)

        assert result == "ok"
        assert operation.await_count == 2
        sleep.assert_awaited_once_with(0.6)

    @pytest.mark.asyncio
    async def test_second_failure_propagates(self):
        """Only one retry; the second error is raised unchanged."""
        operation = AsyncMock(side_effect=[ConnectionError("first"), ValueError("second")])

        with patch("tagsmith.lib.retry.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(ValueError, match="second"):
                await retry_once_async(operation, delay=0.0)

        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_unlisted_exception_not_retried(self):
        """Exceptions outside ``exceptions`` are raised immediately."""
        operation = AsyncMock(side_effect=KeyError("boom"))

        with pytest.raises(KeyError):
            await retry_once_async(operation, exceptions=(ConnectionError,))

        assert operation.await_count == 1


class TestRetryOnFailureAsync:
    """Tests for the exponential-backoff decorator."""

    @pytest.mark.asyncio
    async def test_async_retry_then_success(self):
        """Async function fails then succeeds."""
        call_count = 0

        @retry_on_failure_async(max_retries=3, base_delay=0.01)
        async def fail_once():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise ConnectionError("temporary failure")
            return "async success"

        with patch("tagsmith.lib.retry.asyncio.sleep", new_callable=AsyncMock):
            result = await fail_once()

        assert result == "async success"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_async_max_retries_exceeded(self):
        """Async function fails all retries."""
        call_count = 0

        @retry_on_failure_async(max_retries=2, base_delay=0.01)
        async def always_fail():
            nonlocal call_count
            call_count += 1
            raise httpx.ConnectError("connection refused")

        with patch("tagsmith.lib.retry.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(httpx.ConnectError):
                await always_fail()

        # max_retries=2 means 3 total attempts (1 initial + 2 retries)
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_exception(self):
        """Non-retryable exceptions are raised immediately."""
        call_count = 0

        @retry_on_failure_async(max_retries=3, base_delay=0.01)
        async def raise_value_error():
            nonlocal call_count
            call_count += 1
            raise ValueError("not retryable")

        with pytest.raises(ValueError, match="not retryable"):
            await raise_value_error()

        assert call_count == 1

    @pytest.mark.asyncio
    async def test_exponential_backoff_without_jitter(self):
        """Delays double and are capped at max_delay."""
        call_count = 0

        @retry_on_failure_async(max_retries=3, base_delay=1.0, max_delay=3.0, jitter=False)
        async def always_fail():
            nonlocal call_count
            call_count += 1
            raise TimeoutError("slow")

        with patch("tagsmith.lib.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(TimeoutError):
                await always_fail()

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 3.0]

"""Unit tests for the safe execution helpers."""

import pytest

from taste_predictor.utils.safe import safe_execute_async, safe_execute_sync


def boom():
    raise ValueError("bad input")


class TestSafeExecuteSync:
    def test_returns_result(self):
        assert safe_execute_sync(lambda: 42, "answer") == 42

    def test_returns_default_on_error(self):
        assert safe_execute_sync(boom, "boom", default_return="fallback") == "fallback"

    def test_reraises_when_requested(self):
        with pytest.raises(ValueError, match="bad input"):
            safe_execute_sync(boom, "boom", reraise=True)


class TestSafeExecuteAsync:
    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def answer():
            return 42

        assert await safe_execute_async(answer(), "answer") == 42

    @pytest.mark.asyncio
    async def test_returns_default_on_error(self):
        async def failing():
            raise RuntimeError("down")

        assert await safe_execute_async(failing(), "failing", log_level="error") is None

    @pytest.mark.asyncio
    async def test_reraises_when_requested(self):
        async def failing():
            raise RuntimeError("down")

        with pytest.raises(RuntimeError):
            await safe_execute_async(failing(), "failing", reraise=True)

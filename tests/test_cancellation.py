"""
Tests for cooperative cancellation.
"""

import asyncio

import pytest

from autonomate.core.cancellation import CancellationToken, check_cancelled


def test_token_starts_clear():
    token = CancellationToken()
    assert not token.is_cancelled
    token.raise_if_cancelled()


def test_cancel_raises_with_reason():
    token = CancellationToken()
    token.cancel("user stop")
    token.cancel("second reason ignored")

    assert token.is_cancelled
    assert token.reason == "user stop"
    with pytest.raises(asyncio.CancelledError):
        token.raise_if_cancelled()


def test_check_cancelled_without_token():
    check_cancelled(None)


@pytest.mark.asyncio
async def test_wait_returns_after_cancel():
    token = CancellationToken()
    waiter = asyncio.create_task(token.wait())
    await asyncio.sleep(0)
    assert not waiter.done()

    token.cancel()
    await asyncio.wait_for(waiter, timeout=1)

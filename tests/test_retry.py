import asyncio

import pytest

from storesync.config.settings import RetryConfig
from storesync.remote.errors import (
    PermanentFetchFailure,
    RetriesExhausted,
    TransientFetchFailure,
)
from storesync.sync.retry import BackoffRetrier


class Flaky:
    def __init__(self, failures: int, exc=None, result="ok"):
        self.failures = failures
        self.exc = exc or TransientFetchFailure("connection reset")
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return self.result


def recording_sleep(delays):
    async def _sleep(s):
        delays.append(s)
    return _sleep


@pytest.mark.asyncio
async def test_succeeds_on_third_attempt():
    op = Flaky(failures=2)
    r = BackoffRetrier(base_delay_s=0.0, max_attempts=5)
    assert await r.call(op) == "ok"
    assert op.calls == 3


@pytest.mark.asyncio
async def test_never_succeeds_exhausts_after_max_attempts():
    op = Flaky(failures=100, exc=TransientFetchFailure("HTTP 503", status_code=503))
    r = BackoffRetrier(base_delay_s=0.0, max_attempts=3)
    with pytest.raises(RetriesExhausted) as ei:
        await r.call(op)
    assert op.calls == 3
    assert ei.value.attempts == 3
    assert ei.value.status_code == 503
    assert "retries exhausted" in str(ei.value)
    assert isinstance(ei.value.last_error, TransientFetchFailure)


@pytest.mark.asyncio
async def test_constant_policy_waits_base_delay_every_time():
    delays = []
    r = BackoffRetrier(base_delay_s=0.5, max_attempts=4, sleep=recording_sleep(delays))
    with pytest.raises(RetriesExhausted):
        await r.call(Flaky(failures=10))
    # no wait after the last attempt
    assert delays == [0.5, 0.5, 0.5]


@pytest.mark.asyncio
async def test_exponential_policy_doubles_and_caps():
    delays = []
    r = BackoffRetrier(base_delay_s=0.5, max_attempts=5, policy="exponential",
                       max_delay_s=1.5, sleep=recording_sleep(delays))
    with pytest.raises(RetriesExhausted):
        await r.call(Flaky(failures=10))
    assert delays == [0.5, 1.0, 1.5, 1.5]


@pytest.mark.asyncio
async def test_permanent_failures_are_retried_by_default():
    op = Flaky(failures=1, exc=PermanentFetchFailure("HTTP 404", status_code=404))
    r = BackoffRetrier(base_delay_s=0.0, max_attempts=3)
    assert await r.call(op) == "ok"
    assert op.calls == 2


@pytest.mark.asyncio
async def test_permanent_failures_stop_early_when_configured():
    op = Flaky(failures=1, exc=PermanentFetchFailure("HTTP 404", status_code=404))
    r = BackoffRetrier(base_delay_s=0.0, max_attempts=3, retry_permanent=False)
    with pytest.raises(RetriesExhausted) as ei:
        await r.call(op)
    assert op.calls == 1
    assert ei.value.attempts == 1


@pytest.mark.asyncio
async def test_unrelated_errors_propagate_without_retry():
    op = Flaky(failures=1, exc=KeyError("bug"))
    r = BackoffRetrier(base_delay_s=0.0, max_attempts=3)
    with pytest.raises(KeyError):
        await r.call(op)
    assert op.calls == 1


@pytest.mark.asyncio
async def test_cancel_during_wait_discards_pending_retry():
    op = Flaky(failures=1)
    r = BackoffRetrier(base_delay_s=30.0, max_attempts=3)
    task = asyncio.ensure_future(r.call(op))
    for _ in range(3):
        await asyncio.sleep(0)
    assert op.calls == 1
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert op.calls == 1


@pytest.mark.asyncio
async def test_wait_does_not_block_other_tasks():
    r = BackoffRetrier(base_delay_s=0.05, max_attempts=2)
    op = Flaky(failures=1)
    slow = asyncio.ensure_future(r.call(op))
    await asyncio.sleep(0.01)
    # the retrier is parked in its wait, and this task still got to run
    assert op.calls == 1
    assert not slow.done()
    assert await slow == "ok"


@pytest.mark.asyncio
async def test_wrap_keeps_name_and_arguments():
    async def fetch_page(skip, take):
        return (skip, take)

    wrapped = BackoffRetrier(base_delay_s=0.0).wrap(fetch_page)
    assert wrapped.__name__ == "fetch_page"
    assert await wrapped(5, 10) == (5, 10)


def test_from_config():
    r = BackoffRetrier.from_config(RetryConfig(base_delay_s=0.2, max_attempts=7, policy="exponential"))
    assert r.max_attempts == 7
    assert r.delay_for(2) == pytest.approx(0.8)


@pytest.mark.parametrize("kwargs", [
    {"max_attempts": 0},
    {"base_delay_s": -1},
    {"policy": "fibonacci"},
])
def test_rejects_bad_arguments(kwargs):
    with pytest.raises(ValueError):
        BackoffRetrier(**kwargs)

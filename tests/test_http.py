from unittest.mock import AsyncMock
from unittest.mock import Mock

import aiohttp
import pytest

from arns_migrate.config import ResolvedHttpConfig
from arns_migrate.exceptions import FrameworkException
from arns_migrate.exceptions import InvalidRequestError
from arns_migrate.http import HTTPGateway


def create_gateway(**kwargs: int | float) -> HTTPGateway:
    config = ResolvedHttpConfig(retry_count=2, retry_sleep=0.5, retry_multiplier=2.0)
    for key, value in kwargs.items():
        setattr(config, key, value)
    return HTTPGateway('https://cu.example.com/', config, name='test')


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    sleeps: list[float] = []

    async def sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr('arns_migrate.http.asyncio.sleep', sleep)
    return sleeps


def too_many_requests(retry_after: str) -> aiohttp.ClientResponseError:
    return aiohttp.ClientResponseError(Mock(), (), status=429, headers={'Retry-After': retry_after})


async def test_retry(sleeps: list[float]) -> None:
    gateway = create_gateway()
    gateway._request = AsyncMock(  # type: ignore[method-assign]
        side_effect=[aiohttp.ClientConnectionError('reset'), {'ok': True}],
    )

    assert await gateway.request('post', 'dry-run', json={}) == {'ok': True}
    assert sleeps == [0.5]
    assert gateway._request.await_args_list[0].args == ('post', 'https://cu.example.com/dry-run')


async def test_retry_exhausted(sleeps: list[float]) -> None:
    gateway = create_gateway()
    gateway._request = AsyncMock(side_effect=aiohttp.ClientConnectionError('reset'))  # type: ignore[method-assign]

    with pytest.raises(aiohttp.ClientConnectionError):
        await gateway.request('get', 'info')
    assert gateway._request.await_count == 3
    assert sleeps == [0.5, 1.0]


async def test_retry_after(sleeps: list[float]) -> None:
    gateway = create_gateway(ratelimit_sleep=1.0)
    gateway._request = AsyncMock(  # type: ignore[method-assign]
        side_effect=[too_many_requests('7'), aiohttp.ClientConnectionError('reset'), {'ok': True}],
    )

    assert await gateway.request('get', 'info') == {'ok': True}
    # NOTE: Backoff is not advanced by rate-limited attempts
    assert sleeps == [7.0, 0.5]

    gateway._request = AsyncMock(side_effect=[too_many_requests('soon'), {'ok': True}])  # type: ignore[method-assign]
    await gateway.request('get', 'info')
    assert sleeps[-1] == 1.0


async def test_not_retried(sleeps: list[float]) -> None:
    gateway = create_gateway()
    error = InvalidRequestError('204 No Content', 'url')
    gateway._request = AsyncMock(side_effect=error)  # type: ignore[method-assign]

    with pytest.raises(InvalidRequestError):
        await gateway.request('get', 'info')
    assert gateway._request.await_count == 1
    assert sleeps == []


async def test_ratelimit() -> None:
    assert create_gateway()._limiter is None

    gateway = create_gateway(ratelimit_rate=1, ratelimit_period=60)
    gateway._request = AsyncMock(return_value={})  # type: ignore[method-assign]

    await gateway.request('get', 'info')
    assert gateway._limiter is not None
    assert not gateway._limiter.has_capacity()


async def test_session_not_initialized() -> None:
    with pytest.raises(FrameworkException):
        await create_gateway().request('get', 'info')

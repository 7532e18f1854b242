"""HTTP transport shared by datasources.

One `aiohttp` session per gateway, opened and closed with `async with`. Transient failures are retried with
exponential backoff; `429 Too Many Requests` honors `Retry-After`. Optional client-side throttling keeps ownership
fan-out from flooding the compute unit.
"""

import asyncio
from contextlib import AbstractAsyncContextManager
from contextlib import suppress
from http import HTTPStatus
from typing import Any

import aiohttp
import orjson
from aiolimiter import AsyncLimiter

from arns_migrate import __version__
from arns_migrate.config import ResolvedHttpConfig
from arns_migrate.exceptions import FrameworkException
from arns_migrate.exceptions import InvalidRequestError
from arns_migrate.utils import PrefixedLogger

RETRYABLE_EXCEPTIONS = (
    asyncio.TimeoutError,
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    aiohttp.ClientResponseError,
)
USER_AGENT = f'arns-migrate/{__version__} {aiohttp.http.SERVER_SOFTWARE}'


class HTTPGateway(AbstractAsyncContextManager[None]):
    """Base class for datasources talking to a single HTTP endpoint"""

    def __init__(self, url: str, http_config: ResolvedHttpConfig, name: str) -> None:
        self._url = url.rstrip('/')
        self._http_config = http_config
        self._logger = PrefixedLogger(__name__, name)
        self._limiter = (
            AsyncLimiter(max_rate=http_config.ratelimit_rate, time_period=http_config.ratelimit_period)
            if http_config.ratelimit_rate and http_config.ratelimit_period
            else None
        )
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> None:
        self._session = aiohttp.ClientSession(
            json_serialize=lambda obj: orjson.dumps(obj).decode(),
            connector=aiohttp.TCPConnector(limit=self._http_config.connection_limit),
            timeout=aiohttp.ClientTimeout(
                total=self._http_config.request_timeout,
                connect=self._http_config.connection_timeout,
            ),
            headers={'User-Agent': USER_AGENT},
        )

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        if self._session is None:
            raise FrameworkException('Session is not initialized')
        self._logger.debug('Closing session')
        await self._session.close()
        self._session = None

    async def request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send request relative to gateway URL; return decoded JSON or raw body"""
        full_url = f'{self._url}/{url.lstrip("/")}'
        retry_sleep = self._http_config.retry_sleep
        attempts = self._http_config.retry_count + 1
        attempt = 1

        while True:
            if self._limiter:
                await self._limiter.acquire()
            try:
                return await self._request(method, full_url, **kwargs)
            except RETRYABLE_EXCEPTIONS as e:
                self._logger.warning('Request %s/%s to `%s` failed: %s', attempt, attempts, full_url, e)
                if attempt == attempts:
                    raise

                sleep = self._retry_after(e)
                await asyncio.sleep(sleep or retry_sleep)
                if sleep is None:
                    retry_sleep *= self._http_config.retry_multiplier
                attempt += 1

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        if self._session is None:
            raise FrameworkException('Session is not initialized; wrap calls with `async with gateway`')

        self._logger.debug('%s `%s`', method.upper(), url)
        async with self._session.request(method, url, raise_for_status=True, **kwargs) as response:
            if response.status == HTTPStatus.NO_CONTENT:
                raise InvalidRequestError('204 No Content', url)
            body = await response.read()

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError:
            return body

    def _retry_after(self, error: BaseException) -> float | None:
        """Sleep time requested by a rate-limited response, if any"""
        if not isinstance(error, aiohttp.ClientResponseError) or error.status != HTTPStatus.TOO_MANY_REQUESTS:
            return None
        sleep = self._http_config.ratelimit_sleep
        with suppress(TypeError, KeyError, ValueError):
            sleep = max(sleep, float(error.headers['Retry-After']))  # type: ignore[index]
        return sleep

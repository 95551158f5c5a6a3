"""
HTTP client with retry and exponential backoff
Shared aiohttp session for the GraphQL and risk-scoring APIs
"""
import asyncio
from typing import Any

import aiohttp

from config.settings import MAX_RETRIES, REQUEST_TIMEOUT, RETRY_BASE_DELAY
from core.errors import RemoteRequestError
from utils.logger import get_logger

logger = get_logger(__name__)


class HttpClient:
    """
    JSON-over-HTTP client. Non-2xx responses and network errors are retried
    up to max_retries attempts, sleeping base_delay * 2**attempt in between.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        max_retries: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._session = session
        self._owns_session = session is None
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.timeout = timeout

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                use_dns_cache=True,
                ttl_dns_cache=600,
                limit=100,
                enable_cleanup_closed=True
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout, connect=10)
            )
            self._owns_session = True
        return self._session

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Execute a request and decode the JSON body

        Raises:
            RemoteRequestError: when every attempt failed or the body is not JSON
        """
        session = await self._get_session()
        last_error: Exception | None = None
        status: int | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                async with session.request(
                    method,
                    url,
                    json=json,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status = response.status
                    if not 200 <= response.status < 300:
                        raise RemoteRequestError(
                            f"HTTP {response.status} from {url}", status=response.status
                        )
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise RemoteRequestError(f"Malformed JSON from {url}: {e}", status=status) from e

            except RemoteRequestError as e:
                if e.status is not None and 200 <= e.status < 300:
                    raise
                last_error = e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                status = None

            logger.debug(f"Request to {url} failed attempt {attempt}/{self.max_retries}: {last_error}")
            if attempt < self.max_retries:
                await asyncio.sleep(self.base_delay * 2 ** attempt)

        raise RemoteRequestError(
            f"Request to {url} failed after {self.max_retries} attempts: {last_error}",
            status=status
        )

    async def close(self):
        """Close the session if this client created it"""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

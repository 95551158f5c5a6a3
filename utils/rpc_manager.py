"""
RPC Endpoint Manager with automatic failover
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from web3 import AsyncHTTPProvider, AsyncWeb3

from config.chains import CHAINS, ChainConfig, ChainId
from config.secrets import secret_manager
from config.settings import REQUEST_TIMEOUT
from core.errors import RemoteRequestError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RPCEndpointHealth:
    """Track health of an RPC endpoint"""
    url: str
    failures: int = 0
    last_failure: float = 0

    def record_success(self):
        self.failures = 0

    def record_failure(self):
        self.failures += 1
        self.last_failure = time.time()

    def is_healthy(self) -> bool:
        # Consider unhealthy if 3+ failures in last 60 seconds
        if self.failures >= 3 and time.time() - self.last_failure < 60:
            return False
        return True


class RPCManager:
    """
    Manages RPC connections per chain with failover. The configured env
    URL comes first, public endpoints from the chain table follow.
    """

    def __init__(self, chains: dict[ChainId, ChainConfig] = CHAINS):
        self._chains = chains
        self._web3_instances: dict[str, AsyncWeb3] = {}
        self._endpoint_health: dict[str, RPCEndpointHealth] = {}

    def endpoints(self, chain_id: ChainId) -> list[str]:
        """Endpoints for a chain, empty when no RPC URL is configured"""
        config = self._chains[chain_id]
        primary = secret_manager.get_rpc_url(config)
        if not primary:
            return []
        return [primary] + [url for url in config.rpc_endpoints if url != primary]

    def is_configured(self, chain_id: ChainId) -> bool:
        return chain_id in self._chains and bool(self.endpoints(chain_id))

    def _get_web3(self, url: str) -> AsyncWeb3:
        """Get or create a Web3 instance for a specific endpoint"""
        if url not in self._web3_instances:
            provider = AsyncHTTPProvider(url, request_kwargs={"timeout": REQUEST_TIMEOUT})
            self._web3_instances[url] = AsyncWeb3(provider)
        return self._web3_instances[url]

    def _health(self, url: str) -> RPCEndpointHealth:
        if url not in self._endpoint_health:
            self._endpoint_health[url] = RPCEndpointHealth(url=url)
        return self._endpoint_health[url]

    async def call(
        self,
        chain_id: ChainId,
        func: Callable[[AsyncWeb3], Awaitable[Any]],
    ) -> Any:
        """
        Run func against the first healthy endpoint, failing over on error
        """
        config = self._chains[chain_id]
        urls = self.endpoints(chain_id)
        if not urls:
            raise RemoteRequestError(f"No RPC URL configured for {config.name} ({config.rpc_env_key})")

        healthy = [url for url in urls if self._health(url).is_healthy()] or urls
        last_error = None

        for url in healthy:
            web3 = self._get_web3(url)
            try:
                result = await asyncio.wait_for(func(web3), timeout=REQUEST_TIMEOUT)
                self._health(url).record_success()
                return result
            except Exception as e:
                self._health(url).record_failure()
                last_error = e
                logger.debug(f"RPC call on {config.name} via {url} failed: {e}")

        raise RemoteRequestError(f"All RPC endpoints failed for {config.name}: {last_error}")

    async def close(self):
        """Close all Web3 providers"""
        for w3 in self._web3_instances.values():
            if hasattr(w3.provider, "disconnect"):
                try:
                    await w3.provider.disconnect()
                except Exception as e:
                    logger.debug(f"Provider disconnect failed: {e}")
        self._web3_instances.clear()


# Global RPC manager instance
rpc_manager = RPCManager()

"""
Morpho GraphQL API client
Confirms that listed vaults and markets are indexed by the public API
"""
from typing import Any

from config.settings import MORPHO_API_URL
from core.errors import RemoteRequestError
from utils.http_client import HttpClient
from utils.logger import get_logger

logger = get_logger(__name__)

VAULT_BY_ADDRESS_QUERY = """
query VaultByAddress($address: String!, $chainId: Int!) {
  vaultByAddress(address: $address, chainId: $chainId) {
    address
  }
}
"""

MARKET_BY_UNIQUE_KEY_QUERY = """
query MarketByUniqueKey($uniqueKey: String!, $chainId: Int!) {
  marketByUniqueKey(uniqueKey: $uniqueKey, chainId: $chainId) {
    uniqueKey
    whitelisted
  }
}
"""

MARKETS_BY_CHAIN_QUERY = """
query Markets($chainId: Int!) {
  markets(chainId: $chainId) {
    uniqueKey
    whitelisted
  }
}
"""


class MorphoApiClient:
    """
    Thin GraphQL client. HTTP failures are retried by the HttpClient,
    GraphQL errors raise RemoteRequestError.
    """

    def __init__(self, http: HttpClient | None = None, url: str = MORPHO_API_URL):
        self.http = http or HttpClient()
        self.url = url

    async def query(self, query: str, variables: dict[str, Any], context: str) -> dict:
        """Run a query and return its `data` object"""
        body = await self.http.request_json(
            "POST",
            self.url,
            json={"query": query, "variables": variables},
            headers={"content-type": "application/json"},
        )
        if not isinstance(body, dict):
            raise RemoteRequestError(f"Morpho API returned a malformed response for {context}")

        errors = body.get("errors")
        if errors:
            message = "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
            raise RemoteRequestError(f"Morpho API GraphQL error for {context}: {message}")

        return body.get("data") or {}

    async def vault_by_address(self, address: str, chain_id: int) -> dict | None:
        data = await self.query(
            VAULT_BY_ADDRESS_QUERY,
            {"address": address, "chainId": chain_id},
            f"vault {address} on chain {chain_id}",
        )
        return data.get("vaultByAddress")

    async def market_by_unique_key(self, unique_key: str, chain_id: int) -> dict | None:
        data = await self.query(
            MARKET_BY_UNIQUE_KEY_QUERY,
            {"uniqueKey": unique_key, "chainId": chain_id},
            f"market {unique_key} on chain {chain_id}",
        )
        return data.get("marketByUniqueKey")

    async def markets_by_chain(self, chain_id: int) -> dict[str, dict]:
        """Every market on a chain in one query: uniqueKey -> {uniqueKey, whitelisted}"""
        data = await self.query(MARKETS_BY_CHAIN_QUERY, {"chainId": chain_id}, f"chain {chain_id}")
        markets = data.get("markets") or []
        if isinstance(markets, dict):
            # Paginated shape {items: [...]}
            markets = markets.get("items") or []

        result = {
            market["uniqueKey"]: market
            for market in markets
            if isinstance(market, dict) and market.get("uniqueKey")
        }
        logger.debug(f"Fetched {len(result)} markets for chain {chain_id}")
        return result

    async def close(self):
        await self.http.close()

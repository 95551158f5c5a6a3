"""
Chainalysis risk API client
"""
from dataclasses import dataclass
from typing import Optional

from config.secrets import secret_manager
from config.settings import ACCEPTED_RISK_LEVEL, CHAINALYSIS_API_URL, COMPLETE_RISK_STATUS
from core.errors import RemoteRequestError
from utils.http_client import HttpClient
from utils.logger import get_logger
from utils.rate_limiter import TokenBucketRateLimiter, create_risk_limiter

logger = get_logger(__name__)


@dataclass(frozen=True)
class RiskAssessment:
    """Risk entity as returned by GET /entities/{address}"""
    address: str
    risk: str
    risk_reason: Optional[str]
    status: str

    @property
    def complete(self) -> bool:
        return self.status == COMPLETE_RISK_STATUS

    @property
    def acceptable(self) -> bool:
        return self.risk.lower() == ACCEPTED_RISK_LEVEL


class RiskApiClient:
    """
    Looks up the risk level of an address. Requests are paced by a token
    bucket and retried by the HttpClient.
    """

    def __init__(
        self,
        token: str | None = None,
        http: HttpClient | None = None,
        url: str = CHAINALYSIS_API_URL,
        limiter: TokenBucketRateLimiter | None = None,
    ):
        self._token = token
        self.http = http or HttpClient()
        self.url = url.rstrip("/")
        self.limiter = limiter or create_risk_limiter()

    @property
    def token(self) -> str:
        if self._token is None:
            self._token = secret_manager.require_risk_api_token()
        return self._token

    async def assess(self, address: str) -> RiskAssessment:
        """
        Raises:
            MissingCredentialError: no API token configured
            RemoteRequestError: request failed or the response is malformed
        """
        token = self.token
        await self.limiter.acquire()
        logger.debug(f"Checking address risk: {address}")

        body = await self.http.request_json(
            "GET",
            f"{self.url}/entities/{address}",
            headers={"Token": token, "Content-Type": "application/json"},
        )
        if not isinstance(body, dict) or not isinstance(body.get("risk"), str) or not isinstance(body.get("status"), str):
            raise RemoteRequestError(f"Malformed risk response for {address}: {body!r}")

        return RiskAssessment(
            address=address,
            risk=body["risk"],
            risk_reason=body.get("riskReason"),
            status=body["status"],
        )

    async def close(self):
        await self.http.close()

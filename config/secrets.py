"""
Secret Manager for API credentials, RPC URLs and check toggles
Loads configuration from environment variables or .env file
"""
import os

from dotenv import load_dotenv

from config.chains import ChainConfig
from core.errors import MissingCredentialError

# Load .env file
load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class SecretManager:
    """
    Manages access to sensitive credentials and network toggles
    """

    def get_risk_api_token(self) -> str | None:
        """Get the Chainalysis risk API token"""
        return os.getenv("CHAINALYSIS_API_TOKEN") or None

    def require_risk_api_token(self) -> str:
        token = self.get_risk_api_token()
        if not token:
            raise MissingCredentialError("CHAINALYSIS_API_TOKEN environment variable is required")
        return token

    def get_rpc_url(self, chain: ChainConfig) -> str | None:
        """Get the configured RPC URL for a chain"""
        return os.getenv(chain.rpc_env_key) or None

    def skip_remote(self) -> bool:
        """Master switch for every network-bound check"""
        return _env_flag("SKIP_REMOTE_CHECKS")

    def skip_vaults_api(self) -> bool:
        return self.skip_remote() or _env_flag("SKIP_VAULTS_API_TESTS")

    def skip_markets_api(self) -> bool:
        return self.skip_remote() or _env_flag("SKIP_MARKETS_API_TESTS")

    def skip_risk_checks(self) -> bool:
        return self.skip_remote() or _env_flag("SKIP_RISK_CHECKS")

    def skip_onchain_checks(self) -> bool:
        return self.skip_remote() or _env_flag("SKIP_ONCHAIN_CHECKS")


# Global instance
secret_manager = SecretManager()

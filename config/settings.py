"""
Global settings for the registry validation suite
"""
import os
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

load_dotenv()

# Repository root (this file lives in <root>/config)
ROOT_DIR: Final[Path] = Path(__file__).resolve().parents[1]

# Directory holding the registry JSON documents
DATA_DIR: Final[Path] = Path(os.getenv("REGISTRY_DATA_DIR", str(ROOT_DIR / "data")))

# Logging level
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()

# Request timeout in seconds
REQUEST_TIMEOUT: Final[float] = 30.0

# Number of attempts for failed requests
MAX_RETRIES: Final[int] = 3

# Backoff base, delay before retry n is RETRY_BASE_DELAY * 2**n (2s, 4s, ...)
RETRY_BASE_DELAY: Final[float] = 1.0

# Outbound calls are issued in groups of BATCH_SIZE with a pause in between
BATCH_SIZE: Final[int] = 20
BATCH_PAUSE_SECONDS: Final[float] = 1.0

# Risk API pacing
RISK_REQUESTS_PER_SECOND: Final[float] = 5.0

# Upper bound for the remote phase of a run
RUN_TIMEOUT_SECONDS: Final[float] = float(os.getenv("RUN_TIMEOUT_SECONDS", "120"))

# External endpoints
MORPHO_API_URL: Final[str] = "https://api.morpho.org/graphql"
CHAINALYSIS_API_URL: Final[str] = "https://api.chainalysis.com/api/risk/v2"

# CDN locations
TOKEN_LOGO_CDN_PREFIX: Final[str] = "https://cdn.morpho.org/assets/logos/"
CURATOR_IMAGE_CDN_PREFIX: Final[str] = "https://cdn.morpho.org/v2/assets/images"

# Risk level considered acceptable
ACCEPTED_RISK_LEVEL: Final[str] = "low"
COMPLETE_RISK_STATUS: Final[str] = "COMPLETE"

ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"


# ==================== CLOSED VALUE SETS ====================

ORACLE_VENDORS: Final[frozenset[str]] = frozenset({
    "Chainlink",
    "Redstone",
    "Chronicle",
    "Pyth",
    "API3",
    "Pendle",
    "Spectra",
    "eOracle",
    "Midas",
    "Hashnote",
    "Oval",
    "Morpho",
})

ORACLE_PRICE_TYPES: Final[frozenset[str]] = frozenset({
    "chainlink_aggregator",
    "chainlink_without_logs",
    "exchange_rate",
    "tri_crypto",
    "chronicle",
    "api3",
    "pyth_network",
    "redstone_without_logs",
    "hardcoded",
    "pendle_asset_rate",
    "hash_note",
})

SPOT_PRICE_TYPES: Final[frozenset[str]] = frozenset({
    "uniswap_v3_twap",
    "aerodrome",
    "aerodrome_slip_stream",
    "ethena_staked_usde_exchange_rate",
    "erc4626_exchange_rate",
    "curve_pool",
})

ALLOWED_TOKEN_TAGS: Final[frozenset[str]] = frozenset({
    "stablecoin",
    "governance",
    "lst",
    "lrt",
    "rwa",
    "yield",
    "btc",
    "eth",
    "usd",
    "eur",
    "pendle",
    "simple-permit",
    "hardcoded",
})

CURATOR_SOCIAL_KEYS: Final[frozenset[str]] = frozenset({"url", "twitter", "forum"})

WARNING_LEVELS: Final[frozenset[str]] = frozenset({"YELLOW", "RED"})

POINTS_MAPS: Final[tuple[str, ...]] = (
    "vaultsWithPoints",
    "vaultsWithPointsOnMarket",
    "vaultsWithPointsOnMarketCollateralToken",
    "marketsWithPoints",
    "marketsWithPointsOnCollateralToken",
)

"""
Registry transforms
Pure functions returning the new records and a report of what changed.
Inputs are never mutated.
"""
import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from core.validators.base import is_chain_in
from core.validators.tokens import canonical_logo_uri
from utils.address import MalformedAddressError, checksum, checksum_or_placeholder
from utils.logger import get_logger

logger = get_logger(__name__)

# Chains kept by filter_tokens
TOKEN_CHAIN_IDS = frozenset({1, 8453, 10, 130, 137, 143, 988, 999, 747474, 42161})

VAULT_FIELDS_TO_STRIP = ("curators", "forumLink", "image")


@dataclass(frozen=True)
class Change:
    index: int
    field: str
    before: Any
    after: Any


@dataclass
class TransformReport:
    name: str
    changes: list[Change] = field(default_factory=list)
    removed: list[int] = field(default_factory=list)  # indices dropped by filters
    errors: list[str] = field(default_factory=list)  # values left untouched

    @property
    def changed(self) -> bool:
        return bool(self.changes or self.removed)

    def summary(self) -> str:
        parts = [f"{self.name}: {len(self.changes)} changes"]
        if self.removed:
            parts.append(f"{len(self.removed)} records removed")
        if self.errors:
            parts.append(f"{len(self.errors)} errors")
        return ", ".join(parts)


TransformResult = tuple[list, TransformReport]


def _fix_address(
    report: TransformReport,
    index: int,
    path: str,
    value: Any,
    fixer: Callable[[str], str] = checksum,
) -> Any:
    """Checksum one address, recording the change. Malformed values are kept."""
    try:
        fixed = fixer(value)
    except MalformedAddressError:
        report.errors.append(f"index {index}: invalid {path} {value!r}")
        return value
    if fixed != value:
        report.changes.append(Change(index, path, value, fixed))
    return fixed


def checksum_tokens(tokens: list) -> TransformResult:
    report = TransformReport("checksum_tokens")
    result = copy.deepcopy(tokens)
    for index, token in enumerate(result):
        if isinstance(token, dict) and "address" in token:
            token["address"] = _fix_address(report, index, "address", token["address"])
    return result, report


def checksum_price_feeds(feeds: list) -> TransformResult:
    """Feed, tokenIn and tokenOut addresses. The native placeholder is kept as written."""
    report = TransformReport("checksum_price_feeds")
    result = copy.deepcopy(feeds)
    for index, feed in enumerate(result):
        if not isinstance(feed, dict):
            continue
        if "address" in feed:
            feed["address"] = _fix_address(report, index, "address", feed["address"], checksum_or_placeholder)
        for side in ("tokenIn", "tokenOut"):
            token = feed.get(side)
            if isinstance(token, dict) and "address" in token:
                token["address"] = _fix_address(
                    report, index, f"{side}.address", token["address"], checksum_or_placeholder
                )
    return result, report


def checksum_price_sources(prices: list) -> TransformResult:
    """assetAddress and contractAddress of spot or oracle prices"""
    report = TransformReport("checksum_price_sources")
    result = copy.deepcopy(prices)
    for index, price in enumerate(result):
        if not isinstance(price, dict):
            continue
        for name in ("assetAddress", "contractAddress"):
            if name in price:
                price[name] = _fix_address(report, index, name, price[name])
    return result, report


def encode_token_logo_uris(tokens: list) -> TransformResult:
    """Re-encode partially escaped CDN logo URIs"""
    report = TransformReport("encode_token_logo_uris")
    result = copy.deepcopy(tokens)
    for index, token in enumerate(result):
        metadata = token.get("metadata") if isinstance(token, dict) else None
        uri = metadata.get("logoURI") if isinstance(metadata, dict) else None
        if not isinstance(uri, str) or not uri:
            continue
        fixed = canonical_logo_uri(uri)
        if fixed is not None and fixed != uri:
            metadata["logoURI"] = fixed
            report.changes.append(Change(index, "metadata.logoURI", uri, fixed))
    return result, report


def filter_tokens(tokens: list, chain_ids: Iterable[int] = TOKEN_CHAIN_IDS) -> TransformResult:
    """Keep tokens on the given chains that have a logoURI"""
    chain_ids = frozenset(chain_ids)
    report = TransformReport("filter_tokens")
    result = []
    for index, token in enumerate(tokens):
        metadata = token.get("metadata") if isinstance(token, dict) else None
        has_logo = isinstance(metadata, dict) and bool(metadata.get("logoURI"))
        if isinstance(token, dict) and is_chain_in(token.get("chainId"), chain_ids) and has_logo:
            result.append(copy.deepcopy(token))
        else:
            report.removed.append(index)
    logger.debug(f"Filtered {len(tokens)} tokens down to {len(result)}")
    return result, report


def strip_vault_fields(vaults: list, fields: Iterable[str] = VAULT_FIELDS_TO_STRIP) -> TransformResult:
    """Remove legacy fields such as curators, forumLink and image from vault entries"""
    fields = tuple(fields)
    report = TransformReport("strip_vault_fields")
    result = copy.deepcopy(vaults)
    for index, vault in enumerate(result):
        if not isinstance(vault, dict):
            continue
        for name in fields:
            if name in vault:
                report.changes.append(Change(index, name, vault.pop(name), None))
    return result, report


TRANSFORMS: dict[str, Callable[[list], TransformResult]] = {
    "checksum-tokens": checksum_tokens,
    "checksum-price-feeds": checksum_price_feeds,
    "checksum-spot-prices": checksum_price_sources,
    "checksum-oracle-prices": checksum_price_sources,
    "encode-token-logo-uris": encode_token_logo_uris,
    "filter-tokens": filter_tokens,
    "strip-vault-fields": strip_vault_fields,
}

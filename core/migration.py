"""
Legacy data migration
Reshapes vendor feed lists and the legacy vaults whitelist into the
canonical price-feed and vault listing schema
"""
import copy
from typing import Any, Iterable, Optional

from config.chains import find_chain
from core.transforms import Change, TransformReport, TransformResult
from utils.address import NATIVE_PLACEHOLDER, MalformedAddressError, checksum
from utils.logger import get_logger

logger = get_logger(__name__)

CHAINLINK = "Chainlink"
REDSTONE = "Redstone"

# Decimals of Chainlink USD feeds when the source list does not say
DEFAULT_CHAINLINK_DECIMALS = 8


def build_token_list(*sources: Iterable[Any]) -> list[dict]:
    """
    Merge legacy token lists, every token marked whitelisted. Only the
    canonical token fields are kept, entries that are not objects are dropped.
    """
    tokens = []
    for source in sources:
        for token in source:
            if not isinstance(token, dict):
                continue
            tokens.append({
                "chainId": token.get("chainId"),
                "address": token.get("address"),
                "symbol": token.get("symbol"),
                "decimals": token.get("decimals"),
                "name": token.get("name"),
                "metadata": token.get("metadata"),
                "isWhitelisted": True,
            })
    return tokens


def resolve_symbol(symbol: Any, chain_id: int, tokens: list[dict]) -> Optional[str]:
    """
    Token address for a pair symbol. ETH and WETH resolve to the chain's
    wrapped native token, USD to the native placeholder, BTC to WBTC.
    """
    if not isinstance(symbol, str) or not symbol.strip():
        return None
    upper = symbol.strip().upper()
    if upper in ("ETH", "WETH"):
        chain = find_chain(chain_id)
        return chain.wrapped_native if chain else None
    if upper == "USD":
        return NATIVE_PLACEHOLDER
    if upper == "BTC":
        upper = "WBTC"

    for token in tokens:
        token_symbol = token.get("symbol")
        if token.get("chainId") == chain_id and isinstance(token_symbol, str) and token_symbol.upper() == upper:
            return token.get("address")
    return None


def _pair_of(base: Any, quote: Any) -> Optional[list[str]]:
    if isinstance(base, str) and isinstance(quote, str) and base.strip() and quote.strip():
        return [base.strip(), quote.strip()]
    return None


def chainlink_pair(feed: dict) -> Optional[list[str]]:
    """Pair from the feed itself, its docs, or its 'BASE / QUOTE' name"""
    pair = feed.get("pair")
    if isinstance(pair, list) and len(pair) == 2 and _pair_of(*pair):
        return _pair_of(*pair)

    docs = feed.get("docs")
    if isinstance(docs, dict) and _pair_of(docs.get("baseAsset"), docs.get("quoteAsset")):
        return _pair_of(docs["baseAsset"], docs["quoteAsset"])

    name = feed.get("name")
    if isinstance(name, str) and "/" in name:
        return [item.strip() for item in name.split("/")]
    return None


def _token_ref(address: Optional[str], chain_id: int) -> Optional[dict]:
    return {"address": address, "chainId": chain_id} if address else None


def _canonical_feed(
    chain_id: int,
    address: str,
    vendor: str,
    description: str,
    pair: Optional[list[str]],
    tokens: list[dict],
    decimals: Optional[int] = None,
) -> dict:
    token_in = resolve_symbol(pair[0], chain_id, tokens) if pair else None
    token_out = resolve_symbol(pair[1], chain_id, tokens) if pair and len(pair) > 1 else None

    feed = {
        "chainId": chain_id,
        "address": address,
        "vendor": vendor,
        "description": description,
    }
    if pair:
        feed["pair"] = pair
    if token_in:
        feed["tokenIn"] = _token_ref(token_in, chain_id)
    if token_out:
        feed["tokenOut"] = _token_ref(token_out, chain_id)
    if decimals is not None:
        feed["decimals"] = decimals
    return feed


def migrate_chainlink_feeds(feeds: list[dict], chain_id: int, tokens: list[dict]) -> TransformResult:
    report = TransformReport(f"migrate_chainlink_feeds[{chain_id}]")
    result = []
    for index, feed in enumerate(feeds):
        if not isinstance(feed, dict):
            report.errors.append(f"index {index}: feed must be an object")
            continue
        raw_address = feed.get("proxyAddress") or feed.get("contractAddress")
        try:
            address = checksum(raw_address)
        except MalformedAddressError:
            report.errors.append(f"index {index}: invalid feed address {raw_address!r}")
            continue

        pair = chainlink_pair(feed)
        migrated = _canonical_feed(
            chain_id,
            address,
            CHAINLINK,
            f"{feed.get('name')} ({feed.get('threshold')}%)",
            pair,
            tokens,
            decimals=feed.get("decimals", DEFAULT_CHAINLINK_DECIMALS),
        )
        _record_unresolved(report, len(result), pair, migrated)
        result.append(migrated)
    return result, report


def migrate_redstone_feeds(feeds: list[dict], chain_id: int, tokens: list[dict]) -> TransformResult:
    report = TransformReport(f"migrate_redstone_feeds[{chain_id}]")
    result = []
    for index, feed in enumerate(feeds):
        if not isinstance(feed, dict):
            report.errors.append(f"index {index}: feed must be an object")
            continue
        try:
            address = checksum(feed.get("contractAddress"))
        except MalformedAddressError:
            report.errors.append(f"index {index}: invalid feed address {feed.get('contractAddress')!r}")
            continue

        pair = _pair_of(feed.get("symbol"), feed.get("denomination"))
        migrated = _canonical_feed(
            chain_id,
            address,
            REDSTONE,
            f"{feed.get('symbol')}/{feed.get('denomination')} ({feed.get('deviationThreshold')})",
            pair,
            tokens,
        )
        _record_unresolved(report, len(result), pair, migrated)
        result.append(migrated)
    return result, report


def _record_unresolved(report: TransformReport, index: int, pair: Optional[list], feed: dict):
    if not pair:
        report.errors.append(f"index {index}: no pair for {feed['address']}")
        return
    for side, symbol in zip(("tokenIn", "tokenOut"), pair):
        if side in feed:
            report.changes.append(Change(index, side, symbol, feed[side]["address"]))
        else:
            report.errors.append(f"index {index}: no token for symbol {symbol!r}")


def migrate_vaults_whitelist(whitelist: dict[str, dict[str, Any]]) -> TransformResult:
    """
    chainId -> address -> metadata mapping into a list of vault entries
    """
    report = TransformReport("migrate_vaults_whitelist")
    result = []
    for chain_id, vaults in whitelist.items():
        if not str(chain_id).strip().isdigit():
            report.errors.append(f"chain {chain_id!r}: chain id must be numeric")
            continue
        if not isinstance(vaults, dict):
            report.errors.append(f"chain {chain_id}: expected an address -> metadata object")
            continue
        for address, metadata in vaults.items():
            try:
                fixed = checksum(address)
            except MalformedAddressError:
                report.errors.append(f"chain {chain_id}: invalid vault address {address!r}")
                continue
            entry = {"address": fixed, "chainId": int(chain_id)}
            entry.update(copy.deepcopy(metadata) if isinstance(metadata, dict) else {})
            if fixed != address:
                report.changes.append(Change(len(result), "address", address, fixed))
            result.append(entry)
    return result, report


def migrate_feeds(
    tokens: list[dict],
    chainlink: dict[int, list[dict]] | None = None,
    redstone: dict[int, list[dict]] | None = None,
) -> TransformResult:
    """All vendor feed lists (per chain) into one canonical feed list"""
    report = TransformReport("migrate_feeds")
    result: list[dict] = []

    batches = [
        (migrate_redstone_feeds, chain_id, feeds) for chain_id, feeds in (redstone or {}).items()
    ] + [
        (migrate_chainlink_feeds, chain_id, feeds) for chain_id, feeds in (chainlink or {}).items()
    ]
    for migrate, chain_id, feeds in batches:
        offset = len(result)
        migrated, sub_report = migrate(feeds, chain_id, tokens)
        result.extend(migrated)
        report.changes.extend(
            Change(offset + c.index, c.field, c.before, c.after) for c in sub_report.changes
        )
        report.errors.extend(f"{sub_report.name}: {e}" for e in sub_report.errors)

    logger.info(f"Migrated {len(result)} feeds ({len(report.errors)} unresolved)")
    return result, report

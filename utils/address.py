"""
Address normalization
EIP-55 mixed-case checksum rendering of account addresses
"""
import re

from web3 import Web3

ADDRESS_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")
MARKET_ID_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")

# Stand-in for the chain's native asset (e.g. USD or ETH quotes)
NATIVE_PLACEHOLDER = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"


class MalformedAddressError(ValueError):
    """Input is not 40 hex digits with an optional 0x prefix"""


def checksum(address: str) -> str:
    """
    Get the canonical checksummed form of an address

    Raises:
        MalformedAddressError: if the input is not a 20-byte hex address
    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        raise MalformedAddressError(f"Malformed address: {address!r}")
    digits = address[2:] if address.startswith("0x") else address
    return Web3.to_checksum_address("0x" + digits.lower())


def is_checksummed(address: str) -> bool:
    """Check that an address equals its own checksummed form"""
    try:
        return checksum(address) == address
    except MalformedAddressError:
        return False


def address_key(address: str) -> str:
    """Lowercase form used for case-insensitive lookups"""
    return address.lower() if isinstance(address, str) else str(address)


def is_placeholder(address: str) -> bool:
    return isinstance(address, str) and address.lower() == NATIVE_PLACEHOLDER.lower()


def checksum_or_placeholder(address: str) -> str:
    """Checksum an address but leave the native placeholder as written"""
    if is_placeholder(address):
        return address
    return checksum(address)


def is_market_id(value: str) -> bool:
    """A market id is a 32-byte hex string"""
    return isinstance(value, str) and bool(MARKET_ID_PATTERN.match(value))

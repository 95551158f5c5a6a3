"""
Price source payloads
The `data` field of exchange rates, spot prices and oracle prices is a JSON
encoded string. It is decoded once and parsed into a dataclass chosen by
the record's type.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Optional


class PayloadError(ValueError):
    """The data field is not a JSON encoded object"""


def decode_payload(raw: Any) -> dict:
    """
    Decode a JSON encoded payload string

    Raises:
        PayloadError: raw is not a string or does not decode to an object
    """
    if not isinstance(raw, str):
        raise PayloadError(f"data must be a JSON string, got {type(raw).__name__}")
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PayloadError(f"data is not valid JSON: {e}") from e
    if not isinstance(decoded, dict):
        raise PayloadError("data must decode to an object")
    return decoded


@dataclass
class PayloadArg:
    type: Any
    value: Any


@dataclass
class CallPayload:
    """Contract call description: `function {function}(uint256) view returns (uint256)`"""
    abi: Any = None
    function: Any = None
    decimals: Any = None
    args: Any = None  # raw value, list[PayloadArg] once parsed
    first_block_number: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> "CallPayload":
        args = data.get("args")
        if isinstance(args, list):
            args = [
                PayloadArg(a.get("type"), a.get("value")) if isinstance(a, dict) else PayloadArg(None, a)
                for a in args
            ]
        return cls(
            abi=data.get("abi"),
            function=data.get("function"),
            decimals=data.get("decimals"),
            args=args,
            first_block_number=data.get("first_block_number"),
        )

    @property
    def expected_abi(self) -> str:
        return f"function {self.function}(uint256) view returns (uint256)"

    @property
    def expected_unit(self) -> Optional[str]:
        """"1" followed by `decimals` zeros, None when decimals is unusable"""
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, (int, float)):
            return None
        if self.decimals < 0 or self.decimals != int(self.decimals):
            return None
        return "1" + "0" * int(self.decimals)


@dataclass
class SpotPayload:
    in_token: Any = None
    first_block_number: Any = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "SpotPayload":
        extra = {k: v for k, v in data.items() if k not in ("in_token", "first_block_number")}
        return cls(data.get("in_token"), data.get("first_block_number"), extra)

    @property
    def has_in_token(self) -> bool:
        return self.in_token is not None


@dataclass
class OraclePayload:
    """Every oracle price payload carries decimals, exchange_rate ones also a call"""
    decimals: Any = None
    call: Optional[CallPayload] = None

    @classmethod
    def from_dict(cls, data: dict, price_type: Any = None) -> "OraclePayload":
        call = CallPayload.from_dict(data) if price_type == "exchange_rate" else None
        return cls(decimals=data.get("decimals"), call=call)


def parse_call_payload(raw: Any) -> CallPayload:
    return CallPayload.from_dict(decode_payload(raw))


def parse_spot_payload(raw: Any) -> SpotPayload:
    return SpotPayload.from_dict(decode_payload(raw))


def parse_oracle_payload(raw: Any, price_type: Any = None) -> OraclePayload:
    return OraclePayload.from_dict(decode_payload(raw), price_type)

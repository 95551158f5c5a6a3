"""
Multicall3 Implementation
Batches contract reads (feed decimals, vault roles) into a single RPC request.
Contract Address (All Chains): 0xcA11bde05977b3631167028862bE2a173976CA11
"""
from typing import Any, NamedTuple

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import AsyncWeb3, Web3

from utils.logger import get_logger

logger = get_logger(__name__)

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

MULTICALL3_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "target", "type": "address"},
                    {"internalType": "bool", "name": "allowFailure", "type": "bool"},
                    {"internalType": "bytes", "name": "callData", "type": "bytes"}
                ],
                "internalType": "struct Multicall3.Call3[]",
                "name": "calls",
                "type": "tuple[]"
            }
        ],
        "name": "aggregate3",
        "outputs": [
            {
                "components": [
                    {"internalType": "bool", "name": "success", "type": "bool"},
                    {"internalType": "bytes", "name": "returnData", "type": "bytes"}
                ],
                "internalType": "struct Multicall3.Result[]",
                "name": "returnData",
                "type": "tuple[]"
            }
        ],
        "stateMutability": "view",
        "type": "function"
    }
]


def function_selector(signature: str) -> bytes:
    """4-byte selector of a function signature, e.g. 'decimals()'"""
    return bytes(Web3.keccak(text=signature)[:4])


class Call(NamedTuple):
    target: str
    allow_failure: bool
    call_data: bytes
    output_types: list[str]  # e.g. ['uint8'] or ['address']

    @classmethod
    def no_args(cls, target: str, signature: str, output_types: list[str]) -> "Call":
        """Call to an argument-less view function"""
        return cls(target, True, function_selector(signature), output_types)


class Multicall:
    def __init__(self, web3: AsyncWeb3):
        self.web3 = web3
        self.contract = web3.eth.contract(
            address=MULTICALL3_ADDRESS,
            abi=MULTICALL3_ABI
        )

    async def aggregate(self, calls: list[Call]) -> list[Any]:
        """
        Execute multiple calls in a single RPC request.
        Returns a list of decoded results. If a call failed (and allow_failure=True),
        the result will be None. RPC errors propagate to the caller.
        """
        if not calls:
            return []

        call_structs = [
            (
                self.web3.to_checksum_address(call.target),
                call.allow_failure,
                call.call_data
            )
            for call in calls
        ]

        results = await self.contract.functions.aggregate3(call_structs).call()

        decoded_results = []
        for i, (success, return_data) in enumerate(results):
            if not success or not return_data:
                decoded_results.append(None)
                continue

            try:
                decoded = decode(calls[i].output_types, return_data)
            except DecodingError as e:
                logger.debug(f"Could not decode result of call to {calls[i].target}: {e}")
                decoded_results.append(None)
                continue

            # Unwrap single values
            if len(decoded) == 1:
                decoded_results.append(decoded[0])
            else:
                decoded_results.append(decoded)

        return decoded_results

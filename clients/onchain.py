"""
On-chain reads for the remote checks
Feed decimals and vault owner/curator roles through Multicall3
"""
from dataclasses import dataclass
from typing import Optional

from config.chains import ChainId
from core.network.multicall import Call, Multicall
from utils.address import checksum
from utils.logger import get_logger
from utils.rpc_manager import RPCManager, rpc_manager

logger = get_logger(__name__)

# Calls per aggregate3 request
MULTICALL_CHUNK_SIZE = 100


@dataclass(frozen=True)
class VaultRoles:
    owner: Optional[str]
    curator: Optional[str]


class OnchainReader:
    def __init__(self, rpc: RPCManager = rpc_manager):
        self.rpc = rpc

    def is_configured(self, chain_id: int) -> bool:
        try:
            return self.rpc.is_configured(ChainId(chain_id))
        except ValueError:
            return False

    async def _aggregate(self, chain_id: int, calls: list[Call]) -> list:
        results = []
        for start in range(0, len(calls), MULTICALL_CHUNK_SIZE):
            chunk = calls[start:start + MULTICALL_CHUNK_SIZE]
            results.extend(await self.rpc.call(
                ChainId(chain_id),
                lambda web3, chunk=chunk: Multicall(web3).aggregate(chunk),
            ))
        return results

    async def feed_decimals(self, chain_id: int, addresses: list[str]) -> dict[str, Optional[int]]:
        """decimals() of every feed, None where the call reverted"""
        calls = [Call.no_args(address, "decimals()", ["uint8"]) for address in addresses]
        results = await self._aggregate(chain_id, calls)
        return dict(zip(addresses, results))

    async def vault_roles(self, chain_id: int, addresses: list[str]) -> dict[str, VaultRoles]:
        """owner() and curator() of every vault"""
        calls = []
        for address in addresses:
            calls.append(Call.no_args(address, "owner()", ["address"]))
            calls.append(Call.no_args(address, "curator()", ["address"]))
        results = await self._aggregate(chain_id, calls)

        roles = {}
        for i, address in enumerate(addresses):
            owner, curator = results[2 * i], results[2 * i + 1]
            # eth_abi decodes addresses lowercase
            roles[address] = VaultRoles(
                owner=checksum(owner) if isinstance(owner, str) else None,
                curator=checksum(curator) if isinstance(curator, str) else None,
            )
        return roles

    async def close(self):
        await self.rpc.close()

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception
from web3.providers import AsyncHTTPProvider

from app.domain.exceptions import NetworkError, TokenReadError


ERC20_ABI = [
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError)
_RPC_ERRORS = (Web3Exception, ValueError) + _TRANSPORT_ERRORS


class Web3ChainClient:
    """Thin async RPC client bound to one chain endpoint."""

    def __init__(self, chain_id: int, rpc_url: str, w3: AsyncWeb3 | None = None):
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self._w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))

    @property
    def w3(self) -> AsyncWeb3:
        return self._w3

    @staticmethod
    def checksum(address: str) -> str:
        return AsyncWeb3.to_checksum_address(address)

    def contract(self, address: str, abi: list[dict]):
        return self._w3.eth.contract(self.checksum(address), abi=abi)

    async def read_contract(self, address: str, abi: list[dict], function_name: str, *args: Any) -> Any:
        contract = self.contract(address, abi)
        try:
            return await getattr(contract.functions, function_name)(*args).call()
        except (ContractLogicError, BadFunctionCallOutput) as exc:
            raise TokenReadError(
                f"{function_name}() failed on {address} (chain {self.chain_id}): {exc}"
            ) from exc
        except _RPC_ERRORS as exc:
            raise NetworkError(f"RPC call {function_name}() failed on chain {self.chain_id}: {exc}") from exc

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        params = dict(tx)
        for key in ("from", "to"):
            if params.get(key):
                params[key] = self.checksum(params[key])
        try:
            return int(await self._w3.eth.estimate_gas(params))
        except (Web3Exception, ValueError) as exc:
            raise NetworkError(f"estimate_gas rejected on chain {self.chain_id}: {exc}") from exc
        except _TRANSPORT_ERRORS as exc:
            raise NetworkError(f"estimate_gas failed on chain {self.chain_id}: {exc}") from exc

    async def get_gas_price(self) -> int:
        try:
            return int(await self._w3.eth.gas_price)
        except _RPC_ERRORS as exc:
            raise NetworkError(f"gas_price failed on chain {self.chain_id}: {exc}") from exc

"""
Blocking wrapper around an asynchronous web3 client.

Forked execution runs synchronously and cannot await; this wrapper drives
each request of an ``AsyncWeb3`` instance to completion on an event loop
owned by the wrapper. Errors raised by the client propagate unchanged.
"""

import asyncio
import os
from typing import Any, Awaitable, Optional, TypeVar, Union

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.types import BlockIdentifier

from evmtrace.utils.logging import get_logger

logger = get_logger('providers.blocking')

T = TypeVar('T')

DEFAULT_RPC_URL = 'http://localhost:8545'
RPC_URL_ENV = 'EVMTRACE_RPC_URL'


class BlockingProvider:
    """
    Synchronous chain-data access backed by an asynchronous client.

    Each instance owns one event loop and runs one request at a time on it.
    There is no timeout or cancellation here; bounds must be configured on
    the wrapped client. Copies get their own event loop, so a copy can be
    handed to another thread.
    """

    def __init__(self, provider: AsyncWeb3):
        self.provider = provider
        self._loop = asyncio.new_event_loop()

    @classmethod
    def from_url(cls, rpc_url: str, **provider_kwargs: Any) -> 'BlockingProvider':
        """Wrap an HTTP client; ``provider_kwargs`` go to AsyncHTTPProvider (e.g. request_kwargs)."""
        return cls(AsyncWeb3(AsyncHTTPProvider(rpc_url, **provider_kwargs)))

    @classmethod
    def from_env(cls) -> 'BlockingProvider':
        rpc_url = os.environ.get(RPC_URL_ENV, DEFAULT_RPC_URL)
        logger.debug(f"Connecting to RPC: {rpc_url}")
        return cls.from_url(rpc_url)

    def clone(self) -> 'BlockingProvider':
        """A wrapper around the same client with a fresh event loop."""
        return type(self)(self.provider)

    def __copy__(self) -> 'BlockingProvider':
        return self.clone()

    def close(self) -> None:
        if not self._loop.is_closed():
            self._loop.close()

    def __enter__(self) -> 'BlockingProvider':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def block_on(self, awaitable: Awaitable[T]) -> T:
        return self._loop.run_until_complete(awaitable)

    def get_block_number(self) -> int:
        return self.block_on(self._block_number())

    def get_balance(self, address: str, block: Optional[BlockIdentifier] = None) -> int:
        return self.block_on(self.provider.eth.get_balance(address, block))

    def get_transaction_count(self, address: str, block: Optional[BlockIdentifier] = None) -> int:
        return self.block_on(self.provider.eth.get_transaction_count(address, block))

    def get_code(self, address: str, block: Optional[BlockIdentifier] = None) -> bytes:
        return self.block_on(self.provider.eth.get_code(address, block))

    def get_storage_at(
        self,
        address: str,
        slot: Union[int, bytes],
        block: Optional[BlockIdentifier] = None,
    ) -> bytes:
        if isinstance(slot, (bytes, bytearray)):
            slot = int.from_bytes(slot, 'big')
        return self.block_on(self.provider.eth.get_storage_at(address, slot, block))

    async def _block_number(self) -> Any:
        # AsyncEth.block_number is an awaitable property
        return await self.provider.eth.block_number

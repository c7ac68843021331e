"""
Event source backed by an EVM JSON-RPC node.

Historical ranges map onto ``eth_getLogs`` through the contract's event
filters. Live streams poll: every ``poll_interval`` seconds the head is
read and the logs of the blocks mined since the previous poll are
fetched. This is what a provider-backed contract listener does under the
hood on plain HTTP endpoints, without relying on server-side filters that
nodes expire.

Errors
------
Any failure of a range query surfaces as SourceQueryError so backfill can
retry it. Any failure inside a live stream ends the stream with
SubscriptionError: polling does not reconnect on its own.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Mapping, Sequence
from typing import Any, TypeVar

from web3 import AsyncHTTPProvider, AsyncWeb3

from stake_sync.events import EventKind, RawEvent
from stake_sync.sync import DEFAULT_BATCH_SIZE, batch_ranges
from stake_sync.types import SourceQueryError, SubscriptionError

from .config import DEFAULT_POLL_INTERVAL, STAKING_ABI

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def to_raw_event(kind: EventKind, log: Mapping[str, Any]) -> RawEvent:
    """
    Convert a decoded web3 log into a raw event.

    Missing fields stay missing. Validation happens in normalization.
    """
    tx_hash = log.get("transactionHash")
    if tx_hash is not None and not isinstance(tx_hash, str):
        tx_hash = "0x" + bytes(tx_hash).hex()

    return RawEvent(
        kind=kind,
        args=dict(log.get("args") or {}),
        block_number=log.get("blockNumber"),
        transaction_hash=tx_hash,
        log_index=log.get("logIndex"),
    )


class Web3EventSource:
    """
    EventSource implementation over web3's async client.

    One instance serves all three event kinds. The underlying HTTP
    provider pools connections, so concurrent streams share them.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        contract_address: str,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_range: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """
        Initialize the source.

        Args:
            w3: Connected async web3 client.
            contract_address: Staking contract address, any checksum case.
            poll_interval: Seconds between polls in live streams.
            max_range: Most blocks fetched by one log query in a live
                stream. A poll further behind the head is split.
        """
        self._w3 = w3
        self._contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=STAKING_ABI,
        )
        self.poll_interval = poll_interval
        self.max_range = max_range

    @classmethod
    def from_rpc_url(
        cls,
        rpc_url: str,
        contract_address: str,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_range: int = DEFAULT_BATCH_SIZE,
    ) -> Web3EventSource:
        """Create a source talking to a JSON-RPC endpoint over HTTP."""
        return cls(
            AsyncWeb3(AsyncHTTPProvider(rpc_url)),
            contract_address,
            poll_interval=poll_interval,
            max_range=max_range,
        )

    async def current_height(self) -> int:
        """Return the latest block number the node knows."""
        return int(await self._w3.eth.block_number)

    async def query_range(
        self,
        kind: EventKind,
        from_block: int,
        to_block: int,
    ) -> Sequence[RawEvent]:
        """Fetch all logs of one kind in a closed block range."""
        try:
            logs = await self._get_logs(kind, from_block, to_block)
        except Exception as e:
            # web3 surfaces RPC errors, transport errors and decode errors
            # through unrelated hierarchies.
            raise SourceQueryError(kind, from_block, to_block, str(e)) from e

        logger.debug("%s [%d, %d]: %d logs", kind.value, from_block, to_block, len(logs))
        return [to_raw_event(kind, log) for log in logs]

    async def subscribe(
        self,
        kind: EventKind,
        from_block: int | None = None,
    ) -> AsyncIterator[RawEvent]:
        """
        Poll for new logs of one kind, forever.

        Args:
            kind: Event kind to stream.
            from_block: First block to stream. None starts after the head
                observed by the first poll.

        Raises:
            SubscriptionError: On the first failed poll.
        """
        next_block = from_block
        while True:
            head = await self._poll(kind, self.current_height())
            if next_block is None:
                next_block = head + 1

            for start, end in batch_ranges(next_block, head, self.max_range):
                logs = await self._poll(kind, self._get_logs(kind, start, end))
                for log in logs:
                    yield to_raw_event(kind, log)
                next_block = end + 1

            await asyncio.sleep(self.poll_interval)

    async def _poll(self, kind: EventKind, call: Awaitable[_T]) -> _T:
        """Await one live-stream RPC call, ending the stream on failure."""
        try:
            return await call
        except Exception as e:
            raise SubscriptionError(kind, str(e) or type(e).__name__) from e

    async def _get_logs(self, kind: EventKind, from_block: int, to_block: int) -> Sequence[Any]:
        event = getattr(self._contract.events, kind.value)
        return await event.get_logs(from_block=from_block, to_block=to_block)

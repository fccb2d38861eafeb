from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import ChunkDim
from .types import LogFilter


@dataclass(frozen=True)
class Params:
    """One unit of work: a block, a transaction, or both plus a log filter"""

    block_number: Optional[int] = None
    transaction_hash: Optional[bytes] = None
    address: Optional[bytes] = None
    topics: Tuple[Optional[bytes], ...] = (None, None, None, None)

    def get_block_number(self) -> int:
        if self.block_number is None:
            raise ValueError("block number not specified")
        return self.block_number

    def get_transaction_hash(self) -> bytes:
        if self.transaction_hash is None:
            raise ValueError("transaction hash not specified")
        return self.transaction_hash

    def get_address(self) -> bytes:
        if self.address is None:
            raise ValueError("address not specified")
        return self.address

    def log_filter(self) -> LogFilter:
        block_number = self.get_block_number()
        return LogFilter(
            from_block=block_number,
            to_block=block_number,
            address=self.address,
            topics=self.topics,
        )

    def missing_dims(self, dims: Sequence[ChunkDim]) -> List[ChunkDim]:
        values = {
            ChunkDim.BLOCK_NUMBER: self.block_number,
            ChunkDim.TRANSACTION_HASH: self.transaction_hash,
            ChunkDim.ADDRESS: self.address,
        }
        return [dim for dim in dims if values[dim] is None]


def block_requests(
    start_block: int, end_block: int, address: Optional[bytes] = None
) -> List[Params]:
    """Requests for every block in the inclusive range"""
    if start_block > end_block:
        raise ValueError("block range is invalid")

    return [
        Params(block_number=n, address=address)
        for n in range(start_block, end_block + 1)
    ]


def transaction_requests(transaction_hashes: Iterable[bytes]) -> List[Params]:
    return [Params(transaction_hash=tx) for tx in transaction_hashes]


__all__ = ["Params", "block_requests", "transaction_requests"]

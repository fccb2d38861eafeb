from abc import ABC, abstractmethod
from typing import List, Optional

from .types import Block, Log, LogFilter, Receipt, StateDiffs, Trace, Transaction


class Fetcher(ABC):
    """Async capability set the collectors extract from.

    Lookups return None when the node has no such object. Trace and state
    diff methods raise NotFoundError instead. Transport and node errors are
    raised as FetchError.
    """

    @abstractmethod
    async def get_block(self, block_number: int) -> Optional[Block]:
        pass

    @abstractmethod
    async def get_block_by_hash(self, block_hash: bytes) -> Optional[Block]:
        pass

    @abstractmethod
    async def get_transaction(self, transaction_hash: bytes) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def get_transaction_receipt(
        self, transaction_hash: bytes
    ) -> Optional[Receipt]:
        pass

    @abstractmethod
    async def get_transaction_logs(self, transaction_hash: bytes) -> List[Log]:
        pass

    @abstractmethod
    async def get_logs(self, log_filter: LogFilter) -> List[Log]:
        pass

    @abstractmethod
    async def trace_block(self, block_number: int) -> List[Trace]:
        pass

    @abstractmethod
    async def trace_transaction(self, transaction_hash: bytes) -> List[Trace]:
        pass

    @abstractmethod
    async def trace_block_state_diffs(self, block_number: int) -> StateDiffs:
        pass

    @abstractmethod
    async def trace_transaction_state_diffs(
        self, transaction_hash: bytes
    ) -> StateDiffs:
        pass

    @abstractmethod
    async def call(self, address: bytes, call_data: bytes, block_number: int) -> bytes:
        pass


__all__ = ["Fetcher"]

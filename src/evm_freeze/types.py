from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

ZERO_ADDRESS = bytes(20)
ZERO_HASH = bytes(32)


@dataclass(frozen=True)
class Block:
    hash: Optional[bytes] = None
    parent_hash: bytes = ZERO_HASH
    author: Optional[bytes] = None
    state_root: bytes = ZERO_HASH
    transactions_root: bytes = ZERO_HASH
    receipts_root: bytes = ZERO_HASH
    number: Optional[int] = None
    gas_used: int = 0
    extra_data: bytes = b""
    logs_bloom: Optional[bytes] = None
    timestamp: int = 0
    total_difficulty: Optional[int] = None
    size: Optional[int] = None
    base_fee_per_gas: Optional[int] = None


@dataclass(frozen=True)
class Transaction:
    hash: bytes
    block_hash: Optional[bytes] = None
    block_number: Optional[int] = None
    transaction_index: Optional[int] = None
    from_address: Optional[bytes] = None
    to_address: Optional[bytes] = None
    value: int = 0
    input: bytes = b""


@dataclass(frozen=True)
class Log:
    address: bytes
    topics: Tuple[bytes, ...] = ()
    data: bytes = b""
    block_number: Optional[int] = None
    block_hash: Optional[bytes] = None
    transaction_hash: Optional[bytes] = None
    transaction_index: Optional[int] = None
    log_index: Optional[int] = None
    removed: Optional[bool] = None


@dataclass(frozen=True)
class Receipt:
    transaction_hash: bytes
    block_number: Optional[int] = None
    block_hash: Optional[bytes] = None
    transaction_index: Optional[int] = None
    status: Optional[int] = None
    logs: Tuple[Log, ...] = ()


@dataclass(frozen=True)
class LogFilter:
    from_block: Optional[int] = None
    to_block: Optional[int] = None
    address: Optional[bytes] = None
    # one entry per topic position, None matches anything
    topics: Tuple[Optional[bytes], ...] = (None, None, None, None)


# trace actions


@dataclass(frozen=True)
class CallAction:
    from_address: bytes
    to_address: bytes
    value: int = 0
    gas: int = 0
    input: bytes = b""
    call_type: str = "call"


@dataclass(frozen=True)
class CreateAction:
    from_address: bytes
    value: int = 0
    gas: int = 0
    init: bytes = b""


@dataclass(frozen=True)
class SuicideAction:
    address: bytes
    refund_address: bytes
    balance: int = 0


@dataclass(frozen=True)
class RewardAction:
    author: bytes
    value: int = 0
    reward_type: str = "block"


Action = Union[CallAction, CreateAction, SuicideAction, RewardAction]


@dataclass(frozen=True)
class CallResult:
    gas_used: int = 0
    output: bytes = b""


@dataclass(frozen=True)
class CreateResult:
    address: bytes
    gas_used: int = 0
    code: bytes = b""


TraceResult = Union[CallResult, CreateResult]


@dataclass(frozen=True)
class Trace:
    action: Action
    block_number: int
    result: Optional[TraceResult] = None
    trace_address: Tuple[int, ...] = ()
    subtraces: int = 0
    transaction_position: Optional[int] = None
    transaction_hash: Optional[bytes] = None
    block_hash: Optional[bytes] = None
    error: Optional[str] = None


# state diffs


@dataclass(frozen=True)
class Same:
    pass


@dataclass(frozen=True)
class Born:
    value: Union[bytes, int]


@dataclass(frozen=True)
class Died:
    value: Union[bytes, int]


@dataclass(frozen=True)
class Changed:
    from_value: Union[bytes, int]
    to_value: Union[bytes, int]


Diff = Union[Same, Born, Died, Changed]


@dataclass(frozen=True)
class AccountDiff:
    balance: Diff = field(default_factory=Same)
    code: Diff = field(default_factory=Same)


@dataclass(frozen=True)
class BlockTrace:
    transaction_hash: Optional[bytes] = None
    # None when the node did not return a state diff for this trace
    state_diff: Optional[Dict[bytes, AccountDiff]] = None
    output: bytes = b""


class StateDiffs(NamedTuple):
    block_number: Optional[int]
    transaction_hash: Optional[bytes]
    traces: List[BlockTrace]


__all__ = [
    "ZERO_ADDRESS",
    "ZERO_HASH",
    "Block",
    "Transaction",
    "Log",
    "Receipt",
    "LogFilter",
    "CallAction",
    "CreateAction",
    "SuicideAction",
    "RewardAction",
    "Action",
    "CallResult",
    "CreateResult",
    "TraceResult",
    "Trace",
    "Same",
    "Born",
    "Died",
    "Changed",
    "Diff",
    "AccountDiff",
    "BlockTrace",
    "StateDiffs",
]

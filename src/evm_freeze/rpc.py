import asyncio
import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import FetchError, NotFoundError, RpcError
from .fetcher import Fetcher
from .types import (
    AccountDiff,
    Block,
    BlockTrace,
    Born,
    CallAction,
    CallResult,
    Changed,
    CreateAction,
    CreateResult,
    Died,
    Diff,
    Log,
    LogFilter,
    Receipt,
    RewardAction,
    Same,
    StateDiffs,
    SuicideAction,
    Trace,
    Transaction,
)

logger = logging.getLogger(__name__)


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def quantity(value: int) -> str:
    return hex(value)


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return int(value, 16)


def parse_bytes(value: Optional[str]) -> Optional[bytes]:
    if value is None:
        return None
    return bytes.fromhex(value.removeprefix("0x"))


def parse_block(raw: Dict[str, Any]) -> Block:
    return Block(
        hash=parse_bytes(raw.get("hash")),
        parent_hash=parse_bytes(raw["parentHash"]),
        author=parse_bytes(raw.get("miner")),
        state_root=parse_bytes(raw["stateRoot"]),
        transactions_root=parse_bytes(raw["transactionsRoot"]),
        receipts_root=parse_bytes(raw["receiptsRoot"]),
        number=parse_int(raw.get("number")),
        gas_used=parse_int(raw["gasUsed"]),
        extra_data=parse_bytes(raw.get("extraData", "0x")),
        logs_bloom=parse_bytes(raw.get("logsBloom")),
        timestamp=parse_int(raw["timestamp"]),
        total_difficulty=parse_int(raw.get("totalDifficulty")),
        size=parse_int(raw.get("size")),
        base_fee_per_gas=parse_int(raw.get("baseFeePerGas")),
    )


def parse_transaction(raw: Dict[str, Any]) -> Transaction:
    return Transaction(
        hash=parse_bytes(raw["hash"]),
        block_hash=parse_bytes(raw.get("blockHash")),
        block_number=parse_int(raw.get("blockNumber")),
        transaction_index=parse_int(raw.get("transactionIndex")),
        from_address=parse_bytes(raw.get("from")),
        to_address=parse_bytes(raw.get("to")),
        value=parse_int(raw.get("value", "0x0")),
        input=parse_bytes(raw.get("input", "0x")),
    )


def parse_log(raw: Dict[str, Any]) -> Log:
    return Log(
        address=parse_bytes(raw["address"]),
        topics=tuple(parse_bytes(t) for t in raw.get("topics", [])),
        data=parse_bytes(raw.get("data", "0x")),
        block_number=parse_int(raw.get("blockNumber")),
        block_hash=parse_bytes(raw.get("blockHash")),
        transaction_hash=parse_bytes(raw.get("transactionHash")),
        transaction_index=parse_int(raw.get("transactionIndex")),
        log_index=parse_int(raw.get("logIndex")),
        removed=raw.get("removed"),
    )


def parse_receipt(raw: Dict[str, Any]) -> Receipt:
    return Receipt(
        transaction_hash=parse_bytes(raw["transactionHash"]),
        block_number=parse_int(raw.get("blockNumber")),
        block_hash=parse_bytes(raw.get("blockHash")),
        transaction_index=parse_int(raw.get("transactionIndex")),
        status=parse_int(raw.get("status")),
        logs=tuple(parse_log(log) for log in raw.get("logs", [])),
    )


def parse_trace(raw: Dict[str, Any]) -> Trace:
    action = raw["action"]
    result = raw.get("result")
    kind = raw["type"]

    match kind:
        case "call":
            parsed_action = CallAction(
                from_address=parse_bytes(action["from"]),
                to_address=parse_bytes(action["to"]),
                value=parse_int(action["value"]),
                gas=parse_int(action["gas"]),
                input=parse_bytes(action.get("input", "0x")),
                call_type=action.get("callType", "call"),
            )
            parsed_result = (
                None
                if result is None
                else CallResult(
                    gas_used=parse_int(result["gasUsed"]),
                    output=parse_bytes(result.get("output", "0x")),
                )
            )
        case "create":
            parsed_action = CreateAction(
                from_address=parse_bytes(action["from"]),
                value=parse_int(action["value"]),
                gas=parse_int(action["gas"]),
                init=parse_bytes(action.get("init", "0x")),
            )
            parsed_result = (
                None
                if result is None
                else CreateResult(
                    address=parse_bytes(result["address"]),
                    gas_used=parse_int(result["gasUsed"]),
                    code=parse_bytes(result.get("code", "0x")),
                )
            )
        case "suicide":
            parsed_action = SuicideAction(
                address=parse_bytes(action["address"]),
                refund_address=parse_bytes(action["refundAddress"]),
                balance=parse_int(action["balance"]),
            )
            parsed_result = None
        case "reward":
            parsed_action = RewardAction(
                author=parse_bytes(action["author"]),
                value=parse_int(action["value"]),
                reward_type=action.get("rewardType", "block"),
            )
            parsed_result = None
        case _:
            raise FetchError(f"unknown trace type: {kind}")

    return Trace(
        action=parsed_action,
        block_number=raw["blockNumber"],
        result=parsed_result,
        trace_address=tuple(raw.get("traceAddress", [])),
        subtraces=raw.get("subtraces", 0),
        transaction_position=raw.get("transactionPosition"),
        transaction_hash=parse_bytes(raw.get("transactionHash")),
        block_hash=parse_bytes(raw.get("blockHash")),
        error=raw.get("error"),
    )


def parse_diff(raw: Any, parse_value) -> Diff:
    if raw == "=":
        return Same()
    if "+" in raw:
        return Born(parse_value(raw["+"]))
    if "-" in raw:
        return Died(parse_value(raw["-"]))
    if "*" in raw:
        return Changed(parse_value(raw["*"]["from"]), parse_value(raw["*"]["to"]))
    raise FetchError(f"unknown state diff: {raw}")


def parse_block_trace(
    raw: Dict[str, Any], transaction_hash: Optional[bytes] = None
) -> BlockTrace:
    state_diff = None
    if raw.get("stateDiff") is not None:
        state_diff = {
            parse_bytes(address): AccountDiff(
                balance=parse_diff(diff.get("balance", "="), parse_int),
                code=parse_diff(diff.get("code", "="), parse_bytes),
            )
            for address, diff in raw["stateDiff"].items()
        }

    if transaction_hash is None:
        transaction_hash = parse_bytes(raw.get("transactionHash"))

    return BlockTrace(
        transaction_hash=transaction_hash,
        state_diff=state_diff,
        output=parse_bytes(raw.get("output") or "0x"),
    )


class RpcFetcher(Fetcher):
    """Fetcher over a node's JSON-RPC endpoint (needs the trace_ namespace)"""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        max_concurrent_requests: int = 16,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=max_concurrent_requests),
        )
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)
        self._ids = itertools.count(1)

    async def request(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        logger.debug(f"rpc request: {method} {params}")

        async with self._semaphore:
            try:
                response = await self.client.post(self.url, json=payload)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise FetchError(f"{method} request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise FetchError(f"{method} returned invalid json: {e}") from e

        if body.get("error") is not None:
            error = body["error"]
            raise RpcError(method, error.get("code"), error.get("message", ""), error.get("data"))

        return body.get("result")

    async def get_block(self, block_number: int) -> Optional[Block]:
        raw = await self.request("eth_getBlockByNumber", [quantity(block_number), False])
        return None if raw is None else parse_block(raw)

    async def get_block_by_hash(self, block_hash: bytes) -> Optional[Block]:
        raw = await self.request("eth_getBlockByHash", [to_hex(block_hash), False])
        return None if raw is None else parse_block(raw)

    async def get_transaction(self, transaction_hash: bytes) -> Optional[Transaction]:
        raw = await self.request("eth_getTransactionByHash", [to_hex(transaction_hash)])
        return None if raw is None else parse_transaction(raw)

    async def get_transaction_receipt(
        self, transaction_hash: bytes
    ) -> Optional[Receipt]:
        raw = await self.request("eth_getTransactionReceipt", [to_hex(transaction_hash)])
        return None if raw is None else parse_receipt(raw)

    async def get_transaction_logs(self, transaction_hash: bytes) -> List[Log]:
        receipt = await self.get_transaction_receipt(transaction_hash)
        if receipt is None:
            raise NotFoundError("transaction receipt not found")
        return list(receipt.logs)

    async def get_logs(self, log_filter: LogFilter) -> List[Log]:
        params: Dict[str, Any] = {}
        if log_filter.from_block is not None:
            params["fromBlock"] = quantity(log_filter.from_block)
        if log_filter.to_block is not None:
            params["toBlock"] = quantity(log_filter.to_block)
        if log_filter.address is not None:
            params["address"] = to_hex(log_filter.address)

        topics = [None if t is None else to_hex(t) for t in log_filter.topics]
        while topics and topics[-1] is None:
            topics.pop()
        if topics:
            params["topics"] = topics

        raw = await self.request("eth_getLogs", [params])
        return [parse_log(log) for log in raw or []]

    async def trace_block(self, block_number: int) -> List[Trace]:
        raw = await self.request("trace_block", [quantity(block_number)])
        if raw is None:
            raise NotFoundError("block not found")
        return [parse_trace(trace) for trace in raw]

    async def trace_transaction(self, transaction_hash: bytes) -> List[Trace]:
        raw = await self.request("trace_transaction", [to_hex(transaction_hash)])
        if raw is None:
            raise NotFoundError("transaction not found")
        return [parse_trace(trace) for trace in raw]

    async def trace_block_state_diffs(self, block_number: int) -> StateDiffs:
        raw = await self.request(
            "trace_replayBlockTransactions", [quantity(block_number), ["stateDiff"]]
        )
        if raw is None:
            raise NotFoundError("block not found")
        traces = [parse_block_trace(trace) for trace in raw]
        return StateDiffs(block_number, None, traces)

    async def trace_transaction_state_diffs(
        self, transaction_hash: bytes
    ) -> StateDiffs:
        raw = await self.request(
            "trace_replayTransaction", [to_hex(transaction_hash), ["stateDiff"]]
        )
        if raw is None:
            raise NotFoundError("transaction not found")
        traces = [parse_block_trace(raw, transaction_hash)]
        return StateDiffs(None, transaction_hash, traces)

    async def call(self, address: bytes, call_data: bytes, block_number: int) -> bytes:
        raw = await self.request(
            "eth_call",
            [{"to": to_hex(address), "data": to_hex(call_data)}, quantity(block_number)],
        )
        return parse_bytes(raw) or b""

    async def aclose(self) -> None:
        await self.client.aclose()


__all__ = ["RpcFetcher"]

from typing import Dict

from ..collect import Collector
from ..config import Datatype
from . import (
    balance_diffs,
    blocks,
    code_diffs,
    contracts,
    erc20_metadata,
    erc721_transfers,
    logs,
    native_transfers,
    traces,
)

COLLECTORS: Dict[Datatype, Collector] = {
    module.COLLECTOR.datatype: module.COLLECTOR
    for module in (
        blocks,
        logs,
        traces,
        code_diffs,
        balance_diffs,
        contracts,
        erc20_metadata,
        erc721_transfers,
        native_transfers,
    )
}


def get_collector(datatype: Datatype) -> Collector:
    return COLLECTORS[datatype]


__all__ = [
    "COLLECTORS",
    "get_collector",
    "balance_diffs",
    "blocks",
    "code_diffs",
    "contracts",
    "erc20_metadata",
    "erc721_transfers",
    "logs",
    "native_transfers",
    "traces",
]

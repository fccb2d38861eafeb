import logging
from typing import Dict, Sequence

import pyarrow as pa
from cherry_core import (
    evm_decode_events,
    evm_event_signature_to_arrow_schema,
    evm_signature_to_topic0,
)

from .types import Log

logger = logging.getLogger(__name__)


def logs_to_batch(logs: Sequence[Log]) -> pa.RecordBatch:
    topics = [[], [], [], []]
    data = []
    for log in logs:
        for i in range(4):
            topics[i].append(log.topics[i] if i < len(log.topics) else None)
        data.append(log.data)

    arrays = [pa.array(t, type=pa.binary()) for t in topics]
    arrays.append(pa.array(data, type=pa.binary()))

    return pa.RecordBatch.from_arrays(
        arrays, names=["topic0", "topic1", "topic2", "topic3", "data"]
    )


class LogDecoder:
    """Decodes raw logs of one event into named argument columns"""

    def __init__(self, event_signature: str):
        self.event_signature = event_signature
        self.topic0 = bytes.fromhex(
            evm_signature_to_topic0(event_signature).removeprefix("0x")
        )
        self.schema = evm_event_signature_to_arrow_schema(event_signature)

    @property
    def field_names(self) -> list[str]:
        return self.schema.names

    def parse_logs(self, logs: Sequence[Log]) -> Dict[str, pa.Array]:
        if not logs:
            return {}

        decoded = evm_decode_events(self.event_signature, logs_to_batch(logs), True)

        logger.debug(f"decoded {decoded.num_rows} logs with {self.event_signature}")

        return {name: decoded.column(i) for i, name in enumerate(decoded.schema.names)}

    def __repr__(self) -> str:
        return f"LogDecoder({self.event_signature!r})"


__all__ = ["LogDecoder", "logs_to_batch"]

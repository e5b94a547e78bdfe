"""Packages decorated records into Firehose transformation results."""

import base64
import json
import logging
from typing import Iterable, Union

from .schemas import (
    BatchSummary,
    ControlMessage,
    EnrichedFlowLogEntry,
    OutcomeRecord,
    ParseFailure,
    RecordResult,
)

logger = logging.getLogger(__name__)

Packageable = Union[EnrichedFlowLogEntry, ParseFailure, ControlMessage]


def encode_document(entry: EnrichedFlowLogEntry) -> str:
    """Serialize an enriched entry to base64 encoded UTF-8 JSON."""
    document = json.dumps(entry.to_document(), separators=(",", ":"), allow_nan=False)
    return base64.b64encode(document.encode("utf-8")).decode("ascii")


def package(item: Packageable, record_id: str) -> OutcomeRecord:
    """Wrap one pipeline result in an `OutcomeRecord`.

    Failed and control records carry their original payload unchanged.
    """
    if isinstance(item, EnrichedFlowLogEntry):
        return OutcomeRecord(record_id=record_id, result=RecordResult.OK, data=encode_document(item))
    if isinstance(item, ControlMessage):
        return OutcomeRecord(record_id=record_id, result=RecordResult.DROPPED, data=item.data)
    if isinstance(item, ParseFailure):
        return OutcomeRecord(record_id=record_id, result=RecordResult.PROCESSING_FAILED, data=item.data)
    raise TypeError(f"Cannot package {type(item).__name__}")


def summarize(outcomes: Iterable[OutcomeRecord]) -> BatchSummary:
    """Count outcomes by result."""
    summary = BatchSummary()
    for outcome in outcomes:
        if outcome.result is RecordResult.OK:
            summary.ok += 1
        elif outcome.result is RecordResult.DROPPED:
            summary.dropped += 1
        else:
            summary.failed += 1
    return summary

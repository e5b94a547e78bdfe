"""Decoration pipeline for one Firehose batch.

    raw batch --+-- build ENI directory (worker thread) ------------+
                |                                                  +-- enrich -- package
                +-- parse records -- geolocate source addresses ---+

Directory construction and parsing are independent and overlap; enrichment
waits for both. Every input record yields exactly one `OutcomeRecord`.
"""

import asyncio
import logging
from typing import Iterable, List, Tuple

from .directory import InterfaceDirectory, build_directory
from .enricher import enrich
from .errors import DirectoryError
from .geolocation import GeoResolver
from .packager import package, summarize
from .parser import parse_record
from .schemas import BatchSummary, FlowLogEntry, OutcomeRecord, RawRecord

logger = logging.getLogger(__name__)


class DecorationPipeline:
    """Decorates batches of raw flow log records."""

    def __init__(self, ec2_client, resolver: GeoResolver):
        """Initialize the pipeline.

        Args:
            ec2_client: boto3 EC2 client used to describe network interfaces
            resolver: Geolocation resolver, shared across batches
        """
        self.ec2_client = ec2_client
        self.resolver = resolver

    def _build_directory(self) -> InterfaceDirectory:
        try:
            return build_directory(self.ec2_client)
        except DirectoryError as e:
            logger.error(f"Proceeding without ENI data: {e}")
            return InterfaceDirectory.empty()

    async def decorate(self, records: Iterable[RawRecord]) -> Tuple[List[OutcomeRecord], BatchSummary]:
        """Decorate a batch.

        Args:
            records: Raw Firehose records

        Returns:
            Outcome records in input order and the batch summary

        Raises:
            ValueError: If a record id appears more than once in the batch.
        """
        records = list(records)
        _check_unique_ids(records)
        logger.info(f"Received {len(records)} records for processing")

        directory_task = asyncio.create_task(asyncio.to_thread(self._build_directory))

        parsed = [parse_record(record) for record in records]
        entries = [item for item in parsed if isinstance(item, FlowLogEntry)]

        geo_by_address = await self.resolver.resolve_many(entry.srcaddr for entry in entries)
        directory = await directory_task

        outcomes = []
        for record, item in zip(records, parsed):
            if isinstance(item, FlowLogEntry):
                item = enrich(item, directory, geo_by_address.get(item.srcaddr))
            outcomes.append(package(item, record.record_id))

        summary = summarize(outcomes)
        logger.info(
            f"Processing completed. Successful records {summary.ok}, "
            f"Dropped records {summary.dropped}, Failed records {summary.failed}."
        )
        return outcomes, summary


def _check_unique_ids(records: List[RawRecord]) -> None:
    seen = set()
    for record in records:
        if record.record_id in seen:
            raise ValueError(f"Duplicate record id in batch: {record.record_id}")
        seen.add(record.record_id)

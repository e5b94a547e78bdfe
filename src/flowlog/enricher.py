"""Merges interface directory and geolocation data into flow log entries."""

import logging
from typing import Mapping, Optional

from .schemas import Direction, EnrichedFlowLogEntry, FlowLogEntry, GeoInfo, InterfaceDescriptor

logger = logging.getLogger(__name__)


def traffic_direction(entry: FlowLogEntry, descriptor: InterfaceDescriptor) -> Direction:
    """Traffic addressed to the interface's primary address is inbound."""
    if entry.dstaddr == descriptor.primary_private_address:
        return Direction.INBOUND
    return Direction.OUTBOUND


def enrich(
    entry: FlowLogEntry,
    directory: Mapping[str, InterfaceDescriptor],
    geo: Optional[GeoInfo] = None,
) -> EnrichedFlowLogEntry:
    """Decorate a parsed entry with security groups, direction and location.

    Args:
        entry: Parsed flow log entry
        directory: Interface directory snapshot for the batch
        geo: Geolocation of the source address, None when unavailable

    Returns:
        EnrichedFlowLogEntry; interface fields are left unset on a directory miss
    """
    decorations = {"geo": geo if geo is not None else GeoInfo()}

    descriptor = directory.get(entry.interface_id)
    if descriptor is not None:
        decorations["security_group_ids"] = list(descriptor.security_group_ids)
        decorations["direction"] = traffic_direction(entry, descriptor)
    else:
        logger.info(f"No ENI data found for interface {entry.interface_id}")

    return EnrichedFlowLogEntry(**entry.model_dump(), **decorations)

"""Elastic Network Interface directory.

Builds a per-batch snapshot mapping each ENI in the account to its security
groups and primary private IPv4 address. Per the VPC Flow Logs documentation
only the primary private address is captured: traffic sent to a secondary
private address is logged with the primary address as destination, and both
`srcaddr` and `dstaddr` of the interface are always its private address.

The snapshot is rebuilt for every batch since topology can change at any
time.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import DirectoryError
from .schemas import InterfaceDescriptor

logger = logging.getLogger(__name__)


class InterfaceDirectory(Mapping[str, InterfaceDescriptor]):
    """Read-only mapping of interface id to `InterfaceDescriptor`."""

    def __init__(self, descriptors: Iterable[InterfaceDescriptor] = ()):
        self._by_id: Dict[str, InterfaceDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.interface_id in self._by_id:
                logger.warning(f"Duplicate interface {descriptor.interface_id} in directory, keeping first")
                continue
            self._by_id[descriptor.interface_id] = descriptor

    @classmethod
    def empty(cls) -> "InterfaceDirectory":
        return cls()

    def __getitem__(self, interface_id: str) -> InterfaceDescriptor:
        return self._by_id[interface_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)


def _primary_private_address(interface: Dict[str, Any]) -> Optional[str]:
    """First address flagged primary, else the interface level address."""
    for address in interface.get("PrivateIpAddresses", []):
        if address.get("Primary") and address.get("PrivateIpAddress"):
            return address["PrivateIpAddress"]
    return interface.get("PrivateIpAddress")


def to_descriptor(interface: Dict[str, Any]) -> InterfaceDescriptor:
    """Project a DescribeNetworkInterfaces entry into an `InterfaceDescriptor`."""
    return InterfaceDescriptor(
        interface_id=interface["NetworkInterfaceId"],
        security_group_ids=[g["GroupId"] for g in interface.get("Groups", []) if g.get("GroupId")],
        primary_private_address=_primary_private_address(interface),
    )


def build_directory(ec2_client) -> InterfaceDirectory:
    """Describe the account's network interfaces and build a directory.

    Args:
        ec2_client: boto3 EC2 client

    Returns:
        InterfaceDirectory snapshot

    Raises:
        DirectoryError: If the interfaces could not be described.
    """
    try:
        paginator = ec2_client.get_paginator('describe_network_interfaces')
        interfaces = [
            interface
            for page in paginator.paginate()
            for interface in page.get('NetworkInterfaces', [])
        ]
    except (ClientError, BotoCoreError) as e:
        raise DirectoryError(f"Unable to describe network interfaces: {e}") from e

    directory = InterfaceDirectory(to_descriptor(interface) for interface in interfaces)
    logger.info(f"Built ENI directory with {len(directory)} interfaces")
    return directory

"""VPC Flow Log line parsing.

Firehose hands the decorator base64 encoded records, each holding one flow
log line as written by the ingestor. Lines are matched against the default
(version 2) flow log format. Malformed input is an expected outcome and is
returned as a `ParseFailure` value instead of being raised.
"""

import base64
import binascii
import logging
import re
from typing import Union

from pydantic import ValidationError

from .schemas import ControlMessage, FlowLogEntry, ParseFailure, RawRecord

logger = logging.getLogger(__name__)

_IPV4 = r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}"

FLOW_LOG_PATTERN = re.compile(
    r"^(?P<version>\d+) "
    r"(?P<account_id>\d+) "
    r"(?P<interface_id>eni-[A-Za-z0-9]+) "
    rf"(?P<srcaddr>{_IPV4}) "
    rf"(?P<dstaddr>{_IPV4}) "
    r"(?P<srcport>\d+) "
    r"(?P<dstport>\d+) "
    r"(?P<protocol>\d+) "
    r"(?P<packets>\d+) "
    r"(?P<bytes>\d+) "
    r"(?P<start>\d+) "
    r"(?P<end>\d+) "
    r"(?P<action>ACCEPT|REJECT) "
    r"(?P<log_status>OK|NODATA|SKIPDATA)$",
    re.ASCII,
)

CONTROL_MESSAGE_PREFIX = "CWL CONTROL MESSAGE"

ParseResult = Union[FlowLogEntry, ParseFailure, ControlMessage]


def decode_payload(data: str) -> str:
    """Decode a base64 transport payload into a single text line.

    Raises:
        ValueError: If the payload is not valid base64 or not UTF-8 text.
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"payload is not valid base64: {e}") from e
    return raw.decode("utf-8").rstrip("\r\n")


def parse_line(line: str) -> FlowLogEntry:
    """Parse a flow log line into a `FlowLogEntry`.

    Raises:
        ValueError: If the line does not match the flow log grammar.
        ValidationError: If a matched field holds an invalid value.
    """
    match = FLOW_LOG_PATTERN.match(line)
    if match is None:
        raise ValueError("line does not match the flow log format")

    fields = match.groupdict()
    return FlowLogEntry(
        version=int(fields["version"]),
        account_id=int(fields["account_id"]),
        interface_id=fields["interface_id"],
        srcaddr=fields["srcaddr"],
        dstaddr=fields["dstaddr"],
        srcport=int(fields["srcport"]),
        dstport=int(fields["dstport"]),
        protocol=int(fields["protocol"]),
        packets=int(fields["packets"]),
        bytes=int(fields["bytes"]),
        start=int(fields["start"]),
        end=int(fields["end"]),
        action=fields["action"],
        log_status=fields["log_status"],
    )


def parse_record(record: RawRecord) -> ParseResult:
    """Parse one Firehose record.

    Returns a `FlowLogEntry` on success, a `ControlMessage` for CloudWatch
    Logs control payloads, and a `ParseFailure` carrying the original
    payload for anything else.
    """
    try:
        line = decode_payload(record.data)
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        logger.debug(f"Record {record.record_id} could not be decoded: {e}")
        return ParseFailure(record_id=record.record_id, data=record.data, reason=str(e))

    if line.startswith(CONTROL_MESSAGE_PREFIX):
        return ControlMessage(record_id=record.record_id, data=record.data)

    try:
        return parse_line(line)
    except (ValueError, ValidationError) as e:
        logger.debug(f"Record {record.record_id} is not a flow log line: {e}")
        return ParseFailure(record_id=record.record_id, data=record.data, reason=str(e))

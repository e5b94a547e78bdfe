"""Record schemas for VPC Flow Log decoration.

This module defines Pydantic models for the records that move through the
decoration pipeline: raw Firehose records, parsed flow log entries, the
interface directory, geolocation data and the per-record outcomes returned
to Firehose. Field aliases carry the wire names used by Firehose and by the
enriched documents written to the search cluster.
"""

import ipaddress
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FlowAction(str, Enum):
    """Action recorded for the traffic."""
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


class LogStatus(str, Enum):
    """Logging status of the flow log record."""
    OK = "OK"
    NODATA = "NODATA"
    SKIPDATA = "SKIPDATA"


class Direction(str, Enum):
    """Traffic direction relative to the network interface."""
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class RecordResult(str, Enum):
    """Per-record result values understood by Kinesis Firehose."""
    OK = "Ok"
    DROPPED = "Dropped"
    PROCESSING_FAILED = "ProcessingFailed"


class RawRecord(BaseModel):
    """Firehose transformation input record."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    record_id: str = Field(..., alias="recordId", description="Firehose correlation id")
    data: str = Field(..., description="Base64 encoded flow log line")


class InterfaceDescriptor(BaseModel):
    """Security metadata for one Elastic Network Interface."""
    model_config = ConfigDict(frozen=True)

    interface_id: str
    security_group_ids: List[str] = Field(default_factory=list)
    primary_private_address: Optional[str] = None


class FlowLogEntry(BaseModel):
    """VPC Flow Log record parsed from a single log line."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="@timestamp",
        description="Processing time, not log time",
    )
    version: int = Field(..., ge=0)
    account_id: int = Field(..., ge=0, alias="account-id")
    interface_id: str = Field(..., alias="interface-id")
    srcaddr: str
    dstaddr: str = Field(..., alias="destaddr")
    srcport: int = Field(..., ge=0)
    dstport: int = Field(..., ge=0)
    protocol: int = Field(..., ge=0)
    packets: int = Field(..., ge=0)
    bytes: int = Field(..., ge=0)
    start: int = Field(..., ge=0, description="Capture window start, epoch seconds")
    end: int = Field(..., ge=0, description="Capture window end, epoch seconds")
    action: FlowAction
    log_status: LogStatus = Field(..., alias="log-status")

    @field_validator('srcaddr', 'dstaddr')
    @classmethod
    def validate_ipv4(cls, v: str) -> str:
        """Reject dotted quads with octets out of range."""
        ipaddress.IPv4Address(v)
        return v


class GeoLocation(BaseModel):
    """Coordinates in the shape expected by a geo_point mapping."""
    lat: float = 0.0
    lon: float = 0.0


class GeoInfo(BaseModel):
    """Coarse geolocation of a source address."""
    country_code: str = ""
    country_name: str = ""
    region_code: str = ""
    region_name: str = ""
    city: str = ""
    location: GeoLocation = Field(default_factory=GeoLocation)

    def to_document(self) -> Dict[str, Any]:
        """Flatten into the `source-*` document fields."""
        return {
            "source-country-code": self.country_code,
            "source-country-name": self.country_name,
            "source-region-code": self.region_code,
            "source-region-name": self.region_name,
            "source-city": self.city,
            "source-location": self.location.model_dump(),
        }


class EnrichedFlowLogEntry(FlowLogEntry):
    """Flow log entry decorated with interface and geolocation data."""
    security_group_ids: Optional[List[str]] = Field(default=None, alias="security-group-ids")
    direction: Optional[Direction] = None
    geo: GeoInfo = Field(default_factory=GeoInfo)

    def to_document(self) -> Dict[str, Any]:
        """Render the JSON document delivered to the search cluster."""
        document = self.model_dump(by_alias=True, mode="json", exclude_none=True, exclude={"geo"})
        document.update(self.geo.to_document())
        return document


class ParseFailure(BaseModel):
    """A record whose payload could not be parsed as a flow log line."""
    model_config = ConfigDict(frozen=True)

    record_id: str
    data: str = Field(..., description="Original payload, unchanged")
    reason: str = ""


class ControlMessage(BaseModel):
    """A CloudWatch Logs control payload carrying no flow data."""
    model_config = ConfigDict(frozen=True)

    record_id: str
    data: str


class OutcomeRecord(BaseModel):
    """Firehose transformation output record."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    record_id: str = Field(..., alias="recordId")
    result: RecordResult
    data: str

    def to_firehose(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True, mode="json")


class BatchSummary(BaseModel):
    """Outcome counts for one decorated batch."""
    ok: int = Field(default=0, ge=0)
    dropped: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.ok + self.dropped + self.failed

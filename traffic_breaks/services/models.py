"""
Data models for Alibaba Cloud responses and control decisions.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import math
from typing import Any, Dict, List, Optional

from ..core.config import InstanceConfig
from ..core.exceptions import ResponseParseError, TrafficBreaksError


BYTES_PER_GB = 1024 ** 3

ACTION_START = 'start'
ACTION_STOP = 'stop'
ACTION_NONE = 'none'


class InstanceStatus(str, Enum):
    """ECS instance lifecycle status."""
    RUNNING = 'Running'
    STARTING = 'Starting'
    STOPPED = 'Stopped'
    STOPPING = 'Stopping'
    PENDING = 'Pending'
    UNKNOWN = 'Unknown'

    @classmethod
    def from_provider(cls, value: str) -> 'InstanceStatus':
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


def _traffic_bytes(value: Any) -> float:
    """Byte counter of a traffic record; anything non-numeric counts as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return value


@dataclass
class TrafficDetail:
    """Internet traffic of one region in the current CDT billing cycle."""
    region: Optional[str]      # BusinessRegionId, None when absent
    traffic_bytes: float


@dataclass
class TrafficListResult:
    """Parsed ListCdtInternetTraffic response."""
    request_id: Optional[str]
    details: List[TrafficDetail]

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'TrafficListResult':
        raw_details = data.get('TrafficDetails')
        if raw_details is None:
            raw_details = []
        if not isinstance(raw_details, list):
            raise ResponseParseError(
                f"TrafficDetails must be a list, got {type(raw_details).__name__}"
            )

        details = []
        for record in raw_details:
            if not isinstance(record, dict):
                raise ResponseParseError(
                    f"Traffic record must be an object, got {type(record).__name__}"
                )
            region = record.get('BusinessRegionId')
            if not isinstance(region, str) or not region:
                region = None
            details.append(TrafficDetail(region=region, traffic_bytes=_traffic_bytes(record.get('Traffic'))))

        return cls(request_id=data.get('RequestId'), details=details)

    def by_region_gb(self) -> Dict[str, float]:
        """Sum bytes per region, then convert to GB. Regionless records are left out."""
        totals: Dict[str, float] = {}
        for detail in self.details:
            if detail.region is None:
                continue
            totals[detail.region] = totals.get(detail.region, 0) + detail.traffic_bytes
        return {region: total / BYTES_PER_GB for region, total in totals.items()}

    def total_gb(self) -> float:
        """Account-wide traffic in GB, including records without a region id."""
        return sum(detail.traffic_bytes for detail in self.details) / BYTES_PER_GB


@dataclass
class InstanceDescription:
    instance_id: str
    status: InstanceStatus
    raw_status: str            # Provider string, kept for statuses we do not model
    instance_name: Optional[str] = None
    region_id: Optional[str] = None


@dataclass
class DescribeInstancesResult:
    """Parsed DescribeInstances response."""
    request_id: Optional[str]
    instances: List[InstanceDescription]

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'DescribeInstancesResult':
        container = data.get('Instances')
        if not isinstance(container, dict):
            raise ResponseParseError("DescribeInstances response is missing the Instances object")

        raw_instances = container.get('Instance')
        if raw_instances is None:
            raw_instances = []
        if not isinstance(raw_instances, list):
            raise ResponseParseError(
                f"Instances.Instance must be a list, got {type(raw_instances).__name__}"
            )

        instances = []
        for raw in raw_instances:
            if not isinstance(raw, dict):
                raise ResponseParseError("Instance entry must be an object")
            instance_id = raw.get('InstanceId')
            status = raw.get('Status')
            if not isinstance(instance_id, str) or not isinstance(status, str):
                raise ResponseParseError("Instance entry is missing InstanceId or Status")
            instances.append(InstanceDescription(
                instance_id=instance_id,
                status=InstanceStatus.from_provider(status),
                raw_status=status,
                instance_name=raw.get('InstanceName'),
                region_id=raw.get('RegionId'),
            ))

        return cls(request_id=data.get('RequestId'), instances=instances)


@dataclass
class ActionAck:
    """Acknowledgement of a StartInstances/StopInstances call."""
    request_id: str

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'ActionAck':
        request_id = data.get('RequestId')
        if not isinstance(request_id, str) or not request_id:
            raise ResponseParseError("Action response is missing RequestId")
        return cls(request_id=request_id)


@dataclass
class OperationResult:
    """Outcome of evaluating one configured instance in a run."""
    success: bool
    instance: InstanceConfig
    region_traffic_gb: float
    desired_state: InstanceStatus
    action: str                # 'start', 'stop' or 'none'
    message: str
    timestamp: datetime
    current_state: Optional[InstanceStatus] = None
    duration: Optional[float] = None
    error: Optional[Exception] = None


@dataclass
class RunReport:
    """Everything one scheduled run observed and did."""
    started_at: datetime
    traffic_by_region: Dict[str, float] = field(default_factory=dict)
    results: List[OperationResult] = field(default_factory=list)
    skipped_configs: List[str] = field(default_factory=list)
    traffic_error: Optional[TrafficBreaksError] = None
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return self.traffic_error is None and all(r.success for r in self.results)

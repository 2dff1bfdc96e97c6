"""Alibaba Cloud service management package."""

from .base import BaseServiceManager
from .client import SignedRequestClient
from .models import (
    InstanceStatus,
    OperationResult,
    RunReport,
    TrafficListResult,
    DescribeInstancesResult,
    ActionAck,
)
from .traffic import CdtTrafficManager
from .ecs import EcsInstanceManager
from .orchestrator import TrafficOrchestrator
from .operations import ScheduledControl, handle_schedule

__all__ = [
    'BaseServiceManager',
    'SignedRequestClient',
    'InstanceStatus',
    'OperationResult',
    'RunReport',
    'TrafficListResult',
    'DescribeInstancesResult',
    'ActionAck',
    'CdtTrafficManager',
    'EcsInstanceManager',
    'TrafficOrchestrator',
    'ScheduledControl',
    'handle_schedule',
]

"""
ECS service manager for reading and changing instance lifecycle state.
"""
import json
import logging

from .base import BaseServiceManager
from .models import ActionAck, DescribeInstancesResult, InstanceDescription, InstanceStatus
from ..core.exceptions import InstanceNotFoundError


logger = logging.getLogger(__name__)


class EcsInstanceManager(BaseServiceManager):
    """Service manager for ECS instances in one region.

    Start and stop are fire-and-forget: the call returns once the provider
    accepts the request, not once the instance reaches its target state.
    """

    @property
    def service_name(self) -> str:
        return 'ecs'

    @property
    def api_version(self) -> str:
        return '2014-05-26'

    def describe_instance(self, instance_id: str) -> InstanceDescription:
        """Describe a single instance.

        Raises:
            InstanceNotFoundError: If no instance matches in this region
            TransportError: If the call fails
        """
        response = self._request('DescribeInstances', InstanceIds=json.dumps([instance_id]))
        result = DescribeInstancesResult.from_response(response)

        if not result.instances:
            raise InstanceNotFoundError(instance_id, self.region)

        description = result.instances[0]
        if description.status is InstanceStatus.UNKNOWN:
            logger.debug(f"Instance {instance_id} reported unmodelled status {description.raw_status}")
        return description

    def get_status(self, instance_id: str) -> InstanceStatus:
        """Current lifecycle status of ``instance_id``."""
        return self.describe_instance(instance_id).status

    def start(self, instance_id: str) -> ActionAck:
        """Request that ``instance_id`` be started."""
        response = self._request('StartInstances', InstanceIds=json.dumps([instance_id]))
        ack = ActionAck.from_response(response)
        logger.info(f"StartInstances accepted for {instance_id} in {self.region} (request {ack.request_id})")
        return ack

    def stop(self, instance_id: str, force: bool = False) -> ActionAck:
        """Request that ``instance_id`` be stopped.

        Args:
            instance_id: Instance to stop
            force: Power off without a graceful OS shutdown
        """
        response = self._request(
            'StopInstances',
            InstanceIds=json.dumps([instance_id]),
            ForceStop=force,
        )
        ack = ActionAck.from_response(response)
        logger.info(f"StopInstances accepted for {instance_id} in {self.region} (request {ack.request_id})")
        return ack

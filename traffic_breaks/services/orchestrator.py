"""
Decision engine: compares region traffic to per-instance thresholds and
starts or stops ECS instances accordingly.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional
from datetime import datetime
import logging

from .client import SignedRequestClient
from .ecs import EcsInstanceManager
from .models import ACTION_NONE, ACTION_START, ACTION_STOP, InstanceStatus, OperationResult
from ..core.config import InstanceConfig
from ..core.exceptions import TrafficBreaksError


logger = logging.getLogger(__name__)

# States that already satisfy, or are converging toward, each desired state
SATISFYING_STATES = {
    InstanceStatus.RUNNING: frozenset({InstanceStatus.RUNNING, InstanceStatus.STARTING}),
    InstanceStatus.STOPPED: frozenset({InstanceStatus.STOPPED, InstanceStatus.STOPPING}),
}


class TrafficOrchestrator:
    """Evaluates configured instances one by one against their region's traffic.

    Decisions are per instance even though the traffic figure is per region:
    two instances in the same region with different thresholds may end up in
    different states.
    """

    def __init__(self, client: SignedRequestClient, dry_run: bool = False, force_stop: bool = False):
        """Initialize the orchestrator.

        Args:
            client: Signed request client used for every ECS call
            dry_run: Read status and log decisions without starting or stopping
            force_stop: Power instances off instead of a graceful stop
        """
        self.client = client
        self.dry_run = dry_run
        self.force_stop = force_stop

        # One manager per region for the lifetime of this orchestrator
        self._manager_cache: Dict[str, EcsInstanceManager] = {}

    def get_service_manager(self, region: str) -> EcsInstanceManager:
        if region not in self._manager_cache:
            self._manager_cache[region] = EcsInstanceManager(self.client, region)
        return self._manager_cache[region]

    @staticmethod
    def desired_state(traffic_gb: float, threshold_gb: float) -> InstanceStatus:
        """Running while traffic is under the threshold, Stopped at or above it."""
        if traffic_gb < threshold_gb:
            return InstanceStatus.RUNNING
        return InstanceStatus.STOPPED

    @staticmethod
    def is_converging(current: InstanceStatus, desired: InstanceStatus) -> bool:
        return current in SATISFYING_STATES[desired]

    def run(
        self,
        configs: Iterable[InstanceConfig],
        traffic_by_region: Mapping[str, float],
    ) -> List[OperationResult]:
        """Evaluate every configured instance sequentially.

        A region missing from ``traffic_by_region`` counts as zero traffic.
        A failure on one instance is recorded in its result and never stops
        the remaining instances from being evaluated.

        Args:
            configs: Instances to evaluate
            traffic_by_region: Region id -> traffic in GB, read once per run

        Returns:
            One OperationResult per config, in config order
        """
        operation_results = []

        for instance in configs:
            result = self.process_instance(instance, traffic_by_region)
            operation_results.append(result)

        summary = self.get_operation_summary(operation_results)
        if self.dry_run:
            actions = f"{summary['would_start']} would start, {summary['would_stop']} would stop"
        else:
            actions = f"{summary['started']} started, {summary['stopped']} stopped"
        logger.info(
            f"Run complete: {summary['total_operations']} instances, {actions}, "
            f"{summary['unchanged']} unchanged, {summary['failed_operations']} failed"
        )

        return operation_results

    def process_instance(
        self,
        instance: InstanceConfig,
        traffic_by_region: Mapping[str, float],
    ) -> OperationResult:
        """Read one instance's status and start or stop it if needed."""
        start_time = datetime.now()
        traffic_gb = traffic_by_region.get(instance.region, 0.0)
        desired = self.desired_state(traffic_gb, instance.threshold_gb)
        current: Optional[InstanceStatus] = None
        label = f"{instance.instance_id} ({instance.region})"

        try:
            manager = self.get_service_manager(instance.region)
            current = manager.get_status(instance.instance_id)
            logger.info(
                f"ECS instance {label} status: {current.value}; region traffic "
                f"{traffic_gb:.2f} GB, threshold {instance.threshold_gb} GB"
            )

            if self.is_converging(current, desired):
                message = f"Instance {label} is already {current.value}, no action needed"
                logger.info(message)
                return self._create_operation_result(
                    instance, traffic_gb, desired, current, ACTION_NONE, True, message, start_time
                )

            if desired is InstanceStatus.RUNNING:
                action = ACTION_START
                reason = f"Traffic ({traffic_gb:.2f} GB) < Threshold ({instance.threshold_gb} GB)"
            else:
                action = ACTION_STOP
                reason = f"Traffic ({traffic_gb:.2f} GB) >= Threshold ({instance.threshold_gb} GB)"

            if self.dry_run:
                message = f"[DRY RUN] {reason}. Would {action} instance {label}"
                logger.info(message)
            elif action == ACTION_START:
                logger.info(f"{reason}. Starting instance {label}...")
                manager.start(instance.instance_id)
                message = f"Start requested for instance {label}"
            else:
                logger.info(f"{reason}. Stopping instance {label}...")
                manager.stop(instance.instance_id, force=self.force_stop)
                message = f"Stop requested for instance {label}"

            return self._create_operation_result(
                instance, traffic_gb, desired, current, action, True, message, start_time
            )

        except TrafficBreaksError as e:
            message = f"Failed to control instance {label}: {e.message}"
            logger.error(message)
            return self._create_operation_result(
                instance, traffic_gb, desired, current, ACTION_NONE, False, message, start_time, error=e
            )
        except Exception as e:
            message = f"Unexpected error controlling instance {label}: {str(e)}"
            logger.exception(message)
            return self._create_operation_result(
                instance, traffic_gb, desired, current, ACTION_NONE, False, message, start_time, error=e
            )

    def _create_operation_result(
        self,
        instance: InstanceConfig,
        traffic_gb: float,
        desired: InstanceStatus,
        current: Optional[InstanceStatus],
        action: str,
        success: bool,
        message: str,
        start_time: datetime,
        error: Optional[Exception] = None,
    ) -> OperationResult:
        return OperationResult(
            success=success,
            instance=instance,
            region_traffic_gb=traffic_gb,
            desired_state=desired,
            current_state=current,
            action=action,
            message=message,
            timestamp=start_time,
            duration=(datetime.now() - start_time).total_seconds(),
            error=error,
        )

    def get_operation_summary(self, operation_results: List[OperationResult]) -> Dict[str, Any]:
        """Generate a summary of operation results.

        Args:
            operation_results: List of operation results to summarize

        Returns:
            Dictionary containing operation summary
        """
        successful_operations = [r for r in operation_results if r.success]
        failed_operations = [r for r in operation_results if not r.success]
        starts = sum(1 for r in successful_operations if r.action == ACTION_START)
        stops = sum(1 for r in successful_operations if r.action == ACTION_STOP)

        return {
            'total_operations': len(operation_results),
            'successful_operations': len(successful_operations),
            'failed_operations': len(failed_operations),
            # Dry-run decisions are never counted as started or stopped
            'started': 0 if self.dry_run else starts,
            'stopped': 0 if self.dry_run else stops,
            'would_start': starts if self.dry_run else 0,
            'would_stop': stops if self.dry_run else 0,
            'unchanged': sum(1 for r in successful_operations if r.action == ACTION_NONE),
            'dry_run': self.dry_run,
            'total_duration_seconds': sum(r.duration or 0 for r in operation_results),
            'failed_instances': [
                {
                    'instance_id': r.instance.instance_id,
                    'region': r.instance.region,
                    'error_message': r.message,
                }
                for r in failed_operations
            ],
        }

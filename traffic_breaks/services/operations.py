"""
High-level scheduled control run.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from datetime import datetime
import logging

import requests

from .client import SignedRequestClient
from .models import InstanceDescription, RunReport
from .orchestrator import TrafficOrchestrator
from .traffic import CdtTrafficManager
from ..core.config import Config, ConfigManager, InstanceConfig
from ..core.exceptions import ConfigurationError, TrafficBreaksError


logger = logging.getLogger(__name__)


class ScheduledControl:
    """One scheduled (or manually triggered) traffic check and control pass."""

    def __init__(
        self,
        config: Config,
        client: Optional[SignedRequestClient] = None,
        skipped_configs: Optional[List[str]] = None,
    ):
        """Initialize the run.

        Args:
            config: Validated configuration
            client: Optional pre-built client, mainly for tests
            skipped_configs: Instance entries dropped during config parsing,
                            carried into the report
        """
        self.config = config
        self.client = client or SignedRequestClient.from_config(config)
        self.skipped_configs = list(skipped_configs or [])
        self.traffic_manager = CdtTrafficManager(self.client)
        self.orchestrator = TrafficOrchestrator(self.client, dry_run=config.dry_run)

    def execute(self) -> RunReport:
        """Read traffic once, then evaluate every configured instance.

        If traffic cannot be read no instance is touched, since no decision
        can be made; the error is recorded in the report.
        """
        report = RunReport(
            started_at=datetime.now(),
            skipped_configs=self.skipped_configs,
            dry_run=self.config.dry_run,
        )
        logger.info(
            f"Starting traffic check for {len(self.config.instances)} instance(s)"
            + (" [DRY RUN]" if self.config.dry_run else "")
        )

        try:
            report.traffic_by_region = self.traffic_manager.get_traffic_by_region()
        except TrafficBreaksError as e:
            logger.error(f"Failed to read CDT traffic, skipping this run: {e.message}")
            report.traffic_error = e
            return report

        if not report.traffic_by_region:
            logger.info("CDT reported no regional traffic")
        for region, traffic_gb in sorted(report.traffic_by_region.items()):
            logger.info(f"Current traffic in {region}: {traffic_gb:.2f} GB")

        report.results = self.orchestrator.run(self.config.instances, report.traffic_by_region)

        summary = self.orchestrator.get_operation_summary(report.results)
        if summary['failed_operations'] > 0:
            logger.warning(f"{summary['failed_operations']} instance(s) failed:")
            for failed in summary['failed_instances']:
                logger.warning(f"  - {failed['instance_id']} ({failed['region']}): {failed['error_message']}")

        return report

    def collect_status(self) -> Dict[str, Any]:
        """Read traffic and instance descriptions without changing anything.

        Returns:
            ``{'traffic_by_region': {...}, 'total_traffic_gb': float,
            'instances': [(InstanceConfig, InstanceDescription | error), ...]}``

        Raises:
            TrafficBreaksError: If traffic cannot be read
        """
        traffic_result = self.traffic_manager.list_traffic()

        instances: List[Tuple[InstanceConfig, Union[InstanceDescription, TrafficBreaksError]]] = []
        for instance in self.config.instances:
            manager = self.orchestrator.get_service_manager(instance.region)
            try:
                description: Union[InstanceDescription, TrafficBreaksError] = \
                    manager.describe_instance(instance.instance_id)
            except TrafficBreaksError as e:
                logger.error(f"Failed to describe {instance.instance_id} ({instance.region}): {e.message}")
                description = e
            instances.append((instance, description))

        return {
            'traffic_by_region': traffic_result.by_region_gb(),
            'total_traffic_gb': traffic_result.total_gb(),
            'instances': instances,
        }


def handle_schedule(
    env: Mapping[str, str],
    client: Optional[SignedRequestClient] = None,
    session: Optional[requests.Session] = None,
) -> Optional[RunReport]:
    """Load configuration from ``env`` and run one control pass.

    A configuration error aborts the run before any request is made.

    Args:
        env: Environment-style configuration mapping
        client: Optional pre-built client
        session: Optional requests session for the client built here

    Returns:
        RunReport, or None if the configuration was unusable
    """
    config_manager = ConfigManager()
    try:
        config = config_manager.load_from_env(env)
    except ConfigurationError as e:
        logger.error(f"Configuration error, aborting run: {e.message}")
        return None

    if client is not None:
        return ScheduledControl(config, client, config_manager.skipped_entries).execute()

    with SignedRequestClient.from_config(config, session=session) as owned_client:
        return ScheduledControl(config, owned_client, config_manager.skipped_entries).execute()

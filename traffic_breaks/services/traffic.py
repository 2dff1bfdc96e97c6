"""
CDT service manager for reading per-region internet traffic.
"""
from typing import Dict
import logging

from .base import BaseServiceManager
from .client import SignedRequestClient
from .models import TrafficListResult


logger = logging.getLogger(__name__)


class CdtTrafficManager(BaseServiceManager):
    """Reads internet egress traffic from Cloud Data Transfer (CDT).

    CDT has a single global endpoint and reports every region in one call.
    """

    def __init__(self, client: SignedRequestClient):
        super().__init__(client, region=None)

    @property
    def service_name(self) -> str:
        return 'cdt'

    @property
    def api_version(self) -> str:
        return '2021-08-13'

    def list_traffic(self) -> TrafficListResult:
        """Fetch the traffic records of the current billing cycle.

        Raises:
            TransportError: If the call fails
            ResponseParseError: If TrafficDetails is malformed
        """
        return TrafficListResult.from_response(self._request('ListCdtInternetTraffic'))

    def get_traffic_by_region(self) -> Dict[str, float]:
        """Sum traffic per region and convert to GB (1024**3 bytes).

        Records without a region id are left out. Returns an empty mapping
        when the account has no traffic records.
        """
        result = self.list_traffic()
        unattributed = sum(d.traffic_bytes for d in result.details if d.region is None)
        if unattributed:
            logger.debug(f"Ignoring {unattributed} bytes of traffic without a region id")
        return result.by_region_gb()

"""
Base service manager interface for Alibaba Cloud RPC services.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .client import SignedRequestClient


PROVIDER_DOMAIN = 'aliyuncs.com'


class BaseServiceManager(ABC):
    """Abstract base class for Alibaba Cloud service managers."""

    def __init__(self, client: SignedRequestClient, region: Optional[str] = None):
        """Initialize the service manager.

        Args:
            client: Signed request client shared by the run
            region: Region to operate in, or None for a global endpoint
        """
        self.client = client
        self.region = region

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Endpoint prefix (e.g., 'ecs', 'cdt')."""
        pass

    @property
    @abstractmethod
    def api_version(self) -> str:
        """API version sent with every action of this service."""
        pass

    @property
    def domain(self) -> str:
        """Endpoint host: regional when a region is set, global otherwise."""
        if self.region:
            return f"{self.service_name}.{self.region}.{PROVIDER_DOMAIN}"
        return f"{self.service_name}.{PROVIDER_DOMAIN}"

    def _request(self, action: str, **params: Any) -> Dict[str, Any]:
        """Call ``action`` on this service's endpoint.

        Regional managers add ``RegionId`` automatically.

        Raises:
            TransportError: If the call fails
        """
        request_params: Dict[str, Any] = {'Action': action, 'Version': self.api_version}
        if self.region:
            request_params['RegionId'] = self.region
        request_params.update(params)
        return self.client.call(self.domain, request_params)

"""
Signed HTTP client for Alibaba Cloud RPC-style APIs.
"""
from typing import Any, Dict, Mapping, Optional
import logging

import requests

from ..auth.signature import RequestSigner
from ..core.config import Config, DEFAULT_REQUEST_TIMEOUT
from ..core.exceptions import ConfigurationError, ResponseParseError, TransportError


logger = logging.getLogger(__name__)


class SignedRequestClient:
    """Issues signed RPC calls and returns the decoded JSON body.

    No retries are performed; a failed call raises and it is up to the caller
    to decide whether to try again on the next scheduled run.
    """

    def __init__(
        self,
        access_key_id: str,
        access_key_secret: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        method: str = 'POST',
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            access_key_id: AccessKey id
            access_key_secret: AccessKey secret
            timeout: Per-request timeout in seconds
            method: HTTP method used for every call (parameters always travel
                   in the query string)
            session: Optional requests session, mainly for tests

        Raises:
            ConfigurationError: If either credential is empty
        """
        if not access_key_id or not access_key_secret:
            raise ConfigurationError("AccessKey id and secret are required to sign requests")

        self.signer = RequestSigner(access_key_id, access_key_secret, method=method)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.request_count = 0

    @classmethod
    def from_config(cls, config: Config, session: Optional[requests.Session] = None) -> 'SignedRequestClient':
        return cls(
            config.access_key_id,
            config.access_key_secret.get_secret_value(),
            timeout=config.request_timeout,
            session=session,
        )

    def call(self, domain: str, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Sign ``params`` and send them to ``https://{domain}/``.

        Args:
            domain: API endpoint host, e.g. ``ecs.cn-hongkong.aliyuncs.com``
            params: Action parameters including Action and Version

        Returns:
            Decoded JSON object

        Raises:
            TransportError: On network failure or a non-2xx response
            ResponseParseError: If the body is not a JSON object
        """
        action = params.get('Action', 'unknown action')
        signed = self.signer.sign(params)

        logger.debug(f"{signed.method} {action} -> {domain}")
        self.request_count += 1

        try:
            response = self.session.request(signed.method, signed.url(domain), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{action} request to {domain} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Aliyun API error on {action}: {response.status_code} {response.reason} - {response.text}",
                status=response.status_code,
                reason=response.reason,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ResponseParseError(
                f"{action} returned a non-JSON body: {e}",
                status=response.status_code,
                reason=response.reason,
                body=response.text,
            ) from e

        if not isinstance(data, dict):
            raise ResponseParseError(
                f"{action} returned {type(data).__name__} instead of a JSON object",
                status=response.status_code,
                reason=response.reason,
                body=response.text,
            )

        return data

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'SignedRequestClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

"""Alibaba Cloud RPC request signing (HMAC-SHA1, signature version 1.0).

The canonical query string built here is used twice: as the input of the
signature and, with the signature appended, as the literal query string of the
request. Both must be byte-identical to what the provider reconstructs, so
every parameter goes through the same percent-encoding and sort.
"""

import base64
import hashlib
import hmac
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote


SIGNATURE_METHOD = 'HMAC-SHA1'
SIGNATURE_VERSION = '1.0'
RESPONSE_FORMAT = 'JSON'
TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


def percent_encode(value: str) -> str:
    """Percent-encode per RFC 3986 as the provider expects.

    Only unreserved characters (letters, digits, ``-_.~``) stay literal, so
    ``!'()*`` become ``%21 %27 %28 %29 %2A``, space becomes ``%20`` and ``~``
    is never encoded.
    """
    return quote(value, safe='~')


def stringify(value: Any) -> str:
    """Render a parameter value the way the API expects it on the wire."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def canonicalize(params: Mapping[str, str]) -> str:
    """Build the canonical query string.

    Keys are sorted on their raw UTF-8 bytes, independent of locale and of the
    insertion order of ``params``.
    """
    return '&'.join(
        f"{percent_encode(key)}={percent_encode(params[key])}"
        for key in sorted(params, key=lambda k: k.encode('utf-8'))
    )


def build_string_to_sign(method: str, canonical_query: str) -> str:
    return '&'.join([method.upper(), percent_encode('/'), percent_encode(canonical_query)])


def compute_signature(string_to_sign: str, access_key_secret: str) -> str:
    """base64(HMAC-SHA1(secret + "&", string_to_sign))."""
    key = f"{access_key_secret}&".encode('utf-8')
    digest = hmac.new(key, string_to_sign.encode('utf-8'), hashlib.sha1).digest()
    return base64.b64encode(digest).decode('ascii')


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC ISO-8601 timestamp with second precision, e.g. 2024-01-05T14:30:22Z."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class SignedRequest:
    """A single-use signed parameter set. Never reuse: the nonce is one-shot."""
    method: str
    params: Dict[str, str]         # Includes the Signature parameter
    string_to_sign: str
    signature: str

    @property
    def query_string(self) -> str:
        return canonicalize(self.params)

    def url(self, domain: str) -> str:
        return f"https://{domain}/?{self.query_string}"


class RequestSigner:
    """Signs RPC-style API parameters with an AccessKey pair."""

    def __init__(self, access_key_id: str, access_key_secret: str, method: str = 'POST'):
        self.access_key_id = access_key_id
        self._access_key_secret = access_key_secret
        self.method = method.upper()

    def sign(
        self,
        params: Mapping[str, Any],
        nonce: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> SignedRequest:
        """Merge authentication parameters into ``params`` and sign them.

        Args:
            params: Action parameters (Action, Version, RegionId, ...)
            nonce: Fixed nonce, for reproducing a known signature. A fresh
                  UUID4 is generated when omitted.
            timestamp: Fixed request time. Defaults to now.

        Returns:
            SignedRequest carrying the final parameters
        """
        final_params = {key: stringify(value) for key, value in params.items() if key != 'Signature'}
        final_params.update({
            'AccessKeyId': self.access_key_id,
            'Format': RESPONSE_FORMAT,
            'SignatureMethod': SIGNATURE_METHOD,
            'SignatureVersion': SIGNATURE_VERSION,
            'SignatureNonce': nonce or str(uuid.uuid4()),
            'Timestamp': format_timestamp(timestamp),
        })

        string_to_sign = build_string_to_sign(self.method, canonicalize(final_params))
        signature = compute_signature(string_to_sign, self._access_key_secret)
        final_params['Signature'] = signature

        return SignedRequest(
            method=self.method,
            params=final_params,
            string_to_sign=string_to_sign,
            signature=signature,
        )

"""
OAuthSigner module for OAuth 1.0a HMAC-SHA1 request signing
"""

import base64
import hashlib
import hmac
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Any, Optional, Mapping
from urllib.parse import quote, urlsplit

from .exceptions import ConfigurationError


OAUTH_VERSION = "1.0"
OAUTH_SIGNATURE_METHOD = "HMAC-SHA1"

DEFAULT_PORTS = {'http': 80, 'https': 443}


def percent_encode(value: str) -> str:
    """RFC 3986 encoding: everything except unreserved characters is escaped"""
    return quote(str(value), safe='')


@dataclass
class OAuthCredentials:
    """Consumer and access token pair for signed requests"""
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    token_key: Optional[str] = None
    token_secret: Optional[str] = None
    agent: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'OAuthCredentials':
        """
        Build credentials from a serialized OAuth blob as stored by tool frameworks

        Args:
            data: Dictionary with gConsumerKey/gConsumerSecret/gTokenKey/gTokenSecret
                  and optionally gUserAgent or params.agent

        Returns:
            OAuthCredentials with missing fields left as None
        """
        params = data.get('params') or {}
        return cls(
            consumer_key=data.get('gConsumerKey'),
            consumer_secret=data.get('gConsumerSecret'),
            token_key=data.get('gTokenKey'),
            token_secret=data.get('gTokenSecret'),
            agent=data.get('gUserAgent') or params.get('agent'),
        )


class OAuthSigner:
    """Computes OAuth 1.0a Authorization headers for individual requests"""

    def __init__(self, credentials: OAuthCredentials):
        self.credentials = credentials

    @staticmethod
    def base_url(url: str) -> str:
        """
        Reduce a URL to scheme://host[:port]/path as required for the base string

        Raises:
            ConfigurationError: If the URL has no host
        """
        parts = urlsplit(url)
        if not parts.hostname:
            raise ConfigurationError(f"Cannot sign request, URL has no host: {url}")

        base = f"{parts.scheme}://{parts.hostname}"
        if parts.port is not None and parts.port != DEFAULT_PORTS.get(parts.scheme):
            base += f":{parts.port}"
        return base + (parts.path or '/')

    def signing_key(self) -> str:
        """
        Raises:
            ConfigurationError: If either secret is missing
        """
        consumer_secret = self.credentials.consumer_secret
        token_secret = self.credentials.token_secret
        if not consumer_secret or not token_secret:
            raise ConfigurationError("consumer_secret or token_secret not set")
        return percent_encode(consumer_secret) + '&' + percent_encode(token_secret)

    def base_string(self, method: str, url: str, params: Mapping[str, str]) -> str:
        """
        Build the canonical signature base string

        Args:
            method: HTTP method
            url: Target URL; any query string is discarded
            params: Every request parameter plus the oauth_* fields

        Returns:
            enc(method) & enc(base_url) & enc(sorted, encoded key=value pairs)
        """
        encoded = sorted(
            (percent_encode(key), percent_encode(value)) for key, value in params.items()
        )
        joined = '&'.join(f"{key}={value}" for key, value in encoded)

        return '&'.join([
            percent_encode(method),
            percent_encode(self.base_url(url)),
            percent_encode(joined),
        ])

    def sign(self, method: str, url: str, params: Mapping[str, str]) -> str:
        """
        Compute the base64 HMAC-SHA1 signature for a request

        Args:
            method: HTTP method
            url: Target URL
            params: All request parameters, including the oauth_* fields

        Returns:
            Base64-encoded signature

        Raises:
            ConfigurationError: If either secret is missing
        """
        key = self.signing_key()
        message = self.base_string(method, url, params)
        digest = hmac.new(key.encode('utf-8'), message.encode('utf-8'), hashlib.sha1).digest()
        return base64.b64encode(digest).decode('ascii')

    def oauth_fields(self, nonce: Optional[str] = None,
                     timestamp: Optional[str] = None) -> Dict[str, str]:
        """Protocol fields for one request; nonce and timestamp are single-use"""
        return {
            'oauth_consumer_key': self.credentials.consumer_key or '',
            'oauth_token': self.credentials.token_key or '',
            'oauth_version': OAUTH_VERSION,
            'oauth_nonce': nonce or uuid.uuid4().hex,
            'oauth_timestamp': timestamp or str(int(time.time())),
            'oauth_signature_method': OAUTH_SIGNATURE_METHOD,
        }

    def build_auth_header(self, method: str, url: str, params: Mapping[str, str],
                          nonce: Optional[str] = None,
                          timestamp: Optional[str] = None) -> str:
        """
        Build the Authorization header value for a single request

        Args:
            method: HTTP method
            url: Target URL
            params: Query or form parameters that will be sent
            nonce: Override for the random nonce (tests only)
            timestamp: Override for the current Unix time (tests only)

        Returns:
            Header value of the form 'OAuth key="value", ...'

        Raises:
            ConfigurationError: If either secret is missing
        """
        fields = self.oauth_fields(nonce, timestamp)

        to_sign = dict(params)
        to_sign.update(fields)
        fields['oauth_signature'] = self.sign(method, url, to_sign)

        parts = [
            f'{percent_encode(key)}="{percent_encode(value)}"'
            for key, value in fields.items()
        ]
        return "OAuth " + ", ".join(parts)

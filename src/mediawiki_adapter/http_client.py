"""
HTTPClient module: the only component that talks to the network
"""

import logging
import requests
import requests_cache
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from .exceptions import ConfigurationError, TransportError


logger = logging.getLogger(__name__)


@dataclass
class APIRequest:
    """Represents a single HTTP request"""
    url: str
    parameters: Dict[str, str]
    headers: Dict[str, str] = field(default_factory=dict)
    method: str = "GET"


@dataclass
class RawResponse:
    """Undecoded result of one HTTP exchange"""
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)
    set_cookies: List[str] = field(default_factory=list)


class HTTPClient:
    """Thin transport over requests.Session supporting GET and POST"""

    SUPPORTED_METHODS = ('GET', 'POST')

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None,
                 cache_config: Optional[Dict[str, Any]] = None):
        self.timeout = timeout
        self.cache_config = cache_config or {}
        self.session: Optional[requests.Session] = session

    def _create_session(self) -> requests.Session:
        """
        Create the underlying session, cached when the development cache is enabled
        """
        if self.cache_config.get('enabled'):
            cache_name = self.cache_config.get('path', '.cache/mediawiki')
            expire_after = self.cache_config.get('expiration', 3600)
            logger.debug(f"Using response cache at {cache_name} (expire_after={expire_after})")
            return requests_cache.CachedSession(
                cache_name,
                expire_after=expire_after,
                allowable_methods=('GET',),
            )
        return requests.Session()

    def get(self, url: str, headers: Dict[str, str], params: Dict[str, str]) -> RawResponse:
        """Send a GET with parameters in the query string"""
        return self.send(APIRequest(url=url, parameters=params, headers=headers, method='GET'))

    def post(self, url: str, headers: Dict[str, str], data: Dict[str, str]) -> RawResponse:
        """Send a POST with form-encoded parameters"""
        return self.send(APIRequest(url=url, parameters=data, headers=headers, method='POST'))

    def send(self, request: APIRequest) -> RawResponse:
        """
        Make a single HTTP request, without any retry

        Args:
            request: APIRequest object containing request details

        Returns:
            RawResponse with status, headers, Set-Cookie values and body text

        Raises:
            ConfigurationError: If the method is not GET or POST
            TransportError: If the request fails at the network level
        """
        method = request.method.upper()
        if method not in self.SUPPORTED_METHODS:
            raise ConfigurationError(f"Unsupported method '{request.method}'")

        if self.session is None:
            self.session = self._create_session()

        logger.debug(f"{method} {request.url}")

        try:
            if method == 'GET':
                response = self.session.get(
                    request.url,
                    params=request.parameters,
                    headers=request.headers,
                    timeout=self.timeout
                )
            else:
                response = self.session.post(
                    request.url,
                    data=request.parameters,
                    headers=request.headers,
                    timeout=self.timeout
                )
            text = response.text
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {request.url} failed: {e}") from e

        return RawResponse(
            status_code=response.status_code,
            text=text,
            headers=dict(response.headers),
            set_cookies=self._set_cookie_values(response)
        )

    @staticmethod
    def _set_cookie_values(response: requests.Response) -> List[str]:
        """
        Collect every Set-Cookie value separately

        requests folds repeated headers into one comma-joined string, which is
        ambiguous for cookies carrying an Expires date, so read the raw
        urllib3 headers when they are available.
        """
        raw_headers = getattr(response.raw, 'headers', None)
        if raw_headers is not None and hasattr(raw_headers, 'getlist'):
            return list(raw_headers.getlist('Set-Cookie'))

        value = response.headers.get('Set-Cookie')
        return [value] if value else []

    def close_connection(self) -> None:
        """
        Close HTTP session and release resources
        """
        if self.session:
            self.session.close()
            self.session = None

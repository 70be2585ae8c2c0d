"""
RetryingExecutor module: runs one logical API call with maxlag backoff
"""

import json
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional, Mapping

from .config_loader import EngineConfig, DEFAULT_MAXLAG_SECONDS
from .exceptions import MalformedResponse, OverloadExceeded, RequestCancelled
from .http_client import HTTPClient, APIRequest, RawResponse
from .oauth_signer import OAuthSigner
from .session_store import SessionStore


logger = logging.getLogger(__name__)

ENGINE_NAME = "mediawiki-adapter-python"
ENGINE_VERSION = "0.1.0"

MAXLAG_ERROR_CODE = "maxlag"
MAXLAG_PARAM = "maxlag"
TOKEN_PARAM = "token"
FORMAT_PARAM = "format"


@dataclass
class RetryBudget:
    """Per-call retry state; never shared between logical calls"""
    attempts_left: int
    cumulative_lag: int = 0


class RetryingExecutor:
    """
    Sends API requests through the transport, applying the maxlag protocol

    Every call forces format=json. Edits (POST requests carrying a token)
    additionally get a maxlag parameter of cumulative lag plus the
    configured threshold, and are followed by the configured edit delay.
    When the server answers with error code "maxlag" the call sleeps for
    the reported lag and retries until the attempt budget is spent.
    """

    def __init__(self, http_client: HTTPClient, session_store: SessionStore,
                 config: EngineConfig, signer: Optional[OAuthSigner] = None,
                 cancel_event: Optional[threading.Event] = None):
        self.http_client = http_client
        self.session_store = session_store
        self.config = config
        self.signer = signer
        self.cancel_event = cancel_event

    def user_agent_full(self) -> str:
        return f"{self.config.user_agent}; {ENGINE_NAME}/{ENGINE_VERSION}"

    @staticmethod
    def is_edit_query(params: Mapping[str, str], method: str) -> bool:
        """Edits go through POST and always carry a token"""
        return method.upper() == 'POST' and TOKEN_PARAM in params

    def set_cumulative_maxlag_params(self, params: Dict[str, str], method: str,
                                     cumulative: int) -> None:
        if not self.is_edit_query(params, method):
            return
        if self.config.maxlag_seconds is not None:
            params[MAXLAG_PARAM] = str(cumulative + self.config.maxlag_seconds)

    def check_maxlag(self, envelope: Any) -> Optional[int]:
        """
        Return the lag to wait for if the response is a maxlag error, else None

        A missing or non-numeric lag falls back to the configured threshold.
        """
        if not isinstance(envelope, dict):
            return None
        error = envelope.get('error')
        if not isinstance(error, dict) or error.get('code') != MAXLAG_ERROR_CODE:
            return None

        lag = error.get('lag')
        if isinstance(lag, bool) or not isinstance(lag, (int, float)) or lag < 0:
            if self.config.maxlag_seconds is not None:
                return self.config.maxlag_seconds
            return DEFAULT_MAXLAG_SECONDS
        return int(math.ceil(lag))

    def build_headers(self, url: str, params: Mapping[str, str], method: str) -> Dict[str, str]:
        """
        Headers for one outgoing request; OAuth headers are rebuilt every time
        """
        headers = {
            'Cookie': self.session_store.as_header(),
            'User-Agent': self.user_agent_full(),
        }
        if self.signer is not None:
            headers['Authorization'] = self.signer.build_auth_header(method.upper(), url, params)
        return headers

    def send_raw(self, url: str, params: Dict[str, str], method: str) -> RawResponse:
        """
        Send one request and enact the edit delay if it was an edit

        Raises:
            ConfigurationError: Unsupported method or incomplete OAuth secrets
            TransportError: Network-level failure
        """
        headers = self.build_headers(url, params, method)
        response = self.http_client.send(
            APIRequest(url=url, parameters=dict(params), headers=headers, method=method.upper())
        )
        self.enact_edit_delay(params, method)
        return response

    def enact_edit_delay(self, params: Mapping[str, str], method: str) -> None:
        if not self.is_edit_query(params, method):
            return
        if self.config.edit_delay_ms:
            time.sleep(self.config.edit_delay_ms / 1000.0)

    def execute(self, query: Mapping[str, str], method: str = 'GET',
                url: Optional[str] = None) -> Dict[str, Any]:
        """
        Run a stateless call; cookies are sent but never updated

        Args:
            query: Request parameters; not modified
            method: GET or POST
            url: Endpoint, defaults to the configured API URL

        Returns:
            Parsed JSON response, which may carry a non-maxlag error object

        Raises:
            OverloadExceeded: maxlag reported on every permitted attempt
            MalformedResponse: Response body is not JSON
            TransportError: Network-level failure
            ConfigurationError: Unsupported method or incomplete OAuth secrets
            RequestCancelled: Backoff wait interrupted by the cancel event
        """
        with self.session_store.shared():
            return self._execute(query, method, url, capture_cookies=False)

    def execute_mut(self, query: Mapping[str, str], method: str = 'POST',
                    url: Optional[str] = None) -> Dict[str, Any]:
        """
        Run a call that stores the session cookies set by each response

        Holds the session store exclusively for the whole call, retries included.
        Raises the same errors as execute().
        """
        with self.session_store.exclusive():
            return self._execute(query, method, url, capture_cookies=True)

    def _execute(self, query: Mapping[str, str], method: str, url: Optional[str],
                 capture_cookies: bool) -> Dict[str, Any]:
        target = url or self.config.api_url
        params = dict(query)
        params[FORMAT_PARAM] = 'json'
        budget = RetryBudget(attempts_left=self.config.max_retry_attempts)

        while True:
            self.set_cumulative_maxlag_params(params, method, budget.cumulative_lag)

            response = self.send_raw(target, params, method)
            if capture_cookies:
                self.session_store.capture(response.set_cookies)

            envelope = self.parse_response(response)

            lag = self.check_maxlag(envelope)
            if lag is None:
                return envelope

            if budget.attempts_left == 0:
                raise OverloadExceeded(self.config.max_retry_attempts, budget.cumulative_lag)

            budget.attempts_left -= 1
            budget.cumulative_lag += lag
            logger.warning(
                f"maxlag reported ({lag}s), retrying in {lag}s; "
                f"{budget.attempts_left} attempts left"
            )
            self._wait(lag)

    @staticmethod
    def parse_response(response: RawResponse) -> Any:
        """
        Raises:
            MalformedResponse: If the body is not valid JSON
        """
        try:
            return json.loads(response.text)
        except ValueError as e:
            raise MalformedResponse(
                f"Response is not valid JSON (HTTP {response.status_code}): {e}",
                text=response.text
            ) from e

    def _wait(self, seconds: float) -> None:
        if self.cancel_event is None:
            time.sleep(seconds)
            return
        if self.cancel_event.wait(seconds):
            raise RequestCancelled("Backoff wait cancelled")

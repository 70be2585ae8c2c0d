"""
MediaWiki API adapter package
Request engine with continuation paging, maxlag backoff, cookie sessions and OAuth signing
"""

from .exceptions import (
    MediaWikiAdapterError,
    ConfigurationError,
    EnvironmentError,
    TransportError,
    MalformedResponse,
    OverloadExceeded,
    RequestCancelled,
    BusinessError,
)
from .config_loader import ConfigLoader, EngineConfig
from .http_client import HTTPClient, APIRequest, RawResponse
from .oauth_signer import OAuthCredentials, OAuthSigner, percent_encode
from .session_store import SessionStore
from .retrying_executor import RetryingExecutor, RetryBudget, ENGINE_VERSION
from .json_merge import merge_json, count_query_results
from .pagination_strategy import ContinuationPagination, ContinuationPager
from .api_client import MediaWikiAPI

__version__ = ENGINE_VERSION

__all__ = [
    'MediaWikiAdapterError',
    'ConfigurationError',
    'EnvironmentError',
    'TransportError',
    'MalformedResponse',
    'OverloadExceeded',
    'RequestCancelled',
    'BusinessError',
    'ConfigLoader',
    'EngineConfig',
    'HTTPClient',
    'APIRequest',
    'RawResponse',
    'OAuthCredentials',
    'OAuthSigner',
    'percent_encode',
    'SessionStore',
    'RetryingExecutor',
    'RetryBudget',
    'merge_json',
    'count_query_results',
    'ContinuationPagination',
    'ContinuationPager',
    'MediaWikiAPI',
]

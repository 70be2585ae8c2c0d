"""
MediaWikiAPI module: high-level entry point wiring the request engine together
"""

import dataclasses
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Iterator, Mapping

from .config_loader import ConfigLoader, EngineConfig
from .exceptions import BusinessError
from .http_client import HTTPClient
from .oauth_signer import OAuthCredentials, OAuthSigner
from .pagination_strategy import ContinuationPager
from .retrying_executor import RetryingExecutor
from .session_store import SessionStore


SITEINFO_PROPS = "general|namespaces|namespacealiases|libraries|extensions|statistics"


class MediaWikiAPI:
    """
    Client for a single MediaWiki API endpoint

    Owns the session store, the HTTP transport and the executor/pager
    stack built on them. Cookies persist for the lifetime of the instance.
    """

    def __init__(
        self,
        api_url: str,
        config: Optional[EngineConfig] = None,
        http_client: Optional[HTTPClient] = None,
        oauth: Optional[OAuthCredentials] = None,
        load_site_info: bool = True
    ):
        """
        Initialise the client and, by default, fetch the site info

        Args:
            api_url: URL of api.php
            config: Engine settings; defaults are used when omitted
            http_client: Transport; a requests-backed HTTPClient when omitted
            oauth: Credentials for signed requests, None for cookie sessions
            load_site_info: Fetch siteinfo on construction (also tests the API)
        """
        self.config = dataclasses.replace(config) if config is not None else EngineConfig()
        self.config.api_url = api_url
        self.http_client = http_client or HTTPClient(
            timeout=self.config.request_timeout,
            cache_config=self.config.cache
        )
        self.session_store = SessionStore()
        self.executor = RetryingExecutor(self.http_client, self.session_store, self.config)
        self.pager = ContinuationPager(self.executor)
        self.oauth: Optional[OAuthCredentials] = None
        self.set_oauth(oauth)

        self.logger = logging.getLogger(__name__)
        self.site_info: Dict[str, Any] = {}

        if load_site_info:
            self.load_site_info()

    @classmethod
    def from_config_file(cls, config_path: Path, **kwargs) -> 'MediaWikiAPI':
        """
        Build a client from a TOML configuration file

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the file is invalid
            EnvironmentError: If referenced credential variables are unset
        """
        config = ConfigLoader.load_toml_config(config_path)
        oauth = ConfigLoader.load_oauth_credentials(config)
        return cls(config.api_url, config=config, oauth=oauth, **kwargs)

    @property
    def api_url(self) -> str:
        return self.config.api_url

    def set_oauth(self, oauth: Optional[OAuthCredentials]) -> None:
        self.oauth = oauth
        self.executor.signer = OAuthSigner(oauth) if oauth is not None else None

    def set_user_agent(self, agent: str) -> None:
        self.config.user_agent = agent

    def user_agent_full(self) -> str:
        """User agent string as sent in the User-Agent header"""
        return self.executor.user_agent_full()

    def set_maxlag(self, maxlag_seconds: Optional[int]) -> None:
        self.config.maxlag_seconds = maxlag_seconds

    def set_edit_delay(self, edit_delay_ms: Optional[int]) -> None:
        """Delay after edits, in milliseconds; independent of and additional to maxlag"""
        self.config.edit_delay_ms = edit_delay_ms

    def set_max_retry_attempts(self, max_retry_attempts: int) -> None:
        self.config.max_retry_attempts = max_retry_attempts

    # Site info

    def load_site_info(self) -> Dict[str, Any]:
        """
        Load the raw site info document

        Returns:
            Parsed siteinfo response
        """
        params = {
            'action': 'query',
            'meta': 'siteinfo',
            'siprop': SITEINFO_PROPS,
            'formatversion': '2',
        }
        self.site_info = self.get_query_api_json(params)
        self.logger.info(f"Loaded site info from {self.api_url}")
        return self.site_info

    def get_site_info(self) -> Dict[str, Any]:
        return self.site_info

    def get_site_info_value(self, k1: str, k2: str) -> Any:
        """Value at site_info["query"][k1][k2], or None"""
        section = (self.site_info.get('query') or {}).get(k1)
        if not isinstance(section, dict):
            return None
        return section.get(k2)

    def get_site_info_string(self, k1: str, k2: str) -> str:
        """
        Raises:
            BusinessError: If the value is missing or not a string
        """
        value = self.get_site_info_value(k1, k2)
        if not isinstance(value, str):
            raise BusinessError(f"No 'query.{k1}.{k2}' value in site info")
        return value

    def get_namespace_info(self, namespace_id: int) -> Optional[Dict[str, Any]]:
        return self.get_site_info_value('namespaces', str(namespace_id))

    def get_canonical_namespace_name(self, namespace_id: int) -> Optional[str]:
        info = self.get_namespace_info(namespace_id) or {}
        return info.get('canonical', info.get('name'))

    def get_local_namespace_name(self, namespace_id: int) -> Optional[str]:
        info = self.get_namespace_info(namespace_id) or {}
        return info.get('name', info.get('canonical'))

    # Queries

    def query_api_json(self, params: Mapping[str, str], method: str) -> Dict[str, Any]:
        """Run a query with GET or POST; format=json is enforced"""
        return self.executor.execute(params, method)

    def get_query_api_json(self, params: Mapping[str, str]) -> Dict[str, Any]:
        return self.executor.execute(params, 'GET')

    def post_query_api_json(self, params: Mapping[str, str]) -> Dict[str, Any]:
        return self.executor.execute(params, 'POST')

    def post_query_api_json_mut(self, params: Mapping[str, str]) -> Dict[str, Any]:
        """POST that stores any cookies the server sets"""
        return self.executor.execute_mut(params, 'POST')

    def get_query_api_json_all(self, params: Mapping[str, str]) -> Any:
        """Load every result page via the continue parameter, merged into one result"""
        return self.pager.fetch_all(params)

    def get_query_api_json_limit(self, params: Mapping[str, str], limit: Optional[int]) -> Any:
        """Load result pages until roughly `limit` items have been seen"""
        return self.pager.fetch_limit(params, limit)

    def get_query_api_json_limit_iter(self, params: Mapping[str, str],
                                      limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        return self.pager.iter_pages(params, limit)

    # Session

    def get_token(self, token_type: str = '') -> str:
        """
        Fetch a token such as "login" or "csrf"; an empty type means csrf

        Raises:
            BusinessError: If the response has no such token
        """
        params = {'action': 'query', 'meta': 'tokens'}
        if token_type:
            params['type'] = token_type
        key = f"{token_type}token" if token_type else 'csrftoken'

        response = self.executor.execute_mut(params, 'GET')
        token = ((response.get('query') or {}).get('tokens') or {}).get(key)
        if not isinstance(token, str):
            raise BusinessError(f"Could not get token: {response}", response)
        return token

    def get_edit_token(self) -> str:
        return self.get_token('csrf')

    def login(self, lgname: str, lgpassword: str) -> Dict[str, Any]:
        """
        Log in with a bot password; the session cookies are kept

        Returns:
            The "login" object of the response

        Raises:
            BusinessError: If the result is anything but Success
        """
        lgtoken = self.get_token('login')
        params = {
            'action': 'login',
            'lgname': lgname,
            'lgpassword': lgpassword,
            'lgtoken': lgtoken,
        }
        response = self.post_query_api_json_mut(params)
        login = response.get('login') or {}
        if login.get('result') != 'Success':
            raise BusinessError("Login failed", response)

        self.logger.info(f"Logged in as {login.get('lgusername', lgname)}")
        return login

    # Wikibase

    def sparql_query(self, query: str) -> Dict[str, Any]:
        """
        Run a SPARQL query against the endpoint advertised in the site info

        Raises:
            BusinessError: If the wiki advertises no SPARQL endpoint
        """
        sparql_url = self.get_site_info_string('general', 'wikibase-sparql')
        return self.executor.execute({'query': query}, 'POST', url=sparql_url)

    def extract_entity_from_uri(self, uri: str) -> str:
        """
        Item ID from an entity URI of this wiki

        Raises:
            BusinessError: If the URI does not start with the concept base URI
        """
        concept_base_uri = self.get_site_info_string('general', 'wikibase-conceptbaseuri')
        if not uri.startswith(concept_base_uri):
            raise BusinessError(f"{uri} does not start with {concept_base_uri}")
        return uri[len(concept_base_uri):]

    def entities_from_sparql_result(self, sparql_result: Dict[str, Any],
                                    variable_name: str) -> List[str]:
        entities = []
        bindings = (sparql_result.get('results') or {}).get('bindings') or []
        for binding in bindings:
            value = (binding.get(variable_name) or {}).get('value')
            if isinstance(value, str):
                entities.append(self.extract_entity_from_uri(value))
        return entities

    def close(self) -> None:
        self.http_client.close_connection()

    def __enter__(self) -> 'MediaWikiAPI':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

"""
PaginationStrategy module for following API continuation tokens
"""

import json
import logging
from typing import Dict, Any, Optional, Iterator, Mapping, Protocol, Tuple

from .exceptions import MediaWikiAdapterError
from .json_merge import merge_json, count_query_results
from .retrying_executor import RetryingExecutor


logger = logging.getLogger(__name__)

CONTINUE_KEY = "continue"


class PaginationStrategy(Protocol):
    """Protocol for pagination strategies"""

    def get_next_page_params(self, current_params: Dict[str, str],
                             response: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
        """Return parameters for next page, or None if no more pages"""
        ...

    def extract_page_count(self, response: Dict[str, Any]) -> int:
        """Number of newly observed items in a page"""
        ...


class ContinuationPagination:
    """Continuation-token pagination as used by action=query"""

    def get_next_page_params(self, current_params: Dict[str, str],
                             response: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
        """
        Merge the previous page's continue fields into the original parameters

        Args:
            current_params: The caller's original query
            response: Previous page, or None for the first page

        Returns:
            Parameters for the next request, or None when there is no continuation
        """
        if response is None:
            return dict(current_params)

        continuation = response.get(CONTINUE_KEY)
        if not isinstance(continuation, dict):
            return None

        params = dict(current_params)
        for key, value in continuation.items():
            if key == CONTINUE_KEY:
                continue
            # Continue values are nearly always strings; anything else goes over as JSON
            params[key] = value if isinstance(value, str) else json.dumps(value)
        return params

    def extract_page_count(self, response: Dict[str, Any]) -> int:
        return count_query_results(response)


class ContinuationPager:
    """Fetches and merges successive pages of a continued query"""

    def __init__(self, executor: RetryingExecutor,
                 strategy: Optional[PaginationStrategy] = None):
        self.executor = executor
        self.strategy = strategy or ContinuationPagination()

    def iter_pages(self, query: Mapping[str, str],
                   limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        """
        Lazily yield result pages, one GET per page pulled

        Args:
            query: Original request parameters
            limit: Approximate ceiling on the number of items to fetch

        Yields:
            Response pages with the continue field removed

        Raises:
            Whatever the executor raises; the sequence ends there
        """
        original = dict(query)
        remaining = limit
        previous: Optional[Dict[str, Any]] = None
        page_num = 0

        while remaining is None or remaining > 0:
            params = self.strategy.get_next_page_params(original, previous)
            if params is None:
                return

            page_num += 1
            result = self.executor.execute(params, 'GET')
            if not isinstance(result, dict):
                yield result
                return

            continuation = result.pop(CONTINUE_KEY, None)
            logger.debug(f"Fetched page {page_num}, continuation={continuation is not None}")

            if continuation is None:
                yield result
                return

            if remaining is not None:
                remaining = max(0, remaining - self.strategy.extract_page_count(result))

            # Keep only the continuation for the next round; the caller owns the page
            previous = {CONTINUE_KEY: continuation}
            yield result

    def fetch_limit(self, query: Mapping[str, str], limit: Optional[int]) -> Any:
        """
        Fetch pages until exhausted or the item ceiling is reached, merged into one result

        Raises:
            The first error raised by any page request
        """
        accumulator: Any = None
        for page in self.iter_pages(query, limit):
            accumulator = merge_json(accumulator, page)
        return accumulator

    def fetch_all(self, query: Mapping[str, str]) -> Any:
        """Fetch and merge every page"""
        return self.fetch_limit(query, None)

    def fold_pages(self, query: Mapping[str, str],
                   limit: Optional[int] = None) -> Tuple[Any, Optional[MediaWikiAdapterError]]:
        """
        Like fetch_limit, but returns the partial result alongside any error

        Returns:
            (accumulator, None) on success, (accumulator so far, error) on failure
        """
        accumulator: Any = None
        try:
            for page in self.iter_pages(query, limit):
                accumulator = merge_json(accumulator, page)
        except MediaWikiAdapterError as e:
            logger.warning(f"Continuation aborted after partial result: {e}")
            return accumulator, e
        return accumulator, None

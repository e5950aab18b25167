"""
GitHub Pages API client infrastructure for doccpages.

Provides a clean abstraction over the GitHub Pages REST endpoints:
- Look up the published site URL
- Request a Pages build after the pages branch was pushed
- Retries with exponential backoff on rate limits and server errors
"""

import time
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


class PagesClient:
    """
    GitHub Pages API client.

    Example:
        client = PagesClient(token="...")
        info = client.get_pages("owner", "repo")
        if info:
            print(info["html_url"])
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        timeout: int = 30
    ):
        """
        Initialize PagesClient.

        Args:
            token: GitHub token (unauthenticated requests when empty)
            api_url: API base URL (GitHub Enterprise uses a different host)
            max_retries: Maximum attempts per request
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            timeout: Per-request timeout in seconds
        """
        self.token = token
        self.api_url = api_url.rstrip('/')
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'doccpages',
        }
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def _request(self, method: str, endpoint: str) -> Optional[Dict[str, Any]]:
        """
        Call the API, retrying on 403/429 and 5xx responses.

        Returns:
            Decoded JSON body, ``{}`` for an empty success body,
            or None when the resource does not exist or every attempt failed.
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"

        for attempt in range(self.max_retries):
            try:
                response = requests.request(
                    method, url, headers=self._headers(), timeout=self.timeout
                )
            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {e}")
                self._backoff(attempt)
                continue

            if response.status_code in (200, 201):
                return response.json() if response.content else {}

            if response.status_code == 404:
                return None

            if response.status_code in (403, 429) or response.status_code >= 500:
                logger.info(
                    f"GitHub API returned {response.status_code} for {endpoint} "
                    f"(attempt {attempt + 1})"
                )
                self._backoff(attempt)
                continue

            logger.warning(f"GitHub API error {response.status_code} for {endpoint}")
            return None

        return None

    def _backoff(self, attempt: int) -> None:
        if attempt < self.max_retries - 1:
            delay = min(self.base_delay * (2 ** attempt), self.max_delay)
            time.sleep(delay)

    def get_pages(self, owner: str, name: str) -> Optional[Dict[str, Any]]:
        """
        Get GitHub Pages information.

        Returns:
            Pages info dict or None if Pages is not enabled
        """
        return self._request('GET', f"repos/{owner}/{name}/pages")

    def request_build(self, owner: str, name: str) -> bool:
        """Ask GitHub to rebuild the Pages site from the pages branch."""
        if not self.token:
            logger.debug("No GitHub token; skipping Pages build request")
            return False
        return self._request('POST', f"repos/{owner}/{name}/pages/builds") is not None

    def pages_url(self, owner: str, name: str) -> str:
        """Published URL, falling back to the conventional github.io address."""
        info = self.get_pages(owner, name)
        if info and info.get('html_url'):
            return info['html_url']
        return f"https://{owner}.github.io/{name}/"

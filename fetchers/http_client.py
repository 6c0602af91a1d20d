"""Blocking HTTP client used for image downloads, gist lookups and tag pages."""

import logging
import os
import time
from typing import Any, Dict, Optional

import requests
import urllib3

from .base_fetcher import BaseFetcher, FetchError

logger = logging.getLogger('medium_hugo_migrator.fetchers.http_client')

INSECURE_ENV_VAR = 'ALLOW_INSECURE'
DEFAULT_USER_AGENT = 'medium-hugo-migrator/1.0'


def insecure_from_env() -> bool:
    """True when ALLOW_INSECURE is set to 'true' (any casing)."""
    return os.getenv(INSECURE_ENV_VAR, '').strip().lower() == 'true'


class HttpClient(BaseFetcher):
    """
    Thin requests.Session wrapper with a per-request timeout and optional
    TLS verification bypass.

    Requests are made once; there is no retry or backoff. Every response is
    closed before the call returns, including on error paths.
    """

    def __init__(
        self,
        timeout: float = 30,
        verify_ssl: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the HTTP client.

        Args:
            timeout: Seconds to wait for connect and for each read
            verify_ssl: Whether to verify TLS certificates
            user_agent: User-Agent header sent with every request
            logger: Logger instance
        """
        super().__init__(logger or logging.getLogger('medium_hugo_migrator.fetchers.http_client'))
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers['User-Agent'] = user_agent

        self.session.verify = verify_ssl
        if not verify_ssl:
            self.logger.warning("SSL verification disabled - this is insecure!")
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.logger.debug(f"HTTP client configured with timeout={timeout}s, verify_ssl={verify_ssl}")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'HttpClient':
        """
        Initialize the client from a configuration dictionary.

        TLS verification is skipped when network.allow_insecure is true or
        the ALLOW_INSECURE environment variable is 'true'.
        """
        network_config = config.get('network', {})
        allow_insecure = bool(network_config.get('allow_insecure', False)) or insecure_from_env()

        return cls(
            timeout=network_config.get('timeout', 30),
            verify_ssl=not allow_insecure,
            user_agent=network_config.get('user_agent', DEFAULT_USER_AGENT)
        )

    def get_bytes(self, url: str) -> bytes:
        """
        GET url and return the body.

        Raises:
            FetchError: For connection errors, timeouts and non-2xx responses
        """
        start_time = time.time()
        self.logger.debug(f"GET {url}")

        try:
            with self.session.get(url, timeout=self.timeout) as response:
                self.logger.debug(
                    f"Response: {response.status_code} {url} ({time.time() - start_time:.3f}s)"
                )
                response.raise_for_status()
                return response.content

        except requests.exceptions.Timeout as e:
            self.logger.error(f"Request timeout after {self.timeout}s: GET {url}")
            raise FetchError(url, f"timeout after {self.timeout}s") from e

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            self.logger.error(f"HTTP Error {status_code}: GET {url}")
            raise FetchError(url, f"HTTP {status_code}") from e

        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request failed: GET {url}: {e}")
            raise FetchError(url, str(e)) from e

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'HttpClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ['HttpClient', 'insecure_from_env', 'INSECURE_ENV_VAR']

# transport.py
import os
import re
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import certifi
import requests
from requests.utils import get_environ_proxies

from errors import InvalidConfiguration, RequestTimeout, TransportFailure

log = logging.getLogger(__name__)

PUBLIC_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
USER_AGENT = "github-app-token-action/1.0"
DEFAULT_TIMEOUT_MS = 5000

_PROXY_RE = re.compile(r"^https?://")


def _ca_bundle() -> str:
    return (
        os.getenv("REQUESTS_CA_BUNDLE")
        or os.getenv("SSL_CERT_FILE")
        or certifi.where()
    )


@dataclass(frozen=True)
class TransportConfig:
    base_api_url: str = PUBLIC_API_URL
    proxy_url: Optional[str] = None
    ignore_environment_proxy: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    environment_proxies: Dict[str, str] = field(default_factory=dict)
    ca_bundle: str = field(default_factory=certifi.where)

    def __post_init__(self):
        if self.proxy_url and not _PROXY_RE.match(self.proxy_url):
            raise InvalidConfiguration(
                f"Proxy URL must start with http:// or https://, was \"{self.proxy_url}\""
            )
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int) or self.timeout_ms <= 0:
            raise InvalidConfiguration(f"Request timeout must be a positive number of milliseconds, was {self.timeout_ms!r}")

    @classmethod
    def resolve(cls, base_api_url: Optional[str] = None, proxy_url: Optional[str] = None,
                ignore_environment_proxy: bool = False, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> "TransportConfig":
        """Read the ambient environment once; the clients built from the result never do."""
        base = (base_api_url or os.getenv("GITHUB_API_URL") or PUBLIC_API_URL).rstrip("/")
        env_proxies = {}
        if not ignore_environment_proxy:
            env_proxies = {k: v for k, v in get_environ_proxies(base).items() if k != "no"}
        return cls(
            base_api_url=base,
            proxy_url=proxy_url or None,
            ignore_environment_proxy=ignore_environment_proxy,
            timeout_ms=timeout_ms,
            environment_proxies=env_proxies,
            ca_bundle=_ca_bundle(),
        )

    @property
    def proxies(self) -> Dict[str, str]:
        if self.ignore_environment_proxy:
            return {}
        if self.proxy_url:
            return {"http": self.proxy_url, "https": self.proxy_url}
        return dict(self.environment_proxies)

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0


class GitHubClient:
    def __init__(self, token: str, config: TransportConfig):
        self.config = config
        self.base_url = config.base_api_url.rstrip("/")
        self.session = requests.Session()
        # Everything ambient was resolved into config already
        self.session.trust_env = False
        self.session.verify = config.ca_bundle
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": USER_AGENT,
        })

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        """Send one request; non-2xx responses are returned, transport errors raised."""
        url = f"{self.base_url}{path}"
        log.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method, url, timeout=self.config.timeout_s, proxies=self.config.proxies, **kwargs
            )
        except requests.Timeout as e:
            raise RequestTimeout(
                f"{method} {url} timed out after {self.config.timeout_ms}ms"
            ) from e
        except requests.RequestException as e:
            raise TransportFailure(f"{method} {url} failed; {e}") from e
        log.debug("%s %s -> %s", method, url, resp.status_code)
        return resp

    def get(self, path: str, **kwargs) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> requests.Response:
        return self.request("POST", path, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def build_client(credential: str, config: TransportConfig) -> GitHubClient:
    return GitHubClient(credential, config)


def describe_response(resp: requests.Response) -> str:
    """Short upstream message for error text: the API's `message` field or the raw body."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return (resp.text or resp.reason or "")[:400]

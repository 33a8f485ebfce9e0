"""Consul key-value backend, for consul://host:port/prefix URIs.

Talks to the agent's HTTP API under /v1/kv/. Store keys map one-to-one to
Consul keys. Keys ending in '/' are Consul "folders" and carry no value.
"""

import base64
import logging
import os
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from backend import Backend, BackendError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8500
TOKEN_ENV = "CONSUL_HTTP_TOKEN"


def _decode(entry: dict) -> str:
    raw = entry.get("Value")
    if raw is None:
        return ""
    return base64.b64decode(raw).decode("utf-8")


class ConsulBackend(Backend):
    """Read and write keys in a Consul KV store."""

    def __init__(self, host: str = "localhost", port: int = DEFAULT_PORT,
                 timeout: float = 10.0, retries: int = 3, token: str | None = None):
        super().__init__()
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        self._base_url = f"http://{host}:{port}/v1/kv/"
        self._timeout = timeout
        self._session = requests.Session()
        retry = Retry(total=retries, backoff_factor=0.2, status_forcelist=(500, 502, 503, 504))
        self._session.mount("http://", HTTPAdapter(max_retries=retry))
        token = token if token is not None else os.environ.get(TOKEN_ENV)
        if token:
            self._session.headers["X-Consul-Token"] = token
        logger.debug("Consul backend at %s", self._base_url)

    def _request(self, method: str, key: str, **kwargs) -> requests.Response:
        url = self._base_url + quote(key)
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"Consul request to {url} failed: {e}") from e
        if response.status_code not in (200, 404):
            raise BackendError(
                f"Consul request to {url} failed: {response.status_code} {response.text.strip()}"
            )
        return response

    def _entries(self, response: requests.Response) -> list[tuple[str, str]]:
        """Decode a KV listing into (key, value) pairs."""
        try:
            return [(entry["Key"], _decode(entry)) for entry in response.json()]
        except (ValueError, KeyError, TypeError) as e:
            raise BackendError(f"Malformed reply from Consul at {response.url}: {e!r}") from e

    def put_string(self, path: str, value: str) -> None:
        key = self._key(path)
        if not key:
            raise BackendError("Cannot put a value at the root")
        response = self._request("PUT", key, data=value.encode("utf-8"))
        if response.status_code != 200 or response.text.strip() != "true":
            raise BackendError(f"Consul rejected write to {key!r}: {response.text.strip()}")

    def get_string(self, path: str) -> str | None:
        key = self._key(path)
        if not key:
            return None
        response = self._request("GET", key)
        if response.status_code == 404:
            return None
        entries = self._entries(response)
        if not entries:
            return None
        return entries[0][1]

    def get_recursive_map(self, path: str) -> dict[str, str]:
        response = self._request("GET", self._key(path), params={"recurse": "true"})
        if response.status_code == 404:
            return {}
        items = [(key, value) for key, value in self._entries(response) if not key.endswith("/")]
        return self._collect(items, path)

    def close(self) -> None:
        self._session.close()

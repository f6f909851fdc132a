"""HTTP transport for the management API, built on urllib3."""

import json
import time
import functools
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import urllib3

from .config import CliConfig
from .errors import ApiErrorResponse, TransportError


@dataclass(frozen=True)
class Credentials:
    """Basic-auth credentials and base URL of one cluster's management API."""
    username: str
    password: str
    base_url: str

    def __repr__(self):
        return f"Credentials(username={self.username!r}, password='***', base_url={self.base_url!r})"


# Wrapper to log management API calls
def api_call_logger(func):
    """Log each management API call with timing."""
    @functools.wraps(func)
    def wrapper(self, method, url, *args, **kwargs):
        start = time.time()
        try:
            result = func(self, method, url, *args, **kwargs)
            elapsed = time.time() - start
            logging.debug(f"{method} {url} succeeded in {elapsed:.2f}s")
            return result
        except Exception as e:
            elapsed = time.time() - start
            logging.error(f"✗ {method} {url} failed in {elapsed:.2f}s: {e!r}")
            raise

    return wrapper


def _host_matches_no_proxy(host: str, no_proxy: str) -> bool:
    for entry in no_proxy.split(','):
        entry = entry.strip().lower()
        if not entry:
            continue
        if entry == '*':
            return True
        entry = entry.lstrip('.')
        if host == entry or host.endswith('.' + entry):
            return True
    return False


def get_proxy_url(host: str, proxy_env: Mapping[str, str]) -> Optional[str]:
    """Return the proxy URL to use for ``host``.

    ``proxy_env`` holds the proxy variables collected by ``load_config``, keyed
    by upper-case name. HTTPS_PROXY takes precedence over HTTP_PROXY, which
    takes precedence over ALL_PROXY. Hosts listed in NO_PROXY (exact name,
    domain suffix, or ``*``) bypass the proxy.
    """
    host = (host or '').lower()
    no_proxy = proxy_env.get('NO_PROXY') or ''
    if no_proxy and _host_matches_no_proxy(host, no_proxy):
        return None
    for name in ('HTTPS_PROXY', 'HTTP_PROXY', 'ALL_PROXY'):
        value = proxy_env.get(name)
        if value:
            return value
    return None


def _error_envelope(text: str) -> Optional[dict]:
    """Return the decoded body when it is the API's ``statusCode`` envelope."""
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if isinstance(data, dict) and 'statusCode' in data:
        return data
    return None


def create_pool_manager(proxy_url: Optional[str], **kwargs) -> urllib3.PoolManager:
    """Create a pool manager, routed through ``proxy_url`` when given.

    SOCKS proxies need the PySocks extra of urllib3.
    """
    if not proxy_url:
        return urllib3.PoolManager(**kwargs)
    scheme = urllib.parse.urlparse(proxy_url).scheme.lower()
    if scheme.startswith('socks'):
        try:
            from urllib3.contrib.socks import SOCKSProxyManager
        except ImportError as e:
            raise ImportError(
                f"SOCKS proxy {proxy_url} requires PySocks. Install it with: pip install 'urllib3[socks]'"
            ) from e
        return SOCKSProxyManager(proxy_url, **kwargs)
    return urllib3.ProxyManager(proxy_url, **kwargs)


class ManagementClient:
    """Sends authenticated requests to a cluster's management API.

    Exactly one request is sent per call; there are no retries.
    """

    def __init__(self, credentials: Credentials, config: Optional[CliConfig] = None, pool_manager=None):
        self.credentials = credentials
        self.config = config or CliConfig()
        self._pool_manager = pool_manager

    @property
    def pool_manager(self):
        if self._pool_manager is None:
            host = urllib.parse.urlparse(self.credentials.base_url).hostname or ''
            timeout = urllib3.util.Timeout(connect=self.config.connect_timeout, read=self.config.read_timeout)
            if self.config.ca_cert:
                kwargs = dict(cert_reqs='CERT_REQUIRED', ca_certs=self.config.ca_cert)
            else:
                # cluster certificates are self-signed unless a CA bundle is configured
                kwargs = dict(cert_reqs='CERT_NONE')
                urllib3.disable_warnings(category=urllib3.exceptions.InsecureRequestWarning)
            proxy_url = get_proxy_url(host, self.config.proxy_env)
            self._pool_manager = create_pool_manager(proxy_url, retries=False, timeout=timeout, **kwargs)
        return self._pool_manager

    def _headers(self, has_body: bool) -> Dict[str, str]:
        headers = urllib3.make_headers(basic_auth=f"{self.credentials.username}:{self.credentials.password}")
        headers['Accept'] = 'application/json'
        if has_body:
            headers['Content-Type'] = 'application/json'
        return headers

    @api_call_logger
    def request(self, method: str, url: str, body: Optional[bytes] = None) -> str:
        """Send one request and return the response text.

        Raises:
            ApiErrorResponse: On a non-2xx status carrying the API's error envelope
            TransportError: On connection failure or any other non-2xx status
        """
        try:
            response = self.pool_manager.request(
                method, url, headers=self._headers(body is not None), body=body,
                retries=False, preload_content=False,
            )
        except urllib3.exceptions.HTTPError as e:
            raise TransportError(method, url, str(e)) from e

        try:
            data = response.read()
        except urllib3.exceptions.HTTPError as e:
            raise TransportError(method, url, f"error reading response: {e}") from e
        finally:
            response.release_conn()

        text = data.decode('utf-8', errors='replace')
        if not 200 <= response.status < 300:
            envelope = _error_envelope(text)
            if envelope is not None:
                raise ApiErrorResponse(method, url, response.status, text,
                                       status_code=str(envelope.get('statusCode') or ''),
                                       status_message=str(envelope.get('statusMessage') or ''))
            raise TransportError(method, url, f"HTTP {response.status}", status=response.status, body=text)
        return text

    def get(self, url: str) -> str:
        return self.request('GET', url)

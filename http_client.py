import threading
from time import sleep, time
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from errors import UpstreamError

APP_NAME = "Artist GIF search"
APP_VERSION = "1.0"

headers = {
    'User-Agent': f'{APP_NAME}/{APP_VERSION}',
    'Accept': 'application/json',
}


# Per-service rate limiting for external APIs
class ServiceThrottle:
    """Thread-safe minimum-interval limiter per service."""
    def __init__(self, max_per_second):
        self.min_interval = 1.0 / max_per_second
        self.lock = threading.Lock()
        self.last_call = 0.0

    def wait(self):
        """Block until it's safe to make the next request."""
        with self.lock:
            now = time()
            elapsed = now - self.last_call
            if elapsed < self.min_interval:
                sleep(self.min_interval - elapsed)
            self.last_call = time()


_service_throttles = {
    'ws.audioscrobbler.com': ServiceThrottle(5),  # Last.fm: 5 req/sec
    'api.giphy.com': ServiceThrottle(5),
}


def build_session(retries=0):
    """Reusable session for connection pooling; mounts a retrying adapter only when asked to."""
    session = requests.Session()
    session.headers.update(headers)
    if retries > 0:
        retry = Retry(
            total=retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
    return session


def throttled_get(session, url, **kwargs):
    """Rate-limited wrapper around session.get()."""
    hostname = urlparse(url).hostname
    throttle = _service_throttles.get(hostname)
    if throttle:
        throttle.wait()
    return session.get(url, **kwargs)


def get_json(session, url, params, timeout, service, accept_error_status=False):
    """GET url and return the decoded JSON object.

    Transport failures, timeouts and unusable bodies become UpstreamError so the
    caller never has to look at requests exceptions.
    """
    try:
        response = throttled_get(session, url, params=params, timeout=timeout)
    except requests.exceptions.Timeout:
        print(f"{service} timed out after {timeout}s")
        raise UpstreamError(f"{service} did not respond in time.", status=504)
    except requests.exceptions.RequestException as e:
        print(f"{service} request failed: {e}")
        raise UpstreamError(f"Could not reach {service}.")

    if not response.ok and not accept_error_status:
        print(f"{service} returned HTTP {response.status_code}")
        raise UpstreamError(f"{service} returned HTTP {response.status_code}.")

    try:
        data = response.json()
    except ValueError:
        print(f"{service} returned a non-JSON body (HTTP {response.status_code})")
        raise UpstreamError(f"{service} returned an unreadable response.")

    if not isinstance(data, dict):
        raise UpstreamError(f"{service} returned an unexpected response.")
    return data

"""
HTTP session with connection pooling and CA bundle selection.

Transport-level retries are off: the delivery scheduler owns the retry
policy (fixed attempts, fixed delay), and stacking urllib3 retries under it
would multiply the attempts and blow the per-attempt timeout.
"""

import os

import certifi
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

_no_retry = Retry(total=0, read=False)


def _get_ca_bundle():
    """CA bundle path: REQUESTS_CA_BUNDLE / SSL_CERT_FILE if set, else certifi."""
    env_ca = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")
    if env_ca and os.path.isfile(env_ca):
        return env_ca
    return certifi.where()


def create_session():
    """Create a requests.Session with a small connection pool."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=2,
        max_retries=_no_retry,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = _get_ca_bundle()
    return session


# SPDX-License-Identifier: AGPL-3.0-or-later
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def http_client(timeout: int = 30) -> Session:
    s = Session()
    retry = Retry(total=3, backoff_factor=0.5, status_forcelist=[429, 500, 502, 503, 504])
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers.update({"Content-Type": "application/json"})
    orig = s.request

    def _request(method, url, **kwargs):
        if "timeout" not in kwargs:
            kwargs["timeout"] = timeout
        return orig(method, url, **kwargs)

    s.request = _request
    return s

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import requests
from requests.exceptions import ConnectionError, ReadTimeout, RequestException

from chart_plot.config import settings

log = logging.getLogger(__name__)


@dataclass
class HTTPClient:
    user_agent: str = settings.user_agent
    timeout_s: float = 25
    tries: int = 3
    backoff_s: float = 0.5

    def __post_init__(self) -> None:
        self.s = requests.Session()
        self.s.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "image/png, image/*;q=0.9, */*;q=0.8",
            }
        )

    def head_ok(self, url: str, timeout_s: Optional[float] = None) -> bool:
        """Single-shot reachability check; any failure is simply ``False``."""
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        try:
            r = self.s.head(url, timeout=timeout, allow_redirects=True, headers={"Cache-Control": "no-cache"})
            return r.ok
        except RequestException as e:
            log.debug("HEAD %s failed: %s", url, e)
            return False

    def get_bytes(self, url: str, timeout_s: Optional[float] = None) -> Optional[bytes]:
        """GET with retry on transient errors. ``None`` for a 4xx/5xx response."""
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        last_err: Optional[Exception] = None
        for attempt in range(self.tries):
            try:
                r = self.s.get(url, timeout=timeout)
                if not r.ok:
                    return None
                return r.content
            except (ReadTimeout, ConnectionError) as e:
                last_err = e
                time.sleep(self.backoff_s * (2**attempt))
        raise last_err if last_err else RuntimeError("HTTP get_bytes failed")


class ReachabilityProbe:
    """Answers "can we load online tiles right now?" with one bounded HEAD request."""

    def __init__(self, url: Optional[str] = None, client: Optional[HTTPClient] = None):
        self.url = url or settings.probe_url
        self.client = client or HTTPClient()

    def is_reachable(self, timeout_s: float) -> bool:
        return self.client.head_ok(self.url, timeout_s=timeout_s)

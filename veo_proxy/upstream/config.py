from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from veo_proxy.vars import (
    UPSTREAM_BASE_URL,
    UPSTREAM_ORIGIN,
    UPSTREAM_REFERER,
    UPSTREAM_TIMEOUT,
)


@dataclass(frozen=True)
class ForwardingConfig:
    """Fixed upstream settings shared by every forwarding route."""

    base_url: str
    origin: str
    referer: str
    timeout: Optional[float] = None

    def url_for(self, path: str) -> str:
        # paths such as ":uploadUserImage" attach directly to the version segment
        return f"{self.base_url}{path}"

    def headers_for(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Origin": self.origin,
            "Referer": self.referer,
        }


def load_forwarding_config() -> ForwardingConfig:
    return ForwardingConfig(
        base_url=UPSTREAM_BASE_URL,
        origin=UPSTREAM_ORIGIN,
        referer=UPSTREAM_REFERER,
        timeout=UPSTREAM_TIMEOUT,
    )


FORWARDING_CONFIG = load_forwarding_config()


def create_upstream_client(config: ForwardingConfig) -> httpx.AsyncClient:
    """Create the per-request client used for upstream calls."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout),
        follow_redirects=True,
    )

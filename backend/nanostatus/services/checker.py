"""Checker service - performs one availability probe against a monitor's URL."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "NanoStatus/1.0"

# ping:// targets are not actually pinged; they report this fixed latency
PING_STUB_LATENCY_MS = 10


@dataclass
class CheckResult:
    """Result of a monitoring check."""
    status: str  # up, down
    response_time_ms: int = 0  # always 0 when down
    details: Optional[str] = None


def normalize_target(target: str) -> Tuple[str, str]:
    """Split a monitor address into (scheme, url).

    Bare hostnames are assumed to be served over HTTPS. Schemes other than
    http, https and ping are returned unchanged so the caller can reject them.
    """
    target = target.strip()
    if "://" not in target:
        return "https", f"https://{target}"
    scheme = target.split("://", 1)[0].lower()
    return scheme, target


class CheckerService:
    """Service for performing HTTP(S) availability checks."""

    def __init__(self, timeout: float = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        # Injected transport lets tests and proxies replace the network layer
        self._transport = transport

    async def check(self, target: str) -> CheckResult:
        """Probe a target once. Never raises; failures are reported as down."""
        scheme, url = normalize_target(target)

        if scheme == "ping":
            # Known approximation: no ICMP implementation, ping targets always succeed
            return CheckResult(status="up", response_time_ms=PING_STUB_LATENCY_MS, details="ping not performed")

        if scheme not in ("http", "https"):
            return CheckResult(status="down", details=f"Unsupported scheme: {scheme}")

        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, ValueError) as e:
            return CheckResult(status="down", details=f"Invalid URL: {e}")
        if not parsed.host:
            return CheckResult(status="down", details="Invalid URL: missing host")

        return await self._check_http(parsed)

    async def _check_http(self, url: httpx.URL) -> CheckResult:
        """Perform an HTTP GET; 2xx and 3xx count as up.

        The whole attempt, redirects and body included, is bounded by the
        probe timeout.
        """
        try:
            start = time.monotonic()
            response = await asyncio.wait_for(self._get(url), timeout=self.timeout)
            response_time = int((time.monotonic() - start) * 1000)

            if not (200 <= response.status_code < 400):
                return CheckResult(status="down", details=f"HTTP {response.status_code}")

            return CheckResult(status="up", response_time_ms=response_time)

        except (asyncio.TimeoutError, httpx.TimeoutException):
            return CheckResult(status="down", details="Request timeout")
        except httpx.ConnectError as e:
            return CheckResult(status="down", details=f"Connection error: {e}")
        except httpx.HTTPError as e:
            return CheckResult(status="down", details=str(e) or e.__class__.__name__)
        except Exception as e:
            logger.warning(f"Unexpected error probing {url}: {e}")
            return CheckResult(status="down", details=str(e))

    async def _get(self, url: httpx.URL) -> httpx.Response:
        # Disable SSL verification to handle self-signed certificates
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            verify=False,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            return await client.get(url)

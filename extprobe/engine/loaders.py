"""Resource loaders — the mechanisms a probe uses to attempt a load.

A loader exposes two attempts, matching the two signals a browser gives for
cross-origin loads without permission:

* ``load_image(url)`` returns when the resource loaded as an image and raises
  otherwise.
* ``check_exists(url)`` issues a body-less, opaque, uncached request; it
  returns when the request settles and raises only on a transport-level
  rejection. Status codes are deliberately not inspected.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx
import structlog

log = structlog.get_logger("extprobe.engine")

_NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


@runtime_checkable
class ResourceLoader(Protocol):
    """Interface every loader must satisfy."""

    async def load_image(self, url: str) -> None: ...

    async def check_exists(self, url: str) -> None: ...


class ImageLoadError(Exception):
    """Raised when a resource did not load as an image."""


class HttpxResourceLoader:
    """Loader for URL templates that resolve over HTTP(S).

    Useful when extension resources are reachable through an origin that
    mirrors or proxies them. The client is created lazily unless one is
    injected, and is closed on ``aclose()`` only if this loader created it.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=False)

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpxResourceLoader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ── public ─────────────────────────────────────────────────────────────

    async def load_image(self, url: str) -> None:
        """GET *url* and require a successful image response."""
        response = await self._client.get(url, headers=_NO_CACHE_HEADERS)
        if response.status_code >= 400:
            raise ImageLoadError(f"{url}: HTTP {response.status_code}")
        content_type = response.headers.get("Content-Type", "")
        if not content_type.lower().startswith("image/"):
            raise ImageLoadError(f"{url}: not an image ({content_type or 'no content type'})")
        if not response.content:
            raise ImageLoadError(f"{url}: empty body")

    async def check_exists(self, url: str) -> None:
        """HEAD *url*; any settled response counts, only transport errors raise."""
        response = await self._client.head(url, headers=_NO_CACHE_HEADERS)
        log.debug("loader.head", url=url, status=response.status_code)

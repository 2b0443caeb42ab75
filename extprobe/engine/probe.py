"""Probe strategy — one bounded existence check per candidate extension."""

from __future__ import annotations

import asyncio
import re

import structlog

from extprobe.config import DEFAULT_TIMEOUT, DEFAULT_URL_TEMPLATE
from extprobe.engine.loaders import ResourceLoader

log = structlog.get_logger("extprobe.engine")

# Resources the browser can only report on through image load/error events.
_IMAGE_PATH_RE = re.compile(r"\.(png|jpe?g|gif|webp|svg|ico|bmp)$", re.IGNORECASE)


def is_image_path(resource_path: str) -> bool:
    return _IMAGE_PATH_RE.search(resource_path) is not None


def build_url(template: str, identifier: str, resource_path: str) -> str:
    return template.format(id=identifier, path=resource_path)


class _OneShot:
    """Settle-guarded result cell shared by the deadline timer and the load attempt.

    The first call to :meth:`finish` wins; later calls are no-ops. A real
    outcome cancels the pending timer.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._future: asyncio.Future[bool] = loop.create_future()
        self._timer: asyncio.TimerHandle | None = None
        self.timed_out = False

    @property
    def settled(self) -> bool:
        return self._future.done()

    def arm(self, delay: float) -> None:
        self._timer = self._loop.call_later(delay, self._expire)

    def disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def finish(self, result: bool) -> bool:
        if self._future.done():
            return False
        self.disarm()
        self._future.set_result(result)
        return True

    def _expire(self) -> None:
        self._timer = None
        if self.finish(False):
            self.timed_out = True

    async def wait(self) -> bool:
        return await self._future


def _attempt_succeeded(task: asyncio.Future[None]) -> bool:
    if task.cancelled():
        return False
    exc = task.exception()
    if exc is not None:
        log.debug("probe.load_failed", error=f"{type(exc).__name__}: {exc}")
        return False
    return True


class ProbeStrategy:
    """Decide how to probe a candidate and resolve to detected / not detected.

    Image resources go through ``loader.load_image``; everything else through
    ``loader.check_exists``. Either way the result is ``False`` if nothing
    settles within *timeout* seconds. :meth:`probe` never raises for load
    failures.
    """

    def __init__(
        self,
        loader: ResourceLoader,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        url_template: str = DEFAULT_URL_TEMPLATE,
    ) -> None:
        self.loader = loader
        self.timeout = timeout
        self.url_template = url_template

    async def probe(self, identifier: str, resource_path: str) -> bool:
        url = build_url(self.url_template, identifier, resource_path)
        gate = _OneShot(asyncio.get_running_loop())
        gate.arm(self.timeout)

        try:
            if is_image_path(resource_path):
                attempt = asyncio.ensure_future(self.loader.load_image(url))
            else:
                attempt = asyncio.ensure_future(self.loader.check_exists(url))
        except Exception as exc:
            gate.disarm()
            log.debug("probe.start_failed", url=url, error=str(exc))
            return False

        attempt.add_done_callback(lambda task: gate.finish(_attempt_succeeded(task)))
        try:
            result = await gate.wait()
        finally:
            gate.disarm()
            if not attempt.done():
                attempt.cancel()

        if gate.timed_out:
            log.debug("probe.timeout", url=url, timeout=self.timeout)
        return result

"""Digest image rendering through headless Chromium.

The packaged HTML template draws the digest onto a canvas and reports the
result by calling an exposed page function exactly once, either with
``{"image": <png data url>}`` or ``{"error": <message>}``. The result lands
in a single-shot channel that the caller awaits with a timeout.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from publisher.config import RenderConfig
from publisher.errors import RenderError
from publisher.schemas.digest import PublishedDigest

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "digest.html"
_RESULT_FUNCTION = "publishResult"
_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]
_DATA_URL_PREFIX = "data:image/png;base64,"


class RenderResultChannel:
    """Single-shot result slot populated by the page."""

    def __init__(self) -> None:
        self._future: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()

    def resolve(self, payload: Any) -> None:
        """Accept the page's report; later reports are ignored."""
        if self._future.done():
            logger.debug("Ignoring duplicate render result")
            return
        if not isinstance(payload, dict):
            self._future.set_exception(RenderError(f"Unexpected render result: {payload!r}"))
        elif payload.get("error"):
            self._future.set_exception(RenderError(f"Template failed: {payload['error']}"))
        else:
            try:
                self._future.set_result(decode_png_data_url(payload.get("image")))
            except RenderError as exc:
                self._future.set_exception(exc)

    async def wait(self, timeout: float) -> bytes:
        try:
            return await asyncio.wait_for(self._future, timeout)
        except TimeoutError as exc:
            raise RenderError(f"Rendering timed out after {timeout:.0f}s") from exc


def decode_png_data_url(value: Any) -> bytes:
    """Decode a ``data:image/png;base64,...`` URL into PNG bytes."""
    if not isinstance(value, str) or not value.startswith(_DATA_URL_PREFIX):
        raise RenderError("Render result is not a PNG data URL")
    try:
        data = base64.b64decode(value[len(_DATA_URL_PREFIX) :], validate=True)
    except ValueError as exc:
        raise RenderError("Render result is not valid base64") from exc
    if not data:
        raise RenderError("Render result is empty")
    return data


class ImageRenderer:
    """Renders a PublishedDigest to PNG bytes."""

    def __init__(self, config: RenderConfig, template_path: Path = TEMPLATE_PATH) -> None:
        self._config = config
        self._template_path = template_path

    async def render(self, record: PublishedDigest) -> bytes:
        """Render one digest image.

        Raises:
            RenderError: Timeout, template-reported failure or browser error.
        """
        template_html = self._template_path.read_text(encoding="utf-8")
        channel = RenderResultChannel()
        logger.info("[%s] Rendering image", record.date)

        timeout = self._config.timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                async with async_playwright() as pw:
                    browser = await pw.chromium.launch(
                        headless=True, args=_BROWSER_ARGS
                    )
                    try:
                        page = await browser.new_page(
                            viewport={
                                "width": self._config.viewport_width,
                                "height": self._config.viewport_height,
                            }
                        )
                        await page.expose_function(_RESULT_FUNCTION, channel.resolve)
                        await page.set_content(
                            template_html, wait_until="domcontentloaded"
                        )
                        await page.evaluate(
                            "data => { window.renderDigest(data); }",
                            record.model_dump(mode="json"),
                        )
                        image = await channel.wait(timeout)
                    finally:
                        await browser.close()
        except TimeoutError as exc:
            raise RenderError(f"Rendering timed out after {timeout:.0f}s") from exc
        except PlaywrightError as exc:
            raise RenderError(f"Browser error: {exc}") from exc

        logger.info("[%s] Rendered image (%d bytes)", record.date, len(image))
        return image

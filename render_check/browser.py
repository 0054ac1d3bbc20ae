"""Browser helpers — Chromium launch for CI, viewport contexts, render readiness."""

from __future__ import annotations

import logging

from playwright.async_api import Browser, BrowserContext, Page, Playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from render_check.models.config import BrowserConfig, StabilizeConfig, ViewportConfig

logger = logging.getLogger(__name__)


class RenderTimeoutError(TimeoutError):
    """Raised when the page does not signal render completion in time."""


async def launch_render_browser(playwright: Playwright, config: BrowserConfig) -> Browser:
    """Launch Chromium with software rendering flags suitable for containers."""
    logger.debug("Launching Chromium (headless=%s) with flags: %s", config.headless, " ".join(config.flags))
    return await playwright.chromium.launch(
        headless=config.headless,
        args=list(config.flags),
        executable_path=config.executable_path,
        timeout=config.launch_timeout_ms,
    )


async def create_render_context(browser: Browser, viewport: ViewportConfig) -> BrowserContext:
    """Create an isolated context sized to the capture viewport."""
    return await browser.new_context(
        viewport=viewport.as_dict(),
        device_scale_factor=1,
    )


async def wait_until_rendered(page: Page, config: StabilizeConfig) -> None:
    """Block until the page reports it has finished rendering.

    Polls ``ready_expression`` until it is truthy, bounded by
    ``ready_timeout_ms``, then sleeps ``settle_delay_ms``. Without an
    expression only the settle delay applies.
    """
    if config.ready_expression:
        logger.debug("Waiting for readiness: %s", config.ready_expression)
        try:
            await page.wait_for_function(config.ready_expression, timeout=config.ready_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise RenderTimeoutError(
                f"Page did not satisfy '{config.ready_expression}' "
                f"within {config.ready_timeout_ms}ms. Set it from the page once rendering "
                f"finishes, or set ready_expression to null to use settle_delay_ms"
            ) from e
    if config.settle_delay_ms:
        logger.debug("Settling for %dms", config.settle_delay_ms)
        await page.wait_for_timeout(config.settle_delay_ms)

"""Regression checker — serve, render, capture and compare a page against its baseline."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path

from PIL import Image
from playwright.async_api import Browser, Page, async_playwright

from render_check.baseline_registry import BaselineMismatchError, BaselineRegistryManager
from render_check.browser import create_render_context, launch_render_browser, wait_until_rendered
from render_check.comparator import BaselineNotFoundError, compare_and_diff
from render_check.models.check_result import CheckResult, ImageComparison
from render_check.models.config import CheckerConfig
from render_check.reporter.reporter import Reporter
from render_check.server import StaticServer

logger = logging.getLogger(__name__)


class RegressionChecker:
    """Runs one visual regression check.

    Server and browser are acquired in nested scopes and released on every
    path before a single ``CheckResult`` is returned.
    """

    def __init__(self, config: CheckerConfig, update_baseline: bool = False):
        self.config = config
        self.update_baseline = update_baseline
        self.run_id = f"run_{uuid.uuid4().hex[:8]}"
        self.baseline_manager = BaselineRegistryManager(
            registry_path=config.registry_path,
            page=config.page,
        )
        self.reports: dict[str, str] = {}

    def run(self) -> CheckResult:
        """Execute the check and write the configured reports."""
        result = asyncio.run(self.check())
        try:
            self.reports = Reporter(self.config).generate_reports(result)
        except OSError as e:
            logger.error("Could not write reports: %s", e)
        return result

    async def check(self) -> CheckResult:
        cfg = self.config
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        start = time.time()
        logger.info("=== Render check %s ===", self.run_id)

        server = StaticServer(cfg.serve_dir, host=cfg.host, port=cfg.port)
        # An ephemeral port is only known once the server is bound
        url = server.url_for(cfg.page) if cfg.port else cfg.page
        comparison: ImageComparison | None = None
        error: str | None = None

        try:
            with server:
                url = server.url_for(cfg.page)
                await self._capture(url)
                if self.update_baseline:
                    self._approve_capture()
                else:
                    self._verify_baseline()
                    comparison = await compare_and_diff(
                        cfg.baseline_path, cfg.capture_path, cfg.diff_path, cfg.compare,
                    )
        except (BaselineNotFoundError, BaselineMismatchError) as e:
            error = str(e)
            logger.error("%s", e)
            logger.info("Run 'render-check approve' to accept %s as the baseline", cfg.capture_path)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.exception("Render check aborted: %s", e)

        if error is not None:
            verdict = "error"
        elif comparison is None or comparison.equal:
            verdict = "pass"
            logger.info("Render test passed")
        else:
            verdict = "fail"
            logger.error("Render test failed. See %s", cfg.diff_path)

        duration = time.time() - start
        return CheckResult(
            run_id=self.run_id,
            url=url,
            verdict=verdict,
            started_at=started_at,
            completed_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            duration_seconds=round(duration, 2),
            baseline_path=str(cfg.baseline_path),
            capture_path=str(cfg.capture_path),
            diff_path=str(cfg.diff_path),
            comparison=comparison,
            error=error,
            fail_on_error=cfg.fail_on_error,
        )

    async def _capture(self, url: str) -> Path:
        """Render ``url`` in a fresh headless browser and screenshot it."""
        cfg = self.config
        async with async_playwright() as p:
            browser = await launch_render_browser(p, cfg.browser)
            try:
                context = await create_render_context(browser, cfg.viewport)
                page = await context.new_page()
                await self._navigate(page, url)
                await wait_until_rendered(page, cfg.stabilize)
                return await self._screenshot(page)
            finally:
                await self._close_browser(browser)

    async def _navigate(self, page: Page, url: str) -> None:
        logger.info("Navigating to %s", url)
        response = await page.goto(url, timeout=self.config.stabilize.navigation_timeout_ms)
        if response is not None and not response.ok:
            raise RuntimeError(f"Page load failed with HTTP {response.status}: {url}")

    async def _screenshot(self, page: Page) -> Path:
        cfg = self.config
        path = cfg.capture_path
        path.parent.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(path), full_page=False)

        with Image.open(path) as img:
            size = img.size
        expected = (cfg.viewport.width, cfg.viewport.height)
        if size != expected:
            logger.warning("Capture is %dx%d, expected viewport %dx%d", *size, *expected)
        logger.info("Captured %s (%dx%d)", path, *size)
        return path

    @staticmethod
    async def _close_browser(browser: Browser) -> None:
        try:
            await browser.close()
        except Exception as e:
            logger.debug("Error closing browser: %s", e)

    def _verify_baseline(self) -> None:
        baseline = self.config.baseline_path
        if not baseline.exists():
            raise BaselineNotFoundError(f"Baseline image not found: {baseline}")
        registry = self.baseline_manager.load()
        if not self.baseline_manager.verify(registry, baseline) and self.config.strict_baseline:
            raise BaselineMismatchError(f"Baseline image changed since it was approved: {baseline}")

    def _approve_capture(self) -> None:
        registry = self.baseline_manager.load()
        self.baseline_manager.approve(
            registry, self.config.capture_path, self.config.baseline_path, run_id=self.run_id,
        )
        self.baseline_manager.save(registry)

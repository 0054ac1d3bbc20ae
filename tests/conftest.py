"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from PIL import Image

from render_check.models.check_result import CheckResult, ImageComparison
from render_check.models.config import CheckerConfig, StabilizeConfig, ViewportConfig

WIDTH = 64
HEIGHT = 48
BASE_COLOR = (30, 60, 90, 255)


# ============================================================================
# Image Fixtures
# ============================================================================


def write_image(
    path: Path,
    size: tuple[int, int] = (WIDTH, HEIGHT),
    color: tuple = BASE_COLOR,
    changed: dict[tuple[int, int], tuple] | None = None,
) -> Path:
    """Write a solid PNG, optionally with individual pixels overridden."""
    img = Image.new("RGBA", size, color)
    for xy, value in (changed or {}).items():
        img.putpixel(xy, value)
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path)
    return path


@pytest.fixture
def make_image() -> Callable[..., Path]:
    return write_image


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def serve_dir(tmp_path: Path) -> Path:
    """A directory with a minimal page under test."""
    d = tmp_path / "render_test"
    d.mkdir()
    (d / "index.html").write_text(
        "<html><body><script>window.renderComplete = true;</script></body></html>"
    )
    return d


@pytest.fixture
def checker_config(serve_dir: Path, tmp_path: Path) -> CheckerConfig:
    """Config bound to an ephemeral port and a small viewport."""
    return CheckerConfig(
        serve_dir=str(serve_dir),
        port=0,
        viewport=ViewportConfig(width=WIDTH, height=HEIGHT),
        stabilize=StabilizeConfig(ready_timeout_ms=1000, settle_delay_ms=0),
        report_formats=["json", "junit"],
        report_output_dir=str(tmp_path / "reports"),
    )


@pytest.fixture
def baseline(checker_config: CheckerConfig) -> Path:
    return write_image(checker_config.baseline_path)


# ============================================================================
# Playwright Fixtures
# ============================================================================


@pytest.fixture
def mock_page() -> AsyncMock:
    """Page whose screenshot writes a solid image of the capture size."""
    page = AsyncMock()
    page.goto = AsyncMock(return_value=Mock(ok=True, status=200))
    page.wait_for_function = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.capture_changes = {}

    async def _screenshot(path: str, full_page: bool = False) -> bytes:
        write_image(Path(path), changed=page.capture_changes)
        return b""

    page.screenshot = AsyncMock(side_effect=_screenshot)
    return page


@pytest.fixture
def mock_browser(mock_page: AsyncMock) -> AsyncMock:
    context = AsyncMock()
    context.new_page = AsyncMock(return_value=mock_page)
    browser = AsyncMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def mock_playwright(mock_browser: AsyncMock) -> MagicMock:
    """Stand-in for ``async_playwright()`` usable with ``async with``."""
    p = MagicMock()
    p.chromium.launch = AsyncMock(return_value=mock_browser)
    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=p)
    manager.__aexit__ = AsyncMock(return_value=False)
    manager.playwright = p
    return manager


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def passing_result() -> CheckResult:
    return CheckResult(
        run_id="run_abc12345",
        url="http://localhost:8080/index.html",
        verdict="pass",
        started_at="2026-01-01T00:00:00Z",
        completed_at="2026-01-01T00:00:07Z",
        duration_seconds=7.0,
        baseline_path="tests/render_test/baseline.png",
        capture_path="tests/render_test/new.png",
        diff_path="tests/render_test/diff.png",
        comparison=ImageComparison(
            equal=True,
            reference_size=(1920, 1080),
            current_size=(1920, 1080),
            diff_pixels=0,
            total_pixels=1920 * 1080,
        ),
    )


@pytest.fixture
def failing_result(passing_result: CheckResult) -> CheckResult:
    return passing_result.model_copy(update={
        "verdict": "fail",
        "comparison": ImageComparison(
            equal=False,
            reference_size=(1920, 1080),
            current_size=(1920, 1080),
            diff_pixels=1,
            total_pixels=1920 * 1080,
        ),
    })


@pytest.fixture
def error_result(passing_result: CheckResult) -> CheckResult:
    return passing_result.model_copy(update={
        "verdict": "error",
        "comparison": None,
        "error": "Error: browserType.launch: Executable doesn't exist",
    })

"""Tests for configuration and result models."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from render_check.models.check_result import CheckResult, ImageComparison
from render_check.models.config import (
    CI_BROWSER_FLAGS,
    BrowserConfig,
    CheckerConfig,
    CompareConfig,
    StabilizeConfig,
    ViewportConfig,
)


class TestViewportConfig:
    """Tests for ViewportConfig model."""

    def test_default_values(self):
        config = ViewportConfig()
        assert config.width == 1920
        assert config.height == 1080

    def test_as_dict(self):
        assert ViewportConfig(width=800, height=600).as_dict() == {"width": 800, "height": 600}

    def test_rejects_non_positive(self):
        with pytest.raises(ValidationError):
            ViewportConfig(width=0)


class TestBrowserConfig:

    def test_defaults_carry_ci_flags(self):
        config = BrowserConfig()
        assert config.headless is True
        assert config.flags == CI_BROWSER_FLAGS
        assert "--no-sandbox" in config.flags
        assert "--use-angle=swiftshader" in config.flags

    def test_flags_are_not_shared(self):
        a = BrowserConfig()
        a.flags.append("--foo")
        assert "--foo" not in BrowserConfig().flags


class TestStabilizeConfig:

    def test_default_uses_ready_expression(self):
        config = StabilizeConfig()
        assert config.ready_expression == "window.renderComplete === true"
        assert config.ready_timeout_ms > 0

    def test_rejects_negative_delay(self):
        with pytest.raises(ValidationError):
            StabilizeConfig(settle_delay_ms=-1)


class TestCompareConfig:

    def test_strict_by_default(self):
        assert CompareConfig().strict is True

    @pytest.mark.parametrize("kwargs", [{"pixel_threshold": 256}, {"max_diff_ratio": 1.5}])
    def test_rejects_out_of_range(self, kwargs):
        with pytest.raises(ValidationError):
            CompareConfig(**kwargs)


class TestCheckerConfig:
    """Tests for the top-level CheckerConfig."""

    def test_default_values(self):
        config = CheckerConfig()
        assert config.strict_baseline is True
        assert config.serve_dir == "tests/render_test"
        assert config.port == 8080
        assert config.page == "index.html"
        assert config.fail_on_error is True
        assert config.report_formats == ["json"]

    def test_artifact_paths_resolve_against_serve_dir(self):
        config = CheckerConfig()
        assert config.baseline_path == Path("tests/render_test/baseline.png")
        assert config.capture_path == Path("tests/render_test/new.png")
        assert config.diff_path == Path("tests/render_test/diff.png")
        assert config.registry_path == Path("tests/render_test/baselines.json")

    def test_absolute_artifact_path_kept(self, tmp_path):
        config = CheckerConfig(diff_image=str(tmp_path / "out" / "diff.png"))
        assert config.diff_path == tmp_path / "out" / "diff.png"

    def test_rejects_invalid_port(self):
        with pytest.raises(ValidationError):
            CheckerConfig(port=70000)

    def test_rejects_unknown_report_format(self):
        with pytest.raises(ValidationError, match="html"):
            CheckerConfig(report_formats=["json", "html"])

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "render-check.json"
        original = CheckerConfig(port=9000, compare=CompareConfig(strict=False, pixel_threshold=8))
        original.save(path)

        data = json.loads(path.read_text())
        assert data["port"] == 9000

        loaded = CheckerConfig.load(path)
        assert loaded == original

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CheckerConfig.load(tmp_path / "missing.json")


class TestCheckResult:
    """Exit code contract."""

    def test_pass_exits_zero(self, passing_result):
        assert passing_result.passed is True
        assert passing_result.exit_code == 0

    def test_fail_exits_one(self, failing_result):
        assert failing_result.exit_code == 1

    def test_error_exits_two(self, error_result):
        assert error_result.exit_code == 2

    def test_error_tolerated_when_configured(self, error_result):
        lenient = error_result.model_copy(update={"fail_on_error": False})
        assert lenient.exit_code == 0

    def test_diff_ratio(self):
        c = ImageComparison(equal=False, reference_size=(10, 10), current_size=(10, 10),
                            diff_pixels=5, total_pixels=100)
        assert c.diff_ratio == 0.05
        assert c.size_mismatch is False

    def test_diff_ratio_empty(self):
        c = ImageComparison(equal=True, reference_size=(0, 0), current_size=(0, 0))
        assert c.diff_ratio == 0.0

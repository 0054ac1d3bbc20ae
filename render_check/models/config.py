"""Configuration models for the render checker."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = "render-check.json"

# Flags for running Chromium inside Docker/CI without a GPU
CI_BROWSER_FLAGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--use-gl=angle",
    "--use-angle=swiftshader",
    "--use-vulkan=off",
    "--mute-audio",
]


class ViewportConfig(BaseModel):
    width: int = 1920
    height: int = 1080

    @field_validator("width", "height")
    @classmethod
    def positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("viewport dimensions must be positive")
        return v

    def as_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


class BrowserConfig(BaseModel):
    headless: bool = True
    flags: list[str] = Field(default_factory=lambda: list(CI_BROWSER_FLAGS))
    executable_path: Optional[str] = None
    launch_timeout_ms: int = 60000


class StabilizeConfig(BaseModel):
    # JS expression polled until truthy. The page under test must opt in by
    # setting window.renderComplete = true once drawn, or the run times out.
    # None falls back to settle_delay_ms alone.
    ready_expression: Optional[str] = "window.renderComplete === true"
    ready_timeout_ms: int = 30000
    settle_delay_ms: int = 0
    navigation_timeout_ms: int = 30000

    @field_validator("ready_timeout_ms", "settle_delay_ms", "navigation_timeout_ms")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("timeouts and delays must not be negative")
        return v


class CompareConfig(BaseModel):
    strict: bool = True
    # Only used when strict is False
    pixel_threshold: int = 0
    max_diff_ratio: float = 0.0

    @field_validator("pixel_threshold")
    @classmethod
    def channel_range(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("pixel_threshold must be between 0 and 255")
        return v

    @field_validator("max_diff_ratio")
    @classmethod
    def ratio_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("max_diff_ratio must be between 0 and 1")
        return v


class CheckerConfig(BaseModel):
    # Page under test
    serve_dir: str = "tests/render_test"
    host: str = "localhost"
    port: int = 8080
    page: str = "index.html"

    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    stabilize: StabilizeConfig = Field(default_factory=StabilizeConfig)
    compare: CompareConfig = Field(default_factory=CompareConfig)

    # Artifacts, relative paths resolve against serve_dir
    baseline_image: str = "baseline.png"
    capture_image: str = "new.png"
    diff_image: str = "diff.png"
    baseline_registry: str = "baselines.json"

    # Refuse to compare against a baseline whose hash differs from the approved one
    strict_baseline: bool = True

    # Exit with a failure code when the check errors out instead of comparing
    fail_on_error: bool = True

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["json"])
    report_output_dir: str = "reports/render"

    @field_validator("port")
    @classmethod
    def valid_port(cls, v: int) -> int:
        if not 0 <= v <= 65535:
            raise ValueError("port must be between 0 and 65535")
        return v

    @field_validator("report_formats")
    @classmethod
    def known_formats(cls, v: list[str]) -> list[str]:
        unknown = [f for f in v if f not in ("json", "junit")]
        if unknown:
            raise ValueError(f"Unknown report format(s): {', '.join(unknown)}")
        return v

    def _resolve(self, name: str) -> Path:
        path = Path(name)
        if path.is_absolute():
            return path
        return Path(self.serve_dir) / path

    @property
    def baseline_path(self) -> Path:
        return self._resolve(self.baseline_image)

    @property
    def capture_path(self) -> Path:
        return self._resolve(self.capture_image)

    @property
    def diff_path(self) -> Path:
        return self._resolve(self.diff_image)

    @property
    def registry_path(self) -> Path:
        return self._resolve(self.baseline_registry)

    @classmethod
    def load(cls, path: str | Path) -> "CheckerConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

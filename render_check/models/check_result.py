"""Result data structures produced by the render checker."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

Verdict = Literal["pass", "fail", "error"]

EXIT_PASS = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


class ImageComparison(BaseModel):
    """Outcome of comparing a captured image against its reference."""
    equal: bool
    strict: bool = True
    reference_size: tuple[int, int]
    current_size: tuple[int, int]
    diff_pixels: int = 0
    total_pixels: int = 0

    @property
    def size_mismatch(self) -> bool:
        return self.reference_size != self.current_size

    @property
    def diff_ratio(self) -> float:
        if self.total_pixels == 0:
            return 0.0
        return self.diff_pixels / self.total_pixels


class CheckResult(BaseModel):
    run_id: str
    url: str
    verdict: Verdict
    started_at: str
    completed_at: str = ""
    duration_seconds: float = 0.0
    baseline_path: str
    capture_path: str
    diff_path: str
    comparison: Optional[ImageComparison] = None
    error: Optional[str] = None
    fail_on_error: bool = True

    @property
    def passed(self) -> bool:
        return self.verdict == "pass"

    @property
    def exit_code(self) -> int:
        if self.verdict == "fail":
            return EXIT_MISMATCH
        if self.verdict == "error" and self.fail_on_error:
            return EXIT_ERROR
        return EXIT_PASS

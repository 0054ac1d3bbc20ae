"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from render_check.models.check_result import CheckResult


def generate_json_report(result: CheckResult, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    report = result.model_dump()
    report["exit_code"] = result.exit_code
    if result.comparison is not None:
        report["comparison"]["diff_ratio"] = round(result.comparison.diff_ratio, 6)

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)

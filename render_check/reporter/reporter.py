"""Report generation orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from render_check.models.check_result import CheckResult
from render_check.models.config import CheckerConfig

from .json_report import generate_json_report
from .junit_report import generate_junit_report

logger = logging.getLogger(__name__)


class Reporter:
    """Writes check results in the configured report formats."""

    def __init__(self, config: CheckerConfig):
        self.config = config

    def generate_reports(self, result: CheckResult, output_dir: Path | None = None) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}

        if "json" in self.config.report_formats:
            path = out_dir / f"report_{result.run_id}.json"
            generate_json_report(result, path)
            generated["json"] = str(path)
            logger.debug("JSON report: %s", path)

        if "junit" in self.config.report_formats:
            path = out_dir / "junit.xml"
            generate_junit_report(result, path)
            generated["junit"] = str(path)
            logger.debug("JUnit report: %s", path)

        return generated

"""JUnit XML output for CI test report collectors."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from render_check.models.check_result import CheckResult

SUITE_NAME = "render-check"


def _failure_message(result: CheckResult) -> str:
    comparison = result.comparison
    if comparison is None:
        return "Render test failed"
    if comparison.size_mismatch:
        return (
            f"Size mismatch: baseline {comparison.reference_size[0]}x{comparison.reference_size[1]}, "
            f"capture {comparison.current_size[0]}x{comparison.current_size[1]}"
        )
    return f"{comparison.diff_pixels} of {comparison.total_pixels} pixels differ. See {result.diff_path}"


def generate_junit_report(result: CheckResult, output_path: Path) -> None:
    """Write a single-testcase JUnit XML file."""
    failures = 1 if result.verdict == "fail" else 0
    errors = 1 if result.verdict == "error" else 0

    suite = ET.Element("testsuite", {
        "name": SUITE_NAME,
        "tests": "1",
        "failures": str(failures),
        "errors": str(errors),
        "time": f"{result.duration_seconds:.3f}",
        "timestamp": result.started_at,
    })
    case = ET.SubElement(suite, "testcase", {
        "classname": SUITE_NAME,
        "name": result.url,
        "time": f"{result.duration_seconds:.3f}",
    })

    if result.verdict == "fail":
        failure = ET.SubElement(case, "failure", {"message": _failure_message(result)})
        failure.text = f"baseline={result.baseline_path}\ncapture={result.capture_path}\ndiff={result.diff_path}"
    elif result.verdict == "error":
        error = ET.SubElement(case, "error", {"message": result.error or "unknown error"})
        error.text = result.error or ""

    ET.SubElement(case, "system-out").text = f"run_id={result.run_id}"

    tree = ET.ElementTree(suite)
    ET.indent(tree)
    tree.write(output_path, encoding="utf-8", xml_declaration=True)

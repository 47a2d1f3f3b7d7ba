"""
scripts/health/report.py — Hand the finished scan to the reporting host.

The host reads exactly one JSON document from stdout, so nothing else may
be printed there. Diagnostics go to stderr.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from typing import IO, TYPE_CHECKING, Any

if TYPE_CHECKING:
    from scripts.health import ScanReport


def report_to_dict(report: ScanReport) -> dict[str, Any]:
    checks = []
    for check in report.checks:
        entry = asdict(check)
        if not entry.get("remediation"):
            entry.pop("remediation", None)
        checks.append(entry)
    return {"plugin_id": report.plugin_id, "checks": checks}


def print_report(report: ScanReport, stream: IO[str] | None = None) -> None:
    out = stream if stream is not None else sys.stdout
    json.dump(report_to_dict(report), out, indent=2)
    out.write("\n")
    out.flush()

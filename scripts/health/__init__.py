"""
scripts/health — Proxmox VE health checks for the reporting host.

The evaluator in cluster.py turns a ClusterSource into a list of
CheckResult objects; scan.py wraps them in a ScanReport for report.py.

Usage:
    from scripts.health import CheckResult, ScanReport
    from scripts.health.cluster import run_checks
"""

from dataclasses import dataclass, field

PLUGIN_ID = "provider-proxmox"


@dataclass
class CheckResult:
    id: str
    name: str
    description: str
    passed: bool
    score: int
    max_score: int
    remediation: str | None = None


@dataclass
class ScanReport:
    plugin_id: str
    checks: list[CheckResult] = field(default_factory=list)

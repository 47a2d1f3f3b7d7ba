"""
scripts/health/cluster.py — Proxmox cluster, node and storage checks.

Order of the returned list is fixed: version, then every node, then every
eligible storage volume (node order outer, volume order inner). Failures are
graded:
  - probe fails          → ConnectivityError, no results at all
  - node listing fails   → stop, return the version check
  - one node's storage   → warn on stderr, skip that node, keep going

The evaluator owns no timeout or deadline. It blocks with each source call;
ProxmoxClient bounds every request and, optionally, the whole scan.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from scripts.health import CheckResult
from scripts.health.source import DataSourceError

if TYPE_CHECKING:
    from scripts.health.source import ClusterSource, NodeStatus, StorageVolume

VERSION_MAX_SCORE = 5
NODE_MAX_SCORE = 20
STORAGE_MAX_SCORE = 10
STORAGE_USAGE_THRESHOLD_PCT = 90.0
ELIGIBLE_STORAGE_TYPES = frozenset({"zfspool", "dir", "lvm", "nfs"})
GIB = 1024**3

NODE_REMEDIATION = "Start the node or check network connectivity."
STORAGE_REMEDIATION = "Expand storage or delete old backups/ISOs."


class ConnectivityError(DataSourceError):
    """The version probe failed; the scan cannot produce a report."""


def run_checks(source: ClusterSource) -> list[CheckResult]:
    try:
        version = source.probe()
    except DataSourceError as exc:
        raise ConnectivityError(str(exc)) from exc

    results = [_check_version(version)]

    try:
        nodes = source.list_nodes()
    except DataSourceError as exc:
        print(f"[WARN] Failed to fetch nodes: {exc}", file=sys.stderr)
        return results

    results.extend(_check_node(node) for node in nodes)

    for node in nodes:
        try:
            volumes = source.list_storage(node.node)
        except DataSourceError as exc:
            print(f"[WARN] Failed to read storage for node {node.node}: {exc}", file=sys.stderr)
            continue
        results.extend(
            _check_storage(node.node, volume)
            for volume in volumes
            if volume.type in ELIGIBLE_STORAGE_TYPES
        )

    return results


def _check_version(version: str) -> CheckResult:
    return CheckResult(
        id="PVE-VER",
        name="Proxmox Version",
        description=f"Connected to Proxmox {version}",
        passed=True,
        score=VERSION_MAX_SCORE,
        max_score=VERSION_MAX_SCORE,
    )


def _check_node(node: NodeStatus) -> CheckResult:
    online = node.status == "online"
    return CheckResult(
        id=f"PVE-NODE-{node.node}",
        name=f"Node Status: {node.node}",
        description=f"Checking if node {node.node} is online. CPU: {node.cpu * 100:.1f}%",
        passed=online,
        score=NODE_MAX_SCORE if online else 0,
        max_score=NODE_MAX_SCORE,
        remediation=NODE_REMEDIATION,
    )


def usage_percent(volume: StorageVolume) -> float:
    """Used/total as a percentage; 0.0 when the total is unknown. Not clamped."""
    if volume.total > 0:
        return volume.used / volume.total * 100
    return 0.0


def free_gib_truncated(volume: StorageVolume) -> int:
    """Free bytes in whole GiB, truncated toward zero (used > total gives 0 or less)."""
    free = volume.total - volume.used
    if free >= 0:
        return free // GIB
    return -(-free // GIB)


def _check_storage(node_name: str, volume: StorageVolume) -> CheckResult:
    pct = usage_percent(volume)
    passed = pct < STORAGE_USAGE_THRESHOLD_PCT
    free_gib = free_gib_truncated(volume)
    return CheckResult(
        id=f"PVE-DISK-{node_name}-{volume.storage}",
        name=f"Storage: {volume.storage} on {node_name}",
        description=f"Usage: {pct:.1f}% ({free_gib} GB free)",
        passed=passed,
        score=STORAGE_MAX_SCORE if passed else 0,
        max_score=STORAGE_MAX_SCORE,
        remediation=STORAGE_REMEDIATION,
    )

#!/usr/bin/env python3
"""
scripts/scan.py — Proxmox VE health scan entry point for the reporting host.

Reads connection settings, runs the cluster checks and prints one JSON
ScanReport on stdout.

Exit codes:
  0  report printed (even if checks failed or some stages were degraded)
  1  configuration missing/invalid, or the cluster could not be reached;
     no report is printed

Usage:
    python3 scripts/scan.py                   # reads .env from the cwd
    python3 scripts/scan.py --env-file lab.env

Importable (used by tests):
    from scripts.scan import main
    exit_code = main(["--env-file", "/dev/null"])
"""

from __future__ import annotations

import argparse
import pathlib
import sys

# Add project root to path so health modules and config are importable
_ROOT = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(_ROOT))

from pydantic import ValidationError  # noqa: E402

from config.settings import Settings, load_settings  # noqa: E402
from scripts.health import PLUGIN_ID, ScanReport  # noqa: E402
from scripts.health.cluster import ConnectivityError, run_checks  # noqa: E402
from scripts.health.proxmox import ProxmoxClient  # noqa: E402
from scripts.health.report import print_report  # noqa: E402
from scripts.health.source import ClusterSource  # noqa: E402


def build_source(cfg: Settings) -> ClusterSource:
    return ProxmoxClient.from_settings(cfg)


def scan(source: ClusterSource) -> ScanReport:
    """Run every check against source. Raises ConnectivityError if the probe fails."""
    return ScanReport(plugin_id=PLUGIN_ID, checks=run_checks(source))


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan a Proxmox VE cluster and print a health report.")
    parser.add_argument("--env-file", default=".env", help="optional env file (default: .env)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        cfg = load_settings(args.env_file)
    except ValidationError as exc:
        print("ERROR: Invalid Proxmox configuration", file=sys.stderr)
        print(str(exc), file=sys.stderr)
        return 1

    if not cfg.is_complete:
        print("ERROR: Missing Proxmox configuration (URL, TOKEN_ID, SECRET)", file=sys.stderr)
        return 1

    try:
        report = scan(build_source(cfg))
    except ConnectivityError as exc:
        print(f"ERROR: Failed to connect to Proxmox: {exc}", file=sys.stderr)
        return 1

    print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())

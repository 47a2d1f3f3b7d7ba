"""
scripts/health/source.py — Data the evaluator consumes and the seam it reads it through.

ClusterSource is the only thing cluster.run_checks() talks to. ProxmoxClient
implements it against the REST API; tests implement it with plain fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class DataSourceError(Exception):
    """A single data-source call failed (network, HTTP status, bad payload)."""


@dataclass
class NodeStatus:
    node: str
    status: str
    cpu: float = 0.0


@dataclass
class StorageVolume:
    storage: str
    type: str
    total: int = 0
    used: int = 0


class ClusterSource(Protocol):
    def probe(self) -> str:
        """Return the cluster release string, or raise DataSourceError."""
        ...

    def list_nodes(self) -> list[NodeStatus]: ...

    def list_storage(self, node: str) -> list[StorageVolume]: ...

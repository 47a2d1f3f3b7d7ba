"""
scripts/health/proxmox.py — Proxmox VE REST API client.

Implements ClusterSource against /api2/json using an API token. Every
failure (unreachable host, HTTP error, timeout, bad JSON) is raised as
DataSourceError; nothing is retried here.

Each request is bounded by timeout_seconds. When deadline_seconds is set,
the whole scan is bounded too: the clock starts with the first request and
each later request gets at most the time that is left.
"""

from __future__ import annotations

import http.client
import json
import ssl
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import TYPE_CHECKING, Any, Callable

from scripts.health.source import DataSourceError, NodeStatus, StorageVolume

if TYPE_CHECKING:
    from config.settings import Settings


class ProxmoxClient:
    def __init__(
        self,
        api_url: str,
        token_id: str,
        secret: str,
        verify_tls: bool = False,
        timeout_seconds: int = 10,
        deadline_seconds: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.deadline_seconds = deadline_seconds
        self._clock = clock
        self._deadline: float | None = None
        self._headers = {
            "Authorization": f"PVEAPIToken={token_id}={secret}",
            "Accept": "application/json",
        }
        self._ssl_context = ssl.create_default_context()
        if not verify_tls:
            self._ssl_context.check_hostname = False
            self._ssl_context.verify_mode = ssl.CERT_NONE

    @classmethod
    def from_settings(cls, cfg: Settings) -> ProxmoxClient:
        return cls(
            cfg.api_url,
            cfg.GOHL_CONFIG_TOKEN_ID or "",
            cfg.GOHL_CONFIG_SECRET or "",
            verify_tls=cfg.PVE_VERIFY_TLS,
            timeout_seconds=cfg.PVE_TIMEOUT_SECONDS,
            deadline_seconds=cfg.PVE_SCAN_DEADLINE_SECONDS,
        )

    # -------------------------------------------------------------------------
    # ClusterSource
    # -------------------------------------------------------------------------

    def probe(self) -> str:
        data = self._get("/version")
        if not isinstance(data, dict) or "release" not in data:
            raise DataSourceError("unexpected /version payload (no release)")
        return str(data["release"])

    def list_nodes(self) -> list[NodeStatus]:
        return [_node_from_json(item) for item in self._get_list("/nodes")]

    def list_storage(self, node: str) -> list[StorageVolume]:
        path = f"/nodes/{urllib.parse.quote(node, safe='')}/storage"
        return [_storage_from_json(item) for item in self._get_list(path)]

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def _request_timeout(self, path: str) -> float:
        """Per-request timeout, shortened to whatever the scan deadline leaves."""
        if not self.deadline_seconds:
            return self.timeout_seconds
        now = self._clock()
        if self._deadline is None:
            self._deadline = now + self.deadline_seconds
        remaining = self._deadline - now
        if remaining <= 0:
            raise DataSourceError(f"GET {path} skipped: scan deadline ({self.deadline_seconds}s) exceeded")
        return min(self.timeout_seconds, remaining)

    def _get(self, path: str) -> Any:
        url = f"{self.api_url}{path}"
        request = urllib.request.Request(url, headers=self._headers)
        timeout = self._request_timeout(path)
        try:
            with urllib.request.urlopen(
                request, timeout=timeout, context=self._ssl_context
            ) as resp:
                payload = json.loads(resp.read())
        except urllib.error.HTTPError as e:
            raise DataSourceError(f"GET {path} returned HTTP {e.code}: {e.reason}") from e
        except urllib.error.URLError as e:
            raise DataSourceError(f"{url} not reachable: {e.reason}") from e
        except TimeoutError as e:
            raise DataSourceError(f"GET {path} timed out ({timeout:g}s)") from e
        except OSError as e:
            raise DataSourceError(f"GET {path} failed: {e}") from e
        except http.client.HTTPException as e:
            raise DataSourceError(f"GET {path} failed: {e!r}") from e
        except ValueError as e:
            raise DataSourceError(f"GET {path} returned invalid JSON: {e}") from e

        if not isinstance(payload, dict) or "data" not in payload:
            raise DataSourceError(f"GET {path} returned no 'data' envelope")
        return payload["data"]

    def _get_list(self, path: str) -> list[dict[str, Any]]:
        data = self._get(path)
        if not isinstance(data, list):
            raise DataSourceError(f"GET {path} expected a list, got {type(data).__name__}")
        return [item for item in data if isinstance(item, dict)]


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _node_from_json(item: dict[str, Any]) -> NodeStatus:
    return NodeStatus(
        node=str(item.get("node", "")),
        status=str(item.get("status", "")),
        cpu=_as_float(item.get("cpu")),
    )


def _storage_from_json(item: dict[str, Any]) -> StorageVolume:
    return StorageVolume(
        storage=str(item.get("storage", "")),
        type=str(item.get("type", "")),
        total=_as_int(item.get("total")),
        used=_as_int(item.get("used")),
    )

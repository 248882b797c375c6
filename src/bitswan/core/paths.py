"""Configuration directory layout and the ingress ownership index."""

import json
import logging
import os
import platform
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def get_app_data_dir() -> Path:
    """Get the bitswan configuration directory based on OS.

    Returns:
        Path to the configuration directory.
        - Linux/macOS: ~/.config/bitswan
        - Windows: %APPDATA%/bitswan
        ``BITSWAN_CONFIG_DIR`` overrides both.
    """
    override = os.environ.get("BITSWAN_CONFIG_DIR")
    if override:
        return Path(override)

    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "bitswan"
        return Path.home() / "AppData" / "Roaming" / "bitswan"

    return Path.home() / ".config" / "bitswan"


def get_config_path() -> Path:
    """Get the ingress configuration file path."""
    return get_app_data_dir() / "ingress.json"


def get_caddy_dir() -> Path:
    """Get the directory holding the proxy's Caddyfile and state."""
    return get_app_data_dir() / "caddy"


def get_caddy_certs_dir(domain: str | None = None) -> Path:
    """Get the host directory mounted as ``/tls`` in the proxy.

    Args:
        domain: Optional domain subdirectory.

    Returns:
        Path to the certificates directory.
    """
    certs_dir = get_caddy_dir() / "certs"
    if domain:
        return certs_dir / domain
    return certs_dir


def get_index_path() -> Path:
    """Get the ingress ownership index path."""
    return get_app_data_dir() / "ingress" / "index.json"


class IngressIndex:
    """Records which routes and TLS objects each workspace owns.

    The proxy stores no ownership information, so teardown relies on this
    record to delete exactly what a workspace registered.
    """

    def __init__(self, index_path: Path | None = None) -> None:
        """Initialize the index.

        Args:
            index_path: Path to the index file. Uses default if None.
        """
        self._index_path = index_path or get_index_path()
        self._data: dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> Path:
        """Get the index file path."""
        return self._index_path

    def _load(self) -> None:
        """Load the index from file.

        An unreadable index starts empty and is overwritten on the next
        save, so teardown falls back to conventional hostnames.
        """
        self._data = {}
        if self._index_path.exists():
            try:
                data = json.loads(self._index_path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(
                    "Ownership index %s is unreadable, starting empty: %s",
                    self._index_path,
                    e,
                )
                data = {}
            if isinstance(data, dict):
                self._data = data
            else:
                logger.warning(
                    "Ownership index %s is not a JSON object, starting empty",
                    self._index_path,
                )
        self._data.setdefault("workspaces", {})

    def _save(self) -> None:
        """Save the index to file."""
        self._index_path.parent.mkdir(parents=True, exist_ok=True)
        self._index_path.write_text(
            json.dumps(self._data, indent=2, default=str),
            encoding="utf-8",
        )

    def _entry(self, workspace: str, domain: str | None = None) -> dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        workspaces = self._data["workspaces"]
        entry = workspaces.setdefault(
            workspace,
            {"domain": domain, "routes": {}, "tls": [], "created_at": now},
        )
        if domain:
            entry["domain"] = domain
        entry["updated_at"] = now
        return entry

    @property
    def workspaces(self) -> list[str]:
        """Get names of all workspaces with recorded ingress objects."""
        return sorted(self._data["workspaces"])

    def get(self, workspace: str) -> dict[str, Any] | None:
        """Get the record of a workspace.

        Args:
            workspace: Workspace name.

        Returns:
            Record with ``domain``, ``routes`` (hostname -> ID) and ``tls``
            (IDs), or None if nothing is recorded.
        """
        return self._data["workspaces"].get(workspace)

    def domain(self, workspace: str) -> str | None:
        """Get the recorded domain of a workspace."""
        entry = self.get(workspace)
        return entry.get("domain") if entry else None

    def routes(self, workspace: str) -> dict[str, str]:
        """Get recorded routes of a workspace as hostname -> route ID."""
        entry = self.get(workspace)
        return dict(entry.get("routes", {})) if entry else {}

    def tls_ids(self, workspace: str) -> list[str]:
        """Get recorded TLS object IDs of a workspace."""
        entry = self.get(workspace)
        return list(entry.get("tls", [])) if entry else []

    def add_route(
        self, workspace: str, hostname: str, resource_id: str, domain: str | None = None
    ) -> None:
        """Record a route owned by a workspace."""
        entry = self._entry(workspace, domain)
        entry["routes"][hostname] = resource_id
        self._save()

    def remove_route(self, workspace: str, hostname: str) -> None:
        """Forget a route owned by a workspace."""
        entry = self.get(workspace)
        if entry and entry["routes"].pop(hostname, None) is not None:
            self._save()

    def set_tls(self, workspace: str, resource_ids: list[str]) -> None:
        """Record the TLS object IDs owned by a workspace."""
        entry = self._entry(workspace)
        entry["tls"] = list(resource_ids)
        self._save()

    def find_owner(self, hostname: str) -> str | None:
        """Find the workspace owning a hostname.

        Args:
            hostname: Route hostname.

        Returns:
            Workspace name, or None if no workspace recorded it.
        """
        for workspace, entry in self._data["workspaces"].items():
            if hostname in entry.get("routes", {}):
                return workspace
        return None

    def forget(self, workspace: str) -> bool:
        """Drop the record of a workspace.

        Returns:
            True if a record was removed.
        """
        if self._data["workspaces"].pop(workspace, None) is None:
            return False
        self._save()
        return True

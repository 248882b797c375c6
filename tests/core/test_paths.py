"""Tests for bitswan.core.paths module."""

import json
import logging
import platform
from pathlib import Path

import pytest

from bitswan.core.paths import (
    IngressIndex,
    get_app_data_dir,
    get_caddy_certs_dir,
    get_caddy_dir,
    get_config_path,
    get_index_path,
)


class TestGetAppDataDir:
    """Tests for get_app_data_dir function."""

    def test_override(self, config_dir: Path) -> None:
        """Test BITSWAN_CONFIG_DIR overrides the platform default."""
        assert get_app_data_dir() == config_dir

    def test_linux_uses_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test Linux uses ~/.config/bitswan."""
        monkeypatch.delenv("BITSWAN_CONFIG_DIR")
        monkeypatch.setattr(platform, "system", lambda: "Linux")
        result = get_app_data_dir()
        assert result == Path.home() / ".config" / "bitswan"

    def test_windows_uses_appdata(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test Windows uses APPDATA environment variable."""
        monkeypatch.delenv("BITSWAN_CONFIG_DIR")
        monkeypatch.setattr(platform, "system", lambda: "Windows")
        monkeypatch.setenv("APPDATA", "/appdata")
        assert get_app_data_dir() == Path("/appdata") / "bitswan"


class TestLayout:
    """Tests for the configuration directory layout."""

    def test_paths(self, config_dir: Path) -> None:
        """Test every path lives under the configuration directory."""
        assert get_config_path() == config_dir / "ingress.json"
        assert get_caddy_dir() == config_dir / "caddy"
        assert get_caddy_certs_dir() == config_dir / "caddy" / "certs"
        assert get_index_path() == config_dir / "ingress" / "index.json"

    def test_certs_dir_per_domain(self, config_dir: Path) -> None:
        """Test the per-domain certificates directory."""
        result = get_caddy_certs_dir("example.com")
        assert result == config_dir / "caddy" / "certs" / "example.com"


class TestIngressIndex:
    """Tests for IngressIndex class."""

    def test_default_path(self, config_dir: Path) -> None:
        """Test the index lives at the default location."""
        assert IngressIndex().path == config_dir / "ingress" / "index.json"

    def test_empty(self, index: IngressIndex) -> None:
        """Test a fresh index has no records."""
        assert index.workspaces == []
        assert index.get("ws") is None
        assert index.routes("ws") == {}
        assert index.tls_ids("ws") == []
        assert index.domain("ws") is None

    def test_add_route_persists(self, index: IngressIndex) -> None:
        """Test recorded routes survive reloading the index."""
        index.add_route("ws", "ws-gitops.example.com", "id1", domain="example.com")

        reloaded = IngressIndex(index.path)

        assert reloaded.workspaces == ["ws"]
        assert reloaded.routes("ws") == {"ws-gitops.example.com": "id1"}
        assert reloaded.domain("ws") == "example.com"
        assert "created_at" in reloaded.get("ws")

    def test_remove_route(self, index: IngressIndex) -> None:
        """Test forgetting a single route keeps the workspace record."""
        index.add_route("ws", "a.example.com", "id1", domain="example.com")
        index.add_route("ws", "b.example.com", "id2")

        index.remove_route("ws", "a.example.com")
        index.remove_route("unknown", "a.example.com")

        assert index.routes("ws") == {"b.example.com": "id2"}
        assert index.domain("ws") == "example.com"

    def test_set_tls(self, index: IngressIndex) -> None:
        """Test recording TLS object IDs."""
        index.set_tls("ws", ["ws_tlscerts", "ws_tlspolicy"])
        assert index.tls_ids("ws") == ["ws_tlscerts", "ws_tlspolicy"]

    def test_find_owner(self, index: IngressIndex) -> None:
        """Test looking up the workspace owning a hostname."""
        index.add_route("alpha", "alpha-gitops.example.com", "id1")
        index.add_route("beta", "beta-gitops.example.com", "id2")

        assert index.find_owner("beta-gitops.example.com") == "beta"
        assert index.find_owner("gamma-gitops.example.com") is None

    def test_forget(self, index: IngressIndex) -> None:
        """Test dropping a workspace record."""
        index.add_route("ws", "a.example.com", "id1")

        assert index.forget("ws") is True
        assert index.forget("ws") is False
        assert IngressIndex(index.path).workspaces == []

    def test_corrupt_file_starts_empty(
        self, temp_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test an unreadable index is treated as empty with a warning."""
        path = temp_dir / "index.json"
        path.write_text("{not json", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="bitswan.core.paths"):
            index = IngressIndex(path)

        assert index.workspaces == []
        assert "is unreadable" in caplog.text
        assert str(path) in caplog.text

    def test_non_object_file_starts_empty(
        self, temp_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test an index holding another JSON value is treated as empty."""
        path = temp_dir / "index.json"
        path.write_text("[]", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="bitswan.core.paths"):
            index = IngressIndex(path)

        assert index.workspaces == []
        assert "not a JSON object" in caplog.text

    def test_silent_when_missing(
        self, temp_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a missing index starts empty without a warning."""
        with caplog.at_level(logging.WARNING, logger="bitswan.core.paths"):
            index = IngressIndex(temp_dir / "index.json")

        assert index.workspaces == []
        assert caplog.records == []

    def test_file_format(self, index: IngressIndex) -> None:
        """Test the on-disk format."""
        index.add_route("ws", "a.example.com", "id1", domain="example.com")
        data = json.loads(index.path.read_text(encoding="utf-8"))
        entry = data["workspaces"]["ws"]
        assert entry["domain"] == "example.com"
        assert entry["routes"] == {"a.example.com": "id1"}
        assert entry["tls"] == []

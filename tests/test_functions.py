"""Tests for bitswan.functions module."""

import json
from pathlib import Path
from typing import Any, Generator
from unittest.mock import MagicMock, patch

import pytest

from bitswan import functions
from bitswan.core.paths import IngressIndex
from bitswan.core.types import ContainerState
from bitswan.ingress.memory import InMemoryControlPlane
from bitswan.ingress.routes import RouteManager

ROUTES = "/config/apps/http/servers/srv0/routes"
RESUMED_CONFIG = {
    "apps": {"http": {"servers": {"srv0": {"routes": [{"@id": "a"}]}}}}
}


class FakeControlPlane(InMemoryControlPlane):
    """In-memory control plane standing in for CaddyControlPlane."""

    base_url = "http://caddy.test:2019"

    def __init__(
        self, config: dict[str, Any] | None = None, answers: list[bool] | None = None
    ) -> None:
        super().__init__(config)
        self._answers = list(answers or [])

    def ping(self) -> bool:
        if self._answers:
            return self._answers.pop(0)
        return True

    def __enter__(self) -> "FakeControlPlane":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        pass


@pytest.fixture
def fake_control_plane() -> Generator[FakeControlPlane, None, None]:
    """Route all proxy calls to a bootstrapped in-memory control plane."""
    fake = FakeControlPlane()
    fake.put(ROUTES, [])
    fake.put("/config/apps/tls/certificates/load_files", [])
    fake.put("/config/apps/http/servers/srv0/tls_connection_policies", [])
    with patch("bitswan.functions.CaddyControlPlane", return_value=fake):
        yield fake


class TestLoadConfig:
    """Tests for load_config function."""

    def test_default_path(self, config_dir: Path) -> None:
        """Test the default configuration file is read."""
        config_dir.mkdir(parents=True)
        (config_dir / "ingress.json").write_text(
            json.dumps({"domain": "example.com"}), encoding="utf-8"
        )
        assert functions.load_config().get("domain") == "example.com"

    def test_missing_file(self, temp_dir: Path) -> None:
        """Test a missing file yields an empty configuration."""
        assert functions.load_config(temp_dir / "missing.json").data == {}


class TestInitIngress:
    """Tests for init_ingress function."""

    def test_starts_and_bootstraps(self, config_dir: Path) -> None:
        """Test a fresh proxy is started and bootstrapped."""
        fake = FakeControlPlane(answers=[False])
        runtime = MagicMock()

        with patch("bitswan.functions.CaddyControlPlane", return_value=fake):
            result = functions.init_ingress("example.com", runtime=runtime)

        assert result is True
        runtime.start.assert_called_once_with(config_dir / "caddy")
        assert fake.get(ROUTES) == []
        assert (config_dir / "caddy" / "Caddyfile").exists()
        assert (config_dir / "caddy" / "certs" / "example.com").is_dir()
        saved = json.loads((config_dir / "ingress.json").read_text(encoding="utf-8"))
        assert saved["domain"] == "example.com"

    def test_running_instance_left_alone(self) -> None:
        """Test an answering proxy is not restarted or reset."""
        fake = FakeControlPlane(answers=[True])
        runtime = MagicMock()

        with patch("bitswan.functions.CaddyControlPlane", return_value=fake):
            result = functions.init_ingress("example.com", runtime=runtime)

        assert result is False
        runtime.start.assert_not_called()
        assert fake.requests == []

    def test_force_resets_routes(self, fake_control_plane: FakeControlPlane) -> None:
        """Test force bootstraps an answering, populated proxy."""
        RouteManager(fake_control_plane).add_route("api.example.com", "api:8080")

        result = functions.init_ingress("example.com", force=True, runtime=MagicMock())

        assert result is True
        assert fake_control_plane.get(ROUTES) == []

    def test_resumed_proxy_kept(self) -> None:
        """Test a restarted proxy that resumed its routes is not reset."""
        fake = FakeControlPlane(RESUMED_CONFIG, answers=[False])
        runtime = MagicMock()
        runtime.get_state.return_value = ContainerState.STOPPED

        with patch("bitswan.functions.CaddyControlPlane", return_value=fake):
            result = functions.init_ingress("example.com", runtime=runtime)

        assert result is False
        runtime.start.assert_called_once()
        assert fake.get(ROUTES) == [{"@id": "a"}]
        assert [r for r in fake.requests if r[0] == "PUT"] == []

    def test_resumed_proxy_reset_with_force(self) -> None:
        """Test force bootstraps a restarted proxy that resumed its routes."""
        fake = FakeControlPlane(RESUMED_CONFIG, answers=[False])

        with patch("bitswan.functions.CaddyControlPlane", return_value=fake):
            result = functions.init_ingress(
                "example.com", force=True, runtime=MagicMock()
            )

        assert result is True
        assert fake.get(ROUTES) == []


class TestRouteFunctions:
    """Tests for route functions."""

    def test_add_list_remove(self, fake_control_plane: FakeControlPlane) -> None:
        """Test the ad-hoc route round trip."""
        functions.add_route("api.example.com", "api:8080")

        entries = functions.list_routes()
        assert [(e.hostname, e.upstream) for e in entries] == [
            ("api.example.com", "api:8080")
        ]

        functions.remove_route("api.example.com")
        assert functions.list_routes() == []

    def test_admin_url_override(
        self, fake_control_plane: FakeControlPlane
    ) -> None:
        """Test the admin URL override reaches the control plane."""
        with patch(
            "bitswan.functions.CaddyControlPlane", return_value=fake_control_plane
        ) as mock_cls:
            functions.list_routes(admin_url="http://other:2019")

        assert mock_cls.call_args.args[0].admin_url == "http://other:2019"


class TestCopyCertFiles:
    """Tests for copy_cert_files function."""

    def test_copy(self, temp_dir: Path, config_dir: Path) -> None:
        """Test certificate files are copied into the certs mount."""
        source = temp_dir / "certs"
        source.mkdir()
        (source / "full-chain.pem").write_text("chain", encoding="utf-8")
        (source / "private-key.pem").write_text("key", encoding="utf-8")

        copied = functions.copy_cert_files(source, "example.com")

        target = config_dir / "caddy" / "certs" / "example.com"
        assert copied == [target / "full-chain.pem", target / "private-key.pem"]
        assert (target / "private-key.pem").read_text(encoding="utf-8") == "key"

    def test_missing_dir(self, temp_dir: Path) -> None:
        """Test a missing directory is reported."""
        with pytest.raises(FileNotFoundError):
            functions.copy_cert_files(temp_dir / "missing", "example.com")


class TestWorkspaceFunctions:
    """Tests for workspace registration functions."""

    def test_register_and_unregister(
        self, fake_control_plane: FakeControlPlane
    ) -> None:
        """Test registering and unregistering a workspace."""
        routes = functions.register_workspace("ws", domain="example.com", couchdb=True)

        assert [r.hosts[0] for r in routes] == [
            "ws-gitops.example.com",
            "ws-editor.example.com",
            "ws--couchdb.example.com",
        ]
        assert IngressIndex().workspaces == ["ws"]

        report = functions.unregister_workspace("ws")

        assert report.success is True
        assert functions.list_routes() == []
        assert IngressIndex().workspaces == []

    def test_register_uses_configured_domain(
        self, fake_control_plane: FakeControlPlane, config_dir: Path
    ) -> None:
        """Test the domain saved by init is used by default."""
        config_dir.mkdir(parents=True)
        (config_dir / "ingress.json").write_text(
            json.dumps({"domain": "example.com"}), encoding="utf-8"
        )

        routes = functions.register_workspace("ws", editor=False)

        assert [r.hosts[0] for r in routes] == ["ws-gitops.example.com"]

    def test_register_without_domain(
        self, fake_control_plane: FakeControlPlane
    ) -> None:
        """Test registering without any domain fails."""
        with pytest.raises(ValueError, match="No domain"):
            functions.register_workspace("ws")

    def test_register_with_certs_dir(
        self, fake_control_plane: FakeControlPlane, temp_dir: Path, config_dir: Path
    ) -> None:
        """Test a certificates directory installs TLS."""
        source = temp_dir / "certs"
        source.mkdir()
        (source / "full-chain.pem").write_text("chain", encoding="utf-8")
        (source / "private-key.pem").write_text("key", encoding="utf-8")

        functions.register_workspace("ws", domain="example.com", certs_dir=source)

        target = config_dir / "caddy" / "certs" / "example.com"
        assert (target / "full-chain.pem").exists()
        policies = fake_control_plane.get(
            "/config/apps/http/servers/srv0/tls_connection_policies"
        )
        assert [p["@id"] for p in policies] == ["ws_tlspolicy"]

    def test_cleanup_workspaces(self, fake_control_plane: FakeControlPlane) -> None:
        """Test bulk cleanup of every registered workspace."""
        functions.register_workspace("alpha", domain="example.com")
        functions.register_workspace("beta", domain="example.com")

        reports = functions.cleanup_workspaces()

        assert sorted(reports) == ["alpha", "beta"]
        assert functions.list_routes() == []

"""Pytest fixtures and configuration."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock, patch

import pytest

from bitswan.core.paths import IngressIndex
from bitswan.core.types import IngressConfig
from bitswan.ingress.memory import InMemoryControlPlane


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture(autouse=True)
def config_dir(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the bitswan configuration directory at a temporary directory."""
    path = temp_dir / "config"
    monkeypatch.setenv("BITSWAN_CONFIG_DIR", str(path))
    monkeypatch.delenv("BITSWAN_CADDY_ADMIN_URL", raising=False)
    return path


@pytest.fixture
def ingress_config() -> IngressConfig:
    """Create an ingress configuration with fast retries."""
    return IngressConfig(
        admin_url="http://caddy.test:2019",
        timeout=1.0,
        max_retries=2,
        backoff_base=0.01,
        backoff_max=0.02,
    )


@pytest.fixture
def control_plane() -> InMemoryControlPlane:
    """Create a bootstrapped in-memory control plane."""
    return InMemoryControlPlane(
        {
            "apps": {
                "http": {
                    "servers": {
                        "srv0": {
                            "listen": [":80", ":443"],
                            "routes": [],
                            "tls_connection_policies": [],
                        }
                    }
                },
                "tls": {"certificates": {"load_files": []}},
            }
        }
    )


@pytest.fixture
def index(temp_dir: Path) -> IngressIndex:
    """Create an empty ownership index."""
    return IngressIndex(temp_dir / "index.json")


@pytest.fixture
def mock_docker_client() -> Generator[MagicMock, None, None]:
    """Create a mock Docker client."""
    with patch("docker.from_env") as mock:
        client = MagicMock()
        mock.return_value = client
        yield client

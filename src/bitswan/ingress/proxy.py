"""Runtime management of the ingress proxy container."""

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

import docker
from docker.errors import DockerException, NotFound
from docker.models.containers import Container

from bitswan.core.types import ContainerState, ProxyConfig
from bitswan.ingress.client import CaddyControlPlane

logger = logging.getLogger(__name__)


class DockerNotAvailableError(Exception):
    """Raised when Docker is not available or not running."""

    pass


class ProxyNotReadyError(Exception):
    """Raised when the proxy admin API does not come up in time."""

    pass


class ProxyRuntime(ABC):
    """Abstract base class for running the ingress proxy."""

    def __init__(self, config: ProxyConfig) -> None:
        """Initialize proxy runtime.

        Args:
            config: Proxy configuration.
        """
        self._config = config

    @property
    def config(self) -> ProxyConfig:
        """Get proxy configuration."""
        return self._config

    @abstractmethod
    def get_state(self) -> ContainerState:
        """Get the state of the proxy instance."""
        pass

    @abstractmethod
    def start(self, caddy_dir: Path) -> str:
        """Start the proxy with its state under caddy_dir.

        Args:
            caddy_dir: Directory holding the Caddyfile, data, config and certs.

        Returns:
            Instance ID.
        """
        pass


class DockerProxyRuntime(ProxyRuntime):
    """Runs the proxy as a Docker container attached to the workspace network."""

    def __init__(self, config: ProxyConfig) -> None:
        """Initialize Docker proxy runtime.

        Args:
            config: Proxy configuration.

        Raises:
            DockerNotAvailableError: If Docker is not available or not running.
        """
        super().__init__(config)
        try:
            self._client = docker.from_env()
        except DockerException as e:
            raise DockerNotAvailableError(
                "Docker is not available. Please ensure the Docker daemon is running.\n"
                f"Original error: {e}"
            ) from e

    def _get_container(self) -> Container | None:
        try:
            return self._client.containers.get(self._config.container_name)
        except NotFound:
            return None

    def ensure_network(self) -> None:
        """Create the shared workspace network if it does not exist."""
        if self._client.networks.list(names=[self._config.network]):
            logger.debug("Network '%s' exists", self._config.network)
            return
        self._client.networks.create(self._config.network, driver="bridge")
        logger.info("Created Docker network '%s'", self._config.network)

    def get_state(self) -> ContainerState:
        """Get proxy container state.

        Returns:
            Container state.
        """
        container = self._get_container()
        if container is None:
            return ContainerState.NOT_FOUND

        status = container.status
        if status == "running":
            return ContainerState.RUNNING
        elif status == "paused":
            return ContainerState.PAUSED
        elif status in ("created", "exited", "dead"):
            return ContainerState.STOPPED
        else:
            return ContainerState.ERROR

    def start(self, caddy_dir: Path) -> str:
        """Start the proxy container, creating it if needed.

        Args:
            caddy_dir: Directory holding the Caddyfile, data, config and certs.

        Returns:
            Container ID.
        """
        container = self._get_container()
        if container is not None:
            if container.status != "running":
                container.start()
            return container.id

        self.ensure_network()
        for name in ("data", "config", "certs"):
            (caddy_dir / name).mkdir(parents=True, exist_ok=True)

        container = self._client.containers.run(
            image=self._config.image,
            name=self._config.container_name,
            detach=True,
            restart_policy={"Name": "always"},
            ports=self._config.ports,
            network=self._config.network,
            volumes={
                str(caddy_dir / "Caddyfile"): {
                    "bind": "/etc/caddy/Caddyfile",
                    "mode": "z",
                },
                str(caddy_dir / "data"): {"bind": "/data", "mode": "z"},
                str(caddy_dir / "config"): {"bind": "/config", "mode": "z"},
                str(caddy_dir / "certs"): {"bind": "/tls", "mode": "z"},
            },
            entrypoint=[
                "caddy",
                "run",
                "--resume",
                "--config",
                "/etc/caddy/Caddyfile",
                "--adapter",
                "caddyfile",
            ],
            labels={"bitswan.managed": "true", "bitswan.role": "ingress"},
        )
        logger.info("Started proxy container %s", self._config.container_name)
        return container.id


def wait_until_ready(
    control_plane: CaddyControlPlane, timeout: float = 30.0, interval: float = 0.5
) -> None:
    """Wait for the proxy admin API to answer.

    Args:
        control_plane: Control plane of the proxy.
        timeout: Maximum time to wait in seconds.
        interval: Polling interval in seconds.

    Raises:
        ProxyNotReadyError: If the admin API does not answer in time.
    """
    deadline = time.monotonic() + timeout
    while not control_plane.ping():
        if time.monotonic() >= deadline:
            raise ProxyNotReadyError(
                f"proxy admin API at {control_plane.base_url} did not answer "
                f"within {timeout:.0f}s"
            )
        time.sleep(interval)

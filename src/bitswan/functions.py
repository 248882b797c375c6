"""Python API for bitswan ingress.

This module provides high-level functions for programming the ingress
proxy as a library. The CLI is a thin layer over these functions.
"""

import logging
import shutil
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from bitswan.core.config import Config
from bitswan.core.paths import (
    IngressIndex,
    get_caddy_certs_dir,
    get_caddy_dir,
    get_config_path,
)
from bitswan.core.types import IngressConfig, Route, RouteEntry
from bitswan.ingress.bootstrap import Bootstrapper
from bitswan.ingress.client import CaddyControlPlane
from bitswan.ingress.proxy import DockerProxyRuntime, ProxyRuntime, wait_until_ready
from bitswan.templates.caddyfile import CaddyfileTemplate
from bitswan.workspace.lifecycle import (
    TeardownReport,
    WorkspaceIngress,
    default_services,
)

logger = logging.getLogger(__name__)


def load_config(config_path: Path | None = None) -> Config:
    """Load the ingress configuration file.

    Args:
        config_path: Path to configuration file. Uses default if None.

    Returns:
        Config instance (empty if the file does not exist).
    """
    return Config.from_file(config_path or get_config_path())


@contextmanager
def ingress_context(
    config_path: Path | None = None,
    admin_url: str | None = None,
    index: IngressIndex | None = None,
) -> Generator[WorkspaceIngress, None, None]:
    """Context manager yielding a WorkspaceIngress bound to the proxy.

    Args:
        config_path: Path to configuration file.
        admin_url: Optional admin API URL override.
        index: Optional ownership index.

    Yields:
        WorkspaceIngress instance.
    """
    ingress_config = load_config(config_path).to_ingress_config(admin_url)
    with CaddyControlPlane(ingress_config) as control_plane:
        yield WorkspaceIngress(control_plane, index=index, config=ingress_config)


def init_ingress(
    domain: str,
    config_path: Path | None = None,
    admin_url: str | None = None,
    force: bool = False,
    runtime: ProxyRuntime | None = None,
) -> bool:
    """Start the ingress proxy and initialize its configuration.

    An instance that already answers on the admin API is left untouched
    unless force is set. A started instance that resumed routes from its
    saved configuration is kept as is; an empty one is bootstrapped.

    Args:
        domain: Ingress domain.
        config_path: Path to configuration file.
        admin_url: Optional admin API URL override.
        force: Reset the configuration of an already populated proxy.
        runtime: Proxy runtime. Uses Docker if None.

    Returns:
        True if the proxy configuration was initialized, False if an
        existing configuration was kept.
    """
    config_path = config_path or get_config_path()
    config = load_config(config_path)
    ingress_config = config.to_ingress_config(admin_url)

    caddy_dir = get_caddy_dir()
    caddy_dir.mkdir(parents=True, exist_ok=True)
    get_caddy_certs_dir(domain).mkdir(parents=True, exist_ok=True)
    CaddyfileTemplate.from_config(ingress_config.proxy).save(caddy_dir / "Caddyfile")

    config.set("domain", domain)
    config.save(config_path)

    with CaddyControlPlane(ingress_config) as control_plane:
        if control_plane.ping() and not force:
            logger.info("A running proxy instance with admin API found")
            return False

        if runtime is None:
            runtime = DockerProxyRuntime(ingress_config.proxy)
        logger.info("Starting proxy, container state: %s", runtime.get_state().value)
        runtime.start(caddy_dir)
        wait_until_ready(control_plane, timeout=ingress_config.proxy.startup_timeout)

        bootstrapper = Bootstrapper(
            control_plane, ingress_config.server_name, ingress_config.listen
        )
        # --resume restores the last config from the mounted config dir.
        route_count = 0 if force else bootstrapper.count_routes()
        if route_count:
            logger.info(
                "Proxy resumed with %d route(s); keeping its configuration",
                route_count,
            )
            return False
        bootstrapper.init_control_plane(force=force)
    return True


def copy_cert_files(certs_dir: Path, domain: str) -> list[Path]:
    """Copy certificate files into the directory mounted as ``/tls/<domain>``.

    Args:
        certs_dir: Directory containing ``full-chain.pem`` and ``private-key.pem``.
        domain: Domain the certificates were issued for.

    Returns:
        Paths of the copied files.
    """
    if not certs_dir.is_dir():
        raise FileNotFoundError(f"Certificates directory not found: {certs_dir}")

    target_dir = get_caddy_certs_dir(domain)
    target_dir.mkdir(parents=True, exist_ok=True)

    copied: list[Path] = []
    for cert_file in sorted(certs_dir.iterdir()):
        if not cert_file.is_file():
            continue
        destination = target_dir / cert_file.name
        shutil.copyfile(cert_file, destination)
        copied.append(destination)

    logger.info("Copied %d certificate file(s) to %s", len(copied), target_dir)
    return copied


def add_route(
    hostname: str,
    upstream: str,
    config_path: Path | None = None,
    admin_url: str | None = None,
) -> Route:
    """Route hostname to upstream, replacing any existing route for hostname."""
    with ingress_context(config_path, admin_url) as ingress:
        return ingress.add_route(hostname, upstream)


def remove_route(
    hostname: str,
    config_path: Path | None = None,
    admin_url: str | None = None,
    include_legacy: bool = False,
) -> None:
    """Remove the route for hostname."""
    with ingress_context(config_path, admin_url) as ingress:
        ingress.remove_route(hostname, include_legacy=include_legacy)


def list_routes(
    config_path: Path | None = None, admin_url: str | None = None
) -> list[RouteEntry]:
    """List routes configured on the proxy."""
    with ingress_context(config_path, admin_url) as ingress:
        return ingress.list_routes()


def register_workspace(
    workspace: str,
    domain: str | None = None,
    editor: bool = True,
    couchdb: bool = False,
    install_tls: bool = False,
    certs_dir: Path | None = None,
    config_path: Path | None = None,
    admin_url: str | None = None,
) -> list[Route]:
    """Expose a workspace's services through the ingress.

    Args:
        workspace: Workspace name.
        domain: Ingress domain. Uses the domain from ``ingress init`` if None.
        editor: Expose the browser editor.
        couchdb: Expose CouchDB.
        install_tls: Install the workspace's TLS certificate and policy.
        certs_dir: Directory with certificate files to copy into the proxy's
            certificate store first. Implies install_tls.
        config_path: Path to configuration file.
        admin_url: Optional admin API URL override.

    Returns:
        Routes written.
    """
    domain = domain or load_config(config_path).get("domain")
    if not domain:
        raise ValueError("No domain given and none configured by 'ingress init'")

    if certs_dir is not None:
        copy_cert_files(certs_dir, domain)
        install_tls = True

    services = default_services(workspace, editor=editor, couchdb=couchdb)
    with ingress_context(config_path, admin_url) as ingress:
        return ingress.register(
            workspace, domain, services=services, install_tls=install_tls
        )


def unregister_workspace(
    workspace: str,
    domain: str | None = None,
    config_path: Path | None = None,
    admin_url: str | None = None,
) -> TeardownReport:
    """Remove a workspace's routes and TLS objects."""
    domain = domain or load_config(config_path).get("domain")
    with ingress_context(config_path, admin_url) as ingress:
        return ingress.unregister(workspace, domain=domain)


def cleanup_workspaces(
    config_path: Path | None = None, admin_url: str | None = None
) -> dict[str, TeardownReport]:
    """Remove the ingress objects of every recorded workspace."""
    with ingress_context(config_path, admin_url) as ingress:
        return ingress.cleanup_all()


def is_proxy_running(ingress_config: IngressConfig | None = None) -> bool:
    """Check whether a proxy admin API answers."""
    with CaddyControlPlane(ingress_config) as control_plane:
        return control_plane.ping()

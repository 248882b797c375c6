"""Workspace ingress lifecycle: register, unregister and bulk cleanup."""

import logging
from dataclasses import dataclass, field

from bitswan.core.paths import IngressIndex
from bitswan.core.types import IngressConfig, Route, RouteEntry, ServiceEndpoint
from bitswan.ingress.base import ControlPlane
from bitswan.ingress.errors import RouteError
from bitswan.ingress.routes import RouteManager
from bitswan.ingress.tls import TlsManager

logger = logging.getLogger(__name__)

GITOPS_PORT = 8079
EDITOR_PORT = 9999
COUCHDB_PORT = 5984


def default_services(
    workspace: str, editor: bool = True, couchdb: bool = False
) -> list[ServiceEndpoint]:
    """Get the services a workspace exposes through the ingress.

    Args:
        workspace: Workspace name.
        editor: Include the browser editor.
        couchdb: Include the CouchDB auxiliary service.

    Returns:
        Service endpoints, GitOps first.
    """
    services = [
        ServiceEndpoint(name="gitops", upstream=f"{workspace}-gitops:{GITOPS_PORT}")
    ]
    if editor:
        services.append(
            ServiceEndpoint(name="editor", upstream=f"{workspace}-editor:{EDITOR_PORT}")
        )
    if couchdb:
        services.append(
            ServiceEndpoint(
                name="couchdb",
                upstream=f"{workspace}__couchdb:{COUCHDB_PORT}",
                separator="--",
            )
        )
    return services


@dataclass
class TeardownReport:
    """Result of removing a workspace's ingress objects."""

    workspace: str
    removed_routes: list[str] = field(default_factory=list)
    failed_routes: dict[str, str] = field(default_factory=dict)
    tls_errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check whether every deletion succeeded."""
        return not self.failed_routes and not self.tls_errors


class WorkspaceIngress:
    """Ties workspace lifecycle events to route and TLS management.

    Each workspace's routes and TLS objects are recorded in an
    IngressIndex when registered, so teardown deletes exactly those
    objects. Workspaces registered before the index existed are torn down
    by their conventional hostnames.
    """

    def __init__(
        self,
        control_plane: ControlPlane,
        index: IngressIndex | None = None,
        config: IngressConfig | None = None,
    ) -> None:
        """Initialize workspace ingress.

        Args:
            control_plane: Control plane to program.
            index: Ownership index. Uses the default location if None.
            config: Ingress configuration. Uses defaults if None.
        """
        self._config = config or IngressConfig()
        self._index = index if index is not None else IngressIndex()
        self._routes = RouteManager(control_plane, self._config.server_name)
        self._tls = TlsManager(control_plane, self._config.server_name)

    @property
    def index(self) -> IngressIndex:
        """Get the ownership index."""
        return self._index

    @property
    def routes(self) -> RouteManager:
        """Get the route manager."""
        return self._routes

    @property
    def tls(self) -> TlsManager:
        """Get the TLS manager."""
        return self._tls

    def register(
        self,
        workspace: str,
        domain: str,
        services: list[ServiceEndpoint] | None = None,
        install_tls: bool = False,
    ) -> list[Route]:
        """Expose a workspace's services and optionally install its TLS objects.

        Any failure aborts registration; routes already written stay
        recorded in the index so a later teardown removes them.

        Args:
            workspace: Workspace name.
            domain: Ingress domain.
            services: Services to expose. Defaults to GitOps and editor.
            install_tls: Install the workspace's certificate and SNI policy.

        Returns:
            Routes written.
        """
        if services is None:
            services = default_services(workspace)

        routes: list[Route] = []
        for service in services:
            hostname = service.hostname(workspace, domain)
            owner = self._index.find_owner(hostname)
            if owner is not None and owner != workspace:
                logger.warning(
                    "Hostname %s is recorded for workspace %s; taking it over",
                    hostname,
                    owner,
                )
                self._index.remove_route(owner, hostname)
            route = self._routes.add_route(hostname, service.upstream)
            self._index.add_route(workspace, hostname, route.id or "", domain=domain)
            routes.append(route)

        if install_tls:
            tls_ids = self._tls.install_certs(workspace, domain)
            self._index.set_tls(workspace, tls_ids)

        logger.info("Registered %d route(s) for workspace %s", len(routes), workspace)
        return routes

    def _teardown_hostnames(self, workspace: str, domain: str | None) -> list[str]:
        recorded = self._index.routes(workspace)
        if recorded:
            return list(recorded)

        domain = domain or self._index.domain(workspace)
        if not domain:
            logger.warning(
                "No recorded routes or domain for workspace %s; skipping routes",
                workspace,
            )
            return []
        return [s.hostname(workspace, domain) for s in default_services(workspace)]

    def unregister(self, workspace: str, domain: str | None = None) -> TeardownReport:
        """Remove all ingress objects of a workspace.

        Continues past individual failures so one broken route does not
        orphan the others. The index record is dropped only when every
        deletion succeeded.

        Args:
            workspace: Workspace name.
            domain: Domain for workspaces without an index record.

        Returns:
            Teardown report.
        """
        report = TeardownReport(workspace=workspace)

        for hostname in self._teardown_hostnames(workspace, domain):
            try:
                self._routes.remove_route(
                    hostname, include_legacy=self._config.legacy_ids
                )
            except RouteError as e:
                logger.warning("Failed to remove route for %s: %s", hostname, e)
                report.failed_routes[hostname] = str(e)
                continue
            self._index.remove_route(workspace, hostname)
            report.removed_routes.append(hostname)

        tls_ids = self._index.tls_ids(workspace) or None
        for error in self._tls.uninstall_certs(workspace, tls_ids):
            report.tls_errors.append(str(error))

        if report.success:
            self._index.forget(workspace)
        return report

    def cleanup_all(self) -> dict[str, TeardownReport]:
        """Unregister every workspace recorded in the index.

        Returns:
            Teardown report per workspace.
        """
        return {
            workspace: self.unregister(workspace)
            for workspace in self._index.workspaces
        }

    def add_route(self, hostname: str, upstream: str) -> Route:
        """Expose an arbitrary hostname outside the workspace naming convention."""
        return self._routes.add_route(hostname, upstream)

    def remove_route(self, hostname: str, include_legacy: bool = False) -> None:
        """Remove an arbitrary hostname's route."""
        self._routes.remove_route(hostname, include_legacy=include_legacy)

    def list_routes(self) -> list[RouteEntry]:
        """List all routes configured on the proxy."""
        return self._routes.list_routes()

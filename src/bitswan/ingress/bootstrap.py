"""One-time initialization of the proxy config tree."""

import logging
from typing import Any

from bitswan.ingress.base import ControlPaths, ControlPlane
from bitswan.ingress.errors import BootstrapRefusedError, StatusError

logger = logging.getLogger(__name__)

DEFAULT_LISTEN = [":80", ":443"]


class Bootstrapper:
    """Resets the proxy's route, listener and TLS collections.

    Bootstrapping replaces whole collections and is therefore only meant
    for a freshly started, empty proxy instance.
    """

    def __init__(
        self,
        control_plane: ControlPlane,
        server_name: str = "srv0",
        listen: list[str] | None = None,
    ) -> None:
        """Initialize bootstrapper.

        Args:
            control_plane: Control plane to program.
            server_name: HTTP server to create.
            listen: Listener addresses of the server.
        """
        self._control_plane = control_plane
        self._paths = ControlPaths(server_name)
        self._listen = list(listen) if listen is not None else list(DEFAULT_LISTEN)

    def count_routes(self) -> int:
        """Count routes currently configured on the proxy.

        Returns:
            Number of routes, 0 if the route collection does not exist yet.
        """
        try:
            routes = self._control_plane.get(self._paths.routes)
        except StatusError as e:
            if e.code in (400, 404):
                return 0
            raise
        return len(routes) if isinstance(routes, list) else 0

    def steps(self) -> list[tuple[str, Any]]:
        """Get the (path, payload) replacements performed, in order."""
        return [
            (self._paths.routes, []),
            (self._paths.listen, list(self._listen)),
            (self._paths.tls_load_files, []),
            (self._paths.tls_policies, []),
        ]

    def init_control_plane(self, force: bool = False) -> None:
        """Write empty collections and listener addresses to the proxy.

        Stops on the first failing write without undoing earlier ones.

        Args:
            force: Reset the proxy even if it already has routes.

        Raises:
            BootstrapRefusedError: If routes exist and force is False.
            IngressError: If a write fails.
        """
        if not force:
            route_count = self.count_routes()
            if route_count:
                raise BootstrapRefusedError(route_count)

        for path, payload in self.steps():
            logger.debug("PUT %s", path)
            self._control_plane.put(path, payload)

        logger.info("Proxy control plane initialized")

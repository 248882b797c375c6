"""Route management against the proxy control plane."""

import hashlib
import logging

from pydantic import ValidationError

from bitswan.core.types import (
    ReverseProxyHandler,
    Route,
    RouteEntry,
    RouteMatch,
    SubrouteHandler,
    Upstream,
)
from bitswan.ingress.base import ControlPaths, ControlPlane
from bitswan.ingress.errors import DecodeError, IngressError, RouteError

logger = logging.getLogger(__name__)

ROUTE_ID_HASH_LENGTH = 12


def legacy_route_id(hostname: str) -> str:
    """Compute the route ID used by earlier releases.

    Replaces every ``.`` and ``-`` with ``_``. This mapping is not
    injective: ``a-b.example.com`` and ``a.b.example.com`` share an ID.
    Only used to clean up routes registered by those releases.

    Args:
        hostname: Route hostname.

    Returns:
        Legacy route ID.
    """
    return hostname.replace(".", "_").replace("-", "_")


def route_id(hostname: str) -> str:
    """Compute the route ID for a hostname.

    The readable legacy form is suffixed with a SHA-256 digest of the
    lower-cased hostname, so distinct hostnames never share an ID while the
    same hostname always maps to the same ID.

    Args:
        hostname: Route hostname.

    Returns:
        Route ID.
    """
    normalized = hostname.strip().lower()
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
    return f"{legacy_route_id(normalized)}_{digest[:ROUTE_ID_HASH_LENGTH]}"


def build_route(hostname: str, upstream: str) -> Route:
    """Build a terminal route proxying hostname to upstream.

    Args:
        hostname: Hostname to match.
        upstream: Upstream address (``host:port``).

    Returns:
        Route with a subroute wrapping a single reverse proxy handler.
    """
    return Route(
        id=route_id(hostname),
        match=[RouteMatch(host=[hostname])],
        handle=[
            SubrouteHandler(
                routes=[
                    Route(
                        handle=[
                            ReverseProxyHandler(upstreams=[Upstream(dial=upstream)])
                        ]
                    )
                ]
            )
        ],
        terminal=True,
    )


def extract_upstreams(route: Route) -> list[str]:
    """Extract upstream addresses from a subroute -> reverse_proxy chain.

    Args:
        route: Route read back from the proxy.

    Returns:
        Upstream dial addresses, empty if the chain has any other shape.
    """
    if len(route.handle) != 1 or not isinstance(route.handle[0], SubrouteHandler):
        return []

    upstreams: list[str] = []
    for sub_route in route.handle[0].routes:
        for handler in sub_route.handle:
            if not isinstance(handler, ReverseProxyHandler):
                return []
            upstreams.extend(upstream.dial for upstream in handler.upstreams)
    return upstreams


class RouteManager:
    """Adds, removes and lists hostname routes."""

    def __init__(
        self, control_plane: ControlPlane, server_name: str = "srv0"
    ) -> None:
        """Initialize route manager.

        Args:
            control_plane: Control plane to program.
            server_name: HTTP server holding the routes.
        """
        self._control_plane = control_plane
        self._paths = ControlPaths(server_name)

    def add_route(self, hostname: str, upstream: str) -> Route:
        """Register a route, replacing any route already registered for hostname.

        Args:
            hostname: Hostname to match.
            upstream: Upstream address.

        Returns:
            The route that was written.

        Raises:
            RouteError: If the proxy rejects the write or cannot be reached.
        """
        route = build_route(hostname, upstream)
        try:
            self._control_plane.delete_id(route_id(hostname))
            self._control_plane.post(
                ControlPaths.append(self._paths.routes), [route.to_payload()]
            )
        except IngressError as e:
            raise RouteError(hostname, "add", e) from e

        logger.info("Added route: %s -> %s", hostname, upstream)
        return route

    def remove_route(self, hostname: str, include_legacy: bool = False) -> None:
        """Remove the route for hostname. Succeeds if it does not exist.

        Args:
            hostname: Route hostname.
            include_legacy: Also delete the route ID used by earlier releases.

        Raises:
            RouteError: If the proxy rejects the delete or cannot be reached.
        """
        ids = [route_id(hostname)]
        if include_legacy:
            ids.append(legacy_route_id(hostname))

        try:
            for resource_id in ids:
                self._control_plane.delete_id(resource_id)
        except IngressError as e:
            raise RouteError(hostname, "remove", e) from e

        logger.info("Removed route: %s", hostname)

    def get_routes(self) -> list[Route]:
        """Get the full route collection.

        Returns:
            Routes in proxy evaluation order.
        """
        data = self._control_plane.get(self._paths.routes)
        if data is None:
            return []
        if not isinstance(data, list):
            raise DecodeError(self._paths.routes, "route collection is not an array")
        try:
            return [Route.model_validate(item) for item in data]
        except ValidationError as e:
            raise DecodeError(self._paths.routes, str(e)) from e

    def list_routes(self) -> list[RouteEntry]:
        """List routes for display.

        Routes whose handler chain is not exactly subroute -> reverse_proxy
        are included with no upstreams, so they show as unmanaged.

        Returns:
            One entry per route.
        """
        return [
            RouteEntry(
                id=route.id,
                hosts=route.hosts,
                upstreams=extract_upstreams(route),
                terminal=route.terminal,
            )
            for route in self.get_routes()
        ]

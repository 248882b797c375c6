"""Abstract base class for proxy control planes."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from bitswan.ingress.errors import DecodeError

logger = logging.getLogger(__name__)


class ControlPaths:
    """Config-tree paths of the objects managed by this package."""

    def __init__(self, server_name: str = "srv0") -> None:
        """Initialize control paths.

        Args:
            server_name: Name of the HTTP server holding the routes.
        """
        self.server = f"/config/apps/http/servers/{server_name}"

    @property
    def routes(self) -> str:
        return f"{self.server}/routes"

    @property
    def listen(self) -> str:
        return f"{self.server}/listen"

    @property
    def tls_policies(self) -> str:
        return f"{self.server}/tls_connection_policies"

    @property
    def tls_load_files(self) -> str:
        return "/config/apps/tls/certificates/load_files"

    @staticmethod
    def append(path: str) -> str:
        """Get the append endpoint of a list node."""
        return f"{path}/..."


class ControlPlane(ABC):
    """Abstract base class for a proxy's configuration-tree control API.

    Paths address nodes of the proxy's JSON config tree
    (``/config/apps/http/...``) or objects by identifier (``/id/<id>``).
    A path ending in ``/...`` on POST appends every element of the
    payload array to the addressed list.
    """

    @abstractmethod
    def send(self, method: str, path: str, payload: Any = None) -> bytes:
        """Send one request to the control API.

        Args:
            method: HTTP verb.
            path: Path into the config tree.
            payload: Optional JSON-serializable body.

        Returns:
            Response body, verbatim.

        Raises:
            StatusError: On a non-2xx response, except 404 on DELETE.
            TransportError: If the control API cannot be reached.
        """
        pass

    def get(self, path: str) -> Any:
        """Get and decode the config node at path.

        Args:
            path: Path into the config tree.

        Returns:
            Decoded JSON value (``None`` for an empty body).
        """
        body = self.send("GET", path)
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError as e:
            raise DecodeError(path, str(e)) from e

    def put(self, path: str, payload: Any) -> None:
        """Replace the config node at path."""
        self.send("PUT", path, payload)

    def post(self, path: str, payload: Any) -> None:
        """Append to the config node at path."""
        self.send("POST", path, payload)

    def delete_id(self, resource_id: str) -> None:
        """Delete an object by identifier. Deleting an absent object succeeds.

        Args:
            resource_id: Object identifier (``@id``).
        """
        self.send("DELETE", f"/id/{resource_id}")

"""bitswan - Workspace ingress management tool.

This package programs a locally running Caddy reverse proxy through its
admin API: hostname routes, TLS certificates and policies, and the
per-workspace lifecycle built on them.
"""

from bitswan.core.config import Config
from bitswan.core.types import (
    IngressConfig,
    Route,
    RouteEntry,
    ServiceEndpoint,
)
from bitswan.functions import (
    add_route,
    cleanup_workspaces,
    copy_cert_files,
    ingress_context,
    init_ingress,
    is_proxy_running,
    list_routes,
    register_workspace,
    remove_route,
    unregister_workspace,
)
from bitswan.workspace.lifecycle import WorkspaceIngress

__version__ = "0.1.0"

__all__ = [
    # Core types
    "Config",
    "IngressConfig",
    "Route",
    "RouteEntry",
    "ServiceEndpoint",
    "WorkspaceIngress",
    # Context manager
    "ingress_context",
    # Proxy lifecycle
    "init_ingress",
    "is_proxy_running",
    # Route operations
    "add_route",
    "list_routes",
    "remove_route",
    # Workspace lifecycle
    "cleanup_workspaces",
    "copy_cert_files",
    "register_workspace",
    "unregister_workspace",
]


def main() -> None:
    """CLI entry point."""
    import sys

    from bitswan.cli import main as cli_main

    sys.exit(cli_main())

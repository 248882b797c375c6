"""CLI for the bitswan ingress proxy.

This module provides command-line interface for:
- Starting and initializing the ingress proxy
- Adding, removing and listing hostname routes
- Registering and unregistering workspace services
"""

import argparse
import logging
import sys
from pathlib import Path

from docker.errors import DockerException

from bitswan import functions
from bitswan.core.types import RouteEntry
from bitswan.ingress.errors import IngressError
from bitswan.ingress.proxy import DockerNotAvailableError, ProxyNotReadyError
from bitswan.workspace.lifecycle import TeardownReport


def format_route(entry: RouteEntry) -> list[str]:
    """Format a route entry for display.

    Args:
        entry: Route entry.

    Returns:
        Output lines.
    """
    lines = [f"Route ID: {entry.id or '(none)'}"]
    if entry.is_managed:
        lines.append(f"  Hostname: {entry.hostname}")
        lines.append(f"  Upstream: {entry.upstream}")
    else:
        hosts = ", ".join(entry.hosts) if entry.hosts else "(any)"
        lines.append(f"  Hosts: {hosts}")
        lines.append("  Upstream: (not a reverse proxy route)")
    lines.append(f"  Terminal: {str(entry.terminal).lower()}")
    return lines


def print_teardown_report(report: TeardownReport) -> None:
    """Print the outcome of a workspace teardown."""
    for hostname in report.removed_routes:
        print(f"Removed route: {hostname}")
    for hostname, error in report.failed_routes.items():
        print(f"Warning: failed to remove route for {hostname}: {error}")
    for error in report.tls_errors:
        print(f"Warning: {error}")


def cmd_init(args: argparse.Namespace) -> int:
    """Ingress init command handler.

    Args:
        args: Parsed arguments.

    Returns:
        Exit code.
    """
    print("Setting up ingress proxy...")
    initialized = functions.init_ingress(
        args.domain,
        config_path=args.config,
        admin_url=args.admin_url,
        force=args.force,
    )
    if initialized:
        print("Ingress proxy started successfully!")
    else:
        print("A running instance of the ingress proxy was found; configuration kept")
    return 0


def cmd_caddy_init(args: argparse.Namespace) -> int:
    """Deprecated caddy init command handler."""
    print(
        "WARNING: The 'caddy init' command is deprecated and will be removed "
        "in a future version. Please use 'ingress init' instead.",
        file=sys.stderr,
    )
    return cmd_init(args)


def cmd_add_route(args: argparse.Namespace) -> int:
    """Add route command handler."""
    functions.add_route(
        args.hostname, args.upstream, config_path=args.config, admin_url=args.admin_url
    )
    print(f"Successfully added route: {args.hostname} -> {args.upstream}")
    return 0


def cmd_remove_route(args: argparse.Namespace) -> int:
    """Remove route command handler."""
    functions.remove_route(
        args.hostname,
        config_path=args.config,
        admin_url=args.admin_url,
        include_legacy=args.legacy,
    )
    print(f"Successfully removed route: {args.hostname}")
    return 0


def cmd_list_routes(args: argparse.Namespace) -> int:
    """List routes command handler."""
    routes = functions.list_routes(config_path=args.config, admin_url=args.admin_url)

    if not routes:
        print("No routes configured")
        return 0

    print(f"Found {len(routes)} route(s):")
    print()
    for entry in routes:
        for line in format_route(entry):
            print(line)
        print()
    return 0


def cmd_register(args: argparse.Namespace) -> int:
    """Register workspace command handler."""
    routes = functions.register_workspace(
        args.workspace,
        domain=args.domain,
        editor=not args.no_editor,
        couchdb=args.couchdb,
        install_tls=args.tls,
        certs_dir=args.certs_dir,
        config_path=args.config,
        admin_url=args.admin_url,
    )
    for route in routes:
        print(f"Registered route: {', '.join(route.hosts)}")
    return 0


def cmd_unregister(args: argparse.Namespace) -> int:
    """Unregister workspace command handler."""
    report = functions.unregister_workspace(
        args.workspace,
        domain=args.domain,
        config_path=args.config,
        admin_url=args.admin_url,
    )
    print_teardown_report(report)
    if report.success:
        print(f"Ingress records of workspace '{args.workspace}' removed.")
    return 0


def _add_init_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--domain",
        required=True,
        help="The domain to use for the ingress configuration",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Reset the proxy configuration even if routes are configured",
    )


def _add_global_arguments(
    parser: argparse.ArgumentParser, suppress: bool = False
) -> None:
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Enable verbose output",
    )
    parser.add_argument(
        "--admin-url",
        default=argparse.SUPPRESS if suppress else None,
        help="Proxy admin API URL (default: http://localhost:2019)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=argparse.SUPPRESS if suppress else None,
        help="Path to the ingress configuration file",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser.

    Returns:
        Configured ArgumentParser.
    """
    # Options are accepted before and after the subcommand. Subcommands use
    # SUPPRESS so they do not overwrite values given before the subcommand.
    common = argparse.ArgumentParser(add_help=False)
    _add_global_arguments(common, suppress=True)

    parser = argparse.ArgumentParser(
        prog="bitswan",
        description="Workspace ingress management tool",
    )
    _add_global_arguments(parser)
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ingress command
    ingress_parser = subparsers.add_parser("ingress", help="Manage ingress")
    ingress_sub = ingress_parser.add_subparsers(
        dest="action", help="Ingress actions"
    )

    init_parser = ingress_sub.add_parser(
        "init", parents=[common], help="Initializes an ingress proxy"
    )
    _add_init_arguments(init_parser)
    init_parser.set_defaults(func=cmd_init)

    add_parser = ingress_sub.add_parser(
        "add-route",
        parents=[common],
        help="Add a route mapping hostname to upstream",
    )
    add_parser.add_argument("hostname", help="Hostname to route, e.g. api.myapp.com")
    add_parser.add_argument("upstream", help="Upstream address, e.g. localhost:8080")
    add_parser.set_defaults(func=cmd_add_route)

    remove_parser = ingress_sub.add_parser(
        "remove-route", parents=[common], help="Remove a route by hostname"
    )
    remove_parser.add_argument("hostname", help="Hostname of the route")
    remove_parser.add_argument(
        "--legacy",
        action="store_true",
        help="Also remove the route under the ID used by earlier releases",
    )
    remove_parser.set_defaults(func=cmd_remove_route)

    list_parser = ingress_sub.add_parser(
        "list-routes", parents=[common], help="List all configured routes"
    )
    list_parser.set_defaults(func=cmd_list_routes)

    register_parser = ingress_sub.add_parser(
        "register", parents=[common], help="Expose a workspace's services"
    )
    register_parser.add_argument("workspace", help="Workspace name")
    register_parser.add_argument(
        "--domain", help="Ingress domain (defaults to the one given to init)"
    )
    register_parser.add_argument(
        "--no-editor", action="store_true", help="Do not expose the editor"
    )
    register_parser.add_argument(
        "--couchdb", action="store_true", help="Expose the CouchDB service"
    )
    register_parser.add_argument(
        "--tls",
        action="store_true",
        help="Install the workspace's TLS certificate and SNI policy",
    )
    register_parser.add_argument(
        "--certs-dir",
        type=Path,
        help="Directory with full-chain.pem and private-key.pem to install",
    )
    register_parser.set_defaults(func=cmd_register)

    unregister_parser = ingress_sub.add_parser(
        "unregister", parents=[common], help="Remove a workspace's ingress records"
    )
    unregister_parser.add_argument("workspace", help="Workspace name")
    unregister_parser.add_argument(
        "--domain", help="Ingress domain for workspaces without a local record"
    )
    unregister_parser.set_defaults(func=cmd_unregister)

    # caddy command (deprecated)
    caddy_parser = subparsers.add_parser("caddy", help="Manage caddy (deprecated)")
    caddy_sub = caddy_parser.add_subparsers(dest="action", help="Caddy actions")
    caddy_init_parser = caddy_sub.add_parser(
        "init", parents=[common], help="Initializes a Caddy (use 'ingress init')"
    )
    _add_init_arguments(caddy_init_parser)
    caddy_init_parser.set_defaults(func=cmd_caddy_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Command-line arguments. Uses sys.argv if None.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if getattr(args, "func", None) is None:
        parser.print_help()
        print()
        print("Quick start:")
        print("  bitswan ingress init --domain example.com")
        print("  bitswan ingress add-route api.example.com localhost:8080")
        print("  bitswan ingress list-routes")
        print("  bitswan ingress remove-route api.example.com")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (
        IngressError,
        DockerNotAvailableError,
        DockerException,
        ProxyNotReadyError,
        FileNotFoundError,
        ValueError,
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Example 02: Workspace Lifecycle - Register and tear down workspace services.

Goal: Expose the services of two workspaces on one domain and remove one of them.

This example demonstrates:
- Using bitswan.ingress_context() for several operations on one connection
- Registering workspaces with TLS
- Reading a teardown report

Prerequisites:
- The ingress proxy must be running (see 01_route_management.py)
- Certificates for example.com in ~/.config/bitswan/caddy/certs/example.com
"""

import bitswan


def main():
    """Register two workspaces and unregister one."""
    print("bitswan Example 02: Workspace Lifecycle")
    print("=" * 50)

    with bitswan.ingress_context() as ingress:
        print("\n[Step 1] Registering workspaces...")
        for workspace in ("alpha", "beta"):
            routes = ingress.register(workspace, "example.com", install_tls=True)
            for route in routes:
                print(f"  {workspace}: {', '.join(route.hosts)}")

        print("\n[Step 2] Unregistering alpha...")
        report = ingress.unregister("alpha")
        for hostname in report.removed_routes:
            print(f"  removed {hostname}")
        for hostname, error in report.failed_routes.items():
            print(f"  failed {hostname}: {error}")

        print("\n[Step 3] Remaining routes:")
        for entry in ingress.list_routes():
            print(f"  {entry.hostname} -> {entry.upstream}")

    print("\nDone!")


if __name__ == "__main__":
    main()

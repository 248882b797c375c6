"""Example 01: Route Management - Expose arbitrary hostnames through the ingress.

Goal: Start the ingress proxy and route a few hostnames to local services.

This example demonstrates:
- Using bitswan.init_ingress() to start and bootstrap the proxy
- Adding, listing and removing routes with single function calls

Prerequisites:
- Docker must be running
"""

import bitswan


def main():
    """Route hostnames to upstreams."""
    print("bitswan Example 01: Route Management")
    print("=" * 50)

    print("\n[Step 1] Starting ingress proxy...")
    if bitswan.init_ingress("example.com"):
        print("Proxy started and initialized")
    else:
        print("Proxy already running, existing configuration kept")

    print("\n[Step 2] Adding routes...")
    bitswan.add_route("api.example.com", "localhost:8080")
    bitswan.add_route("docs.example.com", "localhost:8081")

    print("\n[Step 3] Listing routes...")
    for entry in bitswan.list_routes():
        if entry.is_managed:
            print(f"  {entry.hostname} -> {entry.upstream}")
        else:
            print(f"  {entry.id}: (not managed by bitswan)")

    print("\n[Step 4] Removing routes...")
    bitswan.remove_route("api.example.com")
    bitswan.remove_route("docs.example.com")

    print("\nDone!")


if __name__ == "__main__":
    main()

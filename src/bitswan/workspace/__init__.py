"""Workspace ingress lifecycle for bitswan."""

from bitswan.workspace.lifecycle import (
    TeardownReport,
    WorkspaceIngress,
    default_services,
)

__all__ = [
    "TeardownReport",
    "WorkspaceIngress",
    "default_services",
]

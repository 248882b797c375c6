"""Ingress proxy control layer for bitswan."""

from bitswan.ingress.base import ControlPaths, ControlPlane
from bitswan.ingress.bootstrap import Bootstrapper
from bitswan.ingress.client import CaddyControlPlane
from bitswan.ingress.errors import (
    BootstrapRefusedError,
    DecodeError,
    IngressError,
    RouteError,
    StatusError,
    TlsError,
    TransportError,
)
from bitswan.ingress.memory import InMemoryControlPlane
from bitswan.ingress.routes import RouteManager, legacy_route_id, route_id
from bitswan.ingress.tls import TlsManager

__all__ = [
    "BootstrapRefusedError",
    "Bootstrapper",
    "CaddyControlPlane",
    "ControlPaths",
    "ControlPlane",
    "DecodeError",
    "InMemoryControlPlane",
    "IngressError",
    "RouteError",
    "RouteManager",
    "StatusError",
    "TlsError",
    "TlsManager",
    "TransportError",
    "legacy_route_id",
    "route_id",
]

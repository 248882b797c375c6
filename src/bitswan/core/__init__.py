"""Core layer for bitswan ingress."""

from bitswan.core.config import Config
from bitswan.core.paths import IngressIndex
from bitswan.core.types import (
    ContainerState,
    IngressConfig,
    ProxyConfig,
    Route,
    RouteEntry,
    ServiceEndpoint,
    TlsCertificateLoad,
    TlsPolicy,
)

__all__ = [
    "Config",
    "ContainerState",
    "IngressConfig",
    "IngressIndex",
    "ProxyConfig",
    "Route",
    "RouteEntry",
    "ServiceEndpoint",
    "TlsCertificateLoad",
    "TlsPolicy",
]

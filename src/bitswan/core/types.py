"""Type definitions for bitswan ingress."""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Discriminator, Field, Tag

DEFAULT_ADMIN_URL = "http://localhost:2019"


class ContainerState(Enum):
    """Proxy container state."""

    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"
    NOT_FOUND = "not_found"
    ERROR = "error"


class Upstream(BaseModel):
    """Backend address a matched request is forwarded to."""

    dial: str

    model_config = {"extra": "allow"}


class RouteMatch(BaseModel):
    """Request matcher set. Only the host matcher is interpreted."""

    host: list[str] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class SubrouteHandler(BaseModel):
    """Grouping handler wrapping a list of nested routes."""

    handler: Literal["subroute"] = "subroute"
    routes: list["Route"] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class ReverseProxyHandler(BaseModel):
    """Reverse proxy handler dialing one or more upstreams."""

    handler: Literal["reverse_proxy"] = "reverse_proxy"
    upstreams: list[Upstream] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class UnknownHandler(BaseModel):
    """Handler of a kind this package does not manage."""

    handler: str

    model_config = {"extra": "allow"}


def _handler_kind(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("handler")
    else:
        kind = getattr(value, "handler", None)
    if kind in ("subroute", "reverse_proxy"):
        return kind
    return "unknown"


Handler = Annotated[
    Union[
        Annotated[SubrouteHandler, Tag("subroute")],
        Annotated[ReverseProxyHandler, Tag("reverse_proxy")],
        Annotated[UnknownHandler, Tag("unknown")],
    ],
    Discriminator(_handler_kind),
]


class Route(BaseModel):
    """A route matching hostnames to a handler chain."""

    id: str | None = Field(default=None, alias="@id")
    match: list[RouteMatch] | None = None
    handle: list[Handler] = Field(default_factory=list)
    terminal: bool = False

    model_config = {"extra": "allow", "populate_by_name": True}

    @property
    def hosts(self) -> list[str]:
        """Get all hostnames matched by this route, in order."""
        hosts: list[str] = []
        for matcher in self.match or []:
            for host in matcher.host:
                if host not in hosts:
                    hosts.append(host)
        return hosts

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the proxy's JSON field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


SubrouteHandler.model_rebuild()


class TlsMatch(BaseModel):
    """SNI matcher of a TLS connection policy."""

    sni: list[str] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class CertificateSelection(BaseModel):
    """Certificate selection by tag."""

    any_tag: list[str] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class TlsPolicy(BaseModel):
    """TLS connection policy selecting a certificate by SNI."""

    id: str | None = Field(default=None, alias="@id")
    match: TlsMatch = Field(default_factory=TlsMatch)
    certificate_selection: CertificateSelection = Field(
        default_factory=CertificateSelection
    )

    model_config = {"extra": "allow", "populate_by_name": True}

    @property
    def sni_patterns(self) -> list[str]:
        """Get SNI patterns this policy applies to."""
        return self.match.sni

    @property
    def certificate_tags(self) -> list[str]:
        """Get tags selecting the certificate to present."""
        return self.certificate_selection.any_tag

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the proxy's JSON field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TlsCertificateLoad(BaseModel):
    """Certificate/key file pair loaded by the proxy."""

    id: str | None = Field(default=None, alias="@id")
    certificate: str
    key: str
    tags: list[str] = Field(default_factory=list)

    model_config = {"extra": "allow", "populate_by_name": True}

    @property
    def certificate_path(self) -> str:
        """Get certificate file path as seen by the proxy."""
        return self.certificate

    @property
    def key_path(self) -> str:
        """Get private key file path as seen by the proxy."""
        return self.key

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the proxy's JSON field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RouteEntry(BaseModel):
    """Display record for one route read back from the proxy."""

    id: str | None = None
    hosts: list[str] = Field(default_factory=list)
    upstreams: list[str] = Field(default_factory=list)
    terminal: bool = False

    model_config = {"extra": "forbid"}

    @property
    def hostname(self) -> str | None:
        """Get the first matched hostname, if the route is a managed proxy route."""
        if self.hosts and self.upstreams:
            return self.hosts[0]
        return None

    @property
    def upstream(self) -> str | None:
        """Get the first upstream, if the route is a managed proxy route."""
        if self.hosts and self.upstreams:
            return self.upstreams[0]
        return None

    @property
    def is_managed(self) -> bool:
        """Check whether the route has the group -> reverse proxy shape."""
        return self.hostname is not None


class ServiceEndpoint(BaseModel):
    """A workspace service exposed through the ingress."""

    name: str
    upstream: str
    separator: str = "-"

    model_config = {"extra": "forbid"}

    def hostname(self, workspace: str, domain: str) -> str:
        """Build the public hostname of this service.

        Args:
            workspace: Workspace name.
            domain: Ingress domain.

        Returns:
            Hostname such as ``<workspace>-<service>.<domain>``.
        """
        return f"{workspace}{self.separator}{self.name}.{domain}"


class ProxyConfig(BaseModel):
    """Proxy container configuration."""

    image: str = "caddy:2.9"
    container_name: str = "caddy"
    network: str = "bitswan_network"
    admin_listen: str = "0.0.0.0:2019"
    email: str = "info@bitswan.space"
    ports: dict[str, int] = Field(
        default_factory=lambda: {"80/tcp": 80, "443/tcp": 443, "2019/tcp": 2019}
    )
    startup_timeout: float = 30.0

    model_config = {"extra": "forbid"}


class IngressConfig(BaseModel):
    """Ingress controller configuration."""

    admin_url: str = DEFAULT_ADMIN_URL
    server_name: str = "srv0"
    listen: list[str] = Field(default_factory=lambda: [":80", ":443"])
    timeout: float = 10.0
    max_retries: int = 3
    backoff_base: float = 0.5
    backoff_max: float = 5.0
    legacy_ids: bool = False
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)

    model_config = {"extra": "forbid"}

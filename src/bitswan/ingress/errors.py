"""Exceptions raised by the ingress controller."""


class IngressError(Exception):
    """Base exception for ingress controller errors."""

    pass


class TransportError(IngressError):
    """Raised when the control API cannot be reached or the call times out.

    Transport errors are retryable.
    """

    def __init__(self, method: str, path: str, message: str) -> None:
        self.method = method
        self.path = path
        super().__init__(f"{method} {path}: failed to call proxy admin API: {message}")


class StatusError(IngressError):
    """Raised when the control API answers with a non-2xx status."""

    def __init__(self, code: int, method: str, path: str, body: str = "") -> None:
        self.code = code
        self.method = method
        self.path = path
        self.body = body
        message = f"{method} {path}: proxy admin API returned status code {code}"
        if body:
            message = f"{message}: {body.strip()[:200]}"
        super().__init__(message)


class DecodeError(IngressError):
    """Raised when a control API response body is not valid JSON."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"GET {path}: malformed response body: {message}")


class RouteError(IngressError):
    """Raised when a route operation fails."""

    def __init__(self, hostname: str, action: str, cause: Exception) -> None:
        self.hostname = hostname
        self.action = action
        super().__init__(f"failed to {action} route for '{hostname}': {cause}")


class TlsError(IngressError):
    """Raised when a TLS certificate or policy operation fails."""

    def __init__(self, workspace: str, action: str, cause: Exception) -> None:
        self.workspace = workspace
        self.action = action
        super().__init__(f"failed to {action} for workspace '{workspace}': {cause}")


class BootstrapRefusedError(IngressError):
    """Raised when bootstrapping would wipe an already populated proxy."""

    def __init__(self, route_count: int) -> None:
        self.route_count = route_count
        super().__init__(
            f"proxy already has {route_count} route(s) configured; "
            "refusing to reset its configuration (use --force to override)"
        )

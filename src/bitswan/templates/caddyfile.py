"""Caddyfile template generation."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from bitswan.core.types import ProxyConfig


class CaddyfileTemplate:
    """Renders the bootstrap Caddyfile of the ingress proxy.

    The Caddyfile only carries global options; routes and TLS objects are
    programmed afterwards through the admin API.
    """

    _TEMPLATE_DIR = Path(__file__).parent / "files"
    _TEMPLATE_NAME = "Caddyfile.j2"

    def __init__(
        self, email: str = "info@bitswan.space", admin_listen: str = "0.0.0.0:2019"
    ) -> None:
        """Initialize Caddyfile template.

        Args:
            email: ACME account email.
            admin_listen: Address the admin API listens on.
        """
        self._email = email
        self._admin_listen = admin_listen
        self._env = Environment(
            loader=FileSystemLoader(self._TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    @classmethod
    def from_config(cls, config: ProxyConfig) -> "CaddyfileTemplate":
        """Create a template from proxy configuration."""
        return cls(email=config.email, admin_listen=config.admin_listen)

    def render(self) -> str:
        """Render the Caddyfile.

        Returns:
            Caddyfile content.
        """
        template = self._env.get_template(self._TEMPLATE_NAME)
        return template.render(email=self._email, admin_listen=self._admin_listen)

    def save(self, path: Path) -> None:
        """Render and write the Caddyfile.

        Args:
            path: Destination file path.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8")

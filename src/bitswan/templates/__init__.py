"""Template generation for bitswan."""

from bitswan.templates.caddyfile import CaddyfileTemplate

__all__ = [
    "CaddyfileTemplate",
]

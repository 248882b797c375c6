"""TLS certificate and policy management."""

import logging

from bitswan.core.types import (
    CertificateSelection,
    TlsCertificateLoad,
    TlsMatch,
    TlsPolicy,
)
from bitswan.ingress.base import ControlPaths, ControlPlane
from bitswan.ingress.errors import IngressError, TlsError

logger = logging.getLogger(__name__)

CERTIFICATE_FILENAME = "full-chain.pem"
KEY_FILENAME = "private-key.pem"
PROXY_CERTS_ROOT = "/tls"


def policy_id(workspace: str) -> str:
    """Get the TLS policy ID of a workspace."""
    return f"{workspace}_tlspolicy"


def certs_id(workspace: str) -> str:
    """Get the TLS certificate load ID of a workspace."""
    return f"{workspace}_tlscerts"


def build_certificate_load(workspace: str, domain: str) -> TlsCertificateLoad:
    """Build the certificate load of a workspace.

    Paths are as mounted inside the proxy container.

    Args:
        workspace: Workspace name, used as the certificate tag.
        domain: Domain the certificates were issued for.

    Returns:
        TLS certificate load descriptor.
    """
    return TlsCertificateLoad(
        id=certs_id(workspace),
        certificate=f"{PROXY_CERTS_ROOT}/{domain}/{CERTIFICATE_FILENAME}",
        key=f"{PROXY_CERTS_ROOT}/{domain}/{KEY_FILENAME}",
        tags=[workspace],
    )


def build_policy(workspace: str, domain: str) -> TlsPolicy:
    """Build the TLS connection policy of a workspace.

    Args:
        workspace: Workspace name, used as the certificate selection tag.
        domain: Domain whose subdomains the policy covers.

    Returns:
        TLS policy matching ``*.<domain>``.
    """
    return TlsPolicy(
        id=policy_id(workspace),
        match=TlsMatch(sni=[f"*.{domain}"]),
        certificate_selection=CertificateSelection(any_tag=[workspace]),
    )


class TlsManager:
    """Installs and removes per-workspace TLS certificates and policies."""

    def __init__(
        self, control_plane: ControlPlane, server_name: str = "srv0"
    ) -> None:
        """Initialize TLS manager.

        Args:
            control_plane: Control plane to program.
            server_name: HTTP server holding the TLS connection policies.
        """
        self._control_plane = control_plane
        self._paths = ControlPaths(server_name)

    def install_certs(self, workspace: str, domain: str) -> list[str]:
        """Load a workspace's certificate and attach it through an SNI policy.

        The certificate load is written first, then the policy. A failure
        stops the sequence; earlier writes are not rolled back.

        Args:
            workspace: Workspace name.
            domain: Workspace domain.

        Returns:
            IDs of the objects written.

        Raises:
            TlsError: If either write fails.
        """
        certificate_load = build_certificate_load(workspace, domain)
        policy = build_policy(workspace, domain)

        try:
            self._control_plane.post(
                ControlPaths.append(self._paths.tls_load_files),
                [certificate_load.to_payload()],
            )
        except IngressError as e:
            raise TlsError(workspace, "add TLS certificates", e) from e

        try:
            self._control_plane.post(
                ControlPaths.append(self._paths.tls_policies),
                [policy.to_payload()],
            )
        except IngressError as e:
            raise TlsError(workspace, "add TLS policies", e) from e

        logger.info("Installed TLS certificates and policy for %s", workspace)
        return [certs_id(workspace), policy_id(workspace)]

    def uninstall_certs(
        self, workspace: str, resource_ids: list[str] | None = None
    ) -> list[TlsError]:
        """Delete a workspace's TLS policy and certificate load.

        Every deletion is attempted; absent objects count as deleted.

        Args:
            workspace: Workspace name.
            resource_ids: IDs to delete. Defaults to the conventional IDs.

        Returns:
            Errors of the deletions that failed.
        """
        if resource_ids is None:
            resource_ids = [policy_id(workspace), certs_id(workspace)]

        errors: list[TlsError] = []
        for resource_id in resource_ids:
            try:
                self._control_plane.delete_id(resource_id)
            except IngressError as e:
                logger.warning("Failed to delete %s: %s", resource_id, e)
                errors.append(TlsError(workspace, f"delete {resource_id}", e))
        return errors

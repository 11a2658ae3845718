"""Auth identity domain service."""

from typing import Any, Optional

import logfire

from recon.domain.error import AmbiguousStateError
from recon.domain.model.auth_identity import AuthIdentity, IdentityPage
from recon.domain.value import Email, ExternalId, TenantId

from .base import Service


class AuthAdminClient:
    """Admin interface of the external authentication provider.

    Implementations raise FetchFailureError when the provider cannot be
    reached, times out or answers with an error, and
    ConstraintViolationError when it rejects a create because the email
    is already registered.
    """

    async def list_identities(self, page: int, per_page: int) -> IdentityPage:
        """List one page of identities (pages start at 1).

        Provider users without an email are left out of the page; they
        cannot take part in email reconciliation.

        Returns:
            The identities on the page and whether another page follows
        """
        raise NotImplementedError

    async def create_identity(
        self,
        email: Email,
        password: str,
        metadata: dict[str, Any],
        external_id: Optional[ExternalId] = None,
    ) -> AuthIdentity:
        """Create a confirmed identity.

        Args:
            email: Login email
            password: Initial password
            metadata: Provider user metadata (tenant_id, name)
            external_id: Requested identity id, if the provider honours it

        Returns:
            The created identity
        """
        raise NotImplementedError

    async def update_password(self, external_id: ExternalId, password: str) -> None:
        """Replace an identity's password."""
        raise NotImplementedError

    async def delete_identity(self, external_id: ExternalId) -> None:
        """Delete an identity."""
        raise NotImplementedError


class AuthIdentityService(Service):
    """Domain service for reading and changing auth identities."""

    def __init__(self, auth_client: AuthAdminClient, page_size: int = 200) -> None:
        """Initialize auth identity service.

        Args:
            auth_client: Provider admin client
            page_size: Page size used when listing identities
        """
        self.auth_client = auth_client
        self.page_size = page_size

    async def list_all(self) -> list[AuthIdentity]:
        """Read every identity the provider knows, page by page."""
        with logfire.span("auth_identity_service.list_all"):
            identities: list[AuthIdentity] = []
            page = 1
            while True:
                batch = await self.auth_client.list_identities(page, self.page_size)
                identities.extend(batch.identities)
                if not batch.has_more:
                    break
                page += 1
            logfire.info("Auth identities listed", count=len(identities), pages=page)
            return identities

    async def find_by_email(self, email: Email) -> Optional[AuthIdentity]:
        """Find the identity registered for an email.

        Pages through the provider listing and stops at the first page
        that contains the email; the rest of that page is still checked
        so a duplicate on the same page is caught.

        Args:
            email: Normalized email

        Returns:
            The identity if found, None otherwise

        Raises:
            AmbiguousStateError: If the provider holds two identities for it
        """
        with logfire.span("auth_identity_service.find_by_email", email=email.root):
            page = 1
            while True:
                batch = await self.auth_client.list_identities(page, self.page_size)
                matches = [i for i in batch.identities if i.email == email]
                if len(matches) > 1:
                    raise AmbiguousStateError(
                        f"Auth provider holds {len(matches)} identities for {email}",
                        matches,
                    )
                if matches:
                    identity = matches[0]
                    logfire.info(
                        "Auth identity found",
                        email=email.root,
                        external_id=identity.external_id,
                        confirmed=identity.confirmed,
                    )
                    return identity
                if not batch.has_more:
                    logfire.warn("Auth identity not found", email=email.root)
                    return None
                page += 1

    async def create(
        self,
        email: Email,
        password: str,
        tenant_id: TenantId,
        name: Optional[str] = None,
        external_id: Optional[ExternalId] = None,
    ) -> AuthIdentity:
        """Create a confirmed identity tagged with its tenant.

        Args:
            email: Login email
            password: Initial password
            tenant_id: Tenant recorded in the identity metadata
            name: Display name recorded in the identity metadata
            external_id: Identity id to request from the provider

        Returns:
            The created identity
        """
        metadata: dict[str, Any] = {"tenant_id": tenant_id.root}
        if name:
            metadata["name"] = name
        with logfire.span(
            "auth_identity_service.create",
            email=email.root,
            tenant_id=tenant_id.root,
            requested_id=external_id,
        ):
            identity = await self.auth_client.create_identity(
                email, password, metadata, external_id=external_id
            )
            logfire.info(
                "Auth identity created",
                email=email.root,
                external_id=identity.external_id,
            )
            return identity

    async def update_password(self, external_id: ExternalId, password: str) -> None:
        """Replace an identity's password."""
        with logfire.span(
            "auth_identity_service.update_password", external_id=external_id
        ):
            await self.auth_client.update_password(external_id, password)
            logfire.info("Auth identity password updated", external_id=external_id)

    async def delete(self, external_id: ExternalId) -> None:
        """Delete an identity."""
        with logfire.span("auth_identity_service.delete", external_id=external_id):
            await self.auth_client.delete_identity(external_id)
            logfire.info("Auth identity deleted", external_id=external_id)

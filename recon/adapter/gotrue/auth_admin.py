"""GoTrue admin API client.

Talks to ``/auth/v1/admin/users`` with the service-role key. Every call
opens its own ``httpx.AsyncClient`` with the configured timeout.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
import logfire
from pydantic import ValidationError as PydanticValidationError

from recon.adapter.error import AuthProviderError
from recon.domain.error import ConstraintViolationError, FetchFailureError
from recon.domain.model.auth_identity import AuthIdentity, IdentityPage
from recon.domain.service.auth_identity_service import AuthAdminClient
from recon.domain.value import Email, ExternalId

# Statuses GoTrue answers with when the email is already registered
_CONFLICT_STATUSES = {409, 422}


class GoTrueAdminClient(AuthAdminClient):
    """Base class for GoTrue admin clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealGoTrueAdminClient(GoTrueAdminClient):
    """GoTrue admin client over HTTP."""

    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize GoTrue admin client.

        Args:
            base_url: Project URL, for example https://project.example.com
            service_role_key: Service-role key sent as apikey and bearer token
            timeout: Seconds before any call is abandoned
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.users_url = f"{base_url.rstrip('/')}/auth/v1/admin/users"
        self.timeout = timeout
        self._transport = transport
        self._headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
        }

    async def list_identities(self, page: int, per_page: int) -> IdentityPage:
        response = await self._request(
            "GET", self.users_url, params={"page": page, "per_page": per_page}
        )
        payload = self._json(response)
        users = payload.get("users") if isinstance(payload, dict) else None
        if not isinstance(users, list):
            raise AuthProviderError(
                "Admin user listing has no 'users' array", response.status_code
            )
        identities = []
        for item in users:
            if isinstance(item, dict) and item.get("id") and not item.get("email"):
                logfire.info("Skipping auth user without email", external_id=str(item["id"]))
                continue
            identities.append(self._to_identity(item))
        return IdentityPage(identities=identities, has_more=len(users) >= per_page)

    async def create_identity(
        self,
        email: Email,
        password: str,
        metadata: dict[str, Any],
        external_id: Optional[ExternalId] = None,
    ) -> AuthIdentity:
        body: dict[str, Any] = {
            "email": email.root,
            "password": password,
            "email_confirm": True,
            "user_metadata": metadata,
        }
        if external_id:
            body["id"] = external_id
        response = await self._request("POST", self.users_url, json=body)
        return self._to_identity(self._json(response))

    async def update_password(self, external_id: ExternalId, password: str) -> None:
        await self._request(
            "PUT", f"{self.users_url}/{external_id}", json={"password": password}
        )

    async def delete_identity(self, external_id: ExternalId) -> None:
        await self._request("DELETE", f"{self.users_url}/{external_id}")

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one admin request and map failures to domain errors.

        Raises:
            FetchFailureError: On transport errors, timeouts and error statuses
            ConstraintViolationError: When a create hits an existing email
        """
        try:
            async with httpx.AsyncClient(
                headers=self._headers,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logfire.error("Auth admin request timed out", method=method, url=url)
            raise FetchFailureError("auth provider", f"timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logfire.error("Auth admin HTTP error", method=method, url=url, error=str(e))
            raise FetchFailureError("auth provider", str(e)) from e

        if response.is_success:
            return response

        detail = self._error_detail(response)
        logfire.error(
            "Auth admin request failed",
            method=method,
            url=url,
            status_code=response.status_code,
            error=detail,
        )
        if method == "POST" and response.status_code in _CONFLICT_STATUSES:
            raise ConstraintViolationError("auth_identity_email", detail)
        raise FetchFailureError(
            "auth provider", f"{method} returned {response.status_code}: {detail}"
        )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise AuthProviderError(
                "Admin API returned a non-JSON body", response.status_code
            ) from e

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, dict):
            for key in ("msg", "message", "error_description", "error"):
                if payload.get(key):
                    return str(payload[key])
        return response.text

    @staticmethod
    def _to_identity(item: Any) -> AuthIdentity:
        """Convert an admin API user object to an AuthIdentity."""
        if not isinstance(item, dict) or not item.get("id") or not item.get("email"):
            raise AuthProviderError("Admin API user object lacks id or email")
        try:
            return AuthIdentity(
                external_id=ExternalId(str(item["id"])),
                email=Email(item["email"]),
                confirmed=item.get("email_confirmed_at") is not None,
                metadata=item.get("user_metadata") or {},
                created_at=item.get("created_at"),
            )
        except PydanticValidationError as e:
            raise AuthProviderError(f"Malformed admin API user object: {e}") from e


class InMemoryGoTrueAdminClient(GoTrueAdminClient):
    """In-memory auth provider for testing.

    Behaves like the admin API: emails are unique, requested ids are
    honoured unless ``assigns_own_ids`` is set, and ``unavailable`` makes
    every call fail like an outage.
    """

    def __init__(self) -> None:
        self.identities: dict[str, AuthIdentity] = {}
        self.passwords: dict[str, str] = {}
        self.unavailable = False
        self.assigns_own_ids = False

    def _check_available(self) -> None:
        if self.unavailable:
            raise FetchFailureError("auth provider", "connection refused")

    def add(self, identity: AuthIdentity, password: str = "") -> AuthIdentity:
        """Seed an identity directly (bypasses the uniqueness check)."""
        self.identities[identity.external_id] = identity
        self.passwords[identity.external_id] = password
        return identity

    async def list_identities(self, page: int, per_page: int) -> IdentityPage:
        self._check_available()
        ordered = list(self.identities.values())
        start = (page - 1) * per_page
        return IdentityPage(
            identities=ordered[start : start + per_page],
            has_more=start + per_page < len(ordered),
        )

    async def create_identity(
        self,
        email: Email,
        password: str,
        metadata: dict[str, Any],
        external_id: Optional[ExternalId] = None,
    ) -> AuthIdentity:
        self._check_available()
        if any(i.email == email for i in self.identities.values()):
            raise ConstraintViolationError(
                "auth_identity_email", f"{email} is already registered"
            )
        if self.assigns_own_ids:
            external_id = None
        new_id = external_id or ExternalId(str(uuid.uuid4()))
        if new_id in self.identities:
            raise ConstraintViolationError("auth_identity_pkey", f"id {new_id} is taken")
        identity = AuthIdentity(
            external_id=new_id,
            email=email,
            confirmed=True,
            metadata=dict(metadata),
            created_at=datetime.now(timezone.utc),
        )
        return self.add(identity, password)

    async def update_password(self, external_id: ExternalId, password: str) -> None:
        self._check_available()
        if external_id not in self.identities:
            raise FetchFailureError("auth provider", f"PUT returned 404: {external_id}")
        self.passwords[external_id] = password

    async def delete_identity(self, external_id: ExternalId) -> None:
        self._check_available()
        if self.identities.pop(external_id, None) is None:
            raise FetchFailureError(
                "auth provider", f"DELETE returned 404: {external_id}"
            )
        self.passwords.pop(external_id, None)

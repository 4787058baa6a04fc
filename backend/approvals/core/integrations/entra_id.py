"""
Entra ID (Azure AD) org chart integration.
Resolves a user's direct manager through Microsoft Graph.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import httpx
from msal import ConfidentialClientApplication
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from approvals.core.config import settings
from approvals.core.exceptions import ServiceUnavailableError
from approvals.core.integrations.http.http_client import HttpClient
from approvals.core.interfaces import OrgRelationship
from approvals.core.logging import get_logger
from approvals.db.repositories.user_repository import UserRepository

logger = get_logger(__name__)

TokenProvider = Callable[[], Awaitable[str]]


class EntraIDTokenProvider:
    """App-only Graph token via the client-credentials flow. MSAL caches tokens in-process."""

    def __init__(self):
        self.authority = f"{settings.AZURE_AUTHORITY}/{settings.AZURE_TENANT_ID}"
        self.client_id = settings.AZURE_CLIENT_ID
        self.client_secret = settings.AZURE_CLIENT_SECRET
        self.scopes = settings.GRAPH_API_SCOPES
        self._app: Optional[ConfidentialClientApplication] = None

    def validate_config(self) -> bool:
        """True if tenant, client id and secret are all configured."""
        return all([
            self.client_id,
            self.client_secret,
            settings.AZURE_TENANT_ID,
        ])

    def _get_app(self) -> ConfidentialClientApplication:
        if self._app is None:
            logger.info(
                "Initializing Entra ID client",
                extra={
                    "authority": self.authority,
                    "client_id": self.client_id[:8] + "..." if self.client_id else None,
                },
            )
            self._app = ConfidentialClientApplication(
                client_id=self.client_id,
                client_credential=self.client_secret,
                authority=self.authority,
            )
        return self._app

    async def __call__(self) -> str:
        if not self.validate_config():
            raise ServiceUnavailableError("Entra ID is not configured")

        # MSAL is synchronous; keep its network round trip off the event loop
        result = await asyncio.to_thread(self._get_app().acquire_token_for_client, scopes=self.scopes)

        if "access_token" not in result:
            logger.error(
                "MSAL token acquisition failed",
                extra={
                    "error": result.get("error", "Unknown error"),
                    "error_description": result.get("error_description", "No description provided"),
                    "correlation_id": result.get("correlation_id", "N/A"),
                },
            )
            raise ServiceUnavailableError(
                "Could not acquire a Microsoft Graph token",
                details={"error": result.get("error")},
            )
        return result["access_token"]


class GraphOrgRelationship(OrgRelationship):
    """
    Org chart backed by Microsoft Graph ``/users/{id}/manager``.

    Local user ids are mapped to Entra object ids (and back) through the users
    table. A 404 from Graph means the user has no manager. Transport failures,
    5xx and auth errors raise ServiceUnavailableError.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        token_provider: Optional[TokenProvider] = None,
        http_client: Optional[HttpClient] = None,
    ):
        self.session_factory = session_factory
        self.token_provider = token_provider or EntraIDTokenProvider()
        self.http_client = http_client or HttpClient(
            base_url=settings.GRAPH_API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    async def _entra_object_id(self, user_id: int) -> Optional[str]:
        async with self.session_factory() as session:
            user = await UserRepository(session).get(user_id)
            return user.entra_object_id if user else None

    async def _local_user_id(self, entra_object_id: str) -> Optional[int]:
        async with self.session_factory() as session:
            user = await UserRepository(session).get_by_entra_object_id(entra_object_id)
            return user.id if user else None

    async def get_direct_manager(self, user_id: int) -> Optional[int]:
        object_id = await self._entra_object_id(user_id)
        if not object_id:
            logger.warning("User has no Entra object id", extra={"user_id": user_id})
            return None

        token = await self.token_provider()
        try:
            response = await self.http_client.get(
                f"/users/{object_id}/manager",
                params={"$select": "id,displayName,mail"},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            logger.error("Error fetching manager from Entra ID", extra={"user_id": user_id, "error": str(exc)})
            raise ServiceUnavailableError("Org chart lookup failed", details={"user_id": user_id}) from exc

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            logger.error(
                "Graph manager lookup rejected",
                extra={"user_id": user_id, "status_code": response.status_code},
            )
            raise ServiceUnavailableError(
                "Org chart lookup failed",
                details={"user_id": user_id, "status_code": response.status_code},
            )

        manager_object_id = response.json().get("id")
        if not manager_object_id:
            return None
        manager_id = await self._local_user_id(manager_object_id)
        if manager_id is None:
            logger.warning(
                "Graph manager is not a known user",
                extra={"user_id": user_id, "manager_object_id": manager_object_id},
            )
        return manager_id

    async def close(self) -> None:
        await self.http_client.close()

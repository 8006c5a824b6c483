"""Role assignment lookups used to verify ACR pull access."""

import asyncio
from typing import Dict, Any, Optional
import structlog
from azure.mgmt.authorization import AuthorizationManagementClient
from azure.core.exceptions import AzureError

from akshealth.core.base_client import BaseClient
from akshealth.core.exceptions import ClientConnectionException, VerificationException
from akshealth.engine.verification import (
    ACR_PULL_ROLE_DEFINITION_ID,
    RoleAssignmentStatus,
    RoleAssignmentVerifier,
)
from akshealth.models import ContainerRegistry

logger = structlog.get_logger(__name__)


class AuthorizationClient(BaseClient):
    """Client for Azure role assignment queries."""
    
    def __init__(self, credential, subscription_id: str, config: Dict[str, Any]):
        super().__init__(config, "AuthorizationClient")
        self.credential = credential
        self.subscription_id = subscription_id
        self._client = None
    
    async def connect(self) -> None:
        try:
            self._client = AuthorizationManagementClient(
                credential=self.credential,
                subscription_id=self.subscription_id
            )
            self._connected = True
            self.logger.info("Authorization client connected successfully")
        except Exception as e:
            raise ClientConnectionException("Authorization", f"Connection failed: {e}")
    
    async def disconnect(self) -> None:
        if self._client:
            self._client.close()
            self._connected = False
    
    async def has_role_assignment(self, scope: str, principal_id: str, role_definition_id: str,
                                  timeout: Optional[float] = None) -> bool:
        """Check whether the principal holds the role on the scope.
        
        The SDK call is blocking, so it runs in a worker thread to allow
        several lookups to proceed concurrently. `timeout` bounds each HTTP
        request so an abandoned worker still finishes.
        """
        self._ensure_connected("Authorization")
        
        request_options = {}
        if timeout:
            request_options = {"connection_timeout": timeout, "read_timeout": timeout}
        
        def lookup() -> bool:
            assignments = self._client.role_assignments.list_for_scope(
                scope, filter=f"assignedTo('{principal_id}')", **request_options
            )
            return any(
                (assignment.role_definition_id or "").lower().endswith(role_definition_id)
                for assignment in assignments
            )
        
        try:
            return await asyncio.to_thread(lookup)
        except AzureError as e:
            raise VerificationException(scope, str(e))


class AzureRoleAssignmentVerifier(RoleAssignmentVerifier):
    """Verifies AcrPull through Azure role assignments."""
    
    def __init__(self, client: AuthorizationClient, request_timeout: Optional[float] = None):
        self.client = client
        self.request_timeout = request_timeout
        self.logger = logger.bind(verifier="acr_pull")
    
    async def verify(self, registry: ContainerRegistry, principal_id: str) -> RoleAssignmentStatus:
        if not registry.id:
            self.logger.warning("Registry has no resource id", registry=registry.name)
            return RoleAssignmentStatus.INDETERMINATE
        
        try:
            granted = await self.client.has_role_assignment(
                registry.id, principal_id, ACR_PULL_ROLE_DEFINITION_ID, timeout=self.request_timeout
            )
        except VerificationException as e:
            self.logger.warning("AcrPull verification failed", registry=registry.name, error=e.message)
            return RoleAssignmentStatus.INDETERMINATE
        
        self.logger.debug("AcrPull verification completed", registry=registry.name, granted=granted)
        return RoleAssignmentStatus.GRANTED if granted else RoleAssignmentStatus.ABSENT

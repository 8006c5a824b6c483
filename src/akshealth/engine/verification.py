"""Role assignment verification capability injected into the ACR RBAC rule."""

from abc import ABC, abstractmethod
from enum import Enum

from akshealth.models import ContainerRegistry

ACR_PULL_ROLE_DEFINITION_ID = "7f951dda-4ed3-4680-a7ca-43fe172d538d"


class RoleAssignmentStatus(str, Enum):
    GRANTED = "granted"
    ABSENT = "absent"
    INDETERMINATE = "indeterminate"


class RoleAssignmentVerifier(ABC):
    """Checks whether a principal holds AcrPull on a registry."""

    @abstractmethod
    async def verify(self, registry: ContainerRegistry, principal_id: str) -> RoleAssignmentStatus:
        """Return INDETERMINATE on transport or auth failure, never raise for those."""
        pass

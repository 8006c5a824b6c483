from .rule import Rule
from .registry import RuleRegistry
from .namespace_filter import filter_namespaces
from .evaluation_engine import EvaluationEngine
from .verification import RoleAssignmentStatus, RoleAssignmentVerifier, ACR_PULL_ROLE_DEFINITION_ID

__all__ = [
    "Rule",
    "RuleRegistry",
    "filter_namespaces",
    "EvaluationEngine",
    "RoleAssignmentStatus",
    "RoleAssignmentVerifier",
    "ACR_PULL_ROLE_DEFINITION_ID",
]

"""Ordered catalog of rules."""

from typing import Dict, Iterator, List
import structlog

from akshealth.core.exceptions import ConfigurationException
from akshealth.models import Category
from .rule import Rule

logger = structlog.get_logger(__name__)


class RuleRegistry:
    """Rules grouped by category.

    Iteration yields categories in their fixed report order and, within a
    category, rules in registration order.
    """

    def __init__(self):
        self._rules: Dict[Category, List[Rule]] = {category: [] for category in Category}
        self._ids = set()

    def register(self, rule: Rule) -> Rule:
        if not rule.rule_id:
            raise ConfigurationException(f"Rule {rule.__class__.__name__} has no rule_id")
        if rule.rule_id in self._ids:
            raise ConfigurationException(f"Duplicate rule id: {rule.rule_id}")
        self._rules[rule.category].append(rule)
        self._ids.add(rule.rule_id)
        return rule

    def rules_for(self, category: Category) -> List[Rule]:
        return list(self._rules[category])

    def __iter__(self) -> Iterator[Rule]:
        for category in sorted(self._rules, key=lambda c: c.order):
            yield from self._rules[category]

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._ids

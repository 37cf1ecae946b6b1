"""
Rule evaluation engine for the Allowance Service.

``classify`` is a pure function of (subject, rules): rules are ordered by
priority (highest first, ties keep their input order) and the outcome of the
first matching rule wins. Conditions referencing a missing fact are false
whatever their operator.
"""

from typing import Dict, Any, Optional, List, Iterable, Mapping

from shared.logging import get_logger
from .models import Rule, RuleCondition, RuleConditions, RuleOperator, RuleOutcome


logger = get_logger("allowance.rule_engine")


def _strict_equal(left: Any, right: Any) -> bool:
    # True == 1 in Python; stored rules compare booleans and numbers apart
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return left == right


def _contains(values: List[Any], item: Any) -> bool:
    return any(_strict_equal(item, value) for value in values)


def _equal(fact_value: Any, expected: Any) -> bool:
    if isinstance(fact_value, (list, tuple, set)):
        return False
    return _strict_equal(fact_value, expected)


def _in(fact_value: Any, expected: Any) -> bool:
    if not isinstance(expected, list):
        return False
    if isinstance(fact_value, (list, tuple, set)):
        return any(_contains(expected, item) for item in fact_value)
    return _contains(expected, fact_value)


def evaluate_condition(condition: RuleCondition, subject: Mapping[str, Any]) -> bool:
    """Evaluate a single condition against a subject's facts."""
    if not condition.fact or not isinstance(subject, Mapping):
        return False

    fact_value = subject.get(condition.fact)
    if fact_value is None:
        return False

    operator = condition.operator
    if operator == RuleOperator.EQUAL:
        return _equal(fact_value, condition.value)
    elif operator == RuleOperator.NOT_EQUAL:
        return not _equal(fact_value, condition.value)
    elif operator == RuleOperator.IN:
        return _in(fact_value, condition.value)
    elif operator == RuleOperator.NOT_IN:
        return isinstance(condition.value, list) and not _in(fact_value, condition.value)

    return False


def conditions_match(conditions: RuleConditions, subject: Mapping[str, Any]) -> bool:
    """Evaluate a rule's condition groups. Empty groups never match."""
    if conditions.all:
        return all(evaluate_condition(c, subject) for c in conditions.all)
    if conditions.any:
        return any(evaluate_condition(c, subject) for c in conditions.any)
    return False


def sort_by_priority(rules: Iterable[Rule]) -> List[Rule]:
    """Order rules by descending priority; sorted() is stable so ties keep input order."""
    return sorted(rules, key=lambda r: r.priority, reverse=True)


def find_matching_rule(subject: Mapping[str, Any], rules: Iterable[Rule]) -> Optional[Rule]:
    """Return the highest-priority rule whose conditions hold for the subject."""
    if rules is None:
        return None
    for rule in sort_by_priority(rules):
        if rule.outcome is None:
            continue
        if conditions_match(rule.conditions, subject):
            logger.debug("Rule matched", rule_id=rule.rule_id, priority=rule.priority)
            return rule
    return None


def classify(subject: Mapping[str, Any], active_rules: Iterable[Rule]) -> Optional[RuleOutcome]:
    """Classify a subject against active rules.

    The caller is responsible for passing only active rules; ``is_active`` is
    not consulted here. Returns None when no rule matches.
    """
    rule = find_matching_rule(subject, active_rules)
    return rule.outcome if rule else None


class RuleEngine:
    """In-memory rule registry backing the classification endpoints."""

    def __init__(self):
        self.rules: Dict[str, Rule] = {}
        self._active_cache: Optional[List[Rule]] = None

    def add_rule(self, rule: Rule) -> bool:
        """Add a rule to the engine, replacing any rule with the same id."""
        self.rules[rule.rule_id] = rule
        self._invalidate_cache()
        logger.info("Rule added", rule_id=rule.rule_id, name=rule.name)
        return True

    def update_rule(self, rule: Rule) -> bool:
        """Update a rule in the engine."""
        if rule.rule_id not in self.rules:
            return False
        self.rules[rule.rule_id] = rule
        self._invalidate_cache()
        logger.info("Rule updated", rule_id=rule.rule_id, name=rule.name)
        return True

    def remove_rule(self, rule_id: str) -> bool:
        """Remove a rule from the engine."""
        rule = self.rules.pop(rule_id, None)
        if rule is None:
            return False
        self._invalidate_cache()
        logger.info("Rule removed", rule_id=rule_id, name=rule.name)
        return True

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get a rule by ID."""
        return self.rules.get(rule_id)

    def load_rules(self, rules: Iterable[Rule]):
        """Replace all rules."""
        self.rules = {}
        for rule in rules:
            if rule.rule_id in self.rules:
                logger.warning("Duplicate rule id, keeping the later rule", rule_id=rule.rule_id)
            self.rules[rule.rule_id] = rule
        self._invalidate_cache()
        logger.info("Rules loaded", total=len(self.rules))

    def get_active_rules(self) -> List[Rule]:
        """Active rules, highest priority first."""
        if self._active_cache is None:
            self._active_cache = sort_by_priority(
                rule for rule in self.rules.values() if rule.is_active
            )
        return list(self._active_cache)

    def classify(self, subject: Mapping[str, Any]) -> Optional[Rule]:
        """Find the matching active rule for a subject."""
        return find_matching_rule(subject, self.get_active_rules())

    def get_engine_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        active = self.get_active_rules()
        return {
            "total_rules": len(self.rules),
            "active_rules": len(active),
            "inactive_rules": len(self.rules) - len(active),
            "allowance_groups": sorted({
                r.outcome.allowance_group for r in self.rules.values() if r.outcome
            }),
        }

    def _invalidate_cache(self):
        self._active_cache = None

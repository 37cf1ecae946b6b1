"""
Unit tests for allowance rule records.
"""

import pytest

from service_allowance.app.rules.engine import classify
from service_allowance.app.rules.models import Rule, RuleCondition, RuleOperator, RuleOutcome
from shared.test_helpers import create_rule_record


class TestRuleOperator:
    """Test cases for operator parsing."""

    @pytest.mark.parametrize("name,expected", [
        ("equal", RuleOperator.EQUAL),
        ("Equal", RuleOperator.EQUAL),
        ("notEqual", RuleOperator.NOT_EQUAL),
        ("NotEqual", RuleOperator.NOT_EQUAL),
        ("not_equal", RuleOperator.NOT_EQUAL),
        ("in", RuleOperator.IN),
        ("In", RuleOperator.IN),
        ("notIn", RuleOperator.NOT_IN),
        ("NotIn", RuleOperator.NOT_IN),
        ("NOT_IN", RuleOperator.NOT_IN),
    ])
    def test_parse_spellings(self, name, expected):
        """Test stored and enum spellings parse to the same operator."""
        assert RuleOperator.parse(name) is expected

    @pytest.mark.parametrize("name", ["contains", "greaterThan", "", None, 3, ["in"]])
    def test_parse_unknown(self, name):
        """Test unknown operators parse to None."""
        assert RuleOperator.parse(name) is None


class TestRuleFromRecord:
    """Test cases for building rules from persisted records."""

    def test_dict_record(self):
        """Test a camelCase record with dict conditions."""
        record = create_rule_record(
            rule_id="r1",
            name="Doctor Rule",
            priority=100,
            all_conditions=[{"fact": "position", "operator": "Equal", "value": "Doctor"}],
            allowance_group="Doctor",
            tier="1",
        )

        rule = Rule.from_record(record)

        assert rule.rule_id == "r1"
        assert rule.name == "Doctor Rule"
        assert rule.priority == 100
        assert rule.is_active is True
        assert rule.conditions.all == [RuleCondition("position", RuleOperator.EQUAL, "Doctor")]
        assert rule.conditions.any == []
        assert rule.outcome == RuleOutcome("Doctor", "1")

    def test_json_text_columns(self):
        """Test conditions and outcome stored as JSON text."""
        record = create_rule_record(
            rule_id="r2",
            name="Pharmacist Rule",
            priority="80",
            any_conditions=[{"fact": "specialTasks", "operator": "In", "value": ["Chemotherapy Prep"]}],
            allowance_group="เภสัชกร",
            tier="2",
            as_json=True,
        )

        rule = Rule.from_record(record)

        assert rule.priority == 80
        assert rule.conditions.any[0].operator is RuleOperator.IN
        assert rule.outcome == RuleOutcome("เภสัชกร", "2")
        assert classify({"specialTasks": ["Chemotherapy Prep"]}, [rule]) == RuleOutcome("เภสัชกร", "2")

    def test_snake_case_record(self):
        """Test snake_case keys."""
        rule = Rule.from_record({
            "rule_id": "r3",
            "name": "Inactive",
            "is_active": False,
            "conditions": {"all": [{"fact": "position", "operator": "in", "value": ["Nurse"]}]},
            "outcome": {"allowance_group": "Nurse", "tier": 2},
        })

        assert rule.rule_id == "r3"
        assert rule.is_active is False
        assert rule.outcome == RuleOutcome("Nurse", "2")

    def test_malformed_record_does_not_raise(self):
        """Test garbage in a record yields a rule that never matches."""
        rule = Rule.from_record({
            "id": "bad",
            "name": "Bad",
            "priority": "high",
            "conditions": "{not json",
            "outcome": None,
        })

        assert rule.priority == 0
        assert rule.conditions.all == []
        assert rule.conditions.any == []
        assert rule.outcome is None
        assert classify({"position": "Nurse"}, [rule]) is None

    def test_missing_id_is_generated(self):
        """Test records without an id get distinct generated ids."""
        first = Rule.from_record({"name": "A", "conditions": {}, "outcome": None})
        second = Rule.from_record({"id": None, "name": "B", "conditions": {}, "outcome": None})
        third = Rule.from_record({"id": "", "rule_id": "r9", "name": "C"})

        assert first.rule_id
        assert second.rule_id
        assert first.rule_id != second.rule_id
        assert second.rule_id != "None"
        assert third.rule_id == "r9"

    def test_malformed_condition_is_false(self):
        """Test malformed conditions inside an otherwise valid rule."""
        rule = Rule.from_record(create_rule_record(
            rule_id="r4",
            name="Mixed",
            any_conditions=["position", {"fact": 7, "operator": "Equal", "value": "Nurse"},
                            {"fact": "position", "operator": "matches", "value": "Nurse"}],
            allowance_group="Nurse",
            tier="1",
        ))

        assert len(rule.conditions.any) == 3
        assert classify({"position": "Nurse"}, [rule]) is None

    def test_to_record_round_trip(self):
        """Test serialising a parsed rule back to its record shape."""
        record = create_rule_record(
            rule_id="r5",
            name="Nurse Rule",
            priority=5,
            all_conditions=[{"fact": "position", "operator": "equal", "value": "Nurse"}],
            allowance_group="Nurse",
            tier="1",
        )

        assert Rule.from_record(record).to_record() == record

"""
Test helper functions and factory methods for the PTS allowance access layer.
"""

import json
import uuid
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field


@dataclass
class TestUser:
    """Test user data."""
    __test__ = False

    user_id: str
    role: str
    department: Optional[str] = None
    position: Optional[str] = None
    certifications: List[str] = field(default_factory=list)
    special_tasks: List[str] = field(default_factory=list)

    def facts(self) -> Dict[str, Any]:
        """The user as a rule subject."""
        return {
            "id": self.user_id,
            "position": self.position,
            "department": self.department,
            "certifications": self.certifications,
            "specialTasks": self.special_tasks,
        }

    def actor(self) -> Dict[str, Any]:
        """The user as a workflow actor."""
        return {"id": self.user_id, "role": self.role, "department": self.department}

    def headers(self) -> Dict[str, str]:
        """Identity headers as forwarded by the gateway."""
        headers = {"X-User-Id": self.user_id, "X-User-Role": self.role}
        if self.department:
            headers["X-User-Department"] = self.department
        return headers


class TestDataFactory:
    """Factory for creating test data."""
    __test__ = False

    @staticmethod
    def create_test_users() -> List[TestUser]:
        """One user per role."""
        return [
            TestUser(
                user_id="emp-1",
                role="employee",
                department="Emergency",
                position="Nurse",
                certifications=["ICU Certified"],
            ),
            TestUser(user_id="sup-1", role="supervisor", department="Emergency"),
            TestUser(user_id="hr-1", role="hr", department="Human Resources"),
            TestUser(user_id="fin-1", role="finance", department="Finance"),
            TestUser(user_id="admin-1", role="admin", department="IT"),
        ]

    @staticmethod
    def create_test_rules() -> List[Dict[str, Any]]:
        """Rule records in the persisted shape."""
        return [
            create_rule_record(
                rule_id="rule-nurse-icu",
                name="Specialist Nurse Rule",
                priority=100,
                all_conditions=[
                    {"fact": "position", "operator": "Equal", "value": "Nurse"},
                    {"fact": "certifications", "operator": "In", "value": ["ICU Certified"]},
                ],
                allowance_group="Nurse",
                tier="3",
            ),
            create_rule_record(
                rule_id="rule-nurse",
                name="General Nurse Rule",
                priority=50,
                all_conditions=[{"fact": "position", "operator": "Equal", "value": "Nurse"}],
                allowance_group="Nurse",
                tier="1",
            ),
            create_rule_record(
                rule_id="rule-pharmacist",
                name="Pharmacist with Special Tasks or Oncology",
                priority=80,
                any_conditions=[
                    {"fact": "specialTasks", "operator": "In", "value": ["Chemotherapy Prep"]},
                    {"fact": "department", "operator": "Equal", "value": "Oncology"},
                ],
                allowance_group="Pharmacist",
                tier="2",
            ),
            create_rule_record(
                rule_id="rule-retired",
                name="Retired Doctor Rule",
                priority=500,
                all_conditions=[{"fact": "position", "operator": "Equal", "value": "Nurse"}],
                allowance_group="Doctor",
                tier="9",
                is_active=False,
            ),
        ]

    @staticmethod
    def create_test_rates() -> List[Dict[str, Any]]:
        """Rate records with the rates table column names."""
        return [
            {"id": "rate-1", "group_name": "Nurse", "tier": "1", "base_rate": "1000.00",
             "effective_date": "2023-10-01", "isActive": True},
            {"id": "rate-2", "group_name": "Nurse", "tier": "3", "base_rate": "1500.00",
             "effective_date": "2023-10-01", "isActive": True},
            {"id": "rate-3", "group_name": "Nurse", "tier": "3", "base_rate": "2000.00",
             "effective_date": "2024-10-01", "isActive": True},
            {"id": "rate-4", "group_name": "Pharmacist", "tier": "2", "base_rate": "1500.00",
             "effective_date": "2024-10-01", "isActive": False},
        ]


def create_rule_record(
    name: str,
    allowance_group: str,
    tier: str,
    priority: int = 0,
    all_conditions: Optional[List[Dict[str, Any]]] = None,
    any_conditions: Optional[List[Dict[str, Any]]] = None,
    rule_id: Optional[str] = None,
    is_active: bool = True,
    as_json: bool = False,
) -> Dict[str, Any]:
    """Create a rule record; ``as_json`` stores conditions/outcome as JSON text like the database does."""
    conditions: Dict[str, Any] = {}
    if all_conditions is not None:
        conditions["all"] = all_conditions
    if any_conditions is not None:
        conditions["any"] = any_conditions
    outcome = {"allowanceGroup": allowance_group, "tier": tier}

    return {
        "id": rule_id or str(uuid.uuid4()),
        "name": name,
        "description": f"{name} (test)",
        "priority": priority,
        "isActive": is_active,
        "conditions": json.dumps(conditions) if as_json else conditions,
        "outcome": json.dumps(outcome) if as_json else outcome,
    }


def create_request_record(
    employee_id: str,
    department: str,
    status: str = "draft",
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create an allowance request record with the fields authorization reads."""
    return {
        "id": request_id or f"req-{uuid.uuid4().hex[:8]}",
        "employeeId": employee_id,
        "department": department,
        "status": status,
    }


def write_json(path, records: List[Dict[str, Any]]) -> str:
    """Write records to ``path`` as a JSON array and return the path as a string."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(records, f, ensure_ascii=False)
    return str(path)

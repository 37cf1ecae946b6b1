"""
Rule data models for the Allowance Service.
"""

import json
import uuid
from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


Scalar = Union[str, int, float, bool]
FactValue = Union[Scalar, List[Scalar]]


class RuleOperator(str, Enum):
    """Condition operators."""
    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    IN = "in"
    NOT_IN = "notIn"

    @classmethod
    def _missing_(cls, value):
        # Stored rules spell operators "Equal", "NotEqual", "not_in", ...
        if isinstance(value, str):
            key = value.replace("_", "").replace("-", "").lower()
            for member in cls:
                if member.value.lower() == key:
                    return member
        return None

    @classmethod
    def parse(cls, value: Any) -> Optional["RuleOperator"]:
        """Parse an operator name, returning None when it is not recognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            return None


@dataclass(frozen=True)
class RuleCondition:
    """A single fact test. A condition without a usable operator never holds."""
    fact: str
    operator: Optional[RuleOperator]
    value: Any

    @classmethod
    def from_record(cls, record: Any) -> "RuleCondition":
        if not isinstance(record, dict):
            return cls(fact="", operator=None, value=None)
        fact = record.get("fact")
        return cls(
            fact=fact if isinstance(fact, str) else "",
            operator=RuleOperator.parse(record.get("operator")),
            value=record.get("value"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "fact": self.fact,
            "operator": self.operator.value if self.operator else None,
            "value": self.value,
        }


@dataclass(frozen=True)
class RuleConditions:
    """Condition groups of a rule.

    ``all`` requires every condition to hold, ``any`` at least one. When
    ``all`` is non-empty it decides the match and ``any`` is not consulted.
    """
    all: List[RuleCondition] = field(default_factory=list)
    any: List[RuleCondition] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Any) -> "RuleConditions":
        record = _load_json(record)
        if not isinstance(record, dict):
            return cls()
        return cls(
            all=_parse_conditions(record.get("all")),
            any=_parse_conditions(record.get("any")),
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        if self.all:
            record["all"] = [c.to_record() for c in self.all]
        if self.any:
            record["any"] = [c.to_record() for c in self.any]
        return record


@dataclass(frozen=True)
class RuleOutcome:
    """Allowance classification produced by a matching rule."""
    allowance_group: str
    tier: str

    @classmethod
    def from_record(cls, record: Any) -> Optional["RuleOutcome"]:
        record = _load_json(record)
        if not isinstance(record, dict):
            return None
        group = record.get("allowanceGroup", record.get("allowance_group"))
        tier = record.get("tier")
        if group is None or tier is None:
            return None
        return cls(allowance_group=str(group), tier=str(tier))

    def to_record(self) -> Dict[str, str]:
        return {"allowanceGroup": self.allowance_group, "tier": self.tier}


@dataclass
class Rule:
    """Allowance classification rule."""
    rule_id: str
    name: str
    conditions: RuleConditions
    outcome: Optional[RuleOutcome]
    description: Optional[str] = None
    priority: int = 0
    is_active: bool = True

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Rule":
        """Build a rule from a persisted record (camelCase or snake_case keys).

        Records without an id are given a generated one so they stay distinct
        in the registry.
        """
        rule_id = record.get("id")
        if rule_id is None or rule_id == "":
            rule_id = record.get("rule_id")
        if rule_id is None or rule_id == "":
            rule_id = str(uuid.uuid4())

        priority = record.get("priority", 0)
        try:
            priority = int(priority)
        except (TypeError, ValueError):
            priority = 0

        is_active = record.get("isActive", record.get("is_active", True))

        return cls(
            rule_id=str(rule_id),
            name=str(record.get("name", "")),
            description=record.get("description"),
            priority=priority,
            is_active=bool(is_active),
            conditions=RuleConditions.from_record(record.get("conditions")),
            outcome=RuleOutcome.from_record(record.get("outcome")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.rule_id,
            "name": self.name,
            "description": self.description,
            "priority": self.priority,
            "isActive": self.is_active,
            "conditions": self.conditions.to_record(),
            "outcome": self.outcome.to_record() if self.outcome else None,
        }


def _load_json(value: Any) -> Any:
    # MySQL JSON/TEXT columns come back as strings
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value


def _parse_conditions(records: Any) -> List[RuleCondition]:
    if not isinstance(records, list):
        return []
    return [RuleCondition.from_record(r) for r in records]


# API models

class ConditionModel(BaseModel):
    """Wire format of a rule condition."""
    fact: str = Field(..., description="Subject attribute name")
    operator: str = Field(..., description="equal, notEqual, in or notIn")
    value: Any = Field(None, description="Scalar or list of scalars")


class ConditionsModel(BaseModel):
    """Wire format of a rule's condition groups."""
    all: Optional[List[ConditionModel]] = None
    any: Optional[List[ConditionModel]] = None


class OutcomeModel(BaseModel):
    """Wire format of an allowance outcome."""
    model_config = ConfigDict(populate_by_name=True)

    allowance_group: str = Field(..., alias="allowanceGroup")
    tier: str


class RuleCreateRequest(BaseModel):
    """Request model for creating a rule."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="Rule name")
    description: Optional[str] = Field(None, description="Rule description")
    priority: int = Field(0, description="Higher priority rules are evaluated first")
    is_active: bool = Field(True, alias="isActive")
    conditions: ConditionsModel
    outcome: OutcomeModel


class RuleUpdateRequest(BaseModel):
    """Request model for updating a rule."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    conditions: Optional[ConditionsModel] = None
    outcome: Optional[OutcomeModel] = None


class RuleListResponse(BaseModel):
    """Response model for rule list."""
    rules: List[Dict[str, Any]]
    total: int
    page: int
    limit: int


class ClassifyRequest(BaseModel):
    """Request model for allowance classification."""
    subject: Dict[str, Any] = Field(default_factory=dict, description="Facts about the employee")
    rules: Optional[List[Dict[str, Any]]] = Field(
        None, description="Active rule records; the service's registered rules are used when omitted"
    )


class ClassifyResponse(BaseModel):
    """Response model for allowance classification."""
    model_config = ConfigDict(populate_by_name=True)

    allowance_group: Optional[str] = Field(None, alias="allowanceGroup")
    tier: Optional[str] = None
    matched_rule_id: Optional[str] = Field(None, alias="matchedRuleId")
    monthly_rate: Optional[float] = Field(None, alias="monthlyRate")

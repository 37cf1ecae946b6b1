"""
Workflow data models: roles, request statuses, actors and requests.
"""

from typing import Dict, Any, Optional, Union, Mapping
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Roles that take part in the allowance workflow."""
    EMPLOYEE = "employee"
    SUPERVISOR = "supervisor"
    HR = "hr"
    FINANCE = "finance"
    ADMIN = "admin"


class RequestStatus(str, Enum):
    """Statuses of an allowance request as used by the transition table."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED_BY_SUPERVISOR = "approved_by_supervisor"
    REJECTED_BY_SUPERVISOR = "rejected_by_supervisor"
    APPROVED_BY_HR = "approved_by_hr"
    REJECTED_BY_HR = "rejected_by_hr"
    PROCESSED = "processed"
    REJECTED_BY_FINANCE = "rejected_by_finance"
    ARCHIVED = "archived"


def parse_role(value: Any) -> Optional[UserRole]:
    """Parse a role name; unknown or missing roles give None."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except (ValueError, TypeError):
        return None


def parse_status(value: Any) -> Optional[RequestStatus]:
    """Parse a status name; unknown or missing statuses give None."""
    if isinstance(value, RequestStatus):
        return value
    try:
        return RequestStatus(value)
    except (ValueError, TypeError):
        return None


@dataclass(frozen=True)
class Actor:
    """The user asking to view or move a request."""
    id: Optional[str]
    role: Optional[str]
    department: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Actor":
        return cls(
            id=record.get("id", record.get("userId", record.get("user_id"))),
            role=record.get("role"),
            department=record.get("department"),
        )


@dataclass(frozen=True)
class AllowanceRequest:
    """The request fields that visibility decisions look at."""
    id: Optional[str]
    employee_id: Optional[str]
    department: Optional[str]
    status: Optional[str]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AllowanceRequest":
        return cls(
            id=record.get("id"),
            employee_id=record.get("employeeId", record.get("employee_id")),
            department=record.get("department"),
            status=record.get("status"),
        )


ActorLike = Union[Actor, Mapping[str, Any]]
RequestLike = Union[AllowanceRequest, Mapping[str, Any]]


# API models

class TransitionCheckRequest(BaseModel):
    """Request model for a transition legality check."""
    model_config = ConfigDict(populate_by_name=True)

    role: Optional[str] = None
    current_status: Optional[str] = Field(None, alias="currentStatus")
    next_status: Optional[str] = Field(None, alias="nextStatus")


class VisibilityCheckRequest(BaseModel):
    """Request model for a view authorization check."""
    actor: Optional[Dict[str, Any]] = None
    request: Optional[Dict[str, Any]] = None


class TransitionAuthorizeRequest(BaseModel):
    """Request model for authorizing a status change on a concrete request.

    The acting user comes from the forwarded identity headers, not the body.
    """
    model_config = ConfigDict(populate_by_name=True)

    request: Dict[str, Any]
    next_status: str = Field(..., alias="nextStatus")


class DecisionResponse(BaseModel):
    """Boolean decision with a short reason."""
    allowed: bool
    reason: Optional[str] = None

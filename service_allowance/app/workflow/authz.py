"""
Workflow authorization for allowance requests.

Two questions are answered here, both as pure lookups that never raise:

- may a role move a request from one status to another (``can_transition``)
- may an actor see a given request (``can_view_request``)

Ownership checks (an employee submitting only their own draft) are layered on
by the caller in addition to these.
"""

from typing import Any, Dict, List, Iterable, Mapping, Optional, Tuple

from .models import (
    Actor, AllowanceRequest, ActorLike, RequestLike,
    RequestStatus, UserRole, parse_role, parse_status,
)

S = RequestStatus

TRANSITIONS: Dict[UserRole, Dict[RequestStatus, Tuple[RequestStatus, ...]]] = {
    UserRole.EMPLOYEE: {
        S.DRAFT: (S.SUBMITTED, S.ARCHIVED),
    },
    UserRole.SUPERVISOR: {
        S.SUBMITTED: (S.APPROVED_BY_SUPERVISOR, S.REJECTED_BY_SUPERVISOR),
    },
    UserRole.HR: {
        S.APPROVED_BY_SUPERVISOR: (S.APPROVED_BY_HR, S.REJECTED_BY_HR),
        S.REJECTED_BY_SUPERVISOR: (S.ARCHIVED,),
    },
    UserRole.FINANCE: {
        S.APPROVED_BY_HR: (S.PROCESSED, S.REJECTED_BY_FINANCE),
        S.REJECTED_BY_HR: (S.ARCHIVED,),
    },
    UserRole.ADMIN: {
        S.DRAFT: (S.SUBMITTED, S.ARCHIVED),
        S.SUBMITTED: (S.APPROVED_BY_SUPERVISOR, S.REJECTED_BY_SUPERVISOR, S.ARCHIVED),
        S.APPROVED_BY_SUPERVISOR: (S.APPROVED_BY_HR, S.REJECTED_BY_HR, S.ARCHIVED),
        S.REJECTED_BY_SUPERVISOR: (S.ARCHIVED, S.SUBMITTED),
        S.APPROVED_BY_HR: (S.PROCESSED, S.REJECTED_BY_FINANCE, S.ARCHIVED),
        S.REJECTED_BY_HR: (S.ARCHIVED, S.SUBMITTED),
        S.PROCESSED: (S.ARCHIVED,),
        S.REJECTED_BY_FINANCE: (S.ARCHIVED,),
    },
}

FINANCE_VISIBLE_STATUSES = frozenset({
    S.APPROVED_BY_HR,
    S.PROCESSED,
    S.REJECTED_BY_FINANCE,
})


def allowed_transitions(role: Any, current_status: Any) -> List[RequestStatus]:
    """Statuses the role may move a request to from ``current_status``."""
    role = parse_role(role)
    current = parse_status(current_status)
    if role is None or current is None:
        return []
    return list(TRANSITIONS.get(role, {}).get(current, ()))


def can_transition(role: Any, current_status: Any, next_status: Any) -> bool:
    """Whether the transition is structurally permitted for the role."""
    target = parse_status(next_status)
    if target is None:
        return False
    return target in allowed_transitions(role, current_status)


def _as_actor(actor: Optional[ActorLike]) -> Optional[Actor]:
    if isinstance(actor, Actor):
        return actor
    if isinstance(actor, Mapping):
        return Actor.from_record(actor)
    return None


def _as_request(request: Optional[RequestLike]) -> Optional[AllowanceRequest]:
    if isinstance(request, AllowanceRequest):
        return request
    if isinstance(request, Mapping):
        return AllowanceRequest.from_record(request)
    return None


def can_view_request(actor: Optional[ActorLike], request: Optional[RequestLike]) -> bool:
    """Whether the actor may see the request.

    Supervisors see their whole department, employees only their own
    requests, HR everything past draft and finance only what cleared HR.
    """
    actor = _as_actor(actor)
    request = _as_request(request)
    if actor is None or request is None:
        return False

    role = parse_role(actor.role)
    if role == UserRole.ADMIN:
        return True
    elif role == UserRole.EMPLOYEE:
        return actor.id is not None and actor.id == request.employee_id
    elif role == UserRole.SUPERVISOR:
        return actor.department is not None and actor.department == request.department
    elif role == UserRole.HR:
        return request.status is not None and request.status != RequestStatus.DRAFT.value
    elif role == UserRole.FINANCE:
        return parse_status(request.status) in FINANCE_VISIBLE_STATUSES

    return False


def visible_requests(actor: Optional[ActorLike], requests: Iterable[RequestLike]) -> List[RequestLike]:
    """Filter a request listing down to what the actor may see."""
    if requests is None:
        return []
    return [request for request in requests if can_view_request(actor, request)]

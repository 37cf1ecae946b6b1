"""
Allowance service for the PTS access layer.
"""

import time
import uuid
from dataclasses import replace
from typing import Optional

from fastapi import Header, Query

from shared.base_service import BaseService
from shared.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError

from .persistence.json_store import load_rates, load_rules
from .rates.models import RateResponse
from .rates.table import RateTable
from .rules.engine import RuleEngine, find_matching_rule
from .rules.models import (
    Rule, RuleConditions, RuleOutcome,
    ClassifyRequest, ClassifyResponse,
    RuleCreateRequest, RuleUpdateRequest, RuleListResponse,
)
from .workflow.authz import allowed_transitions, can_transition, can_view_request
from .workflow.models import (
    Actor, UserRole, parse_role,
    TransitionCheckRequest, VisibilityCheckRequest, TransitionAuthorizeRequest,
    DecisionResponse,
)


class AllowanceService(BaseService):
    """Allowance service implementation."""

    def __init__(self, **config_overrides):
        super().__init__("allowance", 8020, **config_overrides)

        self.rule_engine = RuleEngine()
        self.rate_table = RateTable()

        self.rule_engine.load_rules(load_rules(self.config.rules_file))
        self.rate_table.load_rates(load_rates(self.config.rates_file))

        self._setup_allowance_routes()

    def _identify(self, user_id: Optional[str], user_role: Optional[str],
                  user_department: Optional[str] = None) -> Actor:
        """Build the acting user from the gateway-forwarded identity headers."""
        if not user_role:
            raise AuthenticationError("Missing user identity headers")
        return Actor(id=user_id, role=user_role, department=user_department)

    def _require_admin(self, user_id: Optional[str], user_role: Optional[str]) -> Actor:
        """Resolve the forwarded identity and insist on the admin role."""
        actor = self._identify(user_id, user_role)
        if parse_role(actor.role) != UserRole.ADMIN:
            raise AuthorizationError(
                "Only administrators may manage allowance rules",
                {"role": user_role}
            )
        return actor

    def _setup_allowance_routes(self):
        """Set up allowance-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "allowance",
                "message": "PTS Access Layer - Allowance Service",
                "version": "1.0.0",
                "capabilities": ["rule_engine", "rates", "workflow"]
            }

        @self.app.post("/allowance/classify", response_model=ClassifyResponse, response_model_by_alias=True)
        async def classify(request: ClassifyRequest):
            """Classify an employee into an allowance group and tier."""
            start_time = time.time()

            if request.rules is not None:
                rule = find_matching_rule(request.subject, [Rule.from_record(r) for r in request.rules])
            else:
                rule = self.rule_engine.classify(request.subject)

            self.metrics.record_classification(rule is not None, time.time() - start_time)

            if rule is None:
                self.logger.info("No matching allowance rule", facts=sorted(request.subject))
                return ClassifyResponse()

            rate = self.rate_table.find_by_group_and_tier(rule.outcome.allowance_group, rule.outcome.tier)
            self.logger.info(
                "Allowance classified",
                rule_id=rule.rule_id,
                allowance_group=rule.outcome.allowance_group,
                tier=rule.outcome.tier
            )
            return ClassifyResponse(
                allowance_group=rule.outcome.allowance_group,
                tier=rule.outcome.tier,
                matched_rule_id=rule.rule_id,
                monthly_rate=float(rate.monthly_rate) if rate else None
            )

        @self.app.get("/allowance/rates")
        async def get_rates(
            group: Optional[str] = Query(None, description="Allowance group"),
            tier: Optional[str] = Query(None, description="Tier within the group")
        ):
            """Current rate for a group and tier, or every current rate."""
            if group is None and tier is None:
                return {
                    "rates": [r.to_record() for r in self.rate_table.active_groups_and_tiers()]
                }
            if group is None or tier is None:
                raise ValidationError("Both group and tier are required", {"group": group, "tier": tier})

            rate = self.rate_table.find_by_group_and_tier(group, tier)
            if rate is None:
                raise NotFoundError("Rate", f"{group}/{tier}")
            return RateResponse(**rate.to_record())

        @self.app.get("/allowance/rules", response_model=RuleListResponse)
        async def get_rules(
            active_only: bool = Query(False, description="Only active rules, highest priority first"),
            page: int = Query(1, ge=1, description="Page number"),
            limit: int = Query(50, ge=1, le=100, description="Items per page")
        ):
            """List registered rules."""
            if active_only:
                rules = self.rule_engine.get_active_rules()
            else:
                rules = sorted(self.rule_engine.rules.values(), key=lambda r: r.name)

            start_idx = (page - 1) * limit
            return RuleListResponse(
                rules=[r.to_record() for r in rules[start_idx:start_idx + limit]],
                total=len(rules),
                page=page,
                limit=limit
            )

        @self.app.post("/allowance/rules", status_code=201)
        async def create_rule(
            request: RuleCreateRequest,
            x_user_id: Optional[str] = Header(None),
            x_user_role: Optional[str] = Header(None)
        ):
            """Create a new rule."""
            actor = self._require_admin(x_user_id, x_user_role)

            rule = Rule(
                rule_id=str(uuid.uuid4()),
                name=request.name,
                description=request.description,
                priority=request.priority,
                is_active=request.is_active,
                conditions=RuleConditions.from_record(request.conditions.model_dump(exclude_none=True)),
                outcome=RuleOutcome.from_record(request.outcome.model_dump(by_alias=True)),
            )
            self.rule_engine.add_rule(rule)

            self.logger.info("Rule created", rule_id=rule.rule_id, name=rule.name, created_by=actor.id)
            return rule.to_record()

        @self.app.put("/allowance/rules/{rule_id}")
        async def update_rule(
            rule_id: str,
            request: RuleUpdateRequest,
            x_user_id: Optional[str] = Header(None),
            x_user_role: Optional[str] = Header(None)
        ):
            """Update an existing rule."""
            actor = self._require_admin(x_user_id, x_user_role)

            existing_rule = self.rule_engine.get_rule(rule_id)
            if existing_rule is None:
                raise NotFoundError("Rule", rule_id)

            changes = {}
            if request.name is not None:
                changes["name"] = request.name
            if request.description is not None:
                changes["description"] = request.description
            if request.priority is not None:
                changes["priority"] = request.priority
            if request.is_active is not None:
                changes["is_active"] = request.is_active
            if request.conditions is not None:
                changes["conditions"] = RuleConditions.from_record(
                    request.conditions.model_dump(exclude_none=True)
                )
            if request.outcome is not None:
                changes["outcome"] = RuleOutcome.from_record(request.outcome.model_dump(by_alias=True))

            rule = replace(existing_rule, **changes)
            self.rule_engine.update_rule(rule)

            self.logger.info("Rule updated", rule_id=rule_id, fields=sorted(changes), updated_by=actor.id)
            return rule.to_record()

        @self.app.delete("/allowance/rules/{rule_id}")
        async def delete_rule(
            rule_id: str,
            x_user_id: Optional[str] = Header(None),
            x_user_role: Optional[str] = Header(None)
        ):
            """Delete a rule."""
            actor = self._require_admin(x_user_id, x_user_role)

            if not self.rule_engine.remove_rule(rule_id):
                raise NotFoundError("Rule", rule_id)

            self.logger.info("Rule deleted", rule_id=rule_id, deleted_by=actor.id)
            return {"success": True, "message": "Rule deleted successfully"}

        @self.app.post("/workflow/transitions/check", response_model=DecisionResponse)
        async def check_transition(request: TransitionCheckRequest):
            """Is the transition structurally permitted for the role."""
            allowed = can_transition(request.role, request.current_status, request.next_status)
            self.metrics.record_workflow_decision("transition", allowed)
            return DecisionResponse(
                allowed=allowed,
                reason=None if allowed else (
                    f"Role '{request.role}' may not move a request "
                    f"from '{request.current_status}' to '{request.next_status}'"
                )
            )

        @self.app.get("/workflow/transitions")
        async def get_transitions(
            role: str = Query(..., description="Actor role"),
            status: str = Query(..., description="Current request status")
        ):
            """Statuses the role may move a request to."""
            return {
                "role": role,
                "status": status,
                "next_statuses": [s.value for s in allowed_transitions(role, status)]
            }

        @self.app.post("/workflow/visibility/check", response_model=DecisionResponse)
        async def check_visibility(request: VisibilityCheckRequest):
            """May the actor view the request."""
            allowed = can_view_request(request.actor, request.request)
            self.metrics.record_workflow_decision("visibility", allowed)
            return DecisionResponse(
                allowed=allowed,
                reason=None if allowed else "Request is not visible to this actor"
            )

        @self.app.post("/workflow/transitions/authorize", response_model=DecisionResponse)
        async def authorize_transition(
            request: TransitionAuthorizeRequest,
            x_user_id: Optional[str] = Header(None),
            x_user_role: Optional[str] = Header(None),
            x_user_department: Optional[str] = Header(None)
        ):
            """Authorize the caller's status change on a concrete request, or fail with 403."""
            actor = self._identify(x_user_id, x_user_role, x_user_department)

            if not can_view_request(actor, request.request):
                self.metrics.record_workflow_decision("authorize", False)
                raise AuthorizationError(
                    "Request is not visible to this actor",
                    {"request_id": request.request.get("id")}
                )

            role = actor.role
            current_status = request.request.get("status")
            if not can_transition(role, current_status, request.next_status):
                self.metrics.record_workflow_decision("authorize", False)
                raise AuthorizationError(
                    "Status transition not permitted",
                    {
                        "role": role,
                        "current_status": current_status,
                        "next_status": request.next_status
                    }
                )

            self.metrics.record_workflow_decision("authorize", True)
            return DecisionResponse(allowed=True)

    async def _check_dependencies(self):
        """Report the loaded rule and rate counts."""
        stats = self.rule_engine.get_engine_stats()
        return {
            "rules": stats["total_rules"],
            "active_rules": stats["active_rules"],
            "rates": len(self.rate_table)
        }


def create_app(**config_overrides):
    """Create allowance service application."""
    service = AllowanceService(**config_overrides)
    return service.app


if __name__ == "__main__":
    service = AllowanceService()
    service.run()

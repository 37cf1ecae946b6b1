"""
Integration tests for the allowance request flow.

Walks one employee from classification through every approval step the way
the web application drives the service.
"""

import pytest
from fastapi.testclient import TestClient

from service_allowance.app.main import create_app
from shared.test_helpers import TestDataFactory, create_request_record, write_json


class TestAllowanceFlow:
    """Integration tests for the allowance request flow."""

    @pytest.fixture
    def client(self, tmp_path):
        """Service seeded with the factory rules and rates."""
        app = create_app(
            rules_file=write_json(tmp_path / "rules.json", TestDataFactory.create_test_rules()),
            rates_file=write_json(tmp_path / "rates.json", TestDataFactory.create_test_rates()),
        )
        return TestClient(app)

    @pytest.fixture
    def users(self):
        """Users keyed by role."""
        return {user.role: user for user in TestDataFactory.create_test_users()}

    def _authorize(self, client, user, request, next_status):
        return client.post(
            "/workflow/transitions/authorize",
            json={"request": request, "nextStatus": next_status},
            headers=user.headers(),
        )

    def _visible(self, client, user, request):
        response = client.post(
            "/workflow/visibility/check",
            json={"actor": user.actor(), "request": request},
        )
        return response.json()["allowed"]

    def test_request_lifecycle(self, client, users):
        """Test classification followed by the full approval path."""
        employee = users["employee"]

        classified = client.post("/allowance/classify", json={"subject": employee.facts()})
        assert classified.status_code == 200
        assert classified.json()["allowanceGroup"] == "Nurse"
        assert classified.json()["tier"] == "3"
        assert classified.json()["monthlyRate"] == 2000.0

        request = create_request_record(employee.user_id, employee.department, "draft", request_id="req-1")

        # Drafts belong to the employee alone
        assert self._visible(client, employee, request) is True
        assert self._visible(client, users["hr"], request) is False
        assert self._visible(client, users["finance"], request) is False

        steps = [
            ("employee", "submitted"),
            ("supervisor", "approved_by_supervisor"),
            ("hr", "approved_by_hr"),
            ("finance", "processed"),
        ]
        for role, next_status in steps:
            response = self._authorize(client, users[role], request, next_status)
            assert response.status_code == 200, (role, next_status, response.json())
            request["status"] = next_status

        assert self._visible(client, users["finance"], request) is True
        assert self._visible(client, users["supervisor"], request) is True

        archived = self._authorize(client, users["admin"], request, "archived")
        assert archived.status_code == 200

    def test_out_of_order_steps_refused(self, client, users):
        """Test roles cannot skip ahead or act on requests they cannot see."""
        employee = users["employee"]
        request = create_request_record(employee.user_id, employee.department, "submitted")

        hr_early = self._authorize(client, users["hr"], request, "approved_by_hr")
        assert hr_early.status_code == 403

        finance_blind = self._authorize(client, users["finance"], request, "processed")
        assert finance_blind.status_code == 403
        assert finance_blind.json()["message"] == "Request is not visible to this actor"

        self_approval = self._authorize(client, employee, request, "approved_by_supervisor")
        assert self_approval.status_code == 403
        assert self_approval.json()["message"] == "Status transition not permitted"

    def test_rejection_and_reopen(self, client, users):
        """Test a rejected request is archived by HR or re-opened by an admin."""
        employee = users["employee"]
        request = create_request_record(employee.user_id, employee.department, "submitted")

        rejected = self._authorize(client, users["supervisor"], request, "rejected_by_supervisor")
        assert rejected.status_code == 200
        request["status"] = "rejected_by_supervisor"

        assert self._authorize(client, employee, request, "submitted").status_code == 403
        assert self._authorize(client, users["admin"], request, "submitted").status_code == 200
        assert self._authorize(client, users["hr"], request, "archived").status_code == 200

    def test_rule_change_reclassifies(self, client, users):
        """Test an admin rule change is picked up by the next classification."""
        employee = users["employee"]
        admin = users["admin"]

        response = client.put(
            "/allowance/rules/rule-retired", json={"isActive": True}, headers=admin.headers()
        )
        assert response.status_code == 200

        classified = client.post("/allowance/classify", json={"subject": employee.facts()})
        assert classified.json()["matchedRuleId"] == "rule-retired"
        assert classified.json()["monthlyRate"] is None

        forbidden = client.put(
            "/allowance/rules/rule-retired", json={"isActive": False}, headers=employee.headers()
        )
        assert forbidden.status_code == 403

"""API fixtures: route dependencies overridden with services over in-memory fakes."""

import pytest

from orgflow.api.v1.dependencies import (
    get_template_service,
    get_template_service_for_write,
    get_workflow_runtime,
    get_workflow_runtime_for_write,
)
from orgflow.main import app
from tests.support.builders import ORG


@pytest.fixture
def wired_app(template_service, runtime):
    """App whose workflow dependencies resolve to the shared in-memory services."""
    app.dependency_overrides[get_template_service] = lambda: template_service
    app.dependency_overrides[get_template_service_for_write] = lambda: template_service
    app.dependency_overrides[get_workflow_runtime] = lambda: runtime
    app.dependency_overrides[get_workflow_runtime_for_write] = lambda: runtime
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def org_headers() -> dict[str, str]:
    return {"X-Organization-ID": ORG}


EXPENSE_TEMPLATE = {
    "name": "Expense approval",
    "initial_step_name": "manager_review",
    "steps": [
        {
            "step_name": "manager_review",
            "order": 1,
            "actions": [{"type": "ROLE", "approver_role": "MANAGER"}],
            "transitions": [
                {"from_outcome": "APPROVED", "to_step_name": "finance_review"},
                {"from_outcome": "REJECTED", "terminal_status": "REJECTED"},
            ],
        },
        {
            "step_name": "finance_review",
            "order": 2,
            "conditions": [{"type": "AMOUNT_RANGE", "min_amount": 1000}],
            "actions": [{"type": "ROLE", "approver_role": "ADMIN", "approval_mode": "ANY"}],
            "transitions": [
                {"from_outcome": "APPROVED", "terminal_status": "APPROVED"},
                {"from_outcome": "REJECTED", "terminal_status": "REJECTED"},
            ],
        },
    ],
}

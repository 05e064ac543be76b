"""HTTP tests for /api/v1/workflow-instances."""

import pytest
from httpx import AsyncClient

from tests.api.conftest import EXPENSE_TEMPLATE

BASE = "/api/v1/workflow-instances"


@pytest.fixture
async def template_id(client: AsyncClient, wired_app, org_headers) -> str:
    response = await client.post(
        "/api/v1/workflow-templates", json=EXPENSE_TEMPLATE, headers=org_headers
    )
    return response.json()["id"]


async def _start(client, headers, template_id, amount=1500, **extra):
    return await client.post(
        BASE,
        json={
            "subject_type": "expense",
            "subject_id": extra.pop("subject_id", "exp-1"),
            "template_id": template_id,
            "attributes": {"amount": amount, "has_receipt": True, "category": "travel"},
            **extra,
        },
        headers=headers,
    )


async def test_start_instance_returns_open_step(
    client: AsyncClient, org_headers, template_id
) -> None:
    response = await _start(client, org_headers, template_id, submitted_by="emp-1")
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "IN_PROGRESS"
    assert body["current_step_name"] == "manager_review"
    assert body["attributes"]["has_receipt"] is True
    assert body["attributes"]["category"] == "travel"
    execution = body["step_executions"][0]
    assert execution["required_actor_ids"] == ["mgr-1", "mgr-2"]
    assert execution["actor_groups"][0]["approval_mode"] == "ANY"


async def test_full_approval_over_http(client: AsyncClient, org_headers, template_id) -> None:
    instance = (await _start(client, org_headers, template_id)).json()
    url = f"{BASE}/{instance['id']}/decisions"

    step_one = await client.post(
        url,
        json={"actor_id": "mgr-1", "decision": "APPROVE", "step_name": "manager_review"},
        headers=org_headers,
    )
    assert step_one.status_code == 200
    assert step_one.json()["current_step_name"] == "finance_review"

    done = await client.post(
        url,
        json={
            "actor_id": "fin-1",
            "decision": "APPROVE",
            "step_name": "finance_review",
            "note": "within budget",
        },
        headers=org_headers,
    )
    body = done.json()
    assert body["status"] == "APPROVED"
    assert body["completed_at"] is not None
    assert body["step_executions"][1]["decisions"][0]["note"] == "within budget"


async def test_unauthorized_decision_is_403(client: AsyncClient, org_headers, template_id) -> None:
    instance = (await _start(client, org_headers, template_id)).json()
    response = await client.post(
        f"{BASE}/{instance['id']}/decisions",
        json={"actor_id": "emp-1", "decision": "APPROVE", "step_name": "manager_review"},
        headers=org_headers,
    )
    assert response.status_code == 403
    assert response.json()["error"] == "APPROVER_NOT_AUTHORIZED"


async def test_decision_on_rejected_instance_is_409(
    client: AsyncClient, org_headers, template_id
) -> None:
    instance = (await _start(client, org_headers, template_id)).json()
    url = f"{BASE}/{instance['id']}/decisions"
    await client.post(
        url,
        json={"actor_id": "mgr-1", "decision": "REJECT", "step_name": "manager_review"},
        headers=org_headers,
    )
    response = await client.post(
        url,
        json={"actor_id": "mgr-2", "decision": "APPROVE", "step_name": "manager_review"},
        headers=org_headers,
    )
    assert response.status_code == 409


async def test_invalid_decision_value_is_422(client: AsyncClient, org_headers, template_id) -> None:
    instance = (await _start(client, org_headers, template_id)).json()
    response = await client.post(
        f"{BASE}/{instance['id']}/decisions",
        json={"actor_id": "mgr-1", "decision": "MAYBE", "step_name": "manager_review"},
        headers=org_headers,
    )
    assert response.status_code == 422


async def test_no_eligible_approver_is_422(
    client: AsyncClient, org_headers, template_id
) -> None:
    template = {
        **EXPENSE_TEMPLATE,
        "steps": [
            {
                **EXPENSE_TEMPLATE["steps"][0],
                "actions": [{"type": "ROLE", "approver_role": "ASSISTANT"}],
                "transitions": [
                    {"from_outcome": "APPROVED", "terminal_status": "APPROVED"},
                    {"from_outcome": "REJECTED", "terminal_status": "REJECTED"},
                ],
            }
        ],
    }
    created = await client.post(
        "/api/v1/workflow-templates", json=template, headers=org_headers
    )
    response = await _start(client, org_headers, created.json()["id"])
    assert response.status_code == 422
    assert response.json()["error"] == "NO_ELIGIBLE_APPROVER"


async def test_cancel_and_list(client: AsyncClient, org_headers, template_id) -> None:
    first = (await _start(client, org_headers, template_id, subject_id="exp-1")).json()
    await _start(client, org_headers, template_id, subject_id="exp-2")

    cancelled = await client.post(
        f"{BASE}/{first['id']}/cancel",
        json={"cancelled_by": "emp-1", "reason": "duplicate"},
        headers=org_headers,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"

    no_body = await client.post(f"{BASE}/{first['id']}/cancel", headers=org_headers)
    assert no_body.status_code == 200

    listed = await client.get(BASE, params={"status": "CANCELLED"}, headers=org_headers)
    assert [i["subject_id"] for i in listed.json()] == ["exp-1"]


async def test_get_instance_other_organization_is_404(
    client: AsyncClient, org_headers, template_id
) -> None:
    instance = (await _start(client, org_headers, template_id)).json()
    response = await client.get(
        f"{BASE}/{instance['id']}", headers={"X-Organization-ID": "org-2"}
    )
    assert response.status_code == 404


async def test_start_without_automatic_template_is_404(
    client: AsyncClient, org_headers, template_id
) -> None:
    response = await _start(client, org_headers, None)
    assert response.status_code == 404


async def test_decision_without_step_name_is_422(
    client: AsyncClient, org_headers, template_id
) -> None:
    instance = (await _start(client, org_headers, template_id)).json()
    response = await client.post(
        f"{BASE}/{instance['id']}/decisions",
        json={"actor_id": "mgr-1", "decision": "APPROVE"},
        headers=org_headers,
    )
    assert response.status_code == 422


async def test_retried_decision_returns_same_state(
    client: AsyncClient, org_headers, template_id
) -> None:
    instance = (await _start(client, org_headers, template_id)).json()
    url = f"{BASE}/{instance['id']}/decisions"
    decision = {"actor_id": "mgr-1", "decision": "APPROVE", "step_name": "manager_review"}

    first = await client.post(url, json=decision, headers=org_headers)
    retry = await client.post(url, json=decision, headers=org_headers)

    assert retry.status_code == 200
    assert retry.json()["version"] == first.json()["version"]
    assert retry.json()["current_step_name"] == "finance_review"


async def test_numeric_string_location_stays_a_string(
    client: AsyncClient, wired_app, org_headers
) -> None:
    template = {
        "name": "Site approval",
        "initial_step_name": "site_review",
        "steps": [
            {
                "step_name": "site_review",
                "conditions": [{"type": "LOCATION", "location_id": "1001"}],
                "actions": [{"type": "ROLE", "approver_role": "ADMIN"}],
                "transitions": [
                    {"from_outcome": "APPROVED", "terminal_status": "APPROVED"},
                    {"from_outcome": "REJECTED", "terminal_status": "REJECTED"},
                ],
            }
        ],
    }
    created = await client.post(
        "/api/v1/workflow-templates", json=template, headers=org_headers
    )
    response = await client.post(
        BASE,
        json={
            "subject_type": "expense",
            "subject_id": "exp-9",
            "template_id": created.json()["id"],
            "attributes": {"location_id": "1001", "amount": 12.5},
        },
        headers=org_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "IN_PROGRESS"
    assert body["current_step_name"] == "site_review"
    assert body["attributes"]["location_id"] == "1001"
    assert body["attributes"]["amount"] == "12.5"

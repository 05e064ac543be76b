"""HTTP tests for /api/v1/workflow-templates."""

import copy

from httpx import AsyncClient

from tests.api.conftest import EXPENSE_TEMPLATE

BASE = "/api/v1/workflow-templates"


async def test_create_and_get_template(client: AsyncClient, wired_app, org_headers) -> None:
    created = await client.post(BASE, json=EXPENSE_TEMPLATE, headers=org_headers)
    assert created.status_code == 201
    body = created.json()
    assert body["version"] == 1
    assert body["lineage_id"] == body["id"]
    assert body["trigger_type"] == "MANUAL"
    finance = body["steps"][1]
    assert finance["conditions"][0]["type"] == "AMOUNT_RANGE"
    assert finance["actions"][0] == {
        "type": "ROLE",
        "approver_role": "ADMIN",
        "approval_mode": "ANY",
    }

    fetched = await client.get(f"{BASE}/{body['id']}", headers=org_headers)
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Expense approval"


async def test_missing_organization_header_is_400(client: AsyncClient, wired_app) -> None:
    response = await client.post(BASE, json=EXPENSE_TEMPLATE)
    assert response.status_code == 400
    assert "X-Organization-ID" in response.json()["message"]


async def test_malformed_organization_header_is_400(client: AsyncClient, wired_app) -> None:
    response = await client.get(BASE, headers={"X-Organization-ID": "bad id!"})
    assert response.status_code == 400


async def test_invalid_template_lists_every_error(
    client: AsyncClient, wired_app, org_headers
) -> None:
    payload = copy.deepcopy(EXPENSE_TEMPLATE)
    payload["name"] = ""
    payload["steps"][0]["transitions"][0]["to_step_name"] = "ghost"
    response = await client.post(BASE, json=payload, headers=org_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "TEMPLATE_VALIDATION_ERROR"
    fields = {e["field"] for e in body["details"]["errors"]}
    assert "name" in fields
    assert "steps[0].transitions[0].to_step_name" in fields


async def test_unknown_condition_type_is_422(
    client: AsyncClient, wired_app, org_headers
) -> None:
    payload = copy.deepcopy(EXPENSE_TEMPLATE)
    payload["steps"][1]["conditions"] = [{"type": "WEATHER", "sky": "blue"}]
    response = await client.post(BASE, json=payload, headers=org_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_template_is_invisible_to_other_organizations(
    client: AsyncClient, wired_app, org_headers
) -> None:
    created = (await client.post(BASE, json=EXPENSE_TEMPLATE, headers=org_headers)).json()
    response = await client.get(
        f"{BASE}/{created['id']}", headers={"X-Organization-ID": "org-2"}
    )
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_revise_and_deactivate(client: AsyncClient, wired_app, org_headers) -> None:
    v1 = (await client.post(BASE, json=EXPENSE_TEMPLATE, headers=org_headers)).json()
    revised = await client.post(
        f"{BASE}/{v1['id']}/versions", json=EXPENSE_TEMPLATE, headers=org_headers
    )
    assert revised.status_code == 201
    v2 = revised.json()
    assert v2["version"] == 2
    assert v2["lineage_id"] == v1["id"]

    again = await client.post(
        f"{BASE}/{v1['id']}/versions", json=EXPENSE_TEMPLATE, headers=org_headers
    )
    assert again.status_code == 409

    listed = await client.get(BASE, headers=org_headers)
    assert [t["id"] for t in listed.json()] == [v2["id"]]

    off = await client.post(f"{BASE}/{v2['id']}/deactivate", headers=org_headers)
    assert off.status_code == 200
    assert off.json()["is_active"] is False

    everything = await client.get(
        BASE, params={"include_inactive": "true"}, headers=org_headers
    )
    assert {t["version"] for t in everything.json()} == {1, 2}

    on = await client.post(f"{BASE}/{v2['id']}/activate", headers=org_headers)
    assert on.json()["is_active"] is True

"""Tests for the Phase Automations router."""
import pytest

from phase_catalog import Phase
from tests.conftest import create_task, get_auth_headers


@pytest.mark.asyncio
async def test_create_and_list_automation(client, miami_pipeline, project_manager, internal_member):
    headers = get_auth_headers(project_manager)
    resp = await client.post("/api/v1/automations", json={
        "workspace_id": miami_pipeline.workspace.id,
        "phase": "QC Mix",
        "team_member_id": internal_member.id,
    }, headers=headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["phase"] == "qcmix"
    assert body["team_member_name"] == "Andres Rojas"

    resp = await client.get(
        "/api/v1/automations", params={"workspace_id": miami_pipeline.workspace.id}, headers=headers,
    )
    assert resp.status_code == 200
    assert [r["team_member_id"] for r in resp.json()] == [internal_member.id]


@pytest.mark.asyncio
async def test_duplicate_automation_conflicts(client, miami_pipeline, project_manager, internal_member):
    headers = get_auth_headers(project_manager)
    data = {"workspace_id": miami_pipeline.workspace.id, "phase": "mix", "team_member_id": internal_member.id}
    assert (await client.post("/api/v1/automations", json=data, headers=headers)).status_code == 201

    resp = await client.post("/api/v1/automations", json=data, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "This team member is already assigned to this phase"


@pytest.mark.asyncio
async def test_unknown_phase_rejected(client, miami_pipeline, project_manager, internal_member):
    resp = await client.post("/api/v1/automations", json={
        "workspace_id": miami_pipeline.workspace.id,
        "phase": "Budget Review",
        "team_member_id": internal_member.id,
    }, headers=get_auth_headers(project_manager))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_members_cannot_manage_automations(client, miami_pipeline, internal_member):
    resp = await client.post("/api/v1/automations", json={
        "workspace_id": miami_pipeline.workspace.id,
        "phase": "mix",
        "team_member_id": internal_member.id,
    }, headers=get_auth_headers(internal_member))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_delete_automation(client, miami_pipeline, project_manager, internal_member):
    headers = get_auth_headers(project_manager)
    created = (await client.post("/api/v1/automations", json={
        "workspace_id": miami_pipeline.workspace.id, "phase": "mix", "team_member_id": internal_member.id,
    }, headers=headers)).json()

    resp = await client.delete(f"/api/v1/automations/{created['id']}", headers=headers)
    assert resp.status_code == 200
    resp = await client.delete(f"/api/v1/automations/{created['id']}", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_rule_applies_on_advance(client, db_session, miami_pipeline, project_manager, internal_member):
    headers = get_auth_headers(project_manager)
    await client.post("/api/v1/automations", json={
        "workspace_id": miami_pipeline.workspace.id, "phase": "retakes", "team_member_id": internal_member.id,
    }, headers=headers)
    task = await create_task(db_session, miami_pipeline.lane(Phase.QC1))

    resp = await client.post(f"/api/v1/phases/tasks/{task.id}/advance", headers=headers)
    assert resp.status_code == 200

    member_headers = get_auth_headers(internal_member)
    notes = (await client.get("/api/v1/notifications", headers=member_headers)).json()
    assert [n["task_id"] for n in notes] == [task.id]
    assert notes[0]["type"] == "task_assigned"

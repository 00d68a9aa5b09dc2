import pytest
from fastapi import HTTPException

from tracker_api.core.auth import AuthContext
from tracker_api.core.config import settings
from tracker_api.models.entities import Project, ProjectMember, RoleEnum
from tracker_api.services.access import admin_for, require_project_admin

ADMIN = {"X-Forwarded-User": "admin@example.com"}
MEMBER = {"X-Forwarded-User": "member@example.com"}
STRANGER = {"X-Forwarded-User": "stranger@example.com"}


@pytest.fixture
def forwardauth(monkeypatch):
    monkeypatch.setattr(settings, "auth_mode", "forwardauth")


def _seed_members(db_session):
    project = Project(name="Access Project")
    db_session.add(project)
    db_session.flush()
    db_session.add_all(
        [
            ProjectMember(project_id=project.id, email="admin@example.com", display_name="Admin", role=RoleEnum.admin),
            ProjectMember(project_id=project.id, email="member@example.com", display_name="Member", role=RoleEnum.member),
        ]
    )
    db_session.commit()
    return project


def test_require_project_admin_rejects_plain_member(db_session):
    project = _seed_members(db_session)

    with pytest.raises(HTTPException) as exc_info:
        require_project_admin(db_session, project.id, "member@example.com")
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "admin role required"


def test_admin_for_is_skipped_when_auth_is_disabled(db_session):
    project = _seed_members(db_session)

    assert admin_for(db_session, project.id, None) is None
    admin_id = admin_for(db_session, project.id, AuthContext(email="admin@example.com"))
    assert admin_id is not None


def test_missing_auth_header_is_unauthorized(client, db_session, forwardauth):
    project = _seed_members(db_session)

    response = client.get(f"/v1/roadmap?project_id={project.id}")
    assert response.status_code == 401


def test_non_members_cannot_read_the_board(client, db_session, forwardauth):
    project = _seed_members(db_session)

    response = client.get(f"/v1/roadmap?project_id={project.id}", headers=STRANGER)
    assert response.status_code == 403
    assert response.json()["detail"] == "not a member of this project"


def test_members_read_but_only_admins_mutate(client, db_session, forwardauth):
    project = _seed_members(db_session)

    assert client.get(f"/v1/roadmap?project_id={project.id}", headers=MEMBER).status_code == 200

    denied = client.post("/v1/roadmap", json={"project_id": project.id, "title": "Card"}, headers=MEMBER)
    assert denied.status_code == 403
    assert denied.json()["detail"] == "admin role required"

    created = client.post("/v1/roadmap", json={"project_id": project.id, "title": "Card"}, headers=ADMIN)
    assert created.status_code == 201

    move = client.patch(f"/v1/roadmap/{created.json()['id']}/move", json={"column": "released", "position": 0}, headers=MEMBER)
    assert move.status_code == 403


def test_admin_actions_are_attributed_in_activity(client, db_session, forwardauth):
    project = _seed_members(db_session)
    admin_id = client.get(f"/v1/projects/{project.id}/members", headers=ADMIN).json()["items"][0]["id"]
    request = client.post("/v1/requests", json={"project_id": project.id, "title": "Audit trail"}, headers=MEMBER).json()

    promoted = client.post(
        "/v1/roadmap/promote",
        json={"project_id": project.id, "request_id": request["id"], "column": "in_progress"},
        headers=ADMIN,
    )
    assert promoted.status_code == 201
    assert promoted.json()["created_by_member_id"] == admin_id

    activity = client.get(f"/v1/requests/{request['id']}/activity", headers=MEMBER).json()["items"]
    assert [(row["action"], row["member_id"]) for row in activity] == [("status_change", admin_id)]


def test_votes_use_the_authenticated_member(client, db_session, forwardauth):
    project = _seed_members(db_session)
    request = client.post("/v1/requests", json={"project_id": project.id, "title": "Vote me"}, headers=MEMBER).json()

    vote = client.post(f"/v1/requests/{request['id']}/votes", json={"type": "like"}, headers=MEMBER)
    assert vote.status_code == 201
    member_id = client.get(f"/v1/projects/{project.id}/members", headers=MEMBER).json()["items"][1]["id"]
    assert vote.json()["member_id"] == member_id

    again = client.post(f"/v1/requests/{request['id']}/votes", json={"type": "like"}, headers=MEMBER)
    assert again.status_code == 409

"""
项目接口测试：创建、成员约束、唯一项目经理保护、详情缓存
"""
from datetime import datetime, timedelta

from sqlalchemy import select

from models import Comment, Project, Task, project_members
from utils.cache_manager import project_detail_key


def member_role(db_session, project_id, user_id):
    return db_session.execute(
        select(project_members.c.role).where(
            project_members.c.project_id == project_id,
            project_members.c.user_id == user_id,
        )
    ).scalar()


def test_creator_becomes_project_manager(client, workspace):
    owner = workspace["owner"]

    response = client.post(
        "/api/projects",
        json={"team_id": workspace["team_id"], "name": "Gemini", "description": "second"},
        headers=workspace["headers"][owner.id],
    )

    assert response.status_code == 201
    project = response.json()["project"]
    assert project["status"] == "pending"
    assert project["created_by_user_id"] == owner.id
    assert [(m["id"], m["member_role"]) for m in project["members"]] == [(owner.id, "project_manager")]


def test_plain_team_member_cannot_create_project(client, workspace):
    alice = workspace["alice"]

    response = client.post(
        "/api/projects",
        json={"team_id": workspace["team_id"], "name": "Sneaky"},
        headers=workspace["headers"][alice.id],
    )

    assert response.status_code == 403


def test_create_project_rejects_past_due_date(client, workspace):
    owner = workspace["owner"]
    yesterday = (datetime.now() - timedelta(days=2)).isoformat()

    response = client.post(
        "/api/projects",
        json={"team_id": workspace["team_id"], "name": "Late", "due_date": yesterday},
        headers=workspace["headers"][owner.id],
    )

    assert response.status_code == 422
    assert "due_date" in response.json()["data"]["errors"]


def test_project_members_must_belong_to_team(client, workspace):
    owner, outsider = workspace["owner"], workspace["outsider"]

    response = client.post(
        f"/api/projects/{workspace['project_id']}/members",
        json={"user_id": outsider.id},
        headers=workspace["headers"][owner.id],
    )

    assert response.status_code == 422
    assert response.json()["message"] == (
        "User must be a member of the project's team to be added to the project."
    )
    # 与请求参数校验一致，字段错误位于 data.errors
    assert list(response.json()["data"]["errors"]) == ["user_id"]


def test_duplicate_project_member_conflicts(client, workspace):
    owner, alice = workspace["owner"], workspace["alice"]

    response = client.post(
        f"/api/projects/{workspace['project_id']}/members",
        json={"user_id": alice.id},
        headers=workspace["headers"][owner.id],
    )

    assert response.status_code == 409
    assert response.json()["message"] == "User is already a member of this project."


def test_sole_manager_cannot_leave_or_be_demoted(client, workspace, db_session):
    owner = workspace["owner"]
    project_id = workspace["project_id"]
    headers = workspace["headers"][owner.id]
    message = "Cannot remove the sole project manager. Assign another manager first or delete the project."

    removed = client.delete(f"/api/projects/{project_id}/members/{owner.id}", headers=headers)
    assert removed.status_code == 403
    assert removed.json()["message"] == message

    demoted = client.put(
        f"/api/projects/{project_id}/members/{owner.id}",
        json={"role": "member"},
        headers=headers,
    )
    assert demoted.status_code == 403
    assert demoted.json()["message"] == message

    assert member_role(db_session, project_id, owner.id) == "project_manager"


def test_second_manager_allows_demotion(client, workspace, db_session):
    owner, alice = workspace["owner"], workspace["alice"]
    project_id = workspace["project_id"]
    headers = workspace["headers"][owner.id]

    promoted = client.put(
        f"/api/projects/{project_id}/members/{alice.id}",
        json={"role": "project_manager"},
        headers=headers,
    )
    assert promoted.status_code == 200

    demoted = client.put(
        f"/api/projects/{project_id}/members/{owner.id}",
        json={"role": "member"},
        headers=headers,
    )
    assert demoted.status_code == 200
    assert member_role(db_session, project_id, owner.id) == "member"
    assert member_role(db_session, project_id, alice.id) == "project_manager"


def test_plain_member_cannot_manage_members(client, workspace):
    alice, bob = workspace["alice"], workspace["bob"]

    response = client.post(
        f"/api/projects/{workspace['project_id']}/members",
        json={"user_id": bob.id},
        headers=workspace["headers"][alice.id],
    )

    assert response.status_code == 403


def test_remove_project_member(client, workspace, db_session):
    owner, alice = workspace["owner"], workspace["alice"]
    project_id = workspace["project_id"]

    response = client.delete(f"/api/projects/{project_id}/members/{alice.id}", headers=workspace["headers"][owner.id])

    assert response.status_code == 200
    assert response.json()["message"] == "Member removed from project successfully"
    assert member_role(db_session, project_id, alice.id) is None

    missing = client.delete(f"/api/projects/{project_id}/members/{alice.id}", headers=workspace["headers"][owner.id])
    assert missing.status_code == 404
    assert missing.json()["message"] == "User is not a member of this project."


def test_visibility_and_404_before_403(client, workspace):
    project_id = workspace["project_id"]
    headers = workspace["headers"]

    # 团队成员即使不是项目成员也能查看
    assert client.get(f"/api/projects/{project_id}", headers=headers[workspace["bob"].id]).status_code == 200
    assert client.get(f"/api/projects/{project_id}", headers=headers[workspace["outsider"].id]).status_code == 403
    assert client.get("/api/projects/9999", headers=headers[workspace["outsider"].id]).status_code == 404


def test_project_list_scopes_and_active_filter(client, workspace):
    owner, outsider = workspace["owner"], workspace["outsider"]
    headers = workspace["headers"][owner.id]
    done = client.post(
        "/api/projects",
        json={"team_id": workspace["team_id"], "name": "Finished", "status": "completed"},
        headers=headers,
    ).json()["project"]

    all_projects = client.get("/api/projects", headers=headers).json()["projects"]
    assert [p["id"] for p in all_projects] == [workspace["project_id"], done["id"]]
    assert all_projects[0]["tasks_count"] == 0

    active = client.get("/api/projects", params={"status": "active"}, headers=headers).json()["projects"]
    assert [p["id"] for p in active] == [workspace["project_id"]]

    assert client.get("/api/projects", headers=workspace["headers"][outsider.id]).json()["projects"] == []


def test_project_detail_is_cached_until_membership_changes(client, workspace, db_session, cache, fresh):
    owner, bob = workspace["owner"], workspace["bob"]
    project_id = workspace["project_id"]
    headers = workspace["headers"][owner.id]

    first = client.get(f"/api/projects/{project_id}", headers=headers).json()["project"]
    assert first["name"] == "Apollo"
    assert cache.get(project_detail_key(project_id, owner.id)) is not None

    # 绕过服务直接改库，缓存仍返回旧快照
    project = fresh(Project, project_id)
    project.name = "Apollo Renamed"
    db_session.commit()
    stale = client.get(f"/api/projects/{project_id}", headers=headers).json()["project"]
    assert stale["name"] == "Apollo"

    added = client.post(f"/api/projects/{project_id}/members", json={"user_id": bob.id}, headers=headers)
    assert added.status_code == 200
    assert cache.get(project_detail_key(project_id, owner.id)) is None

    refreshed = client.get(f"/api/projects/{project_id}", headers=headers).json()["project"]
    assert refreshed["name"] == "Apollo Renamed"
    assert bob.id in [m["id"] for m in refreshed["members"]]


def test_update_project_is_partial(client, workspace):
    owner, alice = workspace["owner"], workspace["alice"]
    url = f"/api/projects/{workspace['project_id']}"

    assert client.put(url, json={"name": "Nope"}, headers=workspace["headers"][alice.id]).status_code == 403

    response = client.put(url, json={"status": "in_progress"}, headers=workspace["headers"][owner.id])
    assert response.status_code == 200
    project = response.json()["project"]
    assert project["status"] == "in_progress"
    assert project["name"] == "Apollo"

    invalid = client.put(url, json={"status": "archived"}, headers=workspace["headers"][owner.id])
    assert invalid.status_code == 422


def test_completing_project_notifies_creator_managers_and_team_owner(client, workspace, job_queue, drain, mailer):
    owner, alice, bob = workspace["owner"], workspace["alice"], workspace["bob"]
    url = f"/api/projects/{workspace['project_id']}"
    client.post(f"{url}/members", json={"user_id": bob.id, "role": "project_manager"}, headers=workspace["headers"][owner.id])
    bob_headers = workspace["headers"][bob.id]

    # 非完成状态变更不产生事件
    assert client.put(url, json={"status": "in_progress"}, headers=bob_headers).status_code == 200
    assert job_queue.size() == 0

    response = client.put(url, json={"status": "completed"}, headers=bob_headers)
    assert response.status_code == 200
    assert response.json()["project"]["status"] == "completed"

    # 完成人 bob 被排除，普通成员 alice 不在收件人中
    assert [job.recipient_id for job in job_queue.peek_all()] == [owner.id]
    job = job_queue.peek_all()[0]
    assert job.notification_type == "project_completed"
    assert job.payload["message"] == "Project 'Apollo' has been completed by Bob."

    # 已完成后再次更新不重复触发
    client.put(url, json={"status": "completed", "name": "Apollo Done"}, headers=bob_headers)
    assert drain() == 1
    assert mailer.sent == []

    owner_types = [n["type"] for n in client.get("/api/notifications", headers=workspace["headers"][owner.id]).json()["notifications"]]
    assert owner_types == ["project_completed"]
    assert client.get("/api/notifications", headers=workspace["headers"][alice.id]).json()["notifications"] == []


def test_delete_project_removes_tasks_and_comments(client, workspace, db_session):
    owner, alice = workspace["owner"], workspace["alice"]
    project_id = workspace["project_id"]
    headers = workspace["headers"][owner.id]
    task = client.post("/api/tasks", json={"project_id": project_id, "name": "Child"}, headers=headers).json()["task"]
    client.post(
        "/api/comments",
        json={"content": "on task", "commentable_type": "task", "commentable_id": task["id"]},
        headers=headers,
    )
    client.post(
        "/api/comments",
        json={"content": "on project", "commentable_type": "project", "commentable_id": project_id},
        headers=headers,
    )

    assert client.delete(f"/api/projects/{project_id}", headers=workspace["headers"][alice.id]).status_code == 403

    response = client.delete(f"/api/projects/{project_id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Project deleted successfully"
    db_session.expire_all()
    assert db_session.get(Project, project_id) is None
    assert db_session.query(Task).count() == 0
    assert db_session.query(Comment).count() == 0
    assert db_session.execute(project_members.select()).first() is None

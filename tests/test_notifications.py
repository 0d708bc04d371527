"""
通知测试：队列消费落库与发信、已读标记、接收人权限，以及完整业务流程
"""
from datetime import datetime

from sqlalchemy.orm import sessionmaker

from models import Notification
from services.notification_worker import JobWorker
from utils.job_queue import DeliveryJob


def add_notification(db_session, user, read=False, **data):
    notification = Notification(
        user_id=user.id,
        type="task_assigned",
        data=data or {"message": "hello"},
        read_at=datetime.now() if read else None,
    )
    db_session.add(notification)
    db_session.commit()
    db_session.refresh(notification)
    return notification


def test_drain_persists_notifications_and_sends_mail(client, workspace, job_queue, drain, mailer):
    owner, alice = workspace["owner"], workspace["alice"]
    client.post(
        "/api/tasks",
        json={"project_id": workspace["project_id"], "name": "Deploy", "assigned_to_user_id": alice.id},
        headers=workspace["headers"][owner.id],
    )

    assert drain() == 1
    assert job_queue.size() == 0

    listed = client.get("/api/notifications", headers=workspace["headers"][alice.id]).json()["notifications"]
    assert len(listed) == 1
    assert listed[0]["type"] == "task_assigned"
    assert listed[0]["is_read"] is False
    assert listed[0]["data"]["task_name"] == "Deploy"

    assert [(m.to, m.subject) for m in mailer.sent] == [(alice.email, "New Task Assigned: Deploy")]
    assert "Deploy" in mailer.sent[0].body


def test_worker_skips_missing_recipient(db_session, job_queue, mailer):
    job_queue.enqueue(DeliveryJob(recipient_id=9999, notification_type="task_completed", payload={}))
    worker = JobWorker(job_queue, sessionmaker(bind=db_session.get_bind()), mailer, poll_interval=0.01)

    assert worker.drain() == 1
    assert worker.failed == 0
    assert db_session.query(Notification).count() == 0
    assert mailer.sent == []


def test_mark_read_is_idempotent(client, db_session, make_user, auth_headers, fresh):
    user = make_user()
    notification = add_notification(db_session, user)
    headers = auth_headers(user)
    url = f"/api/notifications/{notification.id}"

    first = client.put(url, headers=headers)
    assert first.status_code == 200
    assert first.json()["message"] == "Notification marked as read"
    read_at = first.json()["notification"]["read_at"]
    assert read_at is not None

    second = client.put(url, headers=headers)
    assert second.json()["notification"]["read_at"] == read_at
    assert fresh(Notification, notification.id).is_read


def test_unread_count_and_mark_all(client, db_session, make_user, auth_headers):
    user = make_user()
    other = make_user()
    add_notification(db_session, user)
    add_notification(db_session, user)
    add_notification(db_session, user, read=True)
    add_notification(db_session, other)
    headers = auth_headers(user)

    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"unread_count": 2}
    unread = client.get("/api/notifications", params={"status": "unread"}, headers=headers).json()["notifications"]
    assert len(unread) == 2

    response = client.post("/api/notifications/mark-all-as-read", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "All notifications marked as read", "marked_count": 2, "unread_count": 0}

    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"unread_count": 0}
    assert client.get("/api/notifications/unread-count", headers=auth_headers(other)).json() == {"unread_count": 1}


def test_notifications_are_private_to_recipient(client, db_session, make_user, auth_headers):
    user = make_user()
    other = make_user()
    notification = add_notification(db_session, user)
    url = f"/api/notifications/{notification.id}"

    assert client.get(url, headers=auth_headers(other)).status_code == 403
    assert client.put(url, headers=auth_headers(other)).status_code == 403
    assert client.delete(url, headers=auth_headers(other)).status_code == 403
    assert client.get("/api/notifications/00000000-0000-0000-0000-000000000000", headers=auth_headers(user)).status_code == 404
    assert client.get("/api/notifications", headers=auth_headers(other)).json()["notifications"] == []

    deleted = client.delete(url, headers=auth_headers(user))
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Notification deleted successfully"


def test_team_to_completion_flow(client, make_user, auth_headers, drain, mailer):
    """团队 -> 项目 -> 任务分配 -> 评论 -> 完成 的完整流程"""
    lead = make_user("Lead", role="project_manager")
    dev = make_user("Dev")
    lead_headers, dev_headers = auth_headers(lead), auth_headers(dev)

    team = client.post("/api/teams", json={"name": "Rocket"}, headers=lead_headers).json()["team"]
    assert client.post(f"/api/teams/{team['id']}/members", json={"user_id": dev.id}, headers=lead_headers).status_code == 200
    project = client.post("/api/projects", json={"team_id": team["id"], "name": "Launch"}, headers=lead_headers).json()["project"]
    assert client.post(f"/api/projects/{project['id']}/members", json={"user_id": dev.id}, headers=lead_headers).status_code == 200
    task = client.post(
        "/api/tasks",
        json={"project_id": project["id"], "name": "Countdown", "assigned_to_user_id": dev.id, "priority": "high"},
        headers=lead_headers,
    ).json()["task"]

    client.post(
        "/api/comments",
        json={"content": "Starting now", "commentable_type": "task", "commentable_id": task["id"]},
        headers=dev_headers,
    )
    done = client.put(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=dev_headers)
    assert done.status_code == 200

    # 分配通知给 dev，评论通知和完成通知给 lead
    assert drain() == 3
    dev_types = [n["type"] for n in client.get("/api/notifications", headers=dev_headers).json()["notifications"]]
    lead_types = sorted(n["type"] for n in client.get("/api/notifications", headers=lead_headers).json()["notifications"])
    assert dev_types == ["task_assigned"]
    assert lead_types == ["new_comment", "task_completed"]
    assert {m.subject for m in mailer.sent} == {"New Task Assigned: Countdown", "New Comment on Task: Countdown"}

    detail = client.get(f"/api/projects/{project['id']}", headers=lead_headers).json()["project"]
    assert detail["tasks_count"] == 1
    assert detail["completed_tasks_count"] == 1

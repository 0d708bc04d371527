"""
评论接口测试：内容清洗、收件人计算、参数校验、作者与管理者权限
"""
from models import Comment


def post_comment(client, headers, content, commentable_type, commentable_id):
    return client.post(
        "/api/comments",
        json={"content": content, "commentable_type": commentable_type, "commentable_id": commentable_id},
        headers=headers,
    )


def test_comment_content_is_sanitized(client, workspace):
    alice = workspace["alice"]
    raw = '<p>Hi <script>alert(1)</script><b onclick="steal()">bold</b> <a href="javascript:x()">link</a></p>'

    response = post_comment(client, workspace["headers"][alice.id], raw, "project", workspace["project_id"])

    assert response.status_code == 201
    comment = response.json()["comment"]
    assert comment["content"] == "<p>Hi <b>bold</b> <a>link</a></p>"
    assert comment["user"]["id"] == alice.id


def test_project_comment_notifies_creator_and_members(client, workspace, job_queue):
    owner, alice = workspace["owner"], workspace["alice"]

    post_comment(client, workspace["headers"][alice.id], "Looks good", "project", workspace["project_id"])

    jobs = job_queue.peek_all()
    assert [job.recipient_id for job in jobs] == [owner.id]
    job = jobs[0]
    assert job.notification_type == "new_comment"
    assert job.mail_subject == "New Comment on Project: Apollo"
    assert job.payload["commenter_name"] == "Alice"
    assert job.payload["message"] == "New comment from Alice on project: Apollo"
    assert "Looks good" in job.mail_body


def test_task_comment_includes_assignee(client, workspace, job_queue, add_task):
    owner, alice, bob = workspace["owner"], workspace["alice"], workspace["bob"]
    client.post(
        f"/api/projects/{workspace['project_id']}/members",
        json={"user_id": bob.id},
        headers=workspace["headers"][owner.id],
    )
    task = add_task(workspace["project_id"], "Fix bug", assigned_to_user_id=bob.id)

    post_comment(client, workspace["headers"][alice.id], "On it?", "task", task.id)

    jobs = job_queue.peek_all()
    assert [job.recipient_id for job in jobs] == [owner.id, bob.id]
    assert {job.mail_subject for job in jobs} == {"New Comment on Task: Fix bug"}


def test_comment_target_validation(client, workspace):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]

    invalid_type = post_comment(client, headers, "hi", "team", workspace["team_id"])
    assert invalid_type.status_code == 422
    assert "commentable_type" in invalid_type.json()["data"]["errors"]

    missing = post_comment(client, headers, "hi", "task", 9999)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Commentable resource not found."

    empty = post_comment(client, headers, "", "project", workspace["project_id"])
    assert empty.status_code == 422


def test_listing_requires_target_for_non_admin(client, workspace):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]

    response = client.get("/api/comments", headers=headers)
    assert response.status_code == 422
    assert response.json()["message"] == (
        "Please specify commentable_type and commentable_id to view comments for a specific resource."
    )

    bad_type = client.get("/api/comments", params={"commentable_type": "team", "commentable_id": 1}, headers=headers)
    assert bad_type.status_code == 422


def test_listing_comments_for_project(client, workspace):
    owner, alice, outsider = workspace["owner"], workspace["alice"], workspace["outsider"]
    project_id = workspace["project_id"]
    post_comment(client, workspace["headers"][owner.id], "one", "project", project_id)
    post_comment(client, workspace["headers"][alice.id], "two", "project", project_id)
    params = {"commentable_type": "project", "commentable_id": project_id}

    response = client.get("/api/comments", params=params, headers=workspace["headers"][alice.id])

    assert response.status_code == 200
    assert [comment["content"] for comment in response.json()["comments"]] == ["one", "two"]
    assert client.get("/api/comments", params=params, headers=workspace["headers"][outsider.id]).status_code == 403


def test_only_author_or_manager_can_change_comment(client, workspace, db_session):
    owner, alice, bob = workspace["owner"], workspace["alice"], workspace["bob"]
    comment = post_comment(
        client, workspace["headers"][alice.id], "draft", "project", workspace["project_id"]
    ).json()["comment"]
    url = f"/api/comments/{comment['id']}"

    assert client.put(url, json={"content": "hijack"}, headers=workspace["headers"][bob.id]).status_code == 403

    edited = client.put(url, json={"content": "final <i>version</i>"}, headers=workspace["headers"][alice.id])
    assert edited.status_code == 200
    assert edited.json()["comment"]["content"] == "final <i>version</i>"

    detail = client.get(url, headers=workspace["headers"][owner.id])
    assert detail.status_code == 200
    assert detail.json()["comment"]["attachments"] == []

    deleted = client.delete(url, headers=workspace["headers"][owner.id])
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Comment deleted successfully"
    db_session.expire_all()
    assert db_session.get(Comment, comment["id"]) is None

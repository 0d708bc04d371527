"""
附件接口测试：上传下载、文件类型校验、文件释放
"""
import logging

import pytest
from sqlalchemy.exc import OperationalError

from models import Attachment
from services.attachment_service import AttachmentService


def upload(client, headers, attachable_type, attachable_id, name="notes.txt", content=b"hello world",
           mime_type="text/plain"):
    return client.post(
        "/api/attachments",
        files={"file": (name, content, mime_type)},
        data={"attachable_type": attachable_type, "attachable_id": str(attachable_id)},
        headers=headers,
    )


def test_upload_and_download(client, workspace, tmp_path):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]

    response = upload(client, headers, "project", workspace["project_id"])

    assert response.status_code == 201
    attachment = response.json()["attachment"]
    assert attachment["file_name"] == "notes.txt"
    assert attachment["file_size"] == 11
    assert attachment["formatted_size"] == "11.00 B"
    assert attachment["disk"] == "local"
    assert (tmp_path / attachment["path"]).read_bytes() == b"hello world"

    download = client.get(f"/api/attachments/{attachment['id']}", headers=headers)
    assert download.status_code == 200
    assert download.content == b"hello world"
    assert "notes.txt" in download.headers["content-disposition"]


def test_unsupported_extension_is_rejected(client, workspace, db_session):
    owner = workspace["owner"]

    response = upload(
        client, workspace["headers"][owner.id], "project", workspace["project_id"],
        name="payload.exe", mime_type="application/octet-stream",
    )

    assert response.status_code == 422
    assert response.json()["message"].startswith("The file type is not supported.")
    assert db_session.query(Attachment).count() == 0


def test_upload_permissions_follow_target(client, workspace, add_task):
    alice, outsider = workspace["alice"], workspace["outsider"]
    task = add_task(workspace["project_id"], "Docs")

    # 普通项目成员可以更新任务，因此可以在任务上传附件，但不能在项目上传
    assert upload(client, workspace["headers"][alice.id], "task", task.id).status_code == 201
    assert upload(client, workspace["headers"][alice.id], "project", workspace["project_id"]).status_code == 403
    assert upload(client, workspace["headers"][outsider.id], "task", task.id).status_code == 403

    bad_type = upload(client, workspace["headers"][alice.id], "team", workspace["team_id"])
    assert bad_type.status_code == 422


def test_uploader_keeps_access_after_leaving_project(client, workspace, add_task):
    owner, alice, outsider = workspace["owner"], workspace["alice"], workspace["outsider"]
    task = add_task(workspace["project_id"], "Specs")
    attachment = upload(client, workspace["headers"][alice.id], "task", task.id).json()["attachment"]
    url = f"/api/attachments/{attachment['id']}"

    removed = client.delete(
        f"/api/projects/{workspace['project_id']}/members/{alice.id}", headers=workspace["headers"][owner.id]
    )
    assert removed.status_code == 200

    assert client.get(url, headers=workspace["headers"][alice.id]).content == b"hello world"
    assert client.get(url, headers=workspace["headers"][outsider.id]).status_code == 403


def test_rename_strips_path_components(client, workspace):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]
    attachment = upload(client, headers, "project", workspace["project_id"]).json()["attachment"]

    response = client.put(
        f"/api/attachments/{attachment['id']}",
        json={"file_name": "../../etc/renamed.txt"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["attachment"]["file_name"] == "renamed.txt"
    assert response.json()["attachment"]["path"] == attachment["path"]


def test_listing_attachments(client, workspace):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]
    upload(client, headers, "project", workspace["project_id"])

    assert client.get("/api/attachments", headers=headers).status_code == 422

    response = client.get(
        "/api/attachments",
        params={"attachable_type": "project", "attachable_id": workspace["project_id"]},
        headers=headers,
    )
    assert response.status_code == 200
    assert [a["file_name"] for a in response.json()["attachments"]] == ["notes.txt"]


def test_delete_removes_file(client, workspace, tmp_path):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]
    attachment = upload(client, headers, "project", workspace["project_id"]).json()["attachment"]

    response = client.delete(f"/api/attachments/{attachment['id']}", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Attachment deleted successfully"
    assert not (tmp_path / attachment["path"]).exists()


def test_delete_with_missing_file_still_removes_record(client, workspace, tmp_path, db_session, caplog):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]
    attachment = upload(client, headers, "project", workspace["project_id"]).json()["attachment"]
    (tmp_path / attachment["path"]).unlink()
    caplog.set_level(logging.WARNING, logger="services.attachment_service")

    response = client.delete(f"/api/attachments/{attachment['id']}", headers=headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(Attachment, attachment["id"]) is None
    assert any(
        record.levelno == logging.WARNING and attachment["path"] in record.getMessage()
        for record in caplog.records
    )


def test_deleting_comment_and_project_release_files(client, workspace, tmp_path, db_session):
    owner = workspace["owner"]
    headers = workspace["headers"][owner.id]
    project_id = workspace["project_id"]
    comment = client.post(
        "/api/comments",
        json={"content": "see file", "commentable_type": "project", "commentable_id": project_id},
        headers=headers,
    ).json()["comment"]
    on_comment = upload(client, headers, "comment", comment["id"], name="c.txt").json()["attachment"]
    on_project = upload(client, headers, "project", project_id, name="p.txt").json()["attachment"]

    assert client.delete(f"/api/projects/{project_id}", headers=headers).status_code == 200

    assert not (tmp_path / on_comment["path"]).exists()
    assert not (tmp_path / on_project["path"]).exists()
    db_session.expire_all()
    assert db_session.query(Attachment).count() == 0


def test_failed_commit_discards_stored_file(db_session, workspace, storage, cache, tmp_path, monkeypatch):
    service = AttachmentService(db_session, storage=storage, cache=cache)

    def failing_commit():
        raise OperationalError("INSERT INTO attachments", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        service.upload(b"hello", "notes.txt", "text/plain", "project", workspace["project_id"], workspace["owner"])
    monkeypatch.undo()

    assert list(tmp_path.rglob("*.txt")) == []
    assert db_session.query(Attachment).count() == 0

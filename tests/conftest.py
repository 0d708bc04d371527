"""
测试公共夹具：内存 SQLite、依赖覆盖、用户与令牌工厂、队列消费
"""
import itertools
import os

# 必须在导入应用之前设置，避免连接本地数据库或启动后台线程
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["QUEUE_WORKER_ENABLED"] = "false"
os.environ["OVERDUE_SWEEP_ENABLED"] = "false"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["QUEUE_BACKEND"] = "memory"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from models import Base, User, UserRole, Task
from models.database import get_db
from services.notification_worker import JobWorker
from utils.auth import create_access_token, get_password_hash
from utils.cache_manager import CacheManager, MemoryCacheBackend, get_cache
from utils.job_queue import InMemoryJobQueue, get_job_queue
from utils.mailer import LogMailer
from utils.storage import LocalDiskStorage, StorageRegistry, get_storage

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    return CacheManager(MemoryCacheBackend())


@pytest.fixture
def job_queue():
    return InMemoryJobQueue()


@pytest.fixture
def storage(tmp_path):
    registry = StorageRegistry(default_disk="local")
    registry.register(LocalDiskStorage(root=str(tmp_path)))
    return registry


@pytest.fixture
def mailer():
    return LogMailer()


@pytest.fixture
def client(db_session, cache, job_queue, storage):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_job_queue] = lambda: job_queue
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = itertools.count(1)

    def _make(name=None, role=UserRole.MEMBER, email=None):
        n = next(counter)
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            password_hash=PASSWORD_HASH,
            role=UserRole(role),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers(db_session):
    def _headers(user):
        token = create_access_token(db_session, user)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def drain(job_queue, mailer):
    """处理队列中的全部投递任务，返回处理数量"""
    worker = JobWorker(job_queue, TestingSessionLocal, mailer, poll_interval=0.01)
    return worker.drain


@pytest.fixture
def fresh(db_session):
    """丢弃会话中的缓存对象，读取接口写入后的最新状态"""
    def _fresh(model, entity_id):
        db_session.expire_all()
        return db_session.get(model, entity_id)

    return _fresh


@pytest.fixture
def workspace(client, make_user, auth_headers):
    """
    团队 + 项目的标准场景：
    owner 为全局项目经理并拥有团队，alice / bob 为团队成员，outsider 不在团队中；
    项目由 owner 创建，alice 以普通成员身份加入项目
    """
    owner = make_user("Olivia Owner", role=UserRole.PROJECT_MANAGER)
    alice = make_user("Alice")
    bob = make_user("Bob")
    outsider = make_user("Oscar Outsider")
    headers = {user.id: auth_headers(user) for user in (owner, alice, bob, outsider)}

    team = client.post("/api/teams", json={"name": "Core Team"}, headers=headers[owner.id]).json()["team"]
    for member in (alice, bob):
        response = client.post(
            f"/api/teams/{team['id']}/members",
            json={"user_id": member.id, "role": "member"},
            headers=headers[owner.id],
        )
        assert response.status_code == 200

    project = client.post(
        "/api/projects",
        json={"team_id": team["id"], "name": "Apollo"},
        headers=headers[owner.id],
    ).json()["project"]
    response = client.post(
        f"/api/projects/{project['id']}/members",
        json={"user_id": alice.id, "role": "member"},
        headers=headers[owner.id],
    )
    assert response.status_code == 200

    return {
        "owner": owner,
        "alice": alice,
        "bob": bob,
        "outsider": outsider,
        "headers": headers,
        "team_id": team["id"],
        "project_id": project["id"],
    }


@pytest.fixture
def add_task(db_session):
    """直接写库创建任务（绕过截止日期校验，用于逾期场景）"""
    def _add(project_id, name="Task", **fields):
        task = Task(project_id=project_id, name=name, **fields)
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task

    return _add

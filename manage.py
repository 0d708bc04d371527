#!/usr/bin/env python3
"""
命令行管理工具

    python manage.py create-admin "Admin" admin@example.com secret123
    python manage.py create-admin "Alice" alice@example.com secret123 --role member
    python manage.py update-overdue-tasks
"""

import argparse
import sys

from pydantic import ValidationError

from config.logging_config import setup_logging
from models.database import engine, Base, SessionLocal
from schemas.user import UserCreate
from services.auth_service import AuthService
from services.overdue_sweep import mark_overdue_tasks
from utils.cache_manager import get_cache
from utils.exceptions import BusinessException


def create_admin(args) -> int:
    """创建用户（默认管理员角色）"""
    try:
        user_data = UserCreate(name=args.name, email=args.email, password=args.password, role=args.role)
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            print(f"❌ {field}: {error['msg']}")
        return 1

    db = SessionLocal()
    try:
        user = AuthService(db).create_user(user_data)
    except BusinessException as e:
        print(f"❌ {e.message}")
        return 1
    finally:
        db.close()

    print(f"✅ 用户创建成功: {user.email} (ID: {user.id}, 角色: {user.role.value})")
    return 0


def update_overdue_tasks(args) -> int:
    """将所有逾期任务标记为 overdue"""
    db = SessionLocal()
    try:
        count = mark_overdue_tasks(db, get_cache())
    finally:
        db.close()
    print(f"Updated {count} overdue tasks.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TaskHub 管理工具")
    subparsers = parser.add_subparsers(dest="command", required=True)

    admin_parser = subparsers.add_parser("create-admin", help="创建管理员用户")
    admin_parser.add_argument("name", help="用户名称")
    admin_parser.add_argument("email", help="登录邮箱")
    admin_parser.add_argument("password", help="登录密码（至少8位）")
    admin_parser.add_argument("--role", default="admin", help="用户角色：admin / member")
    admin_parser.set_defaults(func=create_admin)

    overdue_parser = subparsers.add_parser("update-overdue-tasks", help="标记逾期任务")
    overdue_parser.set_defaults(func=update_overdue_tasks)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    Base.metadata.create_all(bind=engine)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

"""认证服务模块

登录、登出和管理员创建用户
"""
import logging
from typing import Tuple

from sqlalchemy.orm import Session

from models import User, UserRole, AccessToken
from schemas.user import UserCreate
from utils.auth import (
    authenticate_user, create_access_token, get_password_hash, revoke_user_tokens, revoke_token
)
from utils.exceptions import AuthenticationException, PermissionException, ResourceConflictException

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
EMAIL_TAKEN = "The email has already been taken."


class AuthService:
    """认证服务类"""

    def __init__(self, db: Session):
        self.db = db

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """校验凭据，吊销旧令牌并签发新令牌"""
        user = authenticate_user(self.db, email, password)
        if user is None:
            logger.info(f"登录失败: {email}")
            raise AuthenticationException(INVALID_CREDENTIALS)

        revoked = revoke_user_tokens(self.db, user)
        token = create_access_token(self.db, user)
        logger.info(f"用户 {user.email} 登录成功，吊销旧令牌 {revoked} 个")
        return user, token

    def logout(self, user: User, token: AccessToken) -> None:
        jti = token.jti
        revoke_token(self.db, jti)
        logger.info(f"用户 {user.email} 已登出，令牌 {jti} 已吊销")

    def create_user(self, user_data: UserCreate, actor: User = None) -> User:
        """创建用户；actor 为空时表示命令行创建"""
        if actor is not None and not actor.is_admin():
            raise PermissionException()
        if self.db.query(User.id).filter(User.email == user_data.email).first() is not None:
            raise ResourceConflictException(EMAIL_TAKEN)

        user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=UserRole(user_data.role or UserRole.MEMBER.value)
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"用户 {user.email} 创建成功，ID: {user.id}")
        return user

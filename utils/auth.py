"""认证工具模块

密码哈希、JWT 令牌签发与校验、当前用户依赖以及登录等接口的限流依赖。
令牌携带 jti，只有 access_tokens 表中存在对应记录时才有效，删除记录即吊销。
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config.settings import settings
from models.database import get_db
from models import User, AccessToken
from utils.cache_manager import CacheManager, get_cache
from utils.exceptions import AuthenticationException, RateLimitException

logger = logging.getLogger(__name__)

# 密码加密
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """生成密码哈希"""
    return pwd_context.hash(password)


def create_access_token(db: Session, user: User, expires_delta: Optional[timedelta] = None) -> str:
    """签发访问令牌并登记 jti"""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    jti = uuid.uuid4().hex
    to_encode = {"sub": str(user.id), "jti": jti, "exp": expire}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    db.add(AccessToken(user_id=user.id, jti=jti, expires_at=expire))
    db.commit()
    return encoded_jwt


def verify_token(token: str) -> dict:
    """解码令牌，失败抛出认证异常"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationException()
    if payload.get("sub") is None or payload.get("jti") is None:
        raise AuthenticationException()
    return payload


def revoke_user_tokens(db: Session, user: User) -> int:
    """吊销用户的全部令牌"""
    count = db.query(AccessToken).filter(AccessToken.user_id == user.id).delete(synchronize_session=False)
    db.commit()
    return count


def revoke_token(db: Session, jti: str) -> None:
    db.query(AccessToken).filter(AccessToken.jti == jti).delete(synchronize_session=False)
    db.commit()


def resolve_token(db: Session, token: str) -> Tuple[User, AccessToken]:
    """校验令牌并返回 (用户, 令牌记录)"""
    payload = verify_token(token)
    record = db.query(AccessToken).filter(AccessToken.jti == payload["jti"]).first()
    if record is None or str(record.user_id) != str(payload["sub"]):
        raise AuthenticationException()
    user = db.get(User, record.user_id)
    if user is None:
        raise AuthenticationException()
    return user, record


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> AccessToken:
    """当前请求使用的令牌记录"""
    if not credentials:
        raise AuthenticationException()
    _, record = resolve_token(db, credentials.credentials)
    return record


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """获取当前用户"""
    if not credentials:
        raise AuthenticationException()
    user, _ = resolve_token(db, credentials.credentials)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """认证用户"""
    user = db.query(User).filter(User.email == email).first()
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


class RateLimiter:
    """固定窗口限流依赖，计数保存在缓存中

    用法: Depends(RateLimiter("login", settings.LOGIN_RATE_LIMIT))
    """

    def __init__(self, category: str, limit: int, window_seconds: int = 60):
        self.category = category
        self.limit = limit
        self.window_seconds = window_seconds

    def __call__(self, request: Request, cache: CacheManager = Depends(get_cache)) -> None:
        client = request.client.host if request.client else "unknown"
        key = f"rate_limit:{self.category}:{client}"
        count = cache.incr(key, self.window_seconds)
        if count > self.limit:
            logger.warning(f"请求频率超限: {self.category} client={client} count={count}")
            raise RateLimitException()

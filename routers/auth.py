from fastapi import APIRouter, Depends, status

from config.settings import settings
from models import User, AccessToken
from schemas.base import dump
from schemas.user import LoginRequest, UserCreate, UserResponse
from services.auth_service import AuthService
from utils.auth import get_current_user, get_current_token, RateLimiter
from utils.dependencies import get_auth_service

router = APIRouter()


@router.post("/login")
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(RateLimiter("login", settings.LOGIN_RATE_LIMIT))
):
    """用户登录，旧令牌全部吊销"""
    user, token = auth_service.login(login_data.email, login_data.password)
    return {
        "message": "Logged in successfully",
        "user": dump(UserResponse, user),
        "access_token": token,
        "token_type": "Bearer",
    }


@router.get("/user")
async def current_user_info(current_user: User = Depends(get_current_user)):
    """获取当前登录用户"""
    return {"user": dump(UserResponse, current_user)}


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    token: AccessToken = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
):
    """登出，吊销当前令牌"""
    auth_service.logout(current_user, token)
    return {"message": "Logged out successfully"}


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(RateLimiter("user_creation", settings.USER_CREATION_RATE_LIMIT))
):
    """管理员创建用户"""
    user = auth_service.create_user(user_data, current_user)
    return {"message": "User created successfully by admin", "user": dump(UserResponse, user)}

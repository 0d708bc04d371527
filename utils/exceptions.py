"""统一异常处理模块

定义系统中使用的业务异常类，所有异常均由 config.exception_handlers 统一转换为JSON响应
"""
from typing import Any
from utils.status_codes import (
    VALIDATION_ERROR, AUTH_ERROR, PERMISSION_ERROR, RESOURCE_ERROR,
    STORAGE_ERROR, INVARIANT_ERROR, CONFLICT, TOO_MANY_REQUESTS, get_message
)


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(self, code: str, message: str, data: Any = None, status_code: int = 400):
        self.code = code
        self.message = message
        self.data = data
        self.status_code = status_code
        super().__init__(message)


class ValidationException(BusinessException):
    """数据验证异常，字段错误与请求参数校验一样放在 data.errors 下"""

    def __init__(self, message: str, errors: dict = None):
        super().__init__(
            code=VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None,
            status_code=422
        )


class AuthenticationException(BusinessException):
    """认证异常（未登录、令牌无效或已吊销）"""

    def __init__(self, message: str = get_message(AUTH_ERROR), data: Any = None):
        super().__init__(
            code=AUTH_ERROR,
            message=message,
            data=data,
            status_code=401
        )


class PermissionException(BusinessException):
    """权限异常，与资源不存在严格区分"""

    def __init__(self, message: str = get_message(PERMISSION_ERROR), data: Any = None):
        super().__init__(
            code=PERMISSION_ERROR,
            message=message,
            data=data,
            status_code=403
        )


class ResourceNotFoundException(BusinessException):
    """资源不存在异常"""

    def __init__(self, message: str = get_message(RESOURCE_ERROR), data: Any = None, code: str = RESOURCE_ERROR):
        super().__init__(
            code=code,
            message=message,
            data=data,
            status_code=404
        )


class ResourceConflictException(BusinessException):
    """资源冲突异常（重复成员、重复名称）"""

    def __init__(self, message: str = get_message(CONFLICT), data: Any = None):
        super().__init__(
            code=CONFLICT,
            message=message,
            data=data,
            status_code=409
        )


class InvariantViolationException(BusinessException):
    """业务约束异常（唯一项目经理、团队所有者等）"""

    def __init__(self, message: str, data: Any = None):
        super().__init__(
            code=INVARIANT_ERROR,
            message=message,
            data=data,
            status_code=403
        )


class StorageException(BusinessException):
    """文件存储异常"""

    def __init__(self, message: str = get_message(STORAGE_ERROR), data: Any = None):
        super().__init__(
            code=STORAGE_ERROR,
            message=message,
            data=data,
            status_code=500
        )


class RateLimitException(BusinessException):
    """请求频率超限异常"""

    def __init__(self, message: str = get_message(TOO_MANY_REQUESTS), data: Any = None):
        super().__init__(
            code=TOO_MANY_REQUESTS,
            message=message,
            data=data,
            status_code=429
        )

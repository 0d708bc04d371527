# 工具模块：认证、权限、缓存、队列、存储和邮件
# 依赖 models / services 的模块（auth、dependencies）请直接按模块导入，避免循环依赖
from .exceptions import (
    BusinessException,
    ValidationException,
    AuthenticationException,
    PermissionException,
    ResourceNotFoundException,
    ResourceConflictException,
)

# 状态码常量定义

# 成功状态码
SUCCESS = "200"               # 操作成功
CREATED = "201"               # 创建成功

# 客户端错误状态码
BAD_REQUEST = "400"           # 请求参数错误
UNAUTHORIZED = "401"          # 未认证
FORBIDDEN = "403"             # 禁止访问
NOT_FOUND = "404"             # 资源不存在
CONFLICT = "409"              # 资源冲突
UNPROCESSABLE = "422"         # 数据验证失败
TOO_MANY_REQUESTS = "429"     # 请求过多

# 服务器错误状态码
INTERNAL_ERROR = "500"        # 服务器内部错误

# 业务状态码（自定义）
BUSINESS_ERROR = "10000"      # 业务通用错误
VALIDATION_ERROR = "10001"    # 数据验证错误
AUTH_ERROR = "10003"          # 认证相关错误
PERMISSION_ERROR = "10004"    # 权限相关错误
RESOURCE_ERROR = "10005"      # 资源相关错误
STORAGE_ERROR = "10006"       # 文件存储错误
INVARIANT_ERROR = "10007"     # 业务约束被破坏

# 状态码描述映射
STATUS_MESSAGE = {
    SUCCESS: "OK",
    CREATED: "Created",

    BAD_REQUEST: "Bad Request",
    UNAUTHORIZED: "Unauthenticated.",
    FORBIDDEN: "This action is unauthorized.",
    NOT_FOUND: "Resource not found.",
    CONFLICT: "Conflict",
    UNPROCESSABLE: "Validation Error",
    TOO_MANY_REQUESTS: "Too Many Attempts.",

    INTERNAL_ERROR: "Server Error",

    BUSINESS_ERROR: "Business Error",
    VALIDATION_ERROR: "Validation Error",
    AUTH_ERROR: "Unauthenticated.",
    PERMISSION_ERROR: "This action is unauthorized.",
    RESOURCE_ERROR: "Resource not found.",
    STORAGE_ERROR: "Storage operation failed.",
    INVARIANT_ERROR: "Operation not allowed.",
}


def get_message(code: str) -> str:
    """获取状态码对应的描述信息"""
    return STATUS_MESSAGE.get(code, "Unknown status")

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any, Iterable
from datetime import datetime, date


def default_timestamp() -> str:
    """返回格式化的当前时间戳"""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


# 错误响应模式
class ErrorResponse(BaseModel):
    """统一错误响应模式"""
    code: str = "500"
    message: str = "Server Error"
    data: Optional[Any] = None
    # 使用字符串类型的格式化时间戳
    timestamp: str = Field(default_factory=default_timestamp)


# ORM 模型基类
class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


def closed_choice(value, choices: Iterable, message: str):
    """校验取值属于封闭集合，返回字符串值"""
    if value is None:
        return value
    raw = getattr(value, "value", value)
    allowed = [getattr(choice, "value", choice) for choice in choices]
    if raw not in allowed:
        raise ValueError(message)
    return raw


def not_in_past(value: Optional[datetime], message: str = "The due date must be a date after or equal to today."):
    """截止日期不能早于今天"""
    if value is None:
        return value
    day = value.date() if isinstance(value, datetime) else value
    if day < date.today():
        raise ValueError(message)
    return value


def dump(schema_cls, obj) -> dict:
    """ORM 对象 -> 可JSON序列化的字典快照"""
    return schema_cls.model_validate(obj).model_dump(mode="json")


def dump_list(schema_cls, objs) -> list:
    return [dump(schema_cls, obj) for obj in objs]

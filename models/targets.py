"""多态目标解析模块

评论和附件的挂载目标是一个带标签的联合类型 {project | task | comment}，
统一通过 (类型标签, ID) 查表解析，而不是依赖继承
"""
from typing import Optional, Union
from sqlalchemy.orm import Session, object_session

from .enums import TargetType
from .project import Project
from .task import Task
from .comment import Comment

Target = Union[Project, Task, Comment]

# 类型标签 -> 模型类
TARGET_MODELS = {
    TargetType.PROJECT: Project,
    TargetType.TASK: Task,
    TargetType.COMMENT: Comment,
}


def parse_target_type(value) -> Optional[TargetType]:
    """将字符串解析为目标类型，非法值返回 None"""
    if isinstance(value, TargetType):
        return value
    try:
        return TargetType(value)
    except ValueError:
        return None


def target_type_of(entity) -> Optional[TargetType]:
    """返回实体对应的类型标签"""
    for target_type, model in TARGET_MODELS.items():
        if isinstance(entity, model):
            return target_type
    return None


def resolve_target(db: Session, target_type, target_id, allowed=None) -> Optional[Target]:
    """按 (类型, ID) 查找目标实体，类型不在 allowed 内或实体不存在时返回 None"""
    parsed = parse_target_type(target_type)
    if parsed is None:
        return None
    if allowed is not None and parsed not in allowed:
        return None
    if target_id is None:
        return None
    return db.get(TARGET_MODELS[parsed], target_id)


def project_of(target) -> Optional[Project]:
    """返回目标所属的项目；评论取其挂载对象的项目"""
    if isinstance(target, Project):
        return target
    if isinstance(target, Task):
        return target.project
    if isinstance(target, Comment):
        session = object_session(target)
        parent = resolve_target(session, target.commentable_type, target.commentable_id)
        return project_of(parent) if parent is not None else None
    return None


def target_name(target) -> str:
    """用于通知和邮件的目标名称"""
    return getattr(target, "name", None) or "N/A"

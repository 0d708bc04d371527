"""缓存失效辅助

项目详情按 (项目, 查看者) 缓存，团队列表按用户缓存，
变更后由服务显式删除受影响的整键
"""
import logging
from typing import Iterable, Optional, Set

from models import Project, Team
from utils.cache_manager import CacheManager, project_detail_key, user_teams_key

logger = logging.getLogger(__name__)


def team_user_ids(team: Optional[Team]) -> Set[int]:
    """团队所有者和全部成员"""
    if team is None:
        return set()
    return {team.owner_id, *team.member_ids()}


def project_viewer_ids(project: Project) -> Set[int]:
    """可能持有该项目详情缓存的用户：创建者、项目成员、团队所有者和团队成员"""
    ids = {project.created_by_user_id, *project.member_roles().keys()}
    ids |= team_user_ids(project.team)
    return ids


def forget_project(cache: CacheManager, project: Project, extra_user_ids: Iterable[Optional[int]] = ()) -> None:
    """删除项目详情缓存"""
    user_ids = project_viewer_ids(project) | {uid for uid in extra_user_ids if uid is not None}
    cache.delete_many(project_detail_key(project.id, uid) for uid in user_ids)
    logger.debug(f"项目 {project.id} 详情缓存已失效，涉及 {len(user_ids)} 个用户")


def forget_team_listings(cache: CacheManager, user_ids: Iterable[Optional[int]]) -> None:
    """删除用户团队列表缓存"""
    cache.delete_many(user_teams_key(uid) for uid in user_ids if uid is not None)

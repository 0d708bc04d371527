# 基础模式
from .base import ErrorResponse, MessageResponse, ORMModel, default_timestamp, dump, dump_list

# 用户相关模式
from .user import UserResponse, MemberResponse, LoginRequest, UserCreate

# 团队相关模式
from .team import (
    TeamCreate, TeamUpdate, TeamMemberAdd, TeamMemberRoleUpdate, TeamResponse, team_snapshot
)

# 项目相关模式
from .project import (
    ProjectCreate, ProjectUpdate, ProjectMemberAdd, ProjectMemberRoleUpdate,
    ProjectResponse, ProjectWithMembers, ProjectListItem, ProjectDetail,
    project_with_members, project_list_item, project_detail
)

# 任务相关模式
from .task import TaskCreate, TaskUpdate, TaskResponse, TaskListItem, TaskDetail, task_list_item

# 评论相关模式
from .comment import CommentCreate, CommentUpdate, CommentResponse, CommentDetail

# 附件相关模式
from .attachment import AttachmentUpdate, AttachmentResponse

# 通知相关模式
from .notification import NotificationResponse

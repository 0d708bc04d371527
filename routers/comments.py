from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from models import User, Comment
from schemas.base import dump, dump_list
from schemas.comment import CommentCreate, CommentUpdate, CommentResponse, CommentDetail
from services.comment_service import CommentService
from utils.auth import get_current_user
from utils.dependencies import get_comment, get_comment_service

router = APIRouter()


@router.get("")
async def list_comments(
    commentable_type: Optional[str] = Query(None, description="评论对象类型：project / task"),
    commentable_id: Optional[int] = Query(None, description="评论对象ID"),
    current_user: User = Depends(get_current_user),
    comment_service: CommentService = Depends(get_comment_service)
):
    """获取某个项目或任务的评论"""
    comments = comment_service.list_for(current_user, commentable_type, commentable_id)
    return {"comments": dump_list(CommentResponse, comments)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    comment_service: CommentService = Depends(get_comment_service)
):
    """创建评论"""
    comment = comment_service.create(
        comment_data.content, comment_data.commentable_type, comment_data.commentable_id, current_user
    )
    return {"message": "Comment created successfully", "comment": dump(CommentResponse, comment)}


@router.get("/{comment_id}")
async def get_comment_detail(
    current_user: User = Depends(get_current_user),
    comment: Comment = Depends(get_comment),
    comment_service: CommentService = Depends(get_comment_service)
):
    return {"comment": dump(CommentDetail, comment_service.get(comment, current_user))}


@router.put("/{comment_id}")
async def update_comment(
    comment_data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    comment: Comment = Depends(get_comment),
    comment_service: CommentService = Depends(get_comment_service)
):
    comment = comment_service.update(comment, comment_data.content, current_user)
    return {"message": "Comment updated successfully", "comment": dump(CommentResponse, comment)}


@router.delete("/{comment_id}")
async def delete_comment(
    current_user: User = Depends(get_current_user),
    comment: Comment = Depends(get_comment),
    comment_service: CommentService = Depends(get_comment_service)
):
    comment_service.delete(comment, current_user)
    return {"message": "Comment deleted successfully"}

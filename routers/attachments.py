from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response
from typing import Optional
from urllib.parse import quote

from config.settings import settings
from models import User, Attachment
from schemas.base import dump, dump_list
from schemas.attachment import AttachmentUpdate, AttachmentResponse
from services.attachment_service import AttachmentService
from utils.auth import get_current_user, RateLimiter
from utils.dependencies import get_attachment, get_attachment_service

router = APIRouter()


@router.get("")
async def list_attachments(
    attachable_type: Optional[str] = Query(None, description="挂载对象类型：project / task / comment"),
    attachable_id: Optional[int] = Query(None, description="挂载对象ID"),
    current_user: User = Depends(get_current_user),
    attachment_service: AttachmentService = Depends(get_attachment_service)
):
    """获取某个对象的附件"""
    attachments = attachment_service.list_for(current_user, attachable_type, attachable_id)
    return {"attachments": dump_list(AttachmentResponse, attachments)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    file: UploadFile = File(...),
    attachable_type: str = Form(...),
    attachable_id: int = Form(...),
    current_user: User = Depends(get_current_user),
    attachment_service: AttachmentService = Depends(get_attachment_service),
    _: None = Depends(RateLimiter("upload", settings.UPLOAD_RATE_LIMIT))
):
    """上传附件（multipart/form-data）"""
    content = await file.read()
    attachment = attachment_service.upload(
        content, file.filename, file.content_type, attachable_type, attachable_id, current_user
    )
    return {"message": "Attachment uploaded successfully", "attachment": dump(AttachmentResponse, attachment)}


@router.get("/{attachment_id}")
async def download_attachment(
    current_user: User = Depends(get_current_user),
    attachment: Attachment = Depends(get_attachment),
    attachment_service: AttachmentService = Depends(get_attachment_service)
):
    """下载附件"""
    data, file_name, mime_type = attachment_service.download(attachment, current_user)
    return Response(
        content=data,
        media_type=mime_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"}
    )


@router.put("/{attachment_id}")
async def update_attachment(
    attachment_data: AttachmentUpdate,
    current_user: User = Depends(get_current_user),
    attachment: Attachment = Depends(get_attachment),
    attachment_service: AttachmentService = Depends(get_attachment_service)
):
    """更新附件元数据"""
    attachment = attachment_service.update(attachment, attachment_data.file_name, current_user)
    return {"message": "Attachment metadata updated successfully", "attachment": dump(AttachmentResponse, attachment)}


@router.delete("/{attachment_id}")
async def delete_attachment(
    current_user: User = Depends(get_current_user),
    attachment: Attachment = Depends(get_attachment),
    attachment_service: AttachmentService = Depends(get_attachment_service)
):
    """删除附件，文件同步释放"""
    attachment_service.delete(attachment, current_user)
    return {"message": "Attachment deleted successfully"}

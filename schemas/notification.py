from typing import Optional, Any, Dict
from datetime import datetime
from .base import ORMModel


class NotificationResponse(ORMModel):
    id: str
    user_id: int
    type: str
    data: Dict[str, Any] = {}
    read_at: Optional[datetime] = None
    is_read: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

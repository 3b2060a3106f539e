"""Notification schemas."""
from pydantic import BaseModel, ConfigDict
from typing import Optional, Dict, Any
from datetime import datetime


class NotificationInDB(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    read: bool
    priority: str
    action_url: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

from pydantic import BaseModel, Field, field_validator
from typing import List
from datetime import datetime
from bson import ObjectId

from models.enums import MessageType


class ReadReceiptInDB(BaseModel):
    user_id: str
    read_at: datetime

    @field_validator('user_id', mode='before')
    @classmethod
    def convert_object_id(cls, v):
        return str(v) if isinstance(v, ObjectId) else v


class MessageInDB(BaseModel):
    """Database representation of a chat message"""
    id: str = Field(..., alias="_id")
    chat_id: str
    sender_id: str
    content: str
    type: MessageType = MessageType.TEXT
    read_by: List[ReadReceiptInDB] = Field(default_factory=list)
    is_deleted: bool = False
    created_at: datetime

    model_config = {
        "populate_by_name": True,
    }

    @field_validator('id', 'chat_id', 'sender_id', mode='before')
    @classmethod
    def convert_object_id(cls, v):
        return str(v) if isinstance(v, ObjectId) else v

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Optional
from datetime import datetime
from bson import ObjectId

from models.enums import ChatStatus, ParticipantRole


class ParticipantInDB(BaseModel):
    """One side of a chat: a user id bound to a role"""
    user_id: str
    role: ParticipantRole

    @field_validator('user_id', mode='before')
    @classmethod
    def convert_object_id(cls, v):
        return str(v) if isinstance(v, ObjectId) else v


class ChatInDB(BaseModel):
    """Database representation of a chat document"""
    id: str = Field(..., alias="_id")
    participants: List[ParticipantInDB] = Field(..., min_length=2, max_length=2)
    participant_ids: List[str] = Field(..., min_length=2, max_length=2)
    product_id: str

    # Denormalized summary of the newest message
    last_message: str = ""
    last_message_at: datetime
    last_message_by: Optional[str] = None

    status: ChatStatus = ChatStatus.ACTIVE
    is_active: bool = True
    unread_count: Dict[str, int] = Field(default_factory=dict)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
    }

    @field_validator('id', 'product_id', 'last_message_by', mode='before')
    @classmethod
    def convert_object_id(cls, v):
        return str(v) if isinstance(v, ObjectId) else v

    @field_validator('participant_ids', mode='before')
    @classmethod
    def convert_object_ids(cls, v):
        if isinstance(v, list):
            return [str(x) if isinstance(x, ObjectId) else x for x in v]
        return v

    @model_validator(mode='after')
    def check_two_parties(self):
        user_ids = {p.user_id for p in self.participants}
        if len(user_ids) != 2:
            raise ValueError("chat participants must be two distinct users")
        roles = {p.role for p in self.participants}
        if roles != {ParticipantRole.BUYER, ParticipantRole.SELLER}:
            raise ValueError("chat needs exactly one buyer and one seller")
        return self

    def participant(self, user_id: str) -> Optional[ParticipantInDB]:
        for p in self.participants:
            if p.user_id == str(user_id):
                return p
        return None

    def unread_for(self, user_id: str) -> int:
        return max(0, self.unread_count.get(str(user_id), 0))

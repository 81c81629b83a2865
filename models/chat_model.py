from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
import math

from models.enums import ChatStatus, MessageType, ParticipantRole


class ChatStart(BaseModel):
    """Body for starting (or fetching) a chat with a seller about a product"""
    product_id: str
    seller_id: str


class MessageCreate(BaseModel):
    """Body for posting a message. Content and type are checked by the message store"""
    content: str
    type: Optional[str] = None


class UserInfo(BaseModel):
    """Display data resolved from the user directory"""
    id: str
    name: str
    email: Optional[str] = None


class ParticipantInfo(UserInfo):
    role: ParticipantRole


class ProductSummary(BaseModel):
    id: str
    name: str
    images: List[Any] = Field(default_factory=list)
    price: Optional[Any] = None
    available: bool = True


class ChatResponse(BaseModel):
    """Chat as seen by one participant"""
    id: str
    participants: List[ParticipantInfo]
    product: ProductSummary
    last_message: str = ""
    last_message_at: datetime
    last_message_by: Optional[UserInfo] = None
    status: ChatStatus
    is_active: bool
    unread_count: Dict[str, int] = Field(default_factory=dict)
    my_unread_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReadReceipt(BaseModel):
    user_id: str
    read_at: datetime


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    sender: UserInfo
    content: str
    type: MessageType
    read_by: List[ReadReceipt] = Field(default_factory=list)
    is_deleted: bool = False
    created_at: datetime


class Pagination(BaseModel):
    current_page: int
    page_size: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / page_size) if page_size else 0
        return cls(
            current_page=page,
            page_size=page_size,
            total_pages=total_pages,
            total_items=total,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class ChatListResponse(BaseModel):
    chats: List[ChatResponse]
    pagination: Pagination


class ChatStartResponse(BaseModel):
    chat: ChatResponse
    created: bool
    message: str


class ChatDetailResponse(BaseModel):
    chat: ChatResponse
    messages: List[MessageResponse]
    pagination: Pagination


class UnreadCountResponse(BaseModel):
    unread_count: int


class StatusResponse(BaseModel):
    status: str = "success"
    message: str

from typing import Any, Dict, Optional

from db.schemas.chats_schema import ChatInDB
from db.schemas.messages_schema import MessageInDB
from models.chat_model import (
    ChatResponse,
    MessageResponse,
    ParticipantInfo,
    ProductSummary,
    ReadReceipt,
    UserInfo,
)


def user_info(user_id: str, users: Dict[str, Dict[str, Any]]) -> UserInfo:
    """Display info for a user, falling back to the bare id when unresolved"""
    resolved = users.get(str(user_id))
    if not resolved:
        return UserInfo(id=str(user_id), name=str(user_id))
    return UserInfo(**resolved)


def product_info(product_id: str, products: Dict[str, Dict[str, Any]]) -> ProductSummary:
    resolved = products.get(str(product_id))
    if not resolved:
        return ProductSummary(id=str(product_id), name="Product unavailable", available=False)
    return ProductSummary(**resolved)


def chat_db_to_response(
    chat_doc: Dict[str, Any],
    users: Dict[str, Dict[str, Any]],
    products: Dict[str, Dict[str, Any]],
    viewer_id: Optional[str] = None
) -> ChatResponse:
    """Convert a stored chat plus resolved lookups into the API view for one participant"""
    chat = ChatInDB(**chat_doc)

    participants = [
        ParticipantInfo(**user_info(p.user_id, users).model_dump(), role=p.role)
        for p in chat.participants
    ]

    return ChatResponse(
        id=chat.id,
        participants=participants,
        product=product_info(chat.product_id, products),
        last_message=chat.last_message,
        last_message_at=chat.last_message_at,
        last_message_by=user_info(chat.last_message_by, users) if chat.last_message_by else None,
        status=chat.status,
        is_active=chat.is_active,
        unread_count={uid: max(0, n) for uid, n in chat.unread_count.items()},
        my_unread_count=chat.unread_for(viewer_id) if viewer_id else 0,
        created_at=chat.created_at,
        updated_at=chat.updated_at,
    )


def message_db_to_response(message_doc: Dict[str, Any], users: Dict[str, Dict[str, Any]]) -> MessageResponse:
    """Convert a stored message into its API view with the sender resolved"""
    message = MessageInDB(**message_doc)

    return MessageResponse(
        id=message.id,
        chat_id=message.chat_id,
        sender=user_info(message.sender_id, users),
        content=message.content,
        type=message.type,
        read_by=[ReadReceipt(user_id=r.user_id, read_at=r.read_at) for r in message.read_by],
        is_deleted=message.is_deleted,
        created_at=message.created_at,
    )

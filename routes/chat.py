from fastapi import APIRouter, HTTPException, Query, Response, status

from config import CHAT_PAGE_SIZE, MESSAGE_PAGE_SIZE, MAX_PAGE_SIZE
from dependencies.auth import CurrentActiveUser
from dependencies.chat import ChatServiceDep
from models.chat_model import (
    ChatDetailResponse,
    ChatListResponse,
    ChatStart,
    ChatStartResponse,
    MessageCreate,
    MessageResponse,
    StatusResponse,
    UnreadCountResponse,
)
from utils.exceptions import ChatError
from logger.logger import logger

router = APIRouter()


def to_http_exception(error: ChatError) -> HTTPException:
    """Translate a chat error into the structured HTTP error clients see"""
    if error.status_code >= 500:
        return HTTPException(
            status_code=error.status_code,
            detail={"kind": error.kind, "message": "Server error while processing chat request"}
        )
    return HTTPException(status_code=error.status_code, detail=error.to_detail())


def unexpected_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Unexpected error while {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"kind": "storage_error", "message": f"Server error while {action}"}
    )


@router.get("/", response_model=ChatListResponse)
async def get_chats(
    current_user: CurrentActiveUser,
    chat_service: ChatServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(CHAT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
):
    """Get all active chats for the current user, most recent first"""
    try:
        return await chat_service.list_chats(current_user.id, page, limit)
    except ChatError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise unexpected_error("fetching chats", e)


@router.post("/", response_model=ChatStartResponse, status_code=status.HTTP_201_CREATED)
async def start_chat(
    chat_start: ChatStart,
    response: Response,
    current_user: CurrentActiveUser,
    chat_service: ChatServiceDep
):
    """Start a new chat with a seller about a product (or get the existing one)"""
    try:
        chat, created = await chat_service.start_or_get_chat(
            current_user.id, chat_start.seller_id, chat_start.product_id
        )
    except ChatError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise unexpected_error("creating chat", e)

    if not created:
        response.status_code = status.HTTP_200_OK
    return ChatStartResponse(
        chat=chat,
        created=created,
        message="Chat created successfully" if created else "Chat already exists"
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: CurrentActiveUser,
    chat_service: ChatServiceDep
):
    """Total unread messages across the current user's active chats"""
    try:
        total = await chat_service.get_unread_total(current_user.id)
        return UnreadCountResponse(unread_count=total)
    except ChatError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise unexpected_error("counting unread messages", e)


@router.get("/{chat_id}", response_model=ChatDetailResponse)
async def get_chat(
    chat_id: str,
    current_user: CurrentActiveUser,
    chat_service: ChatServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(MESSAGE_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
):
    """Get chat details and messages; marks the chat read for the current user"""
    try:
        return await chat_service.get_chat_with_messages(chat_id, current_user.id, page, limit)
    except ChatError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise unexpected_error("fetching chat details", e)


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    chat_id: str,
    message: MessageCreate,
    current_user: CurrentActiveUser,
    chat_service: ChatServiceDep
):
    """Send a message in a chat"""
    try:
        return await chat_service.post_message(chat_id, current_user.id, message.content, message.type)
    except ChatError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise unexpected_error("sending message", e)


@router.put("/{chat_id}/read", response_model=StatusResponse)
async def mark_chat_read(
    chat_id: str,
    current_user: CurrentActiveUser,
    chat_service: ChatServiceDep
):
    """Mark chat as read"""
    try:
        await chat_service.mark_chat_read(chat_id, current_user.id)
        return StatusResponse(message="Chat marked as read")
    except ChatError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise unexpected_error("marking chat as read", e)


@router.delete("/{chat_id}", response_model=StatusResponse)
async def delete_chat(
    chat_id: str,
    current_user: CurrentActiveUser,
    chat_service: ChatServiceDep
):
    """Delete (deactivate) a chat"""
    try:
        await chat_service.delete_chat(chat_id, current_user.id)
        return StatusResponse(message="Chat deleted successfully")
    except ChatError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise unexpected_error("deleting chat", e)

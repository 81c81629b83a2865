from typing import Any, Dict, Iterable, List, Optional, Tuple

from db.mongodb import is_valid_object_id
from mappers.chats_mapper import chat_db_to_response, message_db_to_response
from models.chat_model import (
    ChatDetailResponse,
    ChatListResponse,
    ChatResponse,
    MessageResponse,
    Pagination,
)
from repos.chat_repo import ChatRepository
from repos.message_repo import MessageRepository
from repos.product_repo import ProductRepository
from repos.user_repo import UserRepository
from utils.exceptions import (
    ChatError,
    ConflictOrRace,
    Forbidden,
    InvalidReference,
    NotFound,
    StorageError,
    ValidationError,
)
from utils.time import get_current_utc_time
from logger.logger import logger


class ChatService:
    """
    Service layer for product chats
    Holds no state between calls: every operation reads and writes through
    the chat and message repositories, and resolves display data through the
    user and product repositories
    """

    def __init__(
        self,
        chat_repository: ChatRepository,
        message_repository: MessageRepository,
        user_repository: UserRepository,
        product_repository: ProductRepository
    ):
        self.chat_repo = chat_repository
        self.message_repo = message_repository
        self.user_repo = user_repository
        self.product_repo = product_repository

    # Access

    async def _get_accessible_chat(self, chat_id: str, user_id: str) -> Dict[str, Any]:
        """
        Load a chat the user may act on
        NotFound when the id is unknown, Forbidden when the user is not a
        participant or the chat has been deactivated
        """
        if not is_valid_object_id(chat_id):
            raise NotFound("Chat not found")

        chat = await self.chat_repo.get_chat_by_id(chat_id)
        if not chat:
            raise NotFound("Chat not found")

        if str(user_id) not in {str(pid) for pid in chat.get("participant_ids", [])}:
            logger.warning(f"User {user_id} denied access to chat {chat_id}: not a participant")
            raise Forbidden("You are not a participant of this chat")

        if not chat.get("is_active", False):
            raise Forbidden("Chat is no longer active")

        return chat

    # Enrichment

    async def _resolve_users(self, user_ids: Iterable) -> Dict[str, Dict[str, Any]]:
        try:
            return await self.user_repo.get_users_by_ids(user_ids)
        except StorageError as e:
            logger.warning(f"User directory unavailable, showing raw ids: {e.message}")
            return {}

    async def _resolve_products(self, product_ids: Iterable) -> Dict[str, Dict[str, Any]]:
        try:
            return await self.product_repo.get_products_by_ids(product_ids)
        except StorageError as e:
            logger.warning(f"Product catalog unavailable, showing placeholders: {e.message}")
            return {}

    async def _chats_to_response(self, chats: List[Dict[str, Any]], viewer_id: str) -> List[ChatResponse]:
        user_ids = set()
        product_ids = set()
        for chat in chats:
            user_ids.update(chat.get("participant_ids", []))
            if chat.get("last_message_by"):
                user_ids.add(chat["last_message_by"])
            product_ids.add(chat["product_id"])

        users = await self._resolve_users(user_ids)
        products = await self._resolve_products(product_ids)
        return [chat_db_to_response(chat, users, products, viewer_id) for chat in chats]

    async def _messages_to_response(self, messages: List[Dict[str, Any]]) -> List[MessageResponse]:
        users = await self._resolve_users({m["sender_id"] for m in messages})
        return [message_db_to_response(m, users) for m in messages]

    # Operations

    async def start_or_get_chat(self, buyer_id: str, seller_id: str, product_id: str) -> Tuple[ChatResponse, bool]:
        """
        Return the active chat between buyer and seller about a product,
        creating it on first contact
        Returns (chat, created)
        """
        errors = []
        if not is_valid_object_id(product_id):
            errors.append({"field": "product_id", "message": "Invalid product ID"})
        if not is_valid_object_id(seller_id):
            errors.append({"field": "seller_id", "message": "Invalid seller ID"})
        if errors:
            raise ValidationError("Validation failed", errors=errors)

        existing = await self.chat_repo.find_active_chat(buyer_id, seller_id, product_id)
        if existing:
            chat_response = (await self._chats_to_response([existing], buyer_id))[0]
            return chat_response, False

        if str(buyer_id) == str(seller_id):
            raise InvalidReference("You cannot start a chat with yourself")

        product = await self.product_repo.get_product_by_id(product_id)
        if not product:
            raise InvalidReference("Product not found")

        try:
            sellers = await self.user_repo.get_users_by_ids([seller_id])
        except StorageError as e:
            # Directory outages do not block chats; the seller id is still well-formed
            logger.warning(f"Could not verify seller {seller_id}: {e.message}")
        else:
            if str(seller_id) not in sellers:
                raise InvalidReference("Seller not found")

        created = True
        try:
            chat = await self.chat_repo.create_chat(buyer_id, seller_id, product_id)
            logger.info(f"Created chat {chat['_id']} between buyer {buyer_id} and seller {seller_id} for product {product_id}")
        except ConflictOrRace:
            # Another request created it first; the idempotent result is that chat
            created = False
            chat = await self.chat_repo.find_active_chat(buyer_id, seller_id, product_id)
            if not chat:
                raise StorageError("Could not resolve concurrent chat creation")
            logger.info(f"Chat {chat['_id']} was created concurrently; returning it")

        chat_response = (await self._chats_to_response([chat], buyer_id))[0]
        return chat_response, created

    async def list_chats(self, user_id: str, page: int, page_size: int) -> ChatListResponse:
        """Active chats of a user, most recently active first"""
        chats, total = await self.chat_repo.list_for_participant(user_id, page, page_size)
        return ChatListResponse(
            chats=await self._chats_to_response(chats, user_id),
            pagination=Pagination.build(page, page_size, total)
        )

    async def get_unread_total(self, user_id: str) -> int:
        return await self.chat_repo.total_unread_for_participant(user_id)

    async def post_message(self, chat_id: str, sender_id: str, content: str, message_type: Optional[str] = None) -> MessageResponse:
        """
        Append a message and update the chat summary and the other
        participant's unread counter; the message is discarded again if the
        chat update fails
        """
        chat = await self._get_accessible_chat(chat_id, sender_id)

        message = await self.message_repo.append_message(chat["_id"], sender_id, content, message_type)

        try:
            await self.chat_repo.record_new_message(
                chat["_id"], message["content"], sender_id, message["created_at"]
            )
        except ChatError as e:
            logger.error(f"Chat update failed for message {message['_id']} in chat {chat_id}, discarding it: {e.message}")
            try:
                await self.message_repo.discard_message(message["_id"])
            except StorageError as rollback_error:
                logger.error(f"Could not discard message {message['_id']}: {rollback_error.message}")
                raise StorageError("Failed to send message") from e
            raise

        return (await self._messages_to_response([message]))[0]

    async def _mark_read(self, chat: Dict[str, Any], reader_id: str) -> int:
        read_at = get_current_utc_time()
        marked = await self.message_repo.mark_read_for_participant(chat["_id"], reader_id, read_at)

        try:
            await self.chat_repo.reset_unread(chat["_id"], reader_id)
        except ChatError as e:
            logger.error(f"Unread reset failed in chat {chat['_id']} for user {reader_id}, rolling back receipts: {e.message}")
            if marked:
                try:
                    await self.message_repo.unmark_read(chat["_id"], reader_id, read_at)
                except StorageError as rollback_error:
                    logger.error(f"Could not roll back read receipts: {rollback_error.message}")
                    raise StorageError("Failed to mark chat as read") from e
            raise

        return marked

    async def mark_chat_read(self, chat_id: str, reader_id: str) -> int:
        """
        Record read receipts for everything the reader has not seen and zero
        their unread counter
        Returns the number of messages newly marked read
        """
        chat = await self._get_accessible_chat(chat_id, reader_id)
        return await self._mark_read(chat, reader_id)

    async def get_chat_with_messages(self, chat_id: str, caller_id: str, page: int, page_size: int) -> ChatDetailResponse:
        """Chat detail plus a page of messages; opening a chat marks it read"""
        chat = await self._get_accessible_chat(chat_id, caller_id)

        await self._mark_read(chat, caller_id)
        chat.setdefault("unread_count", {})[str(caller_id)] = 0

        messages, total = await self.message_repo.list_for_chat(chat["_id"], page, page_size)

        chat_response = (await self._chats_to_response([chat], caller_id))[0]
        return ChatDetailResponse(
            chat=chat_response,
            messages=await self._messages_to_response(messages),
            pagination=Pagination.build(page, page_size, total)
        )

    async def delete_chat(self, chat_id: str, requesting_user_id: str) -> None:
        """Soft-delete a chat; there is no way back to active"""
        chat = await self._get_accessible_chat(chat_id, requesting_user_id)
        await self.chat_repo.deactivate(chat["_id"], requesting_user_id)
        logger.info(f"Chat {chat_id} deactivated by user {requesting_user_id}")

from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from db.mongodb import convert_to_object_id
from models.enums import ChatStatus, ParticipantRole
from utils.exceptions import ConflictOrRace, Forbidden, InvalidReference, NotFound, StorageError
from utils.time import get_current_utc_time
from logger.logger import logger


class ChatRepository:
    """
    Repository for chat-related database operations
    Owns the chats collection: thread lookup, summary fields and unread counters
    """

    def __init__(self, db):
        self.db = db
        self.chats = db.chats

    @staticmethod
    def participant_key(user_a, user_b) -> List[ObjectId]:
        """Order-independent key for a pair of users"""
        return sorted([convert_to_object_id(user_a), convert_to_object_id(user_b)])

    async def get_chat_by_id(self, chat_id) -> Optional[Dict[str, Any]]:
        """
        Get a chat by id regardless of its status
        Returns None if it does not exist
        """
        try:
            return await self.chats.find_one({"_id": convert_to_object_id(chat_id)})
        except PyMongoError as e:
            logger.error(f"Error getting chat {chat_id}: {e}")
            raise StorageError(f"Error in get_chat_by_id: {str(e)}")

    async def find_active_chat(self, participant_user_id, other_user_id, product_id) -> Optional[Dict[str, Any]]:
        """Get the active chat between two users about a product, if any"""
        try:
            return await self.chats.find_one({
                "participant_ids": self.participant_key(participant_user_id, other_user_id),
                "product_id": convert_to_object_id(product_id),
                "is_active": True
            })
        except PyMongoError as e:
            logger.error(f"Error looking up chat for product {product_id}: {e}")
            raise StorageError(f"Error in find_active_chat: {str(e)}")

    async def create_chat(self, buyer_id, seller_id, product_id) -> Dict[str, Any]:
        """
        Insert a new active chat between a buyer and a seller
        Callers look up an existing chat first; a unique index on
        (participant_ids, product_id) catches the remaining race
        """
        if str(buyer_id) == str(seller_id):
            raise InvalidReference("Buyer and seller must be different users")

        buyer_object_id = convert_to_object_id(buyer_id)
        seller_object_id = convert_to_object_id(seller_id)
        now = get_current_utc_time()

        chat_data = {
            "participants": [
                {"user_id": buyer_object_id, "role": ParticipantRole.BUYER.value},
                {"user_id": seller_object_id, "role": ParticipantRole.SELLER.value},
            ],
            "participant_ids": self.participant_key(buyer_object_id, seller_object_id),
            "product_id": convert_to_object_id(product_id),
            "last_message": "",
            "last_message_at": now,
            "last_message_by": None,
            "status": ChatStatus.ACTIVE.value,
            "is_active": True,
            "unread_count": {},
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = await self.chats.insert_one(chat_data)
        except DuplicateKeyError:
            raise ConflictOrRace("An active chat for this product already exists")
        except PyMongoError as e:
            logger.error(f"Error creating chat for product {product_id}: {e}")
            raise StorageError(f"Error in create_chat: {str(e)}")

        chat_data["_id"] = result.inserted_id
        return chat_data

    async def list_for_participant(self, user_id, page: int, page_size: int) -> Tuple[List[Dict[str, Any]], int]:
        """
        Get a page of the active chats a user takes part in, most recent first
        Returns (chats, total number of matching chats)
        """
        query = {"participant_ids": convert_to_object_id(user_id), "is_active": True}
        skip = (page - 1) * page_size

        try:
            cursor = self.chats.find(query).sort(
                [("last_message_at", DESCENDING), ("_id", DESCENDING)]
            ).skip(skip).limit(page_size)
            chats = await cursor.to_list(length=page_size)
            total = await self.chats.count_documents(query)
        except PyMongoError as e:
            logger.error(f"Error listing chats for user {user_id}: {e}")
            raise StorageError(f"Error in list_for_participant: {str(e)}")

        return chats, total

    async def total_unread_for_participant(self, user_id) -> int:
        """Sum of a user's unread counters across their active chats"""
        key = str(user_id)
        total = 0
        try:
            cursor = self.chats.find(
                {"participant_ids": convert_to_object_id(user_id), "is_active": True},
                {"unread_count": 1}
            )
            async for chat in cursor:
                total += max(0, (chat.get("unread_count") or {}).get(key, 0))
        except PyMongoError as e:
            logger.error(f"Error counting unread messages for user {user_id}: {e}")
            raise StorageError(f"Error in total_unread_for_participant: {str(e)}")
        return total

    async def _participant_ids(self, chat_id) -> List[ObjectId]:
        chat = await self.chats.find_one(
            {"_id": convert_to_object_id(chat_id)},
            {"participant_ids": 1}
        )
        if not chat:
            raise NotFound("Chat not found")
        return chat["participant_ids"]

    @staticmethod
    def _touch_update(content: str, sender_id, timestamp: datetime) -> Dict[str, Any]:
        # $max keeps last_message_at from moving backwards when posts race
        return {
            "$set": {
                "last_message": content,
                "last_message_by": convert_to_object_id(sender_id),
                "updated_at": timestamp,
            },
            "$max": {"last_message_at": timestamp},
        }

    @staticmethod
    def _increment_update(participant_ids: List[ObjectId], sender_id) -> Dict[str, Any]:
        increments = {
            f"unread_count.{pid}": 1
            for pid in participant_ids
            if str(pid) != str(sender_id)
        }
        return {"$inc": increments} if increments else {}

    async def _update_active(self, chat_id, update: Dict[str, Any], operation: str) -> None:
        try:
            result = await self.chats.update_one(
                {"_id": convert_to_object_id(chat_id), "is_active": True},
                update
            )
        except PyMongoError as e:
            logger.error(f"Error in {operation} for chat {chat_id}: {e}")
            raise StorageError(f"Error in {operation}: {str(e)}")

        if result.matched_count == 0:
            raise Forbidden("Chat is no longer active")

    async def touch_on_new_message(self, chat_id, content: str, sender_id, timestamp: datetime) -> None:
        """Update the last message summary of an active chat"""
        await self._update_active(
            chat_id, self._touch_update(content, sender_id, timestamp), "touch_on_new_message"
        )

    async def increment_unread_for_others(self, chat_id, sender_id) -> None:
        """Add one to the unread counter of every participant except the sender"""
        try:
            participant_ids = await self._participant_ids(chat_id)
        except PyMongoError as e:
            raise StorageError(f"Error in increment_unread_for_others: {str(e)}")

        update = self._increment_update(participant_ids, sender_id)
        if update:
            await self._update_active(chat_id, update, "increment_unread_for_others")

    async def record_new_message(self, chat_id, content: str, sender_id, timestamp: datetime) -> None:
        """
        Apply the summary update and the unread increments in a single write
        so a posted message never leaves one without the other
        """
        try:
            participant_ids = await self._participant_ids(chat_id)
        except PyMongoError as e:
            raise StorageError(f"Error in record_new_message: {str(e)}")

        update = self._touch_update(content, sender_id, timestamp)
        update.update(self._increment_update(participant_ids, sender_id))
        await self._update_active(chat_id, update, "record_new_message")

    async def reset_unread(self, chat_id, user_id) -> None:
        """Set a participant's unread counter back to zero"""
        await self._update_active(
            chat_id,
            {"$set": {f"unread_count.{user_id}": 0}},
            "reset_unread"
        )

    async def deactivate(self, chat_id, requesting_user_id) -> None:
        """
        Soft-delete a chat on behalf of one of its participants
        Raises NotFound when no active chat with that id includes the user
        """
        now = get_current_utc_time()
        try:
            result = await self.chats.update_one(
                {
                    "_id": convert_to_object_id(chat_id),
                    "participant_ids": convert_to_object_id(requesting_user_id),
                    "is_active": True
                },
                {
                    "$set": {
                        "is_active": False,
                        "status": ChatStatus.INACTIVE.value,
                        "deactivated_at": now,
                        "updated_at": now,
                    }
                }
            )
        except PyMongoError as e:
            logger.error(f"Error deactivating chat {chat_id}: {e}")
            raise StorageError(f"Error in deactivate: {str(e)}")

        if result.matched_count == 0:
            raise NotFound("Chat not found")

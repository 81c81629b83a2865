from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from db.mongodb import convert_to_object_id
from models.enums import MessageType
from utils.exceptions import StorageError, ValidationError
from utils.time import get_current_utc_time
from logger.logger import logger

MAX_CONTENT_LENGTH = 1000


def normalize_message_input(content, message_type=None) -> Tuple[str, MessageType]:
    """
    Trim and check message content and type
    Raises ValidationError listing every offending field
    """
    errors = []

    text = content.strip() if isinstance(content, str) else ""
    if not text or len(text) > MAX_CONTENT_LENGTH:
        errors.append({
            "field": "content",
            "message": f"Message must be between 1 and {MAX_CONTENT_LENGTH} characters"
        })

    resolved_type = MessageType.TEXT
    if message_type is not None:
        try:
            resolved_type = MessageType(message_type)
        except ValueError:
            errors.append({
                "field": "type",
                "message": "Invalid message type"
            })

    if errors:
        raise ValidationError("Validation failed", errors=errors)

    return text, resolved_type


class MessageRepository:
    """
    Repository for chat messages
    Messages are append-only; every lookup is scoped by chat_id
    """

    def __init__(self, db):
        self.db = db
        self.messages = db.messages

    async def append_message(self, chat_id, sender_id, content, message_type=None) -> Dict[str, Any]:
        """Validate and insert a new message, returning the stored document"""
        text, resolved_type = normalize_message_input(content, message_type)

        message_data = {
            "chat_id": convert_to_object_id(chat_id),
            "sender_id": convert_to_object_id(sender_id),
            "content": text,
            "type": resolved_type.value,
            "read_by": [],
            "is_deleted": False,
            "created_at": get_current_utc_time(),
        }

        try:
            result = await self.messages.insert_one(message_data)
        except PyMongoError as e:
            logger.error(f"Error appending message to chat {chat_id}: {e}")
            raise StorageError(f"Error in append_message: {str(e)}")

        message_data["_id"] = result.inserted_id
        return message_data

    async def list_for_chat(self, chat_id, page: int, page_size: int) -> Tuple[List[Dict[str, Any]], int]:
        """
        Get a page of a chat's visible messages, oldest first
        Returns (messages, total number of visible messages)
        """
        query = {"chat_id": convert_to_object_id(chat_id), "is_deleted": False}
        skip = (page - 1) * page_size

        try:
            # _id breaks ties between messages created in the same millisecond
            cursor = self.messages.find(query).sort(
                [("created_at", ASCENDING), ("_id", ASCENDING)]
            ).skip(skip).limit(page_size)
            messages = await cursor.to_list(length=page_size)
            total = await self.messages.count_documents(query)
        except PyMongoError as e:
            logger.error(f"Error listing messages for chat {chat_id}: {e}")
            raise StorageError(f"Error in list_for_chat: {str(e)}")

        return messages, total

    async def mark_read_for_participant(self, chat_id, reader_user_id, read_at: Optional[datetime] = None) -> int:
        """
        Add a read receipt for the reader to every message in the chat that
        someone else sent and the reader has not acknowledged yet
        Returns the number of messages that got a new receipt
        """
        reader_object_id = convert_to_object_id(reader_user_id)
        read_at = read_at or get_current_utc_time()

        try:
            result = await self.messages.update_many(
                {
                    "chat_id": convert_to_object_id(chat_id),
                    "sender_id": {"$ne": reader_object_id},
                    "read_by.user_id": {"$ne": reader_object_id}
                },
                {"$push": {"read_by": {"user_id": reader_object_id, "read_at": read_at}}}
            )
        except PyMongoError as e:
            logger.error(f"Error marking chat {chat_id} read for user {reader_user_id}: {e}")
            raise StorageError(f"Error in mark_read_for_participant: {str(e)}")

        return result.modified_count

    async def unmark_read(self, chat_id, reader_user_id, read_at: datetime) -> int:
        """Remove the receipts written by one mark_read_for_participant call"""
        try:
            result = await self.messages.update_many(
                {"chat_id": convert_to_object_id(chat_id)},
                {"$pull": {"read_by": {
                    "user_id": convert_to_object_id(reader_user_id),
                    "read_at": read_at
                }}}
            )
        except PyMongoError as e:
            logger.error(f"Error rolling back read receipts in chat {chat_id}: {e}")
            raise StorageError(f"Error in unmark_read: {str(e)}")

        return result.modified_count

    async def discard_message(self, message_id) -> bool:
        """Physically remove a message whose chat update could not be applied"""
        try:
            result = await self.messages.delete_one({"_id": convert_to_object_id(message_id)})
        except PyMongoError as e:
            logger.error(f"Error discarding message {message_id}: {e}")
            raise StorageError(f"Error in discard_message: {str(e)}")

        return result.deleted_count > 0

from typing import Any, Dict, Iterable, Optional
from bson import ObjectId
from pymongo.errors import PyMongoError

from db.schemas.users_schema import UserInDB
from db.mongodb import convert_many_to_object_ids, convert_to_object_id, is_valid_object_id
from utils.exceptions import StorageError
from logger.logger import logger

# Only display fields leave the user directory
USER_DISPLAY_PROJECTION = {"name": 1, "email": 1}


class UserRepository:
    """
    Read-only access to the marketplace user directory
    Chats only need identity checks and display data from it
    """

    def __init__(self, db):
        self.db = db

    async def get_user_by_id(self, user_id: str) -> Optional[UserInDB]:
        """
        Get a user by ID
        Returns UserInDB model or None
        """
        if not is_valid_object_id(user_id):
            return None

        try:
            user_dict = await self.db.users.find_one({"_id": convert_to_object_id(user_id)})
        except PyMongoError as e:
            logger.error(f"Error getting user {user_id}: {e}")
            raise StorageError(f"Error in get_user_by_id: {str(e)}")

        if not user_dict:
            return None

        # Convert ObjectId to string
        if isinstance(user_dict.get("_id"), ObjectId):
            user_dict["_id"] = str(user_dict["_id"])

        return UserInDB(**user_dict)

    async def get_users_by_ids(self, user_ids: Iterable) -> Dict[str, Dict[str, Any]]:
        """
        Resolve many users at once
        Returns {user_id: {"id", "name", "email"}} for the users that exist
        """
        object_ids = list(set(convert_many_to_object_ids(user_ids)))
        if not object_ids:
            return {}

        try:
            cursor = self.db.users.find({"_id": {"$in": object_ids}}, USER_DISPLAY_PROJECTION)
            users = await cursor.to_list(length=len(object_ids))
        except PyMongoError as e:
            logger.error(f"Error resolving users {object_ids}: {e}")
            raise StorageError(f"Error in get_users_by_ids: {str(e)}")

        return {
            str(user["_id"]): {
                "id": str(user["_id"]),
                "name": user.get("name") or str(user["_id"]),
                "email": user.get("email"),
            }
            for user in users
        }

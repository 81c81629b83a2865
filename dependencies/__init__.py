"""
Import common dependencies to make them available from the package level.
This allows imports like: from dependencies import get_current_user
"""
from .auth import get_current_user, get_current_active_user, CurrentActiveUser
from .db import get_db
from .chat import get_chat_service, ChatServiceDep

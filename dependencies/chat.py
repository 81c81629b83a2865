from fastapi import Depends
from typing import Annotated

from repos.chat_repo import ChatRepository
from repos.message_repo import MessageRepository
from repos.product_repo import ProductRepository
from services.chat_service import ChatService
from dependencies.user import get_user_repository
from .db import get_db

def get_chat_repository(db=Depends(get_db)):
    """Create and return a ChatRepository instance"""
    return ChatRepository(db)

def get_message_repository(db=Depends(get_db)):
    """Create and return a MessageRepository instance"""
    return MessageRepository(db)

def get_product_repository(db=Depends(get_db)):
    """Create and return a ProductRepository instance"""
    return ProductRepository(db)

def get_chat_service(
    chat_repo=Depends(get_chat_repository),
    message_repo=Depends(get_message_repository),
    user_repo=Depends(get_user_repository),
    product_repo=Depends(get_product_repository)
):
    """Create and return a ChatService instance with required repositories"""
    return ChatService(chat_repo, message_repo, user_repo, product_repo)

# Create a type alias for dependency injection
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]

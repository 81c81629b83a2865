import os

# config.py exits the process when these are missing, so set them before any
# application module is imported
os.environ.setdefault("DATABASE_URL", "mongodb://localhost:27017")
os.environ.setdefault("DATABASE_NAME", "marketplace_test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-chat-tests-0123456789abcdef")

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from config import JWT_SECRET_KEY, JWT_ALGORITHM
from dependencies.db import get_db
from main import app
from repos.chat_repo import ChatRepository
from repos.message_repo import MessageRepository
from repos.product_repo import ProductRepository
from repos.user_repo import UserRepository
from services.chat_service import ChatService


@pytest.fixture
def db():
    """Fresh in-memory MongoDB for each test"""
    client = AsyncMongoMockClient()
    return client["marketplace_test"]


@pytest.fixture
async def marketplace(db):
    """Two trading users, one bystander and two products listed by the seller"""
    buyer_id = ObjectId()
    seller_id = ObjectId()
    outsider_id = ObjectId()
    product_id = ObjectId()
    other_product_id = ObjectId()

    await db.users.insert_many([
        {"_id": buyer_id, "name": "Asha Rao", "email": "asha@shopmail.in", "role": "buyer", "is_active": True},
        {"_id": seller_id, "name": "Vikram Textiles", "email": "vikram@shopmail.in", "role": "seller", "is_active": True},
        {"_id": outsider_id, "name": "Meera Iyer", "email": "meera@shopmail.in", "role": "buyer", "is_active": True},
    ])
    await db.products.insert_many([
        {
            "_id": product_id,
            "name": "Banarasi Silk Lehenga",
            "images": [{"url": "https://cdn.shopmail.in/lehenga.jpg", "alt": "front"}],
            "price": {"purchase": 4999, "rental": {"3-days": 899}},
            "seller": seller_id,
        },
        {
            "_id": other_product_id,
            "name": "Kundan Necklace Set",
            "images": [],
            "price": {"purchase": 2499},
            "seller": seller_id,
        },
    ])

    return SimpleNamespace(
        buyer=str(buyer_id),
        seller=str(seller_id),
        outsider=str(outsider_id),
        product=str(product_id),
        other_product=str(other_product_id),
    )


@pytest.fixture
def chat_repo(db):
    return ChatRepository(db)


@pytest.fixture
def message_repo(db):
    return MessageRepository(db)


@pytest.fixture
def chat_service(db):
    return ChatService(
        ChatRepository(db),
        MessageRepository(db),
        UserRepository(db),
        ProductRepository(db),
    )


def create_test_token(user_id: str, minutes: int = 30) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode({"id": user_id, "exp": expire}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user id"""
    def build(user_id: str, minutes: int = 30) -> dict:
        return {"Authorization": f"Bearer {create_test_token(user_id, minutes)}"}
    return build


@pytest.fixture
async def client(db):
    """HTTP client bound to the app with the database dependency overridden"""
    async def override_get_db():
        return db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()

import pytest
from bson import ObjectId
from datetime import datetime
from pydantic import ValidationError as PydanticValidationError

from db.schemas.chats_schema import ChatInDB
from mappers.chats_mapper import chat_db_to_response, message_db_to_response
from models.chat_model import Pagination


def make_chat_doc(**overrides):
    buyer, seller = ObjectId(), ObjectId()
    doc = {
        "_id": ObjectId(),
        "participants": [
            {"user_id": buyer, "role": "buyer"},
            {"user_id": seller, "role": "seller"},
        ],
        "participant_ids": sorted([buyer, seller]),
        "product_id": ObjectId(),
        "last_message": "",
        "last_message_at": datetime(2024, 3, 1, 10, 30),
        "last_message_by": None,
        "status": "active",
        "is_active": True,
        "unread_count": {},
    }
    doc.update(overrides)
    return doc


def test_pagination_build():
    pagination = Pagination.build(page=2, page_size=20, total=45)

    assert pagination.total_pages == 3
    assert pagination.has_next is True
    assert pagination.has_prev is True


def test_pagination_build_empty():
    pagination = Pagination.build(page=1, page_size=20, total=0)

    assert pagination.total_pages == 0
    assert pagination.has_next is False
    assert pagination.has_prev is False


def test_chat_schema_converts_object_ids():
    doc = make_chat_doc()

    chat = ChatInDB(**doc)

    assert chat.id == str(doc["_id"])
    assert chat.product_id == str(doc["product_id"])
    assert chat.participant_ids == [str(pid) for pid in doc["participant_ids"]]


def test_chat_schema_needs_a_buyer_and_a_seller():
    doc = make_chat_doc()
    doc["participants"][1]["role"] = "buyer"

    with pytest.raises(PydanticValidationError):
        ChatInDB(**doc)


def test_chat_schema_needs_two_distinct_users():
    doc = make_chat_doc()
    doc["participants"][1]["user_id"] = doc["participants"][0]["user_id"]

    with pytest.raises(PydanticValidationError):
        ChatInDB(**doc)


def test_unread_for_never_goes_negative():
    doc = make_chat_doc()
    buyer = str(doc["participants"][0]["user_id"])
    doc["unread_count"] = {buyer: -2}

    chat = ChatInDB(**doc)

    assert chat.unread_for(buyer) == 0
    assert chat.unread_for(str(ObjectId())) == 0


def test_chat_response_for_viewer():
    doc = make_chat_doc()
    buyer = str(doc["participants"][0]["user_id"])
    seller = str(doc["participants"][1]["user_id"])
    doc["unread_count"] = {seller: 4}
    users = {buyer: {"id": buyer, "name": "Asha Rao", "email": "asha@shopmail.in"}}

    as_seller = chat_db_to_response(doc, users, {}, seller)
    as_buyer = chat_db_to_response(doc, users, {}, buyer)

    assert as_seller.my_unread_count == 4
    assert as_buyer.my_unread_count == 0
    assert as_seller.participants[0].name == "Asha Rao"
    # unresolved users show their id
    assert as_seller.participants[1].name == seller
    assert as_seller.product.available is False


def test_message_response_resolves_sender():
    sender = ObjectId()
    reader = ObjectId()
    doc = {
        "_id": ObjectId(),
        "chat_id": ObjectId(),
        "sender_id": sender,
        "content": "Can you do 10% off?",
        "type": "product_inquiry",
        "read_by": [{"user_id": reader, "read_at": datetime(2024, 3, 1, 11, 0)}],
        "is_deleted": False,
        "created_at": datetime(2024, 3, 1, 10, 45),
    }
    users = {str(sender): {"id": str(sender), "name": "Asha Rao", "email": None}}

    message = message_db_to_response(doc, users)

    assert message.sender.name == "Asha Rao"
    assert message.type == "product_inquiry"
    assert [r.user_id for r in message.read_by] == [str(reader)]

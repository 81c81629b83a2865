from enum import Enum

class ParticipantRole(str, Enum):
    """Role a user plays inside a product chat"""
    BUYER = "buyer"
    SELLER = "seller"

class MessageType(str, Enum):
    """Kinds of chat message a participant can post"""
    TEXT = "text"
    IMAGE = "image"
    PRODUCT_INQUIRY = "product_inquiry"

class ChatStatus(str, Enum):
    """Chat lifecycle. Chats are never removed, only moved to inactive"""
    ACTIVE = "active"
    INACTIVE = "inactive"

from pymongo import ASCENDING, DESCENDING

async def init_db_indexes(db):
    """
    Initialize database with required indexes and configurations
    """
    # One active chat per (participant pair, product). Deactivated chats drop
    # out of the index so the same pair can open a fresh thread later.
    await db.chats.create_index(
        [("participant_ids", ASCENDING), ("product_id", ASCENDING)],
        name="uniq_active_chat_per_pair_product",
        unique=True,
        partialFilterExpression={"is_active": True}
    )

    # Chat listing: participant + recency
    await db.chats.create_index([
        ("participant_ids", ASCENDING),
        ("is_active", ASCENDING),
        ("last_message_at", DESCENDING)
    ])

    # Message listing: chronological per chat
    await db.messages.create_index([("chat_id", ASCENDING), ("created_at", ASCENDING)])
    await db.messages.create_index([("chat_id", ASCENDING), ("read_by.user_id", ASCENDING)])

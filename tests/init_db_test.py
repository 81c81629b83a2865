from unittest.mock import AsyncMock, Mock

from db.init_db import init_db_indexes


async def test_active_chat_uniqueness_index():
    db = Mock(chats=Mock(create_index=AsyncMock()), messages=Mock(create_index=AsyncMock()))

    await init_db_indexes(db)

    unique_calls = [c for c in db.chats.create_index.call_args_list if c.kwargs.get("unique")]
    assert len(unique_calls) == 1
    keys = unique_calls[0].args[0]
    assert [k for k, _ in keys] == ["participant_ids", "product_id"]
    assert unique_calls[0].kwargs["partialFilterExpression"] == {"is_active": True}
    assert db.messages.create_index.await_count == 2

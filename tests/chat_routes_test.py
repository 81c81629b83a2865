import pytest
from bson import ObjectId


@pytest.fixture
def start(client, marketplace, auth_headers):
    """Open a chat as the buyer with the seller about a product"""
    async def open_chat(product=None):
        return await client.post(
            "/chat/",
            json={"product_id": product or marketplace.product, "seller_id": marketplace.seller},
            headers=auth_headers(marketplace.buyer),
        )
    return open_chat


async def test_root_is_alive(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "API is alive!"}


async def test_requests_need_a_token(client):
    response = await client.get("/chat/")
    assert response.status_code == 401


async def test_expired_token_is_rejected(client, marketplace, auth_headers):
    headers = auth_headers(marketplace.buyer, minutes=-5)
    response = await client.get("/chat/", headers=headers)
    assert response.status_code == 401


async def test_token_for_unknown_user_is_rejected(client, marketplace, auth_headers):
    response = await client.get("/chat/", headers=auth_headers(str(ObjectId())))
    assert response.status_code == 401


async def test_start_chat_then_get_existing(start):
    first = await start()
    second = await start()

    assert first.status_code == 201
    assert first.json()["created"] is True
    assert second.status_code == 200
    assert second.json()["created"] is False
    assert first.json()["chat"]["id"] == second.json()["chat"]["id"]


async def test_start_chat_with_malformed_ids(client, marketplace, auth_headers):
    response = await client.post(
        "/chat/",
        json={"product_id": "nope", "seller_id": marketplace.seller},
        headers=auth_headers(marketplace.buyer),
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["kind"] == "validation_error"
    assert detail["errors"] == [{"field": "product_id", "message": "Invalid product ID"}]


async def test_start_chat_with_unknown_product(start):
    response = await start(product=str(ObjectId()))

    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "invalid_reference"


async def test_send_message(client, marketplace, auth_headers, start):
    chat_id = (await start()).json()["chat"]["id"]

    response = await client.post(
        f"/chat/{chat_id}/messages",
        json={"content": "Is this available in size M?"},
        headers=auth_headers(marketplace.buyer),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["content"] == "Is this available in size M?"
    assert body["type"] == "text"
    assert body["sender"]["id"] == marketplace.buyer
    assert body["chat_id"] == chat_id


async def test_send_message_validation(client, marketplace, auth_headers, start):
    chat_id = (await start()).json()["chat"]["id"]
    headers = auth_headers(marketplace.buyer)

    too_long = await client.post(f"/chat/{chat_id}/messages", json={"content": "x" * 1001}, headers=headers)
    bad_type = await client.post(f"/chat/{chat_id}/messages", json={"content": "hi", "type": "sticker"}, headers=headers)

    assert too_long.status_code == 400
    assert too_long.json()["detail"]["errors"][0]["field"] == "content"
    assert bad_type.status_code == 400
    assert bad_type.json()["detail"]["errors"][0]["field"] == "type"


async def test_outsider_cannot_open_chat(client, marketplace, auth_headers, start):
    chat_id = (await start()).json()["chat"]["id"]

    response = await client.get(f"/chat/{chat_id}", headers=auth_headers(marketplace.outsider))

    assert response.status_code == 403
    assert response.json()["detail"]["kind"] == "forbidden"


async def test_unknown_chat_is_not_found(client, marketplace, auth_headers):
    headers = auth_headers(marketplace.buyer)

    unknown = await client.get(f"/chat/{ObjectId()}", headers=headers)
    malformed_put = await client.put("/chat/not-a-chat-id/read", headers=headers)

    assert unknown.status_code == 404
    assert unknown.json()["detail"]["kind"] == "not_found"
    assert malformed_put.status_code == 404


async def test_opening_chat_marks_it_read(client, marketplace, auth_headers, start):
    chat_id = (await start()).json()["chat"]["id"]
    await client.post(
        f"/chat/{chat_id}/messages", json={"content": "Hello"}, headers=auth_headers(marketplace.buyer)
    )

    before = await client.get("/chat/unread-count", headers=auth_headers(marketplace.seller))
    detail = await client.get(f"/chat/{chat_id}", headers=auth_headers(marketplace.seller))
    after = await client.get("/chat/unread-count", headers=auth_headers(marketplace.seller))

    assert before.json() == {"unread_count": 1}
    assert detail.status_code == 200
    assert detail.json()["chat"]["my_unread_count"] == 0
    assert [m["content"] for m in detail.json()["messages"]] == ["Hello"]
    assert after.json() == {"unread_count": 0}


async def test_mark_read_endpoint(client, marketplace, auth_headers, start):
    chat_id = (await start()).json()["chat"]["id"]
    await client.post(
        f"/chat/{chat_id}/messages", json={"content": "Hello"}, headers=auth_headers(marketplace.buyer)
    )

    response = await client.put(f"/chat/{chat_id}/read", headers=auth_headers(marketplace.seller))

    assert response.status_code == 200
    assert response.json() == {"status": "success", "message": "Chat marked as read"}
    unread = await client.get("/chat/unread-count", headers=auth_headers(marketplace.seller))
    assert unread.json()["unread_count"] == 0


async def test_delete_chat(client, marketplace, auth_headers, start):
    chat_id = (await start()).json()["chat"]["id"]
    headers = auth_headers(marketplace.buyer)

    deleted = await client.delete(f"/chat/{chat_id}", headers=headers)
    listing = await client.get("/chat/", headers=headers)
    post = await client.post(f"/chat/{chat_id}/messages", json={"content": "still there?"}, headers=headers)

    assert deleted.status_code == 200
    assert listing.json()["chats"] == []
    assert post.status_code == 403


async def test_list_chats_paginates(client, marketplace, auth_headers, start):
    await start()
    await start(product=marketplace.other_product)
    headers = auth_headers(marketplace.buyer)

    first = await client.get("/chat/", params={"page": 1, "limit": 1}, headers=headers)
    second = await client.get("/chat/", params={"page": 2, "limit": 1}, headers=headers)

    assert len(first.json()["chats"]) == 1
    assert first.json()["pagination"] == {
        "current_page": 1,
        "page_size": 1,
        "total_pages": 2,
        "total_items": 2,
        "has_next": True,
        "has_prev": False,
    }
    assert second.json()["pagination"]["has_prev"] is True
    assert first.json()["chats"][0]["id"] != second.json()["chats"][0]["id"]


async def test_list_chats_rejects_bad_paging(client, marketplace, auth_headers):
    headers = auth_headers(marketplace.buyer)

    assert (await client.get("/chat/", params={"page": 0}, headers=headers)).status_code == 422
    assert (await client.get("/chat/", params={"limit": 1000}, headers=headers)).status_code == 422

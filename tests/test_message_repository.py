from datetime import timedelta

from tovalley_chat.repositories.message_repository import READ, UNREAD, MessageRepository
from tovalley_chat.utils.clock import chat_zone, now


async def test_append_then_list_returns_newest_first(db):
    repo = MessageRepository(db)
    first = await repo.append("room-1", "a", "hello", now(), UNREAD)
    second = await repo.append("room-1", "b", "hi there", now(), UNREAD)
    await repo.append("room-2", "a", "elsewhere", now(), UNREAD)

    items, has_next = await repo.list_by_room("room-1")

    assert [m["_id"] for m in items] == [second["_id"], first["_id"]]
    assert [m["content"] for m in items] == ["hi there", "hello"]
    assert items[0]["created_at"] >= items[1]["created_at"]
    assert has_next is False


async def test_timestamps_come_back_in_chat_zone(db):
    repo = MessageRepository(db)
    await repo.append("room-1", "a", "hello", now(), UNREAD)

    latest = await repo.latest_in_room("room-1")

    assert latest["created_at"].tzinfo == chat_zone()


async def test_list_by_room_pages(db):
    repo = MessageRepository(db)
    start = now()
    for i in range(5):
        await repo.append("room-1", "a", f"m{i}", start + timedelta(seconds=i), UNREAD)

    first_page, first_has_next = await repo.list_by_room("room-1", page=0, size=2)
    last_page, last_has_next = await repo.list_by_room("room-1", page=2, size=2)

    assert [m["content"] for m in first_page] == ["m4", "m3"]
    assert first_has_next is True
    assert [m["content"] for m in last_page] == ["m0"]
    assert last_has_next is False


async def test_latest_in_room_is_none_for_empty_room(db):
    assert await MessageRepository(db).latest_in_room("nothing-here") is None


async def test_count_unread_ignores_own_and_read_messages(db):
    repo = MessageRepository(db)
    await repo.append("room-1", "a", "to b", now(), UNREAD)
    await repo.append("room-1", "a", "to b again", now(), UNREAD)
    await repo.append("room-1", "a", "seen live", now(), READ)
    await repo.append("room-1", "b", "to a", now(), UNREAD)

    assert await repo.count_unread("room-1", "b") == 2
    assert await repo.count_unread("room-1", "a") == 1


async def test_mark_read_is_idempotent(db):
    repo = MessageRepository(db)
    for _ in range(3):
        await repo.append("room-1", "a", "ping", now(), UNREAD)
    await repo.append("room-1", "b", "pong", now(), UNREAD)

    assert await repo.mark_read("room-1", "b") == 3
    assert await repo.count_unread("room-1", "b") == 0
    assert await repo.mark_read("room-1", "b") == 0
    # the reader's own outgoing message is untouched
    assert await repo.count_unread("room-1", "a") == 1

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from api.features.chats.models import MessageCreateModel, MessageFilter
from api.shared.base import storage_errors
from api.shared.exceptions import NotFoundError, StorageUnavailable, ValidationError
from infra.resources import DatabaseResource

from conftest import BASE_TIME


async def test_append_assigns_id_and_timestamp(append, clock):
    message = await append(file_url="http://files/a.png", file_type="image/png")

    assert message.id
    assert message.timestamp == BASE_TIME
    assert message.archived is False
    assert message.file_url == "http://files/a.png"
    assert message.file_type == "image/png"


@pytest.mark.parametrize("field", ["user", "persona", "session_id", "user_message", "ai_response"])
async def test_append_rejects_empty_required_field(chat_service, db_session, field):
    values = {
        "user": "u1",
        "persona": "p1",
        "session_id": "s1",
        "user_message": "hello",
        "ai_response": "hi",
    }
    values[field] = "  "

    with pytest.raises(ValidationError) as exc_info:
        await chat_service.append_message(MessageCreateModel(**values), db_session=db_session)

    assert exc_info.value.details["missing"] == [field]


async def test_query_orders_by_timestamp_with_insertion_order_on_ties(
    append, chat_service, db_session, clock
):
    clock.step = timedelta(0)
    first = await append(user_message="one")
    second = await append(user_message="two")
    third = await append(user_message="three")

    messages = await chat_service.query_messages(
        user="u1",
        filters=MessageFilter(persona="p1", session_id="s1"),
        db_session=db_session,
    )

    assert [m.id for m in messages] == [first.id, second.id, third.id]
    assert len({m.timestamp for m in messages}) == 1


async def test_append_timestamp_never_moves_backwards_in_session(append, clock):
    first = await append()
    clock.current = BASE_TIME - timedelta(hours=1)

    second = await append()

    assert second.timestamp >= first.timestamp


async def test_query_filters_are_optional_and_scoped_to_user(append, chat_service, db_session, clock):
    await append(persona="p1", session_id="s1")
    await append(persona="p2", session_id="s2")
    await append(user="u2", persona="p1", session_id="s1")

    everything = await chat_service.query_messages(
        user="u1", filters=MessageFilter(), db_session=db_session
    )
    only_p2 = await chat_service.query_messages(
        user="u1", filters=MessageFilter(persona="p2"), db_session=db_session
    )

    assert {(m.persona, m.session_id) for m in everything} == {("p1", "s1"), ("p2", "s2")}
    assert all(m.user == "u1" for m in everything)
    assert [m.session_id for m in only_p2] == ["s2"]


async def test_query_requires_user(chat_service, db_session):
    with pytest.raises(ValidationError):
        await chat_service.query_messages(user="", filters=MessageFilter(), db_session=db_session)


async def test_list_sessions_groups_chronologically(append, chat_service, db_session, clock):
    a1 = await append(session_id="a")
    await append(session_id="b")
    await append(session_id="a")

    sessions = await chat_service.list_sessions(user="u1", persona="p1", db_session=db_session)

    assert [s.session_id for s in sessions] == ["a", "b"]
    assert sessions[0].date == a1.timestamp
    assert len(sessions[0].messages) == 2


async def test_list_sessions_requires_persona(chat_service, db_session):
    with pytest.raises(ValidationError):
        await chat_service.list_sessions(user="u1", persona=None, db_session=db_session)


async def test_archive_then_unarchive_round_trip(append, chat_service, db_session, clock):
    for _ in range(3):
        await append(session_id="s1")

    assert await chat_service.archive_session(user="u1", session_id="s1", db_session=db_session) == 3
    assert await chat_service.archive_session(user="u1", session_id="s1", db_session=db_session) == 0

    archived = await chat_service.query_messages(
        user="u1", filters=MessageFilter(session_id="s1"), db_session=db_session
    )
    assert all(m.archived for m in archived)

    assert await chat_service.unarchive_session(user="u1", session_id="s1", db_session=db_session) == 3
    assert await chat_service.unarchive_session(user="u1", session_id="s1", db_session=db_session) == 0

    restored = await chat_service.query_messages(
        user="u1", filters=MessageFilter(session_id="s1"), db_session=db_session
    )
    assert [m.archived for m in restored] == [False, False, False]


async def test_archive_is_scoped_to_user(append, chat_service, db_session, clock):
    await append(user="u1", session_id="shared")
    await append(user="u2", session_id="shared")

    modified = await chat_service.archive_session(user="u1", session_id="shared", db_session=db_session)

    other = await chat_service.query_messages(
        user="u2", filters=MessageFilter(session_id="shared"), db_session=db_session
    )
    assert modified == 1
    assert [m.archived for m in other] == [False]


async def test_archive_unknown_session_is_zero(chat_service, db_session):
    assert await chat_service.archive_session(user="u1", session_id="nope", db_session=db_session) == 0


async def test_archive_requires_session_id(chat_service, db_session):
    with pytest.raises(ValidationError):
        await chat_service.archive_session(user="u1", session_id="", db_session=db_session)


async def test_edit_changes_only_text(append, chat_service, db_session, clock):
    original = await append(user_message="before", ai_response="old answer")

    edited = await chat_service.edit_message(
        user="u1",
        message_id=original.id,
        new_text="after",
        new_ai_response="new answer",
        db_session=db_session,
    )

    assert edited.user_message == "after"
    assert edited.ai_response == "new answer"
    assert (edited.id, edited.timestamp, edited.session_id, edited.user) == (
        original.id,
        original.timestamp,
        original.session_id,
        original.user,
    )


async def test_edit_without_ai_response_keeps_it(append, chat_service, db_session, clock):
    original = await append(ai_response="keep me")

    edited = await chat_service.edit_message(
        user="u1", message_id=original.id, new_text="changed", db_session=db_session
    )

    assert edited.ai_response == "keep me"


async def test_edit_by_other_user_is_not_found_and_unchanged(append, chat_service, db_session, clock):
    original = await append(user="u1", user_message="mine")

    with pytest.raises(NotFoundError):
        await chat_service.edit_message(
            user="u2", message_id=original.id, new_text="hijacked", db_session=db_session
        )

    (reread,) = await chat_service.query_messages(
        user="u1", filters=MessageFilter(), db_session=db_session
    )
    assert reread.user_message == "mine"


async def test_edit_missing_message_is_not_found(chat_service, db_session):
    with pytest.raises(NotFoundError):
        await chat_service.edit_message(
            user="u1", message_id="missing", new_text="x", db_session=db_session
        )


async def test_edit_requires_new_text(append, chat_service, db_session, clock):
    original = await append()

    with pytest.raises(ValidationError):
        await chat_service.edit_message(
            user="u1", message_id=original.id, new_text="", db_session=db_session
        )


async def test_recent_sessions_scenario_latest_session_first(append, chat_service, db_session, clock):
    for i in range(3):
        await append(session_id="s1", user_message=f"s1 message {i}")
    await append(session_id="s2", user_message="s2 message")

    summaries = await chat_service.recent_sessions(user="u1", limit=5, db_session=db_session)

    assert [s.session_id for s in summaries] == ["s2", "s1"]
    assert summaries[0].persona_name == "Ada"
    assert summaries[1].last_message == "s1 message 2"


async def test_recent_sessions_excludes_fully_archived(append, chat_service, db_session, clock):
    for i in range(3):
        await append(session_id="s1")
    await append(session_id="s2")

    await chat_service.archive_session(user="u1", session_id="s1", db_session=db_session)
    summaries = await chat_service.recent_sessions(user="u1", limit=5, db_session=db_session)
    visible = await chat_service.query_messages(
        user="u1", filters=MessageFilter(persona="p1", archived=False), db_session=db_session
    )

    assert [s.session_id for s in summaries] == ["s2"]
    assert {m.session_id for m in visible} == {"s2"}


async def test_recent_sessions_limit_and_strict_order(append, chat_service, db_session, clock):
    for i in range(6):
        await append(persona="p1" if i % 2 else "p2", session_id=f"s{i}")

    summaries = await chat_service.recent_sessions(user="u1", limit=4, db_session=db_session)

    assert len(summaries) == 4
    assert [s.session_id for s in summaries] == ["s5", "s4", "s3", "s2"]
    timestamps = [s.updated_at for s in summaries]
    assert all(a > b for a, b in zip(timestamps, timestamps[1:]))


async def test_recent_sessions_persona_filter(append, chat_service, db_session, clock):
    await append(persona="p1", session_id="s1")
    await append(persona="p2", session_id="s2")

    summaries = await chat_service.recent_sessions(
        user="u1", persona="p1", limit=5, db_session=db_session
    )

    assert [(s.session_id, s.persona_name) for s in summaries] == [("s1", "Ada")]


async def test_recent_sessions_rejects_zero_limit(chat_service, db_session):
    with pytest.raises(ValidationError):
        await chat_service.recent_sessions(user="u1", limit=0, db_session=db_session)


async def test_storage_errors_become_storage_unavailable():
    with pytest.raises(StorageUnavailable) as exc_info:
        async with storage_errors("query"):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    assert exc_info.value.error_code == "STORAGE_UNAVAILABLE"


async def test_unreachable_database_surfaces_storage_unavailable(chat_service, tmp_path):
    broken = DatabaseResource(
        f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'chats.db'}"
    )
    await broken.init()
    async with broken.get_session() as session:
        with pytest.raises(StorageUnavailable):
            await chat_service.query_messages(
                user="u1", filters=MessageFilter(), db_session=session
            )
    await broken.shutdown()

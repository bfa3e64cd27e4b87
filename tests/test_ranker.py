from datetime import timedelta

from api.features.chats import ranker
from api.features.chats.models import MessageModel

from conftest import BASE_TIME, FakePersonaDirectory


def _message(
    idx: int,
    session_id: str,
    seconds: int,
    persona: str = "p1",
    user_message: str = None,
    ai_response: str = None,
) -> MessageModel:
    return MessageModel(
        id=f"m{idx}",
        user="u1",
        persona=persona,
        session_id=session_id,
        user_message=f"question {idx}" if user_message is None else user_message,
        ai_response=f"answer {idx}" if ai_response is None else ai_response,
        timestamp=BASE_TIME + timedelta(seconds=seconds),
    )


def test_latest_per_session_takes_last_in_order_on_ties():
    # Same timestamp: the later one in the fetched order wins
    messages = [_message(1, "s1", 5), _message(2, "s1", 5)]

    (candidate,) = ranker.latest_per_session(messages)

    assert candidate.last_message == "question 2"
    assert candidate.last_ai_response == "answer 2"
    assert candidate.updated_at == BASE_TIME + timedelta(seconds=5)


def test_latest_per_session_groups_by_session_and_persona():
    messages = [
        _message(1, "shared", 0, persona="p1"),
        _message(2, "shared", 1, persona="p2"),
    ]

    candidates = ranker.latest_per_session(messages)

    assert {(c.session_id, c.persona_id) for c in candidates} == {
        ("shared", "p1"),
        ("shared", "p2"),
    }


def test_preview_falls_back_to_ai_response_then_placeholder():
    messages = [
        _message(1, "s1", 0, user_message="", ai_response="only the AI spoke"),
        _message(2, "s2", 1, user_message="", ai_response=""),
    ]

    by_session = {c.session_id: c for c in ranker.latest_per_session(messages)}

    assert by_session["s1"].last_message == "only the AI spoke"
    assert by_session["s2"].last_message == "No message"


def test_rank_by_recency_orders_and_truncates():
    messages = [
        _message(1, "s1", 0),
        _message(2, "s2", 10),
        _message(3, "s3", 20),
        _message(4, "s1", 30),
    ]

    ranked = ranker.rank_by_recency(ranker.latest_per_session(messages), limit=2)

    assert [c.session_id for c in ranked] == ["s1", "s3"]


def test_rank_by_recency_limit_larger_than_available():
    messages = [_message(1, "s1", 0), _message(2, "s2", 10)]

    ranked = ranker.rank_by_recency(ranker.latest_per_session(messages), limit=50)

    assert [c.session_id for c in ranked] == ["s2", "s1"]


async def test_recent_sessions_empty_input():
    directory = FakePersonaDirectory({})

    assert await ranker.recent_sessions([], limit=5, directory=directory) == []
    assert directory.calls == []


async def test_recent_sessions_resolves_names_with_placeholder():
    directory = FakePersonaDirectory({"p1": "Ada"}, failing={"p3"})
    messages = [
        _message(1, "s1", 0, persona="p1"),
        _message(2, "s2", 10, persona="p2"),
        _message(3, "s3", 20, persona="p3"),
    ]

    summaries = await ranker.recent_sessions(messages, limit=5, directory=directory)

    names = {s.persona_id: s.persona_name for s in summaries}
    assert names == {"p1": "Ada", "p2": "Unknown Persona", "p3": "Unknown Persona"}


class TimingOutDirectory(FakePersonaDirectory):
    async def resolve(self, persona_id):
        if persona_id == "p2":
            raise TimeoutError("directory timed out")
        return await super().resolve(persona_id)


async def test_unexpected_lookup_errors_degrade_to_placeholder():
    directory = TimingOutDirectory({"p1": "Ada", "p2": "Grace"})
    messages = [
        _message(1, "s1", 0, persona="p1"),
        _message(2, "s2", 10, persona="p2"),
    ]

    summaries = await ranker.recent_sessions(messages, limit=5, directory=directory)

    assert [(s.session_id, s.persona_name) for s in summaries] == [
        ("s2", "Unknown Persona"),
        ("s1", "Ada"),
    ]


async def test_recent_sessions_resolves_each_persona_once():
    directory = FakePersonaDirectory({"p1": "Ada"})
    messages = [_message(i, f"s{i}", i, persona="p1") for i in range(4)]

    await ranker.recent_sessions(messages, limit=5, directory=directory)

    assert directory.calls == ["p1"]


async def test_name_resolution_preserves_ranked_order():
    directory = FakePersonaDirectory({"p1": "Zed", "p2": "Abe"})
    messages = [
        _message(1, "s1", 0, persona="p1"),
        _message(2, "s2", 10, persona="p2"),
        _message(3, "s3", 20, persona="p1"),
    ]

    ranked = ranker.rank_by_recency(ranker.latest_per_session(messages), limit=3)
    summaries = await ranker.recent_sessions(messages, limit=3, directory=directory)

    assert [s.session_id for s in summaries] == [c.session_id for c in ranked]
    assert [s.session_id for s in summaries] == ["s3", "s2", "s1"]
    timestamps = [s.updated_at for s in summaries]
    assert all(a > b for a, b in zip(timestamps, timestamps[1:]))

from __future__ import annotations

import asyncio

import pytest

from appybot.services.interview import (
    InterviewCancelled,
    InterviewRegistry,
    InterviewTimeout,
    run_interview,
)


QUESTIONS = ["First?", "Second?", "Third?", "Fourth?"]


def test_run_interview_collects_one_answer_per_question_in_order() -> None:
    registry = InterviewRegistry()
    session = registry.open(1)
    assert session is not None
    asked: list[tuple[int, str]] = []
    replies = iter(["a", "b", "c", "d"])

    async def send(number: int, question: str) -> None:
        asked.append((number, question))
        registry.deliver(1, next(replies))

    answers = asyncio.run(run_interview(session, QUESTIONS, send, timeout=1))

    assert answers == ["a", "b", "c", "d"]
    assert asked == list(enumerate(QUESTIONS, start=1))


def test_replies_sent_before_a_question_are_discarded() -> None:
    registry = InterviewRegistry()
    session = registry.open(1)
    assert session is not None
    registry.deliver(1, "too early")

    async def send(number: int, question: str) -> None:
        registry.deliver(1, f"answer {number}")

    answers = asyncio.run(run_interview(session, QUESTIONS[:2], send, timeout=1))

    assert answers == ["answer 1", "answer 2"]


def test_run_interview_times_out_without_reply() -> None:
    registry = InterviewRegistry()
    session = registry.open(7)
    assert session is not None

    async def send(number: int, question: str) -> None:
        if number == 1:
            registry.deliver(7, "only one")

    with pytest.raises(InterviewTimeout) as excinfo:
        asyncio.run(run_interview(session, QUESTIONS, send, timeout=0.01))

    assert excinfo.value.question_number == 2
    assert session.answers == ["only one"]


def test_cancel_survives_discard_and_aborts() -> None:
    registry = InterviewRegistry()
    session = registry.open(3)
    assert session is not None
    assert registry.cancel(3)

    async def send(number: int, question: str) -> None:
        return None

    with pytest.raises(InterviewCancelled):
        asyncio.run(run_interview(session, QUESTIONS, send, timeout=1))


def test_registry_rejects_second_session_for_same_user() -> None:
    registry = InterviewRegistry()

    first = registry.open(1, is_admin=True)
    second = registry.open(1)

    assert first is not None and first.is_admin
    assert second is None
    assert registry.active_ids() == frozenset({1})
    assert registry.open(2) is not None

    registry.close(1)
    assert not registry.is_active(1)
    assert registry.open(1) is not None


def test_registry_ignores_unknown_users() -> None:
    registry = InterviewRegistry()

    assert not registry.deliver(99, "hello")
    assert not registry.cancel(99)
    registry.close(99)

"""Per-user question/answer sessions conducted over private chat."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Sequence


LOGGER = logging.getLogger(__name__)

SendPrompt = Callable[[int, str], Awaitable[object]]


class InterviewTimeout(Exception):
    """Raised when the applicant does not answer a question in time."""

    def __init__(self, user_id: int, question_number: int) -> None:
        super().__init__(f"User {user_id} did not answer question {question_number} in time")
        self.user_id = user_id
        self.question_number = question_number


class InterviewCancelled(Exception):
    """Raised when the applicant abandons the interview."""


_CANCEL = object()


@dataclass
class InterviewSession:
    user_id: int
    is_admin: bool = False
    answers: List[str] = field(default_factory=list)
    _replies: "asyncio.Queue[object]" = field(default_factory=asyncio.Queue, repr=False)

    def deliver(self, text: str) -> None:
        self._replies.put_nowait(text)

    def cancel(self) -> None:
        self._replies.put_nowait(_CANCEL)

    def discard_pending(self) -> None:
        """Drop replies that arrived before the current question was asked."""

        while not self._replies.empty():
            item = self._replies.get_nowait()
            if item is _CANCEL:
                self._replies.put_nowait(_CANCEL)
                return

    async def next_reply(self, timeout: float) -> str:
        reply = await asyncio.wait_for(self._replies.get(), timeout)
        if reply is _CANCEL:
            raise InterviewCancelled(f"User {self.user_id} cancelled the interview")
        return str(reply)


class InterviewRegistry:
    """Tracks which users currently have an interview in flight."""

    def __init__(self) -> None:
        self._sessions: Dict[int, InterviewSession] = {}

    def open(self, user_id: int, is_admin: bool = False) -> Optional[InterviewSession]:
        if user_id in self._sessions:
            return None
        session = InterviewSession(user_id=user_id, is_admin=is_admin)
        self._sessions[user_id] = session
        return session

    def deliver(self, user_id: int, text: str) -> bool:
        session = self._sessions.get(user_id)
        if session is None:
            return False
        session.deliver(text)
        return True

    def cancel(self, user_id: int) -> bool:
        session = self._sessions.get(user_id)
        if session is None:
            return False
        session.cancel()
        return True

    def close(self, user_id: int) -> None:
        self._sessions.pop(user_id, None)

    def is_active(self, user_id: int) -> bool:
        return user_id in self._sessions

    def active_ids(self) -> FrozenSet[int]:
        return frozenset(self._sessions)


async def run_interview(
    session: InterviewSession,
    questions: Sequence[str],
    send: SendPrompt,
    timeout: float,
) -> List[str]:
    """Ask every question in order and collect exactly one reply to each."""

    for number, question in enumerate(questions, start=1):
        session.discard_pending()
        await send(number, question)
        try:
            answer = await session.next_reply(timeout)
        except asyncio.TimeoutError as exc:
            raise InterviewTimeout(session.user_id, number) from exc
        session.answers.append(answer)
        LOGGER.debug("answer_collected", extra={"user_id": session.user_id, "question": number})
    return list(session.answers)

"""Rendering and delivery of completed applications to the review chat."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from html import escape
from typing import Any, List, Optional, Sequence, Set, Tuple

from telegram.constants import MessageLimit, ParseMode

from ..localization import ENGLISH_TEXTS, TextPack
from ..ui.keyboards import application_review_keyboard


LOGGER = logging.getLogger(__name__)


LOCAL_TIMEZONE = timezone(timedelta(hours=-5))

# Room kept on the final review part for the line added once it is decided.
DECISION_RESERVE = 1024


def format_timestamp(dt: Optional[datetime] = None, tz: tzinfo = LOCAL_TIMEZONE) -> str:
    """Return a compact, human-friendly timestamp in the review timezone."""

    moment = dt or datetime.now(tz)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz)
    moment = moment.astimezone(tz)

    date_part = moment.strftime("%Y/%m/%d · %H:%M:%S")
    offset = moment.utcoffset()
    if not offset:
        return f"{date_part} UTC"

    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{date_part} UTC{sign}{hours:02d}:{minutes:02d}"


def display_name(user: Any) -> str:
    full_name = getattr(user, "full_name", None)
    username = getattr(user, "username", None)
    if full_name and username:
        return f"{full_name} (@{username})"
    if full_name:
        return str(full_name)
    if username:
        return f"@{username}"
    return str(user.id)


def _text_length(text: str) -> int:
    """Length as Telegram counts it, in UTF-16 code units."""

    return len(text.encode("utf-16-le")) // 2


def _answer_blocks(number: int, answer: str, limit: int, texts: TextPack) -> List[str]:
    block = texts.review_answer.format(number=number, answer=escape(answer) or "—")
    if _text_length(block) <= limit:
        return [block]

    # Split on characters so no HTML entity is cut in half.
    budget = limit - _text_length(texts.review_answer_continued.format(number=number, answer=""))
    chunks: List[str] = []
    current: List[str] = []
    current_length = 0
    for char in answer:
        piece = escape(char)
        size = _text_length(piece)
        if current and current_length + size > budget:
            chunks.append("".join(current))
            current, current_length = [], 0
        current.append(piece)
        current_length += size
    if current:
        chunks.append("".join(current))

    return [
        (texts.review_answer if index == 0 else texts.review_answer_continued).format(
            number=number, answer=chunk
        )
        for index, chunk in enumerate(chunks)
    ]


def render_review(
    name: str,
    user_id: int,
    answers: Sequence[str],
    *,
    ping: Optional[str] = None,
    submitted_at: Optional[datetime] = None,
    tz: tzinfo = LOCAL_TIMEZONE,
    texts: TextPack | None = None,
    limit: int = MessageLimit.MAX_TEXT_LENGTH,
) -> List[str]:
    """Render an application as one or more review messages.

    Every part fits in ``limit``. The last part, which carries the decision
    buttons, keeps ``DECISION_RESERVE`` free so the decided line can be
    appended to it later.
    """

    text_pack = texts or ENGLISH_TEXTS
    header = []
    if ping:
        header.append(escape(ping))
    header.append(text_pack.review_title)
    header.append(text_pack.review_applicant.format(name=escape(name), user_id=user_id))

    body_limit = limit - DECISION_RESERVE
    blocks = ["\n".join(header)]
    for number, answer in enumerate(answers, start=1):
        blocks.extend(_answer_blocks(number, answer, body_limit, text_pack))
    footer = text_pack.review_submitted_at.format(timestamp=format_timestamp(submitted_at, tz))

    parts: List[str] = []
    current = ""
    for block in blocks:
        candidate = f"{current}\n\n{block}" if current else block
        if current and _text_length(candidate) > limit:
            parts.append(current)
            current = block
        else:
            current = candidate

    closing = f"{current}\n\n{footer}"
    if _text_length(closing) > body_limit:
        parts.append(current)
        closing = footer
    parts.append(closing)
    return parts


async def dispatch_review(
    bot: Any,
    review_chat_id: int,
    applicant: Any,
    answers: Sequence[str],
    *,
    ping: Optional[str] = None,
    tz: tzinfo = LOCAL_TIMEZONE,
    texts: TextPack | None = None,
) -> Any:
    """Send the review parts in order and return the message holding the buttons."""

    parts = render_review(
        display_name(applicant),
        applicant.id,
        answers,
        ping=ping,
        tz=tz,
        texts=texts,
    )
    message = None
    for index, text in enumerate(parts, start=1):
        message = await bot.send_message(
            chat_id=review_chat_id,
            text=text,
            parse_mode=ParseMode.HTML,
            reply_markup=application_review_keyboard(applicant.id, texts) if index == len(parts) else None,
        )
    LOGGER.info(
        "review_dispatched",
        extra={"user_id": applicant.id, "chat_id": review_chat_id, "parts": len(parts)},
    )
    return message


class ReviewLedger:
    """Remembers which review messages already received a decision."""

    def __init__(self) -> None:
        self._decided: Set[Tuple[int, int]] = set()

    def claim(self, chat_id: int, message_id: int) -> bool:
        key = (chat_id, message_id)
        if key in self._decided:
            return False
        self._decided.add(key)
        return True

    def release(self, chat_id: int, message_id: int) -> None:
        self._decided.discard((chat_id, message_id))

    def is_decided(self, chat_id: int, message_id: int) -> bool:
        return (chat_id, message_id) in self._decided

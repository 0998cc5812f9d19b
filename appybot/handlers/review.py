from __future__ import annotations

from dataclasses import dataclass
from html import escape
import logging

from telegram import InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import CallbackQueryHandler, ContextTypes

from ..localization import ENGLISH_TEXTS, TextPack
from ..services.review import ReviewLedger, display_name
from ..ui.keyboards import DECISION_SEPARATOR, FAIL_ACTION, PASS_ACTION

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    action: str
    user_id: int

    @property
    def passed(self) -> bool:
        return self.action == PASS_ACTION


def parse_decision(data: str) -> Decision | None:
    """Read ``<action>_<applicantId>`` out of a review button's callback data."""

    action, separator, raw_user_id = data.partition(DECISION_SEPARATOR)
    if not separator or action not in {PASS_ACTION, FAIL_ACTION}:
        return None
    try:
        user_id = int(raw_user_id)
    except ValueError:
        return None
    return Decision(action=action, user_id=user_id)


class ReviewHandlers:
    def __init__(self, ledger: ReviewLedger | None = None, texts: TextPack | None = None) -> None:
        self.ledger = ledger or ReviewLedger()
        self.texts = texts or ENGLISH_TEXTS

    def build_handlers(self) -> list:
        return [
            CallbackQueryHandler(self.handle_decision, pattern=rf"^[A-Za-z]+{DECISION_SEPARATOR}"),
        ]

    async def handle_decision(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        if not query:
            return

        decision = parse_decision(query.data or "")
        if decision is None:
            await query.answer()
            return

        message = query.message
        if message is not None and not self.ledger.claim(message.chat.id, message.message_id):
            await query.answer(self.texts.reviewer_already_decided, show_alert=True)
            return

        result_text = self.texts.result_passed if decision.passed else self.texts.result_failed
        try:
            await context.bot.send_message(
                chat_id=decision.user_id,
                text=f"{self.texts.result_title}\n\n{result_text}",
                parse_mode=ParseMode.HTML,
            )
        except TelegramError as exc:
            LOGGER.error("Failed to notify applicant %s: %s", decision.user_id, exc)
            if message is not None:
                self.ledger.release(message.chat.id, message.message_id)
            await query.answer(self.texts.reviewer_delivery_failed, show_alert=True)
            return

        await query.answer(
            self.texts.reviewer_passed if decision.passed else self.texts.reviewer_failed
        )
        LOGGER.info(
            "application_decided",
            extra={"user_id": decision.user_id, "action": decision.action},
        )

        if message is None or not hasattr(message, "edit_text"):
            return
        reviewer = escape(display_name(query.from_user)) if query.from_user else "—"
        decided_line = self.texts.review_decided.format(
            decision=self.texts.reviewer_passed if decision.passed else self.texts.reviewer_failed,
            reviewer=reviewer,
        )
        original = getattr(message, "text_html", None) or escape(getattr(message, "text", None) or "")
        try:
            await message.edit_text(
                text=f"{original}\n\n{decided_line}",
                parse_mode=ParseMode.HTML,
                reply_markup=InlineKeyboardMarkup([]),
            )
        except TelegramError as exc:  # pragma: no cover - network failures are logged
            LOGGER.error("Failed to close review message for %s: %s", decision.user_id, exc)

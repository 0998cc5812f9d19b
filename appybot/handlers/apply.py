from __future__ import annotations

from datetime import tzinfo
from html import escape
import logging
from typing import Any, Sequence

from telegram import Update
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import CommandHandler, ContextTypes, MessageHandler, filters

from ..localization import ENGLISH_TEXTS, TextPack
from ..services.eligibility import Eligibility, evaluate_eligibility
from ..services.interview import (
    InterviewCancelled,
    InterviewRegistry,
    InterviewSession,
    InterviewTimeout,
    run_interview,
)
from ..services.review import LOCAL_TIMEZONE, dispatch_review
from ..services.schedule import ScheduleGate
from ..services.storage import ApplicationStore

LOGGER = logging.getLogger(__name__)

ADMIN_STATUSES = {"administrator", "creator"}
NON_MEMBER_STATUSES = {"left", "kicked"}


class ApplyHandlers:
    def __init__(
        self,
        store: ApplicationStore,
        gate: ScheduleGate,
        guild_chat_id: int,
        review_chat_id: int,
        questions: Sequence[str],
        answer_timeout: float = 300.0,
        review_ping: str | None = None,
        registry: InterviewRegistry | None = None,
        tz: tzinfo = LOCAL_TIMEZONE,
        texts: TextPack | None = None,
    ) -> None:
        self.store = store
        self.gate = gate
        self.guild_chat_id = guild_chat_id
        self.review_chat_id = review_chat_id
        self.questions = list(questions)
        self.answer_timeout = answer_timeout
        self.review_ping = review_ping
        self.registry = registry or InterviewRegistry()
        self.tz = tz
        self.texts = texts or ENGLISH_TEXTS

    def build_handlers(self) -> list:
        private_filter = filters.ChatType.PRIVATE
        apply_filter = private_filter | filters.Chat(chat_id=self.guild_chat_id)
        return [
            CommandHandler("apply", self.apply, filters=apply_filter),
            CommandHandler("start", self.start, filters=private_filter),
            CommandHandler("cancel", self.cancel, filters=private_filter),
            MessageHandler(private_filter & filters.TEXT & ~filters.COMMAND, self.receive_answer),
        ]

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = update.effective_chat
        if chat is None:
            return
        await chat.send_message(self.texts.dm_start, parse_mode=ParseMode.HTML)

    async def apply(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        user = update.effective_user
        if message is None or user is None:
            return

        status = await self._member_status(context, user.id)
        is_admin = status in ADMIN_STATUSES
        is_member = status is not None and status not in NON_MEMBER_STATUSES
        verdict = evaluate_eligibility(
            self.gate.is_open(),
            is_admin,
            self.store.applied_ids(),
            user.id,
            self.registry.active_ids(),
            is_member=is_member,
        )
        if verdict is not Eligibility.ACCEPTED:
            LOGGER.info("apply_rejected", extra={"user_id": user.id, "reason": verdict.value})
            await message.reply_text(self._rejection_text(verdict), parse_mode=ParseMode.HTML)
            return

        session = self.registry.open(user.id, is_admin)
        if session is None:
            await message.reply_text(
                self._rejection_text(Eligibility.IN_PROGRESS), parse_mode=ParseMode.HTML
            )
            return

        try:
            await message.reply_text(
                f"{self.texts.application_title}\n\n{self.texts.apply_accepted}\n\n{self.texts.apply_check_dm}",
                parse_mode=ParseMode.HTML,
            )
        except Exception:
            self.registry.close(user.id)
            raise

        LOGGER.info("interview_started", extra={"user_id": user.id, "is_admin": is_admin})
        context.application.create_task(
            self.conduct_application(context.bot, user, session),
            update=update,
        )

    async def conduct_application(self, bot: Any, user: Any, session: InterviewSession) -> list[str] | None:
        """Run the interview for ``user`` and forward a completed application.

        Timeouts, cancellations and delivery failures end the flow quietly
        and nothing is retried. The applicant is only recorded once the
        review has reached the review chat.
        """

        async def send_question(number: int, question: str) -> None:
            await bot.send_message(
                chat_id=user.id,
                text=(
                    f"{self.texts.dm_question_title.format(number=number)}\n\n"
                    f"{self.texts.dm_question_body.format(number=number, question=escape(question))}\n\n"
                    f"{self.texts.dm_question_footer}"
                ),
                parse_mode=ParseMode.HTML,
            )

        try:
            await bot.send_message(
                chat_id=user.id,
                text=f"{self.texts.application_title}\n\n{self.texts.dm_welcome}",
                parse_mode=ParseMode.HTML,
            )
            answers = await run_interview(session, self.questions, send_question, self.answer_timeout)
            await dispatch_review(
                bot,
                self.review_chat_id,
                user,
                answers,
                ping=self.review_ping,
                tz=self.tz,
                texts=self.texts,
            )
            if not session.is_admin:
                await self.store.record_application(user.id)
            await bot.send_message(
                chat_id=user.id,
                text=self.texts.dm_submitted,
                parse_mode=ParseMode.HTML,
            )
        except InterviewTimeout as exc:
            LOGGER.warning("Interview for %s timed out at question %s", user.id, exc.question_number)
            return None
        except InterviewCancelled:
            LOGGER.info("interview_cancelled", extra={"user_id": user.id})
            return None
        except TelegramError as exc:
            LOGGER.error("Failed to deliver application messages for %s: %s", user.id, exc)
            return None
        finally:
            self.registry.close(user.id)

        LOGGER.info("interview_completed", extra={"user_id": user.id, "answers": len(answers)})
        return answers

    async def receive_answer(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        user = update.effective_user
        if message is None or user is None or message.text is None:
            return
        self.registry.deliver(user.id, message.text)

    async def cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        user = update.effective_user
        if message is None or user is None:
            return
        if self.registry.cancel(user.id):
            await message.reply_text(self.texts.dm_cancelled)
        else:
            await message.reply_text(self.texts.dm_nothing_to_cancel)

    async def _member_status(self, context: ContextTypes.DEFAULT_TYPE, user_id: int) -> str | None:
        """Return the user's status in the configured group, or ``None`` if unknown."""

        try:
            member = await context.bot.get_chat_member(self.guild_chat_id, user_id)
        except TelegramError as exc:
            LOGGER.error("Failed to fetch chat member %s: %s", user_id, exc)
            return None
        if member.status == "restricted" and not getattr(member, "is_member", True):
            return "left"
        return member.status

    def _rejection_text(self, verdict: Eligibility) -> str:
        reasons = {
            Eligibility.CLOSED: self.texts.apply_closed,
            Eligibility.ALREADY_APPLIED: self.texts.apply_already_applied,
            Eligibility.IN_PROGRESS: self.texts.apply_in_progress,
            Eligibility.NOT_MEMBER: self.texts.apply_not_member,
        }
        return f"{self.texts.application_title}\n\n{reasons[verdict]}"

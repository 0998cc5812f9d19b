from __future__ import annotations

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ..localization import ENGLISH_TEXTS, TextPack


PASS_ACTION = "pass"
FAIL_ACTION = "fail"
DECISION_SEPARATOR = "_"


def decision_callback_data(action: str, user_id: int) -> str:
    return f"{action}{DECISION_SEPARATOR}{user_id}"


def application_review_keyboard(user_id: int, texts: TextPack | None = None) -> InlineKeyboardMarkup:
    text_pack = texts or ENGLISH_TEXTS
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(
                    text_pack.review_pass_button,
                    callback_data=decision_callback_data(PASS_ACTION, user_id),
                ),
                InlineKeyboardButton(
                    text_pack.review_fail_button,
                    callback_data=decision_callback_data(FAIL_ACTION, user_id),
                ),
            ]
        ]
    )

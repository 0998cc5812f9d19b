from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from telegram import BotCommand, BotCommandScopeAllPrivateChats, BotCommandScopeChat
from telegram.ext import AIORateLimiter, ApplicationBuilder, ContextTypes

from appybot.config import Settings
from appybot.handlers.apply import ApplyHandlers
from appybot.handlers.review import ReviewHandlers
from appybot.services.schedule import ScheduleGate
from appybot.services.storage import ApplicationStore
from webapp.server import build_server

CONFIG_PATH = Path("config/settings.yaml")

APPLY_COMMAND = BotCommand("apply", "Start a Customer Support application")


async def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.logging.level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if settings.logging.file:
        settings.logging.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.logging.file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, settings.logging.level.upper(), logging.INFO))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        logging.getLogger().addHandler(file_handler)


async def build_application(settings: Settings) -> None:
    await setup_logging(settings)

    store = ApplicationStore(settings.storage.path)
    await store.load()

    gate = ScheduleGate(
        store,
        utc_offset_hours=settings.schedule.utc_offset_hours,
        open_weekday=settings.schedule.open_weekday,
        open_hour=settings.schedule.open_hour,
        close_weekday=settings.schedule.close_weekday,
        close_hour=settings.schedule.close_hour,
    )

    apply_handlers = ApplyHandlers(
        store=store,
        gate=gate,
        guild_chat_id=settings.telegram.guild_chat_id,
        review_chat_id=settings.telegram.review_chat_id,
        questions=settings.interview.questions,
        answer_timeout=settings.interview.answer_timeout,
        review_ping=settings.telegram.review_ping,
        tz=gate.tz,
    )
    review_handlers = ReviewHandlers()

    application = (
        ApplicationBuilder()
        .token(settings.get_bot_token())
        .rate_limiter(AIORateLimiter())
        .concurrent_updates(True)
        .build()
    )

    for handler in apply_handlers.build_handlers():
        application.add_handler(handler)

    for handler in review_handlers.build_handlers():
        application.add_handler(handler)

    async def post_init(app) -> None:
        await app.bot.set_my_commands(
            [APPLY_COMMAND],
            scope=BotCommandScopeChat(settings.telegram.guild_chat_id),
        )
        await app.bot.set_my_commands(
            [APPLY_COMMAND, BotCommand("cancel", "Abandon the application in progress")],
            scope=BotCommandScopeAllPrivateChats(),
        )
        logging.getLogger(__name__).info("Commands registered.")

    application.post_init = post_init

    async def schedule_tick(context: ContextTypes.DEFAULT_TYPE) -> None:
        await gate.tick()

    application.job_queue.run_repeating(
        schedule_tick,
        interval=settings.schedule.tick_seconds,
        first=0,
        name="schedule_gate",
    )

    async def error_handler(update, context) -> None:
        logging.getLogger(__name__).error("Exception while handling update", exc_info=context.error)

    application.add_error_handler(error_handler)

    server = build_server(settings.webapp)

    try:
        await application.initialize()
        await application.post_init(application)
        await application.start()
        await application.updater.start_polling(drop_pending_updates=True)
        logging.info("AppyBot is running; uptime server on port %s.", settings.webapp.port)
        await server.serve()
    finally:
        if application.updater.running:
            await application.updater.stop()
        if application.running:
            await application.stop()
        await application.shutdown()
        await store.save()


async def main() -> None:
    config_path = CONFIG_PATH if CONFIG_PATH.exists() else Path("config/settings.example.yaml")
    settings = Settings.load(config_path)
    await build_application(settings)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass

"""Configuration loader for AppyBot."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_QUESTIONS: List[str] = [
    "Why do you want to join Customer Support?",
    "How active can you be each week?",
    "Do you have any past moderation or support experience?",
    "How would you handle a rude user?",
]


@dataclass
class TelegramConfig:
    bot_token_env: str
    guild_chat_id: int
    review_chat_id: int
    review_ping: Optional[str] = None


@dataclass
class StorageConfig:
    path: Path


@dataclass
class ScheduleConfig:
    utc_offset_hours: float = -5
    open_weekday: int = 6
    open_hour: int = 0
    close_weekday: int = 0
    close_hour: int = 23
    tick_seconds: float = 60.0


@dataclass
class InterviewConfig:
    answer_timeout: float = 300.0
    questions: List[str] = field(default_factory=lambda: list(DEFAULT_QUESTIONS))


@dataclass
class LoggingConfig:
    level: str
    file: Optional[Path]


@dataclass
class WebAppConfig:
    host: str
    port: int


@dataclass
class Settings:
    telegram: TelegramConfig
    storage: StorageConfig
    schedule: ScheduleConfig
    interview: InterviewConfig
    logging: LoggingConfig
    webapp: WebAppConfig

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as config_file:
            data: Dict[str, Any] = yaml.safe_load(config_file)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        review_ping = data["telegram"].get("review_ping")
        telegram = TelegramConfig(
            bot_token_env=data["telegram"].get("bot_token_env", "APPYBOT_TOKEN"),
            guild_chat_id=int(data["telegram"]["guild_chat_id"]),
            review_chat_id=int(data["telegram"]["review_chat_id"]),
            review_ping=str(review_ping) if review_ping else None,
        )

        storage = StorageConfig(
            path=Path(data.get("storage", {}).get("path", "applications.json")),
        )

        schedule_cfg = data.get("schedule", {})
        schedule = ScheduleConfig(
            utc_offset_hours=float(schedule_cfg.get("utc_offset_hours", -5)),
            open_weekday=_bounded(schedule_cfg.get("open_weekday", 6), 0, 6, "open_weekday"),
            open_hour=_bounded(schedule_cfg.get("open_hour", 0), 0, 23, "open_hour"),
            close_weekday=_bounded(schedule_cfg.get("close_weekday", 0), 0, 6, "close_weekday"),
            close_hour=_bounded(schedule_cfg.get("close_hour", 23), 0, 23, "close_hour"),
            tick_seconds=float(schedule_cfg.get("tick_seconds", 60)),
        )

        interview_cfg = data.get("interview", {})
        questions = [str(item) for item in interview_cfg.get("questions") or DEFAULT_QUESTIONS]
        interview = InterviewConfig(
            answer_timeout=float(interview_cfg.get("answer_timeout", 300)),
            questions=questions,
        )

        logging_cfg = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_cfg.get("level", "INFO"),
            file=Path(logging_cfg["file"]) if logging_cfg.get("file") else None,
        )

        webapp_cfg = data.get("webapp", {})
        port = os.getenv("PORT") or webapp_cfg.get("port", 3000)
        webapp = WebAppConfig(
            host=webapp_cfg.get("host", "0.0.0.0"),
            port=int(port),
        )

        return cls(
            telegram=telegram,
            storage=storage,
            schedule=schedule,
            interview=interview,
            logging=logging_config,
            webapp=webapp,
        )

    def get_bot_token(self) -> str:
        token = os.getenv(self.telegram.bot_token_env)
        if not token:
            raise RuntimeError(
                f"Bot token not found in environment variable '{self.telegram.bot_token_env}'."
            )
        return token


def _bounded(value: Any, low: int, high: int, name: str) -> int:
    number = int(value)
    if not low <= number <= high:
        raise ValueError(f"schedule.{name} must be between {low} and {high}, got {number}.")
    return number

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Set

from aiofiles import open as aioopen


LOGGER = logging.getLogger(__name__)


@dataclass
class StoreState:
    applied: Set[int] = field(default_factory=set)
    last_reset: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied": [str(user_id) for user_id in sorted(self.applied)],
            "lastReset": self.last_reset.isoformat() if self.last_reset else None,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "StoreState":
        if not isinstance(payload, dict):
            raise ValueError("store document must be a JSON object")
        applied = payload.get("applied", [])
        if not isinstance(applied, list):
            raise ValueError("'applied' must be a list")
        last_reset_raw = payload.get("lastReset")
        last_reset = datetime.fromisoformat(last_reset_raw) if last_reset_raw else None
        if last_reset is not None and last_reset.tzinfo is None:
            last_reset = last_reset.replace(tzinfo=timezone.utc)
        return cls(
            applied={int(user_id) for user_id in applied},
            last_reset=last_reset,
        )


class ApplicationStore:
    """Flat JSON record of who applied during the current window."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._state = StoreState()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def last_reset(self) -> Optional[datetime]:
        return self._state.last_reset

    async def load(self) -> None:
        if not self._path.exists():
            self._state = StoreState()
            await self.save()
            LOGGER.info("storage_created", extra={"path": str(self._path)})
            return

        async with aioopen(self._path, "r", encoding="utf-8") as file:
            raw = await file.read()

        try:
            self._state = StoreState.from_dict(json.loads(raw))
        except (TypeError, ValueError) as exc:
            raise RuntimeError(f"Storage file '{self._path}' is malformed: {exc}") from exc
        LOGGER.info(
            "storage_loaded",
            extra={"path": str(self._path), "applied": len(self._state.applied)},
        )

    async def save(self) -> None:
        async with self._write_lock:
            payload = await self._snapshot()
            await self._write_snapshot(payload)

    def has_applied(self, user_id: int) -> bool:
        return user_id in self._state.applied

    def applied_ids(self) -> FrozenSet[int]:
        return frozenset(self._state.applied)

    async def record_application(self, user_id: int) -> bool:
        async with self._lock:
            if user_id in self._state.applied:
                return False
            self._state.applied.add(user_id)
        await self.save()
        LOGGER.info("applicant_recorded", extra={"user_id": user_id})
        return True

    async def reset(self, moment: datetime) -> None:
        async with self._lock:
            cleared = len(self._state.applied)
            self._state.applied.clear()
            self._state.last_reset = moment
        await self.save()
        LOGGER.info("storage_reset", extra={"cleared": cleared, "last_reset": moment.isoformat()})

    async def _snapshot(self) -> str:
        async with self._lock:
            payload = json.dumps(self._state.to_dict(), indent=2)
        return payload

    async def _write_snapshot(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        if self._path.suffix:
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        else:
            tmp_path = self._path.with_name(self._path.name + ".tmp")

        try:
            async with aioopen(tmp_path, "w", encoding="utf-8") as file:
                await file.write(payload)
                await file.flush()
            await asyncio.to_thread(os.replace, tmp_path, self._path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                await asyncio.to_thread(tmp_path.unlink)
            raise

        LOGGER.debug("storage_flushed", extra={"path": str(self._path)})

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

import appybot.services.storage as storage_module
from appybot.services.storage import ApplicationStore


def test_load_creates_missing_file_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "data" / "applications.json"
    store = ApplicationStore(path)

    asyncio.run(store.load())

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == {"applied": [], "lastReset": None}
    assert store.applied_ids() == frozenset()
    assert store.last_reset is None


def test_record_application_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "applications.json"
    moment = datetime(2024, 1, 7, 0, 0, tzinfo=timezone(timedelta(hours=-5)))

    async def runner() -> ApplicationStore:
        store = ApplicationStore(path)
        await store.load()
        await store.reset(moment)
        assert await store.record_application(30)
        assert await store.record_application(10)
        assert not await store.record_application(10)

        reloaded = ApplicationStore(path)
        await reloaded.load()
        return reloaded

    reloaded = asyncio.run(runner())

    assert reloaded.applied_ids() == frozenset({10, 30})
    assert reloaded.has_applied(10)
    assert not reloaded.has_applied(20)
    assert reloaded.last_reset == moment
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert sorted(payload["applied"]) == ["10", "30"]


def test_reset_always_empties_applied(tmp_path: Path) -> None:
    store = ApplicationStore(tmp_path / "applications.json")
    moment = datetime(2024, 1, 14, 5, 0, tzinfo=timezone.utc)

    async def runner() -> None:
        await store.load()
        for user_id in (1, 2, 3):
            await store.record_application(user_id)
        await store.reset(moment)

    asyncio.run(runner())

    assert store.applied_ids() == frozenset()
    assert store.last_reset == moment


def test_load_accepts_duplicate_ids_and_naive_timestamp(tmp_path: Path) -> None:
    path = tmp_path / "applications.json"
    path.write_text(
        json.dumps({"applied": ["5", "5", 6], "lastReset": "2024-01-07T05:00:00"}),
        encoding="utf-8",
    )
    store = ApplicationStore(path)

    asyncio.run(store.load())

    assert store.applied_ids() == frozenset({5, 6})
    assert store.last_reset == datetime(2024, 1, 7, 5, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "content",
    [
        "",
        "{not json",
        "[]",
        json.dumps({"applied": "12345"}),
        json.dumps({"applied": ["abc"]}),
    ],
)
def test_malformed_file_is_fatal(tmp_path: Path, content: str) -> None:
    path = tmp_path / "applications.json"
    path.write_text(content, encoding="utf-8")
    store = ApplicationStore(path)

    with pytest.raises(RuntimeError, match="malformed"):
        asyncio.run(store.load())


def test_concurrent_records_are_not_lost(tmp_path: Path) -> None:
    path = tmp_path / "applications.json"

    async def runner() -> ApplicationStore:
        store = ApplicationStore(path)
        await store.load()
        await asyncio.gather(*(store.record_application(user_id) for user_id in range(20)))
        reloaded = ApplicationStore(path)
        await reloaded.load()
        return reloaded

    reloaded = asyncio.run(runner())

    assert reloaded.applied_ids() == frozenset(range(20))


def test_snapshot_write_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = ApplicationStore(tmp_path / "applications.json")

    async def runner() -> None:
        await store.load()
        await store.record_application(1)

        original_snapshot = store.path.read_bytes()
        temp_path = store.path.with_suffix(store.path.suffix + ".tmp")

        class FailingAsyncFile:
            def __init__(self, path: Path | str, mode: str, *args, **kwargs) -> None:
                self._file = open(path, mode, encoding="utf-8")

            async def __aenter__(self) -> "FailingAsyncFile":
                return self

            async def __aexit__(self, exc_type, exc, tb) -> None:
                self._file.close()

            async def write(self, data: str) -> None:
                portion = max(1, len(data) // 2)
                self._file.write(data[:portion])
                self._file.flush()
                raise RuntimeError("Simulated write failure")

            async def flush(self) -> None:
                self._file.flush()

        real_aioopen = storage_module.aioopen

        def failing_aioopen(path, mode="r", *args, **kwargs):
            if Path(path) == temp_path and "w" in mode:
                return FailingAsyncFile(path, mode, *args, **kwargs)
            return real_aioopen(path, mode, *args, **kwargs)

        monkeypatch.setattr(storage_module, "aioopen", failing_aioopen)

        with pytest.raises(RuntimeError, match="Simulated write failure"):
            await store.record_application(2)

        assert store.path.read_bytes() == original_snapshot
        assert not temp_path.exists()

    asyncio.run(runner())

"""Tests for the daily advice cache."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from nesha import db
from nesha.advice import get_cached_advice, load_daily_advice, prune_advice_cache
from nesha.companion import ADVICE_OFFLINE, Companion
from nesha.models import Language


@pytest.fixture()
def conn(tmp_path: Path):
    connection = db.get_connection(db_path=tmp_path / "test.db")
    yield connection
    connection.close()


class TestLoadDailyAdvice:
    @pytest.mark.asyncio
    async def test_fetches_and_caches(self, conn, make_client) -> None:
        client = make_client(text="Be still.")
        day = date(2024, 5, 1)
        assert await load_daily_advice(conn, Companion(client), "en", day=day) == "Be still."
        assert get_cached_advice(conn, day) == "Be still."
        assert db.get_item(conn, "advice-cache-2024-05-01") is not None

    @pytest.mark.asyncio
    async def test_cache_hit_skips_companion(self, conn, make_client) -> None:
        client = make_client(text="new")
        day = date(2024, 5, 1)
        db.save_advice(conn, day, "cached")
        assert await load_daily_advice(conn, Companion(client), "en", day=day) == "cached"
        assert client.aio.models.calls == []

    @pytest.mark.asyncio
    async def test_refresh_replaces_cache(self, conn, make_client) -> None:
        day = date(2024, 5, 1)
        db.save_advice(conn, day, "cached")
        advice = await load_daily_advice(conn, Companion(make_client(text="new")), "en", refresh=True, day=day)
        assert advice == "new"
        assert get_cached_advice(conn, day) == "new"

    @pytest.mark.asyncio
    async def test_offline(self, conn) -> None:
        advice = await load_daily_advice(conn, Companion(None), Language.ENGLISH)
        assert advice == ADVICE_OFFLINE[Language.ENGLISH]

    @pytest.mark.asyncio
    async def test_cache_write_failure_still_returns(self, tmp_path: Path) -> None:
        conn = db.get_connection(db_path=tmp_path / "ro.db")
        conn.execute("DROP TABLE kv")
        advice = await load_daily_advice(conn, Companion(None), "en", refresh=True)
        assert advice == ADVICE_OFFLINE[Language.ENGLISH]
        conn.close()


class TestPrune:
    def test_removes_older_days(self, conn) -> None:
        db.save_advice(conn, date(2024, 4, 30), "old")
        db.save_advice(conn, date(2024, 5, 1), "today")
        assert prune_advice_cache(conn, date(2024, 5, 1)) == 1
        assert db.list_keys(conn, db.ADVICE_KEY_PREFIX) == ["advice-cache-2024-05-01"]

"""Daily advice, fetched from the companion at most once per calendar day."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Optional

from nesha import db
from nesha.companion import Companion
from nesha.models import Language

log = logging.getLogger(__name__)


def get_cached_advice(conn: sqlite3.Connection, day: Optional[date] = None) -> Optional[str]:
    """Return the advice cached for ``day`` (default today), if any."""
    return db.load_advice(conn, day or date.today())


async def load_daily_advice(
    conn: sqlite3.Connection,
    companion: Companion,
    language: Language | str,
    refresh: bool = False,
    day: Optional[date] = None,
) -> str:
    """Return today's advice, asking the companion only on a cache miss or refresh."""
    day = day or date.today()
    if not refresh:
        cached = db.load_advice(conn, day)
        if cached:
            return cached

    advice = await companion.get_daily_advice(language)
    try:
        db.save_advice(conn, day, advice)
    except sqlite3.Error as exc:
        log.error("Could not cache daily advice: %s", exc)
    return advice


def prune_advice_cache(conn: sqlite3.Connection, keep_from: Optional[date] = None) -> int:
    """Delete cached advice older than ``keep_from`` (default today). Returns count removed."""
    cutoff = db.advice_key(keep_from or date.today())
    removed = 0
    for key in db.list_keys(conn, db.ADVICE_KEY_PREFIX):
        if key < cutoff:
            db.remove_item(conn, key)
            removed += 1
    return removed

"""SQLite-backed concert catalog.

Persists locally created concerts and user reviews to ``data/catalog.db``
using ``aiosqlite`` for async I/O.  Concert reads LEFT JOIN the reviews
table so every returned :class:`LocalConcert` carries its rating
aggregates; a concert with no reviews reports every aggregate as ``None``.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite
import structlog

from src.interfaces.catalog_store import ICatalogStore
from src.models.concert import ConcertInput, ConcertUpdate, LocalConcert, Review, ReviewInput
from src.models.query import ConcertFilter
from src.utils.errors import ConcertNotFoundError, DuplicateReviewError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/catalog.db")

_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_CREATE_TABLES_SQL = [
    f"""\
CREATE TABLE IF NOT EXISTS concerts (
    id           TEXT PRIMARY KEY,
    artist       TEXT NOT NULL,
    venue        TEXT NOT NULL,
    city         TEXT NOT NULL,
    date         TEXT NOT NULL,
    time         TEXT NOT NULL DEFAULT '',
    price        TEXT NOT NULL DEFAULT '',
    genre        TEXT,
    image_url    TEXT,
    ticket_url   TEXT,
    description  TEXT,
    created_at   TEXT NOT NULL DEFAULT ({_NOW_SQL}),
    updated_at   TEXT NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS reviews (
    id                  TEXT PRIMARY KEY,
    user_id             TEXT    NOT NULL,
    concert_id          TEXT    NOT NULL REFERENCES concerts(id) ON DELETE CASCADE,
    overall_rating      INTEGER NOT NULL,
    performance_rating  INTEGER NOT NULL,
    sound_rating        INTEGER NOT NULL,
    venue_rating        INTEGER NOT NULL,
    value_rating        INTEGER NOT NULL,
    review_text         TEXT    NOT NULL DEFAULT '',
    created_at          TEXT    NOT NULL DEFAULT ({_NOW_SQL}),
    UNIQUE(user_id, concert_id)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_concerts_created ON concerts(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_concerts_genre ON concerts(genre);",
    "CREATE INDEX IF NOT EXISTS idx_reviews_concert ON reviews(concert_id);",
]

# Aggregates are NULL (not 0) when the LEFT JOIN matched no reviews.
_SELECT_CONCERTS_SQL = """\
SELECT c.*,
       AVG(r.overall_rating)     AS average_rating,
       AVG(r.performance_rating) AS performance_rating,
       AVG(r.sound_rating)       AS sound_rating,
       AVG(r.venue_rating)       AS venue_rating,
       AVG(r.value_rating)       AS value_rating,
       NULLIF(COUNT(r.id), 0)    AS review_count
FROM concerts c
LEFT JOIN reviews r ON r.concert_id = c.id
"""

_INSERT_CONCERT_SQL = """\
INSERT INTO concerts (id, artist, venue, city, date, time, price, genre,
                      image_url, ticket_url, description)
VALUES (:id, :artist, :venue, :city, :date, :time, :price, :genre,
        :image_url, :ticket_url, :description)
"""

_UPDATABLE_COLUMNS = (
    "artist", "venue", "city", "date", "time", "price",
    "genre", "image_url", "ticket_url", "description",
)
_NULLABLE_COLUMNS = frozenset({"genre", "image_url", "ticket_url", "description"})

_INSERT_REVIEW_SQL = """\
INSERT INTO reviews (id, user_id, concert_id, overall_rating, performance_rating,
                     sound_rating, venue_rating, value_rating, review_text)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _row_to_concert(row: aiosqlite.Row) -> LocalConcert:
    data = dict(row)
    data["native_id"] = data.pop("id")
    return LocalConcert.model_validate(data)


def _py_lower(value: str | None) -> str | None:
    return value.lower() if isinstance(value, str) else value


def _contains_pattern(needle: str) -> str:
    """``LIKE`` pattern matching ``needle`` anywhere, wildcards escaped."""
    escaped = needle.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# py_lower is str.lower() registered on each connection; SQLite LOWER() folds ASCII only.
_CONTAINS_SQL = "py_lower({column}) LIKE ? ESCAPE '\\'"


def _build_where(concert_filter: ConcertFilter) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if concert_filter.search:
        pattern = _contains_pattern(concert_filter.search)
        columns = ("c.artist", "c.venue", "c.city")
        clauses.append(
            "(" + " OR ".join(_CONTAINS_SQL.format(column=col) for col in columns) + ")"
        )
        params.extend([pattern] * len(columns))
    if concert_filter.genre:
        clauses.append("c.genre = ?")
        params.append(concert_filter.genre)
    if concert_filter.city:
        clauses.append(_CONTAINS_SQL.format(column="c.city"))
        params.append(_contains_pattern(concert_filter.city))
    if concert_filter.start_date:
        clauses.append("c.date >= ?")
        params.append(concert_filter.start_date)
    if concert_filter.end_date:
        clauses.append("c.date <= ?")
        params.append(concert_filter.end_date)
    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


class SQLiteCatalogStore(ICatalogStore):
    """SQLite-backed concert and review persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.create_function("py_lower", 1, _py_lower, deterministic=True)
            yield db

    async def initialize(self) -> None:
        """Create the concerts and reviews tables if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("catalog_db_initialized", path=str(self._db_path))

    async def _fetch_concert(self, db: aiosqlite.Connection, concert_id: str) -> LocalConcert | None:
        cursor = await db.execute(
            _SELECT_CONCERTS_SQL + "WHERE c.id = ? GROUP BY c.id",
            (concert_id,),
        )
        row = await cursor.fetchone()
        return _row_to_concert(row) if row is not None else None

    async def get_concerts(
        self,
        concert_filter: ConcertFilter,
        limit: int,
        offset: int = 0,
    ) -> list[LocalConcert]:
        where_sql, params = _build_where(concert_filter)
        sql = (
            f"{_SELECT_CONCERTS_SQL}{where_sql} "
            "GROUP BY c.id ORDER BY c.created_at DESC, c.rowid DESC LIMIT ? OFFSET ?"
        )
        async with self._connect() as db:
            cursor = await db.execute(sql, (*params, limit, offset))
            rows = await cursor.fetchall()

        concerts = [_row_to_concert(r) for r in rows]
        logger.debug(
            "catalog_query_complete",
            search=concert_filter.search,
            genre=concert_filter.genre,
            result_count=len(concerts),
        )
        return concerts

    async def get_concert(self, concert_id: str) -> LocalConcert | None:
        async with self._connect() as db:
            return await self._fetch_concert(db, concert_id)

    async def create_concert(self, data: ConcertInput) -> LocalConcert:
        concert_id = str(uuid.uuid4())
        async with self._connect() as db:
            await db.execute(_INSERT_CONCERT_SQL, {"id": concert_id, **data.model_dump()})
            await db.commit()
            concert = await self._fetch_concert(db, concert_id)

        logger.info("concert_created", concert_id=concert_id, artist=data.artist)
        return concert

    async def upsert_concert(self, concert_id: str, data: ConcertInput) -> LocalConcert:
        async with self._connect() as db:
            cursor = await db.execute(
                _INSERT_CONCERT_SQL + " ON CONFLICT(id) DO NOTHING",
                {"id": concert_id, **data.model_dump()},
            )
            inserted = cursor.rowcount > 0
            await db.commit()
            concert = await self._fetch_concert(db, concert_id)

        if inserted:
            logger.info("concert_upserted", concert_id=concert_id, artist=data.artist)
        return concert

    async def update_concert(self, concert_id: str, updates: ConcertUpdate) -> LocalConcert | None:
        changes = updates.model_dump(exclude_unset=True)
        # Optional columns may be cleared with an explicit null; required ones may not.
        changes = {
            k: v
            for k, v in changes.items()
            if k in _UPDATABLE_COLUMNS and (v is not None or k in _NULLABLE_COLUMNS)
        }

        async with self._connect() as db:
            if changes:
                assignments = ", ".join(f"{column} = :{column}" for column in changes)
                cursor = await db.execute(
                    f"UPDATE concerts SET {assignments}, updated_at = {_NOW_SQL} WHERE id = :id",
                    {**changes, "id": concert_id},
                )
                await db.commit()
                if cursor.rowcount == 0:
                    return None
            concert = await self._fetch_concert(db, concert_id)

        if concert is not None and changes:
            logger.info("concert_updated", concert_id=concert_id, fields=sorted(changes))
        return concert

    async def delete_concert(self, concert_id: str) -> bool:
        async with self._connect() as db:
            await db.execute("DELETE FROM reviews WHERE concert_id = ?", (concert_id,))
            cursor = await db.execute("DELETE FROM concerts WHERE id = ?", (concert_id,))
            await db.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("concert_deleted", concert_id=concert_id)
        return deleted

    async def create_review(self, review: ReviewInput) -> Review:
        """Store a review.

        Raises
        ------
        ConcertNotFoundError
            If ``review.concert_id`` is not in the catalog.
        DuplicateReviewError
            If the user has already reviewed this concert.
        """
        review_id = str(uuid.uuid4())
        async with self._connect() as db:
            cursor = await db.execute("SELECT 1 FROM concerts WHERE id = ?", (review.concert_id,))
            if await cursor.fetchone() is None:
                raise ConcertNotFoundError(review.concert_id, provider_name=self.get_provider_name())
            try:
                await db.execute(
                    _INSERT_REVIEW_SQL,
                    (
                        review_id,
                        review.user_id,
                        review.concert_id,
                        review.overall_rating,
                        review.performance_rating,
                        review.sound_rating,
                        review.venue_rating,
                        review.value_rating,
                        review.review_text,
                    ),
                )
            except aiosqlite.IntegrityError as exc:
                raise DuplicateReviewError(
                    review.user_id, review.concert_id, provider_name=self.get_provider_name()
                ) from exc
            await db.commit()
            cursor = await db.execute("SELECT * FROM reviews WHERE id = ?", (review_id,))
            row = await cursor.fetchone()

        logger.info(
            "review_created",
            review_id=review_id,
            concert_id=review.concert_id,
            overall_rating=review.overall_rating,
        )
        return Review.model_validate(dict(row))

    async def get_reviews_for_concert(self, concert_id: str) -> list[Review]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM reviews WHERE concert_id = ? ORDER BY created_at DESC, rowid DESC",
                (concert_id,),
            )
            rows = await cursor.fetchall()
        return [Review.model_validate(dict(r)) for r in rows]

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
        return "sqlite_catalog"

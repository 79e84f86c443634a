"""
Database manager for the Movies Pipeline.

Handles all database operations including:
- Connection management with SQLAlchemy's asyncio extension
- Schema creation for the movies table
- Repository operations used by reconciliation and the cleanup sweep
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

from sqlalchemy import DateTime, bindparam, event, inspect, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .config import Config
from .errors import ErrorKind, StoreError
from .models import (
    FILM_MAX_LENGTH,
    GENRE_MAX_LENGTH,
    SCORE_MAX,
    SCORE_MIN,
    STORED_YEAR_MAX,
    STORED_YEAR_MIN,
    STUDIO_MAX_LENGTH,
    MovieRecord,
)
from .utils import setup_logger

MOVIES_TABLE_DDL = f"""
    CREATE TABLE IF NOT EXISTS movies (
        movie_id CHAR(36) NOT NULL PRIMARY KEY,
        id INT NOT NULL,
        film VARCHAR({FILM_MAX_LENGTH}) NOT NULL,
        genre VARCHAR({GENRE_MAX_LENGTH}) NOT NULL,
        studio VARCHAR({STUDIO_MAX_LENGTH}) NOT NULL,
        score INT NOT NULL,
        year INT NOT NULL,
        created_at DATETIME NOT NULL,
        updated_at DATETIME NULL,
        CONSTRAINT uq_movies_id UNIQUE (id),
        CONSTRAINT ck_movies_id_positive CHECK (id > 0),
        CONSTRAINT ck_movies_film_not_empty CHECK (LENGTH(TRIM(film)) > 0),
        CONSTRAINT ck_movies_genre_not_empty CHECK (LENGTH(TRIM(genre)) > 0),
        CONSTRAINT ck_movies_studio_not_empty CHECK (LENGTH(TRIM(studio)) > 0),
        CONSTRAINT ck_movies_score_range CHECK (score >= {SCORE_MIN} AND score <= {SCORE_MAX}),
        CONSTRAINT ck_movies_updated_after_created CHECK (updated_at IS NULL OR updated_at >= created_at)
    )
"""

_COLUMNS = "movie_id, id, film, genre, studio, score, year, created_at, updated_at"
_TIME_COLUMNS = ("created_at", "updated_at")


def _statement(query: str):
    """
    Build a text() statement with its timestamps typed as DateTime.

    Drivers without a native datetime type (SQLite) store and return
    strings; typing the binds and result columns converts both ways.
    """
    statement = text(query)
    binds = [bindparam(name, type_=DateTime()) for name in _TIME_COLUMNS if f":{name}" in query]
    if binds:
        statement = statement.bindparams(*binds)
    if query.lstrip().upper().startswith("SELECT"):
        return statement.columns(**{name: DateTime() for name in _TIME_COLUMNS})
    return statement


def _to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _row_to_movie(row) -> MovieRecord:
    return MovieRecord(
        movie_id=str(row["movie_id"]),
        id=row["id"],
        film=row["film"],
        genre=row["genre"],
        studio=row["studio"],
        score=row["score"],
        year=row["year"],
        created_at=_from_db_time(row["created_at"]),
        updated_at=_from_db_time(row["updated_at"]),
    )


def _params(movie: MovieRecord) -> dict:
    params = movie.to_dict()
    params["created_at"] = _to_db_time(movie.created_at)
    params["updated_at"] = _to_db_time(movie.updated_at)
    return params


class MovieRepository:
    """
    Movie operations bound to one connection and its transaction.

    Statement failures are raised as StoreError so callers never depend on
    driver exception types.
    """

    def __init__(self, conn: AsyncConnection):
        self.conn = conn

    async def _execute(self, query: str, params: Optional[dict] = None, business_id: Optional[int] = None):
        try:
            return await self.conn.execute(_statement(query), params or {})
        except IntegrityError as e:
            raise StoreError(ErrorKind.ROW_CONSTRAINT_VIOLATION, cause=e, business_id=business_id) from e
        except SQLAlchemyError as e:
            raise StoreError(ErrorKind.ROW_STORE_FAILURE, cause=e, business_id=business_id) from e

    async def get_by_business_id(self, business_id: int) -> Optional[MovieRecord]:
        """Look up a movie by its business key."""
        result = await self._execute(
            f"SELECT {_COLUMNS} FROM movies WHERE id = :id",
            {"id": business_id},
            business_id=business_id,
        )
        row = result.mappings().first()
        return _row_to_movie(row) if row else None

    async def list_all(self) -> List[MovieRecord]:
        """Get every movie ordered by business key."""
        result = await self._execute(f"SELECT {_COLUMNS} FROM movies ORDER BY id")
        return [_row_to_movie(row) for row in result.mappings()]

    async def add(self, movie: MovieRecord) -> None:
        placeholders = ", ".join(f":{name.strip()}" for name in _COLUMNS.split(","))
        await self._execute(
            f"INSERT INTO movies ({_COLUMNS}) VALUES ({placeholders})",
            _params(movie),
            business_id=movie.id,
        )

    async def update(self, movie: MovieRecord) -> None:
        await self._execute(
            """
            UPDATE movies
            SET id = :id, film = :film, genre = :genre, studio = :studio,
                score = :score, year = :year, updated_at = :updated_at
            WHERE movie_id = :movie_id
            """,
            _params(movie),
            business_id=movie.id,
        )

    async def touch(self, movie: MovieRecord) -> None:
        """Persist only updated_at."""
        await self._execute(
            "UPDATE movies SET updated_at = :updated_at WHERE movie_id = :movie_id",
            {"updated_at": _to_db_time(movie.updated_at), "movie_id": movie.movie_id},
            business_id=movie.id,
        )

    async def delete(self, movie: MovieRecord) -> None:
        await self._execute(
            "DELETE FROM movies WHERE movie_id = :movie_id",
            {"movie_id": movie.movie_id},
            business_id=movie.id,
        )

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """Nested transaction: an exception inside rolls back only this block."""
        try:
            async with self.conn.begin_nested():
                yield
        except SQLAlchemyError as e:
            raise StoreError(ErrorKind.ROW_STORE_FAILURE, cause=e) from e

    async def commit(self) -> None:
        try:
            await self.conn.commit()
        except SQLAlchemyError as e:
            raise StoreError(ErrorKind.STORE_UNAVAILABLE, cause=e) from e


class DatabaseManager:
    """
    Handles all database operations.

    Responsibilities:
    - Async engine and connection pool
    - Schema setup and status
    - Handing out transaction-scoped MovieRepository sessions
    """

    TABLES = ["movies"]

    def __init__(self, config: Config, engine: Optional[AsyncEngine] = None):
        self.config = config
        self.engine = engine or self._create_engine()
        self.logger = setup_logger("database", config.log_dir)

    def _create_engine(self) -> AsyncEngine:
        """Create async SQLAlchemy engine with connection pooling."""
        url = self.config.get_db_url()
        if url.startswith("sqlite"):
            engine = create_async_engine(url)
            _enable_sqlite_savepoints(engine)
            return engine
        return create_async_engine(
            url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[MovieRepository]:
        """
        Open a connection and transaction for a unit of work.

        Changes are kept only if the caller commits; any exception rolls back.
        """
        try:
            async with self.engine.connect() as conn:
                repo = MovieRepository(conn)
                try:
                    yield repo
                except BaseException:
                    await conn.rollback()
                    raise
        except SQLAlchemyError as e:
            self.logger.error(f"Database session failed: {e}")
            raise StoreError(ErrorKind.STORE_UNAVAILABLE, cause=e) from e

    # ============ SETUP & STATUS ============

    async def table_exists(self, table_name: str) -> bool:
        async with self.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(table_name))

    async def check_and_create_tables(self) -> dict:
        """Create missing tables and report what was created."""
        created, existing = [], []
        for table in self.TABLES:
            if await self.table_exists(table):
                existing.append(table)
                continue
            async with self.engine.begin() as conn:
                await conn.execute(text(MOVIES_TABLE_DDL))
            self.logger.info(f"Created table {table}")
            created.append(table)
        return {"created": created, "existing": existing}

    async def get_movie_count(self) -> int:
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT COUNT(*) FROM movies"))
            return result.scalar_one()

    async def count_outside_stored_years(self) -> int:
        """Movies whose year lies outside the stored-entity window."""
        async with self.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT COUNT(*) FROM movies WHERE year < :low OR year > :high"),
                {"low": STORED_YEAR_MIN, "high": STORED_YEAR_MAX},
            )
            return result.scalar_one()

    async def get_status(self) -> dict:
        """Table presence and row counts."""
        exists = await self.table_exists("movies")
        if not exists:
            return {"movies_table_exists": False, "movie_count": 0, "outside_stored_years": 0}
        return {
            "movies_table_exists": True,
            "movie_count": await self.get_movie_count(),
            "outside_stored_years": await self.count_outside_stored_years(),
        }

    async def dispose(self) -> None:
        await self.engine.dispose()


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on SQLite.

    The pysqlite/aiosqlite drivers otherwise manage transactions on their own.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

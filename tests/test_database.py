"""
Store adapter tests against a real SQLite database.

Exercises the SQL in DatabaseManager and MovieRepository: round-trips,
savepoint isolation, session rollback, status and the full
load, reload and sweep flow.
"""

import io

import pytest
import pytest_asyncio

from movies_pipeline.cleanup import DataCleanupService
from movies_pipeline.config import Config
from movies_pipeline.database import DatabaseManager
from movies_pipeline.errors import ErrorKind, StoreError
from movies_pipeline.processing import CsvProcessingService

from conftest import FIXED_NOW, build_catalog_rows, create_movie, csv_bytes


@pytest.fixture
def sqlite_config(tmp_path):
    return Config(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'movies.db'}",
        project_dir=tmp_path,
        log_dir=tmp_path / "logs",
    )


@pytest_asyncio.fixture
async def sqlite_db(sqlite_config):
    """DatabaseManager on a fresh SQLite file with the movies table created."""
    db = DatabaseManager(sqlite_config)
    await db.check_and_create_tables()
    yield db
    await db.dispose()


async def store(db, *movies):
    async with db.session() as repo:
        for movie in movies:
            await repo.add(movie)
        await repo.commit()


async def stored_movies(db):
    async with db.session() as repo:
        return await repo.list_all()


class TestSetupAndStatus:
    @pytest.mark.asyncio
    async def test_setup_creates_table_once(self, sqlite_config):
        db = DatabaseManager(sqlite_config)
        try:
            assert (await db.get_status())["movies_table_exists"] is False

            first = await db.check_and_create_tables()
            second = await db.check_and_create_tables()

            assert first == {"created": ["movies"], "existing": []}
            assert second == {"created": [], "existing": ["movies"]}
        finally:
            await db.dispose()

    @pytest.mark.asyncio
    async def test_status_counts(self, sqlite_db):
        await store(sqlite_db, create_movie(1, "Early", year=1890), create_movie(2, "Modern", year=2005))

        assert await sqlite_db.get_status() == {
            "movies_table_exists": True,
            "movie_count": 2,
            "outside_stored_years": 1,
        }


class TestRepositoryRoundTrip:
    """Writes read back exactly, timestamps included"""

    @pytest.mark.asyncio
    async def test_add_and_lookup(self, sqlite_db):
        movie = create_movie(1, "Tangled", genre="Animation", studio="Disney", score=89, year=2010)
        await store(sqlite_db, movie)

        async with sqlite_db.session() as repo:
            stored = await repo.get_by_business_id(1)
            missing = await repo.get_by_business_id(2)

        assert stored == movie
        assert stored.created_at.tzinfo is not None
        assert missing is None

    @pytest.mark.asyncio
    async def test_update_changes_fields_and_stamp(self, sqlite_db):
        await store(sqlite_db, create_movie(1, "Tangled", score=70))

        async with sqlite_db.session() as repo:
            movie = await repo.get_by_business_id(1)
            movie.score = 89
            movie.mark_as_updated(FIXED_NOW)
            await repo.update(movie)
            await repo.commit()

        [stored] = await stored_movies(sqlite_db)
        assert stored.score == 89
        assert stored.updated_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_touch_writes_only_the_stamp(self, sqlite_db):
        await store(sqlite_db, create_movie(1, "Tangled"))

        async with sqlite_db.session() as repo:
            movie = await repo.get_by_business_id(1)
            movie.film = "Not Saved"
            movie.mark_as_updated(FIXED_NOW)
            await repo.touch(movie)
            await repo.commit()

        [stored] = await stored_movies(sqlite_db)
        assert stored.film == "Tangled"
        assert stored.updated_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_delete(self, sqlite_db):
        keep, drop = create_movie(1, "Keep"), create_movie(2, "Drop")
        await store(sqlite_db, keep, drop)

        async with sqlite_db.session() as repo:
            await repo.delete(drop)
            await repo.commit()

        assert [m.id for m in await stored_movies(sqlite_db)] == [1]


class TestTransactions:
    """Savepoints isolate one write; sessions keep only committed work"""

    @pytest.mark.asyncio
    async def test_duplicate_id_is_isolated_by_savepoint(self, sqlite_db):
        async with sqlite_db.session() as repo:
            await repo.add(create_movie(1, "First"))
            with pytest.raises(StoreError) as exc_info:
                async with repo.savepoint():
                    await repo.add(create_movie(1, "Same ID"))
            await repo.add(create_movie(2, "Second"))
            await repo.commit()

        assert exc_info.value.kind == ErrorKind.ROW_CONSTRAINT_VIOLATION
        assert [m.film for m in await stored_movies(sqlite_db)] == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_score_check_is_enforced(self, sqlite_db):
        async with sqlite_db.session() as repo:
            with pytest.raises(StoreError) as exc_info:
                async with repo.savepoint():
                    await repo.add(create_movie(1, "Too Good", score=150))

        assert exc_info.value.kind == ErrorKind.ROW_CONSTRAINT_VIOLATION

    @pytest.mark.asyncio
    async def test_exception_rolls_back_session(self, sqlite_db):
        with pytest.raises(RuntimeError):
            async with sqlite_db.session() as repo:
                await repo.add(create_movie(1, "Lost"))
                raise RuntimeError("boom")

        assert await stored_movies(sqlite_db) == []

    @pytest.mark.asyncio
    async def test_uncommitted_session_is_discarded(self, sqlite_db):
        async with sqlite_db.session() as repo:
            await repo.add(create_movie(1, "Lost"))

        assert await sqlite_db.get_movie_count() == 0


class TestCatalogFlowOnSqlite:
    """Load, reload and sweep the 77-row catalog through the real adapter"""

    @pytest.mark.asyncio
    async def test_load_reload_sweep(self, sqlite_db, sqlite_config):
        processing = CsvProcessingService(sqlite_db, sqlite_config)
        data = csv_bytes(build_catalog_rows())

        first = await processing.process_csv(io.BytesIO(data), "catalog.csv")
        second = await processing.process_csv(io.BytesIO(data), "catalog.csv")

        assert (first.created_count, first.updated_count, first.error_count) == (77, 0, 0)
        assert (second.created_count, second.updated_count, second.unchanged_count) == (0, 0, 77)

        cleanup = DataCleanupService(sqlite_db, sqlite_config, clock=lambda: FIXED_NOW)
        result = await cleanup.run_cleanup()

        stored = {m.id: m for m in await stored_movies(sqlite_db)}
        assert result.success
        assert result.duplicates_removed == 2
        assert len(stored) == 75
        assert 40 not in stored and 60 not in stored
        assert stored[10].updated_at is not None
        assert stored[5].genre == "Romance"

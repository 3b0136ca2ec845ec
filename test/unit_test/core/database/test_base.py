"""Unit tests for database base helpers and engine utilities."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from boardmgmt.core.database.base import as_utc, new_id, utc_now
from boardmgmt.core.database.entities.identity import User
from boardmgmt.core.database.repositories.base import QueryBuilder
from boardmgmt.core.database.utils import create_engine, normalize_database_url


class TestTimeHelpers:
    def test_naive_values_are_treated_as_utc(self):
        assert as_utc(datetime(2026, 1, 1, 12, 0)) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_values_are_converted(self):
        plus_two = timezone(timedelta(hours=2))
        assert as_utc(datetime(2026, 1, 1, 14, 0, tzinfo=plus_two)) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_none_passes_through(self):
        assert as_utc(None) is None

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is timezone.utc

    def test_new_id_is_unique_uuid_text(self):
        first, second = new_id(), new_id()
        assert first != second
        assert len(first) == 36


class TestDatabaseUrl:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("postgres://u:p@db/board", "postgresql+asyncpg://u:p@db/board"),
            ("postgresql://u:p@db/board", "postgresql+asyncpg://u:p@db/board"),
            ("postgresql+psycopg://u:p@db/board", "postgresql+asyncpg://u:p@db/board"),
            ("sqlite+aiosqlite:///./board.db", "sqlite+aiosqlite:///./board.db"),
        ],
    )
    def test_normalize_database_url(self, url, expected):
        assert normalize_database_url(url) == expected

    def test_sqlite_engine(self):
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        assert engine.dialect.name == "sqlite"


class TestQueryBuilder:
    def test_filters_skip_none_and_unknown_columns(self):
        stmt = QueryBuilder.apply_filters(select(User), User, {"is_active": True, "email": None, "nope": 1})
        sql = str(stmt)
        assert "users.is_active" in sql
        assert "users.email =" not in sql

    def test_pagination(self):
        stmt = QueryBuilder.apply_pagination(select(User), 10, 20)
        assert stmt._limit == 10
        assert stmt._offset == 20

    def test_no_pagination(self):
        stmt = QueryBuilder.apply_pagination(select(User), None, None)
        assert stmt._limit is None and stmt._offset is None

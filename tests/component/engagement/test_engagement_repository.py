"""
Engagement Repository - Component Tests

Runs the PostgreSQL EngagementRepository against the recording
PostgresClient mock. The write paths lean on unique constraints, so the
tests check the ON CONFLICT statements and how their results are read.
"""

from datetime import datetime, timezone

import pytest

from microservices.engagement_service.engagement_repository import EngagementRepository
from tests.component.mocks import MockAsyncPostgresClient

pytestmark = [pytest.mark.component, pytest.mark.asyncio]

SEEN_AT = datetime(2026, 4, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_db():
    return MockAsyncPostgresClient()


@pytest.fixture
def repository(mock_db):
    return EngagementRepository(mock_db)


class TestViews:

    async def test_first_view_inserted(self, mock_db, repository):
        mock_db.set_value_response("view_1")

        assert await repository.insert_view("cmp_1", "user:usr_1", "usr_1", SEEN_AT, conn="tx") is True

        query, params = mock_db.find_queries("INSERT INTO campaign_views")[0][1:]
        assert "ON CONFLICT (campaign_id, viewer_key) DO NOTHING" in query
        assert params[1:] == ["cmp_1", "user:usr_1", "usr_1", SEEN_AT]

    async def test_existing_view_not_inserted(self, repository):
        """DO NOTHING returns no id when the viewer already has a row"""
        assert await repository.insert_view("cmp_1", "anon:sess-1", None, SEEN_AT) is False

    async def test_update_moves_anchor_only_when_counted(self, mock_db, repository):
        await repository.update_view("cmp_1", "user:usr_1", "usr_1", SEEN_AT, True, conn="tx")
        await repository.update_view("cmp_1", "anon:sess-1", None, SEEN_AT, False, conn="tx")

        counted, uncounted = mock_db.find_queries("UPDATE campaign_views")
        assert "counted_at = CASE WHEN $5 THEN $3 ELSE counted_at END" in counted[1]
        assert "user_id = COALESCE($4, user_id)" in counted[1]
        assert counted[2] == ["cmp_1", "user:usr_1", SEEN_AT, "usr_1", True]
        assert uncounted[2] == ["cmp_1", "anon:sess-1", SEEN_AT, None, False]

    async def test_lock_view_selects_for_update(self, mock_db, repository):
        mock_db.set_row_response({"campaign_id": "cmp_1", "viewer_key": "user:usr_1", "counted_at": SEEN_AT})

        row = await repository.lock_view("cmp_1", "user:usr_1", conn="tx")

        assert row["counted_at"] == SEEN_AT
        mock_db.assert_query_executed("WHERE campaign_id = $1 AND viewer_key = $2 FOR UPDATE")

    async def test_recently_viewed_ids(self, mock_db, repository):
        mock_db.set_rows_response([{"campaign_id": "cmp_2"}, {"campaign_id": "cmp_1"}])

        assert await repository.list_recently_viewed_ids("usr_1", 5) == ["cmp_2", "cmp_1"]
        query, params = mock_db.find_queries("FROM campaign_views")[0][1:]
        assert "GROUP BY campaign_id" in query
        assert params == ["usr_1", 5]


class TestFavorites:

    async def test_add_favorite(self, mock_db, repository):
        mock_db.set_value_response("fav_1")

        assert await repository.add_favorite("usr_1", "cmp_1") is True
        mock_db.assert_query_executed("ON CONFLICT (user_id, campaign_id) DO NOTHING")

    async def test_add_duplicate_favorite(self, repository):
        assert await repository.add_favorite("usr_1", "cmp_1") is False

    async def test_remove_favorite(self, mock_db, repository):
        mock_db.script("DELETE FROM favorites", "fav_1", None)

        assert await repository.remove_favorite("usr_1", "cmp_1") is True
        assert await repository.remove_favorite("usr_1", "cmp_1") is False

    async def test_list_favorite_ids_limit(self, mock_db, repository):
        await repository.list_favorite_ids("usr_1")
        await repository.list_favorite_ids("usr_1", limit=3)

        unlimited, limited = mock_db.find_queries("SELECT campaign_id FROM favorites")
        assert "LIMIT" not in unlimited[1]
        assert unlimited[2] == ["usr_1"]
        assert "LIMIT $2" in limited[1]
        assert limited[2] == ["usr_1", 3]

    async def test_counts(self, mock_db, repository):
        mock_db.script("SELECT EXISTS", True)
        mock_db.script("SELECT COUNT(*) FROM favorites", 4)

        assert await repository.is_favorited("usr_1", "cmp_1") is True
        assert await repository.count_favorites("cmp_1") == 4

"""
Unit Tests for Campaign Listing Filters

WHERE clause construction shared by the listing and count queries.
"""

import pytest

from microservices.campaign_service.campaign_repository import SORT_CLAUSES, CampaignRepository
from microservices.campaign_service.models import CampaignListQuery, CampaignSort, CampaignStatus
from tests.component.mocks import MockAsyncPostgresClient


@pytest.fixture
def repository():
    return CampaignRepository(MockAsyncPostgresClient())


class TestBuildFilters:

    def test_public_listing_defaults_to_active(self, repository):
        where, params = repository._build_filters(CampaignListQuery())

        assert where == "c.status = $1"
        assert params == ["active"]

    def test_include_all_drops_status(self, repository):
        where, params = repository._build_filters(CampaignListQuery(include_all=True))

        assert where == "TRUE"
        assert params == []

    def test_explicit_status(self, repository):
        where, params = repository._build_filters(
            CampaignListQuery(status=CampaignStatus.PENDING_APPROVAL, include_all=True)
        )

        assert where == "c.status = $1"
        assert params == ["pending_approval"]

    def test_filters_are_numbered_in_order(self, repository):
        where, params = repository._build_filters(
            CampaignListQuery(category="energy", stage="prototype", creator_id="usr_1", search="solar")
        )

        assert where == (
            "c.status = $1 AND c.category = $2 AND c.stage = $3 AND c.creator_id = $4 AND "
            "(c.title ILIKE $5 OR c.description ILIKE $5 OR c.category ILIKE $5)"
        )
        assert params == ["active", "energy", "prototype", "usr_1", "%solar%"]


class TestSortClauses:

    def test_every_sort_has_a_clause(self):
        assert set(SORT_CLAUSES) == set(CampaignSort)

    def test_end_date_puts_open_ended_last(self):
        assert "NULLS LAST" in SORT_CLAUSES[CampaignSort.END_DATE]

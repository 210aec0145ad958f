"""
Crowdfund Platform Schema

Idempotent DDL for every table the platform uses. Applied on startup when
``AUTO_MIGRATE=true``; every statement is ``IF NOT EXISTS`` so reruns are
harmless.

The unique constraints here back the concurrency guards in the services:
view de-duplication, favorite toggling, payment references and the
section/asset upserts all rely on them. Payments are never deleted: their
foreign keys restrict deleting the campaign or milestone they point at.
"""

import logging
from typing import List

from core.postgres_client import PostgresClient
from microservices.campaign_service.content_repository import (
    CAMPAIGN_TABLES,
    DRAFT_TABLES,
    ContentTables,
)

logger = logging.getLogger(__name__)


USERS_SQL = """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        full_name TEXT,
        role TEXT NOT NULL CHECK (role IN ('founder', 'investor', 'admin', 'rejected_founder')),
        is_verified BOOLEAN NOT NULL DEFAULT FALSE,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        company_name TEXT,
        bio TEXT,
        location TEXT,
        phone TEXT,
        profile_image_url TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

DRAFTS_SQL = """
    CREATE TABLE IF NOT EXISTS draft_campaigns (
        id TEXT PRIMARY KEY,
        creator_id TEXT NOT NULL REFERENCES users(id),
        title TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        category TEXT NOT NULL DEFAULT '',
        location TEXT NOT NULL DEFAULT '',
        stage TEXT NOT NULL DEFAULT 'concept',
        target_amount NUMERIC(18, 2) NOT NULL DEFAULT 0,
        minimum_investment NUMERIC(18, 2) NOT NULL DEFAULT 0,
        end_date DATE,
        project_duration JSONB NOT NULL DEFAULT '{}'::jsonb,
        financials JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CAMPAIGNS_SQL = """
    CREATE TABLE IF NOT EXISTS campaigns (
        id TEXT PRIMARY KEY,
        creator_id TEXT NOT NULL REFERENCES users(id),
        title TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        category TEXT NOT NULL DEFAULT '',
        location TEXT NOT NULL DEFAULT '',
        stage TEXT NOT NULL DEFAULT 'concept',
        target_amount NUMERIC(18, 2) NOT NULL DEFAULT 0,
        minimum_investment NUMERIC(18, 2) NOT NULL DEFAULT 0,
        end_date DATE,
        project_duration JSONB NOT NULL DEFAULT '{}'::jsonb,
        financials JSONB NOT NULL DEFAULT '{}'::jsonb,
        status TEXT NOT NULL DEFAULT 'draft'
            CHECK (status IN ('draft', 'pending_approval', 'active', 'rejected', 'closed')),
        current_amount NUMERIC(18, 2) NOT NULL DEFAULT 0,
        view_count INTEGER NOT NULL DEFAULT 0,
        rejection_reason TEXT,
        approved_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""


def content_table_statements(tables: ContentTables) -> List[str]:
    """Child tables of one content family, cascading with their owner"""
    owner = tables.owner_column
    fk = f"{owner} TEXT NOT NULL REFERENCES {tables.owner_table}(id) ON DELETE CASCADE"
    return [
        f"""
        CREATE TABLE IF NOT EXISTS {tables.sections} (
            id TEXT PRIMARY KEY,
            {fk},
            section_type TEXT NOT NULL,
            content TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE ({owner}, section_type)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {tables.images} (
            id TEXT PRIMARY KEY,
            {fk},
            section_type TEXT NOT NULL,
            related_id TEXT,
            image_url TEXT NOT NULL,
            display_order INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {tables.assets} (
            id TEXT PRIMARY KEY,
            {fk},
            asset_type TEXT NOT NULL,
            asset_url TEXT NOT NULL,
            media_type TEXT,
            file_name TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE ({owner}, asset_type)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {tables.milestones} (
            id TEXT PRIMARY KEY,
            {fk},
            title TEXT NOT NULL DEFAULT '',
            deliverables TEXT NOT NULL DEFAULT '',
            amount NUMERIC(18, 2) NOT NULL DEFAULT 0,
            target_date DATE,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'in_progress', 'completed')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {tables.team_members} (
            id TEXT PRIMARY KEY,
            {fk},
            name TEXT NOT NULL DEFAULT '',
            role TEXT NOT NULL DEFAULT '',
            bio TEXT,
            email TEXT,
            linkedin TEXT,
            twitter TEXT,
            image_url TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {tables.risks} (
            id TEXT PRIMARY KEY,
            {fk},
            category TEXT NOT NULL DEFAULT '',
            description TEXT NOT NULL DEFAULT '',
            mitigation TEXT,
            impact TEXT NOT NULL DEFAULT 'medium',
            likelihood TEXT NOT NULL DEFAULT 'medium',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        f"CREATE INDEX IF NOT EXISTS idx_{tables.images}_owner ON {tables.images}({owner}, section_type)",
        f"CREATE INDEX IF NOT EXISTS idx_{tables.milestones}_owner ON {tables.milestones}({owner})",
    ]


ENGAGEMENT_SQL = [
    """
    CREATE TABLE IF NOT EXISTS campaign_views (
        id TEXT PRIMARY KEY,
        campaign_id TEXT NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        viewer_key TEXT NOT NULL,
        user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
        viewed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        counted_at TIMESTAMPTZ,
        UNIQUE (campaign_id, viewer_key)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_campaign_views_user ON campaign_views(user_id, viewed_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS favorites (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        campaign_id TEXT NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (user_id, campaign_id)
    )
    """,
]

PAYMENT_SQL = [
    """
    CREATE TABLE IF NOT EXISTS payments (
        id TEXT PRIMARY KEY,
        reference TEXT NOT NULL UNIQUE,
        user_id TEXT NOT NULL REFERENCES users(id),
        campaign_id TEXT NOT NULL REFERENCES campaigns(id) ON DELETE RESTRICT,
        amount NUMERIC(18, 2) NOT NULL CHECK (amount > 0),
        email TEXT,
        payment_method TEXT NOT NULL DEFAULT 'card',
        status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'completed', 'failed')),
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        completed_at TIMESTAMPTZ
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_payments_campaign_status ON payments(campaign_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_payments_user ON payments(user_id, created_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS milestone_allocations (
        id TEXT PRIMARY KEY,
        payment_id TEXT NOT NULL REFERENCES payments(id) ON DELETE CASCADE,
        milestone_id TEXT NOT NULL REFERENCES milestones(id) ON DELETE RESTRICT,
        amount NUMERIC(18, 2) NOT NULL CHECK (amount > 0),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
]

NOTIFICATION_SQL = [
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        type TEXT NOT NULL,
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        related_id TEXT,
        related_type TEXT,
        is_read BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        read_at TIMESTAMPTZ
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, is_read, created_at DESC)",
]


def schema_statements() -> List[str]:
    """All DDL statements in dependency order"""
    return [
        USERS_SQL,
        DRAFTS_SQL,
        *content_table_statements(DRAFT_TABLES),
        CAMPAIGNS_SQL,
        "CREATE INDEX IF NOT EXISTS idx_campaigns_status ON campaigns(status, created_at DESC)",
        "CREATE INDEX IF NOT EXISTS idx_campaigns_creator ON campaigns(creator_id)",
        *content_table_statements(CAMPAIGN_TABLES),
        *ENGAGEMENT_SQL,
        *PAYMENT_SQL,
        *NOTIFICATION_SQL,
    ]


async def apply_schema(db: PostgresClient) -> None:
    """Create missing tables and indexes in one transaction"""
    statements = schema_statements()
    async with db.transaction() as conn:
        for statement in statements:
            await db.execute(statement, conn=conn)
    logger.info(f"Schema applied ({len(statements)} statements)")

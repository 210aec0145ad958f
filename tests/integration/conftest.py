"""
Integration Test Fixtures

Repositories against a real PostgreSQL database. The database comes from
the usual POSTGRES_* variables, with TEST_POSTGRES_DB (default
``crowdfund_test``) naming the database so a development database is never
touched. The schema is applied on first use and every test runs inside a
transaction that is rolled back afterwards.

Tests skip when the database cannot be reached.
"""

import dataclasses
import os
import uuid
from typing import AsyncGenerator, Optional

import asyncpg
import pytest
import pytest_asyncio

from core.config import InfraConfig
from core.postgres_client import PostgresClient
from microservices.platform_service.schema import apply_schema


@pytest_asyncio.fixture(scope="function")
async def postgres_db() -> AsyncGenerator[Optional[PostgresClient], None]:
    """
    PostgresClient for the integration database

    Yields None when PostgreSQL is not reachable.
    """
    config = dataclasses.replace(
        InfraConfig.from_env(),
        postgres_db=os.getenv("TEST_POSTGRES_DB", "crowdfund_test"),
        postgres_min_pool_size=1,
        postgres_max_pool_size=2,
    )
    db = PostgresClient(config)
    try:
        await db.initialize()
        await apply_schema(db)
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        print(f"Warning: Could not connect to {config.postgres_db}: {e}")
        await db.close()
        yield None
        return

    try:
        yield db
    finally:
        await db.close()


@pytest_asyncio.fixture(scope="function")
async def db_conn(postgres_db) -> AsyncGenerator[asyncpg.Connection, None]:
    """
    Connection holding an open transaction

    Repositories join it through ``conn=``; it is rolled back after the test.
    """
    if postgres_db is None:
        pytest.skip("Database connection not available")

    async with postgres_db.pool.acquire() as conn:
        transaction = conn.transaction()
        await transaction.start()
        try:
            yield conn
        finally:
            await transaction.rollback()


async def insert_user(conn: asyncpg.Connection, role: str = "founder", full_name: str = "Fola Founder") -> str:
    """Insert a user row and return its id"""
    user_id = f"usr_{uuid.uuid4().hex[:16]}"
    await conn.execute(
        """
        INSERT INTO users (id, email, password_hash, full_name, role, is_verified)
        VALUES ($1, $2, $3, $4, $5, TRUE)
        """,
        user_id, f"{user_id}@example.com", "not-a-real-hash", full_name, role,
    )
    return user_id


@pytest_asyncio.fixture(scope="function")
async def founder_id(db_conn) -> str:
    return await insert_user(db_conn)


@pytest_asyncio.fixture(scope="function")
async def investor_id(db_conn) -> str:
    return await insert_user(db_conn, role="investor", full_name="Ivy Investor")

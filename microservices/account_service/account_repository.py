"""
Account Repository - Async Version

Data access layer for platform users.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
import logging
import uuid

from core.postgres_client import PostgresClient
from .models import User, UserRole

logger = logging.getLogger(__name__)

# Columns a profile update may touch
PROFILE_FIELDS = ['full_name', 'company_name', 'bio', 'location', 'phone', 'profile_image_url']


class AccountRepository:
    """
    Account-specific repository layer

    Users are never hard-deleted; deactivation clears ``is_active``.
    """

    def __init__(self, db: PostgresClient):
        self.db = db
        self.users_table = "users"

    def _row_to_user(self, row: Dict[str, Any]) -> User:
        """Convert database row to User model"""
        return User(
            id=row["id"],
            email=row["email"],
            password_hash=row.get("password_hash"),
            full_name=row.get("full_name"),
            role=UserRole(row.get("role") or UserRole.INVESTOR.value),
            is_verified=bool(row.get("is_verified")),
            is_active=row.get("is_active", True),
            company_name=row.get("company_name"),
            bio=row.get("bio"),
            location=row.get("location"),
            phone=row.get("phone"),
            profile_image_url=row.get("profile_image_url"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID, including inactive users"""
        try:
            result = await self.db.query_row(
                f"SELECT * FROM {self.users_table} WHERE id = $1", [user_id]
            )
            return self._row_to_user(result) if result else None

        except Exception as e:
            logger.error(f"Failed to get user by ID {user_id}: {e}")
            raise

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)"""
        try:
            result = await self.db.query_row(
                f"SELECT * FROM {self.users_table} WHERE LOWER(email) = LOWER($1)", [email]
            )
            return self._row_to_user(result) if result else None

        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def create_user(
        self,
        email: str,
        password_hash: str,
        full_name: str,
        role: UserRole,
        company_name: Optional[str] = None,
        phone: Optional[str] = None,
        is_verified: bool = False,
    ) -> Optional[User]:
        """Insert a user; returns None when the email is already registered"""
        now = datetime.now(tz=timezone.utc)
        try:
            result = await self.db.query_row(
                f"""INSERT INTO {self.users_table}
                    (id, email, password_hash, full_name, role, company_name, phone,
                     is_verified, is_active, created_at, updated_at)
                    VALUES ($1, LOWER($2), $3, $4, $5, $6, $7, $8, TRUE, $9, $9)
                    ON CONFLICT (email) DO NOTHING
                    RETURNING *""",
                [
                    f"usr_{uuid.uuid4().hex[:16]}",
                    email,
                    password_hash,
                    full_name,
                    role.value,
                    company_name,
                    phone,
                    is_verified,
                    now,
                ],
            )
            if result is None:
                logger.info(f"Registration rejected, email already exists: {email}")
                return None

            logger.info(f"New {role.value} account created: {result['id']}")
            return self._row_to_user(result)

        except Exception as e:
            logger.error(f"Error creating user {email}: {e}")
            raise

    async def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        """Update profile fields; unknown and None fields are ignored"""
        filtered_update = {k: v for k, v in updates.items() if k in PROFILE_FIELDS and v is not None}
        if not filtered_update:
            return await self.get_user_by_id(user_id)

        set_parts = []
        values: List[Any] = []
        for i, (field, value) in enumerate(filtered_update.items(), start=1):
            set_parts.append(f"{field} = ${i}")
            values.append(value)

        set_parts.append(f"updated_at = ${len(values) + 1}")
        values.append(datetime.now(tz=timezone.utc))
        values.append(user_id)

        try:
            result = await self.db.query_row(
                f"UPDATE {self.users_table} SET {', '.join(set_parts)} WHERE id = ${len(values)} RETURNING *",
                values,
            )
            return self._row_to_user(result) if result else None

        except Exception as e:
            logger.error(f"Failed to update profile {user_id}: {e}")
            raise

    async def list_users_by_role(self, role: UserRole, is_verified: Optional[bool] = None) -> List[User]:
        """Users holding a role, newest first"""
        conditions = ["role = $1", "is_active = TRUE"]
        params: List[Any] = [role.value]
        if is_verified is not None:
            conditions.append("is_verified = $2")
            params.append(is_verified)

        results = await self.db.query(
            f"SELECT * FROM {self.users_table} WHERE {' AND '.join(conditions)} ORDER BY created_at DESC",
            params,
        )
        return [self._row_to_user(row) for row in results]

    async def verify_founder(self, user_id: str, conn=None) -> Optional[User]:
        """Mark a founder verified (conditional on the founder role)"""
        result = await self.db.query_row(
            f"""UPDATE {self.users_table}
                SET is_verified = TRUE, updated_at = $2
                WHERE id = $1 AND role = 'founder'
                RETURNING *""",
            [user_id, datetime.now(tz=timezone.utc)],
            conn=conn,
        )
        return self._row_to_user(result) if result else None

    async def reject_founder(self, user_id: str, conn=None) -> Optional[User]:
        """Demote a founder to rejected_founder (conditional on the founder role)"""
        result = await self.db.query_row(
            f"""UPDATE {self.users_table}
                SET role = 'rejected_founder', is_verified = FALSE, updated_at = $2
                WHERE id = $1 AND role = 'founder'
                RETURNING *""",
            [user_id, datetime.now(tz=timezone.utc)],
            conn=conn,
        )
        return self._row_to_user(result) if result else None

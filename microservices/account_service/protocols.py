"""
Account Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from core.errors import NotFoundError, ValidationError

# Import only models (no I/O dependencies)
from .models import User, UserRole


class AccountNotFoundError(NotFoundError):
    """User not found"""
    default_message = "User not found"


class AccountValidationError(ValidationError):
    """Registration or profile data rejected"""
    pass


class DuplicateAccountError(AccountValidationError):
    """Email already registered"""
    default_message = "User already exists"


@runtime_checkable
class AccountRepositoryProtocol(Protocol):
    """
    Interface for Account Repository.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    """

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID (including inactive users)"""
        ...

    async def get_user_by_email(self, email: str) -> Optional[User]:
        ...

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
        """Insert a user; None when the email is already registered"""
        ...

    async def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        ...

    async def list_users_by_role(self, role: UserRole, is_verified: Optional[bool] = None) -> List[User]:
        ...

    async def verify_founder(self, user_id: str, conn: Any = None) -> Optional[User]:
        """Mark a founder verified; None unless the user currently holds the founder role"""
        ...

    async def reject_founder(self, user_id: str, conn: Any = None) -> Optional[User]:
        """Move a founder to rejected_founder; None unless currently a founder"""
        ...

"""
Account Service Business Logic

Registration, login, profiles and founder verification.
"""

from typing import Optional, List
import logging
import secrets

from core.errors import AuthenticationError, AuthorizationError
from core.jwt_manager import JWTManager, TokenClaims
from microservices.campaign_service.protocols import TransactionManagerProtocol

from .models import (
    AdminRegisterRequest, AuthResult, LoginRequest, ProfileUpdateRequest,
    RegisterRequest, User, UserProfile, UserRole
)
from .password_utils import BCRYPT_ROUNDS, hash_password, is_password_strong, verify_password
from .protocols import (
    AccountNotFoundError, AccountRepositoryProtocol, AccountValidationError, DuplicateAccountError
)

logger = logging.getLogger(__name__)


class AccountService:
    """
    Account management business logic service

    Handles all account-related business operations while delegating
    data access to the AccountRepository layer.
    """

    def __init__(
        self,
        db: TransactionManagerProtocol,
        repository: AccountRepositoryProtocol,
        jwt_manager: JWTManager,
        notification_service=None,
        admin_keycode: str = "",
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        self.db = db
        self.repository = repository
        self.jwt_manager = jwt_manager
        self.notification_service = notification_service
        self.admin_keycode = admin_keycode
        self.bcrypt_rounds = bcrypt_rounds

    # Registration and login

    async def register(self, request: RegisterRequest) -> AuthResult:
        """
        Register a founder or investor

        Raises:
            AccountValidationError: weak password
            DuplicateAccountError: email already registered
        """
        user = await self._create_account(
            email=request.email,
            password=request.password,
            full_name=request.full_name,
            role=request.role,
            company_name=request.company_name,
            phone=request.phone,
        )
        return self._auth_result(user)

    async def register_admin(self, request: AdminRegisterRequest) -> AuthResult:
        """Register an admin; requires the configured admin keycode"""
        if not self.admin_keycode or not secrets.compare_digest(request.keycode, self.admin_keycode):
            logger.warning(f"Admin registration with invalid keycode for {request.email}")
            raise AuthorizationError("Invalid admin keycode")

        user = await self._create_account(
            email=request.email,
            password=request.password,
            full_name=request.full_name,
            role=UserRole.ADMIN,
            is_verified=True,
        )
        return self._auth_result(user)

    async def login(self, request: LoginRequest) -> AuthResult:
        """Authenticate with email and password"""
        user = await self.repository.get_user_by_email(request.email)
        if not user or not user.is_active or not verify_password(request.password, user.password_hash):
            raise AuthenticationError("Invalid credentials")

        logger.info(f"User logged in: {user.id}")
        return self._auth_result(user)

    async def _create_account(
        self,
        email: str,
        password: str,
        full_name: str,
        role: UserRole,
        company_name: Optional[str] = None,
        phone: Optional[str] = None,
        is_verified: bool = False,
    ) -> User:
        is_strong, error = is_password_strong(password)
        if not is_strong:
            raise AccountValidationError(error)

        user = await self.repository.create_user(
            email=email,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            full_name=full_name,
            role=role,
            company_name=company_name,
            phone=phone,
            is_verified=is_verified,
        )
        if user is None:
            raise DuplicateAccountError()
        return user

    def _auth_result(self, user: User) -> AuthResult:
        token = self.jwt_manager.create_access_token(TokenClaims(user_id=user.id, email=user.email))
        return AuthResult(user=user.to_profile(), token=token)

    # Profile

    async def get_profile(self, user_id: str) -> UserProfile:
        user = await self.repository.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise AccountNotFoundError(f"User not found: {user_id}")
        return user.to_profile()

    async def update_profile(self, user_id: str, request: ProfileUpdateRequest) -> UserProfile:
        """Update the caller's own profile fields"""
        user = await self.repository.update_profile(user_id, request.model_dump(exclude_none=True))
        if not user:
            raise AccountNotFoundError(f"User not found: {user_id}")
        logger.info(f"Profile updated: {user_id}")
        return user.to_profile()

    # Founder verification (admin)

    async def list_founders(self, is_verified: Optional[bool] = None) -> List[UserProfile]:
        founders = await self.repository.list_users_by_role(UserRole.FOUNDER, is_verified)
        return [founder.to_profile() for founder in founders]

    async def approve_founder(self, founder_id: str) -> UserProfile:
        """Verify a founder and notify them in the same transaction"""
        async with self.db.transaction() as conn:
            user = await self.repository.verify_founder(founder_id, conn=conn)
            if user is None:
                raise AccountNotFoundError("Founder not found")
            if self.notification_service:
                await self.notification_service.create_founder_approval_notification(
                    founder_id, approved=True, conn=conn
                )

        logger.info(f"Founder approved: {founder_id}")
        return user.to_profile()

    async def reject_founder(self, founder_id: str) -> UserProfile:
        """Reject a founder application and notify them"""
        async with self.db.transaction() as conn:
            user = await self.repository.reject_founder(founder_id, conn=conn)
            if user is None:
                raise AccountNotFoundError("Founder not found")
            if self.notification_service:
                await self.notification_service.create_founder_approval_notification(
                    founder_id, approved=False, conn=conn
                )

        logger.info(f"Founder rejected: {founder_id}")
        return user.to_profile()
